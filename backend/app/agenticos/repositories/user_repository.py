"""AgenticOS - User Repository

用户账户：注册、查找、认证与演示用户种子

用户写操作不发布变更通知（不属于任何项目视图）。
"""
from __future__ import annotations

import logging
from typing import Optional

from agenticos.database.client import RowStoreError
from agenticos.models.user_schemas import UserCreate, UserRecord
from agenticos.repositories.base import (
    AuthenticationError,
    BaseRepository,
    DuplicateError,
    now_ms,
)
from agenticos.services.auth_service import AuthService

logger = logging.getLogger(__name__)

DEMO_USER_EMAIL = "demo@demo.com"
DEMO_USER_NAME = "Demo User"
DEMO_USER_PASSWORD = "Abc!123"

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserRepository(BaseRepository):
    """用户仓储"""

    async def _find_row(self, email: str) -> Optional[dict]:
        result = await self.client.execute(
            "SELECT * FROM users WHERE email = ?", [normalize_email(email)]
        )
        return result.first()

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        row = await self._find_row(email)
        return UserRecord.from_row(row) if row else None

    async def get(self, user_id: int) -> Optional[UserRecord]:
        return await self._fetch_one(
            "SELECT id, email, name, created_at FROM users WHERE id = ?",
            [user_id],
            UserRecord.from_row,
        )

    async def create(self, data: UserCreate) -> UserRecord:
        """注册用户（邮箱已存在抛出 DuplicateError）"""
        email = normalize_email(data.email)
        if await self._find_row(email):
            raise DuplicateError(DUPLICATE_EMAIL_MESSAGE)

        created_at = now_ms()
        try:
            result = await self.client.execute(
                "INSERT INTO users (email, name, password, created_at) VALUES (?, ?, ?, ?)",
                [email, data.name, AuthService.hash_password(data.password), created_at],
            )
        except RowStoreError as e:
            # 并发注册时由唯一约束兜底
            if "UNIQUE" in str(e).upper():
                raise DuplicateError(DUPLICATE_EMAIL_MESSAGE) from e
            raise

        logger.info(f"用户注册成功: {email}")
        return UserRecord(
            id=int(result.last_insert_rowid or 0),
            email=email,
            name=data.name,
            created_at=created_at,
        )

    async def authenticate(self, email: str, password: str) -> UserRecord:
        """校验邮箱与密码，失败统一抛出 AuthenticationError"""
        row = await self._find_row(email)
        if not row or not AuthService.verify_password(password, row.get("password") or ""):
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        return UserRecord.from_row(row)

    async def seed_demo_user(self) -> bool:
        """演示用户不存在时创建，返回是否新建"""
        if await self._find_row(DEMO_USER_EMAIL):
            return False
        await self.create(UserCreate(
            email=DEMO_USER_EMAIL,
            name=DEMO_USER_NAME,
            password=DEMO_USER_PASSWORD,
        ))
        logger.info(f"演示用户已创建: {DEMO_USER_EMAIL}")
        return True
