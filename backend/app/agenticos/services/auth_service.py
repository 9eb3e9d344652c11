"""AgenticOS - Auth Service

认证服务：加盐密码哈希与 JWT 令牌
"""
import hashlib
import hmac
import secrets
import uuid as uuid_module
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import InvalidTokenError

from agenticos.core.config import settings
from agenticos.models.user_schemas import UserRecord

SALT_BYTES = 16


class AuthService:
    """认证服务"""

    @staticmethod
    def _digest(salt_hex: str, password: str) -> str:
        return hashlib.sha256((salt_hex + password).encode("utf-8")).hexdigest()

    @staticmethod
    def hash_password(password: str) -> str:
        """密码哈希

        存储格式: hex(salt) + ":" + sha256(hex(salt) + password)，salt 为 16 字节随机数。
        """
        salt_hex = secrets.token_bytes(SALT_BYTES).hex()
        return f"{salt_hex}:{AuthService._digest(salt_hex, password)}"

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """验证密码（格式不合法直接返回 False）"""
        if not hashed_password or ":" not in hashed_password:
            return False
        salt_hex, expected = hashed_password.split(":", 1)
        actual = AuthService._digest(salt_hex, plain_password)
        return hmac.compare_digest(actual, expected)

    # ========== JWT 相关方法 ==========

    @staticmethod
    def create_access_token(user: UserRecord) -> str:
        """创建 JWT 访问令牌

        Args:
            user: 用户

        Returns:
            JWT 令牌字符串
        """
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user.id),            # 主题：用户ID
            "email": user.email,
            "name": user.name,
            "exp": now + timedelta(hours=settings.JWT_EXPIRE_HOURS),
            "iat": now,
            "jti": str(uuid_module.uuid4()),
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
        """解码并验证 JWT 令牌，验证失败返回 None"""
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except InvalidTokenError:
            return None

    @staticmethod
    def user_id_from_token(token: str) -> Optional[int]:
        """从令牌中取出用户 ID"""
        payload = AuthService.decode_access_token(token)
        if not payload:
            return None
        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError):
            return None
