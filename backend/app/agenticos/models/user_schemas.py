"""AgenticOS - User Schemas

用户与认证 Pydantic 模型
"""
from typing import Any, Mapping

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    """注册用户"""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class UserRecord(BaseModel):
    """用户（不含密码哈希）"""
    id: int
    email: str
    name: str
    created_at: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserRecord":
        return cls(
            id=int(row["id"]),
            email=row.get("email") or "",
            name=row.get("name") or "",
            created_at=int(row.get("created_at") or 0),
        )


class UserLogin(BaseModel):
    """用户登录"""
    email: str
    password: str


class TokenResponse(BaseModel):
    """Token 响应"""
    access_token: str
    token_type: str = "bearer"
    user: UserRecord
