"""AgenticOS - Project Schemas

项目相关的 Pydantic 数据模型
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from agenticos.models.common_schemas import text_or_empty


class ProjectCreate(BaseModel):
    """创建项目请求"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")


class ProjectUpdate(BaseModel):
    """更新项目请求（整体替换）"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")


class ProjectRecord(BaseModel):
    """项目"""
    id: int
    user_id: int = 0
    name: str
    description: str = ""
    created_at: int
    updated_at: int

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProjectRecord":
        return cls(
            id=int(row["id"]),
            user_id=int(row.get("user_id") or 0),
            name=text_or_empty(row.get("name")),
            description=text_or_empty(row.get("description")),
            created_at=int(row.get("created_at") or 0),
            updated_at=int(row.get("updated_at") or 0),
        )


class ProjectSummary(ProjectRecord):
    """项目列表项（含需求数量）"""
    requirement_count: int = 0
