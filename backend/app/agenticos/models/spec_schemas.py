"""AgenticOS - Generated Spec Schemas

AI 生成规格文档相关的 Pydantic 数据模型（创建后不可修改）
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from agenticos.models.common_schemas import text_or_empty


class GeneratedSpecCreate(BaseModel):
    """保存生成结果"""
    content: str
    model: str = ""
    spec_type: str = ""
    prompt: str = ""

    model_config = ConfigDict(protected_namespaces=())


class GeneratedSpecRecord(BaseModel):
    """生成的规格文档"""
    id: int
    project_id: int
    content: str
    model: str = ""
    spec_type: str = ""
    prompt: str = ""
    created_at: int

    model_config = ConfigDict(protected_namespaces=())

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GeneratedSpecRecord":
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            content=text_or_empty(row.get("content")),
            model=text_or_empty(row.get("model")),
            spec_type=text_or_empty(row.get("spec_type")),
            prompt=text_or_empty(row.get("prompt")),
            created_at=int(row.get("created_at") or 0),
        )


class SpecGenerateRequest(BaseModel):
    """生成规格文档请求"""
    spec_type: str = Field(default="functional")
    model: Optional[str] = Field(default=None, description="为空时使用配置的默认模型")
    api_key: Optional[str] = Field(default=None, description="为空时使用服务端配置的 Anthropic API Key")

    model_config = ConfigDict(protected_namespaces=())
