"""AgenticOS - Domain Schemas

领域模型（实体/属性定义）相关的 Pydantic 数据模型
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field

from agenticos.models.common_schemas import json_object_list, text_or_empty


class AttributeType(str, Enum):
    """属性类型"""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    ENUM = "enum"
    REFERENCE = "reference"


class DomainAttribute(BaseModel):
    """领域属性（属性名不做唯一性校验）"""
    name: str = ""
    type: AttributeType = AttributeType.STRING
    description: str = ""
    required: bool = False


class DomainCreate(BaseModel):
    """创建领域请求"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    attributes: list[DomainAttribute] = Field(default_factory=list)


class DomainUpdate(BaseModel):
    """更新领域请求（整体替换）"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    attributes: list[DomainAttribute] = Field(default_factory=list)


class DomainRecord(BaseModel):
    """领域"""
    id: int
    project_id: int
    name: str
    description: str = ""
    attributes: list[DomainAttribute] = Field(default_factory=list)
    created_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DomainRecord":
        attributes = []
        for item in json_object_list(row.get("attributes")):
            try:
                attributes.append(DomainAttribute.model_validate(item))
            except ValueError:
                # 未知类型等脏数据按 string 处理
                attributes.append(DomainAttribute(
                    name=text_or_empty(item.get("name")),
                    description=text_or_empty(item.get("description")),
                    required=bool(item.get("required", False)),
                ))
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            name=text_or_empty(row.get("name")),
            description=text_or_empty(row.get("description")),
            attributes=attributes,
            created_at=int(row.get("created_at") or 0),
        )
