"""AgenticOS - Data Bag Schemas

测试数据包相关的 Pydantic 数据模型

records 与 schema 分开存储，不校验记录是否符合 schema。
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from agenticos.models.common_schemas import json_object_list, text_or_empty


class SchemaColumn(BaseModel):
    """数据列定义"""
    name: str = ""
    type: str = "string"


class DataBagCreate(BaseModel):
    """创建数据包请求"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    records: list[dict[str, Any]] = Field(default_factory=list)
    schema_def: list[SchemaColumn] = Field(default_factory=list, alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class DataBagUpdate(DataBagCreate):
    """更新数据包请求（整体替换）"""
    pass


class DataBagImportRequest(BaseModel):
    """导入数据包请求（CSV / JSON 文本）"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    content: str = Field(..., min_length=1, description="CSV 或 JSON 原文")
    filename: str | None = Field(default=None, description="原文件名，用于判断格式")


class DataBagRecord(BaseModel):
    """数据包"""
    id: int
    project_id: int
    name: str
    description: str = ""
    records: list[dict[str, Any]] = Field(default_factory=list)
    schema_def: list[SchemaColumn] = Field(default_factory=list, alias="schema")
    created_at: int

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DataBagRecord":
        columns = [
            SchemaColumn(name=text_or_empty(col.get("name")), type=text_or_empty(col.get("type")) or "string")
            for col in json_object_list(row.get("schema_def"))
        ]
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            name=text_or_empty(row.get("name")),
            description=text_or_empty(row.get("description")),
            records=json_object_list(row.get("records")),
            schema_def=columns,
            created_at=int(row.get("created_at") or 0),
        )
