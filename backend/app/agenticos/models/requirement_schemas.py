"""AgenticOS - Requirement Schemas

需求（Gherkin）相关的 Pydantic 数据模型
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field

from agenticos.models.common_schemas import json_list, parse_json_column, text_or_empty


class RequirementStatus(str, Enum):
    """需求状态"""
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Gherkin(BaseModel):
    """Gherkin 子句：given / when / then 三个有序步骤列表

    步骤文本中的 @Domain.attribute 只是文本，不校验领域定义。
    """
    given: list[str] = Field(default_factory=list)
    when: list[str] = Field(default_factory=list)
    then: list[str] = Field(default_factory=list)

    @classmethod
    def from_column(cls, raw: Any) -> "Gherkin":
        data = parse_json_column(raw, dict, dict)
        clauses = {}
        for clause in ("given", "when", "then"):
            steps = data.get(clause)
            if not isinstance(steps, list):
                steps = []
            clauses[clause] = [str(step) for step in steps if step is not None]
        return cls(**clauses)


# ============================================================
# Request Schemas
# ============================================================

class RequirementCreate(BaseModel):
    """创建需求请求"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    gherkin: Gherkin = Field(default_factory=Gherkin)
    data_bag_ids: list[int] = Field(default_factory=list)
    status: RequirementStatus = RequirementStatus.DRAFT


class RequirementUpdate(BaseModel):
    """更新需求请求（整体替换）"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    gherkin: Gherkin = Field(default_factory=Gherkin)
    data_bag_ids: list[int] = Field(default_factory=list)
    status: RequirementStatus = RequirementStatus.DRAFT


# ============================================================
# Response Schemas
# ============================================================

class RequirementRecord(BaseModel):
    """需求"""
    id: int
    project_id: int
    title: str
    description: str = ""
    gherkin: Gherkin = Field(default_factory=Gherkin)
    data_bag_ids: list[int] = Field(default_factory=list)
    status: RequirementStatus = RequirementStatus.DRAFT
    created_at: int
    updated_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RequirementRecord":
        bag_ids = []
        for value in json_list(row.get("data_bag_ids")):
            try:
                bag_ids.append(int(value))
            except (TypeError, ValueError):
                continue
        status = row.get("status") or RequirementStatus.DRAFT.value
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            title=text_or_empty(row.get("title")),
            description=text_or_empty(row.get("description")),
            gherkin=Gherkin.from_column(row.get("gherkin")),
            data_bag_ids=bag_ids,
            status=status if status in RequirementStatus._value2member_map_ else RequirementStatus.DRAFT,
            created_at=int(row.get("created_at") or 0),
            updated_at=int(row.get("updated_at") or 0),
        )
