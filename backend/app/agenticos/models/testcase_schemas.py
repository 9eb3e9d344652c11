"""AgenticOS - TestCase Schemas

测试用例相关的 Pydantic 数据模型
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from agenticos.models.common_schemas import int_or_none, json_object_list, text_or_empty


class StepType(str, Enum):
    """步骤类型"""
    ACTION = "action"
    ASSERTION = "assertion"
    SETUP = "setup"
    TEARDOWN = "teardown"


class TestCaseStatus(str, Enum):
    """用例执行状态"""
    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


class TestStep(BaseModel):
    """测试步骤"""
    type: StepType = StepType.ACTION
    description: str = ""
    expected: str = ""


# ============================================================
# Request Schemas
# ============================================================

class TestCaseCreate(BaseModel):
    """创建测试用例请求"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    requirement_id: Optional[int] = None
    data_bag_id: Optional[int] = None
    steps: list[TestStep] = Field(default_factory=list)
    status: TestCaseStatus = TestCaseStatus.PENDING
    preconditions: str = Field(default="")
    expected_result: str = Field(default="")


class TestCaseUpdate(BaseModel):
    """更新测试用例请求（整体替换）"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    requirement_id: Optional[int] = None
    data_bag_id: Optional[int] = None
    steps: list[TestStep] = Field(default_factory=list)
    status: TestCaseStatus = TestCaseStatus.PENDING
    preconditions: str = Field(default="")
    expected_result: str = Field(default="")


# ============================================================
# Response Schemas
# ============================================================

class TestCaseRecord(BaseModel):
    """测试用例"""
    id: int
    project_id: int
    requirement_id: Optional[int] = None
    data_bag_id: Optional[int] = None
    name: str
    description: str = ""
    steps: list[TestStep] = Field(default_factory=list)
    status: TestCaseStatus = TestCaseStatus.PENDING
    preconditions: str = ""
    expected_result: str = ""
    created_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TestCaseRecord":
        steps = []
        for item in json_object_list(row.get("steps")):
            step_type = item.get("type")
            steps.append(TestStep(
                type=step_type if step_type in StepType._value2member_map_ else StepType.ACTION,
                description=text_or_empty(item.get("description")),
                expected=text_or_empty(item.get("expected")),
            ))
        status = row.get("status") or TestCaseStatus.PENDING.value
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            requirement_id=int_or_none(row.get("requirement_id")),
            data_bag_id=int_or_none(row.get("data_bag_id")),
            name=text_or_empty(row.get("name")),
            description=text_or_empty(row.get("description")),
            steps=steps,
            status=status if status in TestCaseStatus._value2member_map_ else TestCaseStatus.PENDING,
            preconditions=text_or_empty(row.get("preconditions")),
            expected_result=text_or_empty(row.get("expected_result")),
            created_at=int(row.get("created_at") or 0),
        )
