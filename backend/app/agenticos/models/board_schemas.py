"""AgenticOS - Board Schemas

Friday 看板与 Tracker 跟踪表相关的 Pydantic 数据模型
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from agenticos.models.common_schemas import int_or_none, text_or_empty


# ============================================================
# Friday 看板
# ============================================================

class Swimlane(str, Enum):
    """泳道（定义顺序即展示顺序）"""
    BACKLOG = "backlog"
    THIS_WEEK = "this_week"
    NEXT_WEEK = "next_week"
    DONE = "done"


class Priority(str, Enum):
    """优先级"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BoardStatus(str, Enum):
    """看板条目状态"""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    BLOCKED = "blocked"
    DONE = "done"


SWIMLANE_ORDER = [lane.value for lane in Swimlane]


def _coerce(enum_cls, value, default):
    return value if value in enum_cls._value2member_map_ else default


class BoardItemCreate(BaseModel):
    """创建看板条目请求（position 由仓储按泳道长度分配）"""
    title: str = Field(..., min_length=1, max_length=255)
    notes: str = Field(default="")
    requirement_id: Optional[int] = None
    priority: Priority = Priority.MEDIUM
    swimlane: Swimlane = Swimlane.BACKLOG
    status: BoardStatus = BoardStatus.TODO


class BoardItemUpdate(BaseModel):
    """更新看板条目请求（整体替换）"""
    title: str = Field(..., min_length=1, max_length=255)
    notes: str = Field(default="")
    priority: Priority = Priority.MEDIUM
    swimlane: Swimlane = Swimlane.BACKLOG
    position: int = Field(default=0, ge=0)
    status: BoardStatus = BoardStatus.TODO


class BoardMoveRequest(BaseModel):
    """移动到其他泳道"""
    swimlane: Swimlane


class BoardItemRecord(BaseModel):
    """看板条目"""
    id: int
    project_id: int
    requirement_id: Optional[int] = None
    title: str
    notes: str = ""
    priority: Priority = Priority.MEDIUM
    swimlane: Swimlane = Swimlane.BACKLOG
    position: int = 0
    status: BoardStatus = BoardStatus.TODO
    created_at: int
    updated_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "BoardItemRecord":
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            requirement_id=int_or_none(row.get("requirement_id")),
            title=text_or_empty(row.get("title")),
            notes=text_or_empty(row.get("notes")),
            priority=_coerce(Priority, row.get("priority"), Priority.MEDIUM),
            swimlane=_coerce(Swimlane, row.get("swimlane"), Swimlane.BACKLOG),
            position=int(row.get("position") or 0),
            status=_coerce(BoardStatus, row.get("status"), BoardStatus.TODO),
            created_at=int(row.get("created_at") or 0),
            updated_at=int(row.get("updated_at") or 0),
        )


# ============================================================
# Tracker
# ============================================================

class TrackerStatus(str, Enum):
    """跟踪状态"""
    ON_TRACK = "on_track"
    BLOCKED = "blocked"
    DONE = "done"


class TrackerItemCreate(BaseModel):
    """创建跟踪条目请求"""
    title: str = Field(..., min_length=1, max_length=255)
    owner: str = Field(default="")
    due_date: str = Field(default="", description="ISO 日期文本，不做解析")
    status: TrackerStatus = TrackerStatus.ON_TRACK
    comments: str = Field(default="")


class TrackerItemUpdate(BaseModel):
    """更新跟踪条目请求（整体替换）"""
    title: str = Field(..., min_length=1, max_length=255)
    owner: str = Field(default="")
    due_date: str = Field(default="")
    status: TrackerStatus = TrackerStatus.ON_TRACK
    comments: str = Field(default="")
    position: int = Field(default=0, ge=0)


class TrackerMoveRequest(BaseModel):
    """调整顺序"""
    position: int = Field(..., ge=0)


class TrackerItemRecord(BaseModel):
    """跟踪条目"""
    id: int
    project_id: int
    title: str
    owner: str = ""
    due_date: str = ""
    status: TrackerStatus = TrackerStatus.ON_TRACK
    comments: str = ""
    position: int = 0
    created_at: int
    updated_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TrackerItemRecord":
        return cls(
            id=int(row["id"]),
            project_id=int(row["project_id"]),
            title=text_or_empty(row.get("title")),
            owner=text_or_empty(row.get("owner")),
            due_date=text_or_empty(row.get("due_date")),
            status=_coerce(TrackerStatus, row.get("status"), TrackerStatus.ON_TRACK),
            comments=text_or_empty(row.get("comments")),
            position=int(row.get("position") or 0),
            created_at=int(row.get("created_at") or 0),
            updated_at=int(row.get("updated_at") or 0),
        )
