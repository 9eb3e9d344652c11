"""AgenticOS - Board Repository

Friday 看板与 Tracker 跟踪表仓储

位置规则：
- 看板新建/移动时，position 取目标泳道当前条目数（追加到末尾）
- 删除不回收位置，允许出现空洞
- Tracker 调整顺序时整表按新顺序重新编号
"""
from __future__ import annotations

import logging
from typing import Optional

from agenticos.database.client import Statement
from agenticos.models.board_schemas import (
    SWIMLANE_ORDER,
    BoardItemCreate,
    BoardItemRecord,
    BoardItemUpdate,
    Swimlane,
    TrackerItemCreate,
    TrackerItemRecord,
    TrackerItemUpdate,
)
from agenticos.repositories.base import ProjectScopedRepository, now_ms

logger = logging.getLogger(__name__)

_LANE_RANK = " ".join(f"WHEN '{lane}' THEN {rank}" for rank, lane in enumerate(SWIMLANE_ORDER))


class BoardRepository(ProjectScopedRepository):
    """Friday 看板仓储"""

    table = "friday_items"
    label = "Board item"
    order_by = f"CASE swimlane {_LANE_RANK} ELSE {len(SWIMLANE_ORDER)} END, position ASC, id ASC"

    def decode(self, row: dict) -> BoardItemRecord:
        return BoardItemRecord.from_row(row)

    async def lane_size(self, project_id: int, swimlane: str, exclude_id: Optional[int] = None) -> int:
        sql = "SELECT COUNT(*) AS cnt FROM friday_items WHERE project_id = ? AND swimlane = ?"
        args: list = [project_id, swimlane]
        if exclude_id is not None:
            sql += " AND id != ?"
            args.append(exclude_id)
        return await self._count(sql, args)

    async def list_by_lane(self, project_id: int) -> dict[str, list[BoardItemRecord]]:
        """按泳道分组（每个泳道都有键）"""
        lanes: dict[str, list[BoardItemRecord]] = {lane: [] for lane in SWIMLANE_ORDER}
        for item in await self.list(project_id):
            lanes[item.swimlane.value].append(item)
        return lanes

    async def create(self, project_id: int, data: BoardItemCreate) -> int:
        await self._check_references("requirements", "Requirement", [data.requirement_id], project_id)
        now = now_ms()
        position = await self.lane_size(project_id, data.swimlane.value)
        result = await self._write(
            "INSERT INTO friday_items (project_id, requirement_id, title, notes, priority, swimlane, "
            "position, status, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                project_id,
                data.requirement_id,
                data.title,
                data.notes,
                data.priority.value,
                data.swimlane.value,
                position,
                data.status.value,
                now,
                now,
            ],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, item_id: int, data: BoardItemUpdate, project_id: Optional[int] = None) -> None:
        where, args = self._where_id(item_id, project_id)
        await self._write(
            "UPDATE friday_items SET title = ?, notes = ?, priority = ?, swimlane = ?, position = ?, "
            f"status = ?, updated_at = ? WHERE {where}",
            [
                data.title,
                data.notes,
                data.priority.value,
                data.swimlane.value,
                data.position,
                data.status.value,
                now_ms(),
                *args,
            ],
            not_found=self._not_found(),
        )

    async def move(self, item_id: int, swimlane: Swimlane, project_id: Optional[int] = None) -> int:
        """移动到目标泳道末尾，返回新位置"""
        item = await self.require(item_id, project_id)
        lane = Swimlane(swimlane).value
        position = await self.lane_size(item.project_id, lane, exclude_id=item.id)
        await self._write(
            "UPDATE friday_items SET swimlane = ?, position = ?, updated_at = ? WHERE id = ?",
            [lane, position, now_ms(), item.id],
            not_found=self._not_found(),
        )
        logger.debug(f"看板条目移动: id={item.id}, {item.swimlane.value} -> {lane}@{position}")
        return position


class TrackerRepository(ProjectScopedRepository):
    """Tracker 跟踪表仓储"""

    table = "tracker_items"
    label = "Tracker item"
    order_by = "position ASC, id ASC"

    def decode(self, row: dict) -> TrackerItemRecord:
        return TrackerItemRecord.from_row(row)

    async def create(self, project_id: int, data: TrackerItemCreate) -> int:
        now = now_ms()
        position = await self.count(project_id)
        result = await self._write(
            "INSERT INTO tracker_items (project_id, title, owner, due_date, status, comments, position, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                project_id,
                data.title,
                data.owner,
                data.due_date,
                data.status.value,
                data.comments,
                position,
                now,
                now,
            ],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, item_id: int, data: TrackerItemUpdate, project_id: Optional[int] = None) -> None:
        where, args = self._where_id(item_id, project_id)
        await self._write(
            "UPDATE tracker_items SET title = ?, owner = ?, due_date = ?, status = ?, comments = ?, "
            f"position = ?, updated_at = ? WHERE {where}",
            [
                data.title,
                data.owner,
                data.due_date,
                data.status.value,
                data.comments,
                data.position,
                now_ms(),
                *args,
            ],
            not_found=self._not_found(),
        )

    async def move(self, item_id: int, position: int, project_id: Optional[int] = None) -> int:
        """把条目插入到指定序号（超出范围时夹到两端），其余条目依次顺延

        返回实际位置。
        """
        item = await self.require(item_id, project_id)
        others = [other for other in await self.list(item.project_id) if other.id != item.id]
        position = max(0, min(position, len(others)))
        others.insert(position, item)

        statements = [
            Statement("UPDATE tracker_items SET position = ? WHERE id = ?", [index, entry.id])
            for index, entry in enumerate(others)
        ]
        statements.append(Statement("UPDATE tracker_items SET updated_at = ? WHERE id = ?", [now_ms(), item.id]))
        await self._write_batch(statements)
        return position
