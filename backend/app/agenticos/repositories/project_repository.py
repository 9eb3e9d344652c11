"""AgenticOS - Project Repository

项目仓储：按用户隔离的项目 CRUD 与级联删除
"""
from __future__ import annotations

import logging
from typing import Optional

from agenticos.database.client import Statement
from agenticos.models.project_schemas import (
    ProjectCreate,
    ProjectRecord,
    ProjectSummary,
    ProjectUpdate,
)
from agenticos.repositories.base import BaseRepository, NotFoundError, now_ms

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "Project not found or access denied"

# 删除顺序：先子表后父表
CASCADE_TABLES = [
    "tracker_items",
    "friday_items",
    "generated_specs",
    "test_cases",
    "data_bags",
    "requirements",
    "domains",
]


class ProjectRepository(BaseRepository):
    """项目仓储"""

    async def create(self, user_id: int, data: ProjectCreate) -> int:
        now = now_ms()
        result = await self._write(
            "INSERT INTO projects (user_id, name, description, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            [user_id, data.name, data.description, now, now],
        )
        project_id = int(result.last_insert_rowid or 0)
        logger.info(f"项目已创建: id={project_id}, user_id={user_id}")
        return project_id

    async def list(self, user_id: int):
        """当前用户的项目，新建的在前"""
        return await self._fetch_all(
            "SELECT * FROM projects WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            [user_id],
            ProjectRecord.from_row,
        )

    async def get(self, project_id: int, user_id: int) -> Optional[ProjectRecord]:
        """读取项目（不属于该用户时返回 None）"""
        return await self._fetch_one(
            "SELECT * FROM projects WHERE id = ? AND user_id = ?",
            [project_id, user_id],
            ProjectRecord.from_row,
        )

    async def require(self, project_id: int, user_id: int) -> ProjectRecord:
        project = await self.get(project_id, user_id)
        if project is None:
            raise NotFoundError(PROJECT_NOT_FOUND)
        return project

    async def update(self, project_id: int, user_id: int, data: ProjectUpdate) -> None:
        await self._write(
            "UPDATE projects SET name = ?, description = ?, updated_at = ? WHERE id = ? AND user_id = ?",
            [data.name, data.description, now_ms(), project_id, user_id],
            not_found=PROJECT_NOT_FOUND,
        )

    async def delete(self, project_id: int, user_id: int) -> None:
        """删除项目及其全部下属数据（单个原子批次）"""
        await self.require(project_id, user_id)
        statements = [
            Statement(f"DELETE FROM {table} WHERE project_id = ?", [project_id])
            for table in CASCADE_TABLES
        ]
        statements.append(Statement("DELETE FROM projects WHERE id = ? AND user_id = ?", [project_id, user_id]))
        await self._write_batch(statements)
        logger.info(f"项目已删除: id={project_id}")

    async def requirement_counts(self, user_id: int) -> dict[int, int]:
        """各项目的需求数量"""
        result = await self.client.execute(
            "SELECT r.project_id AS project_id, COUNT(*) AS cnt FROM requirements r "
            "JOIN projects p ON p.id = r.project_id "
            "WHERE p.user_id = ? GROUP BY r.project_id",
            [user_id],
        )
        return {int(row["project_id"]): int(row["cnt"]) for row in result.rows}

    async def list_summaries(self, user_id: int) -> list[ProjectSummary]:
        """项目列表（含需求数量）"""
        projects = await self.list(user_id)
        counts = await self.requirement_counts(user_id)
        return [
            ProjectSummary(**project.model_dump(), requirement_count=counts.get(project.id, 0))
            for project in projects
        ]
