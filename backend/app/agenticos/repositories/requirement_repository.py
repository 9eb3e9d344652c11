"""AgenticOS - Requirement Repository

需求仓储：删除需求时级联删除关联的测试用例
"""
from __future__ import annotations

import logging
from typing import Optional

from agenticos.database.client import Statement
from agenticos.models.common_schemas import dump_json
from agenticos.models.requirement_schemas import (
    RequirementCreate,
    RequirementRecord,
    RequirementUpdate,
)
from agenticos.repositories.base import ProjectScopedRepository, now_ms

logger = logging.getLogger(__name__)


class RequirementRepository(ProjectScopedRepository):
    table = "requirements"
    label = "Requirement"

    def decode(self, row: dict) -> RequirementRecord:
        return RequirementRecord.from_row(row)

    async def create(self, project_id: int, data: RequirementCreate) -> int:
        await self._check_references("data_bags", "Data bag", data.data_bag_ids, project_id)
        now = now_ms()
        result = await self._write(
            "INSERT INTO requirements "
            "(project_id, title, description, gherkin, data_bag_ids, status, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                project_id,
                data.title,
                data.description,
                dump_json(data.gherkin),
                dump_json(data.data_bag_ids),
                data.status.value,
                now,
                now,
            ],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, requirement_id: int, data: RequirementUpdate, project_id: Optional[int] = None) -> None:
        current = await self.require(requirement_id, project_id)
        await self._check_references("data_bags", "Data bag", data.data_bag_ids, current.project_id)
        where, args = self._where_id(requirement_id, project_id)
        await self._write(
            "UPDATE requirements SET title = ?, description = ?, gherkin = ?, data_bag_ids = ?, "
            f"status = ?, updated_at = ? WHERE {where}",
            [
                data.title,
                data.description,
                dump_json(data.gherkin),
                dump_json(data.data_bag_ids),
                data.status.value,
                now_ms(),
                *args,
            ],
            not_found=self._not_found(),
        )

    async def delete(self, requirement_id: int, project_id: Optional[int] = None) -> None:
        """删除需求及其测试用例（单个原子批次）"""
        requirement = await self.require(requirement_id, project_id)
        await self._write_batch([
            Statement(
                "DELETE FROM test_cases WHERE requirement_id = ? AND project_id = ?",
                [requirement_id, requirement.project_id],
            ),
            Statement("DELETE FROM requirements WHERE id = ?", [requirement_id]),
        ])
        logger.info(f"需求已删除: id={requirement_id}")
