"""AgenticOS - Domain Repository

领域定义仓储（attributes 以 JSON 文本列存储）
"""
from __future__ import annotations

from typing import Optional

from agenticos.models.common_schemas import dump_json
from agenticos.models.domain_schemas import DomainCreate, DomainRecord, DomainUpdate
from agenticos.repositories.base import ProjectScopedRepository, now_ms


class DomainRepository(ProjectScopedRepository):
    table = "domains"
    label = "Domain"

    def decode(self, row: dict) -> DomainRecord:
        return DomainRecord.from_row(row)

    async def create(self, project_id: int, data: DomainCreate) -> int:
        result = await self._write(
            "INSERT INTO domains (project_id, name, description, attributes, created_at) VALUES (?, ?, ?, ?, ?)",
            [project_id, data.name, data.description, dump_json(data.attributes), now_ms()],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, domain_id: int, data: DomainUpdate, project_id: Optional[int] = None) -> None:
        where, args = self._where_id(domain_id, project_id)
        await self._write(
            f"UPDATE domains SET name = ?, description = ?, attributes = ? WHERE {where}",
            [data.name, data.description, dump_json(data.attributes), *args],
            not_found=self._not_found(),
        )
