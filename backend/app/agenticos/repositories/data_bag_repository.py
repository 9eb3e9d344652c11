"""AgenticOS - Data Bag Repository

测试数据包仓储（records / schema 分别存为 JSON 文本列）
"""
from __future__ import annotations

from typing import Optional

from agenticos.models.common_schemas import dump_json
from agenticos.models.data_bag_schemas import DataBagCreate, DataBagRecord, DataBagUpdate
from agenticos.repositories.base import ProjectScopedRepository, now_ms


class DataBagRepository(ProjectScopedRepository):
    table = "data_bags"
    label = "Data bag"

    def decode(self, row: dict) -> DataBagRecord:
        return DataBagRecord.from_row(row)

    async def create(self, project_id: int, data: DataBagCreate) -> int:
        result = await self._write(
            "INSERT INTO data_bags (project_id, name, description, records, schema_def, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                project_id,
                data.name,
                data.description,
                dump_json(data.records),
                dump_json(data.schema_def),
                now_ms(),
            ],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, data_bag_id: int, data: DataBagUpdate, project_id: Optional[int] = None) -> None:
        where, args = self._where_id(data_bag_id, project_id)
        await self._write(
            f"UPDATE data_bags SET name = ?, description = ?, records = ?, schema_def = ? WHERE {where}",
            [data.name, data.description, dump_json(data.records), dump_json(data.schema_def), *args],
            not_found=self._not_found(),
        )
