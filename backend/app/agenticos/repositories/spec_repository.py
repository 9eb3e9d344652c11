"""AgenticOS - Generated Spec Repository

AI 生成规格文档仓储：只追加，不提供更新
"""
from __future__ import annotations

from agenticos.models.spec_schemas import GeneratedSpecCreate, GeneratedSpecRecord
from agenticos.repositories.base import ProjectScopedRepository, now_ms


class GeneratedSpecRepository(ProjectScopedRepository):
    table = "generated_specs"
    label = "Spec"
    order_by = "created_at DESC, id DESC"

    def decode(self, row: dict) -> GeneratedSpecRecord:
        return GeneratedSpecRecord.from_row(row)

    async def create(self, project_id: int, data: GeneratedSpecCreate) -> int:
        result = await self._write(
            "INSERT INTO generated_specs (project_id, content, model, spec_type, prompt, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [project_id, data.content, data.model, data.spec_type, data.prompt, now_ms()],
        )
        return int(result.last_insert_rowid or 0)
