"""AgenticOS - Test Case Repository

测试用例仓储
"""
from __future__ import annotations

from typing import Optional

from agenticos.models.common_schemas import dump_json
from agenticos.models.testcase_schemas import TestCaseCreate, TestCaseRecord, TestCaseUpdate
from agenticos.repositories.base import ProjectScopedRepository, now_ms


class TestCaseRepository(ProjectScopedRepository):
    __test__ = False

    table = "test_cases"
    label = "Test case"

    def decode(self, row: dict) -> TestCaseRecord:
        return TestCaseRecord.from_row(row)

    async def _check_links(self, data, project_id: int) -> None:
        """关联的需求与数据包必须属于同一项目"""
        await self._check_references("requirements", "Requirement", [data.requirement_id], project_id)
        await self._check_references("data_bags", "Data bag", [data.data_bag_id], project_id)

    async def list_for_requirement(self, requirement_id: int, project_id: int) -> list[TestCaseRecord]:
        return await self._fetch_all(
            f"SELECT * FROM test_cases WHERE requirement_id = ? AND project_id = ? ORDER BY {self.order_by}",
            [requirement_id, project_id],
            self.decode,
        )

    async def create(self, project_id: int, data: TestCaseCreate) -> int:
        await self._check_links(data, project_id)
        result = await self._write(
            "INSERT INTO test_cases (project_id, requirement_id, name, description, steps, status, "
            "preconditions, expected_result, data_bag_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                project_id,
                data.requirement_id,
                data.name,
                data.description,
                dump_json(data.steps),
                data.status.value,
                data.preconditions,
                data.expected_result,
                data.data_bag_id,
                now_ms(),
            ],
        )
        return int(result.last_insert_rowid or 0)

    async def update(self, test_case_id: int, data: TestCaseUpdate, project_id: Optional[int] = None) -> None:
        current = await self.require(test_case_id, project_id)
        await self._check_links(data, current.project_id)
        where, args = self._where_id(test_case_id, project_id)
        await self._write(
            "UPDATE test_cases SET requirement_id = ?, name = ?, description = ?, steps = ?, status = ?, "
            f"preconditions = ?, expected_result = ?, data_bag_id = ? WHERE {where}",
            [
                data.requirement_id,
                data.name,
                data.description,
                dump_json(data.steps),
                data.status.value,
                data.preconditions,
                data.expected_result,
                data.data_bag_id,
                *args,
            ],
            not_found=self._not_found(),
        )
