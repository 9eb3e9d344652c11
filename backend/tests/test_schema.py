"""数据库结构初始化测试"""

import pytest

from agenticos.database.client import ResultSet, RowStoreClient, RowStoreError
from agenticos.database.schema import MIGRATIONS, TABLES, initialize, is_already_exists


class ScriptedClient(RowStoreClient):
    """按 SQL 片段返回预设错误的假客户端"""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        self.executed: list[str] = []
        self.batches: list[list] = []

    async def execute(self, stmt, args=()):
        sql = stmt if isinstance(stmt, str) else stmt.sql
        self.executed.append(sql)
        for fragment, message in self.errors.items():
            if fragment in sql:
                raise RowStoreError(message)
        return ResultSet()

    async def batch(self, statements):
        self.batches.append(list(statements))
        return [ResultSet() for _ in statements]


class TestSchemaInitializer:
    """initialize 测试"""

    @pytest.mark.asyncio
    async def test_initialize_creates_all_tables(self, store):
        """建出全部表"""
        await initialize(store)

        result = await store.execute("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
        names = {row["name"] for row in result.rows}
        assert {
            "users", "projects", "domains", "requirements", "test_cases",
            "data_bags", "generated_specs", "friday_items", "tracker_items",
        } <= names

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, store):
        """重复初始化不报错，已有数据保留"""
        await initialize(store)
        await store.execute(
            "INSERT INTO projects (user_id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            [1, "Kept", 1, 1],
        )

        await initialize(store)

        result = await store.execute("SELECT name FROM projects")
        assert [row["name"] for row in result.rows] == ["Kept"]

    @pytest.mark.asyncio
    async def test_already_exists_errors_are_swallowed(self):
        """"已存在" 类迁移错误视为成功"""
        client = ScriptedClient({
            "ADD COLUMN user_id": "duplicate column name: user_id",
            "idx_projects_user": "index idx_projects_user already exists",
        })

        await initialize(client)

        assert len(client.batches) == 1
        assert len(client.batches[0]) == len(TABLES)
        assert client.executed == MIGRATIONS

    @pytest.mark.asyncio
    async def test_other_migration_errors_propagate(self):
        """其他迁移错误向上抛出并中止初始化"""
        client = ScriptedClient({"idx_domains_project": "disk I/O error"})

        with pytest.raises(RowStoreError, match="disk I/O error"):
            await initialize(client)

        assert client.executed[-1].startswith("CREATE INDEX idx_domains_project")

    def test_is_already_exists(self):
        assert is_already_exists(RowStoreError("duplicate column name: user_id"))
        assert is_already_exists(RowStoreError("table users already exists"))
        assert not is_already_exists(RowStoreError("no such table: users"))
