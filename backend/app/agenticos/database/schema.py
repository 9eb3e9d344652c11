"""AgenticOS - Schema Initializer

启动时建表并执行增量迁移。

迁移不记版本号：每次启动重放同一批语句，"已存在" 类错误视为成功。
只允许加列/加索引这类可重放的增量变更，破坏性迁移不能走这里。
"""
from __future__ import annotations

import logging

from agenticos.database.client import RowStoreClient, RowStoreError

logger = logging.getLogger(__name__)


TABLES: list[str] = [
    """CREATE TABLE IF NOT EXISTS users (
        id         INTEGER PRIMARY KEY AUTOINCREMENT,
        email      TEXT    NOT NULL UNIQUE,
        name       TEXT    NOT NULL,
        password   TEXT    NOT NULL,
        created_at INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS projects (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id     INTEGER NOT NULL DEFAULT 0,
        name        TEXT    NOT NULL,
        description TEXT,
        created_at  INTEGER NOT NULL,
        updated_at  INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS domains (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id  INTEGER NOT NULL,
        name        TEXT    NOT NULL,
        description TEXT,
        attributes  TEXT    NOT NULL DEFAULT '[]',
        created_at  INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS requirements (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id   INTEGER NOT NULL,
        title        TEXT    NOT NULL,
        description  TEXT,
        gherkin      TEXT    NOT NULL DEFAULT '{"given":[],"when":[],"then":[]}',
        data_bag_ids TEXT    NOT NULL DEFAULT '[]',
        status       TEXT    NOT NULL DEFAULT 'draft',
        created_at   INTEGER NOT NULL,
        updated_at   INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS test_cases (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id      INTEGER NOT NULL,
        requirement_id  INTEGER,
        name            TEXT    NOT NULL,
        description     TEXT,
        steps           TEXT    NOT NULL DEFAULT '[]',
        status          TEXT    NOT NULL DEFAULT 'pending',
        preconditions   TEXT,
        expected_result TEXT,
        data_bag_id     INTEGER,
        created_at      INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS data_bags (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id  INTEGER NOT NULL,
        name        TEXT    NOT NULL,
        description TEXT,
        records     TEXT    NOT NULL DEFAULT '[]',
        schema_def  TEXT    NOT NULL DEFAULT '[]',
        created_at  INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS generated_specs (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id  INTEGER NOT NULL,
        content     TEXT    NOT NULL,
        model       TEXT,
        spec_type   TEXT,
        prompt      TEXT,
        created_at  INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS friday_items (
        id             INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id     INTEGER NOT NULL,
        requirement_id INTEGER,
        title          TEXT    NOT NULL,
        notes          TEXT,
        priority       TEXT    NOT NULL DEFAULT 'medium',
        swimlane       TEXT    NOT NULL DEFAULT 'backlog',
        position       INTEGER NOT NULL DEFAULT 0,
        status         TEXT    NOT NULL DEFAULT 'todo',
        created_at     INTEGER NOT NULL,
        updated_at     INTEGER NOT NULL
    )""",
    """CREATE TABLE IF NOT EXISTS tracker_items (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id  INTEGER NOT NULL,
        title       TEXT    NOT NULL,
        owner       TEXT,
        due_date    TEXT,
        status      TEXT    NOT NULL DEFAULT 'on_track',
        comments    TEXT,
        position    INTEGER NOT NULL DEFAULT 0,
        created_at  INTEGER NOT NULL,
        updated_at  INTEGER NOT NULL
    )""",
]

# 增量迁移：逐条执行，"已存在" 视为成功
MIGRATIONS: list[str] = [
    "ALTER TABLE projects ADD COLUMN user_id INTEGER NOT NULL DEFAULT 0",
    "CREATE INDEX idx_projects_user ON projects(user_id)",
    "CREATE INDEX idx_domains_project ON domains(project_id)",
    "CREATE INDEX idx_requirements_project ON requirements(project_id)",
    "CREATE INDEX idx_test_cases_project ON test_cases(project_id)",
    "CREATE INDEX idx_test_cases_requirement ON test_cases(requirement_id)",
    "CREATE INDEX idx_data_bags_project ON data_bags(project_id)",
    "CREATE INDEX idx_generated_specs_project ON generated_specs(project_id)",
    "CREATE INDEX idx_friday_items_lane ON friday_items(project_id, swimlane, position)",
    "CREATE INDEX idx_tracker_items_project ON tracker_items(project_id, position)",
]

_ALREADY_EXISTS_MARKERS = ("duplicate column", "already exists")


def is_already_exists(error: Exception) -> bool:
    """判断迁移错误是否为 "列/索引已存在" """
    message = str(error).lower()
    return any(marker in message for marker in _ALREADY_EXISTS_MARKERS)


async def initialize(client: RowStoreClient) -> None:
    """初始化数据库结构（幂等）

    Raises:
        RowStoreError: 建表失败，或迁移出现非 "已存在" 类错误
    """
    await client.batch(TABLES)

    applied = 0
    for statement in MIGRATIONS:
        try:
            await client.execute(statement)
            applied += 1
        except RowStoreError as e:
            if not is_already_exists(e):
                raise
            logger.debug(f"迁移已存在，跳过: {statement} ({e})")

    logger.info(f"数据库结构初始化完成（新应用迁移 {applied} 条）")
