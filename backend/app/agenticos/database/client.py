"""AgenticOS - Row Store Client

行存储客户端：参数化语句执行与原子批处理。

两种实现：
- SQLAlchemyRowStore：SQLAlchemy 异步引擎（本地 SQLite / 测试）
- LibSQLHttpClient：远程 libSQL (Turso)，走 Hrana-over-HTTP v2 pipeline
"""
from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

import httpx
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


class RowStoreError(Exception):
    """行存储执行错误（语句失败、连接失败）"""
    pass


class RowStoreConfigError(RowStoreError):
    """行存储配置错误（缺少凭证、URL 无效）"""
    pass


@dataclass
class Statement:
    """参数化语句，参数使用 ? 占位"""
    sql: str
    args: Sequence[Any] = ()


StatementLike = Union[str, Statement]


@dataclass
class ResultSet:
    """语句执行结果"""
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    rows_affected: int = 0
    last_insert_rowid: Optional[int] = None

    def first(self) -> Optional[dict[str, Any]]:
        return self.rows[0] if self.rows else None


def as_statement(stmt: StatementLike, args: Sequence[Any] = ()) -> Statement:
    if isinstance(stmt, Statement):
        return stmt
    return Statement(sql=stmt, args=tuple(args))


class RowStoreClient(ABC):
    """行存储客户端接口"""

    @abstractmethod
    async def execute(self, stmt: StatementLike, args: Sequence[Any] = ()) -> ResultSet:
        """执行单条语句"""

    @abstractmethod
    async def batch(self, statements: Sequence[StatementLike]) -> list[ResultSet]:
        """原子执行多条语句：全部成功或全部回滚"""

    async def close(self) -> None:
        return None


# ============================================================
# SQLAlchemy 实现
# ============================================================

class SQLAlchemyRowStore(RowStoreClient):
    """基于 SQLAlchemy 异步引擎的行存储"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        # 不复用连接：aiosqlite 连接绑定创建时的事件循环
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, poolclass=NullPool)

    @staticmethod
    def _to_result(cursor) -> ResultSet:
        if cursor.returns_rows:
            columns = list(cursor.keys())
            rows = [dict(row) for row in cursor.mappings().all()]
        else:
            columns, rows = [], []
        rowcount = cursor.rowcount if cursor.rowcount and cursor.rowcount > 0 else 0
        return ResultSet(
            columns=columns,
            rows=rows,
            rows_affected=rowcount,
            last_insert_rowid=cursor.lastrowid or None,
        )

    async def execute(self, stmt: StatementLike, args: Sequence[Any] = ()) -> ResultSet:
        statement = as_statement(stmt, args)
        try:
            async with self.engine.begin() as conn:
                cursor = await conn.exec_driver_sql(statement.sql, tuple(statement.args))
                return self._to_result(cursor)
        except DBAPIError as e:
            raise RowStoreError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise RowStoreError(str(e)) from e

    async def batch(self, statements: Sequence[StatementLike]) -> list[ResultSet]:
        results: list[ResultSet] = []
        try:
            async with self.engine.begin() as conn:
                for stmt in statements:
                    statement = as_statement(stmt)
                    cursor = await conn.exec_driver_sql(statement.sql, tuple(statement.args))
                    results.append(self._to_result(cursor))
        except DBAPIError as e:
            raise RowStoreError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise RowStoreError(str(e)) from e
        return results

    async def close(self) -> None:
        await self.engine.dispose()


# ============================================================
# libSQL (Turso) HTTP 实现
# ============================================================

def encode_value(value: Any) -> dict[str, Any]:
    """Python 值 -> Hrana 值"""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "integer", "value": "1" if value else "0"}
    if isinstance(value, int):
        return {"type": "integer", "value": str(value)}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    if isinstance(value, (bytes, bytearray)):
        return {"type": "blob", "base64": base64.b64encode(bytes(value)).decode("ascii").rstrip("=")}
    return {"type": "text", "value": str(value)}


def decode_value(value: dict[str, Any]) -> Any:
    """Hrana 值 -> Python 值"""
    kind = value.get("type")
    if kind == "null":
        return None
    if kind == "integer":
        return int(value["value"])
    if kind == "float":
        return float(value["value"])
    if kind == "blob":
        raw = value.get("base64", "")
        return base64.b64decode(raw + "=" * (-len(raw) % 4))
    return value.get("value")


def _encode_stmt(statement: Statement) -> dict[str, Any]:
    return {"sql": statement.sql, "args": [encode_value(a) for a in statement.args]}


def _decode_result(result: dict[str, Any]) -> ResultSet:
    columns = [col.get("name") or "" for col in result.get("cols", [])]
    rows = [
        dict(zip(columns, (decode_value(v) for v in row)))
        for row in result.get("rows", [])
    ]
    last_rowid = result.get("last_insert_rowid")
    return ResultSet(
        columns=columns,
        rows=rows,
        rows_affected=int(result.get("affected_row_count") or 0),
        last_insert_rowid=int(last_rowid) if last_rowid is not None else None,
    )


def _unwrap(stream_result: dict[str, Any]) -> dict[str, Any]:
    if stream_result.get("type") == "error":
        error = stream_result.get("error") or {}
        raise RowStoreError(error.get("message", "unknown row store error"))
    return stream_result["response"]


class LibSQLHttpClient(RowStoreClient):
    """远程 libSQL 客户端（Hrana over HTTP v2）"""

    def __init__(
        self,
        url: str,
        auth_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if url.startswith("libsql://"):
            url = "https://" + url[len("libsql://"):]
        self.base_url = url.rstrip("/")
        headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _pipeline(self, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        payload = {"baton": None, "requests": [*requests, {"type": "close"}]}
        try:
            response = await self._client.post("/v2/pipeline", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RowStoreError(
                f"Row store returned HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise RowStoreError(f"Row store unreachable: {e}") from e
        return response.json().get("results", [])

    async def execute(self, stmt: StatementLike, args: Sequence[Any] = ()) -> ResultSet:
        statement = as_statement(stmt, args)
        results = await self._pipeline([{"type": "execute", "stmt": _encode_stmt(statement)}])
        response = _unwrap(results[0])
        return _decode_result(response["result"])

    async def batch(self, statements: Sequence[StatementLike]) -> list[ResultSet]:
        stmts = [as_statement(s) for s in statements]

        # BEGIN -> 语句链（每步以上一步成功为条件）-> COMMIT，失败时 ROLLBACK
        steps: list[dict[str, Any]] = [{"stmt": {"sql": "BEGIN"}}]
        for index, statement in enumerate(stmts):
            steps.append({
                "stmt": _encode_stmt(statement),
                "condition": {"type": "ok", "step": index},
            })
        commit_step = len(steps)
        steps.append({"stmt": {"sql": "COMMIT"}, "condition": {"type": "ok", "step": commit_step - 1}})
        steps.append({
            "stmt": {"sql": "ROLLBACK"},
            "condition": {"type": "not", "cond": {"type": "ok", "step": commit_step}},
        })

        results = await self._pipeline([{"type": "batch", "batch": {"steps": steps}}])
        batch_result = _unwrap(results[0])["result"]
        step_results = batch_result.get("step_results", [])
        step_errors = batch_result.get("step_errors", [])

        for error in step_errors:
            if error:
                raise RowStoreError(error.get("message", "batch step failed"))
        if commit_step >= len(step_results) or step_results[commit_step] is None:
            raise RowStoreError("Batch was not committed")

        return [_decode_result(step_results[i + 1]) for i in range(len(stmts))]

    async def close(self) -> None:
        await self._client.aclose()


# ============================================================
# 工厂
# ============================================================

_REMOTE_SCHEMES = ("libsql://", "https://", "http://")


def create_row_store(settings) -> RowStoreClient:
    """根据配置创建行存储客户端

    Raises:
        RowStoreConfigError: 缺少 URL，或远程 URL 缺少 token
    """
    url = (settings.DB_URL or "").strip()
    if not url:
        raise RowStoreConfigError(
            "Missing database URL.\nSet AGENTICOS_DB_URL in your .env file or environment."
        )

    if url.startswith(_REMOTE_SCHEMES):
        token = settings.DB_AUTH_TOKEN
        # http:// 用于本地 sqld，允许无 token
        if not token and not url.startswith("http://"):
            raise RowStoreConfigError(
                "Missing Turso credentials.\n"
                "Set AGENTICOS_DB_URL and AGENTICOS_DB_AUTH_TOKEN in your .env file "
                "or in the deployment environment."
            )
        logger.info(f"使用远程行存储: {url}")
        return LibSQLHttpClient(url, token, timeout=settings.DB_TIMEOUT)

    logger.info(f"使用 SQLAlchemy 行存储: {url}")
    return SQLAlchemyRowStore(url)
