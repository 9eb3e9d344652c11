"""AgenticOS - Repository Base

仓储基类：统一行存储访问与写后通知

约定：
- 每个写操作在存储确认后发布一次变更通知，读操作从不发布
- 时间戳统一为毫秒级 epoch 整数
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from agenticos.database.client import ResultSet, RowStoreClient, StatementLike
from agenticos.services.change_bus import ChangeBus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryError(Exception):
    """仓储层错误基类"""
    pass


class NotFoundError(RepositoryError):
    """记录不存在（或不属于当前用户）"""
    pass


class DuplicateError(RepositoryError):
    """唯一性冲突"""
    pass


class AuthenticationError(RepositoryError):
    """认证失败"""
    pass


def now_ms() -> int:
    """当前时间（毫秒）"""
    return int(time.time() * 1000)


class BaseRepository:
    """仓储基类"""

    def __init__(self, client: RowStoreClient, bus: ChangeBus):
        self.client = client
        self.bus = bus

    async def _fetch_all(self, sql: str, args: Sequence[Any], decode: Callable[[dict], T]) -> list[T]:
        result = await self.client.execute(sql, args)
        return [decode(row) for row in result.rows]

    async def _fetch_one(self, sql: str, args: Sequence[Any], decode: Callable[[dict], T]) -> Optional[T]:
        row = (await self.client.execute(sql, args)).first()
        return decode(row) if row is not None else None

    async def _count(self, sql: str, args: Sequence[Any]) -> int:
        row = (await self.client.execute(sql, args)).first()
        if not row:
            return 0
        return int(next(iter(row.values())) or 0)

    async def _write(self, sql: str, args: Sequence[Any] = (), not_found: Optional[str] = None) -> ResultSet:
        """执行写语句并通知订阅者

        not_found 非空时，未影响任何行则抛出 NotFoundError（不发布通知）。
        """
        result = await self.client.execute(sql, args)
        if not_found and result.rows_affected == 0:
            raise NotFoundError(not_found)
        self.bus.publish()
        return result

    async def _write_batch(self, statements: Sequence[StatementLike]) -> list[ResultSet]:
        """原子批量写并通知订阅者（整批只发布一次）"""
        results = await self.client.batch(statements)
        self.bus.publish()
        return results


class ProjectScopedRepository(BaseRepository):
    """项目下属实体仓储：按 project_id 列表、按 id 读取与删除

    project_id 参数用于把单条操作限制在某个项目内，为 None 时不限制。
    """

    table: str = ""
    label: str = "Record"
    order_by: str = "created_at ASC, id ASC"

    def decode(self, row: dict):
        raise NotImplementedError

    def _where_id(self, item_id: int, project_id: Optional[int]) -> tuple[str, list[Any]]:
        if project_id is None:
            return "id = ?", [item_id]
        return "id = ? AND project_id = ?", [item_id, project_id]

    def _not_found(self) -> str:
        return f"{self.label} not found"

    async def list(self, project_id: int):
        return await self._fetch_all(
            f"SELECT * FROM {self.table} WHERE project_id = ? ORDER BY {self.order_by}",
            [project_id],
            self.decode,
        )

    async def get(self, item_id: int, project_id: Optional[int] = None):
        where, args = self._where_id(item_id, project_id)
        return await self._fetch_one(f"SELECT * FROM {self.table} WHERE {where}", args, self.decode)

    async def require(self, item_id: int, project_id: Optional[int] = None):
        record = await self.get(item_id, project_id)
        if record is None:
            raise NotFoundError(self._not_found())
        return record

    async def _check_references(
        self, table: str, label: str, ids: Iterable[Optional[int]], project_id: int
    ) -> None:
        """校验被引用的记录都属于同一项目，None 表示未关联"""
        wanted = {int(i) for i in ids if i is not None}
        if not wanted:
            return
        marks = ", ".join("?" for _ in wanted)
        found = await self._count(
            f"SELECT COUNT(*) AS cnt FROM {table} WHERE project_id = ? AND id IN ({marks})",
            [project_id, *sorted(wanted)],
        )
        if found != len(wanted):
            raise NotFoundError(f"{label} not found")

    async def count(self, project_id: int) -> int:
        return await self._count(
            f"SELECT COUNT(*) AS cnt FROM {self.table} WHERE project_id = ?", [project_id]
        )

    async def delete(self, item_id: int, project_id: Optional[int] = None) -> None:
        where, args = self._where_id(item_id, project_id)
        await self._write(f"DELETE FROM {self.table} WHERE {where}", args, not_found=self._not_found())
        logger.info(f"{self.label} 已删除: id={item_id}")
