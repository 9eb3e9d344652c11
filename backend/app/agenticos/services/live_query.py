"""AgenticOS - Live Query

响应式查询：依赖变化或变更总线广播时自动重跑查询。

规则：
- 首次查询成功前 value 为 UNSET
- 每次发起查询递增 generation，只有最新一次发起的查询可以写入 value，
  过期查询的结果（包括失败）直接丢弃
- 查询失败只记录日志并写入 error，value 保留上一次成功的值
- 每次成功都会回调 on_change，即使结果与上次相同
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, Set, TypeVar

from agenticos.services.change_bus import ChangeBus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Unset:
    """首次查询完成前的占位值"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()

QueryFn = Callable[[], Awaitable[T]]


class LiveQuery(Generic[T]):
    """绑定到变更总线的查询结果"""

    def __init__(
        self,
        query_fn: QueryFn,
        deps: Sequence[Any] = (),
        *,
        bus: ChangeBus,
        on_change: Optional[Callable[[T], None]] = None,
        name: Optional[str] = None,
    ):
        self._query_fn = query_fn
        self._deps = tuple(deps)
        self._bus = bus
        self._on_change = on_change
        self.name = name or getattr(query_fn, "__name__", "query")

        self.value: T = UNSET
        self.error: Optional[Exception] = None

        self._generation = 0
        self._latest: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._closed = False

    # ---------- 状态 ----------

    @property
    def resolved(self) -> bool:
        return self.value is not UNSET

    @property
    def loading(self) -> bool:
        return self._latest is not None and not self._latest.done()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def deps(self) -> tuple:
        return self._deps

    # ---------- 生命周期 ----------

    def start(self) -> "LiveQuery[T]":
        """订阅变更总线并发起首次查询"""
        if self._closed:
            raise RuntimeError("LiveQuery 已关闭")
        if self._unsubscribe is None:
            self._unsubscribe = self._bus.subscribe(self.refresh)
        self.refresh()
        return self

    def set_deps(self, deps: Sequence[Any], query_fn: Optional[QueryFn] = None) -> bool:
        """更新依赖；依赖变化时重跑查询

        Returns:
            是否发起了新查询
        """
        if query_fn is not None:
            self._query_fn = query_fn
        deps = tuple(deps)
        if deps == self._deps:
            return False
        self._deps = deps
        self.refresh()
        return True

    def refresh(self) -> None:
        """发起新一轮查询（同步接口，可直接作为总线回调）"""
        if self._closed:
            return
        self._generation += 1
        task = asyncio.get_running_loop().create_task(
            self._run(self._generation, self._query_fn)
        )
        self._latest = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, generation: int, query_fn: QueryFn) -> None:
        try:
            result = await query_fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._generation:
                return
            self.error = e
            logger.exception(f"[LiveQuery:{self.name}] 查询失败，保留上次结果")
            return

        if self._closed or generation != self._generation:
            logger.debug(f"[LiveQuery:{self.name}] 丢弃过期结果 (gen={generation}, latest={self._generation})")
            return

        self.value = result
        self.error = None
        if self._on_change is not None:
            try:
                self._on_change(result)
            except Exception:
                logger.exception(f"[LiveQuery:{self.name}] on_change 回调失败")

    async def settle(self) -> T:
        """等待所有在途查询结束，返回当前值"""
        while self._pending:
            await asyncio.wait(list(self._pending))
        return self.value

    async def close(self) -> None:
        """取消订阅并取消在途查询"""
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "LiveQuery[T]":
        return self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"LiveQuery(name={self.name!r}, generation={self._generation}, value={self.value!r})"
