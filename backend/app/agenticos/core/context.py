"""AgenticOS - Application Context

应用上下文：行存储客户端、变更总线与各实体仓储的组装

所有仓储共享同一个客户端和同一条变更总线。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from agenticos.database.client import RowStoreClient, create_row_store
from agenticos.database.schema import initialize
from agenticos.repositories import (
    BoardRepository,
    DataBagRepository,
    DomainRepository,
    GeneratedSpecRepository,
    ProjectRepository,
    RequirementRepository,
    TestCaseRepository,
    TrackerRepository,
    UserRepository,
)
from agenticos.services.change_bus import ChangeBus
from agenticos.services.live_query import LiveQuery

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """应用上下文"""
    store: RowStoreClient
    bus: ChangeBus
    users: UserRepository
    projects: ProjectRepository
    domains: DomainRepository
    requirements: RequirementRepository
    test_cases: TestCaseRepository
    data_bags: DataBagRepository
    specs: GeneratedSpecRepository
    board: BoardRepository
    tracker: TrackerRepository

    @classmethod
    def build(cls, store: RowStoreClient, bus: Optional[ChangeBus] = None) -> "AppContext":
        bus = bus or ChangeBus()
        return cls(
            store=store,
            bus=bus,
            users=UserRepository(store, bus),
            projects=ProjectRepository(store, bus),
            domains=DomainRepository(store, bus),
            requirements=RequirementRepository(store, bus),
            test_cases=TestCaseRepository(store, bus),
            data_bags=DataBagRepository(store, bus),
            specs=GeneratedSpecRepository(store, bus),
            board=BoardRepository(store, bus),
            tracker=TrackerRepository(store, bus),
        )

    @classmethod
    def from_settings(cls, settings) -> "AppContext":
        return cls.build(create_row_store(settings))

    async def initialize(self) -> None:
        """建表与迁移"""
        await initialize(self.store)

    def live_query(self, query_fn, deps: Sequence[Any] = (), **kwargs) -> LiveQuery:
        """创建绑定到本上下文变更总线的响应式查询"""
        return LiveQuery(query_fn, deps, bus=self.bus, **kwargs)

    async def close(self) -> None:
        await self.store.close()
        logger.info("行存储连接已关闭")
