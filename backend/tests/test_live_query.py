"""响应式查询测试"""

import asyncio

import pytest

from agenticos.models.project_schemas import ProjectCreate
from agenticos.services.change_bus import ChangeBus
from agenticos.services.live_query import UNSET, LiveQuery


class TestLiveQuery:
    """LiveQuery 测试"""

    @pytest.mark.asyncio
    async def test_unset_until_first_result(self):
        """首次结果返回前为 UNSET"""
        gate = asyncio.Event()

        async def query():
            await gate.wait()
            return [1]

        live = LiveQuery(query, bus=ChangeBus()).start()
        await asyncio.sleep(0)
        assert live.value is UNSET
        assert not live.resolved
        assert live.loading

        gate.set()
        assert await live.settle() == [1]
        assert live.resolved
        await live.close()

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self):
        """先发起的慢查询晚返回时被丢弃"""
        slow_gate = asyncio.Event()

        async def slow():
            await slow_gate.wait()
            return "A"

        async def fast():
            return "B"

        changes = []
        live = LiveQuery(slow, deps=("a",), bus=ChangeBus(), on_change=changes.append).start()
        await asyncio.sleep(0)

        live.set_deps(("b",), query_fn=fast)
        await asyncio.sleep(0)
        slow_gate.set()
        await live.settle()

        assert live.value == "B"
        assert changes == ["B"]
        await live.close()

    @pytest.mark.asyncio
    async def test_failure_keeps_last_good_value(self):
        """查询失败保留上次成功的值并标记 error"""
        results = iter([["ok"], RuntimeError("store down"), ["ok", "again"]])

        async def query():
            item = next(results)
            if isinstance(item, Exception):
                raise item
            return item

        bus = ChangeBus()
        live = LiveQuery(query, bus=bus).start()
        await live.settle()
        assert live.value == ["ok"]

        bus.publish()
        await live.settle()
        assert live.value == ["ok"]
        assert isinstance(live.error, RuntimeError)

        bus.publish()
        await live.settle()
        assert live.value == ["ok", "again"]
        assert live.error is None
        await live.close()

    @pytest.mark.asyncio
    async def test_on_change_fires_on_every_success(self):
        """结果相同也会回调"""
        bus = ChangeBus()
        changes = []

        async def query():
            return 42

        live = LiveQuery(query, bus=bus, on_change=changes.append).start()
        await live.settle()
        bus.publish()
        await live.settle()

        assert changes == [42, 42]
        await live.close()

    @pytest.mark.asyncio
    async def test_same_deps_do_not_requery(self):
        """依赖未变化不重跑"""
        calls = []

        async def query():
            calls.append(1)
            return len(calls)

        live = LiveQuery(query, deps=(1, "x"), bus=ChangeBus()).start()
        await live.settle()

        assert live.set_deps([1, "x"]) is False
        assert live.set_deps([2, "x"]) is True
        await live.settle()

        assert calls == [1, 1]
        assert live.generation == 2
        await live.close()

    @pytest.mark.asyncio
    async def test_close_stops_refresh(self):
        """关闭后不再响应总线"""
        bus = ChangeBus()
        calls = []

        async def query():
            calls.append(1)
            return None

        async with LiveQuery(query, bus=bus) as live:
            await live.settle()

        bus.publish()
        await asyncio.sleep(0)

        assert calls == [1]
        assert bus.subscriber_count == 0
        with pytest.raises(RuntimeError):
            live.start()

    @pytest.mark.asyncio
    async def test_refreshes_after_repository_write(self, context, user):
        """仓储写入后自动刷新"""
        live = context.live_query(lambda: context.projects.list(user.id), deps=(user.id,)).start()
        assert await live.settle() == []

        await context.projects.create(user.id, ProjectCreate(name="P1"))
        projects = await live.settle()

        assert [p.name for p in projects] == ["P1"]
        await live.close()

    @pytest.mark.asyncio
    async def test_concurrent_writes_each_publish_once(self, context, user, recorder):
        """并发写入各发布一次，刷新后看到全部写入"""
        live = context.live_query(lambda: context.projects.list(user.id), deps=(user.id,)).start()
        assert await live.settle() == []
        recorder.count = 0

        await asyncio.gather(*(
            context.projects.create(user.id, ProjectCreate(name=f"P{i}")) for i in range(10)
        ))
        projects = await live.settle()

        assert recorder.count == 10
        assert sorted(p.name for p in projects) == sorted(f"P{i}" for i in range(10))
        await live.close()
