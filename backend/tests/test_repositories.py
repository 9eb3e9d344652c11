"""实体仓储测试"""

import pytest
import pytest_asyncio

from agenticos.models.board_schemas import (
    BoardItemCreate,
    BoardItemUpdate,
    Swimlane,
    TrackerItemCreate,
)
from agenticos.models.data_bag_schemas import DataBagCreate, SchemaColumn
from agenticos.models.domain_schemas import AttributeType, DomainAttribute, DomainCreate, DomainUpdate
from agenticos.models.project_schemas import ProjectCreate, ProjectUpdate
from agenticos.models.requirement_schemas import Gherkin, RequirementCreate, RequirementUpdate
from agenticos.models.spec_schemas import GeneratedSpecCreate
from agenticos.models.testcase_schemas import TestCaseCreate, TestCaseUpdate, TestStep
from agenticos.models.user_schemas import UserCreate
from agenticos.repositories import NotFoundError


class TestProjectRepository:
    """项目仓储测试"""

    @pytest.mark.asyncio
    async def test_create_and_list_newest_first(self, context, user, recorder):
        first = await context.projects.create(user.id, ProjectCreate(name="A"))
        second = await context.projects.create(user.id, ProjectCreate(name="B"))

        projects = await context.projects.list(user.id)

        assert [p.id for p in projects] == [second, first]
        assert recorder.count == 2

    @pytest.mark.asyncio
    async def test_reads_do_not_publish(self, context, project_id, user, recorder):
        await context.projects.list(user.id)
        await context.projects.get(project_id, user.id)
        await context.requirements.list(project_id)

        assert recorder.count == 0

    @pytest.mark.asyncio
    async def test_projects_are_scoped_to_owner(self, context, project_id):
        other = await context.users.create(UserCreate(email="eve@example.com", name="Eve", password="secret1"))

        assert await context.projects.list(other.id) == []
        assert await context.projects.get(project_id, other.id) is None
        with pytest.raises(NotFoundError, match="Project not found or access denied"):
            await context.projects.delete(project_id, other.id)
        with pytest.raises(NotFoundError):
            await context.projects.update(project_id, other.id, ProjectUpdate(name="Hijacked"))

    @pytest.mark.asyncio
    async def test_update_touches_updated_at(self, context, project_id, user):
        before = await context.projects.get(project_id, user.id)

        await context.projects.update(project_id, user.id, ProjectUpdate(name="Renamed", description="d"))

        after = await context.projects.get(project_id, user.id)
        assert after.name == "Renamed"
        assert after.created_at == before.created_at
        assert after.updated_at >= before.updated_at

    @pytest.mark.asyncio
    async def test_delete_cascades_to_children(self, context, project_id, user, recorder):
        req_id = await context.requirements.create(project_id, RequirementCreate(title="R"))
        await context.domains.create(project_id, DomainCreate(name="User"))
        await context.test_cases.create(project_id, TestCaseCreate(name="TC", requirement_id=req_id))
        await context.data_bags.create(project_id, DataBagCreate(name="bag"))
        await context.specs.create(project_id, GeneratedSpecCreate(content="spec"))
        await context.board.create(project_id, BoardItemCreate(title="card"))
        await context.tracker.create(project_id, TrackerItemCreate(title="track"))
        other_project = await context.projects.create(user.id, ProjectCreate(name="Other"))
        await context.requirements.create(other_project, RequirementCreate(title="Survivor"))
        recorder.count = 0

        await context.projects.delete(project_id, user.id)

        assert recorder.count == 1
        assert await context.projects.get(project_id, user.id) is None
        for table in ("domains", "requirements", "test_cases", "data_bags",
                      "generated_specs", "friday_items", "tracker_items"):
            result = await context.store.execute(f"SELECT COUNT(*) AS cnt FROM {table} WHERE project_id = ?", [project_id])
            assert result.rows[0]["cnt"] == 0, table
        assert [r.title for r in await context.requirements.list(other_project)] == ["Survivor"]

    @pytest.mark.asyncio
    async def test_summaries_include_requirement_counts(self, context, project_id, user):
        empty = await context.projects.create(user.id, ProjectCreate(name="Empty"))
        await context.requirements.create(project_id, RequirementCreate(title="R1"))
        await context.requirements.create(project_id, RequirementCreate(title="R2"))

        summaries = {s.id: s.requirement_count for s in await context.projects.list_summaries(user.id)}

        assert summaries == {project_id: 2, empty: 0}


class TestDomainRepository:
    """领域仓储测试"""

    @pytest.mark.asyncio
    async def test_attributes_round_trip(self, context, project_id):
        attrs = [
            DomainAttribute(name="email", type=AttributeType.EMAIL, required=True, description="login"),
            DomainAttribute(name="age", type=AttributeType.NUMBER),
        ]
        domain_id = await context.domains.create(project_id, DomainCreate(name="User", attributes=attrs))

        domain = await context.domains.get(domain_id)

        assert domain.attributes == attrs

    @pytest.mark.asyncio
    async def test_malformed_attributes_decode_to_empty(self, context, project_id):
        await context.store.execute(
            "INSERT INTO domains (project_id, name, attributes, created_at) VALUES (?, ?, ?, ?)",
            [project_id, "Broken", "{not json", 1],
        )

        domains = await context.domains.list(project_id)

        assert domains[0].name == "Broken"
        assert domains[0].attributes == []

    @pytest.mark.asyncio
    async def test_list_orders_by_created_at_then_id(self, context, project_id):
        for name in ("b", "a"):
            await context.store.execute(
                "INSERT INTO domains (project_id, name, attributes, created_at) VALUES (?, ?, '[]', ?)",
                [project_id, name, 100],
            )

        assert [d.name for d in await context.domains.list(project_id)] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, context, project_id, recorder):
        with pytest.raises(NotFoundError):
            await context.domains.update(999, DomainUpdate(name="x"))
        assert recorder.count == 0

    @pytest.mark.asyncio
    async def test_project_scope(self, context, project_id, user):
        other = await context.projects.create(user.id, ProjectCreate(name="Other"))
        domain_id = await context.domains.create(project_id, DomainCreate(name="User"))

        assert await context.domains.get(domain_id, other) is None
        with pytest.raises(NotFoundError):
            await context.domains.delete(domain_id, other)


class TestRequirementRepository:
    """需求仓储测试"""

    @pytest.mark.asyncio
    async def test_gherkin_round_trip(self, context, project_id):
        gherkin = Gherkin(given=["a user @User.email"], when=["they log in"], then=["they see home", "a toast"])
        bags = [await context.data_bags.create(project_id, DataBagCreate(name=n)) for n in ("a", "b")]
        req_id = await context.requirements.create(
            project_id, RequirementCreate(title="Login", gherkin=gherkin, data_bag_ids=bags)
        )

        req = await context.requirements.get(req_id)

        assert req.gherkin == gherkin
        assert req.data_bag_ids == bags
        assert req.created_at == req.updated_at

    @pytest.mark.asyncio
    async def test_null_gherkin_decodes_to_empty_clauses(self, context, project_id):
        await context.store.execute(
            "INSERT INTO requirements (project_id, title, gherkin, data_bag_ids, status, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [project_id, "Legacy", "[]", "oops", "weird", 1, 1],
        )

        req = (await context.requirements.list(project_id))[0]

        assert req.gherkin == Gherkin()
        assert req.data_bag_ids == []

    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, context, project_id):
        req_id = await context.requirements.create(project_id, RequirementCreate(title="Old"))

        await context.requirements.update(req_id, RequirementUpdate(title="New", status="approved"))

        req = await context.requirements.get(req_id)
        assert req.title == "New"
        assert req.status.value == "approved"

    @pytest.mark.asyncio
    async def test_delete_cascades_only_linked_test_cases(self, context, project_id, recorder):
        doomed = await context.requirements.create(project_id, RequirementCreate(title="Doomed"))
        kept = await context.requirements.create(project_id, RequirementCreate(title="Kept"))
        await context.test_cases.create(project_id, TestCaseCreate(name="a", requirement_id=doomed))
        await context.test_cases.create(project_id, TestCaseCreate(name="b", requirement_id=doomed))
        await context.test_cases.create(project_id, TestCaseCreate(name="c", requirement_id=kept))
        await context.test_cases.create(project_id, TestCaseCreate(name="d"))
        recorder.count = 0

        await context.requirements.delete(doomed)

        assert recorder.count == 1
        assert [tc.name for tc in await context.test_cases.list(project_id)] == ["c", "d"]

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, context):
        with pytest.raises(NotFoundError):
            await context.requirements.delete(12345)


class TestTestCaseAndDataBagRepositories:
    """测试用例与数据包仓储测试"""

    @pytest.mark.asyncio
    async def test_zero_link_ids_are_kept(self, context, project_id):
        await context.store.execute(
            "INSERT INTO test_cases (project_id, requirement_id, name, steps, status, data_bag_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [project_id, 0, "legacy", "[]", "pending", None, 1],
        )

        tc = (await context.test_cases.list(project_id))[0]

        assert tc.requirement_id == 0
        assert tc.data_bag_id is None

    @pytest.mark.asyncio
    async def test_steps_round_trip(self, context, project_id):
        steps = [TestStep(type="action", description="click"), TestStep(type="assertion", expected="ok")]
        tc_id = await context.test_cases.create(project_id, TestCaseCreate(name="TC", steps=steps))

        tc = await context.test_cases.get(tc_id)

        assert tc.steps == steps
        assert tc.requirement_id is None

    @pytest.mark.asyncio
    async def test_data_bag_round_trip(self, context, project_id):
        bag = DataBagCreate(
            name="users",
            records=[{"email": "a@x.io", "age": 30}],
            schema_def=[SchemaColumn(name="email", type="string"), SchemaColumn(name="age", type="number")],
        )
        bag_id = await context.data_bags.create(project_id, bag)

        stored = await context.data_bags.get(bag_id)

        assert stored.records == [{"email": "a@x.io", "age": 30}]
        assert [c.name for c in stored.schema_def] == ["email", "age"]

    @pytest.mark.asyncio
    async def test_generated_specs_newest_first(self, context, project_id):
        first = await context.specs.create(project_id, GeneratedSpecCreate(content="one", spec_type="bdd"))
        second = await context.specs.create(project_id, GeneratedSpecCreate(content="two", spec_type="api"))

        assert [s.id for s in await context.specs.list(project_id)] == [second, first]


class TestBoardRepository:
    """看板仓储测试"""

    @pytest.mark.asyncio
    async def test_create_appends_to_lane(self, context, project_id):
        ids = [await context.board.create(project_id, BoardItemCreate(title=f"b{i}")) for i in range(3)]
        week = await context.board.create(project_id, BoardItemCreate(title="w", swimlane=Swimlane.THIS_WEEK))

        items = {item.id: item for item in await context.board.list(project_id)}

        assert [items[i].position for i in ids] == [0, 1, 2]
        assert items[week].position == 0

    @pytest.mark.asyncio
    async def test_move_appends_to_target_lane(self, context, project_id):
        ids = [await context.board.create(project_id, BoardItemCreate(title=f"b{i}")) for i in range(3)]

        assert await context.board.move(ids[2], Swimlane.DONE) == 0
        assert await context.board.move(ids[0], Swimlane.DONE) == 1

        moved = await context.board.get(ids[0])
        assert moved.swimlane == Swimlane.DONE
        assert moved.position == 1

    @pytest.mark.asyncio
    async def test_delete_leaves_gaps(self, context, project_id):
        ids = [await context.board.create(project_id, BoardItemCreate(title=f"b{i}")) for i in range(3)]
        await context.board.delete(ids[1])

        positions = [item.position for item in await context.board.list(project_id)]
        assert positions == [0, 2]

        new_id = await context.board.create(project_id, BoardItemCreate(title="new"))
        assert (await context.board.get(new_id)).position == 2

    @pytest.mark.asyncio
    async def test_list_orders_by_lane_then_position(self, context, project_id):
        await context.board.create(project_id, BoardItemCreate(title="done", swimlane=Swimlane.DONE))
        await context.board.create(project_id, BoardItemCreate(title="next", swimlane=Swimlane.NEXT_WEEK))
        await context.board.create(project_id, BoardItemCreate(title="back", swimlane=Swimlane.BACKLOG))

        titles = [item.title for item in await context.board.list(project_id)]
        lanes = await context.board.list_by_lane(project_id)

        assert titles == ["back", "next", "done"]
        assert list(lanes) == ["backlog", "this_week", "next_week", "done"]
        assert lanes["this_week"] == []

    @pytest.mark.asyncio
    async def test_update_and_missing(self, context, project_id):
        item_id = await context.board.create(project_id, BoardItemCreate(title="t"))
        await context.board.update(item_id, BoardItemUpdate(title="t2", priority="critical", position=5))

        item = await context.board.get(item_id)
        assert item.title == "t2"
        assert item.priority.value == "critical"
        assert item.position == 5

        with pytest.raises(NotFoundError):
            await context.board.move(999, Swimlane.DONE)


class TestTrackerRepository:
    """Tracker 仓储测试"""

    @pytest.mark.asyncio
    async def test_create_position_is_project_count(self, context, project_id):
        ids = [await context.tracker.create(project_id, TrackerItemCreate(title=f"t{i}")) for i in range(3)]

        items = await context.tracker.list(project_id)

        assert [i.id for i in items] == ids
        assert [i.position for i in items] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_move_reorders(self, context, project_id, recorder):
        ids = [await context.tracker.create(project_id, TrackerItemCreate(title=f"t{i}")) for i in range(3)]
        recorder.count = 0

        assert await context.tracker.move(ids[2], 0) == 0

        items = await context.tracker.list(project_id)
        assert [i.id for i in items] == [ids[2], ids[0], ids[1]]
        assert [i.position for i in items] == [0, 1, 2]
        assert recorder.count == 1

    @pytest.mark.asyncio
    async def test_move_clamps_position(self, context, project_id):
        ids = [await context.tracker.create(project_id, TrackerItemCreate(title=f"t{i}")) for i in range(2)]

        assert await context.tracker.move(ids[0], 99) == 1
        assert [i.id for i in await context.tracker.list(project_id)] == [ids[1], ids[0]]


class TestCrossProjectLinks:
    """跨项目关联校验"""

    @pytest_asyncio.fixture
    async def other_project(self, context, user):
        return await context.projects.create(user.id, ProjectCreate(name="Other"))

    @pytest.mark.asyncio
    async def test_test_case_rejects_foreign_links(self, context, project_id, other_project, recorder):
        foreign_req = await context.requirements.create(other_project, RequirementCreate(title="R"))
        foreign_bag = await context.data_bags.create(other_project, DataBagCreate(name="B"))
        recorder.count = 0

        with pytest.raises(NotFoundError):
            await context.test_cases.create(project_id, TestCaseCreate(name="x", requirement_id=foreign_req))
        with pytest.raises(NotFoundError):
            await context.test_cases.create(project_id, TestCaseCreate(name="x", data_bag_id=foreign_bag))

        assert recorder.count == 0
        assert await context.test_cases.list(project_id) == []

    @pytest.mark.asyncio
    async def test_test_case_update_rejects_foreign_requirement(self, context, project_id, other_project):
        foreign_req = await context.requirements.create(other_project, RequirementCreate(title="R"))
        tc_id = await context.test_cases.create(project_id, TestCaseCreate(name="x"))

        with pytest.raises(NotFoundError):
            await context.test_cases.update(tc_id, TestCaseUpdate(name="x", requirement_id=foreign_req), project_id)

        assert (await context.test_cases.get(tc_id)).requirement_id is None

    @pytest.mark.asyncio
    async def test_requirement_rejects_foreign_data_bags(self, context, project_id, other_project):
        own_bag = await context.data_bags.create(project_id, DataBagCreate(name="mine"))
        foreign_bag = await context.data_bags.create(other_project, DataBagCreate(name="theirs"))

        with pytest.raises(NotFoundError):
            await context.requirements.create(
                project_id, RequirementCreate(title="R", data_bag_ids=[own_bag, foreign_bag])
            )

        req_id = await context.requirements.create(project_id, RequirementCreate(title="R", data_bag_ids=[own_bag]))
        with pytest.raises(NotFoundError):
            await context.requirements.update(req_id, RequirementUpdate(title="R", data_bag_ids=[foreign_bag]))

    @pytest.mark.asyncio
    async def test_board_item_rejects_foreign_requirement(self, context, project_id, other_project):
        foreign_req = await context.requirements.create(other_project, RequirementCreate(title="R"))

        with pytest.raises(NotFoundError):
            await context.board.create(project_id, BoardItemCreate(title="b", requirement_id=foreign_req))

    @pytest.mark.asyncio
    async def test_requirement_views_stay_in_project(self, context, project_id, other_project):
        req_id = await context.requirements.create(project_id, RequirementCreate(title="R"))
        await context.test_cases.create(project_id, TestCaseCreate(name="own", requirement_id=req_id))
        # 绕过仓储校验写入的历史脏数据
        await context.store.execute(
            "INSERT INTO test_cases (project_id, requirement_id, name, steps, status, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [other_project, req_id, "stray", "[]", "pending", 1],
        )

        assert [tc.name for tc in await context.test_cases.list_for_requirement(req_id, project_id)] == ["own"]

        await context.requirements.delete(req_id, project_id)

        assert [tc.name for tc in await context.test_cases.list(other_project)] == ["stray"]
