"""AgenticOS - Board API Routes

Friday 看板与 Tracker 跟踪表 API 路由
"""
from fastapi import APIRouter, Depends

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.board_schemas import (
    BoardItemCreate,
    BoardItemRecord,
    BoardItemUpdate,
    BoardMoveRequest,
    TrackerItemCreate,
    TrackerItemRecord,
    TrackerItemUpdate,
    TrackerMoveRequest,
)
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.project_schemas import ProjectRecord

router = APIRouter(prefix="/projects/{project_id}", tags=["board"])


# ============================================================
# Friday 看板
# ============================================================

@router.post("/board", response_model=CreatedResponse, status_code=201)
async def create_board_item(
    req: BoardItemCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建看板条目（追加到泳道末尾）"""
    return CreatedResponse(id=await context.board.create(project.id, req))


@router.get("/board", response_model=list[BoardItemRecord])
async def list_board_items(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """看板条目（按泳道、位置排序）"""
    return await context.board.list(project.id)


@router.get("/board/lanes", response_model=dict[str, list[BoardItemRecord]])
async def board_lanes(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """按泳道分组的看板"""
    return await context.board.list_by_lane(project.id)


@router.put("/board/{item_id}", response_model=BoardItemRecord)
async def update_board_item(
    item_id: int,
    req: BoardItemUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新看板条目"""
    await context.board.update(item_id, req, project.id)
    return await context.board.require(item_id, project.id)


@router.post("/board/{item_id}/move", response_model=BoardItemRecord)
async def move_board_item(
    item_id: int,
    req: BoardMoveRequest,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """移动到其他泳道末尾"""
    await context.board.move(item_id, req.swimlane, project.id)
    return await context.board.require(item_id, project.id)


@router.delete("/board/{item_id}", status_code=204)
async def delete_board_item(
    item_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除看板条目"""
    await context.board.delete(item_id, project.id)
    return None


# ============================================================
# Tracker
# ============================================================

@router.post("/tracker", response_model=CreatedResponse, status_code=201)
async def create_tracker_item(
    req: TrackerItemCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建跟踪条目"""
    return CreatedResponse(id=await context.tracker.create(project.id, req))


@router.get("/tracker", response_model=list[TrackerItemRecord])
async def list_tracker_items(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """跟踪条目（按位置排序）"""
    return await context.tracker.list(project.id)


@router.put("/tracker/{item_id}", response_model=TrackerItemRecord)
async def update_tracker_item(
    item_id: int,
    req: TrackerItemUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新跟踪条目"""
    await context.tracker.update(item_id, req, project.id)
    return await context.tracker.require(item_id, project.id)


@router.post("/tracker/{item_id}/move", response_model=list[TrackerItemRecord])
async def move_tracker_item(
    item_id: int,
    req: TrackerMoveRequest,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """调整顺序，返回重新编号后的列表"""
    await context.tracker.move(item_id, req.position, project.id)
    return await context.tracker.list(project.id)


@router.delete("/tracker/{item_id}", status_code=204)
async def delete_tracker_item(
    item_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除跟踪条目"""
    await context.tracker.delete(item_id, project.id)
    return None
