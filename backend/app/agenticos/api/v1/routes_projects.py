"""AgenticOS - Project API Routes

项目管理 API 路由（只能访问自己的项目）
"""
from fastapi import APIRouter, Depends

from agenticos.api.deps.auth_deps import get_context, get_current_user, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.project_schemas import (
    ProjectCreate,
    ProjectRecord,
    ProjectSummary,
    ProjectUpdate,
)
from agenticos.models.user_schemas import UserRecord

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_project(
    req: ProjectCreate,
    current_user: UserRecord = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """创建项目"""
    project_id = await context.projects.create(current_user.id, req)
    return CreatedResponse(id=project_id)


@router.get("", response_model=list[ProjectSummary])
async def list_projects(
    current_user: UserRecord = Depends(get_current_user),
    context: AppContext = Depends(get_context),
):
    """项目列表（新建在前，含需求数量）"""
    return await context.projects.list_summaries(current_user.id)


@router.get("/{project_id}", response_model=ProjectRecord)
async def get_project(project: ProjectRecord = Depends(get_owned_project)):
    """项目详情"""
    return project


@router.put("/{project_id}", response_model=ProjectRecord)
async def update_project(
    req: ProjectUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新项目"""
    await context.projects.update(project.id, project.user_id, req)
    return await context.projects.require(project.id, project.user_id)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除项目及其全部数据"""
    await context.projects.delete(project.id, project.user_id)
    return None
