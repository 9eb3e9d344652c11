"""AgenticOS - Requirement API Routes

需求管理 API 路由（删除需求会一并删除其测试用例）
"""
from fastapi import APIRouter, Depends

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.project_schemas import ProjectRecord
from agenticos.models.requirement_schemas import (
    RequirementCreate,
    RequirementRecord,
    RequirementUpdate,
)
from agenticos.models.testcase_schemas import TestCaseRecord

router = APIRouter(prefix="/projects/{project_id}/requirements", tags=["requirements"])


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_requirement(
    req: RequirementCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建需求"""
    return CreatedResponse(id=await context.requirements.create(project.id, req))


@router.get("", response_model=list[RequirementRecord])
async def list_requirements(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """需求列表（按创建时间）"""
    return await context.requirements.list(project.id)


@router.get("/{requirement_id}", response_model=RequirementRecord)
async def get_requirement(
    requirement_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """需求详情"""
    return await context.requirements.require(requirement_id, project.id)


@router.get("/{requirement_id}/testcases", response_model=list[TestCaseRecord])
async def list_requirement_testcases(
    requirement_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """需求关联的测试用例"""
    await context.requirements.require(requirement_id, project.id)
    return await context.test_cases.list_for_requirement(requirement_id, project.id)


@router.put("/{requirement_id}", response_model=RequirementRecord)
async def update_requirement(
    requirement_id: int,
    req: RequirementUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新需求"""
    await context.requirements.update(requirement_id, req, project.id)
    return await context.requirements.require(requirement_id, project.id)


@router.delete("/{requirement_id}", status_code=204)
async def delete_requirement(
    requirement_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除需求"""
    await context.requirements.delete(requirement_id, project.id)
    return None
