"""AgenticOS - Domain API Routes

领域定义 API 路由，以及 Gherkin 步骤的 @Domain.attribute 补全
"""
from fastapi import APIRouter, Depends, Query

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.domain_schemas import DomainCreate, DomainRecord, DomainUpdate
from agenticos.models.project_schemas import ProjectRecord
from agenticos.services.autocomplete import Suggestion, suggest

router = APIRouter(prefix="/projects/{project_id}", tags=["domains"])


@router.post("/domains", response_model=CreatedResponse, status_code=201)
async def create_domain(
    req: DomainCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建领域"""
    return CreatedResponse(id=await context.domains.create(project.id, req))


@router.get("/domains", response_model=list[DomainRecord])
async def list_domains(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """领域列表"""
    return await context.domains.list(project.id)


@router.get("/domains/{domain_id}", response_model=DomainRecord)
async def get_domain(
    domain_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """领域详情"""
    return await context.domains.require(domain_id, project.id)


@router.put("/domains/{domain_id}", response_model=DomainRecord)
async def update_domain(
    domain_id: int,
    req: DomainUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新领域"""
    await context.domains.update(domain_id, req, project.id)
    return await context.domains.require(domain_id, project.id)


@router.delete("/domains/{domain_id}", status_code=204)
async def delete_domain(
    domain_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除领域"""
    await context.domains.delete(domain_id, project.id)
    return None


@router.get("/autocomplete", response_model=list[Suggestion])
async def autocomplete(
    text: str = Query(""),
    cursor: int | None = Query(None, ge=0, description="光标位置，默认文本末尾"),
    limit: int = Query(8, ge=1, le=50),
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """@Domain.attribute 补全候选"""
    domains = await context.domains.list(project.id)
    position = len(text) if cursor is None else min(cursor, len(text))
    return suggest(text, position, domains, limit=limit)
