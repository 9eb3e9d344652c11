"""AgenticOS - Spec API Routes

规格文档生成、列表与下载
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.project_schemas import ProjectRecord
from agenticos.models.spec_schemas import GeneratedSpecRecord, SpecGenerateRequest
from agenticos.services.ai_service import (
    CLAUDE_MODELS,
    SPEC_TYPES,
    AIServiceError,
    SpecGenerator,
    spec_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects/{project_id}/specs", tags=["specs"])
catalog_router = APIRouter(prefix="/specs", tags=["specs"])


def get_spec_generator(context: AppContext = Depends(get_context)) -> SpecGenerator:
    return SpecGenerator(context)


@catalog_router.get("/catalog")
async def spec_catalog():
    """可选模型与规格类型"""
    return {
        "models": CLAUDE_MODELS,
        "types": [
            {"id": kind.value, "label": info.label, "description": info.description}
            for kind, info in SPEC_TYPES.items()
        ],
    }


@router.post("/generate")
async def generate_spec(
    req: SpecGenerateRequest,
    project: ProjectRecord = Depends(get_owned_project),
    generator: SpecGenerator = Depends(get_spec_generator),
):
    """流式生成规格文档（text/plain），结束后自动保存"""
    if req.api_key:
        generator.api_key = req.api_key
    prompt = await generator.prepare(project.id, project.user_id, req.spec_type)
    chunks = generator.stream_and_save(project.id, prompt, req.spec_type, req.model)

    # 先取第一个片段，连接/认证类错误仍能以错误状态码返回
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = ""

    async def body():
        if first:
            yield first
        try:
            async for text in chunks:
                yield text
        except AIServiceError as e:
            logger.error(f"规格生成中断: project_id={project.id}, error={e}")

    return StreamingResponse(body(), media_type="text/plain; charset=utf-8")


@router.get("", response_model=list[GeneratedSpecRecord])
async def list_specs(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """已生成的规格文档（新的在前）"""
    return await context.specs.list(project.id)


@router.get("/{spec_id}", response_model=GeneratedSpecRecord)
async def get_spec(
    spec_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """规格文档详情"""
    return await context.specs.require(spec_id, project.id)


@router.get("/{spec_id}/download")
async def download_spec(
    spec_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """下载规格文档"""
    spec = await context.specs.require(spec_id, project.id)
    if not spec.content:
        raise HTTPException(status_code=404, detail="Spec has no content")
    return Response(
        content=spec.content,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{spec_filename(spec)}"'},
    )


@router.delete("/{spec_id}", status_code=204)
async def delete_spec(
    spec_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除规格文档"""
    await context.specs.delete(spec_id, project.id)
    return None
