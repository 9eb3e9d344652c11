"""AgenticOS - Data Bag API Routes

测试数据包 API 路由（含 CSV / JSON 导入与 CSV 导出）
"""
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.data_bag_schemas import (
    DataBagCreate,
    DataBagImportRequest,
    DataBagRecord,
    DataBagUpdate,
)
from agenticos.models.project_schemas import ProjectRecord
from agenticos.services.data_import import export_csv, parse_import

router = APIRouter(prefix="/projects/{project_id}/data-bags", tags=["data-bags"])


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_data_bag(
    req: DataBagCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建数据包"""
    return CreatedResponse(id=await context.data_bags.create(project.id, req))


@router.post("/import", response_model=CreatedResponse, status_code=201)
async def import_data_bag(
    req: DataBagImportRequest,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """从 CSV / JSON 文本导入数据包"""
    schema, records = parse_import(req.content, req.filename)
    bag = DataBagCreate(name=req.name, description=req.description, records=records, schema_def=schema)
    return CreatedResponse(id=await context.data_bags.create(project.id, bag))


@router.get("", response_model=list[DataBagRecord])
async def list_data_bags(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """数据包列表"""
    return await context.data_bags.list(project.id)


@router.get("/{data_bag_id}", response_model=DataBagRecord)
async def get_data_bag(
    data_bag_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """数据包详情"""
    return await context.data_bags.require(data_bag_id, project.id)


@router.get("/{data_bag_id}/export", response_class=PlainTextResponse)
async def export_data_bag(
    data_bag_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """导出为 CSV"""
    bag = await context.data_bags.require(data_bag_id, project.id)
    return PlainTextResponse(
        export_csv(bag),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(bag.name)}.csv"},
    )


@router.put("/{data_bag_id}", response_model=DataBagRecord)
async def update_data_bag(
    data_bag_id: int,
    req: DataBagUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新数据包"""
    await context.data_bags.update(data_bag_id, req, project.id)
    return await context.data_bags.require(data_bag_id, project.id)


@router.delete("/{data_bag_id}", status_code=204)
async def delete_data_bag(
    data_bag_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除数据包"""
    await context.data_bags.delete(data_bag_id, project.id)
    return None
