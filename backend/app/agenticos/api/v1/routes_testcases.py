"""AgenticOS - TestCase API Routes

测试用例 API 路由
"""
from fastapi import APIRouter, Depends

from agenticos.api.deps.auth_deps import get_context, get_owned_project
from agenticos.core.context import AppContext
from agenticos.models.common_schemas import CreatedResponse
from agenticos.models.project_schemas import ProjectRecord
from agenticos.models.testcase_schemas import TestCaseCreate, TestCaseRecord, TestCaseUpdate

router = APIRouter(prefix="/projects/{project_id}/testcases", tags=["testcases"])


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_testcase(
    req: TestCaseCreate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """创建测试用例"""
    return CreatedResponse(id=await context.test_cases.create(project.id, req))


@router.get("", response_model=list[TestCaseRecord])
async def list_testcases(
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """测试用例列表"""
    return await context.test_cases.list(project.id)


@router.get("/{testcase_id}", response_model=TestCaseRecord)
async def get_testcase(
    testcase_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """测试用例详情"""
    return await context.test_cases.require(testcase_id, project.id)


@router.put("/{testcase_id}", response_model=TestCaseRecord)
async def update_testcase(
    testcase_id: int,
    req: TestCaseUpdate,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """更新测试用例"""
    await context.test_cases.update(testcase_id, req, project.id)
    return await context.test_cases.require(testcase_id, project.id)


@router.delete("/{testcase_id}", status_code=204)
async def delete_testcase(
    testcase_id: int,
    project: ProjectRecord = Depends(get_owned_project),
    context: AppContext = Depends(get_context),
):
    """删除测试用例"""
    await context.test_cases.delete(testcase_id, project.id)
    return None
