from fastapi import APIRouter

from agenticos.api.v1.routes_auth import router as auth_router
from agenticos.api.v1.routes_board import router as board_router
from agenticos.api.v1.routes_data_bags import router as data_bags_router
from agenticos.api.v1.routes_domains import router as domains_router
from agenticos.api.v1.routes_projects import router as projects_router
from agenticos.api.v1.routes_requirements import router as requirements_router
from agenticos.api.v1.routes_specs import catalog_router as spec_catalog_router
from agenticos.api.v1.routes_specs import router as specs_router
from agenticos.api.v1.routes_testcases import router as testcases_router
from agenticos.api.v1.routes_websocket import router as websocket_router

# v1 统一入口：所有 v1 API 都从 /api/v1 开始
router = APIRouter(prefix="/api/v1")

router.include_router(auth_router)
router.include_router(projects_router)
router.include_router(domains_router)
router.include_router(requirements_router)
router.include_router(testcases_router)
router.include_router(data_bags_router)
router.include_router(specs_router)
router.include_router(spec_catalog_router)
router.include_router(board_router)
router.include_router(websocket_router)
