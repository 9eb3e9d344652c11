"""AgenticOS - FastAPI 应用入口

启动时建表、迁移并写入演示用户，任一步失败则启动失败。
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agenticos.api.v1.routes import router as v1_router
from agenticos.core.config import settings
from agenticos.core.context import AppContext
from agenticos.database.client import RowStoreError
from agenticos.logging_config import setup_logging
from agenticos.repositories.base import AuthenticationError, DuplicateError, NotFoundError
from agenticos.services.ai_service import AIServiceError, GenerationPreconditionError
from agenticos.services.data_import import DataImportError
from agenticos.services.startup_seeds import run_startup_seeds

logger = logging.getLogger(__name__)

# 领域异常 -> HTTP 状态码（按顺序匹配，子类在前）
ERROR_STATUS = [
    (NotFoundError, 404),
    (DuplicateError, 409),
    (AuthenticationError, 401),
    (GenerationPreconditionError, 400),
    (DataImportError, 400),
    (AIServiceError, 502),
    (RowStoreError, 503),
]


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} 失败: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """创建应用（测试时可传入预先构建的上下文）"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        ctx = context or AppContext.from_settings(settings)
        try:
            await ctx.initialize()
            await run_startup_seeds(ctx, seed_demo_user=settings.SEED_DEMO_USER)
        except Exception:
            logger.exception("启动失败：数据库初始化错误")
            await ctx.close()
            raise
        app.state.context = ctx
        logger.info("AgenticOS 启动完成")
        yield
        await ctx.close()

    app = FastAPI(title="AgenticOS", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for exc_class, status_code in ERROR_STATUS:
        app.add_exception_handler(exc_class, _error_handler(status_code))
    app.include_router(v1_router)

    @app.get("/healthz", include_in_schema=False)
    def healthz():
        return {"ok": True}

    return app


app = create_app()
