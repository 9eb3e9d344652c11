"""AgenticOS - 认证依赖

提供 get_context、get_current_user 和项目归属检查依赖
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from agenticos.core.context import AppContext
from agenticos.models.project_schemas import ProjectRecord
from agenticos.models.user_schemas import UserRecord
from agenticos.repositories.project_repository import PROJECT_NOT_FOUND
from agenticos.services.auth_service import AuthService


def get_context(request: Request) -> AppContext:
    """应用上下文（lifespan 中创建）"""
    return request.app.state.context


async def get_current_user(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    context: AppContext = Depends(get_context),
) -> UserRecord:
    """从 Authorization header 解析当前用户

    Raises:
        HTTPException: 401 如果认证失败
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="未提供认证信息",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 提取 token（处理多余空格）
    token = authorization.removeprefix("Bearer ").strip()
    user_id = AuthService.user_id_from_token(token) if token else None
    user = await context.users.get(user_id) if user_id is not None else None

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效或过期的认证信息",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_owned_project(
    project_id: int,
    current_user: UserRecord = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> ProjectRecord:
    """路径中的项目必须属于当前用户，否则 404"""
    project = await context.projects.get(project_id, current_user.id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PROJECT_NOT_FOUND)
    return project
