"""AgenticOS - 认证相关路由

注册、登录与当前用户
"""
from fastapi import APIRouter, Depends

from agenticos.api.deps.auth_deps import get_context, get_current_user
from agenticos.core.context import AppContext
from agenticos.models.user_schemas import TokenResponse, UserCreate, UserLogin, UserRecord
from agenticos.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(
    req: UserCreate,
    context: AppContext = Depends(get_context),
):
    """注册并直接登录"""
    user = await context.users.create(req)
    return TokenResponse(access_token=AuthService.create_access_token(user), user=user)


@router.post("/login", response_model=TokenResponse)
async def login(
    req: UserLogin,
    context: AppContext = Depends(get_context),
):
    """邮箱密码登录"""
    user = await context.users.authenticate(req.email, req.password)
    return TokenResponse(access_token=AuthService.create_access_token(user), user=user)


@router.get("/me", response_model=UserRecord)
async def me(current_user: UserRecord = Depends(get_current_user)):
    """当前用户"""
    return current_user
