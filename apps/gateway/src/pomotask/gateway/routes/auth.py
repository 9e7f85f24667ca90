"""认证路由（仅 remote 模式）

POST /api/auth/sign-in: 登录，成功后加载该用户的偏好设置。
POST /api/auth/sign-up: 注册；需要邮箱验证时不返回会话。
POST /api/auth/sign-out: 放弃进行中的会话后登出。
POST /api/auth/reset-password: 发送找回密码邮件。
GET  /api/auth/me: 当前用户。
local 模式下返回 409 LOCAL_MODE。
"""

import structlog
from fastapi import APIRouter, Depends
from pomotask.core.exceptions import PomodoroError
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse, Response

from ..deps import get_auth, get_binding, get_engine
from ..errors import domain_error_response, error_response

log = structlog.get_logger()

router = APIRouter()


class CredentialsRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)


class SignUpRequest(CredentialsRequest):
    full_name: str | None = None


class ResetPasswordRequest(BaseModel):
    email: str = Field(min_length=3)
    redirect_to: str | None = None


class UserResponse(BaseModel):
    user_id: str
    email: str | None = None


def _local_mode() -> JSONResponse:
    return error_response(409, "LOCAL_MODE", "local 模式下不提供认证")


@router.post("/api/auth/sign-in", response_model=UserResponse)
async def sign_in(
    req: CredentialsRequest,
    auth=Depends(get_auth),
    binding=Depends(get_binding),
):
    if auth is None:
        return _local_mode()
    try:
        session = await auth.sign_in(req.email, req.password)
    except PomodoroError as e:
        return domain_error_response(e)

    try:
        await binding.load()
    except PomodoroError as e:
        # 偏好加载失败不影响登录，计时器沿用当前配置
        log.warning("preferences_load_failed", error=e.message)
    return UserResponse(user_id=session.user_id, email=session.email)


@router.post("/api/auth/sign-up", status_code=201)
async def sign_up(req: SignUpRequest, auth=Depends(get_auth)):
    if auth is None:
        return _local_mode()
    try:
        session = await auth.sign_up(req.email, req.password, req.full_name)
    except PomodoroError as e:
        return domain_error_response(e)
    return JSONResponse(
        status_code=201,
        content={
            "user_id": session.user_id if session else None,
            "pending_verification": session is None,
        },
    )


@router.post("/api/auth/sign-out", status_code=204)
async def sign_out(auth=Depends(get_auth), engine=Depends(get_engine)):
    if auth is None:
        return _local_mode()
    try:
        await engine.reset()
    except PomodoroError as e:
        log.warning("sign_out_reset_failed", error=e.message)
    try:
        await auth.sign_out()
    except PomodoroError as e:
        return domain_error_response(e)
    return Response(status_code=204)


@router.post("/api/auth/reset-password", status_code=202)
async def reset_password(req: ResetPasswordRequest, auth=Depends(get_auth)):
    if auth is None:
        return _local_mode()
    try:
        await auth.reset_password(req.email, req.redirect_to)
    except PomodoroError as e:
        return domain_error_response(e)
    return JSONResponse(status_code=202, content={"status": "sent"})


@router.get("/api/auth/me", response_model=UserResponse)
async def me(auth=Depends(get_auth)):
    if auth is None:
        return _local_mode()
    try:
        user_id = auth.require_user_id()
    except PomodoroError as e:
        return domain_error_response(e)
    return UserResponse(user_id=user_id, email=auth.session.email)
