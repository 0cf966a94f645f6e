from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.config import settings
from clinic.core.db import get_session
from clinic.core.security import get_current_admin, Principal
from clinic.modules.auth.schemas import (
    LoginRequest, LoginResponse, AdminOut, ForgotPasswordRequest, ResetPasswordRequest, MessageOut, SetupOut,
)
from clinic.modules.auth.service import AuthService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)

@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, response: Response, service: AuthService = Depends(svc)):
    user, token = await service.authenticate(payload.username, payload.password)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    return {"success": True, "user": user}

@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"success": True}

@router.get("/me", response_model=AdminOut)
async def me(principal: Principal = Depends(get_current_admin), service: AuthService = Depends(svc)):
    return await service.get(principal.user_id)

@router.post("/forgot-password", response_model=MessageOut)
async def forgot_password(payload: ForgotPasswordRequest, service: AuthService = Depends(svc)):
    await service.request_password_reset(payload.email)
    # same answer whether or not the account exists
    return {"success": True, "message": "If an account with that email exists, a password reset link has been sent."}

@router.get("/reset-password")
async def check_reset_token(token: str = "", service: AuthService = Depends(svc)):
    email = service.check_reset_token(token)
    return {"success": True, "email": email}

@router.post("/reset-password", response_model=MessageOut)
async def reset_password(payload: ResetPasswordRequest, service: AuthService = Depends(svc)):
    await service.reset_password(payload.token, payload.password)
    return {"success": True, "message": "Password has been reset successfully"}

@router.post("/setup", response_model=SetupOut)
async def setup(service: AuthService = Depends(svc)):
    user, created = await service.setup_default_admin()
    if not created:
        return {"message": "Admin user already exists", "already_exists": True, "user": user}
    return {"message": "Admin user created", "already_exists": False, "user": user}
