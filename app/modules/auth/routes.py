from fastapi import APIRouter, Depends
from app.modules.auth.schemas import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.auth.service import AuthService
from app.core.dependencies import get_access_token, get_auth_service, get_current_profile
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Sign up; the username is claimed right away unless email confirmation is pending"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.login(login_data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    refresh_data: RefreshRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.refresh(refresh_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Signed out"}


@router.get("/me")
async def whoami(
    current_user: Dict = Depends(get_current_profile),
):
    """Caller identity; creates their profile on first call"""
    return current_user
