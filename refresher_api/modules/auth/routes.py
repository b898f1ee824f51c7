from fastapi import APIRouter, Depends
from refresher_api.config.settings import settings
from refresher_api.core.dependencies import get_auth_service, get_current_token, get_current_user
from refresher_api.database.supabase_client import get_session_supabase
from refresher_api.modules.auth.schemas import (
    LoginRequest, SignupRequest, TokenResponse, SignupResponse,
    RecoverPasswordRequest, MessageResponse
)
from refresher_api.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Dict

router = APIRouter(prefix="/auth", tags=["auth"])


def get_session_auth_service(supabase: Client = Depends(get_session_supabase)) -> AuthService:
    return AuthService(supabase)


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    signup_data: SignupRequest,
    service: AuthService = Depends(get_session_auth_service)
):
    """Register a new user"""
    return service.signup(signup_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_session_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/recover", response_model=MessageResponse)
async def recover_password(
    recover_data: RecoverPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset link. The answer is the same whether or not the account exists."""
    service.recover_password(recover_data, redirect_to=settings.auth_redirect_url)
    return MessageResponse(
        message="If an account exists for this email, a password reset link has been sent"
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and revoke the session"""
    service.logout(token)
    return MessageResponse(message="Logged out successfully")


@router.get("/me")
async def get_me(current_user: Dict[str, Any] = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user
