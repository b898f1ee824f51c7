import logging
from supabase import AuthError, Client
from refresher_api.core.exceptions import (
    AuthenticationError, InternalError, RateLimitError, ValidationError
)
from refresher_api.modules.auth.schemas import (
    LoginRequest, SignupRequest, TokenResponse, SignupResponse, RecoverPasswordRequest
)
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def signup(self, signup_data: SignupRequest) -> SignupResponse:
        """Register a new user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": signup_data.email,
                "password": signup_data.password
            })
        except AuthError as e:
            message = str(e).lower()
            if "already registered" in message or "already exists" in message:
                raise ValidationError("User already exists")
            if "rate limit" in message:
                raise RateLimitError()
            logger.error("Signup failed: %s", e)
            raise InternalError("Registration failed")

        if not auth_response.user:
            raise InternalError("Registration failed")

        # No session means Supabase is waiting for the e-mail confirmation link
        requires_confirmation = auth_response.session is None
        return SignupResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or signup_data.email,
            requires_confirmation=requires_confirmation,
            message=(
                "Check your inbox to confirm your email address"
                if requires_confirmation else "User registered successfully"
            ),
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except AuthError as e:
            message = str(e)
            if "Email not confirmed" in message:
                raise ValidationError(
                    "Please confirm your email address before logging in. "
                    "Check your inbox for the confirmation link."
                )
            if "rate limit" in message.lower():
                raise RateLimitError("Too many login attempts. Please try again later.")
            # Same answer for unknown e-mail and wrong password
            raise AuthenticationError("Invalid email or password")

        if not auth_response.user or not auth_response.session:
            raise AuthenticationError("Invalid email or password")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def recover_password(self, recover_data: RecoverPasswordRequest, redirect_to: str) -> None:
        """Send a password reset e-mail. Failures are logged, never reported to the caller."""
        try:
            self.supabase.auth.reset_password_for_email(
                recover_data.email, {"redirect_to": redirect_to}
            )
        except AuthError as e:
            logger.warning("Password recovery request failed: %s", e)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except AuthError:
            raise AuthenticationError()
        if not user_response or not user_response.user:
            raise AuthenticationError()
        user = user_response.user
        return {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "created_at": user.created_at,
            "updated_at": user.updated_at
        }

    def logout(self, token: str) -> None:
        """Revoke the refresh token of the session behind this access token"""
        try:
            self.supabase.auth.admin.sign_out(token, "local")
        except AuthError as e:
            # Tokens are stateless JWTs and expire on their own
            logger.warning("Sign out failed: %s", e)
