"""
Core dependencies for route protection
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from refresher_api.config.settings import settings
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from refresher_api.core.exceptions import AuthenticationError, ValidationError, error_details
from refresher_api.database.supabase_client import create_supabase_client, get_supabase
from refresher_api.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Callable, Dict, Optional, Type, TypeVar

ModelT = TypeVar("ModelT", bound=BaseModel)

# auto_error is off so a missing header is reported as 401 in the error envelope
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the caller from the bearer token"""
    return auth_service.get_current_user(token)


def get_user_supabase(
    user_data: Dict[str, Any] = Depends(get_current_user),
    token: str = Depends(get_current_token)
) -> Client:
    """Client acting as the authenticated caller; resolving it authenticates first."""
    return create_supabase_client(settings, access_token=token)


async def parse_json_body(request: Request, model: Type[ModelT]) -> ModelT:
    """Decode and validate the request body.

    Routes read their body through a dependency that depends on the caller,
    so a body that is not even JSON is only looked at once the token is good.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError(
            "Invalid request body",
            details=[{"field": "body", "message": "Invalid JSON in request body"}],
        )
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError("Invalid request body", details=error_details(e.errors()))


def json_body(model: Type[ModelT]) -> Callable:
    """Dependency returning the validated body of an authenticated request"""
    async def dependency(
        request: Request,
        user_data: Dict[str, Any] = Depends(get_current_user)
    ) -> ModelT:
        return await parse_json_body(request, model)
    return dependency
