from fastapi import APIRouter, Depends
from refresher_api.core.dependencies import get_current_user, get_user_supabase, json_body
from refresher_api.modules.profiles.schemas import (
    ProfileCreate, ProfileResponse, ProfileSetupRequest, ProfileSetupResponse
)
from refresher_api.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profile", tags=["profile"])


def get_profile_service(supabase: Client = Depends(get_user_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the caller's profile"""
    return service.get_profile(user_data["id"])


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_profile(
    profile_data: ProfileCreate = Depends(json_body(ProfileCreate)),
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Create the caller's profile (409 if it already exists)"""
    return service.create_profile(user_data["id"], profile_data)


@router.post("/setup", response_model=ProfileSetupResponse)
async def setup_profile(
    setup_data: ProfileSetupRequest = Depends(json_body(ProfileSetupRequest)),
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Save the answers of the profile setup form and point the client to the dashboard"""
    service.setup_profile(user_data["id"], setup_data.to_profile())
    return ProfileSetupResponse()
