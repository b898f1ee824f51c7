from fastapi import APIRouter, Depends, Query, Request
from refresher_api.core.dependencies import get_current_user, get_user_supabase, json_body, parse_json_body
from refresher_api.modules.profiles.routes import get_profile_service
from refresher_api.modules.profiles.service import ProfileService
from refresher_api.modules.topics.generation import OpenRouterClient, get_ai_client
from refresher_api.modules.topics.schemas import (
    GenerateTopicsRequest, GenerateTopicsResponse, TopicCreate, TopicUpdate, TopicResponse,
    TopicListQuery, TopicListResponse, TopicChildrenResponse
)
from refresher_api.modules.topics.service import TopicService
from supabase import Client
from typing import Annotated, Any, Dict
from uuid import UUID

router = APIRouter(prefix="/topics", tags=["topics"])


def get_topic_service(supabase: Client = Depends(get_user_supabase)) -> TopicService:
    return TopicService(supabase)


async def topic_update_body(
    request: Request,
    topic_id: UUID,
    user_data: Dict[str, Any] = Depends(get_current_user)
) -> TopicUpdate:
    """PATCH body, read only after the caller and then the topic id have been checked"""
    return await parse_json_body(request, TopicUpdate)


def check_generation_rate_limit(
    request: Request,
    user_data: Dict[str, Any] = Depends(get_current_user)
) -> None:
    request.app.state.generation_limiter.check("topics:generate", user_data["id"])


@router.get("", response_model=TopicListResponse)
async def list_topics(
    query: Annotated[TopicListQuery, Query()],
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service)
):
    """List the caller's topics with optional filters, sorting and pagination"""
    return service.list_topics(user_data["id"], query)


@router.post("", response_model=TopicResponse, status_code=201)
async def create_topic(
    topic_data: TopicCreate = Depends(json_body(TopicCreate)),
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service)
):
    """Create a topic owned by the caller"""
    return service.create_topic(user_data["id"], topic_data)


@router.post("/generate", response_model=GenerateTopicsResponse, status_code=201)
async def generate_topics(
    command: GenerateTopicsRequest = Depends(json_body(GenerateTopicsRequest)),
    _rate_limit: None = Depends(check_generation_rate_limit),
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service),
    profile_service: ProfileService = Depends(get_profile_service),
    ai_client: OpenRouterClient = Depends(get_ai_client)
):
    """Generate topics for a technology with the AI provider, tailored to the caller's profile"""
    profile = profile_service.get_profile(user_data["id"])
    return service.generate_topics(user_data["id"], command, profile, ai_client)


@router.get("/{topic_id}", response_model=TopicResponse)
async def get_topic(
    topic_id: UUID,
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service)
):
    """Get a topic by ID (404 unless the caller owns it)"""
    return service.get_topic(user_data["id"], str(topic_id))


@router.patch("/{topic_id}", response_model=TopicResponse)
async def update_topic(
    topic_id: UUID,
    topic_data: TopicUpdate = Depends(topic_update_body),
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service)
):
    """Partially update a topic. Fields left out of the body are not touched."""
    return service.update_topic(user_data["id"], str(topic_id), topic_data.to_update_fields())


@router.get("/{topic_id}/children", response_model=TopicChildrenResponse)
async def list_children(
    topic_id: UUID,
    user_data: Dict = Depends(get_current_user),
    service: TopicService = Depends(get_topic_service)
):
    """List the direct children of a topic the caller owns"""
    return TopicChildrenResponse(data=service.list_children(user_data["id"], str(topic_id)))
