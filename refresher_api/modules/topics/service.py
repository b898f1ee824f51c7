import logging
import math
from datetime import datetime, timezone
from supabase import Client
from refresher_api.core.exceptions import InternalError, NotFoundError
from refresher_api.database.supabase_client import STORE_ERRORS
from refresher_api.modules.profiles.schemas import ProfileResponse
from refresher_api.modules.topics.generation import GenerationContext, OpenRouterClient, generate_topics
from refresher_api.modules.topics.models import TOPICS_TABLE, TOPIC_LIST_COLUMNS
from refresher_api.modules.topics.schemas import (
    GenerateTopicsRequest, GenerateTopicsResponse, TopicCreate, TopicResponse, TopicListItem,
    TopicListQuery, TopicListResponse, TopicStatus, Pagination
)
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class TopicNotFoundError(NotFoundError):
    """Raised both for missing topics and for topics owned by someone else."""
    message = "Topic not found"


class ParentTopicNotFoundError(NotFoundError):
    message = "Parent topic not found"


class TopicStoreError(InternalError):
    pass


class TopicService:
    """Topic operations. Every query is filtered by the caller's user_id."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _store_error(self, operation: str, error: Exception, **context: Any) -> TopicStoreError:
        context["timestamp"] = datetime.now(timezone.utc).isoformat()
        logger.error(
            "Topic %s failed: %s", operation, error,
            extra={"operation": operation, **context}
        )
        return TopicStoreError(context=context)

    def update_topic(self, user_id: str, topic_id: str, update_data: Dict[str, Any]) -> TopicResponse:
        """Apply a partial update to a topic the caller owns.

        One round trip: PostgREST returns the updated row, with updated_at
        already advanced by the table trigger. A topic owned by another user
        matches no row and is reported exactly like a missing one.
        """
        try:
            result = self.supabase.table(TOPICS_TABLE)\
                .update(update_data)\
                .eq("id", topic_id)\
                .eq("user_id", user_id)\
                .execute()
        except STORE_ERRORS as e:
            raise self._store_error(
                "update", e, user_id=user_id, topic_id=topic_id, fields=sorted(update_data)
            )

        if not result.data:
            raise TopicNotFoundError()

        return TopicResponse(**result.data[0])

    def get_topic(self, user_id: str, topic_id: str) -> TopicResponse:
        """Get one topic owned by the caller"""
        try:
            result = self.supabase.table(TOPICS_TABLE)\
                .select("*")\
                .eq("id", topic_id)\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()
        except STORE_ERRORS as e:
            raise self._store_error("fetch", e, user_id=user_id, topic_id=topic_id)

        if result is None or not result.data:
            raise TopicNotFoundError()

        return TopicResponse(**result.data)

    def _filtered(self, request, user_id: str, query: TopicListQuery):
        request = request.eq("user_id", user_id)
        if query.status:
            request = request.eq("status", query.status.value)
        if query.technology:
            request = request.eq("technology", query.technology)
        if query.parent_id == "null":
            request = request.is_("parent_id", "null")
        elif query.parent_id is not None:
            request = request.eq("parent_id", str(query.parent_id))
        return request

    def list_topics(self, user_id: str, query: TopicListQuery) -> TopicListResponse:
        """Filtered, sorted page of the caller's topics with their children counts.

        The total comes from its own head request. PostgREST rejects a counted
        request whose range starts past the total (416), so the page itself is
        fetched uncounted and a page past the end is simply empty.
        """
        context = {"user_id": user_id, "query": query.model_dump(mode="json")}
        try:
            counted = self._filtered(
                self.supabase.table(TOPICS_TABLE).select("id", count="exact", head=True), user_id, query
            ).execute()
        except STORE_ERRORS as e:
            raise self._store_error("count", e, **context)
        total = counted.count or 0

        rows: List[Dict[str, Any]] = []
        if query.offset < total:
            try:
                result = self._filtered(
                    self.supabase.table(TOPICS_TABLE).select(TOPIC_LIST_COLUMNS), user_id, query
                )\
                    .order(query.sort, desc=query.order == "desc")\
                    .range(query.offset, query.offset + query.limit - 1)\
                    .execute()
            except STORE_ERRORS as e:
                raise self._store_error("list", e, **context)
            rows = result.data

        return TopicListResponse(
            data=[TopicListItem.from_row(row) for row in rows],
            pagination=Pagination(
                page=query.page,
                limit=query.limit,
                total=total,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    def list_children(self, user_id: str, parent_id: str) -> List[TopicListItem]:
        """Direct children of a topic the caller owns, oldest first"""
        self.get_topic(user_id, parent_id)
        try:
            result = self.supabase.table(TOPICS_TABLE)\
                .select(TOPIC_LIST_COLUMNS)\
                .eq("user_id", user_id)\
                .eq("parent_id", parent_id)\
                .order("created_at")\
                .execute()
        except STORE_ERRORS as e:
            raise self._store_error("children fetch", e, user_id=user_id, topic_id=parent_id)

        return [TopicListItem.from_row(row) for row in result.data]

    def create_topic(self, user_id: str, topic_data: TopicCreate) -> TopicResponse:
        """Create a topic for the caller, under one of their own topics if parent_id is set"""
        row = topic_data.model_dump(mode="json")
        if topic_data.parent_id is not None:
            try:
                self.get_topic(user_id, row["parent_id"])
            except TopicNotFoundError:
                raise ParentTopicNotFoundError()

        row["user_id"] = user_id
        try:
            result = self.supabase.table(TOPICS_TABLE).insert(row).execute()
        except STORE_ERRORS as e:
            raise self._store_error("insert", e, user_id=user_id, fields=sorted(row))

        if not result.data:
            raise self._store_error(
                "insert", ValueError("no row returned"), user_id=user_id, fields=sorted(row)
            )

        return TopicResponse(**result.data[0])

    def generate_topics(
        self,
        user_id: str,
        command: GenerateTopicsRequest,
        profile: ProfileResponse,
        ai_client: OpenRouterClient,
    ) -> GenerateTopicsResponse:
        """Have the AI provider propose topics for the caller and store them as to-do items.

        The caller's profile tunes the proposals; with parent_id the topics are
        generated as children of one of the caller's own topics.
        """
        parent = None
        parent_id = str(command.parent_id) if command.parent_id is not None else None
        if parent_id is not None:
            try:
                parent = self.get_topic(user_id, parent_id)
            except TopicNotFoundError:
                raise ParentTopicNotFoundError()

        context = GenerationContext(
            technology=command.technology,
            experience_level=profile.experience_level.value,
            years_away=profile.years_away,
            parent_title=parent.title if parent else None,
            parent_description=parent.description if parent else None,
        )
        generated = generate_topics(ai_client, context)

        rows = [
            {
                "user_id": user_id,
                "parent_id": parent_id,
                "title": topic.title,
                "description": topic.description,
                "status": TopicStatus.TO_DO.value,
                "technology": command.technology,
                "leetcode_links": [link.model_dump(mode="json") for link in topic.leetcode_links],
            }
            for topic in generated
        ]
        try:
            result = self.supabase.table(TOPICS_TABLE).insert(rows).execute()
        except STORE_ERRORS as e:
            raise self._store_error(
                "generated insert", e, user_id=user_id, technology=command.technology, count=len(rows)
            )

        if not result.data:
            raise self._store_error(
                "generated insert", ValueError("no rows returned"),
                user_id=user_id, technology=command.technology, count=len(rows)
            )

        topics = [TopicResponse(**row) for row in result.data]
        return GenerateTopicsResponse(data=topics, count=len(topics))
