import logging
from datetime import datetime, timezone
from supabase import Client
from refresher_api.core.exceptions import ConflictError, InternalError, NotFoundError
from refresher_api.database.supabase_client import STORE_ERRORS
from refresher_api.modules.profiles.models import PROFILES_TABLE
from refresher_api.modules.profiles.schemas import ProfileCreate, ProfileResponse
from typing import Any

logger = logging.getLogger(__name__)


class ProfileNotFoundError(NotFoundError):
    message = "Profile not found. Complete profile setup first."


class ProfileExistsError(ConflictError):
    message = "Profile already exists for this user"


class ProfileStoreError(InternalError):
    pass


class ProfileService:
    """Profile of the calling user; the profile id is the user id."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _store_error(self, operation: str, error: Exception, **context: Any) -> ProfileStoreError:
        context["timestamp"] = datetime.now(timezone.utc).isoformat()
        logger.error(
            "Profile %s failed: %s", operation, error,
            extra={"operation": operation, **context}
        )
        return ProfileStoreError(context=context)

    def _find(self, user_id: str):
        try:
            result = self.supabase.table(PROFILES_TABLE)\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except STORE_ERRORS as e:
            raise self._store_error("fetch", e, user_id=user_id)
        return result.data if result is not None else None

    def get_profile(self, user_id: str) -> ProfileResponse:
        row = self._find(user_id)
        if not row:
            raise ProfileNotFoundError()
        return ProfileResponse(**row)

    def create_profile(self, user_id: str, profile_data: ProfileCreate) -> ProfileResponse:
        """Create the caller's profile once; a second call is a conflict"""
        if self._find(user_id):
            raise ProfileExistsError()

        row = {"id": user_id, "activity_streak": 0, **profile_data.model_dump(mode="json")}
        try:
            result = self.supabase.table(PROFILES_TABLE).insert(row).execute()
        except STORE_ERRORS as e:
            raise self._store_error("insert", e, user_id=user_id)

        if not result.data:
            raise self._store_error("insert", ValueError("no row returned"), user_id=user_id)
        return ProfileResponse(**result.data[0])

    def setup_profile(self, user_id: str, profile_data: ProfileCreate) -> ProfileResponse:
        """Create or overwrite the caller's experience settings, keeping the activity streak"""
        row = {"id": user_id, **profile_data.model_dump(mode="json")}
        try:
            result = self.supabase.table(PROFILES_TABLE)\
                .upsert(row, on_conflict="id")\
                .execute()
        except STORE_ERRORS as e:
            raise self._store_error("upsert", e, user_id=user_id)

        if not result.data:
            raise self._store_error("upsert", ValueError("no row returned"), user_id=user_id)
        return ProfileResponse(**result.data[0])
