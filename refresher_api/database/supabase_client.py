import httpx
from typing import Optional
from fastapi import Request
from supabase import Client, ClientOptions, PostgrestAPIError, create_client
from refresher_api.config.settings import Settings, settings

# Failures of the PostgREST call itself: error responses, connectivity, timeouts
STORE_ERRORS = (PostgrestAPIError, httpx.HTTPError)


def create_supabase_client(config: Settings, access_token: Optional[str] = None) -> Client:
    """Build a Supabase client.

    With ``access_token`` every PostgREST call carries the caller's JWT so the
    row-level security policies on the tables apply to it.
    """
    options = ClientOptions(
        postgrest_client_timeout=config.supabase_timeout_seconds,
        auto_refresh_token=False,
        persist_session=False,
    )
    if access_token:
        options.headers["Authorization"] = f"Bearer {access_token}"
    return create_client(config.supabase_url, config.supabase_key, options=options)


def get_supabase(request: Request) -> Client:
    """Shared client attached at startup. Only stateless calls go through it."""
    return request.app.state.supabase


def get_session_supabase() -> Client:
    """Fresh client for calls that open or close an auth session (login, signup)."""
    return create_supabase_client(settings)
