import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from refresher_api.core.dependencies import get_user_supabase
from refresher_api.database.supabase_client import get_session_supabase, get_supabase
from refresher_api.main import create_app
from refresher_api.modules.topics.generation import get_ai_client
from tests.fakes import OTHER_TOKEN, OWNER_TOKEN, FakeAIClient, FakeSupabase


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def owner_id(fake_supabase):
    return fake_supabase.auth.add_user(OWNER_TOKEN, email="owner@example.com")


@pytest.fixture
def other_id(fake_supabase):
    return fake_supabase.auth.add_user(OTHER_TOKEN, email="other@example.com")


@pytest.fixture
def owner_headers(owner_id):
    return {"Authorization": f"Bearer {OWNER_TOKEN}"}


@pytest_asyncio.fixture
async def client(fake_supabase, fake_ai):
    app = create_app()
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_session_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_user_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
