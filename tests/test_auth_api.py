import logging
import time

import pytest

from refresher_api import main  # noqa: F401  configures logging on import
from tests.fakes import OWNER_TOKEN


@pytest.mark.asyncio
async def test_login_returns_token(client, owner_id):
    resp = await client.post("/auth/login", json={"email": "owner@example.com", "password": "secret123"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["access_token"] == OWNER_TOKEN
    assert body["user_id"] == owner_id
    assert body["token_type"] == "bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["owner@example.com", "nobody@example.com"])
async def test_login_failure_is_generic(client, owner_id, email):
    resp = await client.post("/auth/login", json={"email": email, "password": "wrong-password"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unconfirmed_email(client, fake_supabase, owner_id):
    fake_supabase.auth.unconfirmed.add("owner@example.com")

    resp = await client.post("/auth/login", json={"email": "owner@example.com", "password": "secret123"})

    assert resp.status_code == 400
    assert "confirm your email" in resp.json()["error"]["message"]


@pytest.mark.asyncio
async def test_login_short_password_rejected(client):
    resp = await client.post("/auth/login", json={"email": "owner@example.com", "password": "123"})

    assert resp.status_code == 400
    assert resp.json()["error"]["details"][0]["field"] == "password"


@pytest.mark.asyncio
async def test_signup_requires_confirmation(client):
    resp = await client.post(
        "/auth/signup",
        json={"email": "new@example.com", "password": "secret123", "confirm_password": "secret123"},
    )

    assert resp.status_code == 201
    assert resp.json()["requires_confirmation"] is True


@pytest.mark.asyncio
async def test_signup_password_mismatch(client):
    resp = await client.post(
        "/auth/signup",
        json={"email": "new@example.com", "password": "secret123", "confirm_password": "secret124"},
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_signup_existing_user(client, owner_id):
    resp = await client.post(
        "/auth/signup",
        json={"email": "owner@example.com", "password": "secret123", "confirm_password": "secret123"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "User already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["owner@example.com", "nobody@example.com"])
async def test_recover_answer_does_not_reveal_accounts(client, fake_supabase, owner_id, email):
    resp = await client.post("/auth/recover", json={"email": email})

    assert resp.status_code == 200
    assert resp.json()["message"].startswith("If an account exists")
    assert fake_supabase.auth.recovery_emails[-1][0] == email


@pytest.mark.asyncio
async def test_me_and_logout(client, fake_supabase, owner_id, owner_headers):
    me = await client.get("/auth/me", headers=owner_headers)
    assert me.status_code == 200
    assert me.json()["id"] == owner_id

    logout = await client.post("/auth/logout", headers=owner_headers)
    assert logout.status_code == 200
    assert fake_supabase.auth.signed_out == [OWNER_TOKEN]


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get("/auth/me")

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_malformed_json_is_reported_on_body(client):
    resp = await client.post(
        "/auth/login", content=b'{"email": ', headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 400
    details = resp.json()["error"]["details"]
    assert [d["field"] for d in details] == ["body"]


def test_log_timestamps_are_utc():
    assert logging.Formatter.converter is time.gmtime
