"""Tests for password hashing, access tokens, the user store, and auth endpoints."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from taskboard.config import AuthSettings, BoardSettings
from taskboard.server.api import create_app
from taskboard.server.auth import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from taskboard.server.users import UserStore
from taskboard.task_engine.errors import ValidationError


SETTINGS = AuthSettings(secret_key="unit-secret")


class TestPasswords:
    def test_hash_verifies(self) -> None:
        encoded = hash_password("hunter22", iterations=1000)
        assert encoded.startswith("pbkdf2_sha256$1000$")
        assert verify_password("hunter22", encoded)
        assert not verify_password("hunter23", encoded)

    def test_salts_differ(self) -> None:
        assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)

    def test_malformed_hash_rejected(self) -> None:
        assert not verify_password("x", "not-a-hash")
        assert not verify_password("x", "md5$1$salt$abc")


class TestTokens:
    def test_round_trip(self) -> None:
        token = create_access_token(SETTINGS, "user-1234")
        assert decode_access_token(SETTINGS, token) == "user-1234"

    def test_expired(self) -> None:
        token = create_access_token(SETTINGS, "user-1234", expires_delta=timedelta(seconds=-5))
        assert decode_access_token(SETTINGS, token) is None

    def test_wrong_secret(self) -> None:
        token = create_access_token(SETTINGS, "user-1234")
        other = AuthSettings(secret_key="other-secret")
        assert decode_access_token(other, token) is None

    def test_wrong_audience(self) -> None:
        token = create_access_token(SETTINGS, "user-1234")
        other = AuthSettings(secret_key="unit-secret", audience="someone-else")
        assert decode_access_token(other, token) is None

    def test_garbage(self) -> None:
        assert decode_access_token(SETTINGS, "abc.def.ghi") is None


class TestUserStore:
    def test_create_and_lookup(self, tmp_path: Path) -> None:
        store = UserStore(tmp_path)
        user = store.create_user("Ann@Example.com", "secret1")
        assert user.id.startswith("user-")
        assert store.get_by_email("ann@example.com").id == user.id
        assert store.get_by_id(user.id).email == "Ann@Example.com"
        assert [u.id for u in store.list_users()] == [user.id]

    def test_duplicate_email(self, tmp_path: Path) -> None:
        store = UserStore(tmp_path)
        store.create_user("ann@example.com", "secret1")
        with pytest.raises(ValidationError, match="already in use"):
            store.create_user("ANN@example.com", "secret2")

    def test_short_password(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            UserStore(tmp_path).create_user("ann@example.com", "abc")

    def test_invalid_email(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            UserStore(tmp_path).create_user("ann", "secret1")

    def test_authenticate_records_last_seen(self, tmp_path: Path) -> None:
        store = UserStore(tmp_path)
        user = store.create_user("ann@example.com", "secret1")
        assert store.authenticate("ann@example.com", "wrong1") is None
        assert store.authenticate("nobody@example.com", "secret1") is None
        assert store.authenticate("ann@example.com", "secret1").id == user.id
        assert store.get_by_id(user.id).last_seen is not None

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        UserStore(tmp_path).create_user("ann@example.com", "secret1")
        assert UserStore(tmp_path).get_by_email("ann@example.com") is not None


def _app(project_dir: Path, *, enabled: bool = True):
    settings = BoardSettings(auth=AuthSettings(enabled=enabled, secret_key="test-secret"))
    return create_app(project_dir=project_dir, enable_cors=False, settings=settings)


@pytest.fixture
async def client(tmp_path: Path):
    transport = ASGITransport(app=_app(tmp_path))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.anyio
class TestAuthEndpoints:
    async def test_register_returns_usable_token(self, client: AsyncClient) -> None:
        resp = await client.post("/api/auth/register", json={"email": "ann@example.com", "password": "secret1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["email"] == "ann@example.com"

        headers = {"Authorization": f"Bearer {body['token']}"}
        assert (await client.get("/api/tasks", headers=headers)).status_code == 200

    async def test_register_duplicate(self, client: AsyncClient) -> None:
        payload = {"email": "ann@example.com", "password": "secret1"}
        await client.post("/api/auth/register", json=payload)
        resp = await client.post("/api/auth/register", json=payload)
        assert resp.status_code == 400
        assert "already in use" in resp.json()["detail"]

    async def test_login(self, client: AsyncClient) -> None:
        payload = {"email": "ann@example.com", "password": "secret1"}
        await client.post("/api/auth/register", json=payload)

        resp = await client.post("/api/auth/login", json=payload)
        assert resp.status_code == 200
        assert resp.json()["token"]

        bad = await client.post("/api/auth/login", json={"email": "ann@example.com", "password": "nope12"})
        assert bad.status_code == 401

    async def test_status(self, client: AsyncClient) -> None:
        resp = await client.get("/api/auth/status")
        assert resp.json() == {"enabled": True, "authenticated": False, "username": None}

        reg = await client.post("/api/auth/register", json={"email": "ann@example.com", "password": "secret1"})
        headers = {"Authorization": f"Bearer {reg.json()['token']}"}
        resp = await client.get("/api/auth/status", headers=headers)
        assert resp.json() == {"enabled": True, "authenticated": True, "username": "ann@example.com"}

    async def test_disabled_auth_uses_default_user(self, tmp_path: Path) -> None:
        transport = ASGITransport(app=_app(tmp_path, enabled=False))
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.post("/api/tasks", json={"title": "Open access"})
            assert resp.status_code == 201
            assert resp.json()["createdBy"] == "local"

            status = await c.get("/api/auth/status")
            assert status.json() == {"enabled": False, "authenticated": True, "username": "local"}
