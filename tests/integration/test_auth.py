"""
Integration tests for cookie sessions.
"""
import pytest

from salon.app.core.security import Role, create_access_token

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass-123"


@pytest.mark.asyncio
async def test_protected_endpoint_without_cookie(client):
    resp = await client.get("/api/customers")

    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["authenticated"] is False
    assert body["error"] == "No token provided"


@pytest.mark.asyncio
async def test_login_sets_http_only_cookie(client):
    resp = await client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["username"] == ADMIN_USERNAME
    assert body["user"]["role"] == Role.ADMIN
    set_cookie = resp.headers["set-cookie"].lower()
    assert set_cookie.startswith("auth-token=")
    assert "httponly" in set_cookie
    assert "max-age=10800" in set_cookie


@pytest.mark.asyncio
async def test_valid_cookie_returns_user_with_role(authed_client):
    resp = await authed_client.get("/api/auth/me")

    assert resp.status_code == 200
    body = resp.json()
    assert body["authenticated"] is True
    assert body["user"]["role"] == Role.ADMIN
    assert body["user"]["name"] == "Salon Owner"

    protected = await authed_client.get("/api/customers")
    assert protected.status_code == 200


@pytest.mark.asyncio
async def test_me_without_session(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_wrong_password(client):
    resp = await client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": "nope"})

    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid credentials"
    assert "set-cookie" not in resp.headers


@pytest.mark.asyncio
async def test_missing_credentials(client):
    resp = await client.post("/api/auth/login", json={"username": ADMIN_USERNAME})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Username and password required"


@pytest.mark.asyncio
async def test_tampered_cookie_is_rejected(client):
    resp = await client.get("/api/auth/me", headers={"Cookie": "auth-token=not.a.jwt"})

    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid token"


@pytest.mark.asyncio
async def test_bearer_header_is_accepted(client, settings):
    token = create_access_token(
        {"sub": "owner", "id": 1, "username": "owner", "name": "Owner", "role": Role.ADMIN},
        settings,
    )
    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "owner"


@pytest.mark.asyncio
async def test_non_admin_role_is_forbidden(client, settings):
    token = create_access_token(
        {"sub": "clerk", "id": 2, "username": "clerk", "name": "Clerk", "role": "staff"},
        settings,
    )
    resp = await client.get("/api/customers", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Not enough permissions"


@pytest.mark.asyncio
async def test_logout_clears_cookie(authed_client):
    resp = await authed_client.post("/api/auth/logout")

    assert resp.status_code == 200
    assert resp.headers["set-cookie"].startswith("auth-token=")
    assert (await authed_client.get("/api/auth/me")).status_code == 401
