import asyncio

import pytest
from fastapi import HTTPException

from pooladmin.api import auth as auth_api
from pooladmin.config import settings
from pooladmin.core.rate_limit import RateLimiter
from pooladmin.models.models import AuditLog, User
from pooladmin.schemas.schemas import TokenRefreshRequest


def _login(api, username, password="changeme"):
    return api.post("/auth/login", data={"username": username, "password": password})


def test_login_is_case_insensitive_and_returns_permissions(db_session, client, create_user):
    create_user("operator", "EDITOR")
    response = _login(client(), "  OPERATOR ")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["role"] == "EDITOR"
    assert "finance:write" in body["permissions"]
    assert "finance:delete" not in body["permissions"]
    assert body["expires_in"] == settings.access_token_expire_minutes * 60

    user = db_session.query(User).filter(User.username == "operator").one()
    assert user.last_login is not None
    assert db_session.query(AuditLog).filter(AuditLog.action == "auth.login").count() == 1


def test_wrong_password_is_rejected(client, create_user):
    create_user("operator", "EDITOR")
    assert _login(client(), "operator", "wrong").status_code == 401
    assert _login(client(), "nobody").status_code == 401


def test_token_authenticates_me_endpoint(client, create_user):
    create_user("guest", "VIEWER")
    api = client()
    token = _login(api, "guest").json()["access_token"]

    response = api.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["username"] == "guest"
    assert response.json()["role"]["name"] == "VIEWER"
    assert "hashed_password" not in response.json()

    assert api.get("/auth/me").status_code == 401
    assert api.get("/auth/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401


def test_refresh_token_flow_returns_new_tokens(db_session, client, create_user):
    create_user("admin", "ADMIN")
    initial = _login(client(), "admin").json()

    refreshed = auth_api.refresh_token(TokenRefreshRequest(refresh_token=initial["refresh_token"]), db_session)
    assert refreshed.access_token
    assert refreshed.role == "ADMIN"

    # An access token is not accepted where a refresh token is expected
    with pytest.raises(HTTPException) as exc:
        auth_api.refresh_token(TokenRefreshRequest(refresh_token=initial["access_token"]), db_session)
    assert exc.value.status_code == 401


def test_login_is_rate_limited(client, create_user):
    create_user("operator", "EDITOR")
    api = client()
    statuses = [_login(api, "operator", "wrong").status_code for _ in range(settings.login_rate_limit + 1)]

    assert statuses[:-1] == [401] * settings.login_rate_limit
    assert statuses[-1] == 429
    assert int(_login(api, "operator", "wrong").headers["Retry-After"]) > 0


def test_rate_limiter_window_slides():
    now = [100.0]
    throttle = RateLimiter(clock=lambda: now[0])

    assert asyncio.run(throttle.hit("auth:login:1.2.3.4", 2, 60)) == 0
    assert asyncio.run(throttle.hit("auth:login:1.2.3.4", 2, 60)) == 0
    assert asyncio.run(throttle.hit("auth:login:1.2.3.4", 2, 60)) == 60
    assert asyncio.run(throttle.hit("auth:login:5.6.7.8", 2, 60)) == 0

    now[0] = 160.0
    assert asyncio.run(throttle.hit("auth:login:1.2.3.4", 2, 60)) == 0


def test_user_management_requires_admin(db_session, client, create_user):
    admin = create_user("admin", "ADMIN")
    editor = create_user("operator", "EDITOR")

    assert client(editor).get("/auth/users").status_code == 403

    api = client(admin)
    created = api.post("/auth/users", json={"username": "lifeguard", "full_name": "Pool Lifeguard", "password": "secret1"})
    assert created.status_code == 201
    assert created.json()["role"]["name"] == "VIEWER"

    duplicate = api.post("/auth/users", json={"username": "LIFEGUARD", "full_name": "Again", "password": "secret1"})
    assert duplicate.status_code == 400

    promoted = api.patch(f"/auth/users/{created.json()['id']}", json={"role": "EDITOR"})
    assert promoted.json()["role"]["name"] == "EDITOR"

    assert api.patch(f"/auth/users/{admin.id}", json={"role": "VIEWER"}).status_code == 400
    assert api.delete(f"/auth/users/{admin.id}").status_code == 400
    assert api.delete(f"/auth/users/{created.json()['id']}").status_code == 204
    assert [user["username"] for user in api.get("/auth/users").json()] == ["admin", "operator"]
