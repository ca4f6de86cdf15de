from datetime import timedelta

import pytest
from sqlmodel import select

from quickblog.core.config import settings
from quickblog.core.errors import AuthenticationError
from quickblog.core.security import create_access_token, decode_access_token
from quickblog.models import AdminRole, User
from tests.conftest import add_blog, add_comment, add_subscriber, auth_headers, make_token

# Endpoints that only need a valid token, and those gated to editors or moderators
AUTHENTICATED = [
    ("get", "/api/admin/dashboard", None),
    ("get", "/api/admin/blogs", None),
    ("get", "/api/admin/comments", None),
]
EDITOR_ONLY = [
    ("post", "/api/blog/toggle-publish", {"id": 1}),
    ("post", "/api/blog/delete", {"id": 1}),
    ("post", "/api/blog/generate", {"prompt": "hello"}),
    ("get", "/api/subscriber/all", None),
    ("post", "/api/subscriber/delete", {"id": 1}),
]
MODERATOR = [
    ("post", "/api/admin/approve-comment", {"id": 1}),
    ("post", "/api/admin/delete-comment", {"id": 1}),
]
PROTECTED = AUTHENTICATED + EDITOR_ONLY + MODERATOR


def call(client, method, path, body, headers):
    if body is None:
        return getattr(client, method)(path, headers=headers)
    return getattr(client, method)(path, json=body, headers=headers)


@pytest.fixture
def bootstrap_credentials(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "root@quickblog.test")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "bootstrap-pass")


def test_token_round_trip():
    claims = decode_access_token(create_access_token({"sub": "7", "role": "admin"}))
    assert claims["sub"] == "7"
    assert claims["role"] == "admin"


def test_expired_and_foreign_tokens_are_rejected():
    with pytest.raises(AuthenticationError, match="expired"):
        decode_access_token(make_token(expires_in=timedelta(seconds=-30)))
    with pytest.raises(AuthenticationError, match="Invalid token"):
        decode_access_token(make_token(secret="someone-elses-secret"))


def test_first_login_bootstraps_super_admin(client, session, bootstrap_credentials):
    response = client.post("/api/admin/login", json={"email": "root@quickblog.test", "password": "bootstrap-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Super Admin Created and Logged In"

    user = session.exec(select(User)).one()
    assert user.role == AdminRole.SUPER_ADMIN
    assert decode_access_token(body["token"])["role"] == "super_admin"

    # Second login goes through the normal password check
    response = client.post("/api/admin/login", json={"email": "root@quickblog.test", "password": "bootstrap-pass"})
    assert response.status_code == 200
    assert "message" not in response.json()
    assert len(session.exec(select(User)).all()) == 1


def test_bootstrap_only_when_no_user_exists(client, admin_user, bootstrap_credentials):
    response = client.post("/api/admin/login", json={"email": "root@quickblog.test", "password": "bootstrap-pass"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid Credentials"}


def test_bootstrap_needs_matching_credentials(client, session, bootstrap_credentials):
    response = client.post("/api/admin/login", json={"email": "root@quickblog.test", "password": "guess"})
    assert response.status_code == 401
    assert session.exec(select(User)).all() == []


def test_login_existing_user(client, admin_user):
    response = client.post("/api/admin/login", json={"email": "ADA@quickblog.test", "password": "analytical-engine"})
    assert response.status_code == 200
    claims = decode_access_token(response.json()["token"])
    assert claims["sub"] == str(admin_user.id)
    assert claims["role"] == "admin"

    wrong = client.post("/api/admin/login", json={"email": "ada@quickblog.test", "password": "nope"})
    assert wrong.status_code == 401


@pytest.mark.parametrize("email", ["%", "_%", "ada@quickblog.tes_", "%@quickblog.test"])
def test_login_email_wildcards_match_nothing(client, admin_user, email):
    response = client.post("/api/admin/login", json={"email": email, "password": "analytical-engine"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Credentials"


def test_me(client, admin_user):
    response = client.get("/api/admin/me", headers=auth_headers(user_id=admin_user.id))
    assert response.json()["user"]["email"] == "ada@quickblog.test"
    assert client.get("/api/admin/me", headers=auth_headers(user_id=404)).status_code == 404


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_missing_header_is_401(client, method, path, body):
    response = call(client, method, path, body, headers={})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "No authorization header provided"}


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_malformed_header_is_401(client, method, path, body):
    response = call(client, method, path, body, headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authorization format. Use: Bearer <token>"


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_foreign_secret_is_401(client, method, path, body):
    token = make_token(role=AdminRole.SUPER_ADMIN, secret="not-our-secret")
    response = call(client, method, path, body, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


@pytest.mark.parametrize("method, path, body", PROTECTED)
def test_expired_token_is_401(client, method, path, body):
    token = make_token(role=AdminRole.SUPER_ADMIN, expires_in=timedelta(minutes=-5))
    response = call(client, method, path, body, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired. Please login again"


def test_token_with_unknown_role_is_401(client):
    token = make_token(role="janitor")
    response = client.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.parametrize("method, path, body", EDITOR_ONLY)
def test_moderator_is_forbidden_from_editor_routes(client, method, path, body):
    response = call(client, method, path, body, headers=auth_headers(AdminRole.MODERATOR))
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "Role (moderator) is not allowed to access this resource",
    }


def test_moderator_can_moderate_comments(client, session):
    blog = add_blog(session)
    comment = add_comment(session, blog.id)
    headers = auth_headers(AdminRole.MODERATOR)

    assert client.post("/api/admin/approve-comment", json={"id": comment.id}, headers=headers).status_code == 200
    assert client.get("/api/admin/dashboard", headers=headers).status_code == 200
    assert client.post("/api/admin/delete-comment", json={"id": comment.id}, headers=headers).status_code == 200


@pytest.mark.parametrize("role", [AdminRole.ADMIN, AdminRole.SUPER_ADMIN])
def test_editors_are_allowed(client, session, role):
    blog = add_blog(session)
    add_subscriber(session, "reader@quickblog.test")
    headers = auth_headers(role)

    assert client.get("/api/subscriber/all", headers=headers).status_code == 200
    assert client.post("/api/blog/toggle-publish", json={"id": blog.id}, headers=headers).status_code == 200
    assert client.post("/api/blog/delete", json={"id": blog.id}, headers=headers).status_code == 200
