"""User module — profile read / update, account deletion."""

from __future__ import annotations

from sqlalchemy import select

from fluxstack.auth.models import User, UserSession
from tests.conftest import DEFAULT_PASSWORD, TestSessionFactory


async def test_get_profile(client, test_user, auth_headers):
    resp = await client.get("/api/user/profile", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] == test_user["email"]
    assert data["name"] == test_user["name"]
    assert data["bio"] is None


async def test_update_profile(client, auth_headers):
    resp = await client.patch(
        "/api/user/profile", json={"name": "Renamed", "bio": "Writes things"}, headers=auth_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["message"] == "Profile updated successfully"
    assert data["user"]["name"] == "Renamed"
    assert data["user"]["bio"] == "Writes things"


async def test_update_profile_partial(client, test_user, auth_headers):
    resp = await client.patch("/api/user/profile", json={"bio": "Only bio"}, headers=auth_headers)
    user = resp.json()["data"]["user"]
    assert user["name"] == test_user["name"]
    assert user["bio"] == "Only bio"


async def test_update_profile_validation(client, auth_headers):
    resp = await client.patch("/api/user/profile", json={"bio": "x" * 501}, headers=auth_headers)
    assert resp.status_code == 400


async def test_profile_requires_auth(client):
    assert (await client.get("/api/user/profile")).status_code == 401


async def test_delete_account_revokes_sessions(client, test_user, auth_headers):
    resp = await client.delete("/api/user/account", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == f"Account {test_user['email']} scheduled for deletion"

    async with TestSessionFactory() as s:
        user = (await s.execute(select(User).where(User.id == test_user["id"]))).scalar_one()
        assert user.deletion_requested_at is not None
        sessions = (
            await s.execute(select(UserSession).where(UserSession.user_id == test_user["id"]))
        ).scalars().all()
        assert sessions and all(sess.is_revoked for sess in sessions)

    assert (await client.get("/api/auth/me", headers=auth_headers)).status_code == 401


async def test_deleted_account_cannot_sign_in(client, test_user, auth_headers):
    await client.delete("/api/user/account", headers=auth_headers)
    resp = await client.post(
        "/api/auth/sign-in/email",
        json={"email": test_user["email"], "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401
