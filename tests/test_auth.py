"""Tests for authentication endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from discipleship.core.permissions import Role
from discipleship.core.security import create_access_token, decode_access_token
from discipleship.schemas.churches import Church
from discipleship.schemas.users import User


@pytest.fixture
def registration(church: Church) -> dict:
    """Sample registration payload."""
    return {
        "email": "New.Member@Example.com",
        "password": "a-long-password",
        "firstName": "New",
        "lastName": "Member",
        "churchId": church.id,
    }


@pytest.mark.asyncio
class TestRegister:
    """Self-service registration."""

    async def test_register(self, client: AsyncClient, registration: dict) -> None:
        response = await client.post("/api/v1/auth/register", json=registration)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["expiresIn"] == "7d"
        user = body["data"]["user"]
        assert user["email"] == "new.member@example.com"
        assert user["role"] == "member"
        assert user["churchId"] == registration["churchId"]
        assert "passwordHash" not in user

        claims = decode_access_token(body["data"]["token"])
        assert claims is not None
        assert claims["userId"] == user["id"]
        assert claims["churchId"] == registration["churchId"]
        assert claims["role"] == "member"

    async def test_email_is_case_insensitive(self, client: AsyncClient, registration: dict) -> None:
        await client.post("/api/v1/auth/register", json=registration)

        response = await client.post(
            "/api/v1/auth/register",
            json={**registration, "email": "NEW.MEMBER@example.com"},
        )

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": {"code": "EMAIL_EXISTS", "message": "A user with this email already exists"},
        }

    async def test_unknown_church(self, client: AsyncClient, registration: dict) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={**registration, "churchId": "missing"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CHURCH_NOT_FOUND"

    async def test_cannot_register_as_platform_admin(
        self,
        client: AsyncClient,
        registration: dict,
    ) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={**registration, "role": "platform_admin"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ROLE"

    async def test_short_password(self, client: AsyncClient, registration: dict) -> None:
        response = await client.post(
            "/api/v1/auth/register",
            json={**registration, "password": "short"},
        )
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["path"] == "password"


@pytest.mark.asyncio
class TestLogin:
    """Email and password login."""

    async def test_login(self, client: AsyncClient, teacher: User, password: str) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": teacher.email.upper(), "password": password},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == teacher.id
        assert data["user"]["lastLoginAt"] is not None
        assert decode_access_token(data["token"])["role"] == "teacher"

    async def test_wrong_password(self, client: AsyncClient, teacher: User) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": teacher.email, "password": "wrong-password"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    async def test_unknown_email(self, client: AsyncClient, church: Church) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    async def test_disabled_account(self, client: AsyncClient, make_user, password: str) -> None:
        user = await make_user(is_active=False)
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": password},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ACCOUNT_DISABLED"


@pytest.mark.asyncio
class TestTokens:
    """Bearer token handling."""

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    async def test_expired_token(self, client: AsyncClient, teacher: User) -> None:
        token = create_access_token(
            {"userId": teacher.id, "churchId": teacher.church_id, "email": teacher.email, "role": "teacher"},
            expires_delta=timedelta(seconds=-1),
        )
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_me(self, client: AsyncClient, teacher: User, auth_headers) -> None:
        response = await client.get("/api/v1/auth/me", headers=auth_headers(teacher))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == teacher.id
        assert data["currentChurchId"] == teacher.church_id

    async def test_verify(self, client: AsyncClient, teacher: User, auth_headers) -> None:
        response = await client.get("/api/v1/auth/verify", headers=auth_headers(teacher))

        assert response.status_code == 200
        assert response.json()["data"] == {
            "userId": teacher.id,
            "email": teacher.email,
            "role": "teacher",
            "churchId": teacher.church_id,
            "churchIds": [teacher.church_id],
        }

        wrong_method = await client.post("/api/v1/auth/verify", headers=auth_headers(teacher))
        assert wrong_method.status_code == 405


@pytest.mark.asyncio
class TestSwitchChurch:
    """Moving a token between churches."""

    async def test_switch_to_accessible_church(
        self,
        client: AsyncClient,
        make_user,
        church: Church,
        other_church: Church,
        auth_headers,
    ) -> None:
        pastor = await make_user(church_ids=[church.id, other_church.id], role=Role.PASTOR)

        response = await client.post(
            "/api/v1/auth/switch-church",
            json={"churchId": other_church.id},
            headers=auth_headers(pastor),
        )

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        assert decode_access_token(token)["churchId"] == other_church.id

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["data"]["currentChurchId"] == other_church.id

    async def test_switch_denied(
        self,
        client: AsyncClient,
        teacher: User,
        other_church: Church,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/auth/switch-church",
            json={"churchId": other_church.id},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ACCESS_DENIED"

    async def test_platform_admin_switches_anywhere(
        self,
        client: AsyncClient,
        platform_admin: User,
        other_church: Church,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/auth/switch-church",
            json={"churchId": other_church.id},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 200

        missing = await client.post(
            "/api/v1/auth/switch-church",
            json={"churchId": "missing"},
            headers=auth_headers(platform_admin),
        )
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "CHURCH_NOT_FOUND"

    async def test_my_churches(
        self,
        client: AsyncClient,
        platform_admin: User,
        teacher: User,
        church: Church,
        other_church: Church,
        auth_headers,
    ) -> None:
        mine = await client.get("/api/v1/auth/me/churches", headers=auth_headers(teacher))
        assert [c["id"] for c in mine.json()["data"]] == [church.id]

        everything = await client.get("/api/v1/auth/me/churches", headers=auth_headers(platform_admin))
        assert {c["slug"] for c in everything.json()["data"]} == {church.slug, other_church.slug}


@pytest.mark.asyncio
class TestChangePassword:
    async def test_change_password(
        self,
        client: AsyncClient,
        member: User,
        password: str,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/auth/change-password",
            json={"currentPassword": password, "newPassword": "an-even-better-one"},
            headers=auth_headers(member),
        )
        assert response.status_code == 200

        old = await client.post("/api/v1/auth/login", json={"email": member.email, "password": password})
        assert old.status_code == 401
        new = await client.post(
            "/api/v1/auth/login",
            json={"email": member.email, "password": "an-even-better-one"},
        )
        assert new.status_code == 200

    async def test_wrong_current_password(
        self,
        client: AsyncClient,
        member: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            "/api/v1/auth/change-password",
            json={"currentPassword": "not-it-at-all", "newPassword": "an-even-better-one"},
            headers=auth_headers(member),
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"
