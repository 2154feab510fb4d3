# ==============================================================================
# AUTH ENDPOINT TESTS
# ==============================================================================
# Tests for authentication endpoints: register, login, profile
# ==============================================================================

import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from product_api.core.constants import KeyPrefixes
from product_api.core.security import create_access_token
from product_api.database.factory import DatabaseFactory
from product_api.domain_models.user import User
from tests.helpers import register_user


class TestAuthRegister:
    """Tests for user registration endpoint."""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient, sample_user_data: dict):
        """Test successful user registration."""
        response = await client.post("/api/auth/register", json=sample_user_data)

        assert response.status_code == 201
        data = response.json()

        assert data["message"] == "User registered successfully"
        assert data["token"]
        assert data["user"]["email"] == sample_user_data["email"]
        assert data["user"]["firstName"] == "Sample"
        assert data["user"]["role"] == "user"
        assert data["user"]["isActive"] is True
        assert "id" in data["user"]
        assert "password" not in data["user"]

    @pytest.mark.asyncio
    async def test_register_normalizes_email(self, client: AsyncClient, sample_user_data: dict):
        """Emails are stored lowercase and trimmed."""
        sample_user_data["email"] = "  Mixed.Case@Example.COM "
        response = await client.post("/api/auth/register", json=sample_user_data)

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "mixed.case@example.com"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, sample_user_data: dict):
        """Test registration with duplicate email fails."""
        response1 = await client.post("/api/auth/register", json=sample_user_data)
        assert response1.status_code == 201

        # Same address in a different case is still a duplicate
        sample_user_data["email"] = sample_user_data["email"].upper()
        response2 = await client.post("/api/auth/register", json=sample_user_data)

        assert response2.status_code == 409
        error = response2.json()["error"]
        assert error["code"] == "ALREADY_EXISTS"
        assert error["message"] == "User with this email already exists"

    @pytest.mark.asyncio
    async def test_register_concurrent_same_email(
        self, client: AsyncClient, adapter, sample_user_data: dict
    ):
        """Only one of several simultaneous registrations for an email wins."""
        responses = await asyncio.gather(*(
            client.post("/api/auth/register", json=sample_user_data)
            for _ in range(5)
        ))

        assert sorted(r.status_code for r in responses) == [201, 409, 409, 409, 409]

        if adapter.name == "keyvalue":
            items = (await adapter.table.scan(limit=1000)).items
            profiles = [
                item for item in items
                if item["pk"].startswith(KeyPrefixes.USER) and item["sk"].startswith(KeyPrefixes.PROFILE)
            ]
            emails = [item for item in items if item["pk"].startswith(KeyPrefixes.EMAIL)]
            assert len(profiles) == 1
            assert len(emails) == 1
        else:
            async with adapter.session() as session:
                count = (await session.execute(select(func.count()).select_from(User))).scalar()
            assert count == 1

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, client: AsyncClient):
        """Test registration with invalid email fails."""
        data = {"email": "invalid-email", "password": "SecurePass123"}
        response = await client.post("/api/auth/register", json=data)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_register_weak_password(self, client: AsyncClient):
        """Test registration with weak password fails."""
        for password in ("weak", "alllowercase1", "NoDigitsHere"):
            data = {"email": "test@example.com", "password": password}
            response = await client.post("/api/auth/register", json=data)
            assert response.status_code == 400, password


class TestAuthLogin:
    """Tests for user login endpoint."""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, sample_user_data: dict):
        """Test successful login."""
        await client.post("/api/auth/register", json=sample_user_data)

        login_data = {
            "email": sample_user_data["email"],
            "password": sample_user_data["password"],
        }
        response = await client.post("/api/auth/login", json=login_data)

        assert response.status_code == 200
        data = response.json()

        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"]["email"] == sample_user_data["email"]
        assert data["user"]["lastLogin"] is not None

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, sample_user_data: dict):
        """Test login with wrong password fails."""
        await client.post("/api/auth/register", json=sample_user_data)

        login_data = {
            "email": sample_user_data["email"],
            "password": "WrongPassword123",
        }
        response = await client.post("/api/auth/login", json=login_data)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_nonexistent_user(self, client: AsyncClient):
        """Unknown email and wrong password are indistinguishable."""
        login_data = {
            "email": "nonexistent@example.com",
            "password": "SomePassword123",
        }
        response = await client.post("/api/auth/login", json=login_data)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"


class TestProfile:
    """Tests for the caller's own profile."""

    @pytest.mark.asyncio
    async def test_get_profile(self, auth_client):
        client, user_id, user_data = auth_client

        response = await client.get("/api/auth/profile")

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == user_id
        assert user["email"] == user_data["email"]

    @pytest.mark.asyncio
    async def test_profile_requires_token(self, client: AsyncClient):
        response = await client.get("/api/auth/profile")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_profile_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/auth/profile",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_profile_token_for_unknown_user(self, client: AsyncClient):
        token = create_access_token(subject="no-such-user")
        response = await client.get(
            "/api/auth/profile",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_profile(self, auth_client):
        client, user_id, user_data = auth_client

        response = await client.put(
            "/api/auth/profile",
            json={"firstName": "Renamed", "profileImage": "general/avatar.png"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Profile updated successfully"
        assert data["user"]["firstName"] == "Renamed"
        assert data["user"]["lastName"] == user_data["lastName"]
        assert data["user"]["profileImage"] == "general/avatar.png"
        assert data["user"]["email"] == user_data["email"]

    @pytest.mark.asyncio
    async def test_update_profile_ignores_email(self, auth_client):
        client, user_id, user_data = auth_client

        response = await client.put("/api/auth/profile", json={"email": "other@example.com"})

        assert response.status_code == 200
        assert response.json()["user"]["email"] == user_data["email"]

    @pytest.mark.asyncio
    async def test_update_password_then_login(self, auth_client):
        client, user_id, user_data = auth_client

        response = await client.put("/api/auth/profile", json={"password": "BrandNew456"})
        assert response.status_code == 200

        old = await client.post(
            "/api/auth/login",
            json={"email": user_data["email"], "password": user_data["password"]},
        )
        new = await client.post(
            "/api/auth/login",
            json={"email": user_data["email"], "password": "BrandNew456"},
        )
        assert old.status_code == 401
        assert new.status_code == 200


class TestInactiveAccount:
    """Deactivated accounts can read but not mutate."""

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_create_product(self, client: AsyncClient, sample_product_data):
        user_id, headers, _ = await register_user(client)
        await DatabaseFactory.get_adapter().users.update(user_id, {"is_active": False})

        profile = await client.get("/api/auth/profile", headers=headers)
        assert profile.status_code == 200
        assert profile.json()["user"]["isActive"] is False

        response = await client.post("/api/products", json=sample_product_data, headers=headers)
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Account is not active"
