"""Tests for user endpoints and bearer authentication."""

from conftest import register_and_login
from httpx import AsyncClient


class TestRegistration:
    async def test_register(self, client: AsyncClient) -> None:
        """Registration returns the user without a password."""
        response = await client.post(
            "/users",
            json={
                "name": "Misty",
                "lastName": "Waterflower",
                "email": "misty@example.com",
                "password": "starmie123",
            },
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["lastName"] == "Waterflower"
        assert "password" not in user

    async def test_duplicate_email(self, client: AsyncClient) -> None:
        """A taken e-mail is a 409 naming the field."""
        await register_and_login(client)

        response = await client.post(
            "/users",
            json={
                "name": "Ash",
                "lastName": "Again",
                "email": "ash@example.com",
                "password": "pikachu123",
            },
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Email already exists"
        assert response.json()["field"] == "email"

    async def test_validation_errors(self, client: AsyncClient) -> None:
        """Bad input is a 400 listing each field."""
        response = await client.post(
            "/users",
            json={"name": "", "lastName": "X", "email": "not-an-email", "password": "short"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        fields = {e["field"] for e in body["errors"]}
        assert {"name", "email", "password"} <= fields


class TestLogin:
    async def test_login(self, client: AsyncClient) -> None:
        """Valid credentials return a token and the user."""
        await register_and_login(client)

        response = await client.post(
            "/users/login", json={"email": "ash@example.com", "password": "pikachu123"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["token"]
        assert body["user"]["email"] == "ash@example.com"

    async def test_bad_credentials(self, client: AsyncClient) -> None:
        """Wrong password is a 401."""
        await register_and_login(client)

        response = await client.post(
            "/users/login", json={"email": "ash@example.com", "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json() == {
            "message": "Invalid credentials",
            "internal_code": "INVALID_CREDENTIALS",
        }


class TestAuthentication:
    async def test_missing_token(self, client: AsyncClient) -> None:
        """No bearer token is a 401."""
        response = await client.get("/users")

        assert response.status_code == 401
        assert response.json()["message"] == "Access token required"

    async def test_invalid_token(self, client: AsyncClient) -> None:
        """A malformed token is a 403."""
        response = await client.get("/users", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid or expired token"

    async def test_logout_everywhere(self, client: AsyncClient, auth_headers: dict) -> None:
        """After logout the old token is rejected."""
        response = await client.post("/users/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["tokenVersion"] == 1

        response = await client.get("/users", headers=auth_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Session invalid, please log in again"


class TestUserListing:
    async def test_list_users(self, client: AsyncClient, auth_headers: dict) -> None:
        """Users are listed with pagination metadata."""
        await register_and_login(client, email="misty@example.com")

        response = await client.get("/users", params={"page": 1, "limit": 1}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["hasNext"] is True

    async def test_get_user_by_id(self, client: AsyncClient, auth_headers: dict) -> None:
        """A user can be fetched by id."""
        listing = await client.get("/users", headers=auth_headers)
        user_id = listing.json()["data"][0]["id"]

        response = await client.get(f"/users/{user_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "ash@example.com"

    async def test_get_missing_user(self, client: AsyncClient, auth_headers: dict) -> None:
        """An unknown id is a 404."""
        response = await client.get("/users/9999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["internal_code"] == "NOT_FOUND"
