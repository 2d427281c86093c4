"""Tests for the /me profile endpoints."""

from httpx import AsyncClient


class TestProfile:
    async def test_get_own_profile(self, authed_client: AsyncClient):
        response = await authed_client.get("/me")
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "user@example.com"
        assert data["status"] == "ACTIVE"
        assert data["firstName"] is None
        assert "passwordHash" not in data
        assert "failedLoginAttempts" not in data

    async def test_update_names(self, authed_client: AsyncClient):
        response = await authed_client.patch("/me", json={"firstName": "Grace", "lastName": "Hopper"})
        assert response.status_code == 200
        assert response.json()["firstName"] == "Grace"
        assert response.json()["lastName"] == "Hopper"

        again = await authed_client.get("/me")
        assert again.json()["lastName"] == "Hopper"

    async def test_partial_update_keeps_other_field(self, authed_client: AsyncClient):
        await authed_client.patch("/me", json={"firstName": "Grace", "lastName": "Hopper"})
        response = await authed_client.patch("/me", json={"lastName": "Brewster"})
        assert response.json()["firstName"] == "Grace"
        assert response.json()["lastName"] == "Brewster"

    async def test_snake_case_keys_accepted(self, authed_client: AsyncClient):
        response = await authed_client.patch("/me", json={"first_name": "Grace"})
        assert response.status_code == 200
        assert response.json()["firstName"] == "Grace"

    async def test_empty_name_rejected(self, authed_client: AsyncClient):
        response = await authed_client.patch("/me", json={"firstName": ""})
        assert response.status_code == 400
        assert response.json()["field"] == "firstName"

    async def test_requires_authentication(self, client: AsyncClient):
        assert (await client.patch("/me", json={"firstName": "X"})).status_code == 401
