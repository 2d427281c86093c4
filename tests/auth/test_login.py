"""Tests for login, failed-attempt blocking and the dev unblock endpoint."""

from httpx import AsyncClient
from sqlalchemy import select, update

from schedula.db.enums import UserStatus
from schedula.db.models import RefreshToken, User


async def _login(client: AsyncClient, email: str, password: str):
    return await client.post("/auth/login", json={"email": email, "password": password})


class TestLogin:
    async def test_login_returns_token_pair_and_user(self, client: AsyncClient, make_user):
        await make_user(email="l@example.com", firstName="Lin")
        response = await _login(client, "l@example.com", "Secure#Pass1")
        assert response.status_code == 200

        data = response.json()
        assert data["tokenType"] == "bearer"
        assert data["expiresIn"] == 900
        assert data["accessToken"]
        assert data["refreshToken"]
        assert data["user"]["email"] == "l@example.com"
        assert data["user"]["firstName"] == "Lin"
        assert data["user"]["status"] == "ACTIVE"
        assert data["user"]["lastLoginAt"] is not None
        assert "passwordHash" not in data["user"]

    async def test_login_stores_refresh_token_hash(self, client: AsyncClient, make_user, db_session):
        await make_user(email="l@example.com")
        refresh_token = (await _login(client, "l@example.com", "Secure#Pass1")).json()["refreshToken"]

        hashes = (await db_session.execute(select(RefreshToken.token_hash))).scalars().all()
        assert len(hashes) == 1
        assert hashes[0] != refresh_token

    async def test_unknown_email(self, client: AsyncClient, mock_email_service):
        response = await _login(client, "nobody@example.com", "Secure#Pass1")
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"
        assert "remainingAttempts" not in response.json()

    async def test_wrong_password_reports_remaining_attempts(self, client: AsyncClient, make_user):
        await make_user(email="l@example.com")
        response = await _login(client, "l@example.com", "Wrong#Pass1")
        assert response.status_code == 401
        assert response.json()["remainingAttempts"] == 9

        response = await _login(client, "l@example.com", "Wrong#Pass1")
        assert response.json()["remainingAttempts"] == 8

    async def test_success_resets_counter(self, client: AsyncClient, make_user, db_session):
        await make_user(email="l@example.com")
        for _ in range(3):
            await _login(client, "l@example.com", "Wrong#Pass1")
        assert (await _login(client, "l@example.com", "Secure#Pass1")).status_code == 200

        count = (await db_session.execute(select(User.failed_login_attempts))).scalar_one()
        assert count == 0
        response = await _login(client, "l@example.com", "Wrong#Pass1")
        assert response.json()["remainingAttempts"] == 9

    async def test_suspended_user_rejected(self, client: AsyncClient, make_user, db_session):
        await make_user(email="s@example.com")
        await db_session.execute(update(User).values(status=UserStatus.SUSPENDED))
        await db_session.commit()

        response = await _login(client, "s@example.com", "Secure#Pass1")
        assert response.status_code == 403
        assert response.json()["code"] == "Suspended"


class TestLockout:
    async def test_tenth_failure_blocks_account(self, client: AsyncClient, make_user, db_session):
        await make_user(email="b@example.com")

        for attempt in range(1, 10):
            response = await _login(client, "b@example.com", "Wrong#Pass1")
            assert response.status_code == 401
            assert response.json()["remainingAttempts"] == 10 - attempt

        response = await _login(client, "b@example.com", "Wrong#Pass1")
        assert response.status_code == 403
        assert response.json()["code"] == "Blocked"

        status = (await db_session.execute(select(User.status))).scalar_one()
        assert status == UserStatus.BLOCKED

    async def test_blocked_account_rejects_correct_password(self, client: AsyncClient, make_user):
        await make_user(email="b@example.com")
        for _ in range(10):
            await _login(client, "b@example.com", "Wrong#Pass1")

        response = await _login(client, "b@example.com", "Secure#Pass1")
        assert response.status_code == 403
        assert response.json()["code"] == "Blocked"

    async def test_dev_unblock_restores_login(self, client: AsyncClient, make_user, db_session):
        await make_user(email="b@example.com")
        for _ in range(10):
            await _login(client, "b@example.com", "Wrong#Pass1")

        response = await client.post("/auth/dev/unblock", json={"email": "b@example.com"})
        assert response.status_code == 200

        row = (await db_session.execute(select(User.status, User.failed_login_attempts))).one()
        assert row.status == UserStatus.ACTIVE
        assert row.failed_login_attempts == 0
        assert (await _login(client, "b@example.com", "Secure#Pass1")).status_code == 200

    async def test_dev_unblock_unknown_email(self, client: AsyncClient, mock_email_service):
        response = await client.post("/auth/dev/unblock", json={"email": "ghost@example.com"})
        assert response.status_code == 404
