"""Tests for forgot-password and reset-password with reuse prevention."""

from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy import func, select, update

from schedula.auth.router import FORGOT_PASSWORD_MESSAGE
from schedula.db.enums import EmailTokenType
from schedula.db.models import EmailToken, PasswordHistory
from schedula.db.types import utcnow


async def _reset_token(client: AsyncClient, mock_email_service, email: str) -> str:
    response = await client.post("/auth/forgot-password", json={"email": email})
    assert response.status_code == 200
    return mock_email_service.send_password_reset.call_args.args[1]


async def _reset(client: AsyncClient, token: str, new_password: str):
    return await client.post("/auth/reset-password", json={"token": token, "newPassword": new_password})


class TestForgotPassword:
    async def test_known_email_sends_reset_link(self, client: AsyncClient, make_user, mock_email_service, db_session):
        await make_user(email="f@example.com")
        response = await client.post("/auth/forgot-password", json={"email": "f@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE

        mock_email_service.send_password_reset.assert_awaited_once()
        token_type = (await db_session.execute(
            select(EmailToken.type).where(EmailToken.type == EmailTokenType.RESET_PASSWORD)
        )).scalar_one()
        assert token_type == EmailTokenType.RESET_PASSWORD

    async def test_unknown_email_gets_same_answer(self, client: AsyncClient, mock_email_service):
        response = await client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
        mock_email_service.send_password_reset.assert_not_awaited()

    async def test_reset_token_expires_after_an_hour(self, client: AsyncClient, make_user, mock_email_service, db_session):
        await make_user(email="f@example.com")
        await client.post("/auth/forgot-password", json={"email": "f@example.com"})
        expires_at = (await db_session.execute(
            select(EmailToken.expires_at).where(EmailToken.type == EmailTokenType.RESET_PASSWORD)
        )).scalar_one()
        remaining = expires_at - utcnow()
        assert timedelta(minutes=59) < remaining <= timedelta(minutes=60)


class TestResetPassword:
    async def test_reset_changes_password(self, client: AsyncClient, make_user, mock_email_service):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")

        response = await _reset(client, token, "Another#Pass2")
        assert response.status_code == 200

        old = await client.post("/auth/login", json={"email": "r@example.com", "password": "Secure#Pass1"})
        assert old.status_code == 401
        new = await client.post("/auth/login", json={"email": "r@example.com", "password": "Another#Pass2"})
        assert new.status_code == 200

    async def test_reset_appends_history(self, client: AsyncClient, make_user, mock_email_service, db_session):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")
        await _reset(client, token, "Another#Pass2")

        count = (await db_session.execute(select(func.count(PasswordHistory.id)))).scalar_one()
        assert count == 2

    async def test_token_is_single_use(self, client: AsyncClient, make_user, mock_email_service):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")
        assert (await _reset(client, token, "Another#Pass2")).status_code == 200

        response = await _reset(client, token, "Third#Pass3")
        assert response.status_code == 400
        assert response.json()["detail"] == "Token already used"

    async def test_expired_token_rejected(self, client: AsyncClient, make_user, mock_email_service, db_session):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")
        await db_session.execute(
            update(EmailToken)
            .where(EmailToken.type == EmailTokenType.RESET_PASSWORD)
            .values(expires_at=utcnow() - timedelta(seconds=1))
        )
        await db_session.commit()

        response = await _reset(client, token, "Another#Pass2")
        assert response.status_code == 400
        assert response.json()["detail"] == "Token expired"

    async def test_confirmation_token_cannot_reset(self, client: AsyncClient, make_user):
        user = await make_user(email="r@example.com", confirm=False)
        response = await _reset(client, user["confirmation_token"], "Another#Pass2")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid token type"

    async def test_weak_password_keeps_token_usable(self, client: AsyncClient, make_user, mock_email_service):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")

        response = await _reset(client, token, "weak")
        assert response.status_code == 400
        assert (await _reset(client, token, "Another#Pass2")).status_code == 200

    async def test_current_password_cannot_be_reused(self, client: AsyncClient, make_user, mock_email_service):
        await make_user(email="r@example.com")
        token = await _reset_token(client, mock_email_service, "r@example.com")

        response = await _reset(client, token, "Secure#Pass1")
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot reuse any of your last 5 passwords"
        assert response.json()["code"] == "PasswordReused"

    async def test_reuse_window_is_five_passwords(self, client: AsyncClient, make_user, mock_email_service):
        """P0 (signup) then P1..P5 via resets: P0 falls out of the window, P1 does not."""
        await make_user(email="r@example.com", password="Password#0")
        for generation in range(1, 6):
            token = await _reset_token(client, mock_email_service, "r@example.com")
            response = await _reset(client, token, f"Password#{generation}")
            assert response.status_code == 200, response.text

        token = await _reset_token(client, mock_email_service, "r@example.com")
        response = await _reset(client, token, "Password#1")
        assert response.status_code == 400
        assert response.json()["code"] == "PasswordReused"

        response = await _reset(client, token, "Password#0")
        assert response.status_code == 200
