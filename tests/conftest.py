"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.auth.jwt import reset_keys
from schedula.config import get_settings
from schedula.database import close_db, get_engine, get_session, init_db
from schedula.db.base import Base
from schedula.email.service import reset_email_service
from schedula.main import create_app

DEFAULT_PASSWORD = "Secure#Pass1"


@pytest.fixture(scope="session", autouse=True)
def _jwt_keys(tmp_path_factory: pytest.TempPathFactory) -> tuple[str, str]:
    """Throwaway RSA key pair for the whole test session."""
    key_dir: Path = tmp_path_factory.mktemp("jwt_keys")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path = key_dir / "jwt_private.pem"
    public_path = key_dir / "jwt_public.pem"
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    os.environ["SCHEDULA_JWT_PRIVATE_KEY_PATH"] = str(private_path)
    os.environ["SCHEDULA_JWT_PUBLIC_KEY_PATH"] = str(public_path)
    get_settings.cache_clear()
    reset_keys()
    return str(private_path), str(public_path)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Fresh SQLite file per test, no Redis, development mode (dev routes mounted)."""
    monkeypatch.setenv("SCHEDULA_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'schedula.db'}")
    monkeypatch.setenv("SCHEDULA_REDIS_URL", "")
    monkeypatch.setenv("SCHEDULA_ENVIRONMENT", "development")
    monkeypatch.setenv("SCHEDULA_LOG_FORMAT", "console")
    monkeypatch.setenv("SCHEDULA_EMAIL_PROVIDER", "console")
    get_settings.cache_clear()
    reset_email_service()
    yield
    get_settings.cache_clear()
    reset_email_service()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Initialise the engine and create the schema from ORM metadata."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test setup and assertions."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def mock_email_service(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace the email service used by the auth router; raw tokens are read from the calls."""
    mock_service = MagicMock()
    mock_service.send_email_confirmation = AsyncMock(return_value=True)
    mock_service.send_password_reset = AsyncMock(return_value=True)

    monkeypatch.setattr("schedula.auth.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


@pytest.fixture
def make_user(
    client: AsyncClient, mock_email_service: MagicMock
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Factory: sign up (and by default confirm) a user through the API."""

    async def _make_user(
        email: str = "user@example.com",
        password: str = DEFAULT_PASSWORD,
        confirm: bool = True,
        **profile: str,
    ) -> dict[str, Any]:
        response = await client.post("/auth/signup", json={"email": email, "password": password, **profile})
        assert response.status_code == 201, response.text
        token = mock_email_service.send_email_confirmation.call_args.args[1]
        if confirm:
            confirmed = await client.post("/auth/confirm-email", json={"token": token})
            assert confirmed.status_code == 200, confirmed.text
        return {"email": email, "password": password, "confirmation_token": token}

    return _make_user


@pytest.fixture
def login_as(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Factory: log in and return the token response plus a ready Authorization header."""

    async def _login_as(email: str, password: str = DEFAULT_PASSWORD) -> dict[str, Any]:
        response = await client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        data = response.json()
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data

    return _login_as


@pytest_asyncio.fixture
async def authed_client(
    client: AsyncClient,
    make_user: Callable[..., Awaitable[dict[str, Any]]],
    login_as: Callable[..., Awaitable[dict[str, Any]]],
) -> AsyncClient:
    """Client authenticated as a confirmed user (user@example.com)."""
    user = await make_user()
    session = await login_as(user["email"], user["password"])
    client.headers.update(session["headers"])
    return client
