"""
Email service with provider abstraction.

Supports console logging (default), SMTP and the Resend API.
Provider is selected via configuration. Delivery is best-effort: a message
that cannot be delivered is written to the log in full and the caller
carries on.
"""

from __future__ import annotations

import hashlib
import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING

import structlog

from schedula.config import get_settings
from schedula.email.templates import confirm_email, password_reset

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name: str = "base"

    @abstractmethod
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send an email. Returns True on success."""
        ...


class ConsoleProvider(BaseEmailProvider):
    """Write emails to the log instead of sending them (local development)."""

    name = "console"

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        logger.info("email_logged", to=to_email, subject=subject, body=text_body)
        return True


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send via SMTP."""
        import aiosmtplib

        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            tls_context = ssl.create_default_context() if self.use_tls else None
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=tls_context,
            )
            logger.info("email_sent", to=to_email, subject=subject, provider="smtp")
            return True
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider="smtp")
            return False


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    name = "resend"

    def __init__(self, api_key: str, from_address: str, from_name: str) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send via Resend HTTP API."""
        import httpx

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self.from_name} <{self.from_address}>",
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
                logger.info("email_sent", to=to_email, subject=subject, provider="resend")
                return True
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider="resend")
            return False


def _create_provider() -> BaseEmailProvider:
    """Create email provider based on configuration."""
    settings = get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "console":
        return ConsoleProvider()
    if provider_name == "smtp":
        if not (settings.smtp_host and settings.smtp_username and settings.smtp_password):
            logger.warning("smtp_not_configured", fallback="console")
            return ConsoleProvider()
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    """
    High-level email notifier for Schedula.

    Handles per-recipient rate limiting, template rendering and the
    log-instead-of-raise fallback.
    """

    RATE_LIMIT_WINDOW = 3600

    def __init__(
        self,
        provider: BaseEmailProvider | None = None,
        redis: Redis | None = None,
    ) -> None:
        self.provider = provider or _create_provider()
        self._redis = redis
        self.rate_limit_max = get_settings().email_rate_limit_per_hour

    async def _check_rate_limit(self, email: str) -> bool:
        """Check if we can send another email to this address."""
        if self._redis is None:
            return True
        key = f"email_rate:{hashlib.sha256(email.lower().encode()).hexdigest()}"
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        return count <= self.rate_limit_max

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        link: str | None = None,
        text_body: str | None = None,
    ) -> bool:
        """
        Deliver a message, best effort.

        Returns True if the provider accepted it. On rate limiting, provider
        failure or any unexpected error the full message is logged and False
        is returned; this never raises.
        """
        try:
            if not await self._check_rate_limit(to):
                logger.warning("email_rate_limited", to=to, subject=subject)
            elif await self.provider.send(to, subject, body, text_body or body):
                if link:
                    logger.info("email_link", to=to, link=link)
                return True
        except Exception:
            logger.exception("email_send_error", to=to, subject=subject)

        logger.warning(
            "email_fallback_log",
            to=to,
            subject=subject,
            body=body,
            link=link or "N/A",
        )
        return False

    async def send_email_confirmation(self, to: str, token: str) -> bool:
        """Send the account confirmation link for a signup token."""
        settings = get_settings()
        link = f"{settings.frontend_base_url}/confirm-email?token={token}"
        subject, html_body, text_body = confirm_email(link, settings.email_confirmation_token_ttl_hours)
        return await self.send(to, subject, html_body, link=link, text_body=text_body)

    async def send_password_reset(self, to: str, token: str) -> bool:
        """Send the password reset link for a reset token."""
        settings = get_settings()
        link = f"{settings.frontend_base_url}/reset-password?token={token}"
        subject, html_body, text_body = password_reset(link, settings.password_reset_token_ttl_minutes)
        return await self.send(to, subject, html_body, link=link, text_body=text_body)


# Module-level singleton
_email_service: EmailService | None = None


def get_email_service(redis: Redis | None = None) -> EmailService:
    """Get or create the email service singleton."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService(redis=redis)
    return _email_service


def reset_email_service() -> None:
    """Reset the email service singleton (for testing)."""
    global _email_service  # noqa: PLW0603
    _email_service = None
