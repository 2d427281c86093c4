"""
Email templates for Schedula.

All templates use inline CSS for maximum email client compatibility.
Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

APP_NAME = "Schedula"

# Color constants
BG_PAGE = "#F4F6FA"
BG_CARD = "#FFFFFF"
ACCENT = "#3B5BDB"
TEXT_PRIMARY = "#1F2933"
TEXT_SECONDARY = "#616E7C"
BORDER = "#E4E7EB"


def _base_layout(content: str) -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{APP_NAME}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px;">
                            <span style="font-size: 22px; font-weight: 700; color: {ACCENT};">{APP_NAME}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 40px 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                This email was sent by {APP_NAME}.<br>
                                If you didn't expect this email, you can safely ignore it.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    return f"""\
<table role="presentation" cellspacing="0" cellpadding="0" border="0" style="margin: 28px auto;">
    <tr>
        <td align="center" style="background-color: {ACCENT}; border-radius: 8px;">
            <a href="{url}" target="_blank" style="display: inline-block; padding: 14px 32px; color: #FFFFFF; font-size: 16px; font-weight: 600; text-decoration: none; border-radius: 8px;">
                {label}
            </a>
        </td>
    </tr>
</table>"""


def _link_fallback(url: str) -> str:
    return f"""\
<hr style="border: none; border-top: 1px solid {BORDER}; margin: 24px 0;">
<p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
    If the button doesn't work, copy and paste this URL:<br>
    <a href="{url}" style="color: {ACCENT}; word-break: break-all;">{url}</a>
</p>"""


def confirm_email(confirm_url: str, expires_hours: int = 24) -> tuple[str, str, str]:
    """
    Account confirmation email sent after signup.

    Returns:
        (subject, html_body, text_body)
    """
    subject = f"Confirm your {APP_NAME} account"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 24px; font-weight: 700; margin: 0 0 16px 0;">Welcome to {APP_NAME}!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    Please confirm your email address to start planning your activities.
</p>
{_button(confirm_url, "Confirm Email Address")}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    This link expires in <strong style="color: {TEXT_PRIMARY};">{expires_hours} hours</strong>.
</p>
{_link_fallback(confirm_url)}"""
    text_body = (
        f"Welcome to {APP_NAME}!\n\n"
        f"Please confirm your email address by visiting this link:\n\n{confirm_url}\n\n"
        f"This link expires in {expires_hours} hours.\n\n"
        f"If you did not create an account, please ignore this email.\n\n"
        f"-- The {APP_NAME} Team"
    )
    return subject, _base_layout(content), text_body


def password_reset(reset_url: str, expires_minutes: int = 60) -> tuple[str, str, str]:
    """
    Password reset email.

    Returns:
        (subject, html_body, text_body)
    """
    subject = f"Reset your {APP_NAME} password"
    expires_text = "1 hour" if expires_minutes == 60 else f"{expires_minutes} minutes"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 24px; font-weight: 700; margin: 0 0 16px 0;">Password reset request</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    You requested to reset your password. Click the button below to choose a new one.
</p>
{_button(reset_url, "Reset Password")}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    This link expires in <strong style="color: {TEXT_PRIMARY};">{expires_text}</strong>.
    If you didn't request this, your password will remain unchanged.
</p>
{_link_fallback(reset_url)}"""
    text_body = (
        f"Password reset request\n\n"
        f"Click this link to set a new password:\n\n{reset_url}\n\n"
        f"This link expires in {expires_text}.\n\n"
        f"If you didn't request a password reset, please ignore this email.\n\n"
        f"-- The {APP_NAME} Team"
    )
    return subject, _base_layout(content), text_body
