"""Transactional email via Resend.

Each message kind is a small frozen dataclass with its own ``render()``.
Invite emails form a closed pair: ``ExistingUserInvite`` links to the accept
page, ``NewUserInvite`` links to the registration page.
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import resend

logger = logging.getLogger(__name__)

BRAND = "Photo Project"


class EmailDeliveryError(Exception):
    """The provider rejected or failed to accept a message."""


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


def _layout(title: str, body: str, cta_label: str | None = None, cta_url: str | None = None) -> str:
    button = ""
    if cta_url:
        button = f"""
        <p style="text-align: center; margin: 32px 0;">
          <a href="{html.escape(cta_url)}"
             style="background: #1f2937; color: #fff; padding: 12px 28px;
                    border-radius: 6px; text-decoration: none;">{html.escape(cta_label or "Open")}</a>
        </p>
        <p style="font-size: 12px; color: #6b7280;">Or paste this link into your browser:<br>
          {html.escape(cta_url)}</p>"""
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, Helvetica, Arial, sans-serif; color: #111827;">
  <div style="max-width: 560px; margin: 0 auto; padding: 24px;">
    <h2>{html.escape(title)}</h2>
    {body}{button}
    <p style="font-size: 12px; color: #9ca3af; margin-top: 40px;">{BRAND}</p>
  </div>
</body>
</html>"""


# ── Message kinds ────────────────────────────────────────────

@dataclass(frozen=True)
class VerificationEmail:
    email: str
    token: str

    def link(self, frontend_url: str) -> str:
        return f"{frontend_url}/verify-email?{urlencode({'email': self.email, 'token': self.token})}"

    def render(self, frontend_url: str) -> EmailMessage:
        body = (
            "<p>Thanks for signing up. Confirm your email address to finish "
            "creating your account. The link is valid for 24 hours.</p>"
        )
        return EmailMessage(
            to=self.email,
            subject=f"Verify your email - {BRAND}",
            html=_layout("Verify your email", body, "Verify email", self.link(frontend_url)),
        )


@dataclass(frozen=True)
class WelcomeEmail:
    email: str
    name: str
    role: str
    tenant_name: str | None = None

    def render(self, frontend_url: str) -> EmailMessage:
        workspace = (
            f"<p>Your workspace <strong>{html.escape(self.tenant_name)}</strong> is ready.</p>"
            if self.tenant_name else ""
        )
        body = (
            f"<p>Hi {html.escape(self.name)},</p>"
            f"<p>Your {html.escape(self.role.lower())} account is active.</p>{workspace}"
        )
        return EmailMessage(
            to=self.email,
            subject=f"Welcome to {BRAND}!",
            html=_layout(f"Welcome to {BRAND}", body, "Get started", f"{frontend_url}/login"),
        )


@dataclass(frozen=True)
class ExistingUserInvite:
    """Invite for an email that already has an account: accept after signing in."""

    email: str
    project_title: str
    sender_name: str
    token: str

    def link(self, frontend_url: str) -> str:
        return f"{frontend_url}/invite/accept?{urlencode({'token': self.token})}"

    def render(self, frontend_url: str) -> EmailMessage:
        body = (
            f"<p>{html.escape(self.sender_name)} invited you to the project "
            f"<strong>{html.escape(self.project_title)}</strong>.</p>"
            "<p>Sign in and accept the invite to get access. The invite expires in 7 days.</p>"
        )
        return EmailMessage(
            to=self.email,
            subject=f"You've been invited to {self.project_title}",
            html=_layout("Join the project", body, "Accept invite", self.link(frontend_url)),
        )


@dataclass(frozen=True)
class NewUserInvite:
    """Invite for an email with no account yet: register and join in one step."""

    email: str
    project_title: str
    sender_name: str
    token: str

    def link(self, frontend_url: str) -> str:
        return f"{frontend_url}/register?{urlencode({'token': self.token})}"

    def render(self, frontend_url: str) -> EmailMessage:
        body = (
            f"<p>{html.escape(self.sender_name)} invited you to the project "
            f"<strong>{html.escape(self.project_title)}</strong> on {BRAND}.</p>"
            "<p>Create your account to view it. The invite expires in 7 days.</p>"
        )
        return EmailMessage(
            to=self.email,
            subject=f"Join {self.project_title} on {BRAND}",
            html=_layout("Create your account", body, "Register and join", self.link(frontend_url)),
        )


InviteEmail = ExistingUserInvite | NewUserInvite
EmailTemplate = VerificationEmail | WelcomeEmail | ExistingUserInvite | NewUserInvite

# Sample data for the non-production preview endpoint
TEMPLATE_SAMPLES: dict[str, EmailTemplate] = {
    "verification": VerificationEmail(email="jane@example.com", token="sample-token"),
    "welcome": WelcomeEmail(
        email="jane@example.com", name="Jane Doe", role="ENTERPRISE", tenant_name="Jane Studio",
    ),
    "project-invite": ExistingUserInvite(
        email="client@example.com", project_title="Smith Wedding",
        sender_name="Jane Doe", token="sample-token",
    ),
    "project-invite-and-register": NewUserInvite(
        email="client@example.com", project_title="Smith Wedding",
        sender_name="Jane Doe", token="sample-token",
    ),
}


# ── Delivery ─────────────────────────────────────────────────

class EmailService:
    """Renders and delivers messages. Without an API key messages are only logged."""

    def __init__(self, api_key: str, sender: str, frontend_url: str) -> None:
        self.api_key = api_key
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")
        if api_key:
            resend.api_key = api_key

    def render(self, template: EmailTemplate) -> EmailMessage:
        return template.render(self.frontend_url)

    async def send(self, template: EmailTemplate) -> EmailMessage:
        message = self.render(template)
        if not self.api_key:
            logger.info("[dev] Email to %s: %s", message.to, message.subject)
            return message

        try:
            await asyncio.to_thread(
                resend.Emails.send,
                {
                    "from": self.sender,
                    "to": message.to,
                    "subject": message.subject,
                    "html": message.html,
                },
            )
        except Exception as exc:
            raise EmailDeliveryError(f"Failed to send '{message.subject}' to {message.to}") from exc
        logger.info("Sent email to %s: %s", message.to, message.subject)
        return message
