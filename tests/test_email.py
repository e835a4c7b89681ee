"""Email templates, delivery through Resend, and the preview endpoints."""

import pytest
import resend
from httpx import AsyncClient

from photohub.core import config
from photohub.services.email import (
    TEMPLATE_SAMPLES,
    EmailDeliveryError,
    EmailService,
    ExistingUserInvite,
    NewUserInvite,
    VerificationEmail,
    WelcomeEmail,
)

FRONTEND = "https://app.example.com"


def test_invite_variants_link_to_different_pages():
    kwargs = {"email": "c@example.com", "project_title": "Smith Wedding", "sender_name": "Jane", "token": "tok123"}
    assert ExistingUserInvite(**kwargs).link(FRONTEND) == f"{FRONTEND}/invite/accept?token=tok123"
    assert NewUserInvite(**kwargs).link(FRONTEND) == f"{FRONTEND}/register?token=tok123"


def test_verification_link_carries_email_and_token():
    link = VerificationEmail(email="a+b@example.com", token="t0k").link(FRONTEND)
    assert link == f"{FRONTEND}/verify-email?email=a%2Bb%40example.com&token=t0k"


def test_render_escapes_user_content():
    message = NewUserInvite(
        email="c@example.com",
        project_title="<script>alert(1)</script>",
        sender_name="Jane & Co",
        token="tok",
    ).render(FRONTEND)
    assert "<script>" not in message.html
    assert "&lt;script&gt;" in message.html
    assert "Jane &amp; Co" in message.html
    assert message.to == "c@example.com"


def test_welcome_mentions_workspace_only_for_enterprise():
    with_tenant = WelcomeEmail("e@example.com", "Eve", "ENTERPRISE", "Eve Studio").render(FRONTEND)
    without = WelcomeEmail("c@example.com", "Cal", "CLIENT").render(FRONTEND)
    assert "Eve Studio" in with_tenant.html
    assert "workspace" not in without.html


@pytest.mark.asyncio
async def test_send_without_api_key_only_logs(monkeypatch):
    def explode(params):
        raise AssertionError("provider must not be called")

    monkeypatch.setattr(resend.Emails, "send", explode)
    service = EmailService(api_key="", sender="noreply@example.com", frontend_url=FRONTEND)
    message = await service.send(VerificationEmail(email="x@example.com", token="t"))
    assert message.subject.startswith("Verify your email")


@pytest.mark.asyncio
async def test_send_with_api_key_calls_resend(monkeypatch):
    sent = []
    monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "1"})
    service = EmailService(api_key="re_test", sender="noreply@example.com", frontend_url=FRONTEND)

    await service.send(VerificationEmail(email="x@example.com", token="t"))
    (params,) = sent
    assert params["from"] == "noreply@example.com"
    assert params["to"] == "x@example.com"
    assert "/verify-email?" in params["html"]


@pytest.mark.asyncio
async def test_provider_failure_raises_delivery_error(monkeypatch):
    def fail(params):
        raise RuntimeError("503 from provider")

    monkeypatch.setattr(resend.Emails, "send", fail)
    service = EmailService(api_key="re_test", sender="noreply@example.com", frontend_url=FRONTEND)
    with pytest.raises(EmailDeliveryError):
        await service.send(WelcomeEmail("w@example.com", "Wes", "CLIENT"))


@pytest.mark.asyncio
async def test_template_listing(client: AsyncClient):
    resp = await client.get("/v1/email/templates")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["templates"] == sorted(TEMPLATE_SAMPLES)
    assert data["count"] == 4


@pytest.mark.asyncio
async def test_template_preview(client: AsyncClient):
    resp = await client.get("/v1/email/preview/project-invite-and-register")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "/register?token=sample-token" in resp.text

    resp = await client.get("/v1/email/preview/nope")
    assert resp.status_code == 404
    assert "verification" in resp.json()["error"]["context"]["available"]


@pytest.mark.asyncio
async def test_preview_hidden_in_production(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(config.get_settings(), "environment", "production")
    assert (await client.get("/v1/email/templates")).status_code == 404
    assert (await client.get("/v1/email/preview/welcome")).status_code == 404
