"""Shared fixtures: in-memory SQLite, fake email and storage, API client."""

import os
import re

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RESEND_API_KEY", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import photohub.models  # noqa: F401  ensure all tables are registered
from photohub.api.deps import get_email_service, get_storage
from photohub.core.database import get_session
from photohub.core.rate_limit import limiter
from photohub.main import app
from photohub.services.email import EmailDeliveryError, EmailMessage, EmailService
from photohub.services.storage import Storage

_TOKEN_RE = re.compile(r"token=([\w\-.]+)")


# ── Fakes ────────────────────────────────────────────────────

class FakeEmailService(EmailService):
    """Renders like the real service but keeps messages in memory."""

    def __init__(self) -> None:
        super().__init__(api_key="", sender="test@photohub.local", frontend_url="http://app.test")
        self.outbox: list[EmailMessage] = []
        self.fail = False

    async def send(self, template) -> EmailMessage:
        if self.fail:
            raise EmailDeliveryError("provider down")
        message = self.render(template)
        self.outbox.append(message)
        return message

    def last_to(self, email: str) -> EmailMessage:
        for message in reversed(self.outbox):
            if message.to == email:
                return message
        raise AssertionError(f"No email sent to {email}")

    def token_for(self, email: str) -> str:
        match = _TOKEN_RE.search(self.last_to(email).html)
        assert match, "email carries no token link"
        return match.group(1)


class FakeStorage(Storage):
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.fail_delete = False

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.blobs[key] = data
        return f"http://media.test/{key}"

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise RuntimeError("storage offline")
        self.blobs.pop(key, None)

    async def signed_url(self, key: str, expires_in: int) -> str:
        return f"http://media.test/{key}?expires={expires_in}"


# ── Database ─────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


# ── Collaborators ────────────────────────────────────────────

@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest_asyncio.fixture
async def client(session, email_service, storage):
    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_storage] = lambda: storage
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Account helpers ──────────────────────────────────────────

@pytest.fixture
def signup(client: AsyncClient, email_service: FakeEmailService):
    """Factory running check-email -> verify-email; returns the auth payload plus headers."""

    async def _signup(
        email: str,
        name: str = "Jane Doe",
        role: str = "ENTERPRISE",
        password: str | None = "password1234",
    ) -> dict:
        resp = await client.post("/v1/auth/check-email", json={"email": email})
        assert resp.status_code == 200, resp.text
        token = email_service.token_for(email)

        body = {"email": email, "name": name, "role": role, "verificationToken": token}
        if password is not None:
            body["password"] = password
        resp = await client.post("/v1/auth/verify-email", json=body)
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data

    return _signup


@pytest.fixture
def create_project(client: AsyncClient):
    async def _create(owner: dict, title: str = "Smith Wedding", **extra) -> dict:
        resp = await client.post(
            "/v1/projects", json={"title": title, **extra}, headers=owner["headers"],
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
def invite_client(client: AsyncClient, email_service: FakeEmailService):
    """Factory: invite a new email to a project and register it through the invite link."""

    async def _invite(
        owner: dict,
        project_id: str,
        email: str,
        accessibility: str = "VIEW_ONLY",
        name: str = "Client Person",
        password: str = "clientpass1",
    ) -> dict:
        resp = await client.post(
            "/v1/invites/add-project-customer",
            json={"projectId": project_id, "email": email, "accessibility": accessibility},
            headers=owner["headers"],
        )
        assert resp.status_code == 201, resp.text
        token = email_service.token_for(email)

        resp = await client.post(
            "/v1/invites/add-project-customer-and-register",
            json={"token": token, "name": name, "password": password},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data

    return _invite
