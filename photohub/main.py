"""FastAPI application entrypoint."""

import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.middleware import SlowAPIMiddleware

from photohub.api.errors import register_exception_handlers
from photohub.api.v1 import v1_router
from photohub.core.config import get_settings
from photohub.core.database import init_db
from photohub.core.logging import configure_logging
from photohub.core.rate_limit import limiter
from photohub.services.email import EmailService
from photohub.services.storage import build_storage

logger = logging.getLogger(__name__)
_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(_settings.log_level)
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    app.state.email_service = EmailService(
        api_key=_settings.resend_api_key,
        sender=_settings.email_from,
        frontend_url=_settings.frontend_url,
    )
    app.state.storage = build_storage(_settings)
    logger.info(
        "PhotoHub started (environment=%s, storage=%s)",
        _settings.environment, _settings.storage_backend,
    )
    yield


app = FastAPI(
    title="PhotoHub",
    version="0.1.0",
    description="Multi-tenant backend for photography projects, albums and client access",
    lifespan=lifespan,
)

# ── Rate limiting ────────────────────────────────────────────
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# ── CORS ─────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    incoming = request.headers.get("X-Request-ID")
    try:
        request_id = str(uuid.UUID(incoming)) if incoming else str(uuid.uuid4())
    except ValueError:
        request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Errors ───────────────────────────────────────────────────
register_exception_handlers(app)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok", "environment": _settings.environment}


# ── Local media (development storage backend) ────────────────
if _settings.storage_backend == "local":
    app.mount(
        "/media",
        StaticFiles(directory=_settings.local_storage_path, check_dir=False),
        name="media",
    )
