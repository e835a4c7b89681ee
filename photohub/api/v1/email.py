"""Email template listing and HTML preview (not available in production)."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from photohub.api.deps import Email
from photohub.api.responses import Envelope, ok
from photohub.core.config import get_settings
from photohub.core.errors import ErrorContext, NotFoundError
from photohub.services.email import TEMPLATE_SAMPLES

router = APIRouter(prefix="/email", tags=["email"])


def _ensure_not_production() -> None:
    if get_settings().is_production:
        raise NotFoundError("Email preview not available in production")


@router.get("/templates", response_model=Envelope[dict])
async def list_templates() -> Envelope:
    _ensure_not_production()
    templates = sorted(TEMPLATE_SAMPLES)
    return ok({"templates": templates, "count": len(templates)}, "Available email templates")


@router.get("/preview/{template}", response_class=HTMLResponse)
async def preview_template(template: str, email_service: Email) -> HTMLResponse:
    _ensure_not_production()
    sample = TEMPLATE_SAMPLES.get(template)
    if sample is None:
        raise NotFoundError(
            f"Template '{template}' not found",
            ErrorContext(field="template", available=sorted(TEMPLATE_SAMPLES)),
        )
    return HTMLResponse(email_service.render(sample).html)
