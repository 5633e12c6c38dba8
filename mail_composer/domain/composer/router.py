"""Composer router - FastAPI endpoints for drafting, previewing and sending email"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from ...email_service import get_mail_gateway
from ...errors import ValidationError
from .schemas import (
    TONE_LABELS,
    ComposerConfig,
    ComposerForm,
    DraftRequest,
    DraftResponse,
    NotificationsResponse,
    PreviewRequest,
    PreviewResponse,
    SendResponse,
    ToneOption,
)
from .service import ComposerService, validate_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Composer"])


def get_composer_config() -> ComposerConfig:
    return ComposerConfig()


def get_composer_service(
    request: Request,
    gateway=Depends(get_mail_gateway),
    config: ComposerConfig = Depends(get_composer_config),
) -> ComposerService:
    """Dependency injection for ComposerService"""
    state = request.app.state
    return ComposerService(gateway, state.notifications, state.send_guard, config)


@router.get("/tones", response_model=list[ToneOption])
async def list_tones():
    """Available tones in display order"""
    return [ToneOption(value=tone, label=label) for tone, label in TONE_LABELS.items()]


@router.post("/drafts", response_model=DraftResponse)
async def generate_draft(
    data: DraftRequest,
    service: ComposerService = Depends(get_composer_service),
):
    """Generate a templated HTML draft from an objective and tone"""
    return DraftResponse(body=service.generate_draft(data))


@router.post("/preview", response_model=PreviewResponse)
async def preview_email(
    data: PreviewRequest,
    service: ComposerService = Depends(get_composer_service),
):
    """Resolve the sender name and sanitize the body for on-screen preview"""
    return service.preview(data.subject, data.body)


@router.post("/send-email", response_model=SendResponse)
async def send_email(
    request: Request,
    x_composer_id: Optional[str] = Header(None),
    service: ComposerService = Depends(get_composer_service),
):
    """
    Validate a JSON payload and deliver it through the mail provider.

    Responds 400 with field issues when the payload is invalid and 500 when
    delivery fails.
    """
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"⚠️ Rejected non-JSON body on {request.url.path}: {e}")
        raise ValidationError({"body": ["Request body must be valid JSON"]}) from e

    payload = validate_payload(data)
    await service.send(payload, composer_id=x_composer_id)
    return SendResponse(ok=True)


@router.post("/compose/send", response_model=SendResponse)
async def send_composed_email(
    form: ComposerForm,
    x_composer_id: Optional[str] = Header(None),
    service: ComposerService = Depends(get_composer_service),
):
    """Send straight from raw composer fields (free-text recipient lists)"""
    await service.submit_form(form, composer_id=x_composer_id)
    return SendResponse(ok=True)


@router.get("/notifications", response_model=NotificationsResponse)
async def get_notifications(request: Request):
    """Messages that have not expired yet, oldest first"""
    return NotificationsResponse(messages=request.app.state.notifications.active())
