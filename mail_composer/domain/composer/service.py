"""Composer service - draft, preview, validation and send orchestration"""

import logging
import re
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Iterable, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from ...errors import ComposerError, DeliveryError, SendInProgressError, UnexpectedError, ValidationError
from ...notifications import NotificationQueue
from ...shared.validators import parse_addresses
from ...utils.sanitization import sanitize_html
from .drafts import SENDER_NAME_TOKEN, build_draft
from .schemas import ComposerConfig, ComposerForm, DraftRequest, EmailPayload, PreviewResponse

logger = logging.getLogger(__name__)

_SENDER_NAME_PATTERN = re.compile(re.escape(SENDER_NAME_TOKEN), re.IGNORECASE)

EMPTY_PREVIEW = "<p>—</p>"
EMPTY_SUBJECT = "—"


class MailGateway(Protocol):
    async def send_message(self, payload: EmailPayload) -> dict: ...


# ============================================================================
# VALIDATION
# ============================================================================


def issues_from_errors(errors: Iterable[dict], skip: tuple[str, ...] = ()) -> dict[str, list[str]]:
    """
    Group pydantic errors by top-level field.

    Args:
        errors: Output of ValidationError.errors()
        skip: Leading location parts to ignore (e.g. "body" for request bodies)

    Returns:
        Mapping of field name to human-readable messages
    """
    issues: dict[str, list[str]] = {}
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in skip]
        # Malformed JSON is reported at a character offset, not a field
        field = loc[0] if loc and isinstance(loc[0], str) else "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        messages = issues.setdefault(field, [])
        if message not in messages:
            messages.append(message)
    return issues


def validate_payload(data: Any) -> EmailPayload:
    """
    Validate a wire payload ({to: [...], cc?, bcc?, subject, body, replyTo?})

    Raises:
        ValidationError: With field-keyed problem descriptions
    """
    if not isinstance(data, dict):
        raise ValidationError({"body": ["Request body must be a JSON object"]})

    try:
        return EmailPayload.model_validate(data)
    except PydanticValidationError as e:
        issues = issues_from_errors(e.errors())
        logger.warning(f"⚠️ Payload validation failed for fields: {sorted(issues)}")
        raise ValidationError(issues) from e


def validate_form(form: ComposerForm) -> EmailPayload:
    """Normalize raw composer fields and validate them as a payload"""
    reply_to = form.replyTo.strip()
    return validate_payload(
        {
            "to": parse_addresses(form.to),
            "cc": parse_addresses(form.cc),
            "bcc": parse_addresses(form.bcc),
            "subject": form.subject,
            "body": form.body,
            "replyTo": reply_to or None,
        }
    )


def to_wire(payload: EmailPayload) -> dict:
    """Serialize a payload to the /api/send-email request format"""
    return payload.model_dump(exclude_none=True)


# ============================================================================
# PREVIEW
# ============================================================================


def resolve_sender_name(body: str, config: ComposerConfig) -> str:
    """Replace every sender name token with the configured display name"""
    return _SENDER_NAME_PATTERN.sub(lambda _: config.senderName, body)


def render_preview(subject: str, body: str, config: ComposerConfig) -> PreviewResponse:
    html = sanitize_html(resolve_sender_name(body, config))
    return PreviewResponse(subject=subject or EMPTY_SUBJECT, html=html or EMPTY_PREVIEW)


# ============================================================================
# SEND GUARD
# ============================================================================


class SendGuard:
    """Allows one outstanding send per composer instance"""

    def __init__(self):
        self._in_flight: set[str] = set()

    def is_sending(self, composer_id: str) -> bool:
        return composer_id in self._in_flight

    @asynccontextmanager
    async def hold(self, composer_id: Optional[str]):
        if composer_id is None:
            yield
            return

        if composer_id in self._in_flight:
            raise SendInProgressError(composer_id)

        self._in_flight.add(composer_id)
        try:
            yield
        finally:
            self._in_flight.discard(composer_id)

    def clear(self) -> None:
        self._in_flight.clear()


# ============================================================================
# SERVICE
# ============================================================================


class ComposerService:
    """Service layer for the composer"""

    def __init__(
        self,
        gateway: MailGateway,
        notifications: NotificationQueue,
        guard: SendGuard,
        config: Optional[ComposerConfig] = None,
    ):
        self.gateway = gateway
        self.notifications = notifications
        self.guard = guard
        self.config = config or ComposerConfig()

    def generate_draft(self, request: DraftRequest, today: Optional[date] = None) -> str:
        body = build_draft(request, today=today).strip()
        self.notifications.push("Draft generated")
        return body

    def preview(self, subject: str, body: str) -> PreviewResponse:
        return render_preview(subject, body, self.config)

    async def send(self, payload: EmailPayload, composer_id: Optional[str] = None) -> dict:
        """
        Deliver a validated payload through the gateway.

        The body is sent exactly as validated. Failures are reported once
        and never retried.
        """
        if SENDER_NAME_TOKEN.lower() in payload.body.lower():
            logger.warning(f"⚠️ Sending body with unresolved {SENDER_NAME_TOKEN} placeholder")

        async with self.guard.hold(composer_id):
            try:
                result = await self.gateway.send_message(payload)
            except ComposerError as e:
                self.notifications.push(e.message)
                raise
            except Exception as e:
                logger.error(f"❌ Unexpected error while sending email: {e}")
                self.notifications.push(DeliveryError.message)
                raise UnexpectedError(str(e), message=DeliveryError.message) from e

        self.notifications.push("Email dispatched")
        return result

    async def submit_form(self, form: ComposerForm, composer_id: Optional[str] = None) -> dict:
        """Validate raw composer fields and send them"""
        try:
            payload = validate_form(form)
        except ValidationError as e:
            self.notifications.push(str(e))
            raise
        return await self.send(payload, composer_id=composer_id)
