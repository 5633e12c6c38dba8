"""Composer domain schemas - Pydantic models for validation"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...config import SENDER_NAME
from ...shared.validators import is_valid_email


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    PERSUASIVE = "persuasive"
    APOLOGETIC = "apologetic"
    URGENT = "urgent"


TONE_LABELS: dict[Tone, str] = {
    Tone.PROFESSIONAL: "Professional",
    Tone.FRIENDLY: "Friendly",
    Tone.PERSUASIVE: "Persuasive",
    Tone.APOLOGETIC: "Apologetic",
    Tone.URGENT: "Urgent",
}


class ComposerConfig(BaseModel):
    """Presentation settings for the composer"""

    senderName: str = SENDER_NAME


class DraftRequest(BaseModel):
    """Inputs for generating a templated draft"""

    objective: str = ""
    tone: Tone = Tone.PROFESSIONAL
    context: Optional[str] = None


class DraftResponse(BaseModel):
    body: str


class ToneOption(BaseModel):
    value: Tone
    label: str


class EmailPayload(BaseModel):
    """
    Validated message handed to the mail gateway.

    Every address must be syntactically valid and there must be at least one
    recipient in `to`. Instances are frozen once validated.
    """

    model_config = ConfigDict(frozen=True)

    to: list[str]
    cc: list[str] = []
    bcc: list[str] = []
    subject: str
    body: str
    replyTo: Optional[str] = None

    @field_validator("to")
    @classmethod
    def validate_to(cls, v):
        if not v:
            raise ValueError("At least one recipient is required")
        return _check_addresses(v)

    @field_validator("cc", "bcc")
    @classmethod
    def validate_copies(cls, v):
        return _check_addresses(v)

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v):
        if not v.strip():
            raise ValueError("Subject is required")
        return v

    @field_validator("body")
    @classmethod
    def validate_body(cls, v):
        if not v.strip():
            raise ValueError("Body is required")
        return v

    @field_validator("replyTo")
    @classmethod
    def validate_reply_to(cls, v):
        if v is not None and not is_valid_email(v):
            raise ValueError(f"Invalid email address: {v}")
        return v


def _check_addresses(addresses: list[str]) -> list[str]:
    invalid = [address for address in addresses if not is_valid_email(address)]
    if invalid:
        raise ValueError(f"Invalid email address: {', '.join(invalid)}")
    return addresses


class ComposerForm(BaseModel):
    """Raw composer fields as typed by the user"""

    to: str = ""
    cc: str = ""
    bcc: str = ""
    subject: str = ""
    body: str = ""
    replyTo: str = ""


class SendResponse(BaseModel):
    ok: bool = True


class PreviewRequest(BaseModel):
    subject: str = ""
    body: str = ""


class PreviewResponse(BaseModel):
    subject: str
    html: str


class NotificationsResponse(BaseModel):
    messages: list[str]
