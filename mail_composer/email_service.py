"""
Email delivery through Resend

The composer hands over a validated payload and gets back the provider
response or a DeliveryError. Nothing is retried here.
"""

import logging
from typing import Optional

import resend

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .domain.composer.schemas import EmailPayload
from .errors import DeliveryError

logger = logging.getLogger(__name__)


def build_resend_params(payload: EmailPayload, from_address: str) -> dict:
    """Map a payload onto the Resend send parameters"""
    params = {
        "from": from_address,
        "to": list(payload.to),
        "subject": payload.subject,
        "html": payload.body,
    }
    if payload.cc:
        params["cc"] = list(payload.cc)
    if payload.bcc:
        params["bcc"] = list(payload.bcc)
    if payload.replyTo:
        params["reply_to"] = payload.replyTo
    return params


class ResendMailGateway:
    """Send gateway backed by the Resend API"""

    def __init__(self, api_key: Optional[str] = RESEND_API_KEY, from_address: str = EMAIL_FROM_ADDRESS):
        self.api_key = api_key
        self.from_address = from_address

    async def send_message(self, payload: EmailPayload) -> dict:
        """
        Send a validated payload

        Args:
            payload: Validated email payload

        Returns:
            Resend response dict

        Raises:
            DeliveryError: If the service is not configured or Resend fails
        """
        if not self.api_key:
            logger.error("❌ No email service configured - RESEND_API_KEY missing")
            raise DeliveryError("Email service not configured")

        resend.api_key = self.api_key
        recipients = len(payload.to) + len(payload.cc) + len(payload.bcc)

        try:
            logger.info(f"📧 Sending email via Resend to {recipients} recipient(s)")
            response = resend.Emails.send(build_resend_params(payload, self.from_address))
            logger.info(f"✅ Email sent successfully via Resend: {response}")
            return response
        except Exception as e:
            logger.error(f"❌ Email send error to {payload.to}: {e}")
            raise DeliveryError(f"Failed to send email: {str(e)}", cause=e) from e


def get_mail_gateway() -> ResendMailGateway:
    """Dependency injection for the mail gateway"""
    return ResendMailGateway()
