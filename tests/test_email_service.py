"""Tests for the Resend send gateway"""

import asyncio
from unittest.mock import patch

import pytest

from mail_composer.domain.composer.schemas import EmailPayload
from mail_composer.email_service import ResendMailGateway, build_resend_params
from mail_composer.errors import DeliveryError


def make_payload(**overrides):
    data = {"to": ["a@example.com"], "subject": "Hi", "body": "<p>hi</p>"}
    data.update(overrides)
    return EmailPayload(**data)


class TestBuildResendParams:
    """Test payload to Resend parameter mapping"""

    def test_minimal(self):
        params = build_resend_params(make_payload(), "Team <team@example.com>")
        assert params == {
            "from": "Team <team@example.com>",
            "to": ["a@example.com"],
            "subject": "Hi",
            "html": "<p>hi</p>",
        }

    def test_optional_fields(self):
        payload = make_payload(cc=["c@example.com"], bcc=["b@example.com"], replyTo="r@example.com")
        params = build_resend_params(payload, "x@example.com")

        assert params["cc"] == ["c@example.com"]
        assert params["bcc"] == ["b@example.com"]
        assert params["reply_to"] == "r@example.com"


class TestResendMailGateway:
    """Test delivery and failure reporting"""

    def test_send_success(self):
        gateway = ResendMailGateway(api_key="re_test", from_address="x@example.com")
        with patch("mail_composer.email_service.resend.Emails.send") as mock_send:
            mock_send.return_value = {"id": "email_123"}
            result = asyncio.run(gateway.send_message(make_payload()))

        assert result == {"id": "email_123"}
        mock_send.assert_called_once()
        assert mock_send.call_args[0][0]["to"] == ["a@example.com"]

    def test_send_failure_raises_delivery_error(self):
        gateway = ResendMailGateway(api_key="re_test")
        with patch("mail_composer.email_service.resend.Emails.send") as mock_send:
            mock_send.side_effect = Exception("invalid token")
            with pytest.raises(DeliveryError, match="invalid token"):
                asyncio.run(gateway.send_message(make_payload()))

    def test_missing_api_key(self):
        gateway = ResendMailGateway(api_key=None)
        with patch("mail_composer.email_service.resend.Emails.send") as mock_send:
            with pytest.raises(DeliveryError, match="not configured"):
                asyncio.run(gateway.send_message(make_payload()))
            mock_send.assert_not_called()
