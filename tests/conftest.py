"""Shared fixtures for the composer tests"""

import pytest
from fastapi.testclient import TestClient

from mail_composer.email_service import get_mail_gateway
from mail_composer.main import app


class FakeGateway:
    """Records payloads instead of talking to Resend"""

    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send_message(self, payload):
        if self.error:
            raise self.error
        self.sent.append(payload)
        return {"id": f"fake-{len(self.sent)}"}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_mail_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
