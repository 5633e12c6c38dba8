"""End-to-end tests for the composer HTTP API"""

import asyncio
import threading

from mail_composer.domain.composer.drafts import SENDER_NAME_TOKEN
from mail_composer.email_service import get_mail_gateway
from mail_composer.errors import DeliveryError
from mail_composer.main import app
from tests.conftest import FakeGateway

VALID = {"to": ["a@example.com"], "subject": "Hi", "body": "<p>hi</p>"}


class BlockingGateway:
    """Holds every send open until released from the test thread"""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self.sent = []

    async def send_message(self, payload):
        self.started.set()
        while not self.release.is_set():
            await asyncio.sleep(0.01)
        self.sent.append(payload)
        return {"id": "blocked"}


class TestSendEmail:
    """Test POST /api/send-email"""

    def test_success(self, client, gateway):
        response = client.post("/api/send-email", json=VALID)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert gateway.sent[0].to == ["a@example.com"]

    def test_gateway_throws(self, client):
        app.dependency_overrides[get_mail_gateway] = lambda: FakeGateway(error=RuntimeError("boom"))
        response = client.post("/api/send-email", json=VALID)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to send email"}

    def test_delivery_error(self, client):
        app.dependency_overrides[get_mail_gateway] = lambda: FakeGateway(
            error=DeliveryError("Failed to send email: quota")
        )
        response = client.post("/api/send-email", json=VALID)

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to send email"}

    def test_validation_failure(self, client, gateway):
        response = client.post(
            "/api/send-email",
            json={"to": [], "cc": ["bad"], "subject": "", "body": "x", "replyTo": "nope"},
        )
        data = response.json()

        assert response.status_code == 400
        assert data["message"] == "Invalid payload"
        assert set(data["issues"]) == {"to", "cc", "subject", "replyTo"}
        assert gateway.sent == []

    def test_invalid_json(self, client):
        response = client.post(
            "/api/send-email", content="not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert "body" in response.json()["issues"]

    def test_concurrent_send_same_composer(self, client):
        """Test a second send for a busy composer id gets 409"""
        blocking = BlockingGateway()
        app.dependency_overrides[get_mail_gateway] = lambda: blocking
        headers = {"X-Composer-Id": "composer-1"}
        responses = []

        first = threading.Thread(
            target=lambda: responses.append(client.post("/api/send-email", json=VALID, headers=headers))
        )
        first.start()
        try:
            assert blocking.started.wait(timeout=5)
            second = client.post("/api/send-email", json=VALID, headers=headers)
        finally:
            blocking.release.set()
            first.join(timeout=5)

        assert second.status_code == 409
        assert second.json() == {"message": "A send is already in progress for this composer"}
        assert responses[0].status_code == 200
        assert len(blocking.sent) == 1

    def test_unknown_fields_ignored(self, client, gateway):
        response = client.post("/api/send-email", json={**VALID, "priority": "high"})
        assert response.status_code == 200

    def test_body_sent_verbatim(self, client, gateway):
        body = f"<p>Thanks,<br/>{SENDER_NAME_TOKEN}</p>"
        client.post("/api/send-email", json={**VALID, "body": body})
        assert gateway.sent[0].body == body


class TestComposeSend:
    """Test POST /api/compose/send with raw form fields"""

    def test_free_text_recipients(self, client, gateway):
        response = client.post(
            "/api/compose/send",
            json={"to": "a@example.com; b@example.com", "subject": "Hi", "body": "x", "replyTo": " "},
        )
        assert response.status_code == 200
        assert gateway.sent[0].to == ["a@example.com", "b@example.com"]
        assert gateway.sent[0].replyTo is None

    def test_invalid_form(self, client):
        response = client.post("/api/compose/send", json={"to": "", "subject": "Hi", "body": "x"})
        assert response.status_code == 400
        assert "to" in response.json()["issues"]


class TestDraftsAndPreview:
    """Test draft generation, preview and notifications"""

    def test_generate_draft(self, client):
        response = client.post(
            "/api/drafts",
            json={"objective": "Discuss Q3 roadmap\nReview budget", "tone": "persuasive"},
        )
        body = response.json()["body"]

        assert response.status_code == 200
        assert "Why this matters now:</strong> Discuss Q3 roadmap" in body
        assert body.count(SENDER_NAME_TOKEN) == 1
        assert client.get("/api/notifications").json() == {"messages": ["Draft generated"]}

    def test_invalid_tone(self, client):
        response = client.post("/api/drafts", json={"objective": "x", "tone": "sarcastic"})
        assert response.status_code == 400
        assert "tone" in response.json()["issues"]

    def test_malformed_json_keyed_as_body(self, client):
        for path in ("/api/drafts", "/api/preview"):
            response = client.post(
                path, content='{"objective": ', headers={"Content-Type": "application/json"}
            )
            assert response.status_code == 400
            assert list(response.json()["issues"]) == ["body"]

    def test_preview(self, client):
        response = client.post(
            "/api/preview",
            json={"subject": "Hi", "body": f"<p onclick='x()'>{SENDER_NAME_TOKEN}</p><script>1</script>"},
        )
        assert response.status_code == 200
        assert response.json() == {"subject": "Hi", "html": "<p>Your Name</p>"}

    def test_tones(self, client):
        tones = client.get("/api/tones").json()
        assert [t["value"] for t in tones] == [
            "professional",
            "friendly",
            "persuasive",
            "apologetic",
            "urgent",
        ]
        assert tones[0]["label"] == "Professional"

    def test_send_notifications(self, client):
        client.post("/api/send-email", json=VALID)
        assert client.get("/api/notifications").json()["messages"] == ["Email dispatched"]


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_security_headers(self, client):
        response = client.get("/api/tones")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"
