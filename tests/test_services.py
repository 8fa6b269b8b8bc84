"""Tests for service modules."""

import json

import httpx
import pytest
from twilio.base.exceptions import TwilioRestException

from rezkyoo.errors import UpstreamError
from rezkyoo.services.notifications import (
    ContactMessage,
    SmsService,
    build_payment_sms_body,
    deliver_contact_message,
    format_phone_number,
    is_valid_phone_number,
    to_e164,
)
from rezkyoo.services.places import PlacesService


class FailingMessages:
    def create(self, **kwargs):
        raise TwilioRestException(400, "/Messages", msg="Invalid 'To' number")


class FakeClient:
    def __init__(self, messages):
        self.messages = messages


class TestPhoneNumbers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5551234567", "+15551234567"),
            ("(555) 123-4567", "+15551234567"),
            ("1-555-123-4567", "+15551234567"),
            ("+1 555 123 4567", "+15551234567"),
            ("555-1234", None),
            ("25551234567", None),
        ],
    )
    def test_to_e164(self, raw, expected):
        assert to_e164(raw) == expected
        assert is_valid_phone_number(raw) is (expected is not None)

    def test_format_phone_number(self):
        assert format_phone_number("15551234567") == "(555) 123-4567"
        assert format_phone_number("12345") == "12345"


class TestPaymentSms:
    def test_single_restaurant(self):
        body = build_payment_sms_body("https://rezkyoo.test/app/batch/b1", 1)

        assert body.startswith("✅ RezKyoo: 1 restaurant available!")
        assert "https://rezkyoo.test/app/batch/b1" in body
        assert body.endswith("Reply STOP to opt out of texts.")

    def test_multiple_restaurants(self):
        body = build_payment_sms_body("https://rezkyoo.test/app/batch/b1", 3)

        assert body.startswith("🎉 RezKyoo: 3 restaurants available!")


class TestSmsService:
    """Tests for the SmsService."""

    @pytest.fixture
    def configured(self, config, monkeypatch):
        monkeypatch.setattr(config, "twilio_phone_number", "+15550009999")
        return config

    def test_not_configured(self, config):
        """Test sending without Twilio credentials is reported, not raised."""
        service = SmsService()

        result = service.send("5551234567", "hello")

        assert service.is_configured() is False
        assert result.ok is False
        assert result.error == "SMS not configured"

    def test_invalid_number(self, configured):
        service = SmsService(client=FakeClient(messages=None))

        result = service.send("555-1234", "hello")

        assert result.error == "Invalid phone number"

    def test_twilio_error(self, configured):
        service = SmsService(client=FakeClient(FailingMessages()))

        result = service.send("5551234567", "hello")

        assert result.ok is False
        assert result.error == "Twilio API error: 400"


class TestContactMessage:
    """Tests for contact form delivery."""

    CONTACT = ContactMessage(name="Ada <script>", email="ada@example.com", message="Hi\nthere")

    async def test_resend(self, config, monkeypatch):
        monkeypatch.setattr(config, "resend_api_key", "re_key")
        sent = {}

        def handler(request):
            sent["auth"] = request.headers["authorization"]
            sent["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email-1"})

        message = await deliver_contact_message(self.CONTACT, transport=httpx.MockTransport(handler))

        assert message == "Message sent successfully"
        assert sent["auth"] == "Bearer re_key"
        assert sent["body"]["reply_to"] == "ada@example.com"
        assert "Ada &lt;script&gt;" in sent["body"]["subject"]
        assert "Hi<br>there" in sent["body"]["html"]

    async def test_resend_failure(self, config, monkeypatch):
        monkeypatch.setattr(config, "resend_api_key", "re_key")
        transport = httpx.MockTransport(lambda r: httpx.Response(422, json={"message": "bad"}))

        with pytest.raises(UpstreamError, match="Failed to send email"):
            await deliver_contact_message(self.CONTACT, transport=transport)

    async def test_webhook(self, config, monkeypatch):
        monkeypatch.setattr(config, "contact_form_webhook_url", "https://hooks.test/contact")
        posted = []

        def handler(request):
            posted.append((str(request.url), json.loads(request.content)))
            return httpx.Response(200)

        message = await deliver_contact_message(self.CONTACT, transport=httpx.MockTransport(handler))

        url, body = posted[0]
        assert message == "Message sent to webhook"
        assert url == "https://hooks.test/contact"
        assert body["source"] == "rezkyoo-contact-form"
        assert body["email"] == "ada@example.com"

    async def test_log_only(self, config):
        message = await deliver_contact_message(self.CONTACT)

        assert message == "Message received! We'll get back to you soon."


class TestPlacesService:
    """Tests for the PlacesService."""

    async def test_limits_places(self, config):
        requested = []

        def handler(request):
            requested.append(request.url.params["place_id"])
            return httpx.Response(200, json={"status": "OK", "result": {"website": "https://x.test"}})

        service = PlacesService(api_key="maps-key", transport=httpx.MockTransport(handler))

        data, count = await service.enrich([f"p{i}" for i in range(15)])

        assert count == 10
        assert len(data) == 10
        assert sorted(requested) == sorted(f"p{i}" for i in range(10))
        assert data["p0"]["website"] == "https://x.test"
        assert data["p0"]["reviews"] == []

    async def test_missing_api_key(self, config):
        service = PlacesService(api_key="")

        data, count = await service.enrich(["p1"])

        assert data == {}
        assert count == 1

    async def test_transport_failure_skips_place(self, config):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        service = PlacesService(api_key="maps-key", transport=httpx.MockTransport(handler))

        data, count = await service.enrich(["p1"])

        assert data == {}
        assert count == 1

    async def test_unexpected_body_skips_place(self, config):
        bodies = {
            "p1": [1, 2],
            "p2": {"status": "OK", "result": ["not", "a", "place"]},
            "p3": {"status": "OK", "result": {"website": "https://x.test"}},
        }

        def handler(request):
            return httpx.Response(200, json=bodies[request.url.params["place_id"]])

        service = PlacesService(api_key="maps-key", transport=httpx.MockTransport(handler))

        data, count = await service.enrich(["p1", "p2", "p3"])

        assert count == 3
        assert list(data) == ["p3"]
