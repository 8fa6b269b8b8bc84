"""Tests for PayPal checkout and Dropp callbacks."""

import base64
import json

import httpx
import pytest

from rezkyoo.errors import UpstreamError, ValidationError
from rezkyoo.services.dropp import decode_p2p_token
from rezkyoo.services.paypal import PayPalService
from rezkyoo.services.paywall import cookie_name, verify_paid_token


def p2p_token(**data):
    return base64.b64encode(json.dumps(data).encode()).decode()


class TestPayPalService:
    """Test PayPalService against a mock PayPal API."""

    async def test_create_order(self, config):
        orders = []

        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "A21-token"})
            orders.append(json.loads(request.content))
            assert request.headers["authorization"] == "Bearer A21-token"
            return httpx.Response(201, json={"id": "ORDER-7"})

        service = PayPalService(transport=httpx.MockTransport(handler))

        order_id = await service.create_order("b1", 1.5, "https://rezkyoo.test")

        unit = orders[0]["purchase_units"][0]
        assert order_id == "ORDER-7"
        assert orders[0]["intent"] == "CAPTURE"
        assert unit["custom_id"] == "b1"
        assert unit["amount"] == {"currency_code": "USD", "value": "1.50"}
        assert orders[0]["application_context"]["return_url"] == (
            "https://rezkyoo.test/app/batch/b1?paid=true"
        )

    async def test_missing_credentials(self, config, monkeypatch):
        monkeypatch.setattr(config, "paypal_client_secret", None)
        service = PayPalService(transport=httpx.MockTransport(lambda r: httpx.Response(500)))

        with pytest.raises(UpstreamError, match="PayPal credentials not configured"):
            await service.get_access_token()

    async def test_auth_rejected(self, config):
        service = PayPalService(transport=httpx.MockTransport(lambda r: httpx.Response(401)))

        with pytest.raises(UpstreamError, match="Failed to get PayPal access token"):
            await service.create_order("b1", 1.0, "https://rezkyoo.test")

    async def test_capture_not_completed(self, config):
        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "t"})
            return httpx.Response(201, json={"id": "ORDER-1", "status": "PENDING"})

        service = PayPalService(transport=httpx.MockTransport(handler))

        with pytest.raises(ValidationError, match="Payment not completed: PENDING"):
            await service.capture_order("ORDER-1", "b1")

    def test_sandbox_by_default(self, config):
        assert PayPalService().api_base == "https://api-m.sandbox.paypal.com"


class TestPayPalRoutes:
    def test_create_order(self, client):
        response = client.post("/api/paypal/create-order", json={"batchId": "batch-1", "amount": 1.99})

        assert response.json() == {"ok": True, "orderID": "ORDER-1"}

    def test_create_order_rejects_bad_amount(self, client):
        response = client.post("/api/paypal/create-order", json={"batchId": "batch-1", "amount": 0})

        assert response.status_code == 400

    def test_capture_sets_paid_cookie(self, client):
        response = client.post(
            "/api/paypal/capture-order", json={"orderID": "ORDER-1", "batchId": "batch-1"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "success": True,
            "transactionId": "CAPTURE-9",
            "batchId": "batch-1",
        }
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{cookie_name('batch-1')}=")
        assert "HttpOnly" in set_cookie
        assert "Max-Age=7200" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

        payload = verify_paid_token(response.cookies[cookie_name("batch-1")])
        assert payload.sub == "CAPTURE-9"
        assert payload.batch_id == "batch-1"

    def test_capture_batch_mismatch(self, client):
        response = client.post(
            "/api/paypal/capture-order", json={"orderID": "ORDER-1", "batchId": "batch-2"}
        )

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Batch ID mismatch"}
        assert "set-cookie" not in response.headers

    def test_capture_without_paywall_secret(self, client, config, monkeypatch):
        monkeypatch.setattr(config, "paywall_token_secret", None)

        response = client.post(
            "/api/paypal/capture-order", json={"orderID": "ORDER-1", "batchId": "batch-1"}
        )

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Request failed"}
        assert "set-cookie" not in response.headers

    def test_capture_sends_sms(self, client, config, services, monkeypatch):
        monkeypatch.setattr(config, "twilio_phone_number", "5550009999")

        response = client.post(
            "/api/paypal/capture-order",
            json={
                "orderID": "ORDER-1",
                "batchId": "batch-1",
                "notifyPhone": "(555) 123-4567",
                "availableCount": 2,
            },
        )

        sent = services.sms_service.client.messages.sent
        assert response.json()["sms_sent"] is True
        assert sent[0]["to"] == "+15551234567"
        assert sent[0]["from_"] == "+15550009999"
        assert "2 restaurants available" in sent[0]["body"]
        assert "/app/batch/batch-1" in sent[0]["body"]

    def test_capture_sms_not_configured(self, client):
        response = client.post(
            "/api/paypal/capture-order",
            json={"orderID": "ORDER-1", "batchId": "batch-1", "notifyPhone": "5551234567"},
        )

        assert response.status_code == 200
        assert response.json()["sms_sent"] is False


class TestDropp:
    """Test Dropp token decoding and callback redirects."""

    def test_decode(self):
        payment = decode_p2p_token(
            p2p_token(requestId="rezkyoo_b1_1700000000", status="SUCCESS", amount="1.99")
        )

        assert payment.batch_id == "b1"
        assert payment.succeeded
        assert payment.payment_id == "rezkyoo_b1_1700000000"

    def test_decode_code_zero_succeeds(self):
        payment = decode_p2p_token(p2p_token(requestId="rezkyoo_b1_1", code=0, transactionId="T-1"))

        assert payment.succeeded
        assert payment.payment_id == "T-1"

    def test_decode_numeric_transaction_id(self):
        payment = decode_p2p_token(
            p2p_token(requestId="rezkyoo_b1_17", status="SUCCESS", transactionId=987654)
        )

        assert payment.payment_id == "987654"

    @pytest.mark.parametrize(
        ("token", "error"),
        [
            ("%%%not-base64%%%", "invalid_payment_token"),
            (base64.b64encode(b"[1, 2]").decode(), "invalid_payment_token"),
            (p2p_token(requestId="other_b1_1"), "invalid_request_id"),
            (p2p_token(requestId="rezkyoo_b1_1", code="abc"), "invalid_payment_token"),
        ],
    )
    def test_decode_invalid(self, token, error):
        with pytest.raises(ValidationError, match=error):
            decode_p2p_token(token)

    def test_callback_missing_token(self, client):
        response = client.get("/api/dropp/callback", follow_redirects=False)

        assert response.headers["location"] == "/app?error=missing_payment_token"

    def test_callback_invalid_token(self, client):
        response = client.get(
            "/api/dropp/callback",
            params={"p2p": p2p_token(requestId="nope")},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/app?error=invalid_request_id"

    def test_callback_wrongly_typed_fields(self, client, repository):
        response = client.get(
            "/api/dropp/callback",
            params={"p2p": p2p_token(requestId="rezkyoo_b1_1", code="abc")},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/app?error=invalid_payment_token"
        assert repository.paid_batches == {}

    def test_callback_success(self, client, repository):
        response = client.get(
            "/api/dropp/callback",
            params={"p2p": p2p_token(requestId="rezkyoo_b1_17", status="SUCCESS", amount=1.99)},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/app/batch/b1?payment=success"
        assert repository.paid_batches["b1"] == {
            "payment_id": "rezkyoo_b1_17",
            "amount": 1.99,
            "method": "dropp",
        }

    def test_callback_failed_payment(self, client, repository):
        response = client.get(
            "/api/dropp/callback",
            params={"p2p": p2p_token(requestId="rezkyoo_b1_17", status="FAILED", code=3)},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/app/batch/b1?payment=failed"
        assert repository.paid_batches == {}

    def test_callback_without_database(self, client):
        client.app.state.repository = None

        response = client.get(
            "/api/dropp/callback",
            params={"p2p": p2p_token(requestId="rezkyoo_b1_17", status="SUCCESS")},
            follow_redirects=False,
        )

        assert response.headers["location"] == "/app?error=payment_processing_failed"

    def test_webhook_acknowledged(self, client):
        response = client.post("/api/dropp/callback", json={"event": "payment.completed"})

        assert response.json() == {"ok": True, "received": True}
