"""Shared fixtures: test configuration, fakes and an app wired to them."""

import random
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

import rezkyoo.config
from rezkyoo.auth import TokenVerifier, User
from rezkyoo.config import Config
from rezkyoo.errors import UnauthorizedError
from rezkyoo.models.account import ProfileUpdate, Reservation, UserProfile
from rezkyoo.server import AppServices, create_app
from rezkyoo.services.mcp_client import McpClient
from rezkyoo.services.notifications import SmsService
from rezkyoo.services.paypal import PayPalService
from rezkyoo.services.places import PlacesService
from rezkyoo.sim import SimBatchStore, SimBookingStore

PAYWALL_SECRET = "test-paywall-secret"


@pytest.fixture
def config(monkeypatch):
    """Install a test configuration as the global config."""
    cfg = Config(
        _env_file=None,
        rezkyoo_call_mode="simulate",
        rezkyoo_mcp_base_url="http://mcp.test",
        rezkyoo_disable_auth=True,
        paywall_token_secret=PAYWALL_SECRET,
        paypal_client_id="paypal-id",
        paypal_client_secret="paypal-secret",
        twilio_account_sid=None,
        twilio_auth_token=None,
        twilio_phone_number=None,
        google_maps_api_key="maps-key",
        resend_api_key=None,
        contact_form_webhook_url=None,
        environment="development",
    )
    monkeypatch.setattr(rezkyoo.config, "config", cfg)
    return cfg


class FakeMcpClient(McpClient):
    """Records tool calls and replies with canned results."""

    def __init__(self, results: dict[str, Any] | None = None) -> None:
        super().__init__(base_url="http://mcp.test")
        self.results = results or {}
        self.calls: list[tuple[str, dict]] = []

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((tool_name, arguments))
        result = self.results.get(tool_name, {"ok": True})
        if isinstance(result, Exception):
            raise result
        return result


class FakeTokenVerifier(TokenVerifier):
    """Accepts tokens of the form ``uid:<id>``."""

    def __init__(self) -> None:
        super().__init__(app=None)

    async def verify(self, id_token: str) -> User:
        if not id_token.startswith("uid:"):
            raise UnauthorizedError()
        uid = id_token[len("uid:"):]
        return User(id=uid, email=f"{uid}@example.com")


class FakeRepository:
    """In-memory stand-in for FirestoreRepository."""

    def __init__(self) -> None:
        self.profiles: dict[str, UserProfile] = {}
        self.reservations: dict[str, dict[str, dict]] = {}
        self.searches: list[dict] = []
        self.paid_batches: dict[str, dict] = {}

    async def get_profile(self, uid):
        return self.profiles.get(uid)

    async def save_profile(self, uid, email, update: ProfileUpdate):
        existing = self.profiles.get(uid)
        if existing:
            self.profiles[uid] = existing.model_copy(
                update=update.model_dump(exclude_unset=True)
            )
        else:
            self.profiles[uid] = UserProfile(
                uid=uid,
                email=email,
                display_name=update.display_name,
                phone_number=update.phone_number,
            )

    async def save_reservation(self, uid, booking_id, reservation: Reservation):
        data = reservation.model_dump(mode="json", exclude_none=True)
        data["id"] = booking_id
        self.reservations.setdefault(uid, {})[booking_id] = data

    async def list_reservations(self, uid):
        return sorted(
            self.reservations.get(uid, {}).values(),
            key=lambda r: r["created_at"],
            reverse=True,
        )

    async def get_reservation(self, uid, reservation_id):
        return self.reservations.get(uid, {}).get(reservation_id)

    async def update_reservation_status(self, uid, reservation_id, status):
        self.reservations[uid][reservation_id]["status"] = status.value

    async def delete_reservation(self, uid, reservation_id):
        self.reservations.get(uid, {}).pop(reservation_id, None)

    async def save_search(self, uid, search, batch_id):
        self.searches.append({"user_id": uid, "batch_id": batch_id, **search})

    async def list_searches(self, uid, limit=20):
        return [s for s in self.searches if s["user_id"] == uid][:limit]

    async def mark_batch_paid(self, batch_id, payment_id, amount, method):
        self.paid_batches[batch_id] = {
            "payment_id": payment_id,
            "amount": amount,
            "method": method,
        }


class FakeMessages:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    def create(self, **kwargs):
        self.sent.append(kwargs)
        return type("Message", (), {"sid": f"SM{len(self.sent)}"})()


class FakeTwilioClient:
    def __init__(self) -> None:
        self.messages = FakeMessages()


def paypal_handler(request: httpx.Request) -> httpx.Response:
    """Minimal PayPal sandbox: token, create order, capture order."""
    if request.url.path == "/v1/oauth2/token":
        return httpx.Response(200, json={"access_token": "A21-token"})
    if request.url.path == "/v2/checkout/orders":
        return httpx.Response(201, json={"id": "ORDER-1"})
    if request.url.path.endswith("/capture"):
        return httpx.Response(
            201,
            json={
                "id": "ORDER-1",
                "status": "COMPLETED",
                "purchase_units": [
                    {
                        "reference_id": "batch-1",
                        "custom_id": "batch-1",
                        "payments": {"captures": [{"id": "CAPTURE-9"}]},
                    }
                ],
            },
        )
    return httpx.Response(404)


@pytest.fixture
def mcp_client():
    return FakeMcpClient()


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def services(config, mcp_client, repository):
    rng = random.Random(1234)
    return AppServices(
        sim_store=SimBatchStore(rng),
        booking_store=SimBookingStore(rng),
        mcp_client=mcp_client,
        token_verifier=FakeTokenVerifier(),
        repository=repository,
        paypal_service=PayPalService(transport=httpx.MockTransport(paypal_handler)),
        sms_service=SmsService(client=FakeTwilioClient()),
        places_service=PlacesService(),
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client
