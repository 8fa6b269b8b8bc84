"""PayPal Orders API client for unlocking batch results."""

import logging
from typing import Any

import httpx

from rezkyoo.config import get_config
from rezkyoo.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


class PayPalService:
    """Creates and captures PayPal checkout orders for a batch."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = get_config()
        self.api_base = self.config.paypal_api_base
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base, timeout=30.0, transport=self._transport
        )

    async def get_access_token(self) -> str:
        """Exchange client credentials for an OAuth access token.

        Raises:
            UpstreamError: If credentials are missing or PayPal rejects them
        """
        if not self.config.has_paypal_config():
            raise UpstreamError("PayPal credentials not configured")

        async with self._client() as client:
            response = await client.post(
                "/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.config.paypal_client_id, self.config.paypal_client_secret),
            )

        if not response.is_success:
            logger.error(f"PayPal auth error: {response.text}")
            raise UpstreamError("Failed to get PayPal access token")
        return response.json()["access_token"]

    async def create_order(
        self,
        batch_id: str,
        amount: float,
        origin: str,
        description: str | None = None,
    ) -> str:
        """Create a capture-intent order tagged with the batch ID.

        Returns:
            PayPal order ID
        """
        access_token = await self.get_access_token()
        order = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": batch_id,
                    "description": description or "Unlock reservation results",
                    "amount": {"currency_code": "USD", "value": f"{amount:.2f}"},
                    "custom_id": batch_id,
                }
            ],
            "application_context": {
                "brand_name": "RezKyoo",
                "landing_page": "NO_PREFERENCE",
                "user_action": "PAY_NOW",
                "return_url": f"{origin}/app/batch/{batch_id}?paid=true",
                "cancel_url": f"{origin}/app/batch/{batch_id}?paid=false",
            },
        }

        async with self._client() as client:
            response = await client.post(
                "/v2/checkout/orders",
                json=order,
                headers={"Authorization": f"Bearer {access_token}"},
            )

        if not response.is_success:
            logger.error(f"PayPal create order error: {response.text}")
            raise UpstreamError("Failed to create PayPal order")

        order_id = response.json()["id"]
        logger.info(f"PayPal order created: {order_id}")
        return order_id

    async def capture_order(self, order_id: str, batch_id: str) -> str:
        """Capture an approved order and check it paid for ``batch_id``.

        Returns:
            Transaction ID of the capture

        Raises:
            UpstreamError: If PayPal refuses the capture
            ValidationError: If the payment is incomplete or for another batch
        """
        access_token = await self.get_access_token()

        async with self._client() as client:
            response = await client.post(
                f"/v2/checkout/orders/{order_id}/capture",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )

        if not response.is_success:
            logger.error(f"PayPal capture error: {response.text}")
            raise UpstreamError("Failed to capture PayPal payment")

        data: dict[str, Any] = response.json()
        logger.info(f"PayPal payment captured: {data.get('id')}")

        if data.get("status") != "COMPLETED":
            raise ValidationError(f"Payment not completed: {data.get('status')}")

        purchase_unit = (data.get("purchase_units") or [{}])[0]
        captured_batch_id = purchase_unit.get("custom_id") or purchase_unit.get(
            "reference_id"
        )
        if captured_batch_id != batch_id:
            logger.error(f"Batch ID mismatch: captured={captured_batch_id} requested={batch_id}")
            raise ValidationError("Batch ID mismatch")

        captures = (purchase_unit.get("payments") or {}).get("captures") or [{}]
        return captures[0].get("id") or data["id"]
