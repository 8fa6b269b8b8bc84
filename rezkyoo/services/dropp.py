"""Decoding of Dropp payment callbacks."""

import base64
import binascii
import json
import re
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rezkyoo.errors import ValidationError

# Request IDs look like rezkyoo_{batchId}_{timestamp}
REQUEST_ID_PATTERN = re.compile(r"rezkyoo_([^_]+)_")


class DroppPayment(BaseModel):
    request_id: str
    batch_id: str
    status: str | None = None
    code: int | None = None
    amount: Any = None
    transaction_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "SUCCESS" or self.code == 0

    @property
    def payment_id(self) -> str:
        return self.transaction_id or self.request_id


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def decode_p2p_token(token: str) -> DroppPayment:
    """Decode the base64 JSON ``p2p`` callback parameter.

    Raises:
        ValidationError: If the token is not base64 JSON, lacks a batch ID or
            carries fields of the wrong type
    """
    try:
        data = json.loads(base64.b64decode(token + "=" * (-len(token) % 4)))
    except (binascii.Error, ValueError) as e:
        raise ValidationError("invalid_payment_token") from e
    if not isinstance(data, dict):
        raise ValidationError("invalid_payment_token")

    request_id = str(data.get("requestId") or "")
    match = REQUEST_ID_PATTERN.search(request_id)
    if not match:
        raise ValidationError("invalid_request_id")

    try:
        return DroppPayment(
            request_id=request_id,
            batch_id=match.group(1),
            status=_optional_str(data.get("status")),
            code=data.get("code"),
            amount=data.get("amount"),
            transaction_id=_optional_str(data.get("transactionId")),
        )
    except PydanticValidationError as e:
        raise ValidationError("invalid_payment_token") from e
