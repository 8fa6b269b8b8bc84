"""Signed paid tokens that unlock paywalled batch details.

A token is ``base64url(json(payload)) + "." + base64url(hmac_sha256(payload_part))``,
without base64 padding.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from rezkyoo.config import get_config
from rezkyoo.errors import PaywallError, RezkyooError

logger = logging.getLogger(__name__)

COOKIE_PREFIX = "rezkyoo_paid_token_"


class PaidScope(str, Enum):
    DETAILS = "details"
    AVAILABILITY = "availability"
    BOOKING = "booking"


ALL_SCOPES = [PaidScope.AVAILABILITY, PaidScope.DETAILS, PaidScope.BOOKING]


class PaidTokenPayload(BaseModel):
    sub: str = Field(..., description="Payment or transaction ID")
    exp: int = Field(..., description="Expiry, epoch seconds")
    scopes: list[PaidScope]
    batch_id: str | None = Field(None, alias="batchId")

    model_config = ConfigDict(populate_by_name=True)


def cookie_name(batch_id: str) -> str:
    """Name of the cookie carrying the paid token for a batch."""
    return f"{COOKIE_PREFIX}{batch_id}"


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _sign(payload_part: str, secret: str) -> bytes:
    return hmac.new(secret.encode(), payload_part.encode("ascii"), hashlib.sha256).digest()


def _resolve_secret(secret: str | None) -> str:
    key = secret or get_config().paywall_token_secret
    if not key:
        logger.error("PAYWALL_TOKEN_SECRET missing - cannot sign or verify paid tokens")
        raise RezkyooError("Request failed")
    return key


def create_paid_token(payload: PaidTokenPayload, secret: str | None = None) -> str:
    """Create a signed paid token.

    Args:
        payload: Token payload
        secret: HMAC secret (defaults to PAYWALL_TOKEN_SECRET)

    Returns:
        Compact signed token

    Raises:
        RezkyooError: If PAYWALL_TOKEN_SECRET is not configured
        PaywallError: If the payload is invalid
    """
    key = _resolve_secret(secret)
    if not payload.sub or not payload.sub.strip():
        raise PaywallError("invalid_payload_sub")
    if not payload.scopes:
        raise PaywallError("invalid_payload_scopes")
    if payload.exp <= int(time.time()):
        raise PaywallError("invalid_payload_exp")

    body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    payload_part = _b64url_encode(json.dumps(body, separators=(",", ":")).encode("utf-8"))
    return f"{payload_part}.{_b64url_encode(_sign(payload_part, key))}"


def verify_paid_token(token: str, secret: str | None = None) -> PaidTokenPayload:
    """Verify a paid token's signature and expiry.

    Raises:
        RezkyooError: If PAYWALL_TOKEN_SECRET is not configured
        PaywallError: If the token is malformed, tampered with or expired
    """
    key = _resolve_secret(secret)
    payload_part, sep, sig_part = token.partition(".")
    if not sep or not payload_part or not sig_part or not token.isascii():
        raise PaywallError("malformed_token")

    try:
        signature = _b64url_decode(sig_part)
    except ValueError as e:
        raise PaywallError("malformed_token") from e
    if not hmac.compare_digest(signature, _sign(payload_part, key)):
        raise PaywallError("invalid_signature")

    try:
        payload = PaidTokenPayload.model_validate(
            json.loads(_b64url_decode(payload_part))
        )
    except (ValueError, PydanticValidationError) as e:
        raise PaywallError("malformed_token") from e

    if payload.exp <= int(time.time()):
        raise PaywallError("token_expired")
    return payload


def issue_batch_token(sub: str, batch_id: str, ttl_seconds: int | None = None) -> str:
    """Issue a token granting every scope for one batch."""
    if ttl_seconds is None:
        ttl_seconds = get_config().paid_token_ttl_seconds
    return create_paid_token(
        PaidTokenPayload(
            sub=sub,
            exp=int(time.time()) + ttl_seconds,
            scopes=ALL_SCOPES,
            batch_id=batch_id,
        )
    )
