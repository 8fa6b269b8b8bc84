"""Payment routes: PayPal checkout and the Dropp callback."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from google.api_core.exceptions import GoogleAPIError
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from rezkyoo.api.deps import (
    get_optional_repository,
    get_paypal_service,
    get_settings,
    get_sms_service,
)
from rezkyoo.config import Config
from rezkyoo.errors import ValidationError
from rezkyoo.services.dropp import decode_p2p_token
from rezkyoo.services.firestore import FirestoreRepository
from rezkyoo.services.notifications import SmsService, build_payment_sms_body
from rezkyoo.services.paypal import PayPalService
from rezkyoo.services.paywall import cookie_name, issue_batch_token

logger = logging.getLogger(__name__)

paypal_router = APIRouter()
dropp_router = APIRouter()


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    batch_id: str = Field(..., min_length=1, alias="batchId")
    amount: float = Field(..., gt=0)
    description: str | None = None


class CaptureOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., min_length=1, alias="orderID")
    batch_id: str = Field(..., min_length=1, alias="batchId")
    notify_phone: str | None = Field(None, alias="notifyPhone")
    available_count: int = Field(1, ge=0, alias="availableCount")


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@paypal_router.post("/create-order")
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    paypal: PayPalService = Depends(get_paypal_service),
):
    order_id = await paypal.create_order(
        body.batch_id, body.amount, _origin(request), body.description
    )
    return {"ok": True, "orderID": order_id}


@paypal_router.post("/capture-order")
async def capture_order(
    request: Request,
    body: CaptureOrderRequest,
    config: Config = Depends(get_settings),
    paypal: PayPalService = Depends(get_paypal_service),
    sms: SmsService = Depends(get_sms_service),
):
    """Capture a PayPal order and issue the batch's paid token cookie."""
    transaction_id = await paypal.capture_order(body.order_id, body.batch_id)
    token = issue_batch_token(transaction_id, body.batch_id)

    content = {
        "ok": True,
        "success": True,
        "transactionId": transaction_id,
        "batchId": body.batch_id,
    }

    if body.notify_phone:
        sms_body = build_payment_sms_body(
            f"{_origin(request)}/app/batch/{body.batch_id}", body.available_count
        )
        result = await run_in_threadpool(sms.send, body.notify_phone, sms_body)
        content["sms_sent"] = result.ok

    response = JSONResponse(content=content)
    response.set_cookie(
        cookie_name(body.batch_id),
        token,
        max_age=config.paid_token_ttl_seconds,
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="lax",
    )
    logger.info(f"Paid token issued for batch {body.batch_id}")
    return response


@dropp_router.get("/callback")
async def dropp_callback(
    p2p: str | None = Query(None),
    repository: FirestoreRepository | None = Depends(get_optional_repository),
):
    """Handle the redirect back from Dropp after checkout."""
    if not p2p:
        return RedirectResponse("/app?error=missing_payment_token")

    try:
        payment = decode_p2p_token(p2p)
    except ValidationError as e:
        logger.error(f"Invalid Dropp callback: {e.message}")
        return RedirectResponse(f"/app?error={e.message}")

    logger.info(
        f"Dropp callback received: request={payment.request_id} "
        f"amount={payment.amount} status={payment.status}"
    )

    if not payment.succeeded:
        logger.error(f"Dropp payment failed for batch {payment.batch_id}")
        return RedirectResponse(f"/app/batch/{payment.batch_id}?payment=failed")

    if repository is None:
        logger.error("Cannot record Dropp payment: database not initialized")
        return RedirectResponse("/app?error=payment_processing_failed")

    try:
        await repository.mark_batch_paid(
            payment.batch_id, payment.payment_id, payment.amount, "dropp"
        )
    except GoogleAPIError as e:
        logger.error(f"Error recording Dropp payment: {e}")
        return RedirectResponse("/app?error=payment_processing_failed")

    return RedirectResponse(f"/app/batch/{payment.batch_id}?payment=success")


@dropp_router.post("/callback")
async def dropp_webhook(request: Request):
    """Acknowledge asynchronous Dropp webhook notifications."""
    payload = await request.json()
    logger.info(f"Dropp webhook received: {payload}")
    return {"ok": True, "received": True}
