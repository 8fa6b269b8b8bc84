"""Call-related routes: forwarded to the MCP server or served by the simulator."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError as PydanticValidationError

from rezkyoo.api.deps import (
    get_booking_store,
    get_mcp_client,
    get_optional_repository,
    get_settings,
    get_sim_store,
    optional_user,
    require_user,
)
from rezkyoo.auth import User
from rezkyoo.config import Config
from rezkyoo.errors import RezkyooError
from rezkyoo.models.account import Reservation, ReservationStatus
from rezkyoo.models.batch import RestaurantCandidate
from rezkyoo.models.booking import (
    BatchStatusRequest,
    BookingCustomer,
    BookingRestaurant,
    BookingStatus,
    BookingStatusRequest,
    ConfirmBookingRequest,
    FindRestaurantsRequest,
    ReleaseHoldRequest,
    ReservationDetails,
    SimulatedBooking,
    StartCallsRequest,
)
from rezkyoo.services.firestore import FirestoreRepository
from rezkyoo.services.mcp_client import McpClient
from rezkyoo.services.paywall import cookie_name, verify_paid_token
from rezkyoo.sim import SimBatchStore, SimBookingStore, now_ms, project_batch
from rezkyoo.sim.bookings import generate_booking_id, progress_message, utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


def _upstream_failure(error: str, debug: Any = None) -> JSONResponse:
    content: dict[str, Any] = {"ok": False, "error": error}
    if debug is not None:
        content["debug"] = debug
    return JSONResponse(status_code=502, content=content)


@router.post("/find-restaurants")
async def find_restaurants(
    body: FindRestaurantsRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    user: User | None = Depends(optional_user),
    repository: FirestoreRepository | None = Depends(get_optional_repository),
):
    """Search for restaurants. Guests may search; calling requires sign-in."""
    search = body.model_dump(exclude_none=True)
    result = await mcp.find_restaurants(search)

    if not isinstance(result, dict):
        logger.error(f"MCP find_restaurants returned invalid result: {result!r}")
        return _upstream_failure("Invalid response from server")

    if result.get("batchId"):
        if user is not None and repository is not None:
            try:
                await repository.save_search(user.id, search, result["batchId"])
            except GoogleAPIError as e:
                logger.error(f"Failed to save search history: {e}")
        return result

    if result.get("ok") is False or result.get("error"):
        return _upstream_failure(result.get("error") or result.get("text") or "Search failed")

    logger.error(f"MCP find_restaurants returned unexpected structure: {str(result)[:500]}")
    return _upstream_failure(
        "Unexpected response format",
        debug=None if config.is_production else result,
    )


def _candidates(batch_id: str, items: list[dict]) -> list[RestaurantCandidate]:
    """Snapshot items as candidates; items without an id or name are skipped."""
    candidates = []
    for item in items:
        try:
            candidates.append(RestaurantCandidate.model_validate(item))
        except PydanticValidationError:
            logger.warning(f"Skipping malformed item in batch {batch_id}: {str(item)[:200]}")
    return candidates


@router.post("/start-calls")
async def start_calls(
    body: StartCallsRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    sim_store: SimBatchStore = Depends(get_sim_store),
    _user: User = Depends(require_user),
):
    """Start calling the selected restaurants of a batch."""
    selected = body.selected_place_ids

    if config.simulate_calls:
        snapshot = await mcp.get_batch_status({"batchId": body.batch_id})
        if isinstance(snapshot, dict) and snapshot.get("ok"):
            items = [item for item in snapshot.get("items") or [] if isinstance(item, dict)]
            if selected:
                items = [item for item in items if item.get("place_id") in selected]
            candidates = _candidates(body.batch_id, items)
            # Reseed so timers start now, even if the user took time to sign in
            sim_store.reseed(body.batch_id, candidates)
        return {
            "ok": True,
            "message": "Simulated calls started.",
            "batchId": body.batch_id,
            "simulated": True,
            "selected_count": len(selected) if selected is not None else None,
        }

    arguments: dict[str, Any] = {"batchId": body.batch_id}
    if selected is not None:
        arguments["selected_place_ids"] = selected
    return await mcp.start_calls(arguments)


def _paid_token(request: Request, body: BatchStatusRequest) -> str | None:
    """Paid token for the batch, if one was sent and verifies."""
    token = body.paid_token or request.cookies.get(cookie_name(body.batch_id))
    if not token:
        return None
    try:
        payload = verify_paid_token(token)
    except RezkyooError as e:
        logger.info(f"Ignoring paid token for batch {body.batch_id}: {e.message}")
        return None
    if payload.batch_id and payload.batch_id != body.batch_id:
        logger.warning(f"Paid token for batch {payload.batch_id} sent for {body.batch_id}")
        return None
    return token


@router.post("/get-batch-status")
async def get_batch_status(
    request: Request,
    body: BatchStatusRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    sim_store: SimBatchStore = Depends(get_sim_store),
):
    """Poll batch status. Guests may poll; phone numbers stay hidden upstream until paid."""
    if config.simulate_calls:
        projection = project_batch(
            sim_store,
            body.batch_id,
            max_duration_ms=config.rezkyoo_sim_max_duration_ms,
        )
        if projection is not None:
            return projection.to_response()

    arguments: dict[str, Any] = {"batchId": body.batch_id}
    token = _paid_token(request, body)
    if token:
        arguments["paid_token"] = token
    return await mcp.get_batch_status(arguments)


@router.post("/confirm-booking")
async def confirm_booking(
    body: ConfirmBookingRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    booking_store: SimBookingStore = Depends(get_booking_store),
    user: User = Depends(require_user),
):
    """Place the confirmation call that turns a hold into a booking."""
    if config.simulate_calls:
        booking = booking_store.create(
            SimulatedBooking(
                id=generate_booking_id(),
                user_id=user.id,
                batch_id=body.batch_id,
                place_id=body.place_id,
                restaurant=BookingRestaurant(
                    name=body.restaurant_name,
                    phone=body.restaurant_phone,
                    place_id=body.place_id,
                    address=body.restaurant_address,
                    lat=body.restaurant_lat,
                    lng=body.restaurant_lng,
                ),
                customer=BookingCustomer(name=body.customer_name, phone=body.customer_phone),
                reservation=ReservationDetails(
                    party_size=body.party_size, date=body.date, time=body.time
                ),
                created_at=utc_now_iso(),
            )
        )
        return {
            "ok": True,
            "bookingId": booking.id,
            "message": "Booking created, confirmation call starting...",
            "simulated": True,
        }

    arguments = body.model_dump(by_alias=True, exclude_none=True)
    arguments["userId"] = user.id
    return await mcp.confirm_booking(arguments)


async def _save_confirmed(
    repository: FirestoreRepository, user: User, booking: SimulatedBooking
) -> None:
    reservation = Reservation(
        batch_id=booking.batch_id,
        place_id=booking.place_id,
        restaurant=booking.restaurant,
        customer=booking.customer,
        reservation=booking.reservation,
        status=ReservationStatus.CONFIRMED,
        created_at=booking.created_at,
        confirmed_at=booking.confirmed_at,
        special_request_status=booking.special_request_status,
    )
    try:
        await repository.save_reservation(user.id, booking.id, reservation)
    except GoogleAPIError as e:
        # The booking stays confirmed even if it could not be saved
        logger.error(f"Failed to save reservation {booking.id}: {e}")


@router.post("/booking-status")
async def booking_status(
    body: BookingStatusRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    booking_store: SimBookingStore = Depends(get_booking_store),
    repository: FirestoreRepository | None = Depends(get_optional_repository),
    user: User = Depends(require_user),
):
    """Poll the confirmation call of a booking."""
    if not config.simulate_calls:
        return await mcp.get_booking_status({"bookingId": body.booking_id})

    booking = booking_store.get(body.booking_id)
    if booking is None or booking.user_id != user.id:
        return {"ok": False, "error": "Booking not found", "status": BookingStatus.FAILED.value}

    now = now_ms()
    if booking_store.is_due(booking, now):
        booking = booking_store.resolve(body.booking_id, now)
        if booking.status == BookingStatus.CONFIRMED and repository is not None:
            await _save_confirmed(repository, user, booking)

    return {
        "ok": True,
        "status": booking.status.value,
        "message": _booking_message(booking, now),
        "booking": booking.model_dump(mode="json", exclude_none=True),
    }


def _booking_message(booking: SimulatedBooking, now: int) -> str:
    if booking.status == BookingStatus.CONFIRMED:
        return (
            f"Your reservation at {booking.restaurant.name} is confirmed for "
            f"{booking.reservation.date} at {booking.reservation.time}!"
        )
    if booking.status == BookingStatus.FAILED:
        return "The restaurant was unable to confirm your reservation at this time."
    if booking.status == BookingStatus.CANCELLED:
        return "This booking was cancelled."
    return progress_message(booking, now)


@router.post("/release-hold")
async def release_hold(
    body: ReleaseHoldRequest,
    config: Config = Depends(get_settings),
    mcp: McpClient = Depends(get_mcp_client),
    _user: User = Depends(require_user),
):
    """Release a hold the user decided not to book."""
    if config.simulate_calls:
        logger.info(f"[SIM] Releasing hold at {body.restaurant_name} ({body.place_id})")
        return {
            "ok": True,
            "message": "Hold release acknowledged (simulated)",
            "simulated": True,
        }

    return await mcp.release_hold(
        {
            "batchId": body.batch_id,
            "placeId": body.place_id,
            "restaurantName": body.restaurant_name or "Unknown",
            "restaurantPhone": body.restaurant_phone or "",
        }
    )
