"""Simulated booking confirmation calls."""

import logging
import random
import secrets
from datetime import datetime, timezone

from rezkyoo.models.batch import SpecialRequestStatus
from rezkyoo.models.booking import BookingStatus, SimulatedBooking
from rezkyoo.sim.store import now_ms

logger = logging.getLogger(__name__)

CONFIRM_DELAY_MS = 8000
SUCCESS_RATE = 0.9
SPECIAL_REQUEST_HONOR_RATE = 0.8
PROGRESS_INTERVAL_MS = 2000

PROGRESS_MESSAGES = (
    "Dialing the restaurant...",
    "Speaking with the host...",
    "Confirming your details...",
    "Almost done...",
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_booking_id(now: int | None = None) -> str:
    """Generate a simulated booking ID, e.g. sim_booking_1700000000000_a1b2c3."""
    if now is None:
        now = now_ms()
    return f"sim_booking_{now}_{secrets.token_hex(3)}"


class SimBookingStore:
    """In-memory simulated bookings keyed by booking ID.

    A booking starts in ``calling`` and resolves the first time it is
    polled after ``confirms_at``: confirmed 90% of the time, failed otherwise.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._bookings: dict[str, SimulatedBooking] = {}

    def create(self, booking: SimulatedBooking, now: int | None = None) -> SimulatedBooking:
        """Store a new booking whose confirmation call resolves in 8 seconds."""
        if now is None:
            now = now_ms()
        booking = booking.model_copy(
            update={
                "status": BookingStatus.CALLING,
                "confirms_at": now + CONFIRM_DELAY_MS,
            }
        )
        self._bookings[booking.id] = booking
        logger.info(f"Created simulated booking {booking.id} at {booking.restaurant.name}")
        return booking

    def get(self, booking_id: str) -> SimulatedBooking | None:
        return self._bookings.get(booking_id)

    def update(self, booking_id: str, **changes) -> SimulatedBooking | None:
        existing = self._bookings.get(booking_id)
        if existing is None:
            return None
        updated = existing.model_copy(update=changes)
        self._bookings[booking_id] = updated
        return updated

    def is_due(self, booking: SimulatedBooking, now: int) -> bool:
        return (
            booking.status == BookingStatus.CALLING
            and booking.confirms_at is not None
            and now >= booking.confirms_at
        )

    def resolve(self, booking_id: str, now: int | None = None) -> SimulatedBooking | None:
        """Resolve a due confirmation call; other bookings are returned as-is.

        Args:
            booking_id: Booking identifier
            now: Instant in epoch ms (defaults to the current time)

        Returns:
            The booking after resolution, or None if unknown
        """
        if now is None:
            now = now_ms()
        booking = self._bookings.get(booking_id)
        if booking is None or not self.is_due(booking, now):
            return booking

        if self._rng.random() < SUCCESS_RATE:
            honored = self._rng.random() < SPECIAL_REQUEST_HONOR_RATE
            resolved = self.update(
                booking_id,
                status=BookingStatus.CONFIRMED,
                confirmed_at=utc_now_iso(),
                failure_reason=None,
                special_request_status=SpecialRequestStatus(
                    honored=honored, note="We'll have everything ready for you!"
                ),
            )
        else:
            resolved = self.update(
                booking_id,
                status=BookingStatus.FAILED,
                failure_reason="Restaurant could not confirm at this time",
            )

        logger.info(f"Simulated booking {booking_id} resolved: {resolved.status.value}")
        return resolved

    def clear(self) -> None:
        self._bookings.clear()


def progress_message(booking: SimulatedBooking, now: int | None = None) -> str:
    """Progress text for a booking still on the phone."""
    if now is None:
        now = now_ms()
    created = int(datetime.fromisoformat(booking.created_at).timestamp() * 1000)
    index = max(0, (now - created) // PROGRESS_INTERVAL_MS)
    return PROGRESS_MESSAGES[min(index, len(PROGRESS_MESSAGES) - 1)]
