"""Data models for the RezKyoo service."""

from rezkyoo.models.account import (
    ProfileUpdate,
    Reservation,
    ReservationStatus,
    UserProfile,
)
from rezkyoo.models.batch import (
    BatchProjection,
    BatchStatus,
    CallResult,
    CallStatus,
    ItemSnapshot,
    Outcome,
    RestaurantCandidate,
    SimBatch,
    SimItemPlan,
    Timeline,
)
from rezkyoo.models.booking import BookingStatus, SimulatedBooking

__all__ = [
    "BatchProjection",
    "BatchStatus",
    "BookingStatus",
    "CallResult",
    "CallStatus",
    "ItemSnapshot",
    "Outcome",
    "ProfileUpdate",
    "Reservation",
    "ReservationStatus",
    "RestaurantCandidate",
    "SimBatch",
    "SimItemPlan",
    "SimulatedBooking",
    "Timeline",
    "UserProfile",
]
