"""User profile and saved reservation models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from rezkyoo.models.batch import SpecialRequestStatus
from rezkyoo.models.booking import BookingCustomer, BookingRestaurant, ReservationDetails


class ReservationStatus(str, Enum):
    """Status of a reservation saved to a user's account."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class UserProfile(BaseModel):
    """User profile document stored at users/{uid}."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    phone_number: str | None = None
    sms_notifications: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update; unset fields are left untouched."""

    display_name: str | None = Field(None, alias="displayName")
    phone_number: str | None = Field(None, alias="phoneNumber")
    sms_notifications: bool | None = Field(None, alias="smsNotifications")

    model_config = ConfigDict(populate_by_name=True)


class Reservation(BaseModel):
    """Confirmed reservation stored at users/{uid}/reservations/{bookingId}."""

    id: str | None = None
    batch_id: str
    place_id: str
    restaurant: BookingRestaurant
    customer: BookingCustomer
    reservation: ReservationDetails
    status: ReservationStatus = ReservationStatus.CONFIRMED
    created_at: str
    confirmed_at: str | None = None
    cancelled_at: str | None = None
    special_request_status: SpecialRequestStatus | None = None


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus
