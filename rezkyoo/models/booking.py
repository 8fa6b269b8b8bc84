"""Request and record models for searches, calls and bookings."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from rezkyoo.models.batch import SpecialRequestStatus


class BookingStatus(str, Enum):
    """Status of a booking confirmation call."""

    PENDING_CONFIRMATION = "pending_confirmation"
    CALLING = "calling"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class _CamelModel(BaseModel):
    """Accepts the camelCase keys sent by the web client."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FindRestaurantsRequest(BaseModel):
    """Search intent forwarded to the MCP find_restaurants tool."""

    model_config = ConfigDict(extra="allow")

    craving_text: str = Field(..., min_length=1, description="What the user wants to eat")
    location: str = Field(..., min_length=1, description="Where to search")
    user_lat: float | None = None
    user_lng: float | None = None
    party_size: int | None = Field(None, gt=0)
    date: str | None = None
    time: str | None = None
    intent: str | None = None
    max_restaurants: int | None = Field(None, gt=0)
    client_id: str | None = None
    timezone: str | None = Field(None, description="IANA timezone of the user")


class StartCallsRequest(_CamelModel):
    batch_id: str = Field(..., min_length=1, alias="batchId")
    selected_place_ids: list[str] | None = None


class BatchStatusRequest(_CamelModel):
    batch_id: str = Field(..., min_length=1, alias="batchId")
    paid_token: str | None = None


class ConfirmBookingRequest(_CamelModel):
    batch_id: str = Field(..., min_length=1, alias="batchId")
    place_id: str = Field(..., min_length=1, alias="placeId")
    restaurant_name: str | None = Field(None, alias="restaurantName")
    restaurant_phone: str | None = Field(None, alias="restaurantPhone")
    restaurant_address: str | None = Field(None, alias="restaurantAddress")
    restaurant_lat: float | None = Field(None, alias="restaurantLat")
    restaurant_lng: float | None = Field(None, alias="restaurantLng")
    customer_name: str = Field(..., min_length=1, alias="customerName")
    customer_phone: str = Field(..., min_length=1, alias="customerPhone")
    party_size: int | None = Field(None, gt=0, alias="partySize")
    date: str | None = None
    time: str | None = None
    user_id: str | None = Field(None, alias="userId")


class BookingStatusRequest(_CamelModel):
    booking_id: str = Field(..., min_length=1, alias="bookingId")


class ReleaseHoldRequest(_CamelModel):
    batch_id: str = Field(..., min_length=1, alias="batchId")
    place_id: str = Field(..., min_length=1, alias="placeId")
    restaurant_name: str | None = Field(None, alias="restaurantName")
    restaurant_phone: str | None = Field(None, alias="restaurantPhone")


class BookingRestaurant(BaseModel):
    name: str | None = None
    phone: str | None = None
    place_id: str
    address: str | None = None
    lat: float | None = None
    lng: float | None = None


class BookingCustomer(BaseModel):
    name: str
    phone: str


class ReservationDetails(BaseModel):
    party_size: int | None = None
    date: str | None = None
    time: str | None = None


class SimulatedBooking(BaseModel):
    """A booking whose confirmation call is simulated."""

    id: str
    user_id: str
    batch_id: str
    place_id: str
    restaurant: BookingRestaurant
    customer: BookingCustomer
    reservation: ReservationDetails
    status: BookingStatus = BookingStatus.CALLING
    created_at: str = Field(..., description="ISO timestamp")
    confirms_at: int | None = Field(
        None, description="Epoch ms at which the simulated call resolves"
    )
    confirmed_at: str | None = None
    cancelled_at: str | None = None
    failure_reason: str | None = None
    special_request_status: SpecialRequestStatus | None = None
