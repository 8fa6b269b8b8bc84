"""Data models for restaurant batches and simulated call timelines."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Outcome(str, Enum):
    """Outcome pre-drawn for a simulated call."""

    AVAILABLE = "available"
    NOT_AVAILABLE = "not_available"
    ALTERNATIVE = "alternative"


class CallStatus(str, Enum):
    """Status of a single restaurant call, in progression order."""

    PENDING = "pending"
    CALLING = "calling"
    SPEAKING = "speaking"
    COMPLETED = "completed"
    SKIPPED = "skipped"


TERMINAL_STATUSES = frozenset({CallStatus.COMPLETED, CallStatus.SKIPPED})


class BatchStatus(str, Enum):
    CALLING = "calling"
    COMPLETED = "completed"


class RestaurantCandidate(BaseModel):
    """Restaurant record as returned by the MCP server for a batch."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Item identifier within the batch")
    place_id: str | None = Field(None, description="Google place ID")
    name: str = Field(..., description="Restaurant name")
    phone: str | None = Field(None, description="Restaurant phone number")

    # Location info from the initial search
    lat: float | None = None
    lng: float | None = None
    address: str | None = None
    types: list[str] | None = None

    # Rating info from the Places API
    rating: float | None = None
    user_ratings_total: int | None = None
    distance_miles: float | None = None
    price_level: int | None = None


class Timeline(BaseModel):
    """Epoch-millisecond instants at which a simulated call changes status."""

    model_config = ConfigDict(frozen=True)

    calling_at: int
    speaking_at: int
    completed_at: int


class SimItemPlan(RestaurantCandidate):
    """A restaurant candidate with its simulated timeline and outcome."""

    model_config = ConfigDict(frozen=True)

    timeline: Timeline
    outcome: Outcome


class SimBatch(BaseModel):
    """A seeded simulation for one batch."""

    model_config = ConfigDict(frozen=True)

    batch_id: str
    created_at: int = Field(..., description="Epoch milliseconds at seeding")
    items: tuple[SimItemPlan, ...] = ()


class SpecialRequestStatus(BaseModel):
    honored: bool
    note: str | None = None


class CallResult(BaseModel):
    """Result reported for a finished (or skipped) call."""

    outcome: str = Field(..., description="available, not_available, skipped or timeout")
    ai_summary: str | None = None
    alt_time: str | None = None
    special_request_status: SpecialRequestStatus | None = None


class ItemSnapshot(RestaurantCandidate):
    """Status of one item at a given instant."""

    status: CallStatus
    skip_reason: str | None = None
    result: CallResult | None = None


class MapCenter(BaseModel):
    lat: float
    lng: float


class BatchProjection(BaseModel):
    """Snapshot of a whole batch, shaped like the MCP get_batch_status reply."""

    ok: bool = True
    status: BatchStatus
    items: list[ItemSnapshot]
    map_center: MapCenter | None = None

    def to_response(self) -> dict:
        """Serialize for a JSON response, dropping unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)
