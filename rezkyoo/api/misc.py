"""Places enrichment and the contact form."""

import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rezkyoo.api.deps import get_places_service
from rezkyoo.errors import ValidationError
from rezkyoo.services.notifications import ContactMessage, deliver_contact_message
from rezkyoo.services.places import PlacesService

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

places_router = APIRouter()
contact_router = APIRouter()


class EnrichRequest(BaseModel):
    place_ids: list[str] = Field(..., min_length=1)


class ContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    message: str | None = None


@places_router.post("/enrich")
async def enrich_places(
    body: EnrichRequest,
    places: PlacesService = Depends(get_places_service),
):
    """Premium place details; only called after the user has paid."""
    data, requested = await places.enrich(body.place_ids)
    return {"ok": True, "data": data, "fetched": len(data), "requested": requested}


@contact_router.post("")
async def contact(body: ContactRequest):
    if not body.name or not body.email or not body.message:
        raise ValidationError("Name, email, and message are required")
    if not EMAIL_PATTERN.match(body.email):
        raise ValidationError("Invalid email format")

    message = await deliver_contact_message(
        ContactMessage(name=body.name, email=body.email, message=body.message)
    )
    return {"ok": True, "message": message}
