"""Google Places details for restaurants in a paid batch."""

import asyncio
import logging
from typing import Any

import httpx

from rezkyoo.config import get_config

logger = logging.getLogger(__name__)

PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
MAX_PLACES = 10
MAX_REVIEWS = 3

DETAIL_FIELDS = (
    "place_id",
    "rating",
    "user_ratings_total",
    "price_level",
    "formatted_phone_number",
    "website",
    "url",
    "reviews",
    "opening_hours",
)


class PlacesService:
    """Fetches premium place details from the Google Places API."""

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else get_config().google_maps_api_key
        self._transport = transport

    async def fetch_details(
        self, client: httpx.AsyncClient, place_id: str
    ) -> dict[str, Any] | None:
        """Details for one place, or None if the lookup failed."""
        try:
            response = await client.get(
                PLACE_DETAILS_URL,
                params={
                    "place_id": place_id,
                    "fields": ",".join(DETAIL_FIELDS),
                    "key": self.api_key,
                },
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching place details for {place_id}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Places API returned unexpected body for {place_id}")
            return None

        result = data.get("result")
        if data.get("status") != "OK" or not result or not isinstance(result, dict):
            logger.error(f"Places API error for {place_id}: {data.get('status')}")
            return None

        details = {field: result.get(field) for field in DETAIL_FIELDS if field != "reviews"}
        details["place_id"] = place_id
        details["reviews"] = (result.get("reviews") or [])[:MAX_REVIEWS]
        return details

    async def enrich(self, place_ids: list[str]) -> tuple[dict[str, dict], int]:
        """Fetch details for up to 10 places concurrently.

        Returns:
            (details keyed by place ID, number of places requested)
        """
        limited = place_ids[:MAX_PLACES]
        if not self.api_key:
            logger.error("Missing GOOGLE_MAPS_API_KEY")
            return {}, len(limited)

        async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
            results = await asyncio.gather(
                *(self.fetch_details(client, place_id) for place_id in limited)
            )

        enriched = {
            place_id: details
            for place_id, details in zip(limited, results)
            if details is not None
        }
        return enriched, len(limited)
