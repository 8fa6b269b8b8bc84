"""Firestore persistence for profiles, reservations, search history and payments."""

import logging
from datetime import datetime, timezone
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud.firestore import Query

from rezkyoo.config import Config, get_config
from rezkyoo.models.account import ProfileUpdate, Reservation, ReservationStatus, UserProfile

logger = logging.getLogger(__name__)

USERS = "users"
RESERVATIONS = "reservations"
SEARCH_HISTORY = "searchHistory"
BATCHES = "batches"


def init_firebase(cfg: Config | None = None) -> firebase_admin.App | None:
    """Initialize (or reuse) the Firebase Admin app.

    Uses the service account from FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY
    when set, otherwise Application Default Credentials.

    Returns:
        The Firebase app, or None if initialization failed
    """
    if cfg is None:
        cfg = get_config()

    if firebase_admin._apps:  # noqa: SLF001 - no public "is initialized" check
        return firebase_admin.get_app()

    options = {"projectId": cfg.firebase_project_id} if cfg.firebase_project_id else None
    try:
        if cfg.firebase_client_email and cfg.firebase_private_key:
            credential = credentials.Certificate(
                {
                    "type": "service_account",
                    "project_id": cfg.firebase_project_id,
                    "client_email": cfg.firebase_client_email,
                    "private_key": cfg.firebase_private_key.replace("\\n", "\n"),
                    "token_uri": "https://oauth2.googleapis.com/token",
                }
            )
        else:
            credential = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(credential, options)
    except (ValueError, OSError) as e:
        logger.error(f"Failed to initialize Firebase Admin: {e}")
        return None

    logger.info("Firebase Admin initialized")
    return app


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirestoreRepository:
    """Async Firestore access for user-scoped documents."""

    def __init__(self, db: Any) -> None:
        self.db = db

    @classmethod
    def from_app(cls, app: firebase_admin.App) -> "FirestoreRepository":
        return cls(firestore_async.client(app))

    def _user(self, uid: str):
        return self.db.collection(USERS).document(uid)

    # Profiles

    async def get_profile(self, uid: str) -> UserProfile | None:
        snapshot = await self._user(uid).get()
        if not snapshot.exists:
            return None
        return UserProfile.model_validate(snapshot.to_dict())

    async def save_profile(
        self, uid: str, email: str | None, update: ProfileUpdate
    ) -> None:
        """Create the profile on first save, otherwise update the provided fields."""
        doc_ref = self._user(uid)
        snapshot = await doc_ref.get()
        now = _utcnow()

        if snapshot.exists:
            changes = update.model_dump(exclude_unset=True)
            changes["updated_at"] = now
            await doc_ref.update(changes)
            return

        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=update.display_name,
            phone_number=update.phone_number,
            sms_notifications=True,
            created_at=now,
            updated_at=now,
        )
        await doc_ref.set(profile.model_dump())
        logger.info(f"Created profile for user {uid}")

    # Reservations

    async def save_reservation(
        self, uid: str, booking_id: str, reservation: Reservation
    ) -> None:
        data = reservation.model_dump(mode="json", exclude_none=True)
        data["id"] = booking_id
        await self._user(uid).collection(RESERVATIONS).document(booking_id).set(data)
        logger.info(f"Saved reservation {booking_id} for user {uid}")

    async def list_reservations(self, uid: str) -> list[dict]:
        """All reservations for a user, newest first."""
        query = (
            self._user(uid)
            .collection(RESERVATIONS)
            .order_by("created_at", direction=Query.DESCENDING)
        )
        return [{**doc.to_dict(), "id": doc.id} async for doc in query.stream()]

    async def get_reservation(self, uid: str, reservation_id: str) -> dict | None:
        snapshot = (
            await self._user(uid).collection(RESERVATIONS).document(reservation_id).get()
        )
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    async def update_reservation_status(
        self, uid: str, reservation_id: str, status: ReservationStatus
    ) -> None:
        changes: dict[str, Any] = {"status": status.value}
        if status == ReservationStatus.CANCELLED:
            changes["cancelled_at"] = _utcnow().isoformat()
        await self._user(uid).collection(RESERVATIONS).document(reservation_id).update(
            changes
        )

    async def delete_reservation(self, uid: str, reservation_id: str) -> None:
        await self._user(uid).collection(RESERVATIONS).document(reservation_id).delete()

    # Search history

    async def save_search(self, uid: str, search: dict[str, Any], batch_id: str) -> None:
        """Record a search in the user's history; optional empty fields are dropped."""
        data = {
            "user_id": uid,
            "craving_text": search.get("craving_text"),
            "location": search.get("location"),
            "batch_id": batch_id,
            "created_at": _utcnow(),
        }
        for key in ("party_size", "date", "time"):
            if search.get(key) is not None:
                data[key] = search[key]
        await self.db.collection(SEARCH_HISTORY).add(data)

    async def list_searches(self, uid: str, limit: int = 20) -> list[dict]:
        query = (
            self.db.collection(SEARCH_HISTORY)
            .where("user_id", "==", uid)
            .order_by("created_at", direction=Query.DESCENDING)
            .limit(limit)
        )
        return [{**doc.to_dict(), "id": doc.id} async for doc in query.stream()]

    # Batch payments

    async def mark_batch_paid(
        self, batch_id: str, payment_id: str, amount: Any, method: str
    ) -> None:
        await self.db.collection(BATCHES).document(batch_id).set(
            {
                "payment_status": "paid",
                "payment_id": payment_id,
                "paid_at": _utcnow(),
                "payment_amount": amount,
                "payment_method": method,
            },
            merge=True,
        )
        logger.info(f"Batch {batch_id} marked paid via {method}")
