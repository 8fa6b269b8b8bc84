"""Account routes: profile, saved reservations and search history."""

from fastapi import APIRouter, Depends, Query

from rezkyoo.api.deps import get_repository, get_verified_user, require_user
from rezkyoo.auth import User
from rezkyoo.errors import NotFoundError
from rezkyoo.models.account import ProfileUpdate, ReservationStatusUpdate
from rezkyoo.services.firestore import FirestoreRepository

router = APIRouter()


@router.get("/profile")
async def get_profile(
    user: User = Depends(get_verified_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    profile = await repository.get_profile(user.id)
    return {
        "ok": True,
        "profile": profile.model_dump(mode="json") if profile else None,
    }


@router.post("/profile")
async def save_profile(
    update: ProfileUpdate,
    user: User = Depends(get_verified_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    await repository.save_profile(user.id, user.email, update)
    return {"ok": True}


@router.get("/reservations")
async def list_reservations(
    user: User = Depends(require_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    return {"ok": True, "reservations": await repository.list_reservations(user.id)}


@router.get("/reservations/{reservation_id}")
async def get_reservation(
    reservation_id: str,
    user: User = Depends(require_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    reservation = await repository.get_reservation(user.id, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return {"ok": True, "reservation": reservation}


@router.get("/search-history")
async def search_history(
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(require_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    return {"ok": True, "history": await repository.list_searches(user.id, limit)}


@router.patch("/reservations/{reservation_id}")
async def update_reservation(
    reservation_id: str,
    body: ReservationStatusUpdate,
    user: User = Depends(require_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    """Change a saved reservation's status, e.g. cancel it."""
    if await repository.get_reservation(user.id, reservation_id) is None:
        raise NotFoundError("Reservation not found")
    await repository.update_reservation_status(user.id, reservation_id, body.status)
    return {
        "ok": True,
        "reservation": await repository.get_reservation(user.id, reservation_id),
    }


@router.delete("/reservations/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    user: User = Depends(require_user),
    repository: FirestoreRepository = Depends(get_repository),
):
    if await repository.get_reservation(user.id, reservation_id) is None:
        raise NotFoundError("Reservation not found")
    await repository.delete_reservation(user.id, reservation_id)
    return {"ok": True}
