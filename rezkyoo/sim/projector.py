"""Project simulated plans into status snapshots at a given instant."""

from rezkyoo.models.batch import (
    TERMINAL_STATUSES,
    BatchProjection,
    BatchStatus,
    CallResult,
    CallStatus,
    ItemSnapshot,
    MapCenter,
    Outcome,
    RestaurantCandidate,
    SimBatch,
    SimItemPlan,
    SpecialRequestStatus,
)
from rezkyoo.sim.store import SimBatchStore, now_ms

ALTERNATIVE_TIME = "6:30 PM"

SKIPPED_RESULT = CallResult(outcome="skipped")

TIMEOUT_RESULT = CallResult(
    outcome="timeout", ai_summary="The call did not complete in time."
)

OUTCOME_RESULTS = {
    Outcome.AVAILABLE: CallResult(
        outcome="available",
        ai_summary="We can accommodate the requested time.",
        special_request_status=SpecialRequestStatus(
            honored=True, note="We'll have everything ready for you!"
        ),
    ),
    Outcome.ALTERNATIVE: CallResult(
        outcome="not_available",
        alt_time=ALTERNATIVE_TIME,
        ai_summary="Only earlier seating available.",
        special_request_status=SpecialRequestStatus(
            honored=False, note="We can try to accommodate at the alternative time."
        ),
    ),
    Outcome.NOT_AVAILABLE: CallResult(
        outcome="not_available", ai_summary="No availability at requested time."
    ),
}


def status_at(plan: SimItemPlan, now: int) -> CallStatus:
    """Status of a planned call at ``now`` (ignores the phone check)."""
    timeline = plan.timeline
    if now < timeline.calling_at:
        return CallStatus.PENDING
    if now < timeline.speaking_at:
        return CallStatus.CALLING
    if now < timeline.completed_at:
        return CallStatus.SPEAKING
    return CallStatus.COMPLETED


def project_item(
    plan: SimItemPlan,
    now: int,
    started_at: int | None = None,
    max_duration_ms: int | None = None,
) -> ItemSnapshot:
    """Project one plan into a snapshot.

    Args:
        plan: The item's simulation plan
        now: Instant to project at, in epoch ms
        started_at: When the batch was seeded (needed for timeouts)
        max_duration_ms: Force non-terminal calls to time out after this long

    Returns:
        ItemSnapshot with a result only for completed or skipped items
    """
    fields = plan.model_dump(include=set(RestaurantCandidate.model_fields))

    if not plan.phone:
        return ItemSnapshot(
            **fields,
            status=CallStatus.SKIPPED,
            skip_reason="no_phone",
            result=SKIPPED_RESULT,
        )

    status = status_at(plan, now)
    if status == CallStatus.COMPLETED:
        return ItemSnapshot(**fields, status=status, result=OUTCOME_RESULTS[plan.outcome])

    timed_out = (
        max_duration_ms is not None
        and started_at is not None
        and now - started_at >= max_duration_ms
    )
    if timed_out:
        return ItemSnapshot(**fields, status=CallStatus.COMPLETED, result=TIMEOUT_RESULT)

    return ItemSnapshot(**fields, status=status)


def map_center(items: list[ItemSnapshot]) -> MapCenter | None:
    """Average position of the items that have coordinates."""
    located = [item for item in items if item.lat and item.lng]
    if not located:
        return None
    return MapCenter(
        lat=sum(item.lat for item in located) / len(located),
        lng=sum(item.lng for item in located) / len(located),
    )


def project(
    batch: SimBatch, now: int, max_duration_ms: int | None = None
) -> BatchProjection:
    """Project a whole batch at ``now``.

    The batch is completed only when every item is completed or skipped.
    """
    items = [
        project_item(plan, now, batch.created_at, max_duration_ms)
        for plan in batch.items
    ]
    all_done = all(item.status in TERMINAL_STATUSES for item in items)

    return BatchProjection(
        status=BatchStatus.COMPLETED if all_done else BatchStatus.CALLING,
        items=items,
        map_center=map_center(items),
    )


def project_batch(
    store: SimBatchStore,
    batch_id: str,
    now: int | None = None,
    max_duration_ms: int | None = None,
) -> BatchProjection | None:
    """Look up and project a batch; None when it was never seeded."""
    batch = store.read(batch_id)
    if batch is None:
        return None
    return project(batch, now_ms() if now is None else now, max_duration_ms)
