"""Randomized call timelines for simulated batches."""

import random

from rezkyoo.models.batch import Outcome, RestaurantCandidate, SimItemPlan, Timeline

# Offset ranges in milliseconds, inclusive
CALLING_DELAY_MS = (0, 2000)
SPEAKING_DELAY_MS = (2000, 6000)
COMPLETED_DELAY_MS = (4000, 12000)

# Cumulative thresholds for a single uniform draw
AVAILABLE_THRESHOLD = 0.45
NOT_AVAILABLE_THRESHOLD = 0.85


def draw_outcome(rng: random.Random) -> Outcome:
    """Draw a call outcome: 45% available, 40% not available, 15% alternative."""
    roll = rng.random()
    if roll < AVAILABLE_THRESHOLD:
        return Outcome.AVAILABLE
    if roll < NOT_AVAILABLE_THRESHOLD:
        return Outcome.NOT_AVAILABLE
    return Outcome.ALTERNATIVE


def build_plan(
    item: RestaurantCandidate, now: int, rng: random.Random | None = None
) -> SimItemPlan:
    """Build the simulated timeline and outcome for one restaurant.

    Each instant is the previous one plus a random delay, so
    calling_at < speaking_at < completed_at always holds.

    Args:
        item: Restaurant candidate to plan a call for
        now: Current instant in epoch milliseconds
        rng: Random source (a fresh unseeded one if not provided)

    Returns:
        SimItemPlan carrying the candidate's fields plus timeline and outcome
    """
    rng = rng or random.Random()

    calling_at = now + rng.randint(*CALLING_DELAY_MS)
    speaking_at = calling_at + rng.randint(*SPEAKING_DELAY_MS)
    completed_at = speaking_at + rng.randint(*COMPLETED_DELAY_MS)

    return SimItemPlan(
        **item.model_dump(include=set(RestaurantCandidate.model_fields)),
        timeline=Timeline(
            calling_at=calling_at,
            speaking_at=speaking_at,
            completed_at=completed_at,
        ),
        outcome=draw_outcome(rng),
    )
