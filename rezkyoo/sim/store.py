"""In-memory store of simulated batches."""

import logging
import random
import time
from collections.abc import Iterable

from rezkyoo.models.batch import RestaurantCandidate, SimBatch
from rezkyoo.sim.plan import build_plan

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SimBatchStore:
    """Maps batch IDs to their seeded simulation.

    One store is created per application and handed to request handlers.
    Entries are never removed; they live as long as the store does.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._batches: dict[str, SimBatch] = {}

    def _build(
        self, batch_id: str, items: Iterable[RestaurantCandidate], now: int | None
    ) -> SimBatch:
        if now is None:
            now = now_ms()
        plans = tuple(build_plan(item, now, self._rng) for item in items)
        return SimBatch(batch_id=batch_id, created_at=now, items=plans)

    def seed(
        self,
        batch_id: str,
        items: Iterable[RestaurantCandidate],
        now: int | None = None,
    ) -> SimBatch:
        """Seed a batch unless it already exists.

        Args:
            batch_id: Batch identifier
            items: Restaurant candidates to simulate calls for
            now: Seeding instant in epoch ms (defaults to the current time)

        Returns:
            The stored batch; an existing entry is returned unchanged
        """
        existing = self._batches.get(batch_id)
        if existing is not None:
            return existing

        batch = self._build(batch_id, items, now)
        # setdefault is an atomic insert-if-absent: a concurrent seed that
        # landed first wins and both callers see the same batch.
        stored = self._batches.setdefault(batch_id, batch)
        if stored is batch:
            logger.info(f"Seeded simulated batch {batch_id} ({len(batch.items)} items)")
        return stored

    def reseed(
        self,
        batch_id: str,
        items: Iterable[RestaurantCandidate],
        now: int | None = None,
    ) -> SimBatch:
        """Replace a batch with a fresh plan so its timers restart now."""
        batch = self._build(batch_id, items, now)
        self._batches[batch_id] = batch
        logger.info(f"Reseeded simulated batch {batch_id} ({len(batch.items)} items)")
        return batch

    def read(self, batch_id: str) -> SimBatch | None:
        return self._batches.get(batch_id)

    def clear(self) -> None:
        self._batches.clear()

    def __len__(self) -> int:
        return len(self._batches)

    def __contains__(self, batch_id: object) -> bool:
        return batch_id in self._batches
