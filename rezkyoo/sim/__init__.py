"""Simulation engine used when REZKYOO_CALL_MODE=simulate."""

from rezkyoo.sim.bookings import SimBookingStore
from rezkyoo.sim.plan import build_plan, draw_outcome
from rezkyoo.sim.projector import project, project_batch, project_item
from rezkyoo.sim.store import SimBatchStore, now_ms

__all__ = [
    "SimBatchStore",
    "SimBookingStore",
    "build_plan",
    "draw_outcome",
    "now_ms",
    "project",
    "project_batch",
    "project_item",
]
