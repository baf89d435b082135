"""
Wave progress calculator.

A wave's progress is the share of completed work orders across the
locations scheduled into it:

    progress = round_half_up(100 * completed / total)

and 0 when the wave has no locations or its locations have no work
orders. ``calculate_wave_progress`` is the pure computation over
in-memory records; ``update_wave_progress`` runs the same computation
against the database and writes the result back to
``Wave.progress_percentage`` (read-modify-write, last write wins).

``refresh_all_wave_progress`` recomputes every wave independently and,
when the store cannot be reached for a wave, falls back to the local
computation over an already-fetched snapshot so the caller still gets a
number for that wave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, NotFoundError
from fibertrack.domain.records import load_many
from fibertrack.models import db
from fibertrack.models.field_ops import WorkOrder
from fibertrack.models.inventory import Location
from fibertrack.models.wave import Wave
from fibertrack.utils.helpers import get_or_raise, percentage

logger = logging.getLogger(__name__)

COMPLETED = "Completed"


@dataclass
class ProgressOutcome:
    """Result of recomputing one wave."""
    wave_id: str
    progress_percentage: int
    source: str            # "store" | "local"
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "wave_id": self.wave_id,
            "progress_percentage": self.progress_percentage,
            "source": self.source,
            "error": self.error,
        }


def calculate_wave_progress(wave_id, locations, work_orders) -> int:
    """Completion percentage (0-100) of one wave over in-memory records."""
    location_ids = {loc.id for loc in locations if loc.wave_id == wave_id}
    if not location_ids:
        return 0

    wave_orders = [wo for wo in work_orders if wo.location_id in location_ids]
    if not wave_orders:
        return 0

    completed = sum(1 for wo in wave_orders if wo.status == COMPLETED)
    return percentage(completed, len(wave_orders))


def update_wave_progress(wave_id: str) -> int:
    """Recompute a wave's progress from the store and persist it.

    Raises:
        NotFoundError: unknown wave.
        BackendUnavailableError: the store could not be read or written;
            the persisted percentage is left unchanged.
    """
    wave = get_or_raise(Wave, wave_id)
    try:
        locations = load_many(
            Location.to_record, Location.query.filter_by(wave_id=wave_id).all(),
        ).records
        location_ids = [loc.id for loc in locations]
        work_orders = []
        if location_ids:
            work_orders = load_many(
                WorkOrder.to_record,
                WorkOrder.query.filter(WorkOrder.location_id.in_(location_ids)).all(),
            ).records

        progress = calculate_wave_progress(wave_id, locations, work_orders)
        wave.progress_percentage = progress
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Wave progress write failed: %s", exc, extra={"wave_id": wave_id})
        raise BackendUnavailableError("update wave progress", exc.__class__.__name__) from exc

    logger.info(
        "Wave progress stored over %d work orders", len(work_orders),
        extra={"wave_id": wave_id, "progress": progress, "source": "store"},
    )
    return progress


def refresh_all_wave_progress(waves, locations, work_orders) -> list[ProgressOutcome]:
    """Recompute every wave; fall back to the local snapshot per failed wave.

    A failure for one wave never aborts the others.
    """
    outcomes = []
    for wave in waves:
        try:
            outcomes.append(ProgressOutcome(wave.id, update_wave_progress(wave.id), "store"))
        except (BackendUnavailableError, NotFoundError) as exc:
            local = calculate_wave_progress(wave.id, locations, work_orders)
            logger.warning(
                "Store refresh failed, using local value: %s", exc,
                extra={"wave_id": wave.id, "progress": local, "source": "local"},
            )
            outcomes.append(ProgressOutcome(wave.id, local, "local", error=str(exc)))
    return outcomes
