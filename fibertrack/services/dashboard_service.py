"""
Operations dashboard KPIs.

Aggregates the headline numbers of the migration program:
  - Completed migrations (assets with status ``completed``)
  - Work orders in progress / failed
  - Average install time over completed work orders with both timestamps
  - Wave and location counts
"""

import logging

from fibertrack.services.snapshot import load_snapshot
from fibertrack.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def average_install_hours(work_orders):
    """Mean start→end duration in hours (1 decimal) of completed work orders.

    Returns "N/A" when no completed work order has both timestamps.
    """
    durations = [
        (wo.end_time - wo.start_time).total_seconds()
        for wo in work_orders
        if wo.status == "Completed" and wo.start_time and wo.end_time
    ]
    if not durations:
        return NOT_AVAILABLE
    return round_half_up(sum(durations) / len(durations) / 3600, 1)


def compute_kpis(snapshot) -> dict:
    work_orders = snapshot.work_orders
    return {
        "completed_migrations": sum(1 for a in snapshot.assets if a.status == "completed"),
        "work_orders_in_progress": sum(1 for wo in work_orders if wo.status == "In Progress"),
        "failed_work_orders": sum(1 for wo in work_orders if wo.status == "Failed"),
        "average_install_hours": average_install_hours(work_orders),
        "wave_count": len(snapshot.waves),
        "location_count": len(snapshot.locations),
        "quarantined_rows": snapshot.quarantined_total,
    }


def get_kpis() -> dict:
    """KPIs over the current store contents."""
    kpis = compute_kpis(load_snapshot())
    logger.debug("Dashboard KPIs computed: %s", kpis)
    return kpis
