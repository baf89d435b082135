"""
Report Engine — daily migration and work-order reports.

Filters are explicit parameters (``ReportFilters``) threaded into each
pure query function; nothing reads ambient UI state. All functions work
on in-memory records and never fail on empty input: no data yields an
empty sequence.

Preset report library (``ReportEngine.run``):
  - daily           — per-day work-order counts
  - work-orders     — one row per filtered work order
  - reconciliation  — asset vs. completed work-order cross-check
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Mapping

from fibertrack.core.exceptions import ValidationError
from fibertrack.domain.records import FILTER_ALL, REGIONS
from fibertrack.services import reconciliation
from fibertrack.utils.helpers import parse_date

logger = logging.getLogger(__name__)

UNSCHEDULED = "unscheduled"
NOT_AVAILABLE = "N/A"


# ═════════════════════════════════════════════════════════════════════════════
# Filters
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ReportFilters:
    start_date: object = None      # datetime.date | None, inclusive
    end_date: object = None        # datetime.date | None, inclusive
    region: str = FILTER_ALL
    wave_id: str = FILTER_ALL

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "ReportFilters":
        """Build filters from query-string style arguments.

        Raises:
            ValidationError: malformed date, unknown region, or start > end.
        """
        errors = {}
        start = end = None
        for key in ("start_date", "end_date"):
            raw = (args.get(key) or "").strip()
            if raw:
                parsed = parse_date(raw)
                if parsed is None:
                    errors[key] = f"Invalid date {raw!r}. Use YYYY-MM-DD"
                elif key == "start_date":
                    start = parsed
                else:
                    end = parsed
        region = (args.get("region") or FILTER_ALL).strip() or FILTER_ALL
        if region != FILTER_ALL and region not in REGIONS:
            errors["region"] = f"Must be one of: {FILTER_ALL}, {', '.join(REGIONS)}"
        if start and end and start > end:
            errors["end_date"] = "Start date must be before end date"
        if errors:
            raise ValidationError("Invalid report filters", details=errors)
        wave_id = (args.get("wave_id") or FILTER_ALL).strip() or FILTER_ALL
        return cls(start_date=start, end_date=end, region=region, wave_id=wave_id)

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "region": self.region,
            "wave_id": self.wave_id,
        }


def _day_of(work_order) -> str | None:
    """UTC calendar date (YYYY-MM-DD) of a work order's start, if any."""
    if work_order.start_time is None:
        return None
    return work_order.start_time.date().isoformat()


def filter_work_orders(work_orders, locations, filters: ReportFilters) -> list:
    """Apply date, region and wave filters.

    Work orders without a start_time always pass the date filter. Region and
    wave filters resolve the work order's location; an unresolved location
    never matches a specific region or wave.
    """
    locations_by_id = {loc.id: loc for loc in locations}
    start = filters.start_date.isoformat() if filters.start_date else None
    end = filters.end_date.isoformat() if filters.end_date else None

    kept = []
    for wo in work_orders:
        day = _day_of(wo)
        if filters.has_date_range and day is not None:
            if start and day < start:
                continue
            if end and day > end:
                continue
        location = locations_by_id.get(wo.location_id)
        if filters.region != FILTER_ALL and (location is None or location.region != filters.region):
            continue
        if filters.wave_id != FILTER_ALL and (location is None or location.wave_id != filters.wave_id):
            continue
        kept.append(wo)
    return kept


# ═════════════════════════════════════════════════════════════════════════════
# Daily aggregation
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class DailyBucket:
    date: str
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    failed: int = 0
    assigned: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


_STATUS_FIELDS = {
    "Completed": "completed",
    "In Progress": "in_progress",
    "Failed": "failed",
    "Assigned": "assigned",
}


def daily_summary(work_orders, locations, filters: ReportFilters | None = None) -> list[DailyBucket]:
    """Bucket filtered work orders by start date.

    Work orders with no start_time go to a stable ``"unscheduled"`` bucket,
    emitted after the dated buckets. Dated buckets are sorted ascending by
    their ISO date string.
    """
    filters = filters or ReportFilters()
    buckets: dict[str, DailyBucket] = {}
    for wo in filter_work_orders(work_orders, locations, filters):
        key = _day_of(wo) or UNSCHEDULED
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DailyBucket(date=key)
        bucket.total += 1
        status_field = _STATUS_FIELDS.get(wo.status)
        if status_field:
            setattr(bucket, status_field, getattr(bucket, status_field) + 1)

    dated = sorted((b for k, b in buckets.items() if k != UNSCHEDULED), key=lambda b: b.date)
    if UNSCHEDULED in buckets:
        dated.append(buckets[UNSCHEDULED])
    return dated


def daily_report_rows(buckets) -> list[dict]:
    return [
        {
            "Date": b.date,
            "Completed": b.completed,
            "In Progress": b.in_progress,
            "Failed": b.failed,
            "Total": b.total,
        }
        for b in buckets
    ]


# ═════════════════════════════════════════════════════════════════════════════
# Work-order detail
# ═════════════════════════════════════════════════════════════════════════════


def work_order_report_rows(work_orders, locations, filters: ReportFilters | None = None) -> list[dict]:
    filters = filters or ReportFilters()
    locations_by_id = {loc.id: loc for loc in locations}
    rows = []
    for wo in filter_work_orders(work_orders, locations, filters):
        location = locations_by_id.get(wo.location_id)
        rows.append({
            "Work Order ID": wo.id[:8],
            "Location": location.address if location else NOT_AVAILABLE,
            "Region": location.region if location else NOT_AVAILABLE,
            "Status": wo.status,
            "Start Time": wo.start_time.isoformat() if wo.start_time else NOT_AVAILABLE,
            "End Time": wo.end_time.isoformat() if wo.end_time else NOT_AVAILABLE,
        })
    return rows


# ═════════════════════════════════════════════════════════════════════════════
# REPORT ENGINE
# ═════════════════════════════════════════════════════════════════════════════


class ReportEngine:
    """Runs preset reports over a store snapshot."""

    _RUNNERS: dict = {}

    @classmethod
    def register(cls, report_key: str):
        """Decorator to register a preset report runner."""
        def decorator(fn):
            cls._RUNNERS[report_key] = fn
            return fn
        return decorator

    @classmethod
    def available(cls) -> list[str]:
        return sorted(cls._RUNNERS)

    @classmethod
    def run(cls, report_key: str, snapshot, filters: ReportFilters) -> dict:
        """Execute a preset report.

        Returns:
            {"title": str, "rows": [flat dict], "summary": dict | None, "filters": dict}

        Raises:
            ValidationError: unknown report key.
        """
        runner = cls._RUNNERS.get(report_key)
        if not runner:
            raise ValidationError(
                f"Unknown report: {report_key}",
                details={"report": f"Must be one of: {', '.join(cls.available())}"},
            )
        result = runner(snapshot, filters)
        result["filters"] = filters.to_dict()
        logger.debug("Report %s produced %d rows", report_key, len(result["rows"]))
        return result


@ReportEngine.register("daily")
def _run_daily(snapshot, filters):
    buckets = daily_summary(snapshot.work_orders, snapshot.locations, filters)
    return {
        "title": "Daily Migration Report",
        "rows": daily_report_rows(buckets),
        "summary": {
            "days": sum(1 for b in buckets if b.date != UNSCHEDULED),
            "work_orders": sum(b.total for b in buckets),
            "completed": sum(b.completed for b in buckets),
        },
    }


@ReportEngine.register("work-orders")
def _run_work_orders(snapshot, filters):
    rows = work_order_report_rows(snapshot.work_orders, snapshot.locations, filters)
    return {"title": "Work Order Report", "rows": rows, "summary": {"total": len(rows)}}


@ReportEngine.register("reconciliation")
def _run_reconciliation(snapshot, filters):
    rows = reconciliation.reconcile_assets(
        snapshot.assets, snapshot.work_orders, snapshot.locations, region=filters.region,
    )
    return {
        "title": "Asset Reconciliation Report",
        "rows": reconciliation.reconciliation_report_rows(rows),
        "summary": reconciliation.summarize(rows).to_dict(),
    }
