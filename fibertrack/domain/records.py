"""
Plain entity records and the validated deserialization boundary.

The computational core (wave progress, reconciliation, daily reports)
works on these frozen records, never on ORM rows or raw JSON. Every
external row enters through a ``load_*`` function which checks required
fields, enum membership and date formats; rows that fail are quarantined
by ``load_many`` instead of being trusted.

Usage:
    from fibertrack.domain.records import load_many, load_work_order

    result = load_many(load_work_order, rows)
    result.records       # list[WorkOrderRecord]
    result.quarantined   # list[QuarantinedRow]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from fibertrack.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


# ── Enumerations ─────────────────────────────────────────────────────────────

REGIONS = ("Vancouver Island", "Lower Mainland", "Interior", "North")

FIBER_STATUSES = ("Fiber Ready", "Pending Feasibility", "Copper Only")

CUSTOMER_COHORTS = ("Hospitals", "Government", "Enterprise")

WAVE_PROGRESS_STATUSES = ("Planning", "In Progress", "Completed", "On Hold")

ASSET_TYPES = ("copper", "fiber", "ONT")

ASSET_STATUSES = ("active", "pending", "completed", "failed")

WORK_ORDER_STATUSES = ("Assigned", "In Progress", "Completed", "Failed")

CONSENT_STATUSES = ("Consented", "Pending", "Declined")

FILTER_ALL = "All"


# ── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinates:
    lat: float = 0.0
    lng: float = 0.0

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class LocationRecord:
    id: str
    address: str
    region: str
    fiber_status: str
    coordinates: Coordinates = field(default_factory=Coordinates)
    wave_id: str | None = None


@dataclass(frozen=True)
class WaveRecord:
    id: str
    name: str
    start_date: date
    end_date: date
    region: str
    customer_cohort: str
    progress_status: str = "Planning"
    progress_percentage: int = 0


@dataclass(frozen=True)
class AssetRecord:
    id: str
    type: str
    location_id: str
    status: str
    installation_date: date | None = None
    technician_id: str | None = None


@dataclass(frozen=True)
class WorkOrderRecord:
    id: str
    location_id: str
    status: str
    technician_id: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def is_unassigned(self) -> bool:
        return not self.technician_id


@dataclass(frozen=True)
class TechnicianRecord:
    id: str
    name: str
    phone: str
    assigned_jobs: int = 0


@dataclass(frozen=True)
class CustomerRecord:
    id: str
    name: str
    phone: str
    address: str
    consent_status: str = "Pending"


@dataclass(frozen=True)
class ConsentLogRecord:
    id: str
    customer_id: str
    agent_name: str
    status: str
    timestamp: datetime
    notes: str | None = None


# ── Errors & batch result ────────────────────────────────────────────────────


class RecordValidationError(ValidationError):
    """A single external row could not be converted into a record."""

    def __init__(self, kind: str, row_id: str | None, errors: list[str]) -> None:
        self.kind = kind
        self.row_id = row_id
        self.errors = errors
        label = f"{kind} {row_id}" if row_id else kind
        super().__init__(f"Invalid {label}: {'; '.join(errors)}", details={"errors": errors})


@dataclass
class QuarantinedRow:
    row: Any  # the source mapping or ORM object
    errors: list[str]


@dataclass
class LoadResult:
    records: list = field(default_factory=list)
    quarantined: list[QuarantinedRow] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.quarantined


# ── Field parsing ────────────────────────────────────────────────────────────


def parse_day(value) -> date | None:
    """Parse ``YYYY-MM-DD`` (or a date/datetime) into a date. Raises ValueError."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO timestamp into an aware UTC datetime. Raises ValueError.

    Naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class _RowCheck:
    """Collects field errors while reading one row."""

    def __init__(self, row: Mapping[str, Any]):
        self.row = row
        self.errors: list[str] = []

    def text(self, name: str, label: str | None = None, required: bool = True) -> str:
        raw = self.row.get(name)
        value = "" if raw is None else str(raw).strip()
        if required and not value:
            self.errors.append(f"{label or name} is required")
        return value

    def optional_text(self, name: str) -> str | None:
        value = self.text(name, required=False)
        return value or None

    def choice(self, name: str, allowed: Iterable[str], default: str | None = None) -> str:
        value = self.text(name, required=default is None)
        if not value:
            return default or ""
        if value not in allowed:
            self.errors.append(
                f"Invalid {name} {value!r}. Must be one of: {', '.join(allowed)}"
            )
        return value

    def day(self, name: str, required: bool = False) -> date | None:
        raw = self.row.get(name)
        if raw in (None, ""):
            if required:
                self.errors.append(f"{name} is required")
            return None
        try:
            return parse_day(raw)
        except (ValueError, TypeError):
            self.errors.append(f"Invalid {name} {raw!r}. Use YYYY-MM-DD format")
            return None

    def moment(self, name: str) -> datetime | None:
        raw = self.row.get(name)
        try:
            return parse_timestamp(raw)
        except (ValueError, TypeError):
            self.errors.append(f"Invalid {name} {raw!r}. Use an ISO-8601 timestamp")
            return None

    def number(self, value, name: str) -> float:
        if value in (None, ""):
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            self.errors.append(f"Invalid {name} {value!r}")
            return 0.0

    def done(self, kind: str) -> None:
        if self.errors:
            raise RecordValidationError(kind, self.row.get("id") or None, self.errors)


# ── Loaders ──────────────────────────────────────────────────────────────────


def load_location(row: Mapping[str, Any]) -> LocationRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    address = check.text("address")
    region = check.choice("region", REGIONS)
    fiber_status = check.choice("fiber_status", FIBER_STATUSES, default="Pending Feasibility")
    coords = row.get("coordinates") or {}
    lat = check.number(coords.get("lat", row.get("lat")), "latitude")
    lng = check.number(coords.get("lng", row.get("lng")), "longitude")
    wave_id = check.optional_text("wave_id")
    check.done("Location")
    return LocationRecord(
        id=rec_id, address=address, region=region, fiber_status=fiber_status,
        coordinates=Coordinates(lat=lat, lng=lng), wave_id=wave_id,
    )


def load_wave(row: Mapping[str, Any]) -> WaveRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    name = check.text("name")
    start = check.day("start_date", required=True)
    end = check.day("end_date", required=True)
    region = check.choice("region", REGIONS)
    cohort = check.choice("customer_cohort", CUSTOMER_COHORTS)
    status = check.choice("progress_status", WAVE_PROGRESS_STATUSES, default="Planning")
    if start and end and start > end:
        check.errors.append("Start date must be before end date")
    pct = row.get("progress_percentage") or 0
    try:
        pct = int(pct)
    except (TypeError, ValueError):
        check.errors.append(f"Invalid progress_percentage {pct!r}")
        pct = 0
    if not 0 <= pct <= 100:
        check.errors.append("progress_percentage must be between 0 and 100")
    check.done("Wave")
    return WaveRecord(
        id=rec_id, name=name, start_date=start, end_date=end, region=region,
        customer_cohort=cohort, progress_status=status, progress_percentage=pct,
    )


def load_asset(row: Mapping[str, Any]) -> AssetRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    asset_type = check.choice("type", ASSET_TYPES)
    location_id = check.text("location_id", required=False)
    status = check.choice("status", ASSET_STATUSES)
    installed = check.day("installation_date")
    technician_id = check.optional_text("technician_id")
    check.done("Asset")
    return AssetRecord(
        id=rec_id, type=asset_type, location_id=location_id, status=status,
        installation_date=installed, technician_id=technician_id,
    )


def load_work_order(row: Mapping[str, Any]) -> WorkOrderRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    location_id = check.text("location_id")
    status = check.choice("status", WORK_ORDER_STATUSES)
    technician_id = check.text("technician_id", required=False)
    start = check.moment("start_time")
    end = check.moment("end_time")
    if start and end and end < start:
        check.errors.append("end_time must not be before start_time")
    check.done("WorkOrder")
    return WorkOrderRecord(
        id=rec_id, location_id=location_id, status=status,
        technician_id=technician_id, start_time=start, end_time=end,
    )


def load_technician(row: Mapping[str, Any]) -> TechnicianRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    name = check.text("name")
    phone = check.text("phone", required=False)
    jobs = row.get("assigned_jobs") or 0
    try:
        jobs = int(jobs)
    except (TypeError, ValueError):
        check.errors.append(f"Invalid assigned_jobs {jobs!r}")
        jobs = 0
    check.done("Technician")
    return TechnicianRecord(id=rec_id, name=name, phone=phone, assigned_jobs=jobs)


def load_customer(row: Mapping[str, Any]) -> CustomerRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    name = check.text("name")
    phone = check.text("phone", required=False)
    address = check.text("address", required=False)
    consent = check.choice("consent_status", CONSENT_STATUSES, default="Pending")
    check.done("Customer")
    return CustomerRecord(
        id=rec_id, name=name, phone=phone, address=address, consent_status=consent,
    )


def load_consent_log(row: Mapping[str, Any]) -> ConsentLogRecord:
    check = _RowCheck(row)
    rec_id = check.text("id")
    customer_id = check.text("customer_id")
    agent = check.text("agent_name")
    status = check.choice("status", CONSENT_STATUSES)
    stamp = check.moment("timestamp")
    if stamp is None and not check.errors:
        check.errors.append("timestamp is required")
    notes = check.optional_text("notes")
    check.done("ConsentLog")
    return ConsentLogRecord(
        id=rec_id, customer_id=customer_id, agent_name=agent, status=status,
        timestamp=stamp, notes=notes,
    )


def load_many(loader: Callable[[Any], Any], rows: Iterable[Any]) -> LoadResult:
    """Apply ``loader`` to every row; quarantine the ones that fail.

    ``loader`` is one of the ``load_*`` functions over mappings, or a
    model's unbound ``to_record`` over ORM rows.
    """
    result = LoadResult()
    for row in rows:
        try:
            result.records.append(loader(row))
        except RecordValidationError as exc:
            result.quarantined.append(QuarantinedRow(row=row, errors=exc.errors))
    if result.quarantined:
        logger.warning(
            "%s quarantined %d of %d rows",
            loader.__qualname__, len(result.quarantined),
            len(result.records) + len(result.quarantined),
        )
    return result
