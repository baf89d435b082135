"""
Migration wave business logic.

A wave groups locations migrated together inside a date range. Its
``progress_percentage`` is owned by the wave-progress calculator: it starts
at 0 and create/update payloads cannot set it.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, ValidationError
from fibertrack.domain.records import (
    CUSTOMER_COHORTS,
    FILTER_ALL,
    REGIONS,
    WAVE_PROGRESS_STATUSES,
)
from fibertrack.models import db
from fibertrack.models.inventory import Location
from fibertrack.models.wave import Wave
from fibertrack.utils.helpers import commit_or_raise, get_or_raise, parse_date

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "start_date", "end_date", "region", "customer_cohort", "progress_status")


def validate_wave(data: dict) -> list[str]:
    """Full-form validation for a wave payload; returns error messages."""
    errors = []
    if not str(data.get("name") or "").strip():
        errors.append("Wave name is required")

    raw_start, raw_end = data.get("start_date"), data.get("end_date")
    if not raw_start or not raw_end:
        errors.append("Both start and end dates are required")
    else:
        start, end = parse_date(raw_start), parse_date(raw_end)
        if start is None or end is None:
            errors.append("Dates must use YYYY-MM-DD format")
        elif start > end:
            errors.append("Start date must be before end date")

    region = data.get("region")
    if not region:
        errors.append("Region is required")
    elif region not in REGIONS:
        errors.append(f"Region must be one of: {', '.join(REGIONS)}")

    cohort = data.get("customer_cohort")
    if not cohort:
        errors.append("Customer cohort is required")
    elif cohort not in CUSTOMER_COHORTS:
        errors.append(f"Customer cohort must be one of: {', '.join(CUSTOMER_COHORTS)}")

    status = data.get("progress_status")
    if status and status not in WAVE_PROGRESS_STATUSES:
        errors.append(f"Progress status must be one of: {', '.join(WAVE_PROGRESS_STATUSES)}")
    return errors


def _raise_if_invalid(errors):
    if errors:
        raise ValidationError("Invalid wave", details={"errors": errors})


def list_waves(region=None) -> list[dict]:
    """Waves ordered by start date, latest first."""
    q = Wave.query
    if region and region != FILTER_ALL:
        q = q.filter_by(region=region)
    try:
        return [w.to_dict() for w in q.order_by(Wave.start_date.desc()).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch waves", exc.__class__.__name__) from exc


def get_wave(wave_id: str) -> dict:
    return get_or_raise(Wave, wave_id).to_dict()


def create_wave(data: dict) -> dict:
    """Create a wave with progress 0.

    Raises:
        ValidationError: name missing, dates missing or reversed, unknown
            region or cohort.
    """
    _raise_if_invalid(validate_wave(data))
    wave = Wave(
        name=str(data["name"]).strip(),
        start_date=parse_date(data["start_date"]),
        end_date=parse_date(data["end_date"]),
        region=data["region"],
        customer_cohort=data["customer_cohort"],
        progress_status=data.get("progress_status") or "Planning",
        progress_percentage=0,
    )
    db.session.add(wave)
    commit_or_raise("create wave", "Wave")
    logger.info("Wave created id=%s name=%r region=%s", wave.id, wave.name, wave.region)
    return wave.to_dict()


def update_wave(wave_id: str, data: dict) -> dict:
    """Apply a partial update. Any valid progress status may be selected."""
    wave = get_or_raise(Wave, wave_id)
    merged = wave.to_dict()
    merged.update({k: data[k] for k in UPDATABLE_FIELDS if k in data})
    _raise_if_invalid(validate_wave(merged))

    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in ("start_date", "end_date"):
            value = parse_date(value)
        elif field == "name":
            value = str(value).strip()
        setattr(wave, field, value)
    commit_or_raise("update wave", "Wave")
    return wave.to_dict()


def delete_wave(wave_id: str) -> None:
    """Delete a wave. Locations keep their (now dangling) wave_id."""
    wave = get_or_raise(Wave, wave_id)
    db.session.delete(wave)
    commit_or_raise("delete wave", "Wave")
    logger.info("Wave deleted id=%s", wave_id)


def assign_location(wave_id: str, location_id: str) -> dict:
    """Schedule a location into a wave; returns the updated location."""
    get_or_raise(Wave, wave_id)
    location = get_or_raise(Location, location_id)
    location.wave_id = wave_id
    commit_or_raise("assign location to wave", "Location")
    return location.to_dict()
