"""
Field operations business logic: technicians and work orders.

Work orders reference their location and technician by weak id; an empty
technician_id means the order is unassigned. Status transitions are
explicit selections with no ordering guard beyond enum membership.
"""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, ValidationError
from fibertrack.domain.records import FILTER_ALL, WORK_ORDER_STATUSES, parse_timestamp
from fibertrack.models import db
from fibertrack.models.field_ops import Technician, WorkOrder
from fibertrack.models.inventory import Location
from fibertrack.services.task_runner import runner
from fibertrack.utils.helpers import commit_or_raise, get_or_raise

logger = logging.getLogger(__name__)

PHONE_CHARS = re.compile(r"^[\d\s\-\(\)\+]+$")
PHONE_MIN_DIGITS = 10

IN_PROGRESS = "In Progress"
COMPLETED = "Completed"


def validate_phone(phone: str) -> str | None:
    """Return an error message for a bad phone number, else None."""
    if not phone or not phone.strip():
        return "Phone number is required"
    digits = sum(ch.isdigit() for ch in phone)
    if not PHONE_CHARS.match(phone) or digits < PHONE_MIN_DIGITS:
        return "Invalid phone number format"
    return None


def _timestamp(data, key, errors):
    try:
        return parse_timestamp(data.get(key))
    except (TypeError, ValueError):
        errors[key] = "Use an ISO-8601 timestamp"
        return None


def _job_count(value, errors) -> int:
    if value is None or value == "":
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        count = -1
    if isinstance(value, (bool, float)) or count < 0:
        errors["assigned_jobs"] = "Must be a non-negative integer"
        return 0
    return count


def _check_time_order(start, end, errors):
    if start and end and end < start:
        errors["end_time"] = "end_time must not be before start_time"


# ═════════════════════════════════════════════════════════════════════════════
# Technicians
# ═════════════════════════════════════════════════════════════════════════════


def list_technicians() -> list[dict]:
    try:
        return [t.to_dict() for t in Technician.query.order_by(Technician.name).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch technicians", exc.__class__.__name__) from exc


def create_technician(data: dict) -> dict:
    """Create a technician.

    Raises:
        ValidationError: missing name, or a phone number with characters other
            than digits, spaces and ``-()+`` or fewer than 10 digits.
    """
    errors = {}
    name = str(data.get("name") or "").strip()
    if not name:
        errors["name"] = "Technician name is required"
    phone = str(data.get("phone") or "")
    phone_error = validate_phone(phone)
    if phone_error:
        errors["phone"] = phone_error
    assigned_jobs = _job_count(data.get("assigned_jobs"), errors)
    if errors:
        raise ValidationError("Invalid technician", details=errors)

    tech = Technician(name=name, phone=phone.strip(), assigned_jobs=assigned_jobs)
    db.session.add(tech)
    commit_or_raise("create technician", "Technician")
    logger.info("Technician created id=%s", tech.id)
    return tech.to_dict()


def technician_job_counts(technicians=None, work_orders=None) -> dict[str, int]:
    """Open (non-completed) work orders per technician id.

    Every known technician appears in the result, with 0 when idle.
    """
    if technicians is None:
        technicians = list_technicians()
    if work_orders is None:
        work_orders = list_work_orders()
    counts = {tech["id"]: 0 for tech in technicians}
    for wo in work_orders:
        tech_id = wo["technician_id"]
        if tech_id in counts and wo["status"] != COMPLETED:
            counts[tech_id] += 1
    return counts


# ═════════════════════════════════════════════════════════════════════════════
# Work orders
# ═════════════════════════════════════════════════════════════════════════════


def list_work_orders(status=None, technician_id=None, location_id=None) -> list[dict]:
    """Work orders, newest first. ``technician_id=""`` selects unassigned ones."""
    q = WorkOrder.query
    if status and status != FILTER_ALL:
        q = q.filter_by(status=status)
    if technician_id is not None:
        q = q.filter_by(technician_id=technician_id)
    if location_id:
        q = q.filter_by(location_id=location_id)
    try:
        return [wo.to_dict() for wo in q.order_by(WorkOrder.created_at.desc()).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch work orders", exc.__class__.__name__) from exc


def create_work_order(data: dict) -> dict:
    errors = {}
    location_id = str(data.get("location_id") or "").strip()
    if not location_id:
        errors["location_id"] = "required"
    status = data.get("status") or "Assigned"
    if status not in WORK_ORDER_STATUSES:
        errors["status"] = f"Must be one of: {', '.join(WORK_ORDER_STATUSES)}"
    start = _timestamp(data, "start_time", errors)
    end = _timestamp(data, "end_time", errors)
    _check_time_order(start, end, errors)
    if errors:
        raise ValidationError("Invalid work order", details=errors)

    wo = WorkOrder(
        location_id=location_id,
        technician_id=str(data.get("technician_id") or ""),
        status=status,
        start_time=start,
        end_time=end,
    )
    db.session.add(wo)
    commit_or_raise("create work order", "WorkOrder")
    logger.info("Work order created id=%s location=%s", wo.id, location_id)
    return wo.to_dict()


def assign_technician(work_order_id: str, technician_id: str) -> dict:
    """Assign (or with ``""`` unassign) a technician."""
    wo = get_or_raise(WorkOrder, work_order_id, "WorkOrder")
    wo.technician_id = technician_id or ""
    commit_or_raise("assign technician", "WorkOrder")
    logger.info("Work order %s technician=%r", work_order_id, wo.technician_id)
    return wo.to_dict()


def update_status(work_order_id: str, status: str, start_time=None, end_time=None) -> dict:
    """Set the status and, when given, the start/end timestamps.

    Omitted timestamps keep their stored value, except that moving to
    ``In Progress`` stamps a missing start_time and moving to ``Completed``
    stamps a missing end_time with the current time. The resulting pair
    must still satisfy end >= start.

    When the order enters or leaves ``Completed`` and its location belongs
    to a wave, a progress refresh for that wave is submitted; the response
    carries the task under ``progress_refresh`` (None otherwise).
    """
    errors = {}
    if status not in WORK_ORDER_STATUSES:
        errors["status"] = f"Must be one of: {', '.join(WORK_ORDER_STATUSES)}"
    payload = {"start_time": start_time, "end_time": end_time}
    start = _timestamp(payload, "start_time", errors)
    end = _timestamp(payload, "end_time", errors)
    if errors:
        raise ValidationError("Invalid status update", details=errors)

    wo = get_or_raise(WorkOrder, work_order_id, "WorkOrder")
    now = datetime.now(timezone.utc)
    effective_start = start or parse_timestamp(wo.start_time)
    effective_end = end or parse_timestamp(wo.end_time)
    if status == IN_PROGRESS and effective_start is None:
        start = effective_start = now
    if status == COMPLETED and effective_end is None:
        end = effective_end = now
    _check_time_order(effective_start, effective_end, errors)
    if errors:
        raise ValidationError("Invalid status update", details=errors)

    completion_changed = (wo.status == COMPLETED) != (status == COMPLETED)
    wo.status = status
    if start:
        wo.start_time = start
    if end:
        wo.end_time = end
    commit_or_raise("update work order status", "WorkOrder")
    logger.info("Work order status=%s", status,
                extra={"work_order_id": work_order_id, "location_id": wo.location_id})

    result = wo.to_dict()
    result["progress_refresh"] = None
    if completion_changed:
        result["progress_refresh"] = _submit_wave_refresh(wo.location_id)
    return result


def _submit_wave_refresh(location_id: str) -> dict | None:
    """Submit a progress refresh for the wave holding ``location_id``, if any."""
    location = db.session.get(Location, location_id) if location_id else None
    if location is None or not location.wave_id:
        return None
    return runner.submit([location.wave_id])
