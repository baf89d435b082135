"""Shared utility functions used by services and blueprints.

get_or_raise:       primary-key lookup raising NotFoundError
parse_date:         lenient ISO date parser (None on bad input)
commit_or_raise:    commit the session, mapping driver errors to platform exceptions
percentage:         divide-by-zero-safe, half-up rounded percentage
"""
import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, ConflictError, NotFoundError
from fibertrack.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError."""
    label = label or model.__name__
    try:
        obj = db.session.get(model, pk)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError(f"load {label}", str(exc.__class__.__name__)) from exc
    if not obj:
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def parse_date(value):
    """Parse an ISO date string (or ISO datetime) to a date object.

    Returns None for empty/invalid input.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        return None


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise(operation, resource="Record"):
    """Commit the current SQLAlchemy session or raise a platform exception.

    IntegrityError  → ConflictError (409)
    other DB errors → BackendUnavailableError (503)

    The session is rolled back before raising so the caller's request can
    still render an error response.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit (%s): %s", operation, exc.orig)
        raise ConflictError(resource, "constraint", str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Database error on commit (%s)", operation)
        raise BackendUnavailableError(operation, exc.__class__.__name__) from exc


# ── Math ─────────────────────────────────────────────────────────────────────

def round_half_up(value, digits=0):
    """Round with half-up semantics (2.5 → 3), unlike Python's banker's round()."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def percentage(part, whole, digits=0):
    """``part / whole * 100`` rounded half-up; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return round_half_up(Decimal(part) * 100 / Decimal(whole), digits)
