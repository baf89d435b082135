"""
Customer engagement: customers, consent status and the consent call log.

Recording a consent call appends a ConsentLog row and, when the customer
resolves, sets its consent status to the call outcome in the same commit.
A log for an unknown customer id is still recorded.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError, ValidationError
from fibertrack.domain.records import CONSENT_STATUSES, FILTER_ALL
from fibertrack.models import db
from fibertrack.models.engagement import ConsentLog, Customer
from fibertrack.utils.helpers import commit_or_raise, get_or_raise

logger = logging.getLogger(__name__)


def _check_consent(status, errors, key="consent_status"):
    if status not in CONSENT_STATUSES:
        errors[key] = f"Must be one of: {', '.join(CONSENT_STATUSES)}"


def list_customers(consent_status=None) -> list[dict]:
    q = Customer.query
    if consent_status and consent_status != FILTER_ALL:
        q = q.filter_by(consent_status=consent_status)
    try:
        return [c.to_dict() for c in q.order_by(Customer.name).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch customers", exc.__class__.__name__) from exc


def create_customer(data: dict) -> dict:
    errors = {}
    name = str(data.get("name") or "").strip()
    if not name:
        errors["name"] = "Customer name is required"
    status = data.get("consent_status") or "Pending"
    _check_consent(status, errors)
    if errors:
        raise ValidationError("Invalid customer", details=errors)

    customer = Customer(
        name=name,
        phone=str(data.get("phone") or "").strip(),
        address=str(data.get("address") or "").strip(),
        consent_status=status,
    )
    db.session.add(customer)
    commit_or_raise("create customer", "Customer")
    return customer.to_dict()


def update_consent(customer_id: str, consent_status: str) -> dict:
    errors = {}
    _check_consent(consent_status, errors)
    if errors:
        raise ValidationError("Invalid consent status", details=errors)
    customer = get_or_raise(Customer, customer_id)
    customer.consent_status = consent_status
    commit_or_raise("update customer consent", "Customer")
    logger.info("Customer %s consent=%s", customer_id, consent_status)
    return customer.to_dict()


def consent_summary() -> dict:
    """Customer counts per consent status plus the total."""
    customers = list_customers()
    counts = {status: 0 for status in CONSENT_STATUSES}
    for customer in customers:
        counts[customer["consent_status"]] += 1
    return {"total": len(customers), "by_status": counts}


# ── Consent log ──────────────────────────────────────────────────────────────


def list_consent_logs(customer_id=None) -> list[dict]:
    """Consent calls, most recent first."""
    q = ConsentLog.query
    if customer_id:
        q = q.filter_by(customer_id=customer_id)
    try:
        return [log.to_dict() for log in q.order_by(ConsentLog.timestamp.desc()).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise BackendUnavailableError("fetch consent logs", exc.__class__.__name__) from exc


def create_consent_log(data: dict) -> dict:
    """Record one consent call.

    Raises:
        ValidationError: missing customer or agent name, unknown status.
    """
    errors = {}
    customer_id = str(data.get("customer_id") or "").strip()
    if not customer_id:
        errors["customer_id"] = "required"
    agent_name = str(data.get("agent_name") or "").strip()
    if not agent_name:
        errors["agent_name"] = "Agent name is required"
    status = data.get("status")
    _check_consent(status, errors, key="status")
    if errors:
        raise ValidationError("Invalid consent log", details=errors)

    log = ConsentLog(
        customer_id=customer_id,
        agent_name=agent_name,
        status=status,
        notes=(data.get("notes") or None),
    )
    db.session.add(log)
    customer = db.session.get(Customer, customer_id)
    if customer is not None:
        customer.consent_status = status
    commit_or_raise("create consent log", "ConsentLog")
    logger.info("Consent log recorded customer=%s status=%s", customer_id, status)
    return log.to_dict()
