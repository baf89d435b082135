"""
FiberTrack — Copper-to-Fiber Migration Operations
Customer engagement models.

Models:
    - Customer:    business customer whose service is migrated
    - ConsentLog:  append-only audit trail of consent calls

Customer.consent_status holds the latest decision; ConsentLog rows keep
who recorded which decision and when.
"""

from fibertrack.domain.records import CONSENT_STATUSES, load_consent_log, load_customer
from fibertrack.models import _utcnow, _uuid, db, in_clause, iso


class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(40), nullable=False, default="")
    address = db.Column(db.String(300), nullable=False, default="")
    consent_status = db.Column(
        db.String(20), nullable=False, default="Pending",
        comment="Consented | Pending | Declined",
    )

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(
            f"consent_status IN ({in_clause(CONSENT_STATUSES)})", name="ck_customer_consent",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "consent_status": self.consent_status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_record(self):
        return load_customer(self.to_dict())

    def __repr__(self):
        return f"<Customer {self.id}: {self.name} [{self.consent_status}]>"


class ConsentLog(db.Model):
    """One recorded consent call. Never updated after insert."""

    __tablename__ = "consent_logs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    customer_id = db.Column(
        db.String(36), nullable=False, index=True,
        comment="Weak reference → customers.id",
    )
    agent_name = db.Column(db.String(150), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            f"status IN ({in_clause(CONSENT_STATUSES)})", name="ck_consent_log_status",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "agent_name": self.agent_name,
            "status": self.status,
            "timestamp": iso(self.timestamp),
            "notes": self.notes,
        }

    def to_record(self):
        return load_consent_log(self.to_dict())

    def __repr__(self):
        return f"<ConsentLog {self.id}: {self.customer_id} [{self.status}]>"
