"""
FiberTrack — Copper-to-Fiber Migration Operations
Field operations models.

Models:
    - Technician:  field technician who works installs
    - WorkOrder:   one unit of technician-assigned field work at a location

Lifecycle states:
    WorkOrder.status:  Assigned → In Progress → Completed | Failed
    (transitions are explicit user selections; no guard beyond enum membership)
"""

from fibertrack.domain.records import WORK_ORDER_STATUSES, load_technician, load_work_order
from fibertrack.models import _utcnow, _uuid, db, in_clause, iso


# ═════════════════════════════════════════════════════════════════════════════
# 1. Technician
# ═════════════════════════════════════════════════════════════════════════════


class Technician(db.Model):
    __tablename__ = "technicians"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(40), nullable=False, default="")
    assigned_jobs = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "assigned_jobs": self.assigned_jobs,
            "created_at": iso(self.created_at),
        }

    def to_record(self):
        return load_technician(self.to_dict())

    def __repr__(self):
        return f"<Technician {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. WorkOrder
# ═════════════════════════════════════════════════════════════════════════════


class WorkOrder(db.Model):
    """
    Field work at one location. ``technician_id`` is an empty string while
    the order is unassigned.
    """

    __tablename__ = "work_orders"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    location_id = db.Column(
        db.String(36), nullable=False, index=True,
        comment="Weak reference → locations.id",
    )
    technician_id = db.Column(
        db.String(36), nullable=False, default="", index=True,
        comment="Weak reference → technicians.id; '' = unassigned",
    )
    status = db.Column(
        db.String(20), nullable=False, default="Assigned",
        comment="Assigned | In Progress | Completed | Failed",
    )
    start_time = db.Column(db.DateTime(timezone=True), nullable=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint(
            f"status IN ({in_clause(WORK_ORDER_STATUSES)})", name="ck_work_order_status",
        ),
        db.CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR end_time >= start_time",
            name="ck_work_order_time_order",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "location_id": self.location_id,
            "technician_id": self.technician_id or "",
            "status": self.status,
            "start_time": iso(self.start_time),
            "end_time": iso(self.end_time),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_record(self):
        return load_work_order(self.to_dict())

    def __repr__(self):
        return f"<WorkOrder {self.id}: {self.location_id} [{self.status}]>"
