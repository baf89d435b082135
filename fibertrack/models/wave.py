"""
FiberTrack — Copper-to-Fiber Migration Operations
Migration wave model.

A wave is a scheduled cohort of locations migrated together within a date
range. ``progress_percentage`` is derived by the wave-progress calculator
and written back on every recomputation; API updates never set it.

Lifecycle states:
    Wave.progress_status:  Planning | In Progress | Completed | On Hold
                           (any transition allowed, driven by explicit selection)
"""

from fibertrack.domain.records import CUSTOMER_COHORTS, REGIONS, WAVE_PROGRESS_STATUSES, load_wave
from fibertrack.models import _utcnow, _uuid, db, in_clause, iso


class Wave(db.Model):
    """Migration wave (e.g. "Wave 1 - Lower Mainland Hospitals")."""

    __tablename__ = "waves"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    region = db.Column(db.String(30), nullable=False, index=True)
    customer_cohort = db.Column(
        db.String(20), nullable=False,
        comment="Hospitals | Government | Enterprise",
    )
    progress_status = db.Column(
        db.String(20), nullable=False, default="Planning",
        comment="Planning | In Progress | Completed | On Hold",
    )
    progress_percentage = db.Column(
        db.Integer, nullable=False, default=0,
        comment="Derived: % of completed work orders across the wave's locations",
    )

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint("start_date <= end_date", name="ck_wave_date_order"),
        db.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_wave_progress_range",
        ),
        db.CheckConstraint(f"region IN ({in_clause(REGIONS)})", name="ck_wave_region"),
        db.CheckConstraint(
            f"customer_cohort IN ({in_clause(CUSTOMER_COHORTS)})", name="ck_wave_cohort",
        ),
        db.CheckConstraint(
            f"progress_status IN ({in_clause(WAVE_PROGRESS_STATUSES)})",
            name="ck_wave_progress_status",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "region": self.region,
            "customer_cohort": self.customer_cohort,
            "progress_status": self.progress_status,
            "progress_percentage": self.progress_percentage,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_record(self):
        return load_wave(self.to_dict())

    def __repr__(self):
        return f"<Wave {self.id}: {self.name} [{self.progress_percentage}%]>"
