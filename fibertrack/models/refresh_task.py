"""
FiberTrack — Copper-to-Fiber Migration Operations
Background wave-progress refresh tracking.

A RefreshTask is the observable completion/failure signal of one
asynchronous "refresh wave progress" request; callers poll it instead of
relying on a silently swallowed background operation.

Lifecycle states:
    RefreshTask.status:  pending → running → completed | failed
"""

import json

from fibertrack.models import _utcnow, _uuid, db, iso

REFRESH_TASK_STATUSES = {"pending", "running", "completed", "failed"}


class RefreshTask(db.Model):
    __tablename__ = "refresh_tasks"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    status = db.Column(db.String(20), nullable=False, default="pending")

    # Input / output
    wave_ids_json = db.Column(db.Text, nullable=False, default="[]")
    result_json = db.Column(db.Text, nullable=True)
    error_message = db.Column(db.Text, nullable=True)

    # Timing
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending','running','completed','failed')",
            name="ck_refresh_task_status",
        ),
    )

    @property
    def wave_ids(self):
        return json.loads(self.wave_ids_json) if self.wave_ids_json else []

    def to_dict(self):
        return {
            "id": self.id,
            "status": self.status,
            "wave_ids": self.wave_ids,
            "result": json.loads(self.result_json) if self.result_json else None,
            "error": self.error_message,
            "created_at": iso(self.created_at),
            "started_at": iso(self.started_at),
            "completed_at": iso(self.completed_at),
        }

    def __repr__(self):
        return f"<RefreshTask id={self.id} status={self.status}>"
