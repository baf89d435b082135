"""
FiberTrack — Copper-to-Fiber Migration Operations
SQLAlchemy extension and model registry.

Model modules import ``db`` from here; ``create_app`` imports every model
module so metadata is complete before ``db.create_all()``.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _uuid():
    """Generate a new UUID4 string for primary keys."""
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def iso(value):
    """ISO string for a date/datetime column value, None-safe."""
    return value.isoformat() if value else None


def in_clause(values):
    """Render an SQL ``IN (...)`` list for CheckConstraints over fixed enums."""
    return ",".join(f"'{v}'" for v in values)
