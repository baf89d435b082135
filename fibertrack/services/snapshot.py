"""
Store snapshot loader.

Reads the migration collections wholesale from the database and passes
every row through its model's ``to_record()`` loader.
Rows that fail validation are quarantined and counted, never handed to
the computational core.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from fibertrack.core.exceptions import BackendUnavailableError
from fibertrack.domain.records import load_many
from fibertrack.models import db
from fibertrack.models.field_ops import WorkOrder
from fibertrack.models.inventory import Asset, Location
from fibertrack.models.wave import Wave

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """In-memory copy of the collections the derived reports work on."""
    locations: list = field(default_factory=list)
    waves: list = field(default_factory=list)
    assets: list = field(default_factory=list)
    work_orders: list = field(default_factory=list)
    quarantined: dict = field(default_factory=dict)

    @property
    def quarantined_total(self) -> int:
        return sum(self.quarantined.values())


_COLLECTIONS = {
    "locations": (Location, Location.address),
    "waves": (Wave, Wave.start_date.desc()),
    "assets": (Asset, Asset.created_at.desc()),
    "work_orders": (WorkOrder, WorkOrder.created_at.desc()),
}


def load_snapshot(*names: str) -> Snapshot:
    """Load the named collections (all of them when none are given).

    Raises:
        BackendUnavailableError: the database could not be read.
    """
    snap = Snapshot()
    for name in names or tuple(_COLLECTIONS):
        model, order = _COLLECTIONS[name]
        try:
            objects = model.query.order_by(order).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Snapshot read of %s failed: %s", name, exc)
            raise BackendUnavailableError(f"fetch {name}", exc.__class__.__name__) from exc
        result = load_many(model.to_record, objects)
        setattr(snap, name, result.records)
        if result.quarantined:
            snap.quarantined[name] = len(result.quarantined)
    return snap
