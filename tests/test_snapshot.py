"""
Tests for ORM → record conversion and the store snapshot.

Covers:
  - to_record() on each business model returns the frozen record
  - load_snapshot quarantines invalid stored rows and counts them
"""

from datetime import date

import pytest

from fibertrack.domain.records import (
    AssetRecord,
    LocationRecord,
    RecordValidationError,
    WaveRecord,
    WorkOrderRecord,
)
from fibertrack.models import db
from fibertrack.models.field_ops import WorkOrder
from fibertrack.models.inventory import Asset, Location
from fibertrack.models.wave import Wave
from fibertrack.services.snapshot import load_snapshot


def _add(obj):
    db.session.add(obj)
    db.session.commit()
    return obj


def test_models_convert_to_records():
    wave = _add(Wave(name="W1", start_date=date(2024, 1, 1), end_date=date(2024, 2, 1),
                     region="North", customer_cohort="Government"))
    loc = _add(Location(address="9 Pine Rd", region="North", lat=54.0, lng=-128.6, wave_id=wave.id))
    asset = _add(Asset(type="ONT", location_id=loc.id, status="pending"))
    wo = _add(WorkOrder(location_id=loc.id, status="Completed"))

    wave_rec = wave.to_record()
    assert isinstance(wave_rec, WaveRecord)
    assert wave_rec.start_date == date(2024, 1, 1)

    loc_rec = loc.to_record()
    assert isinstance(loc_rec, LocationRecord)
    assert (loc_rec.wave_id, loc_rec.coordinates.lat) == (wave.id, 54.0)

    assert isinstance(asset.to_record(), AssetRecord)
    wo_rec = wo.to_record()
    assert isinstance(wo_rec, WorkOrderRecord)
    assert wo_rec.technician_id == ""


def test_to_record_raises_for_invalid_row():
    wo = _add(WorkOrder(location_id="", status="Assigned"))
    with pytest.raises(RecordValidationError):
        wo.to_record()


def test_snapshot_quarantines_invalid_rows():
    loc = _add(Location(address="9 Pine Rd", region="North"))
    _add(WorkOrder(location_id=loc.id, status="Completed"))
    _add(WorkOrder(location_id="", status="Assigned"))

    snapshot = load_snapshot("locations", "work_orders")
    assert [wo.location_id for wo in snapshot.work_orders] == [loc.id]
    assert snapshot.quarantined == {"work_orders": 1}
    assert snapshot.quarantined_total == 1
