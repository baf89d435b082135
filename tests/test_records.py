"""
Tests for the validated deserialization boundary (fibertrack.domain.records).

Covers:
  - load_* converts well-formed rows into frozen records
  - Enum, required-field and date-format violations raise RecordValidationError
  - Work orders with end_time before start_time are rejected
  - Timestamps are normalised to aware UTC
  - load_many quarantines bad rows instead of failing the batch
"""

from datetime import date, datetime, timezone

import pytest

from fibertrack.domain.records import (
    RecordValidationError,
    load_asset,
    load_location,
    load_many,
    load_wave,
    load_work_order,
    parse_timestamp,
)

pytestmark = pytest.mark.unit


def test_load_location_reads_nested_coordinates():
    rec = load_location({
        "id": "loc-1",
        "address": "1 Fort St",
        "region": "Vancouver Island",
        "fiber_status": "Fiber Ready",
        "coordinates": {"lat": "48.42", "lng": -123.36},
        "wave_id": "w-1",
    })
    assert rec.coordinates.lat == 48.42
    assert rec.coordinates.lng == -123.36
    assert rec.wave_id == "w-1"


def test_load_location_defaults_fiber_status_and_empty_wave():
    rec = load_location({"id": "loc-1", "address": "1 Fort St", "region": "North", "wave_id": ""})
    assert rec.fiber_status == "Pending Feasibility"
    assert rec.wave_id is None


def test_load_location_rejects_unknown_region():
    with pytest.raises(RecordValidationError) as exc:
        load_location({"id": "loc-1", "address": "1 Fort St", "region": "Yukon"})
    assert exc.value.row_id == "loc-1"
    assert any("region" in e for e in exc.value.errors)


def test_load_wave_rejects_reversed_dates():
    with pytest.raises(RecordValidationError) as exc:
        load_wave({
            "id": "w-1", "name": "W", "start_date": "2024-05-01", "end_date": "2024-04-01",
            "region": "Interior", "customer_cohort": "Government",
        })
    assert "Start date must be before end date" in exc.value.errors


def test_load_wave_parses_dates():
    rec = load_wave({
        "id": "w-1", "name": "W", "start_date": "2024-04-01", "end_date": "2024-05-01",
        "region": "Interior", "customer_cohort": "Government", "progress_percentage": 40,
    })
    assert rec.start_date == date(2024, 4, 1)
    assert rec.progress_percentage == 40


def test_load_asset_rejects_bad_installation_date():
    with pytest.raises(RecordValidationError):
        load_asset({"id": "a-1", "type": "fiber", "status": "active", "installation_date": "01/02/2024"})


def test_load_work_order_allows_missing_technician_and_times():
    rec = load_work_order({"id": "wo-1", "location_id": "loc-1", "status": "Assigned"})
    assert rec.is_unassigned
    assert rec.start_time is None


def test_load_work_order_rejects_end_before_start():
    with pytest.raises(RecordValidationError):
        load_work_order({
            "id": "wo-1", "location_id": "loc-1", "status": "Completed",
            "start_time": "2024-01-02T10:00:00Z", "end_time": "2024-01-02T09:00:00Z",
        })


def test_parse_timestamp_normalises_to_utc():
    assert parse_timestamp("2024-01-02T10:00:00Z") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02T02:00:00-08:00") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02T10:00:00").tzinfo == timezone.utc


def test_load_many_quarantines_bad_rows():
    rows = [
        {"id": "wo-1", "location_id": "loc-1", "status": "Completed"},
        {"id": "wo-2", "location_id": "loc-1", "status": "Done"},
        {"id": "wo-3", "status": "Failed"},
    ]
    result = load_many(load_work_order, rows)
    assert [r.id for r in result.records] == ["wo-1"]
    assert len(result.quarantined) == 2
    assert not result.ok
