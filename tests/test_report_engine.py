"""
Tests for the report engine (daily aggregation + work-order detail).

Covers:
  - Region filter with no matching work orders → empty sequence
  - Inclusive date range; work orders without start_time always pass
  - Unscheduled work orders land in the stable "unscheduled" bucket, last
  - Buckets are sorted ascending and counts sum to the filtered total
  - ReportFilters.from_args validation
  - ReportEngine presets and unknown report keys
  - /api/v1/reports/<key> JSON and CSV download
"""

from datetime import date, datetime, timezone

import pytest

from fibertrack.core.exceptions import ValidationError
from fibertrack.domain.records import LocationRecord, WorkOrderRecord
from fibertrack.services.report_engine import (
    UNSCHEDULED,
    ReportEngine,
    ReportFilters,
    daily_summary,
    filter_work_orders,
    work_order_report_rows,
)
from fibertrack.services.snapshot import Snapshot


def _ts(day, hour=9):
    return datetime.fromisoformat(f"{day}T{hour:02d}:00:00").replace(tzinfo=timezone.utc)


def _wo(wo_id, loc_id, status, day=None):
    return WorkOrderRecord(id=wo_id, location_id=loc_id, status=status,
                           start_time=_ts(day) if day else None)


LOCATIONS = [
    LocationRecord(id="L1", address="1 Main", region="Lower Mainland", fiber_status="Fiber Ready", wave_id="W1"),
    LocationRecord(id="L2", address="2 Main", region="North", fiber_status="Copper Only", wave_id="W2"),
]

WORK_ORDERS = [
    _wo("wo-a", "L1", "Completed", "2024-03-02"),
    _wo("wo-b", "L1", "In Progress", "2024-03-01"),
    _wo("wo-c", "L2", "Failed", "2024-03-02"),
    _wo("wo-d", "L2", "Assigned"),
    _wo("wo-e", "L1", "Completed", "2024-03-05"),
]


@pytest.mark.unit
def test_region_without_matches_yields_empty_sequence():
    assert daily_summary(WORK_ORDERS, LOCATIONS, ReportFilters(region="Interior")) == []


@pytest.mark.unit
def test_empty_input_yields_empty_sequence():
    assert daily_summary([], [], ReportFilters()) == []


@pytest.mark.unit
def test_buckets_sorted_with_unscheduled_last():
    buckets = daily_summary(WORK_ORDERS, LOCATIONS)
    assert [b.date for b in buckets] == ["2024-03-01", "2024-03-02", "2024-03-05", UNSCHEDULED]
    dates = [b.date for b in buckets]
    assert dates == sorted(dates)


@pytest.mark.unit
def test_bucket_counts_sum_to_filtered_total():
    buckets = daily_summary(WORK_ORDERS, LOCATIONS)
    assert sum(b.total for b in buckets) == len(WORK_ORDERS)
    march_2 = next(b for b in buckets if b.date == "2024-03-02")
    assert (march_2.completed, march_2.failed, march_2.in_progress) == (1, 1, 0)
    for b in buckets:
        assert b.completed + b.in_progress + b.failed + b.assigned == b.total


@pytest.mark.unit
def test_date_range_is_inclusive_and_keeps_unscheduled():
    filters = ReportFilters(start_date=date(2024, 3, 2), end_date=date(2024, 3, 2))
    kept = filter_work_orders(WORK_ORDERS, LOCATIONS, filters)
    assert sorted(wo.id for wo in kept) == ["wo-a", "wo-c", "wo-d"]


@pytest.mark.unit
def test_wave_filter_resolves_through_location():
    kept = filter_work_orders(WORK_ORDERS, LOCATIONS, ReportFilters(wave_id="W2"))
    assert sorted(wo.id for wo in kept) == ["wo-c", "wo-d"]


@pytest.mark.unit
def test_unresolved_location_never_matches_specific_region():
    orphan = [_wo("wo-x", "missing", "Completed", "2024-03-01")]
    assert filter_work_orders(orphan, LOCATIONS, ReportFilters(region="North")) == []
    [row] = work_order_report_rows(orphan, LOCATIONS)
    assert row["Location"] == "N/A"


@pytest.mark.unit
def test_filters_from_args_rejects_bad_input():
    with pytest.raises(ValidationError):
        ReportFilters.from_args({"start_date": "2024-13-40"})
    with pytest.raises(ValidationError):
        ReportFilters.from_args({"start_date": "2024-03-05", "end_date": "2024-03-01"})
    with pytest.raises(ValidationError):
        ReportFilters.from_args({"region": "Atlantis"})


@pytest.mark.unit
def test_filters_from_args_defaults():
    filters = ReportFilters.from_args({})
    assert filters.region == "All"
    assert filters.wave_id == "All"
    assert not filters.has_date_range


@pytest.mark.unit
def test_engine_runs_daily_preset():
    snap = Snapshot(locations=LOCATIONS, work_orders=WORK_ORDERS)
    result = ReportEngine.run("daily", snap, ReportFilters())
    assert result["summary"] == {"days": 3, "work_orders": 5, "completed": 2}
    assert result["rows"][-1]["Date"] == UNSCHEDULED
    assert result["filters"]["region"] == "All"


@pytest.mark.unit
def test_engine_rejects_unknown_report():
    with pytest.raises(ValidationError):
        ReportEngine.run("nope", Snapshot(), ReportFilters())


@pytest.mark.unit
def test_available_reports():
    assert {"daily", "work-orders", "reconciliation"} <= set(ReportEngine.available())


# ── API ─────────────────────────────────────────────────────────────────────


def test_daily_report_endpoint_json(client, location):
    client.post("/api/v1/work-orders", json={
        "location_id": location["id"], "status": "Completed",
        "start_time": "2024-02-01T08:00:00Z", "end_time": "2024-02-01T10:00:00Z",
    })
    client.post("/api/v1/work-orders", json={"location_id": location["id"], "status": "Assigned"})

    res = client.get("/api/v1/reports/daily", query_string={"region": "Lower Mainland"})
    assert res.status_code == 200
    rows = res.get_json()["rows"]
    assert [r["Date"] for r in rows] == ["2024-02-01", UNSCHEDULED]


def test_daily_report_endpoint_csv_download(client, location):
    client.post("/api/v1/work-orders", json={
        "location_id": location["id"], "status": "Failed", "start_time": "2024-02-03T08:00:00Z",
    })
    res = client.get("/api/v1/reports/daily?format=csv")
    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    disposition = res.headers["Content-Disposition"]
    assert disposition.startswith("attachment; filename=daily-")
    assert disposition.endswith(".csv")
    assert res.get_data(as_text=True).splitlines()[0] == '"Date","Completed","In Progress","Failed","Total"'


def test_report_endpoint_rejects_unknown_format(client):
    res = client.get("/api/v1/reports/daily?format=pdf")
    assert res.status_code == 400


def test_report_endpoint_unknown_report(client):
    res = client.get("/api/v1/reports/bogus")
    assert res.status_code == 422


def test_report_endpoint_bad_dates(client):
    res = client.get("/api/v1/reports/work-orders?start_date=2024-05-01&end_date=2024-04-01")
    assert res.status_code == 422
    assert "end_date" in res.get_json()["details"]
