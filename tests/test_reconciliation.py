"""
Tests for asset / work-order reconciliation.

Covers:
  - Pending asset at a location with a Completed work order is a discrepancy
  - Completed assets and locations without completed work are not
  - Missing locations render "N/A"; display id is truncated, matching uses the full id
  - Region filter and summary statistics (match rate 0 on empty input)
  - GET /api/v1/reconciliation
"""

import pytest

from fibertrack.domain.records import AssetRecord, LocationRecord, WorkOrderRecord
from fibertrack.services.reconciliation import (
    NO_WORK_ORDER,
    reconcile_assets,
    reconciliation_report_rows,
    summarize,
)


def _loc(loc_id, region="Interior"):
    return LocationRecord(id=loc_id, address=f"{loc_id} Rd", region=region, fiber_status="Fiber Ready")


def _asset(asset_id, loc_id, status):
    return AssetRecord(id=asset_id, type="copper", location_id=loc_id, status=status)


def _wo(wo_id, loc_id, status):
    return WorkOrderRecord(id=wo_id, location_id=loc_id, status=status)


@pytest.mark.unit
def test_pending_asset_with_completed_work_order_is_discrepancy():
    rows = reconcile_assets(
        [_asset("asset-0001-abcdef", "L1", "pending")],
        [_wo("WO1", "L1", "Completed")],
        [_loc("L1")],
    )
    [row] = rows
    assert row.discrepancy is True
    assert row.has_completed_work_order is True
    assert row.work_order_status == "Completed"
    assert row.display_id == "asset-00…"
    assert row.asset_id == "asset-0001-abcdef"


@pytest.mark.unit
def test_completed_asset_is_not_discrepancy():
    [row] = reconcile_assets([_asset("A1", "L1", "completed")], [_wo("WO1", "L1", "Completed")], [_loc("L1")])
    assert row.discrepancy is False


@pytest.mark.unit
def test_location_without_completed_work_is_not_discrepancy():
    [row] = reconcile_assets(
        [_asset("A1", "L1", "active")],
        [_wo("WO1", "L1", "In Progress"), _wo("WO2", "L2", "Completed")],
        [_loc("L1"), _loc("L2")],
    )
    assert row.discrepancy is False
    assert row.work_order_status == NO_WORK_ORDER


@pytest.mark.unit
def test_missing_location_renders_not_available():
    [row] = reconcile_assets([_asset("A1", "gone", "active")], [], [])
    assert row.location_address == "N/A"
    assert row.region == "N/A"


@pytest.mark.unit
def test_region_filter_restricts_assets():
    assets = [_asset("A1", "L1", "active"), _asset("A2", "L2", "active")]
    rows = reconcile_assets(assets, [], [_loc("L1", "Interior"), _loc("L2", "North")], region="North")
    assert [r.asset_id for r in rows] == ["A2"]


@pytest.mark.unit
def test_summary_counts_and_match_rate():
    rows = reconcile_assets(
        [
            _asset("A1", "L1", "pending"),
            _asset("A2", "L1", "completed"),
            _asset("A3", "L2", "pending"),
        ],
        [_wo("WO1", "L1", "Completed")],
        [_loc("L1"), _loc("L2")],
    )
    summary = summarize(rows)
    assert summary.total == 3
    assert summary.completed == 1
    assert summary.pending == 2
    assert summary.discrepancies == 1
    assert summary.match_rate == 66.7


@pytest.mark.unit
def test_match_rate_of_empty_rows_is_zero():
    assert summarize([]).match_rate == 0


@pytest.mark.unit
def test_report_rows_are_flat_strings():
    rows = reconcile_assets([_asset("A1", "L1", "pending")], [_wo("WO1", "L1", "Completed")], [_loc("L1")])
    [flat] = reconciliation_report_rows(rows)
    assert flat["Discrepancy"] == "Yes"
    assert flat["Has Completed WO"] == "Yes"
    assert flat["Location"] == "L1 Rd"


def test_reconciliation_endpoint(client, location):
    res = client.post("/api/v1/assets", json={
        "type": "copper", "status": "pending", "location_id": location["id"],
    })
    assert res.status_code == 201
    client.post("/api/v1/work-orders", json={"location_id": location["id"], "status": "Completed"})

    res = client.get("/api/v1/reconciliation", query_string={"region": "Lower Mainland"})
    assert res.status_code == 200
    body = res.get_json()
    assert body["summary"]["discrepancies"] == 1
    assert body["rows"][0]["discrepancy"] is True


def test_reconciliation_endpoint_rejects_unknown_region(client):
    res = client.get("/api/v1/reconciliation?region=Mars")
    assert res.status_code == 422
