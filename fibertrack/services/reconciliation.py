"""
Asset / work-order reconciliation.

Cross-checks the asset inventory against completed field work. An asset
is a discrepancy when it is not marked ``completed`` although some work
order at its location is ``Completed``. Purely derived and read-only:
used for on-screen display and flat export.

Usage:
    rows = reconcile_assets(snap.assets, snap.work_orders, snap.locations, region="Interior")
    summary = summarize(rows)
    export_rows = reconciliation_report_rows(rows)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from fibertrack.domain.records import FILTER_ALL
from fibertrack.utils.helpers import percentage

NOT_AVAILABLE = "N/A"
NO_WORK_ORDER = "No Work Order"


@dataclass(frozen=True)
class ReconciliationRow:
    asset_id: str
    type: str
    location_address: str
    region: str
    asset_status: str
    work_order_status: str
    has_completed_work_order: bool
    discrepancy: bool

    @property
    def display_id(self) -> str:
        """Truncated id for display only; matching always uses ``asset_id``."""
        return f"{self.asset_id[:8]}…"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["display_id"] = self.display_id
        return data


@dataclass(frozen=True)
class ReconciliationSummary:
    total: int
    completed: int
    pending: int
    discrepancies: int
    match_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


def reconcile_assets(assets, work_orders, locations, region=FILTER_ALL) -> list[ReconciliationRow]:
    """One row per asset, optionally restricted to assets in ``region``."""
    locations_by_id = {loc.id: loc for loc in locations}

    # First completed work order per location, in input order
    completed_by_location = {}
    for wo in work_orders:
        if wo.status == "Completed":
            completed_by_location.setdefault(wo.location_id, wo)

    if region and region != FILTER_ALL:
        assets = [
            a for a in assets
            if a.location_id in locations_by_id and locations_by_id[a.location_id].region == region
        ]

    rows = []
    for asset in assets:
        location = locations_by_id.get(asset.location_id)
        matched = completed_by_location.get(asset.location_id)
        has_completed = matched is not None
        rows.append(ReconciliationRow(
            asset_id=asset.id,
            type=asset.type,
            location_address=location.address if location else NOT_AVAILABLE,
            region=location.region if location else NOT_AVAILABLE,
            asset_status=asset.status,
            work_order_status=matched.status if matched else NO_WORK_ORDER,
            has_completed_work_order=has_completed,
            discrepancy=asset.status != "completed" and has_completed,
        ))
    return rows


def summarize(rows) -> ReconciliationSummary:
    """Headline counts; match rate is 0 for an empty row set."""
    total = len(rows)
    discrepancies = sum(1 for r in rows if r.discrepancy)
    return ReconciliationSummary(
        total=total,
        completed=sum(1 for r in rows if r.asset_status == "completed"),
        pending=sum(1 for r in rows if r.asset_status == "pending"),
        discrepancies=discrepancies,
        match_rate=float(percentage(total - discrepancies, total, digits=1)),
    )


def reconciliation_report_rows(rows) -> list[dict]:
    """Flat rows for CSV / printable export."""
    return [
        {
            "Asset ID": r.display_id,
            "Type": r.type,
            "Location": r.location_address,
            "Region": r.region,
            "Asset Status": r.asset_status,
            "Work Order Status": r.work_order_status,
            "Has Completed WO": "Yes" if r.has_completed_work_order else "No",
            "Discrepancy": "Yes" if r.discrepancy else "No",
        }
        for r in rows
    ]
