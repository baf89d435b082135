"""
CSV Asset Import Service.

Bulk creation of locations + assets from an uploaded CSV.

Features:
  - Parse CSV with columns: address, region, type, status,
    installation_date, technician_id, coordinates_lat, coordinates_lng
  - Per-row validation; invalid rows are reported and skipped, never fatal
  - Batched inserts; a failed batch is rolled back and reported while the
    remaining batches proceed
  - Template CSV generation
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from fibertrack.domain.records import ASSET_STATUSES, ASSET_TYPES, REGIONS
from fibertrack.models import db
from fibertrack.models.inventory import Asset, Location
from fibertrack.utils.helpers import parse_date

logger = logging.getLogger(__name__)

CSV_BATCH_SIZE = 100
DATE_FORMAT_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class AssetImportError(Exception):
    """Whole-file import error (bad header, no data rows, every row malformed)."""
    def __init__(self, message, status_code=400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════
# CSV Template
# ═══════════════════════════════════════════════════════════════

CSV_TEMPLATE_HEADER = [
    "address", "region", "type", "status", "installation_date",
    "technician_id", "coordinates_lat", "coordinates_lng",
]
CSV_TEMPLATE_EXAMPLE = [
    ["123 Main St, Vancouver, BC", "Lower Mainland", "copper", "active", "2020-01-15", "", "49.2827", "-123.1207"],
    ["456 Oak Ave, Victoria, BC", "Vancouver Island", "fiber", "completed", "2023-06-20", "tech-123", "48.4284", "-123.3656"],
]


def generate_csv_template() -> str:
    """Generate a CSV template string for asset import."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_TEMPLATE_HEADER)
    writer.writerows(CSV_TEMPLATE_EXAMPLE)
    return output.getvalue()


# ═══════════════════════════════════════════════════════════════
# CSV Parsing & Validation
# ═══════════════════════════════════════════════════════════════

def decode_csv(raw: bytes) -> str:
    """Decode uploaded bytes as UTF-8 (a leading BOM is dropped).

    Raises:
        AssetImportError: the bytes are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise AssetImportError("File must be UTF-8 encoded CSV") from exc


def parse_asset_csv(file_content: str | bytes) -> tuple[list[dict], list[str]]:
    """
    Parse CSV content into row dicts keyed by normalised header names.

    Returns (rows, errors). Rows whose column count differs from the header
    are reported in ``errors`` and skipped. Each row carries ``row_num``,
    its line number in the file; blank lines are skipped but still counted.

    Raises:
        AssetImportError: no header / no data rows, or every row malformed.
    """
    if isinstance(file_content, bytes):
        file_content = decode_csv(file_content)
    if not isinstance(file_content, str):
        raise AssetImportError("CSV content must be text")
    file_content = file_content.lstrip("\ufeff")

    numbered = [
        (line_num, line)
        for line_num, line in enumerate(file_content.splitlines(), start=1)
        if line.strip()
    ]
    if len(numbered) < 2:
        raise AssetImportError("CSV file must contain header row and at least one data row")

    line_nums = [line_num for line_num, _ in numbered]
    reader = csv.reader(line for _, line in numbered)
    headers = [h.strip().lower() for h in next(reader)]

    rows = []
    errors = []
    for row_num, values in zip(line_nums[1:], reader):
        if len(values) != len(headers):
            errors.append(
                f"Row {row_num}: Column count mismatch "
                f"(expected {len(headers)}, got {len(values)})"
            )
            continue
        row = {h: (v or "").strip() for h, v in zip(headers, values)}
        row["row_num"] = row_num
        rows.append(row)

    if errors and not rows:
        raise AssetImportError("CSV parsing errors:\n" + "\n".join(errors))
    return rows, errors


def validate_asset_row(row: dict, row_number: int) -> list[str]:
    """Return the list of problems with one parsed row (empty when valid)."""
    errors = []

    if not row.get("address"):
        errors.append(f"Row {row_number}: Missing address")

    region = row.get("region", "")
    if not region:
        errors.append(f"Row {row_number}: Missing region")
    elif region not in REGIONS:
        errors.append(
            f'Row {row_number}: Invalid region "{region}". Must be one of: {", ".join(REGIONS)}'
        )

    asset_type = row.get("type", "")
    if not asset_type:
        errors.append(f"Row {row_number}: Missing asset type")
    elif _normalise_type(asset_type) not in ASSET_TYPES:
        errors.append(
            f'Row {row_number}: Invalid asset type "{asset_type}". '
            f'Must be one of: {", ".join(ASSET_TYPES)}'
        )

    status = row.get("status", "")
    if not status:
        errors.append(f"Row {row_number}: Missing status")
    elif status.lower() not in ASSET_STATUSES:
        errors.append(
            f'Row {row_number}: Invalid status "{status}". '
            f'Must be one of: {", ".join(ASSET_STATUSES)}'
        )

    installed = row.get("installation_date", "")
    if installed and not DATE_FORMAT_REGEX.match(installed):
        errors.append(
            f'Row {row_number}: Invalid date format "{installed}". Use YYYY-MM-DD format'
        )
    elif installed and parse_date(installed) is None:
        errors.append(f'Row {row_number}: Invalid date "{installed}"')

    lat, lng = row.get("coordinates_lat", ""), row.get("coordinates_lng", "")
    if lat and lng:
        try:
            float(lat)
            float(lng)
        except ValueError:
            errors.append(f"Row {row_number}: Invalid coordinates (lat: {lat}, lng: {lng})")

    return errors


def _normalise_type(value: str) -> str:
    lowered = value.strip().lower()
    return "ONT" if lowered == "ont" else lowered


@dataclass
class ImportPlan:
    """Converted rows ready to insert plus the row-level errors."""
    items: list[dict] = field(default_factory=list)   # {"row_num", "location", "asset"}
    errors: list[str] = field(default_factory=list)


def convert_rows(rows: list[dict]) -> ImportPlan:
    """Validate rows and build location + asset payloads for the valid ones."""
    items = []
    errors = []
    for row in rows:
        row_errors = validate_asset_row(row, row["row_num"])
        if row_errors:
            errors.extend(row_errors)
            continue

        lat, lng = row.get("coordinates_lat", ""), row.get("coordinates_lng", "")
        coords = (float(lat), float(lng)) if lat and lng else (0.0, 0.0)
        items.append({
            "row_num": row["row_num"],
            "location": {
                "address": row["address"],
                "region": row["region"],
                "lat": coords[0],
                "lng": coords[1],
                "fiber_status": "Pending Feasibility",
            },
            "asset": {
                "type": _normalise_type(row["type"]),
                "status": row["status"].lower(),
                "installation_date": parse_date(row.get("installation_date")),
                "technician_id": row.get("technician_id") or None,
            },
        })
    return ImportPlan(items=items, errors=errors)


# ═══════════════════════════════════════════════════════════════
# Bulk Import Execution
# ═══════════════════════════════════════════════════════════════

def _insert_batch(batch: list[dict]) -> int:
    for item in batch:
        location = Location(**item["location"])
        db.session.add(location)
        db.session.flush()
        db.session.add(Asset(location_id=location.id, **item["asset"]))
    db.session.commit()
    return len(batch)


def execute_bulk_import(items: list[dict], batch_size: int | None = None) -> dict:
    """
    Insert converted rows batch by batch.
    Returns {"success": int, "failed": int, "errors": [str]}
    """
    if batch_size is None:
        batch_size = current_app.config.get("CSV_BATCH_SIZE", CSV_BATCH_SIZE)

    success = 0
    failed = 0
    errors = []
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        batch_number = start // batch_size + 1
        try:
            success += _insert_batch(batch)
        except SQLAlchemyError as exc:
            db.session.rollback()
            failed += len(batch)
            message = str(getattr(exc, "orig", None) or exc.__class__.__name__)
            errors.append(f"Batch {batch_number}: {message}")
            logger.warning("Asset import batch %d failed: %s", batch_number, message)

    return {"success": success, "failed": failed, "errors": errors}


def import_assets_from_csv(file_content: str | bytes, batch_size: int | None = None) -> dict:
    """
    Full pipeline: parse → validate → import.
    Returns {"status", "message", "total_rows", "success", "failed", "errors"}
    """
    rows, parse_errors = parse_asset_csv(file_content)
    plan = convert_rows(rows)

    result = {"success": 0, "failed": 0, "errors": []}
    if plan.items:
        result = execute_bulk_import(plan.items, batch_size=batch_size)

    errors = parse_errors + plan.errors + result["errors"]
    skipped = len(rows) - len(plan.items) + len(parse_errors)
    status = "completed" if not errors else ("partial" if result["success"] else "failed")
    logger.info("Asset CSV import: %d created, %d failed, %d skipped",
                result["success"], result["failed"], skipped)
    return {
        "status": status,
        "message": (
            f"Imported {result['success']} assets"
            + (f", {len(errors)} errors" if errors else "")
        ),
        "total_rows": len(rows) + len(parse_errors),
        "success": result["success"],
        "failed": result["failed"] + skipped,
        "errors": errors,
    }
