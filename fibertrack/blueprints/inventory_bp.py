"""
Inventory blueprint — locations, assets and CSV asset import.

Endpoints:
    LOCATION  /api/v1/locations                        GET, POST
              /api/v1/locations/<id>                   GET, PUT, DELETE
              /api/v1/locations/<id>/fiber-status      PATCH
              /api/v1/locations/feasibility-summary    GET

    ASSET     /api/v1/assets                           GET, POST
              /api/v1/assets/<id>                      GET, PUT, DELETE
              /api/v1/assets/import                    POST  (multipart file or raw CSV body)
              /api/v1/assets/import/template           GET
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from fibertrack.blueprints import json_body, paginate, register_error_handlers
from fibertrack.services import inventory_service
from fibertrack.services.asset_import_service import (
    AssetImportError,
    decode_csv,
    generate_csv_template,
    import_assets_from_csv,
)

logger = logging.getLogger(__name__)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/v1")
register_error_handlers(inventory_bp)


@inventory_bp.errorhandler(AssetImportError)
def handle_asset_import_error(e):
    return jsonify({"error": e.message}), e.status_code


# ═══════════════════════════════════════════════════════════════════════════
#  LOCATIONS
# ═══════════════════════════════════════════════════════════════════════════


@inventory_bp.route("/locations", methods=["GET"])
def list_locations():
    locations = inventory_service.list_locations(
        region=request.args.get("region"),
        wave_id=request.args.get("wave_id"),
        fiber_status=request.args.get("fiber_status"),
    )
    items, total = paginate(locations)
    return jsonify({"items": items, "total": total})


@inventory_bp.route("/locations", methods=["POST"])
def create_location():
    return jsonify(inventory_service.create_location(json_body())), 201


@inventory_bp.route("/locations/feasibility-summary", methods=["GET"])
def feasibility_summary():
    return jsonify(inventory_service.fiber_feasibility_summary(request.args.get("region")))


@inventory_bp.route("/locations/<location_id>", methods=["GET"])
def get_location(location_id):
    return jsonify(inventory_service.get_location(location_id))


@inventory_bp.route("/locations/<location_id>", methods=["PUT"])
def update_location(location_id):
    return jsonify(inventory_service.update_location(location_id, json_body()))


@inventory_bp.route("/locations/<location_id>", methods=["DELETE"])
def delete_location(location_id):
    inventory_service.delete_location(location_id)
    return jsonify({"message": "Location deleted"}), 200


@inventory_bp.route("/locations/<location_id>/fiber-status", methods=["PATCH"])
def update_fiber_status(location_id):
    data = json_body()
    if "fiber_status" not in data:
        return jsonify({"error": "fiber_status is required"}), 400
    return jsonify(inventory_service.update_fiber_status(location_id, data["fiber_status"]))


# ═══════════════════════════════════════════════════════════════════════════
#  ASSETS
# ═══════════════════════════════════════════════════════════════════════════


@inventory_bp.route("/assets", methods=["GET"])
def list_assets():
    assets = inventory_service.list_assets(
        location_id=request.args.get("location_id"),
        status=request.args.get("status"),
        asset_type=request.args.get("type"),
        region=request.args.get("region"),
    )
    items, total = paginate(assets)
    return jsonify({"items": items, "total": total})


@inventory_bp.route("/assets", methods=["POST"])
def create_asset():
    return jsonify(inventory_service.create_asset(json_body())), 201


@inventory_bp.route("/assets/<asset_id>", methods=["GET"])
def get_asset(asset_id):
    return jsonify(inventory_service.get_asset(asset_id))


@inventory_bp.route("/assets/<asset_id>", methods=["PUT"])
def update_asset(asset_id):
    return jsonify(inventory_service.update_asset(asset_id, json_body()))


@inventory_bp.route("/assets/<asset_id>", methods=["DELETE"])
def delete_asset(asset_id):
    inventory_service.delete_asset(asset_id)
    return jsonify({"message": "Asset deleted"}), 200


# ═══════════════════════════════════════════════════════════════════════════
#  CSV IMPORT
# ═══════════════════════════════════════════════════════════════════════════


@inventory_bp.route("/assets/import/template", methods=["GET"])
def download_template():
    """Download a CSV template for asset import."""
    return Response(
        generate_csv_template(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=asset_import_template.csv"},
    )


@inventory_bp.route("/assets/import", methods=["POST"])
def import_assets():
    """Upload & import a CSV of locations + assets.

    200 when every row was imported, 207 when some rows failed.
    """
    file_content = _extract_file_content()
    if not file_content:
        return jsonify({"error": "CSV file is required (file upload or raw body)"}), 400

    result = import_assets_from_csv(file_content)
    status_code = 200 if result["status"] == "completed" else 207
    return jsonify(result), status_code


# ═══════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════


def _extract_file_content() -> str | None:
    """Extract CSV content from a multipart upload, JSON ``csv_content`` or raw body.

    Raises:
        AssetImportError: not a .csv upload, larger than CSV_MAX_BYTES,
            not UTF-8, or a non-string ``csv_content``.
    """
    max_bytes = current_app.config.get("CSV_MAX_BYTES", 10 * 1024 * 1024)

    if request.files:
        file = request.files.get("file")
        if file:
            if not (file.filename or "").lower().endswith(".csv"):
                raise AssetImportError("File must be a CSV file (.csv)")
            raw = file.read()
            if len(raw) > max_bytes:
                raise AssetImportError("File size must be less than 10MB")
            return decode_csv(raw)

    data = request.get_json(silent=True)
    if isinstance(data, dict) and "csv_content" in data:
        if not isinstance(data["csv_content"], str):
            raise AssetImportError("csv_content must be a string")
        return data["csv_content"]

    if request.data:
        if len(request.data) > max_bytes:
            raise AssetImportError("File size must be less than 10MB")
        return decode_csv(request.data)

    return None
