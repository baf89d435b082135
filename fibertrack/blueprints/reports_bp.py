"""
Reports blueprint — preset reports, exports and asset reconciliation.

Endpoints:
    GET /api/v1/reports                     — available preset reports
    GET /api/v1/reports/<report_key>        — run a preset report
          ?format=json|csv|html|xlsx
          &start_date=YYYY-MM-DD&end_date=YYYY-MM-DD&region=...&wave_id=...
    GET /api/v1/reconciliation?region=...   — reconciliation rows + summary

Non-JSON formats are returned as attachments named
``{report_key}-{YYYY-MM-DD}.{ext}``. The HTML format is the printable
document the browser turns into a PDF.
"""

import logging

from flask import Blueprint, Response, jsonify, request

from fibertrack.blueprints import register_error_handlers
from fibertrack.core.exceptions import ValidationError
from fibertrack.domain.records import FILTER_ALL, REGIONS
from fibertrack.services import export_service, reconciliation
from fibertrack.services.report_engine import ReportEngine, ReportFilters
from fibertrack.services.snapshot import load_snapshot

logger = logging.getLogger(__name__)

reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1")
register_error_handlers(reports_bp)

_FORMATS = ("json",) + tuple(export_service.EXPORT_FORMATS)


@reports_bp.route("/reports", methods=["GET"])
def list_reports():
    return jsonify({"reports": ReportEngine.available(), "formats": list(_FORMATS)})


@reports_bp.route("/reports/<report_key>", methods=["GET"])
def run_report(report_key):
    fmt = (request.args.get("format") or "json").lower()
    if fmt not in _FORMATS:
        return jsonify({"error": f"format must be one of: {', '.join(_FORMATS)}"}), 400

    filters = ReportFilters.from_args(request.args)
    snapshot = load_snapshot()
    result = ReportEngine.run(report_key, snapshot, filters)
    result["quarantined_rows"] = snapshot.quarantined_total

    if fmt == "json":
        return jsonify(result)

    content, mimetype, ext = export_service.render(fmt, result["title"], result["rows"])
    filename = export_service.export_filename(report_key, ext)
    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@reports_bp.route("/reconciliation", methods=["GET"])
def get_reconciliation():
    region = request.args.get("region") or FILTER_ALL
    if region != FILTER_ALL and region not in REGIONS:
        raise ValidationError(
            "Invalid region", details={"region": f"Must be one of: {FILTER_ALL}, {', '.join(REGIONS)}"},
        )
    snapshot = load_snapshot("assets", "work_orders", "locations")
    rows = reconciliation.reconcile_assets(
        snapshot.assets, snapshot.work_orders, snapshot.locations, region=region,
    )
    return jsonify({
        "region": region,
        "rows": [r.to_dict() for r in rows],
        "summary": reconciliation.summarize(rows).to_dict(),
    })
