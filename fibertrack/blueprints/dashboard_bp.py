"""
Dashboard blueprint.

Endpoints:
    GET /api/v1/dashboard/kpis
"""

from flask import Blueprint, jsonify

from fibertrack.blueprints import register_error_handlers
from fibertrack.services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")
register_error_handlers(dashboard_bp)


@dashboard_bp.route("/kpis", methods=["GET"])
def kpis():
    """Headline migration KPIs."""
    return jsonify(dashboard_service.get_kpis())
