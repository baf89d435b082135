"""
Customer engagement blueprint — customers, consent and consent call log.

Endpoints:
    /api/v1/customers                       GET, POST
    /api/v1/customers/<id>/consent          PATCH
    /api/v1/customers/consent-summary       GET
    /api/v1/consent-logs                    GET, POST
"""

from flask import Blueprint, jsonify, request

from fibertrack.blueprints import json_body, paginate, register_error_handlers
from fibertrack.services import engagement_service

engagement_bp = Blueprint("engagement", __name__, url_prefix="/api/v1")
register_error_handlers(engagement_bp)


@engagement_bp.route("/customers", methods=["GET"])
def list_customers():
    customers = engagement_service.list_customers(request.args.get("consent_status"))
    items, total = paginate(customers)
    return jsonify({"items": items, "total": total})


@engagement_bp.route("/customers", methods=["POST"])
def create_customer():
    return jsonify(engagement_service.create_customer(json_body())), 201


@engagement_bp.route("/customers/consent-summary", methods=["GET"])
def consent_summary():
    return jsonify(engagement_service.consent_summary())


@engagement_bp.route("/customers/<customer_id>/consent", methods=["PATCH"])
def update_consent(customer_id):
    data = json_body()
    if not data.get("consent_status"):
        return jsonify({"error": "consent_status is required"}), 400
    return jsonify(engagement_service.update_consent(customer_id, data["consent_status"]))


@engagement_bp.route("/consent-logs", methods=["GET"])
def list_consent_logs():
    items, total = paginate(engagement_service.list_consent_logs(request.args.get("customer_id")))
    return jsonify({"items": items, "total": total})


@engagement_bp.route("/consent-logs", methods=["POST"])
def create_consent_log():
    return jsonify(engagement_service.create_consent_log(json_body())), 201
