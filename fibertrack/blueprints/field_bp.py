"""
Field operations blueprint — technicians and work orders.

Endpoints:
    TECH   /api/v1/technicians                         GET, POST
           /api/v1/technicians/job-counts              GET

    WO     /api/v1/work-orders                         GET, POST
           /api/v1/work-orders/<id>/technician         PATCH
           /api/v1/work-orders/<id>/status             PATCH
"""

import logging

from flask import Blueprint, jsonify, request

from fibertrack.blueprints import json_body, paginate, register_error_handlers
from fibertrack.services import field_service

logger = logging.getLogger(__name__)

field_bp = Blueprint("field", __name__, url_prefix="/api/v1")
register_error_handlers(field_bp)


@field_bp.route("/technicians", methods=["GET"])
def list_technicians():
    items, total = paginate(field_service.list_technicians())
    return jsonify({"items": items, "total": total})


@field_bp.route("/technicians", methods=["POST"])
def create_technician():
    return jsonify(field_service.create_technician(json_body())), 201


@field_bp.route("/technicians/job-counts", methods=["GET"])
def job_counts():
    return jsonify(field_service.technician_job_counts())


@field_bp.route("/work-orders", methods=["GET"])
def list_work_orders():
    work_orders = field_service.list_work_orders(
        status=request.args.get("status"),
        technician_id=request.args.get("technician_id"),
        location_id=request.args.get("location_id"),
    )
    items, total = paginate(work_orders)
    return jsonify({"items": items, "total": total})


@field_bp.route("/work-orders", methods=["POST"])
def create_work_order():
    return jsonify(field_service.create_work_order(json_body())), 201


@field_bp.route("/work-orders/<work_order_id>/technician", methods=["PATCH"])
def assign_technician(work_order_id):
    data = json_body()
    if "technician_id" not in data:
        return jsonify({"error": "technician_id is required"}), 400
    return jsonify(field_service.assign_technician(work_order_id, data["technician_id"]))


@field_bp.route("/work-orders/<work_order_id>/status", methods=["PATCH"])
def update_status(work_order_id):
    data = json_body()
    if not data.get("status"):
        return jsonify({"error": "status is required"}), 400
    wo = field_service.update_status(
        work_order_id,
        data["status"],
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
    )
    return jsonify(wo)
