"""
Migration waves blueprint.

Endpoints:
    WAVE      /api/v1/waves                              GET, POST
              /api/v1/waves/<id>                         GET, PUT, DELETE
              /api/v1/waves/<id>/locations/<loc_id>      PUT    (schedule location into wave)

    PROGRESS  /api/v1/waves/<id>/progress                POST   (recompute + persist)
              /api/v1/waves/progress/refresh             POST   (async, 202)
              /api/v1/waves/progress/tasks               GET
              /api/v1/waves/progress/tasks/<task_id>     GET
"""

import logging

from flask import Blueprint, jsonify, request

from fibertrack.blueprints import json_body, paginate, register_error_handlers
from fibertrack.domain.records import load_wave
from fibertrack.services import wave_service
from fibertrack.services.snapshot import load_snapshot
from fibertrack.services.task_runner import runner
from fibertrack.services.wave_progress import refresh_all_wave_progress

logger = logging.getLogger(__name__)

waves_bp = Blueprint("waves", __name__, url_prefix="/api/v1")
register_error_handlers(waves_bp)


@waves_bp.route("/waves", methods=["GET"])
def list_waves():
    items, total = paginate(wave_service.list_waves(region=request.args.get("region")))
    return jsonify({"items": items, "total": total})


@waves_bp.route("/waves", methods=["POST"])
def create_wave():
    return jsonify(wave_service.create_wave(json_body())), 201


@waves_bp.route("/waves/<wave_id>", methods=["GET"])
def get_wave(wave_id):
    return jsonify(wave_service.get_wave(wave_id))


@waves_bp.route("/waves/<wave_id>", methods=["PUT"])
def update_wave(wave_id):
    return jsonify(wave_service.update_wave(wave_id, json_body()))


@waves_bp.route("/waves/<wave_id>", methods=["DELETE"])
def delete_wave(wave_id):
    wave_service.delete_wave(wave_id)
    return jsonify({"message": "Wave deleted"}), 200


@waves_bp.route("/waves/<wave_id>/locations/<location_id>", methods=["PUT"])
def assign_location(wave_id, location_id):
    return jsonify(wave_service.assign_location(wave_id, location_id))


# ═══════════════════════════════════════════════════════════════════════════
#  PROGRESS
# ═══════════════════════════════════════════════════════════════════════════


@waves_bp.route("/waves/<wave_id>/progress", methods=["POST"])
def recompute_progress(wave_id):
    """Recompute and persist one wave's progress.

    When the write fails the locally computed value is returned with
    ``source="local"`` and the error message.
    """
    wave = load_wave(wave_service.get_wave(wave_id))
    snapshot = load_snapshot("locations", "work_orders")
    outcome = refresh_all_wave_progress([wave], snapshot.locations, snapshot.work_orders)[0]
    return jsonify(outcome.to_dict())


@waves_bp.route("/waves/progress/refresh", methods=["POST"])
def refresh_progress():
    """Submit an asynchronous refresh of every wave (or ``wave_ids``)."""
    data = request.get_json(silent=True) or {}
    wave_ids = data.get("wave_ids") or []
    if not isinstance(wave_ids, list):
        return jsonify({"error": "wave_ids must be a list"}), 400
    return jsonify(runner.submit(wave_ids)), 202


@waves_bp.route("/waves/progress/tasks", methods=["GET"])
def list_refresh_tasks():
    return jsonify({"items": runner.list_tasks(status=request.args.get("status"))})


@waves_bp.route("/waves/progress/tasks/<task_id>", methods=["GET"])
def refresh_status(task_id):
    return jsonify(runner.get_status(task_id))
