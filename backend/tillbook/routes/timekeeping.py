# Overview: Flask API routes for timekeeping; punches and pay period reports.

"""
Timekeeping Routes

Punches are raw IN/OUT events. Hours are computed per pay period on read.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import TillbookError
from ..services import timekeeping_service
from tillbook.time_utils import parse_iso_datetime
from .responses import error_response, internal_error


timekeeping_bp = Blueprint("timekeeping", __name__, url_prefix="/api/timekeeping")


@timekeeping_bp.post("/punches")
def record_punch_route():
    data = request.get_json(silent=True) or {}
    worker = data.get("worker")
    direction = data.get("direction")

    if not worker or not direction:
        return jsonify({"error": "worker and direction are required"}), 400

    try:
        at = parse_iso_datetime(data.get("at"))
    except ValueError:
        return jsonify({"error": "at must be an ISO-8601 datetime"}), 400

    try:
        punch = timekeeping_service.record_punch(str(worker), str(direction), at)
        return jsonify({
            "punch": {
                "worker": punch.worker,
                "direction": punch.direction,
                "at": punch.at.isoformat(),
            }
        }), 201
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record punch")
        return internal_error()


@timekeeping_bp.get("/payroll")
def payroll_route():
    """Current and previous pay period hours. Query param: at (ISO datetime)."""
    try:
        now = parse_iso_datetime(request.args.get("at"))
    except ValueError:
        return jsonify({"error": "at must be an ISO-8601 datetime"}), 400

    try:
        reports = timekeeping_service.payroll_summary(now)
        return jsonify({"periods": [report.to_dict() for report in reports]})
    except Exception:
        current_app.logger.exception("Failed to build payroll report")
        return internal_error()
