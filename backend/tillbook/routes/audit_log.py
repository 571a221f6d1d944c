# Overview: Flask API routes for the audit log; per-day reads.

from flask import Blueprint, current_app, jsonify, request

from ..services.audit_log_service import AuditLog
from tillbook.time_utils import parse_iso_date, utcnow


audit_log_bp = Blueprint("audit_log", __name__, url_prefix="/api/log")


@audit_log_bp.get("")
def get_log_route():
    """
    Log entries for one day, in insertion order.

    Query params: date=YYYY-MM-DD (defaults to today, UTC).
    """
    try:
        day = parse_iso_date(request.args.get("date")) or utcnow().date()
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    try:
        log = AuditLog()
        entries = log.entries_for_day(day)
        return jsonify({
            "date": day.isoformat(),
            "entries": [entry.to_dict() for entry in entries],
            "count": len(entries),
            "days": [d.isoformat() for d in log.days()],
        })
    except Exception:
        current_app.logger.exception("Failed to read log")
        return jsonify({"error": "Internal server error"}), 500
