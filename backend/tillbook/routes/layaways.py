# Overview: Flask API routes for layaway holds; listing, balance edits and cancellation.

from flask import Blueprint, current_app, jsonify, request

from ..errors import TillbookError
from ..services import layaway_service, sales_service
from ..validation import ValidationError, parse_money
from .responses import error_response, internal_error


layaways_bp = Blueprint("layaways", __name__, url_prefix="/api/layaways")


@layaways_bp.get("")
def list_layaways_route():
    try:
        session = sales_service.current_session()
        holds = layaway_service.list_holds(session)
        return jsonify({"layaways": [hold.to_dict() for hold in holds], "count": len(holds)})
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list layaways")
        return internal_error()


@layaways_bp.patch("/<layaway_id>/balance")
def set_balance_route(layaway_id: str):
    """Manually correct the remaining balance; zero pays the hold off."""
    try:
        data = request.get_json(silent=True) or {}
        remaining = parse_money(data.get("remaining_balance"), "remaining_balance")

        session = sales_service.current_session()
        notices = layaway_service.set_balance(session, layaway_id, remaining)
        hold = session.layaways.get(layaway_id)
        return jsonify({
            "layaway": hold.to_dict() if hold else None,
            "completed": hold is None,
            "notices": notices,
        })

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to edit layaway balance")
        return internal_error()


@layaways_bp.delete("/<layaway_id>")
def cancel_layaway_route(layaway_id: str):
    try:
        session = sales_service.current_session()
        hold = layaway_service.cancel_hold(session, layaway_id)
        return jsonify({"cancelled": hold.to_dict()})
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel layaway")
        return internal_error()
