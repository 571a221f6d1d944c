# Overview: Flask API routes for inventory; listing and manual stock/price edits.

# backend/tillbook/routes/inventory.py
"""
Inventory Routes

Manual edits are refused with 409 while a sale is pending.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import TillbookError
from ..services import inventory_service, sales_service
from ..validation import ValidationError, parse_int, parse_money, require_text
from .responses import error_response, internal_error


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _item_key(data: dict) -> tuple[str, str, str]:
    return (
        require_text(data, "category"),
        require_text(data, "brand"),
        require_text(data, "item"),
    )


@inventory_bp.get("")
def list_inventory_route():
    """
    List inventory records.

    Optional query params: category, brand (exact match).
    """
    try:
        session = sales_service.current_session()
        category = request.args.get("category")
        brand = request.args.get("brand")

        records = [
            record for record in session.inventory
            if (not category or record.category == category)
            and (not brand or record.brand == brand)
        ]
        return jsonify({"items": [record.to_dict() for record in records], "count": len(records)})
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return internal_error()


@inventory_bp.post("/adjust")
def adjust_route():
    try:
        data = request.get_json(silent=True) or {}
        category, brand, item = _item_key(data)
        adjustment = parse_int(data.get("adjustment"), "adjustment")
        if adjustment == 0:
            raise ValidationError("adjustment must not be zero")

        session = sales_service.current_session()
        record = inventory_service.adjust_quantity(session, category, brand, item, adjustment)
        return jsonify({"item": record.to_dict()})

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return internal_error()


@inventory_bp.put("/quantity")
def set_quantity_route():
    try:
        data = request.get_json(silent=True) or {}
        category, brand, item = _item_key(data)
        quantity = parse_int(data.get("quantity"), "quantity")

        session = sales_service.current_session()
        record = inventory_service.set_quantity(session, category, brand, item, quantity)
        return jsonify({"item": record.to_dict()})

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set inventory quantity")
        return internal_error()


@inventory_bp.put("/price")
def set_price_route():
    try:
        data = request.get_json(silent=True) or {}
        category, brand, item = _item_key(data)
        price = parse_money(data.get("price"), "price")

        session = sales_service.current_session()
        record = inventory_service.set_price(session, category, brand, item, price)
        return jsonify({"item": record.to_dict()})

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set price")
        return internal_error()
