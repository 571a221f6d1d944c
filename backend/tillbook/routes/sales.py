# Overview: Flask API routes for the pending sale; parses input and returns JSON responses.

# backend/tillbook/routes/sales.py
"""Pending sale API routes. Every response carries the current cart."""

from flask import Blueprint, current_app, jsonify, request

from ..errors import TillbookError
from ..services import sales_service
from ..services.catalog_service import CUSTOM_BRAND
from ..snapshots import OTHER_CATEGORY
from ..validation import (
    ValidationError,
    optional_text,
    parse_bool,
    parse_decimal,
    parse_money,
    require_text,
)
from .responses import error_response, internal_error


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sale")


def _sale_json(session, **extra):
    return {"sale": session.to_dict(), **extra}


@sales_bp.get("")
def get_sale_route():
    try:
        session = sales_service.current_session()
        return jsonify(_sale_json(session))
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return internal_error()


@sales_bp.post("/items")
def sell_item_route():
    """
    Tap-to-sell a catalog item.

    Body: category, brand, item, optional discount_percentage and
    confirm_out_of_stock. Out-of-stock tracked items return 409 until the
    request is repeated with confirm_out_of_stock=true.
    """
    try:
        data = request.get_json(silent=True) or {}
        category = require_text(data, "category")
        brand = require_text(data, "brand")
        item = require_text(data, "item")
        discount = data.get("discount_percentage")
        if discount is not None:
            discount = parse_decimal(discount, "discount_percentage")

        session = sales_service.current_session()
        line = sales_service.sell_item(
            session,
            category,
            brand,
            item,
            discount_percentage=discount,
            confirm_out_of_stock=parse_bool(data.get("confirm_out_of_stock", False)),
        )
        return jsonify(_sale_json(session, line=line.to_dict())), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add item to sale")
        return internal_error()


@sales_bp.post("/custom-items")
def add_custom_item_route():
    try:
        data = request.get_json(silent=True) or {}
        name = require_text(data, "name")
        price = parse_money(data.get("price"), "price")

        session = sales_service.current_session()
        line = sales_service.add_custom_item(
            session,
            name,
            price,
            category=optional_text(data, "category") or OTHER_CATEGORY,
            brand=optional_text(data, "brand") or CUSTOM_BRAND,
        )
        return jsonify(_sale_json(session, line=line.to_dict())), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add custom item")
        return internal_error()


@sales_bp.post("/layaways")
def add_layaway_route():
    """Open a hold and put its down payment on the sale."""
    try:
        data = request.get_json(silent=True) or {}
        category = require_text(data, "category")
        brand = require_text(data, "brand")
        item = require_text(data, "item")
        original_price = data.get("original_price")
        if original_price is not None:
            original_price = parse_money(original_price, "original_price")

        session = sales_service.current_session()
        hold, line = sales_service.add_layaway_down_payment(
            session,
            category,
            brand,
            item,
            original_price,
            optional_text(data, "customer_name"),
            optional_text(data, "customer_phone"),
        )
        return jsonify(_sale_json(session, layaway=hold.to_dict(), line=line.to_dict())), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to open layaway")
        return internal_error()


@sales_bp.post("/layaway-payments")
def add_layaway_payment_route():
    try:
        data = request.get_json(silent=True) or {}
        layaway_id = require_text(data, "layaway_id")
        amount = parse_money(data.get("amount"), "amount")

        session = sales_service.current_session()
        line = sales_service.add_layaway_payment(session, layaway_id, amount)
        return jsonify(_sale_json(session, line=line.to_dict())), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add layaway payment")
        return internal_error()


@sales_bp.post("/undo")
def undo_route():
    try:
        session = sales_service.current_session()
        line = sales_service.undo_last(session)
        return jsonify(_sale_json(session, removed=line.to_dict()))
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to undo last item")
        return internal_error()


@sales_bp.post("/duplicate")
def duplicate_route():
    try:
        data = request.get_json(silent=True) or {}
        session = sales_service.current_session()
        line = sales_service.duplicate_last(
            session,
            confirm_out_of_stock=parse_bool(data.get("confirm_out_of_stock", False)),
        )
        return jsonify(_sale_json(session, line=line.to_dict())), 201
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to duplicate last item")
        return internal_error()


@sales_bp.post("/complete")
def complete_route():
    try:
        session = sales_service.current_session()
        receipt = sales_service.complete_sale(session)
        return jsonify(_sale_json(session, receipt=receipt.to_dict()))
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to complete sale")
        return internal_error()


@sales_bp.post("/cancel")
def cancel_route():
    try:
        session = sales_service.current_session()
        reverted = sales_service.cancel_sale(session)
        return jsonify(_sale_json(session, reverted=reverted))
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return internal_error()


@sales_bp.post("/save")
def save_route():
    """Retry the snapshot write after a 503 from complete/cancel."""
    try:
        session = sales_service.current_session()
        sales_service.save_session(session)
        return jsonify(_sale_json(session, saved=True))
    except TillbookError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save session")
        return internal_error()
