from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum price: $9,999,999.99
# This prevents database overflow issues and nonsensical prices
MAX_PRICE = Decimal("9999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


def require_fields(payload: dict, *names: str) -> None:
    missing = [name for name in names if payload.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")


def require_text(payload: dict, name: str) -> str:
    value = payload.get(name)
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value).strip()


def optional_text(payload: dict, name: str) -> str | None:
    value = payload.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_decimal(value: Any, field: str) -> Decimal:
    """
    Strict decimal parsing for money and percentages.

    Accepts int, Decimal or numeric strings ("25", "25.00", "$25.00").
    Rejects booleans, NaN/Infinity and scientific notation.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip().replace("$", "").replace(",", "")
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain number (scientific notation not allowed)")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def parse_money(value: Any, field: str) -> Decimal:
    amount = parse_decimal(value, field)
    if amount > MAX_PRICE:
        raise ValidationError(f"{field} exceeds maximum of {MAX_PRICE}")
    return amount


def parse_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped or "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    # fallback: truthiness
    return bool(value)
