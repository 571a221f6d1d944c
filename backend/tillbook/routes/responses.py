# Overview: Shared JSON error responses for the API blueprints.

from flask import jsonify

from ..errors import (
    EmptyLedger,
    MissingItemData,
    OutOfStock,
    PendingSaleOpen,
    PersistenceFailure,
    TillbookError,
)

# Anything not listed (InvalidAmount, InvalidBalance, TimekeepingError, ...) is a 400.
STATUS_BY_ERROR = (
    (MissingItemData, 404),
    (EmptyLedger, 409),
    (OutOfStock, 409),
    (PendingSaleOpen, 409),
    (PersistenceFailure, 503),
)


def status_for(error: TillbookError) -> int:
    for kind, status in STATUS_BY_ERROR:
        if isinstance(error, kind):
            return status
    return 400


def error_response(error: TillbookError):
    return jsonify({"error": error.message, "details": error.details}), status_for(error)


def internal_error():
    return jsonify({"error": "Internal server error"}), 500
