# Overview: Error kinds raised by the sale, layaway, inventory and audit log services.

"""
Every error is reported once to the caller and never retried here.

The ledger is left in whatever in-memory state it had when the error was
raised; only PersistenceFailure can leave memory ahead of durable storage.
"""


class TillbookError(Exception):
    """Base for all business-rule failures."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EmptyLedger(TillbookError):
    """Undo, duplicate or complete requested with no lines in the sale."""


class InvalidAmount(TillbookError):
    """Price, payment or discount outside the accepted range."""


class InvalidBalance(TillbookError):
    """Manual layaway balance edit negative or above the original price."""


class MissingItemData(TillbookError):
    """No inventory record, catalog entry or hold could be resolved."""


class OutOfStock(TillbookError):
    """Tracked item at quantity <= 0; the caller must confirm the sale."""


class PendingSaleOpen(TillbookError):
    """Manual edit would interleave with an uncommitted sale."""


class MalformedLogEntry(TillbookError):
    """Audit entry missing a required field; dropped, never fatal."""


class PersistenceFailure(TillbookError):
    """
    Saving a snapshot failed.

    In-memory state is NOT rolled back; it stays ahead of the database until
    the next successful save.
    """
