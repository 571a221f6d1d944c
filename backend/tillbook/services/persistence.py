# Overview: Commit helper shared by the snapshot stores; turns database errors into PersistenceFailure.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import PersistenceFailure

logger = logging.getLogger(__name__)


def commit_or_fail(message: str, details: dict | None = None) -> None:
    """
    Commit the current session once.

    No retry: on failure the session is rolled back, the error is logged and
    PersistenceFailure is raised. Callers' in-memory snapshots are left as
    they are.
    """
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("%s: %s", message, exc)
        raise PersistenceFailure(message, details=details) from exc


def run_or_fail(func, message: str, details: dict | None = None):
    """Run a staging callable and commit, mapping database errors the same way."""
    try:
        result = func()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("%s: %s", message, exc)
        raise PersistenceFailure(message, details=details) from exc
    commit_or_fail(message, details)
    return result
