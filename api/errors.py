"""API error handling utilities."""

from __future__ import annotations

import functools
import logging
import sqlite3
from typing import Any

from flask import jsonify

logger = logging.getLogger(__name__)

LEDGER_UNAVAILABLE = "Inventory ledger unavailable, try again shortly"


def error_response(
    message: str,
    status_code: int,
    details: Any = None,
) -> tuple:
    """Return a consistent JSON error response."""
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status_code


def handle_errors(f):
    """Map allocation, code-library, Loyverse and SQLite errors to JSON.

    Client errors (bad codes, dates and amounts, exhausted or contended
    sequences) keep their own message and ``details``. A busy or missing
    ledger is reported as 503 without the SQLite text. Anything else is
    logged with its traceback and answered with a bare 500.
    """
    from api.exceptions import AppError, LedgerUnavailable, LoyverseSyncError

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LedgerUnavailable as exc:
            logger.warning("Ledger unavailable during %s: %s", f.__name__, exc)
            return error_response(LEDGER_UNAVAILABLE, exc.status_code, exc.details)
        except LoyverseSyncError as exc:
            logger.warning("Loyverse request failed during %s: %s", f.__name__, exc)
            return error_response(str(exc), exc.status_code, exc.details)
        except AppError as exc:
            return error_response(str(exc), exc.status_code, exc.details)
        except sqlite3.IntegrityError as exc:
            # e.g. a foreign key from inventory to a code library row
            return error_response(f"Conflicts with stored inventory: {exc}", 409)
        except sqlite3.OperationalError as exc:
            logger.warning("SQLite error during %s: %s", f.__name__, exc)
            return error_response(LEDGER_UNAVAILABLE, 503)
        except ValueError as exc:
            return error_response(str(exc), 400)
        except Exception:
            logger.exception("Unexpected error in %s", f.__name__)
            return error_response("Internal server error", 500)

    return wrapper
