"""Custom exception classes for structured API error handling."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error with an associated HTTP status code."""

    status_code: int = 500

    def __init__(self, message: str = "Internal server error", details: Any = None) -> None:
        super().__init__(message)
        self.details = details


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 409


class LoyverseSyncError(AppError):
    status_code = 502


# ---------------------------------------------------------------------------
# SKU allocation
# ---------------------------------------------------------------------------


class InvalidAttributeCode(ValidationError):
    """A code is empty or missing from its category in the code library."""

    def __init__(self, category: str, code: str | None) -> None:
        self.category = category
        self.code = code
        super().__init__(
            f"Invalid {category} code: {code!r}",
            details={"category": category, "code": code},
        )


class InvalidDate(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class SequenceExhausted(ConflictError):
    """All 99 sequence numbers for an allocation key have been issued."""

    def __init__(self, allocation_key: str) -> None:
        self.allocation_key = allocation_key
        super().__init__(
            f"Maximum 99 items with same attributes per day reached ({allocation_key})",
            details={"allocation_key": allocation_key},
        )


class ConcurrentAllocationConflict(ConflictError):
    """Every optimistic retry collided with another writer."""

    def __init__(self, allocation_key: str, attempts: int) -> None:
        self.allocation_key = allocation_key
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a SKU for {allocation_key} after {attempts} attempts"
        )


class LedgerUnavailable(AppError):
    status_code = 503
