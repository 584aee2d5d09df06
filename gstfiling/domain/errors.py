# gstfiling/domain/errors.py
"""
Error taxonomy for GST calculation and return assembly.

Every error carries the offending field, the value received and the
constraint that was expected, so callers can render a user-facing message.
Calculation errors are never defaulted: a failing line item aborts the
document, a failing document aborts the period.
"""

from __future__ import annotations

from typing import Any


class GSTError(Exception):
    """Base exception for the GST filing core."""

    error_code = "GST_ERROR"

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        expected: str | None = None,
    ) -> None:
        self.message = message
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "value": self.value,
            "expected": self.expected,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidRate(GSTError):
    """GST rate is not one of the statutory slabs."""

    error_code = "INVALID_RATE"


class MissingState(GSTError):
    """Seller state code, or a required buyer state code, is absent."""

    error_code = "MISSING_STATE"


class InvalidStateCode(GSTError):
    """State code is present but not a well-formed two-digit code."""

    error_code = "INVALID_STATE_CODE"


class EmptyDocument(GSTError):
    """Invoice or purchase has no line items."""

    error_code = "EMPTY_DOCUMENT"


class InvalidAmount(GSTError):
    """Taxable amount is non-numeric or not strictly positive."""

    error_code = "INVALID_AMOUNT"


class InvalidPeriod(GSTError):
    """Filing period is not a valid YYYY-MM value."""

    error_code = "INVALID_PERIOD"


class BusinessNotFound(GSTError):
    error_code = "BUSINESS_NOT_FOUND"


class ReturnNotFound(GSTError):
    """No return has been generated yet for the requested period."""

    error_code = "RETURN_NOT_FOUND"


class DuplicateDocument(GSTError):
    """Same counterparty and external invoice number recorded twice."""

    error_code = "DUPLICATE_DOCUMENT"


__all__ = [
    "GSTError",
    "InvalidRate",
    "MissingState",
    "InvalidStateCode",
    "EmptyDocument",
    "InvalidAmount",
    "InvalidPeriod",
    "BusinessNotFound",
    "ReturnNotFound",
    "DuplicateDocument",
]
