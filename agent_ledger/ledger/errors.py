"""
Ledger Error Taxonomy

DESIGN DECISION: Every failure that reaches a caller carries a
machine-readable kind plus a human-readable message.

Each kind has its own exception class so code can catch precisely
(`except InvalidDateRangeError`) while the dispatch layer only needs
`LedgerError.kind` to build the `{kind, message}` response.
"""

from enum import Enum
from typing import Optional


class LedgerErrorKind(str, Enum):
    """Wire codes for every failure the ledger can report."""
    INVALID_DATE = "INVALID_DATE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_AGENT = "INVALID_AGENT"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_VENDOR = "INVALID_VENDOR"
    INVALID_DESCRIPTION = "INVALID_DESCRIPTION"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_CURRENCY = "UNSUPPORTED_CURRENCY"
    INVALID_PROVIDER = "INVALID_PROVIDER"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Caller mistakes - fixing the input fixes the call
VALIDATION_KINDS = frozenset({
    LedgerErrorKind.INVALID_DATE,
    LedgerErrorKind.INVALID_DATE_RANGE,
    LedgerErrorKind.INVALID_AGENT,
    LedgerErrorKind.INVALID_CATEGORY,
    LedgerErrorKind.INVALID_VENDOR,
    LedgerErrorKind.INVALID_DESCRIPTION,
    LedgerErrorKind.INVALID_AMOUNT,
    LedgerErrorKind.INVALID_INPUT,
    LedgerErrorKind.UNSUPPORTED_CURRENCY,
})


class LedgerError(Exception):
    """Base exception for all ledger operations."""

    kind: LedgerErrorKind = LedgerErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, kind: Optional[LedgerErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def code(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, str]:
        """Structured `{kind, message}` pair for callers."""
        return {"kind": self.kind.value, "message": self.message}


class InvalidDateError(LedgerError):
    """A date or timestamp failed format or parse validation."""
    kind = LedgerErrorKind.INVALID_DATE


class InvalidDateRangeError(LedgerError):
    """Resolved `from` is after resolved `to`."""
    kind = LedgerErrorKind.INVALID_DATE_RANGE


class InvalidAgentError(LedgerError):
    """Agent id is empty, or unknown to a backend that does not auto-create."""
    kind = LedgerErrorKind.INVALID_AGENT


class InvalidCategoryError(LedgerError):
    kind = LedgerErrorKind.INVALID_CATEGORY


class InvalidVendorError(LedgerError):
    kind = LedgerErrorKind.INVALID_VENDOR


class InvalidDescriptionError(LedgerError):
    kind = LedgerErrorKind.INVALID_DESCRIPTION


class InvalidAmountError(LedgerError):
    """Amount is not a positive integer."""
    kind = LedgerErrorKind.INVALID_AMOUNT


class InvalidInputError(LedgerError):
    """Request body is not a JSON object."""
    kind = LedgerErrorKind.INVALID_INPUT


class UnsupportedCurrencyError(LedgerError):
    """Only USD is supported by every backend."""
    kind = LedgerErrorKind.UNSUPPORTED_CURRENCY


class InvalidProviderError(LedgerError):
    """Backend selector names an unknown backend."""
    kind = LedgerErrorKind.INVALID_PROVIDER


class ProviderNotConfiguredError(LedgerError):
    """Backend selected but its required settings are missing."""
    kind = LedgerErrorKind.PROVIDER_NOT_CONFIGURED


class ProviderUnavailableError(LedgerError):
    """Backend failed, or an internal post-condition was violated."""
    kind = LedgerErrorKind.PROVIDER_UNAVAILABLE


class NotImplementedLedgerError(LedgerError):
    """Operation recognized but the backend has no implementation."""
    kind = LedgerErrorKind.NOT_IMPLEMENTED


def to_ledger_error(err: BaseException) -> LedgerError:
    """Return `err` unchanged if typed, else wrap it as INTERNAL_ERROR."""
    if isinstance(err, LedgerError):
        return err
    return LedgerError(str(err) or "Unexpected error", LedgerErrorKind.INTERNAL_ERROR)


def error_code_of(err: BaseException) -> str:
    """Wire code for logging any exception."""
    if isinstance(err, LedgerError):
        return err.code
    return LedgerErrorKind.INTERNAL_ERROR.value
