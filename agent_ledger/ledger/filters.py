"""
Filter Normalization

DESIGN DECISION: Raw tool input is untrusted and mostly optional.
Everything that reaches a provider has been through this module, so
providers can rely on:
- `date_from`/`date_to` being valid `YYYY-MM-DD` strings with from <= to
- `currency` being upper-case
- `agent_id` being trimmed, or None for "all agents"

IMPORTANT: Normalization NEVER guesses. Bad dates are rejected with a
typed error, not silently replaced - except in `safe_normalize_filters`,
which exists only so the error path has something to log.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from agent_ledger.ledger.dates import (
    DEFAULT_WINDOW_DAYS,
    ISO_DATE_PATTERN,
    parse_timestamp,
    parse_utc_day,
    shift_days,
    to_date_string,
    utc_now,
)
from agent_ledger.ledger.errors import (
    InvalidAgentError,
    InvalidAmountError,
    InvalidCategoryError,
    InvalidDateError,
    InvalidDateRangeError,
    InvalidDescriptionError,
    InvalidVendorError,
    LedgerError,
)
from agent_ledger.models.ledger import (
    DEFAULT_CURRENCY,
    LedgerFilters,
    LedgerFiltersInput,
    TrackExpenseInput,
    TrackExpenseRequest,
)


def normalize_currency(value: Optional[str]) -> str:
    """Trim and upper-case; empty or missing means USD."""
    return (value or "").strip().upper() or DEFAULT_CURRENCY


def normalize_agent_id(value: Optional[str]) -> Optional[str]:
    """Trim; empty means no agent scope."""
    return (value or "").strip() or None


def _validate_day(value: str, label: str) -> str:
    if not ISO_DATE_PATTERN.match(value):
        raise InvalidDateError(
            f"Invalid {label} date format: {value}. Expected YYYY-MM-DD."
        )
    try:
        parse_utc_day(value)
    except ValueError:
        raise InvalidDateError(
            f"Invalid {label} date: {value} is not a calendar date."
        )
    return value


def resolve_date_range(
    date_from: Optional[str],
    date_to: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """
    Resolve optional bounds to concrete UTC days.

    `to` defaults to today (UTC). `from` defaults to `to` minus 29 days,
    giving a 30-day inclusive window ending at `to`.
    """
    today = (now or utc_now()).date()

    to_day = parse_utc_day(date_to) if date_to else today
    from_day = (
        parse_utc_day(date_from)
        if date_from
        else shift_days(to_day, -(DEFAULT_WINDOW_DAYS - 1))
    )

    return to_date_string(from_day), to_date_string(to_day)


def normalize_filters(
    raw: LedgerFiltersInput,
    now: Optional[datetime] = None,
) -> LedgerFilters:
    """
    Convert raw query input into a canonical filter set.

    Raises:
        InvalidDateError: `from`/`to` is not a `YYYY-MM-DD` calendar date
        InvalidDateRangeError: resolved `from` is after resolved `to`
    """
    if raw.date_from:
        _validate_day(raw.date_from, "from")
    if raw.date_to:
        _validate_day(raw.date_to, "to")

    date_from, date_to = resolve_date_range(raw.date_from, raw.date_to, now)

    # ISO day strings order lexicographically == chronologically
    if date_from > date_to:
        raise InvalidDateRangeError(
            f'Invalid date range. "from" ({date_from}) must be less than '
            f'or equal to "to" ({date_to}).'
        )

    return LedgerFilters(
        agent_id=normalize_agent_id(raw.agent_id),
        date_from=date_from,
        date_to=date_to,
        currency=normalize_currency(raw.currency),
    )


def safe_normalize_filters(
    raw: LedgerFiltersInput,
    now: Optional[datetime] = None,
) -> LedgerFilters:
    """
    Best-effort filters for error-path logging. Never raises.

    On a validation error both bounds become today. Use `normalize_filters`
    for any actual data operation.
    """
    try:
        return normalize_filters(raw, now)
    except LedgerError:
        today = to_date_string((now or utc_now()).date())
        return LedgerFilters(
            agent_id=normalize_agent_id(raw.agent_id),
            date_from=today,
            date_to=today,
            currency=normalize_currency(raw.currency),
        )


def require_positive_amount(value: Any) -> int:
    """
    Truncate a numeric amount to an integer and require it to be > 0.

    Raises:
        InvalidAmountError: not a finite number, or <= 0 after truncation
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidAmountError("amountMinor must be a positive integer.")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmountError("amountMinor must be a positive integer.")
    if isinstance(value, Decimal) and not value.is_finite():
        raise InvalidAmountError("amountMinor must be a positive integer.")

    amount = math.trunc(value)
    if amount <= 0:
        raise InvalidAmountError("amountMinor must be a positive integer.")
    return int(amount)


def normalize_occurred_at(
    value: Optional[str],
    now: Optional[datetime] = None,
) -> datetime:
    """Parse an ISO-8601 timestamp (UTC), defaulting to now."""
    if not value:
        return now or utc_now()

    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidDateError(
            f"Invalid occurredAt date format: {value}. Expected ISO-8601 date-time."
        )
    return parsed


def _require_text(value: str, error_cls: type[LedgerError], field_name: str) -> str:
    text = value.strip()
    if not text:
        raise error_cls(f"{field_name} is required.")
    return text


def normalize_track_expense_input(
    request: TrackExpenseRequest,
    now: Optional[datetime] = None,
) -> TrackExpenseInput:
    """
    Validate and normalize record-expense input.

    Checks run in order: agentId, category, vendor, description,
    occurredAt, amountMinor. Currency is normalized but NOT checked here -
    each provider enforces its own currency support.
    """
    agent_id = _require_text(request.agent_id, InvalidAgentError, "agentId")
    category = _require_text(request.category, InvalidCategoryError, "category")
    vendor = _require_text(request.vendor, InvalidVendorError, "vendor")
    description = _require_text(
        request.description, InvalidDescriptionError, "description"
    )
    occurred_at = normalize_occurred_at(request.occurred_at, now)

    if request.amount_minor <= 0:
        raise InvalidAmountError("amountMinor must be a positive integer.")

    return TrackExpenseInput(
        agent_id=agent_id,
        category=category,
        vendor=vendor,
        description=description,
        amount_minor=request.amount_minor,
        currency=normalize_currency(request.currency),
        occurred_at=occurred_at,
    )


def build_track_expense_log_filters(expense_input: TrackExpenseInput) -> LedgerFilters:
    """Filter set describing a recorded expense, for log lines."""
    day = to_date_string(expense_input.occurred_at.date())
    return LedgerFilters(
        agent_id=expense_input.agent_id,
        date_from=day,
        date_to=day,
        currency=expense_input.currency,
    )
