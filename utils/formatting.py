import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

RENEWAL_DATE_FORMAT = "%b %d, %Y"  # e.g. "Mar 05, 2025"
# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def normalize_amount(value: Any) -> float:
    """
    Normalize an amount read from the store to a float.
    Numeric strings are parsed; anything unparseable becomes 0.0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    else:
        try:
            result = float(str(value).strip())
        except ValueError:
            return 0.0
    return result if math.isfinite(result) else 0.0


def coerce_amount(value: Any) -> Decimal:
    """
    Strict coercion for writes: the value must be a finite, non-negative number
    (or numeric string). Raises ValueError otherwise.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("amount is required and must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"amount must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"amount must be finite, got {value!r}")
    if amount < 0:
        raise ValueError("amount must not be negative")
    if amount > MAX_AMOUNT:
        raise ValueError(f"amount out of range, got {value!r}")
    try:
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation as exc:
        raise ValueError(f"amount out of range, got {value!r}") from exc


def parse_renewal_date(value: Any) -> Optional[date]:
    """
    Return the calendar date for ``value`` (date, datetime or ISO-8601 string),
    or None when it cannot be interpreted.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def format_renewal_date(value: Any) -> str:
    parsed = parse_renewal_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(RENEWAL_DATE_FORMAT)


def format_amount(value: Any) -> str:
    return f"${normalize_amount(value):.2f}"
