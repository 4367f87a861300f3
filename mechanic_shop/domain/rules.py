from __future__ import annotations

import datetime as dt
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..errors import ValidationError

# Accepted operator date formats; the store always holds ISO dates.
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")


def parse_service_date(value) -> dt.date:
    """Parse an opening/closing date (date, datetime, YYYY-MM-DD or MM/DD/YYYY)."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    text = str(value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"invalid date: {text!r} (expected MM/DD/YYYY or YYYY-MM-DD)")


def to_iso(value) -> str:
    return parse_service_date(value).isoformat()


def closes_after(opening, closing) -> bool:
    """True when the closing date falls on a later calendar day than the opening date."""
    return parse_service_date(closing) > parse_service_date(opening)


# SQLite INTEGER is a signed 64-bit value
INT_MIN, INT_MAX = -(2 ** 63), 2 ** 63 - 1
# bills are stored as REAL; keep them well inside exact float range
MAX_BILL = Decimal("1e12")
CENTS = Decimal("0.01")


def require_text(value, field: str) -> str:
    text = str(value if value is not None else "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def require_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number")
    try:
        num = int(str(value).strip()) if not isinstance(value, int) else value
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number")
    if not INT_MIN <= num <= INT_MAX:
        raise ValidationError(f"{field} is out of range")
    return num


def require_non_negative_int(value, field: str) -> int:
    num = require_int(value, field)
    if num < 0:
        raise ValidationError(f"{field} must not be negative")
    return num


def round_amount(value) -> float:
    """Round monetary amounts to cents."""
    if value == 0:
        return 0.0
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(amount.quantize(CENTS, rounding=ROUND_HALF_UP))


def parse_bill(value) -> float:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError):
        raise ValidationError("bill must be a number")
    if not amount.is_finite() or amount > MAX_BILL:
        raise ValidationError("bill must be a number")
    if amount < 0:
        raise ValidationError("bill must not be negative")
    try:
        return round_amount(amount)
    except InvalidOperation:
        raise ValidationError("bill must be a number")
