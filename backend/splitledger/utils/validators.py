"""Request and money validators."""
import math
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from splitledger.errors import ValidationError

# Two-decimal currency: the smallest unit is also the reconciliation tolerance
AMOUNT_TOLERANCE = 0.01
MIN_AMOUNT = 0.01

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
DEFAULT_CURRENCY = "USD"


def require_keys(payload, *keys):
    missing = [k for k in keys if k not in (payload or {})]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])
    return True


def to_amount(value: Any, field: str = "amount") -> float:
    """Parse a JSON number or numeric string into a float amount."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a valid number", field=field)
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a valid number", field=field)
    if math.isnan(amount) or math.isinf(amount):
        raise ValidationError(f"{field} must be a finite number", field=field)
    return amount


def require_positive_amount(value: Any, field: str = "amount") -> float:
    amount = to_amount(value, field)
    if amount <= MIN_AMOUNT:
        raise ValidationError(
            f"{field} must be greater than {MIN_AMOUNT:.2f}",
            field=field,
            details={"expected": f"> {MIN_AMOUNT:.2f}", "actual": amount},
        )
    return amount


def amounts_reconcile(total: float, parts: Iterable[float]) -> bool:
    """True when the parts add up to the total within one cent."""
    return abs(sum(parts) - total) <= AMOUNT_TOLERANCE + 1e-9


def normalize_currency(value: Optional[str]) -> str:
    if value is None or value == "":
        return DEFAULT_CURRENCY
    if not isinstance(value, str):
        raise ValidationError("Currency code must be 3 letters", field="currency")
    currency = value.strip().upper()
    if not CURRENCY_PATTERN.match(currency):
        raise ValidationError(
            "Currency code must be 3 letters",
            field="currency",
            details={"actual": value},
        )
    return currency


def clean_text(value: Any, field: str, max_length: int, required: bool = True) -> str:
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    text = value.strip()
    if required and not text:
        raise ValidationError(f"Please provide a {field}", field=field)
    if len(text) > max_length:
        raise ValidationError(
            f"{field} cannot be more than {max_length} characters",
            field=field,
            details={"expected": max_length, "actual": len(text)},
        )
    return text


def parse_date(value: Any, field: str = "date") -> Optional[datetime]:
    """Accept a datetime or ISO-8601 string; no range restriction. Naive values are UTC."""
    if value is None or value == "":
        return None
    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError("Invalid date format", field=field)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
