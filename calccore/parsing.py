"""Parse-and-validate helpers sitting between raw UI input and the formulas.

Every helper returns an Either: Right(value) for usable input, Left(error dict)
otherwise. The error dict has the same shape as ValidationError.to_dict().
"""
import math
from datetime import date, datetime
from typing import Any, Optional, Union

from calccore.errors import ValidationError
from calccore.functional import Either, Left, Right

Number = Union[int, float]


def _err(code: str, message: str, field: str, **details: Any) -> Left:
    return Left({"error": code, "message": message, "field": field, **details})


def parse_number(
    raw: Any,
    field: str,
    *,
    positive: bool = False,
    non_negative: bool = False,
) -> Either[dict, float]:
    if isinstance(raw, bool) or raw is None:
        return _err("not_a_number", f"{field} is required", field)
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(",", "")
        if not text:
            return _err("not_a_number", f"{field} is required", field)
        try:
            value = float(text)
        except ValueError:
            return _err("not_a_number", f"{field} must be a number, got {raw!r}", field, value=raw)
    if not math.isfinite(value):
        return _err("non_finite", f"{field} must be a finite number", field, value=raw)
    if positive and value <= 0:
        return _err("not_positive", f"{field} must be greater than zero", field, value=value)
    if non_negative and value < 0:
        return _err("negative", f"{field} must not be negative", field, value=value)
    return Right(value)


def parse_date(raw: Any, field: str) -> Either[dict, date]:
    if isinstance(raw, datetime):
        return Right(raw.date())
    if isinstance(raw, date):
        return Right(raw)
    text = str(raw or "").strip()
    if not text:
        return _err("invalid_date", f"{field} is required", field)
    try:
        return Right(date.fromisoformat(text))
    except ValueError:
        return _err("invalid_date", f"{field} must be a YYYY-MM-DD date, got {raw!r}", field, value=raw)


def parse_text(raw: Any, field: str) -> Either[dict, str]:
    text = "" if raw is None else str(raw).strip()
    if not text:
        return _err("empty_" + field, f"{field} must not be empty", field)
    return Right(text)


def parse_code(raw: Any, field: str) -> Either[dict, str]:
    return parse_text(raw, field).map(str.upper)


def unwrap(result: Either[dict, Any]) -> Any:
    """Return the Right value or raise the Left as a ValidationError."""
    if result.is_left():
        raise ValidationError.from_dict(result.get_error())
    return result.get_or_else(None)


def finite(value: float, what: str, field: Optional[str] = None) -> float:
    if not math.isfinite(value):
        raise ValidationError("non_finite", f"{what} is not a finite number", field)
    return value
