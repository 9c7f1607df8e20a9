from __future__ import annotations

import re

import numpy as np

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9^][A-Z0-9.\-=^]{0,19}$")


class InvalidInputError(ValueError):
    """Raised for malformed user input; the message is safe to show to the user."""


def normalize_symbol(symbol: str | None) -> str | None:
    if symbol is None:
        return None
    clean = str(symbol).strip().upper()
    if not clean:
        return None
    if not _SYMBOL_PATTERN.fullmatch(clean):
        raise InvalidInputError(f"Invalid ticker symbol: {symbol!r}")
    return clean


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value, field: str) -> float:
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number.")
    try:
        out = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidInputError(f"{field} must be a number.") from exc
    if np.isnan(out) or np.isinf(out):
        raise InvalidInputError(f"{field} must be a finite number.")
    return out


def parse_optional_number(value, field: str) -> float | None:
    if is_blank(value):
        return None
    return parse_number(value, field)


def require_positive(value, field: str) -> float:
    try:
        out = parse_number(value, field)
    except InvalidInputError as exc:
        raise InvalidInputError(f"{field} must be a positive number.") from exc
    if out <= 0:
        raise InvalidInputError(f"{field} must be a positive number.")
    return out


def require_non_negative(value, field: str) -> float:
    out = parse_number(value, field)
    if out < 0:
        raise InvalidInputError(f"{field} must not be negative.")
    return out
