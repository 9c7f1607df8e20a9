import math

import pytest

from holdings_dashboard.utils.validation import (
    InvalidInputError,
    normalize_symbol,
    parse_number,
    parse_optional_number,
    require_non_negative,
    require_positive,
)


def test_normalize_symbol() -> None:
    assert normalize_symbol(" vti ") == "VTI"
    assert normalize_symbol("^vix") == "^VIX"
    assert normalize_symbol("brk.b") == "BRK.B"
    assert normalize_symbol("") is None
    assert normalize_symbol(None) is None
    with pytest.raises(InvalidInputError):
        normalize_symbol("DROP TABLE")


def test_parse_number() -> None:
    assert parse_number("12.5", "shares") == 12.5
    assert parse_number(3, "shares") == 3.0
    for bad in ("abc", None, True, math.nan, math.inf):
        with pytest.raises(InvalidInputError):
            parse_number(bad, "shares")


def test_parse_optional_number() -> None:
    assert parse_optional_number("", "fees") is None
    assert parse_optional_number(None, "fees") is None
    assert parse_optional_number("1.5", "fees") == 1.5


def test_require_positive_message() -> None:
    with pytest.raises(InvalidInputError, match="shares must be a positive number."):
        require_positive(0, "shares")
    with pytest.raises(InvalidInputError, match="shares must be a positive number."):
        require_positive("x", "shares")


def test_require_non_negative() -> None:
    assert require_non_negative(0, "fees") == 0.0
    with pytest.raises(InvalidInputError):
        require_non_negative(-0.01, "fees")
