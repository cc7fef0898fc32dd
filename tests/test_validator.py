"""Unit tests for the name and amount validators."""

from __future__ import annotations

import pytest

from record_ledger import validator
from record_ledger.constants import ErrorKind
from record_ledger.errors import InvalidAmountError, InvalidNameError


@pytest.mark.parametrize("name", ["A", "Alice", "record1", "Rec0rd2B", "zZ9"])
def test_validate_name_accepts_grammar(name):
    """Names starting with a letter followed by letters or digits are legal."""

    assert validator.validate_name(name) == name


@pytest.mark.parametrize(
    "name",
    ["", "1abc", "9", "with space", "dash-name", "comma,name", "under_score", "Ünicode", "tab\t"],
)
def test_validate_name_rejects_invalid(name):
    """Empty names, leading digits and punctuation are all rejected."""

    with pytest.raises(InvalidNameError) as excinfo:
        validator.validate_name(name)
    assert excinfo.value.kind is ErrorKind.INVALID_NAME


@pytest.mark.parametrize("value", [0, 1, 42, 10**30])
def test_validate_amount_parses_digit_strings(value):
    """Every decimal rendering of a non-negative integer parses back to it."""

    assert validator.validate_amount(str(value)) == value


def test_validate_amount_keeps_leading_zeros_value():
    assert validator.validate_amount("007") == 7


@pytest.mark.parametrize("raw", ["", "-1", "+3", "1.5", "12a", " 4", "4 ", "٣"])
def test_validate_amount_rejects_non_digits(raw):
    """Signs, decimals, whitespace and non-ASCII digits are rejected."""

    with pytest.raises(InvalidAmountError) as excinfo:
        validator.validate_amount(raw)
    assert excinfo.value.kind is ErrorKind.INVALID_AMOUNT


def test_require_positive_amount_rejects_zero():
    with pytest.raises(InvalidAmountError, match="less than 1"):
        validator.require_positive_amount(0)


def test_require_positive_amount_returns_value():
    assert validator.require_positive_amount(5) == 5
