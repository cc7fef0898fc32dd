"""Syntax checks for user-supplied record names and amounts.

The helpers are pure: they raise on failure and never write to the audit log.
Recording validation failures is the engine's job.
"""

from __future__ import annotations

from .constants import AMOUNT_PATTERN, NAME_PATTERN
from .errors import InvalidAmountError, InvalidNameError


def validate_name(candidate: str) -> str:
    """Check that ``candidate`` is a legal record name.

    A legal name is non-empty, starts with an ASCII letter and continues with
    ASCII letters or digits only.

    Args:
        candidate (str): Raw name as typed by the user.

    Returns:
        str: ``candidate`` unchanged, so calls can be chained.

    Raises:
        InvalidNameError: If ``candidate`` is empty or breaks the grammar.
    """

    if not candidate or NAME_PATTERN.fullmatch(candidate) is None:
        raise InvalidNameError(
            f"Invalid record name '{candidate}': use letters and digits, starting with a letter"
        )
    return candidate


def validate_amount(candidate: str) -> int:
    """Parse a digit-only amount string into a non-negative integer.

    Python integers are unbounded, so very large amounts are accepted as-is.

    Args:
        candidate (str): Raw amount as typed by the user.

    Returns:
        int: Parsed amount, always ``>= 0``.

    Raises:
        InvalidAmountError: If ``candidate`` is empty or contains anything
            other than decimal digits (signs and whitespace included).
    """

    if not isinstance(candidate, str) or AMOUNT_PATTERN.fullmatch(candidate) is None:
        raise InvalidAmountError(
            f"Invalid amount '{candidate}': enter a non-negative whole number"
        )
    return int(candidate)


def require_positive_amount(amount: int, *, purpose: str = "amount") -> int:
    """Reject amounts below one for operations that store or add value."""

    if amount < 1:
        raise InvalidAmountError(f"The {purpose} cannot be less than 1")
    return amount


__all__ = ["validate_name", "validate_amount", "require_positive_amount"]
