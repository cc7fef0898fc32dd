"""Exception family raised by the ledger layers.

Every exception carries the :class:`~record_ledger.constants.ErrorKind` that
the engine reports back to callers once the failure has been converted into an
:class:`~record_ledger.core_logic.OperationResult`.
"""

from __future__ import annotations

from .constants import ErrorKind


class LedgerError(Exception):
    """Base class for all domain failures raised by the ledger."""

    kind: ErrorKind = ErrorKind.IO_ERROR


class InvalidNameError(LedgerError, ValueError):
    """Raised when a record name does not match the name grammar."""

    kind = ErrorKind.INVALID_NAME


class InvalidAmountError(LedgerError, ValueError):
    """Raised when an amount is not a digit-only string or violates a minimum."""

    kind = ErrorKind.INVALID_AMOUNT


class RecordNotFoundError(LedgerError, KeyError):
    """Raised when no record matches the requested name or keyword."""

    kind = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable.
        return str(self.args[0]) if self.args else ""


class AmbiguousMatchError(LedgerError):
    """Raised when several records match and no selection was supplied."""

    kind = ErrorKind.AMBIGUOUS_UNRESOLVED

    def __init__(self, message: str, match=None) -> None:
        super().__init__(message)
        self.match = match


class InvalidSelectionError(LedgerError):
    """Raised when a disambiguation choice does not point at a candidate."""

    kind = ErrorKind.INVALID_SELECTION


class InsufficientAmountError(LedgerError):
    """Raised when a delete would drive an amount below zero."""

    kind = ErrorKind.INSUFFICIENT_AMOUNT


class DuplicateNameError(LedgerError):
    """Raised when a create or rename would duplicate an existing name."""

    kind = ErrorKind.DUPLICATE_NAME


class EmptyStoreError(LedgerError):
    """Raised by aggregate operations when the store holds no records."""

    kind = ErrorKind.EMPTY_STORE


class MalformedRecordError(LedgerError, ValueError):
    """Raised when a store line cannot be parsed as ``name,amount``."""

    kind = ErrorKind.MALFORMED_RECORD

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


__all__ = [
    "LedgerError",
    "InvalidNameError",
    "InvalidAmountError",
    "RecordNotFoundError",
    "AmbiguousMatchError",
    "InvalidSelectionError",
    "InsufficientAmountError",
    "DuplicateNameError",
    "EmptyStoreError",
    "MalformedRecordError",
]
