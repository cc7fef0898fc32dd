"""Enumerations shared across the record ledger modules.

Centralises domain constants so that the store, the resolver, the engine and
the command-line front-end agree on event names, outcomes and error kinds.
"""

from __future__ import annotations

import re
from enum import Enum


# A record name starts with a letter and continues with letters or digits.
NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9]*")
AMOUNT_PATTERN = re.compile(r"[0-9]+")

FIELD_SEPARATOR = ","
AUDIT_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"
LOG_FILE_SUFFIX = "_log"


class Outcome(str, Enum):
    """Enumerate the two outcomes every ledger operation can report."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class EventName(str, Enum):
    """Enumerate the event names written to the audit log."""

    INITIALIZATION = "Initialization"
    VALIDATION = "Validation"
    ADD_RECORD = "Add Record"
    DELETE_RECORD = "Delete Record"
    SEARCH_RECORD = "Search Record"
    UPDATE_RECORD_NAME = "Update Record Name"
    UPDATE_RECORD_AMOUNT = "Update Record Amount"
    PRINT_TOTAL_AMOUNT = "Print Total Amount"
    PRINT_ALL_SORTED = "Print All Sorted"
    EXIT = "Exit"


class ErrorKind(str, Enum):
    """Enumerate the failure categories reported by engine operations."""

    INVALID_NAME = "InvalidName"
    INVALID_AMOUNT = "InvalidAmount"
    NOT_FOUND = "NotFound"
    AMBIGUOUS_UNRESOLVED = "AmbiguousUnresolved"
    INVALID_SELECTION = "InvalidSelection"
    INSUFFICIENT_AMOUNT = "InsufficientAmount"
    DUPLICATE_NAME = "DuplicateName"
    EMPTY_STORE = "EmptyStore"
    MALFORMED_RECORD = "MalformedRecord"
    IO_ERROR = "IOError"


__all__ = [
    "NAME_PATTERN",
    "AMOUNT_PATTERN",
    "FIELD_SEPARATOR",
    "AUDIT_TIMESTAMP_FORMAT",
    "LOG_FILE_SUFFIX",
    "Outcome",
    "EventName",
    "ErrorKind",
]
