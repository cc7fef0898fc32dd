"""Business logic layer for the record ledger.

This module is the engine that turns user intent into store mutations. It
consumes the data access layer for all I/O, the resolver for keyword lookups
and the audit log for the trail every operation leaves behind.

Public operations never raise domain errors. Each one returns an
:class:`OperationResult` whose ``outcome`` tells the caller whether it worked
and whose ``error`` names the failure category when it did not. Internal
helpers raise :class:`~record_ledger.errors.LedgerError` subclasses and the
public wrappers convert them.

Callers choose how ambiguous keywords are handled by passing one of the
disambiguation values (:class:`AutoFailOnAmbiguous`, :class:`SelectIndex`,
:class:`MergeInto`, :class:`CreateNew`, :class:`PreferExactName`). A failed
resolution returns the candidates in ``OperationResult.match`` so an
interactive caller can prompt and retry with :class:`SelectIndex`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from . import data_manager, log, resolver
from .audit_log import AuditLog
from .constants import ErrorKind, EventName, Outcome
from .data_manager import Record
from .errors import (
    AmbiguousMatchError,
    DuplicateNameError,
    EmptyStoreError,
    InsufficientAmountError,
    InvalidAmountError,
    InvalidNameError,
    InvalidSelectionError,
    LedgerError,
    RecordNotFoundError,
)
from .resolver import MatchResult, NoMatch, UniqueMatch
from .validator import require_positive_amount, validate_amount, validate_name


@dataclass(frozen=True)
class RuntimeContext:
    """Container for the resolved settings and the audit log writer."""

    settings: data_manager.ConfigSettings
    audit: AuditLog

    @property
    def data_file(self) -> Path:
        return self.settings.data_file


@dataclass(frozen=True)
class AutoFailOnAmbiguous:
    """Treat any ambiguous keyword as a failure."""


@dataclass(frozen=True)
class SelectIndex:
    """Pick the candidate at this 1-based position among the matches."""

    index: int


@dataclass(frozen=True)
class MergeInto:
    """Pick the candidate with exactly this name (merge target for adds)."""

    name: str


@dataclass(frozen=True)
class CreateNew:
    """When adding, create a distinct record instead of merging."""


@dataclass(frozen=True)
class PreferExactName:
    """Pick the candidate whose name equals the keyword, fail otherwise."""


Disambiguation = Union[AutoFailOnAmbiguous, SelectIndex, MergeInto, CreateNew, PreferExactName]

AUTO_FAIL = AutoFailOnAmbiguous()


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one engine operation as seen by the presentation layer.

    Attributes:
        event: Audit event the operation logged under.
        outcome: ``Success`` or ``Failure``.
        message: Human readable summary.
        error: Failure category, ``None`` on success.
        record: Record created, updated, removed or selected, when relevant.
        records: Records returned by listing operations.
        total: Sum returned by :func:`total_amount`.
        match: Resolver result for searches and unresolved ambiguities.
    """

    event: EventName
    outcome: Outcome
    message: str
    error: Optional[ErrorKind] = None
    record: Optional[Record] = None
    records: Tuple[Record, ...] = ()
    total: Optional[int] = None
    match: Optional[MatchResult] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and open the ledger they point to.

    Args:
        config_path (Path | None): Optional override path for ``config.ini``.
            When omitted the data layer searches upward from the working
            directory.

    Returns:
        RuntimeContext: Context with store and audit log ready for use.

    Raises:
        FileNotFoundError: If the configuration file cannot be located.
        KeyError: When mandatory configuration options are missing.
    """

    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    return open_ledger(settings)


def open_ledger(settings: data_manager.ConfigSettings) -> RuntimeContext:
    """Make sure the store and audit log exist and return a runtime context.

    Missing files are created empty and their creation is recorded as an
    ``Initialization`` audit entry.
    """

    created_store = data_manager.ensure_file(settings.data_file)
    created_log = data_manager.ensure_file(settings.log_file)
    audit = AuditLog(settings.log_file)
    if created_store:
        audit.success(EventName.INITIALIZATION, f"Created record file: {settings.data_file}")
    if created_log:
        audit.success(EventName.INITIALIZATION, f"Created log file: {settings.log_file}")
    log.info("Opened ledger '%s'", settings.data_file)
    return RuntimeContext(settings=settings, audit=audit)


def _coerce_amount(value: Union[str, int]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise InvalidAmountError(f"Invalid amount '{value}': enter a non-negative whole number")
        return value
    return validate_amount(value)


def _success(
    context: RuntimeContext,
    event: EventName,
    message: str,
    detail: str,
    **payload,
) -> OperationResult:
    context.audit.success(event, detail)
    return OperationResult(event=event, outcome=Outcome.SUCCESS, message=message, **payload)


def _failure(
    context: RuntimeContext,
    event: EventName,
    error: Exception,
    detail: Optional[str] = None,
    **payload,
) -> OperationResult:
    """Log ``error`` to both channels and wrap it in a failure result."""

    if isinstance(error, LedgerError):
        kind = error.kind
    else:
        kind = ErrorKind.IO_ERROR

    message = str(error)
    if isinstance(error, (InvalidNameError, InvalidAmountError)):
        context.audit.failure(EventName.VALIDATION, f"{event.value}: {message}")
    else:
        context.audit.failure(event, detail or message)

    if kind is ErrorKind.IO_ERROR or kind is ErrorKind.MALFORMED_RECORD:
        log.error("%s failed: %s", event.value, message)
    else:
        log.warning("%s rejected (%s): %s", event.value, kind.value, message)

    if isinstance(error, AmbiguousMatchError) and payload.get("match") is None:
        payload["match"] = error.match
    return OperationResult(
        event=event,
        outcome=Outcome.FAILURE,
        message=message,
        error=kind,
        **payload,
    )


def _describe_candidates(match: MatchResult) -> str:
    return ", ".join(candidate.record.name for candidate in match.candidates)


def select_target(match: MatchResult, disambiguation: Disambiguation = AUTO_FAIL) -> Record:
    """Reduce a resolver result to the single record an operation acts upon.

    A unique match is always used as-is. For an ambiguous match the
    ``disambiguation`` value decides: :class:`SelectIndex` picks by position,
    :class:`MergeInto` picks by exact name, :class:`PreferExactName` picks the
    candidate equal to the keyword, anything else fails.

    Raises:
        RecordNotFoundError: If nothing matched.
        AmbiguousMatchError: If the ambiguity was left unresolved.
        InvalidSelectionError: If the selection does not name a candidate.
    """

    if isinstance(match, NoMatch):
        raise RecordNotFoundError(f"No records found for '{match.keyword}'")
    if isinstance(match, UniqueMatch):
        return match.record

    if isinstance(disambiguation, SelectIndex):
        return resolver.resolve_ambiguous(match, disambiguation.index)
    if isinstance(disambiguation, MergeInto):
        chosen = resolver.exact_match(match, disambiguation.name)
        if chosen is None:
            raise InvalidSelectionError(
                f"'{disambiguation.name}' is not one of the records matching '{match.keyword}'"
            )
        return chosen
    if isinstance(disambiguation, PreferExactName):
        chosen = resolver.exact_match(match, match.keyword)
        if chosen is not None:
            return chosen
    if isinstance(disambiguation, CreateNew):
        raise InvalidSelectionError("Creating a new record is only possible when adding")
    raise AmbiguousMatchError(
        f"{len(match.candidates)} records match '{match.keyword}': {_describe_candidates(match)}",
        match,
    )


def search_records(context: RuntimeContext, keyword: str) -> OperationResult:
    """Find every record whose name contains ``keyword``.

    The keyword obeys the record name grammar. A search with no hits is a
    ``NotFound`` failure; one or more hits succeed and carry the resolver
    result in ``OperationResult.match``.
    """

    event = EventName.SEARCH_RECORD
    try:
        validate_name(keyword)
        match = resolver.find(context.data_file, keyword)
        if isinstance(match, NoMatch):
            raise RecordNotFoundError(f"No records found for '{keyword}'")
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc)

    if isinstance(match, UniqueMatch):
        return _success(
            context,
            event,
            f"Found '{match.record.line}'",
            f"One match found for '{keyword}'",
            record=match.record,
            records=(match.record,),
            match=match,
        )
    return _success(
        context,
        event,
        f"Found {len(match.candidates)} records matching '{keyword}'",
        f"{len(match.candidates)} matches found for '{keyword}'",
        records=tuple(candidate.record for candidate in match.candidates),
        match=match,
    )


def resolve_selection(context: RuntimeContext, match: MatchResult, choice: int) -> OperationResult:
    """Pick one record out of a previous search result by 1-based position."""

    event = EventName.SEARCH_RECORD
    try:
        record = resolver.resolve_ambiguous(match, choice)
    except LedgerError as exc:
        return _failure(
            context,
            event,
            exc,
            f"User made an invalid selection for '{match.keyword}'",
            match=match,
        )
    return _success(
        context,
        event,
        f"Selected '{record.line}'",
        f"User selected record {choice} for keyword '{match.keyword}'",
        record=record,
        match=match,
    )


def update_amount(
    context: RuntimeContext,
    name: str,
    new_amount: Union[str, int],
    *,
    skip_resolve: bool = False,
    disambiguation: Disambiguation = AUTO_FAIL,
) -> OperationResult:
    """Set the amount of one record to ``new_amount``.

    Args:
        context (RuntimeContext): Active ledger.
        name (str): Keyword to resolve or, with ``skip_resolve``, the exact
            record name.
        new_amount (str | int): Replacement amount, at least 1.
        skip_resolve (bool): Operate on ``name`` verbatim. Used after the
            caller has already resolved its target.
        disambiguation (Disambiguation): How to handle an ambiguous keyword.

    Returns:
        OperationResult: ``record`` holds the rewritten record on success.
    """

    event = EventName.UPDATE_RECORD_AMOUNT
    match: Optional[MatchResult] = None
    try:
        validate_name(name)
        amount = require_positive_amount(_coerce_amount(new_amount), purpose="record amount")
        if skip_resolve:
            target_name = name
        else:
            match = resolver.find(context.data_file, name)
            target_name = select_target(match, disambiguation).name
        updated = Record(name=target_name, amount=amount)
        previous = data_manager.replace_line(context.data_file, target_name, updated)
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc, match=match)

    log.info("Updated '%s' amount from %d to %d", target_name, previous.amount, amount)
    return _success(
        context,
        event,
        "Record amount updated successfully.",
        f"Updated amount for '{target_name}'",
        record=updated,
        match=match,
    )


def _merge(context: RuntimeContext, target: Record, amount: int) -> OperationResult:
    return update_amount(context, target.name, target.amount + amount, skip_resolve=True)


def add_record(
    context: RuntimeContext,
    name: str,
    amount: Union[str, int],
    disambiguation: Disambiguation = AUTO_FAIL,
) -> OperationResult:
    """Add ``amount`` under ``name``, merging into an existing record when asked.

    * No record name contains ``name``: a new record is appended.
    * :class:`SelectIndex` or :class:`MergeInto` merges into the chosen
      candidate, even when a record is named exactly ``name``.
    * Otherwise a record named exactly ``name`` has its amount grown by
      ``amount``.
    * Only other names contain ``name``: :class:`CreateNew` appends a distinct
      record. Without a decision the result is an ``AmbiguousUnresolved``
      failure that carries the candidates.
    """

    event = EventName.ADD_RECORD
    match: Optional[MatchResult] = None
    try:
        validate_name(name)
        value = require_positive_amount(_coerce_amount(amount), purpose="amount to add")
        match = resolver.find(context.data_file, name)

        target: Optional[Record] = None
        if not isinstance(match, NoMatch):
            if isinstance(disambiguation, SelectIndex):
                target = resolver.resolve_ambiguous(match, disambiguation.index)
            elif isinstance(disambiguation, MergeInto):
                target = resolver.exact_match(match, disambiguation.name)
                if target is None:
                    raise InvalidSelectionError(
                        f"'{disambiguation.name}' is not one of the records matching '{name}'"
                    )
            else:
                # Without an explicit target an exact name merges; creating it would duplicate the name.
                target = resolver.exact_match(match, name)
            if target is None and not isinstance(disambiguation, CreateNew):
                raise AmbiguousMatchError(
                    f"Found existing record(s) similar to '{name}': {_describe_candidates(match)}. "
                    "Choose whether to merge into one of them or create a new record.",
                    match,
                )

        if target is None:
            record = Record(name=name, amount=value)
            data_manager.append_record(context.data_file, record)
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc, match=match)

    if target is None:
        log.info("Added record '%s'", record.line)
        return _success(
            context,
            event,
            "Record added successfully.",
            f"New record added: '{name}' with amount '{value}'",
            record=record,
            match=match,
        )

    merged = _merge(context, target, value)
    if not merged.ok:
        return _failure(
            context,
            event,
            _MergeFailed(merged),
            f"Could not merge '{value}' into '{target.name}'",
            match=match,
        )
    return _success(
        context,
        event,
        f"Merged {value} into '{target.name}' (now {merged.record.amount}).",
        f"Merged amount '{value}' into '{target.name}'",
        record=merged.record,
        match=match,
    )


class _MergeFailed(LedgerError):
    """Carries a failed nested amount update back through :func:`_failure`."""

    def __init__(self, result: OperationResult) -> None:
        super().__init__(result.message)
        if result.error is not None:
            self.kind = result.error


def delete_record(
    context: RuntimeContext,
    name: str,
    amount_to_remove: Union[str, int],
    disambiguation: Disambiguation = AUTO_FAIL,
) -> OperationResult:
    """Remove ``amount_to_remove`` from the record matching ``name``.

    The record keeps the remainder when it is positive and disappears entirely
    when it reaches exactly zero. Removing more than the record holds fails
    with ``InsufficientAmount`` and leaves the store untouched.
    """

    event = EventName.DELETE_RECORD
    match: Optional[MatchResult] = None
    try:
        validate_name(name)
        value = _coerce_amount(amount_to_remove)
        match = resolver.find(context.data_file, name)
        if isinstance(match, NoMatch):
            raise RecordNotFoundError(f"Record not found: '{name}'")
        target = select_target(match, disambiguation)
        if value > target.amount:
            raise InsufficientAmountError(
                f"Amount to delete ({value}) exceeds the available amount of '{target.name}' ({target.amount})"
            )
        remaining = target.amount - value
        if remaining == 0:
            data_manager.delete_line(context.data_file, target.name)
    except InsufficientAmountError as exc:
        return _failure(context, event, exc, "Excess amount", match=match)
    except RecordNotFoundError as exc:
        return _failure(context, event, exc, "Record not found", match=match)
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc, match=match)

    if remaining == 0:
        log.info("Deleted record '%s'", target.line)
        return _success(
            context,
            event,
            "Record deleted successfully.",
            f"Record deleted: '{target.name}'",
            record=target,
            match=match,
        )

    updated = update_amount(context, target.name, remaining, skip_resolve=True)
    if not updated.ok:
        return _failure(context, event, _MergeFailed(updated), match=match)
    return _success(
        context,
        event,
        "Record updated successfully.",
        f"Record updated: '{target.name}' reduced by '{value}'",
        record=updated.record,
        match=match,
    )


def rename_record(
    context: RuntimeContext,
    current_name: str,
    new_name: str,
    disambiguation: Disambiguation = AUTO_FAIL,
) -> OperationResult:
    """Give the record matching ``current_name`` the name ``new_name``.

    The amount is left untouched. Renaming onto a name another record already
    uses fails with ``DuplicateName``; renaming a record to its own name is a
    no-op success.
    """

    event = EventName.UPDATE_RECORD_NAME
    match: Optional[MatchResult] = None
    try:
        validate_name(current_name)
        validate_name(new_name)
        records = data_manager.load_records(context.data_file)
        match = resolver.find_in(records, current_name)
        target = select_target(match, disambiguation)
        if new_name != target.name and data_manager.locate_record(records, new_name) is not None:
            raise DuplicateNameError(f"A record named '{new_name}' already exists")
        renamed = Record(name=new_name, amount=target.amount)
        if new_name != target.name:
            data_manager.replace_line(context.data_file, target.name, renamed)
    except RecordNotFoundError as exc:
        return _failure(
            context,
            event,
            exc,
            f"No matches found for '{current_name}'",
            match=match,
        )
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc, match=match)

    log.info("Renamed '%s' to '%s'", target.name, new_name)
    return _success(
        context,
        event,
        f"Record name updated successfully from '{target.name}' to '{new_name}'.",
        f"From '{target.name}' to '{new_name}'",
        record=renamed,
        match=match,
    )


def _require_records(context: RuntimeContext) -> List[Record]:
    records = data_manager.load_records(context.data_file)
    if not records:
        raise EmptyStoreError("The store is empty. No records to show.")
    return records


def total_amount(context: RuntimeContext) -> OperationResult:
    """Sum the amounts of all records; an empty store is a failure."""

    event = EventName.PRINT_TOTAL_AMOUNT
    try:
        records = _require_records(context)
    except EmptyStoreError as exc:
        return _failure(context, event, exc, "File is empty")
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc)

    total = sum(record.amount for record in records)
    log.debug("Calculated total %d over %d records", total, len(records))
    return _success(
        context,
        event,
        f"Total amount of records: {total}.",
        f"Displayed total amount: {total}",
        total=total,
        records=tuple(records),
    )


def sort_records(records: Sequence[Record]) -> List[Record]:
    """Order records by their persisted ``name,amount`` text."""

    return sorted(records, key=lambda record: record.line)


def list_sorted(context: RuntimeContext) -> OperationResult:
    """Return every record ordered by line text; an empty store is a failure."""

    event = EventName.PRINT_ALL_SORTED
    try:
        records = _require_records(context)
    except EmptyStoreError as exc:
        return _failure(context, event, exc, "File is empty")
    except (LedgerError, OSError) as exc:
        return _failure(context, event, exc)

    ordered = sort_records(records)
    return _success(
        context,
        event,
        "All records sorted:",
        "Displayed all records sorted",
        records=tuple(ordered),
    )


def close_session(context: RuntimeContext) -> OperationResult:
    """Record that an interactive session ended."""

    return _success(context, EventName.EXIT, "Goodbye!", "Script exited successfully")
