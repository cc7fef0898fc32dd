"""Data access layer for the record ledger.

This module provides low-level helpers that read from and write to the plain
text store where every line holds one ``name,amount`` record. Business rules
(uniqueness of names, amount policies) belong elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. File lifecycle: making sure the store and audit log exist.
3. Line operations: loading records and appending, replacing or deleting
   individual lines.
"""


from __future__ import annotations

import configparser
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from . import log
from .constants import AMOUNT_PATTERN, FIELD_SEPARATOR, LOG_FILE_SUFFIX, NAME_PATTERN
from .errors import MalformedRecordError, RecordNotFoundError


CONFIG_FILE_NAME = "config.ini"


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    log_file: Path


@dataclass(frozen=True)
class Record:
    """In-memory view of one line of the store."""

    name: str
    amount: int

    @property
    def line(self) -> str:
        return serialize_record(self)


def default_log_file(data_file: Path) -> Path:
    """Return the audit log path paired with ``data_file`` (``<store>_log``)."""

    return data_file.with_name(data_file.name + LOG_FILE_SUFFIX)


def settings_for_store(data_file: Path, log_file: Optional[Path] = None) -> ConfigSettings:
    """Build settings directly from a store path, bypassing ``config.ini``."""

    data_file = Path(data_file).expanduser().resolve()
    if log_file is None:
        log_file = default_log_file(data_file)
    return ConfigSettings(data_file=data_file, log_file=Path(log_file).expanduser().resolve())


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that tells the ledger where its store lives.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification. When no explicit path is given the function walks
    up from the current working directory toward the filesystem root looking
    for a file named ``CONFIG_FILE_NAME``. The first match wins.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search.

    Returns:
        Path: The path provided by the caller or the discovered configuration
            file.

    Raises:
        FileNotFoundError: If the search exhausts all parent directories without
            finding ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Args:
        config_path (Path): Path to the configuration file, relative or
            absolute. ``~`` is expanded.

    Returns:
        configparser.ConfigParser: Parser containing the raw configuration.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
    """

    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path)
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    ``[System] DataFile`` is required. ``[System] LogFile`` is optional and
    defaults to the store path with a ``_log`` suffix. Relative paths are
    anchored at ``base_path`` (or the working directory) and resolved.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory used to anchor relative paths.

    Returns:
        ConfigSettings: Immutable settings with absolute store and log paths.

    Raises:
        KeyError: If the ``System`` section or its ``DataFile`` option is
            missing.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc
    log_file_raw = parser.get("System", "LogFile", fallback=None)

    if base_path is None:
        base_path = Path.cwd()

    def _anchor(raw: str) -> Path:
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = base_path / path
        return path.resolve()

    data_file_path = _anchor(data_file_raw)
    log_file_path = _anchor(log_file_raw) if log_file_raw else default_log_file(data_file_path)
    return ConfigSettings(data_file=data_file_path, log_file=log_file_path)


def ensure_file(path: Path) -> bool:
    """Create ``path`` as an empty file if it is missing.

    Returns:
        bool: ``True`` when the file had to be created.
    """

    path = Path(path)
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()
    log.info("Created empty file '%s'", path)
    return True


def serialize_record(record: Record) -> str:
    """Convert a record into its persisted ``name,amount`` text (no newline)."""

    return f"{record.name}{FIELD_SEPARATOR}{record.amount}"


def deserialize_record(raw_line: str, *, line_number: Optional[int] = None) -> Record:
    """Parse one store line into a :class:`Record`.

    Args:
        raw_line (str): Line text, with or without its trailing newline.
        line_number (int | None): 1-based physical line number, used in error
            messages only.

    Returns:
        Record: Parsed record.

    Raises:
        MalformedRecordError: If the line does not hold exactly two fields, the
            name breaks the name grammar, or the amount is not digit-only.
    """

    text = raw_line.rstrip("\r\n")
    fields = text.split(FIELD_SEPARATOR)
    where = f" at line {line_number}" if line_number is not None else ""
    if len(fields) != 2:
        raise MalformedRecordError(
            f"Malformed record{where}: expected 'name,amount', got '{text}'",
            line_number,
        )
    name, amount_raw = fields
    if NAME_PATTERN.fullmatch(name) is None or AMOUNT_PATTERN.fullmatch(amount_raw) is None:
        raise MalformedRecordError(
            f"Malformed record{where}: '{text}'",
            line_number,
        )
    return Record(name=name, amount=int(amount_raw))


def iter_records(data_file: Path) -> Iterable[Record]:
    """Stream records from the store in file order.

    Blank lines are skipped; any other line that cannot be parsed aborts the
    iteration with :class:`MalformedRecordError`.

    Args:
        data_file (Path): Store location.

    Yields:
        Record: One record per non-blank line.
    """

    with open(data_file, "r", encoding="utf-8") as handle:
        for line_number, raw in enumerate(handle, start=1):
            if not raw.strip():
                continue
            yield deserialize_record(raw, line_number=line_number)


def load_records(data_file: Path) -> List[Record]:
    """Read the whole store into a list, preserving file order."""

    records = list(iter_records(data_file))
    log.debug("Loaded %d records from '%s'", len(records), data_file)
    return records


def is_empty(data_file: Path) -> bool:
    """Return ``True`` when the store holds no records."""

    return not any(True for _ in iter_records(data_file))


def append_record(data_file: Path, record: Record) -> None:
    """Append a record as a new line at the end of the store.

    A missing trailing newline on the last existing line is repaired first so
    the new record never gets glued onto it.

    Args:
        data_file (Path): Store location.
        record (Record): Record to persist.
    """

    data_file = Path(data_file)
    prefix = ""
    if data_file.exists() and data_file.stat().st_size > 0:
        with open(data_file, "rb") as handle:
            handle.seek(-1, os.SEEK_END)
            if handle.read(1) != b"\n":
                prefix = "\n"
    with open(data_file, "a", encoding="utf-8") as handle:
        handle.write(f"{prefix}{serialize_record(record)}\n")


def write_records(data_file: Path, records: Sequence[Record]) -> None:
    """Replace the store contents with ``records`` in a single atomic step.

    The lines are written to a temporary file in the store's directory which is
    then moved over the store, so readers see either the old or the new file.
    The store keeps its permission bits across the swap.

    Args:
        data_file (Path): Store location.
        records (Sequence[Record]): Full ordered record collection to persist.
    """

    data_file = Path(data_file)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{data_file.name}.", dir=data_file.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            for record in records:
                handle.write(serialize_record(record) + "\n")
        if data_file.exists():
            shutil.copymode(data_file, tmp_name)
        os.replace(tmp_name, data_file)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def locate_record(records: Sequence[Record], name: str) -> Optional[int]:
    """Return the 0-based index of the record whose name equals ``name``."""

    for index, record in enumerate(records):
        if record.name == name:
            return index
    return None


def replace_line(data_file: Path, old_name: str, replacement: Record) -> Record:
    """Overwrite the line whose name equals ``old_name`` with ``replacement``.

    Matching is on the full name, never on a prefix, so renaming ``Bob`` leaves
    ``Bobby`` untouched.

    Args:
        data_file (Path): Store location.
        old_name (str): Exact name of the line to overwrite.
        replacement (Record): Record written in its place.

    Returns:
        Record: The record that was replaced.

    Raises:
        RecordNotFoundError: If no line carries ``old_name``.
    """

    records = load_records(data_file)
    index = locate_record(records, old_name)
    if index is None:
        raise RecordNotFoundError(f"Record not found: {old_name}")
    previous = records[index]
    records[index] = replacement
    write_records(data_file, records)
    log.debug("Replaced '%s' with '%s'", serialize_record(previous), serialize_record(replacement))
    return previous


def delete_line(data_file: Path, name: str) -> Record:
    """Remove the line whose name equals ``name``.

    Returns:
        Record: The removed record.

    Raises:
        RecordNotFoundError: If no line carries ``name``.
    """

    records = load_records(data_file)
    index = locate_record(records, name)
    if index is None:
        raise RecordNotFoundError(f"Record not found: {name}")
    removed = records.pop(index)
    write_records(data_file, records)
    log.debug("Deleted line '%s'", serialize_record(removed))
    return removed
