"""Append-only audit trail for ledger operations.

Every mutating or searching operation ends with exactly one line in the audit
log, formatted as::

    DD/MM/YYYY HH:MM:SS - <event name> <outcome> [<detail>]

The file is never read back by the ledger and has no retention policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from . import log
from .constants import AUDIT_TIMESTAMP_FORMAT, EventName, Outcome


@dataclass(frozen=True)
class LogEntry:
    """One audit line before it is rendered to text."""

    timestamp: datetime
    event: Union[EventName, str]
    outcome: Outcome
    detail: Optional[str] = None


def format_entry(entry: LogEntry) -> str:
    """Render ``entry`` as a single audit line without the trailing newline."""

    event = entry.event.value if isinstance(entry.event, EventName) else str(entry.event)
    parts = [entry.timestamp.strftime(AUDIT_TIMESTAMP_FORMAT), "-", event, entry.outcome.value]
    if entry.detail:
        parts.append(entry.detail)
    return " ".join(parts)


class AuditLog:
    """Writer bound to one audit log file.

    Parameters
    ----------
    path : Path
        Location of the audit log. Parent directories must exist.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def write(
        self,
        event: Union[EventName, str],
        outcome: Outcome,
        detail: Optional[str] = None,
    ) -> LogEntry:
        """Append one entry stamped with the current local time and return it."""

        entry = LogEntry(timestamp=datetime.now(), event=event, outcome=outcome, detail=detail)
        line = format_entry(entry)
        try:
            with open(self.path, "a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError as exc:
            # The operation itself already ran; losing its audit line is reported, not fatal.
            log.error("Unable to write audit entry to '%s': %s", self.path, exc)
        return entry

    def success(self, event: Union[EventName, str], detail: Optional[str] = None) -> LogEntry:
        return self.write(event, Outcome.SUCCESS, detail)

    def failure(self, event: Union[EventName, str], detail: Optional[str] = None) -> LogEntry:
        return self.write(event, Outcome.FAILURE, detail)
