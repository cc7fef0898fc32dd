"""Keyword resolution for record names.

A keyword is matched as a case-sensitive substring of each record's name, in
store order. The outcome is one of three values:

* :class:`NoMatch` when nothing matched,
* :class:`UniqueMatch` when exactly one record matched,
* :class:`AmbiguousMatch` when two or more matched.

Finding and resolving are separate steps so an interactive caller can show the
numbered candidates and ask the user before calling :func:`resolve_ambiguous`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from . import data_manager, log
from .data_manager import Record
from .errors import InvalidSelectionError


@dataclass(frozen=True)
class Candidate:
    """A matching record paired with its 1-based position among the matches."""

    record: Record
    position: int


@dataclass(frozen=True)
class NoMatch:
    keyword: str

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return ()


@dataclass(frozen=True)
class UniqueMatch:
    keyword: str
    candidate: Candidate

    @property
    def record(self) -> Record:
        return self.candidate.record

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return (self.candidate,)


@dataclass(frozen=True)
class AmbiguousMatch:
    keyword: str
    candidates: Tuple[Candidate, ...]


MatchResult = Union[NoMatch, UniqueMatch, AmbiguousMatch]


def find_in(records: Iterable[Record], keyword: str) -> MatchResult:
    """Match ``keyword`` against an already loaded record sequence.

    Args:
        records (Iterable[Record]): Records in store order.
        keyword (str): Substring to look for inside each name.

    Returns:
        MatchResult: Tagged result; positions count matches, not file lines.
    """

    candidates = tuple(
        Candidate(record=record, position=position)
        for position, record in enumerate(
            (record for record in records if keyword in record.name), start=1
        )
    )
    log.debug("Keyword '%s' matched %d record(s)", keyword, len(candidates))
    if not candidates:
        return NoMatch(keyword)
    if len(candidates) == 1:
        return UniqueMatch(keyword, candidates[0])
    return AmbiguousMatch(keyword, candidates)


def find(data_file: Path, keyword: str) -> MatchResult:
    """Scan the store at ``data_file`` for names containing ``keyword``."""

    return find_in(data_manager.load_records(data_file), keyword)


def resolve_ambiguous(match: MatchResult, choice: int) -> Record:
    """Pick the candidate at 1-based ``choice`` from ``match``.

    A :class:`UniqueMatch` accepts only ``1``; a :class:`NoMatch` accepts
    nothing.

    Raises:
        InvalidSelectionError: If ``choice`` is outside ``[1, len(candidates)]``.
    """

    candidates = match.candidates
    if isinstance(choice, bool) or not isinstance(choice, int) or not 1 <= choice <= len(candidates):
        raise InvalidSelectionError(
            f"Invalid selection {choice!r}: choose a number between 1 and {len(candidates)}"
        )
    return candidates[choice - 1].record


def exact_match(match: MatchResult, name: str) -> Optional[Record]:
    """Return the candidate whose full name equals ``name``, if any."""

    for candidate in match.candidates:
        if candidate.record.name == name:
            return candidate.record
    return None


__all__ = [
    "Candidate",
    "NoMatch",
    "UniqueMatch",
    "AmbiguousMatch",
    "MatchResult",
    "find",
    "find_in",
    "resolve_ambiguous",
    "exact_match",
]
