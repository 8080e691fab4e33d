"""Merge-conflict marker parsing and resolution.

A four-state machine scans buffer lines top to bottom::

    INITIAL --<<<<<<<--> MATCHED_START --|||||||--> MATCHED_COMMON
                               |                        |
                               +------=======-----------+--> MATCHED_SEP
    MATCHED_SEP -->>>>>>>--> emit conflict, INITIAL

Malformed blocks are dropped without error: buffers routinely contain
example or half-typed markers.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from gitgutter.git.models import Conflict, ConflictPart

_REV = r"([0-9A-Za-z_.:/]+)"
_START_RE = re.compile(rf"^<{{7}} {_REV}(?: .+)?$")
_COMMON_RE = re.compile(r"^\|{7}(?: .*)?$")
_SEP_RE = re.compile(r"^={7}$")
_END_RE = re.compile(rf"^>{{7}} {_REV}(?: .+)?$")


class ConflictState(Enum):
    INITIAL = "initial"
    MATCHED_START = "matched_start"
    MATCHED_COMMON = "matched_common"
    MATCHED_SEP = "matched_sep"


class ConflictParser:
    """Feed lines one by one; completed conflicts collect in ``conflicts``."""

    def __init__(self) -> None:
        self.state = ConflictState.INITIAL
        self.conflicts: List[Conflict] = []
        self._start = 0
        self._common: Optional[int] = None
        self._sep = 0
        self._current = ""

    def _begin(self, lnum: int, current: str) -> None:
        self._start, self._common, self._sep, self._current = lnum, None, 0, current
        self.state = ConflictState.MATCHED_START

    def _abandon(self) -> None:
        self.state = ConflictState.INITIAL

    def feed(self, lnum: int, line: str) -> None:
        start = _START_RE.match(line)

        if self.state == ConflictState.INITIAL:
            if start:
                self._begin(lnum, start.group(1))
            return

        if start:
            self._begin(lnum, start.group(1))
            return

        if self.state in (ConflictState.MATCHED_START, ConflictState.MATCHED_COMMON):
            if _SEP_RE.match(line):
                self._sep = lnum
                self.state = ConflictState.MATCHED_SEP
            elif _COMMON_RE.match(line):
                self._common = lnum
                self.state = ConflictState.MATCHED_COMMON
            elif _END_RE.match(line):
                self._abandon()
            return

        # MATCHED_SEP
        end = _END_RE.match(line)
        if end:
            self.conflicts.append(Conflict(
                start=self._start,
                sep=self._sep,
                end=lnum,
                current=self._current,
                incoming=end.group(1),
                common=self._common,
            ))
            self._abandon()
        elif _SEP_RE.match(line):
            self._abandon()


def parse_conflicts(lines: Sequence[str]) -> List[Conflict]:
    """Return every well-formed conflict block in ``lines`` (1-based positions)."""
    parser = ConflictParser()
    for lnum, line in enumerate(lines, start=1):
        parser.feed(lnum, line)
    return parser.conflicts


def highlight_regions(conflict: Conflict) -> Dict[str, Optional[Tuple[int, int]]]:
    """Inclusive line spans of each side, markers excluded; None when empty."""

    def span(first: int, last: int) -> Optional[Tuple[int, int]]:
        return (first, last) if first <= last else None

    current_last = (conflict.common if conflict.common is not None else conflict.sep) - 1
    return {
        "current": span(conflict.start + 1, current_last),
        "base": span(conflict.common + 1, conflict.sep - 1) if conflict.common is not None else None,
        "incoming": span(conflict.sep + 1, conflict.end - 1),
    }


def resolve_conflict(lines: Sequence[str], conflict: Conflict, part: ConflictPart) -> List[str]:
    """Return ``lines`` with ``conflict`` replaced by the side(s) to keep."""
    regions = highlight_regions(conflict)
    kept: List[str] = []
    sides = ["current", "incoming"] if part == ConflictPart.BOTH else [part.value]
    for side in sides:
        region = regions[side]
        if region is not None:
            kept.extend(lines[region[0] - 1:region[1]])
    return [*lines[: conflict.start - 1], *kept, *lines[conflict.end:]]
