"""Data models for hunks, signs, conflicts and staged chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class LineType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


class ChangeType(str, Enum):
    ADD = "add"
    CHANGE = "change"
    DELETE = "delete"


class SignKind(str, Enum):
    """Gutter sign kinds. TOP_DELETE and CHANGE_DELETE exist only as signs."""

    ADD = "add"
    CHANGE = "change"
    DELETE = "delete"
    TOP_DELETE = "topdelete"
    CHANGE_DELETE = "changedelete"


class ConflictPart(str, Enum):
    CURRENT = "current"
    INCOMING = "incoming"
    BOTH = "both"


@dataclass(frozen=True, slots=True)
class Range:
    """Start line and line count of one side of a hunk header."""

    start: int
    count: int


@dataclass(frozen=True)
class Hunk:
    """One contiguous change region of a zero-context diff.

    ``start``/``end`` are the inclusive lines the hunk occupies in the
    current buffer. For CHANGE hunks the span only covers the symmetric
    part; extra added lines sit directly below ``end``.
    """

    change_type: ChangeType
    removed: Range
    added: Range
    start: int
    end: int
    header: str
    lines: Tuple[str, ...] = ()

    @property
    def size_delta(self) -> int:
        return self.added.count - self.removed.count

    @property
    def effective_end(self) -> int:
        """Last buffer line belonging to the hunk, extra added lines included."""
        if self.change_type == ChangeType.CHANGE and self.size_delta > 0:
            return self.end + self.size_delta
        return self.end

    @property
    def removed_lines(self) -> List[str]:
        return [line[1:] for line in self.lines if line.startswith("-")]

    @property
    def added_lines(self) -> List[str]:
        return [line[1:] for line in self.lines if line.startswith("+")]


@dataclass(frozen=True, slots=True)
class SignAnnotation:
    line: int
    kind: SignKind


@dataclass(frozen=True)
class SignSummary:
    """Signs for one buffer plus aggregate line counts."""

    signs: Tuple[SignAnnotation, ...] = ()
    added: int = 0
    changed: int = 0
    removed: int = 0


@dataclass(frozen=True)
class Conflict:
    """A merge-conflict marker block. All positions are 1-based lines."""

    start: int
    sep: int
    end: int
    current: str
    incoming: str
    common: Optional[int] = None


@dataclass(frozen=True)
class StageChunk:
    """A hunk of the staged (index vs HEAD) diff."""

    remove: Range
    add: Range
    lines: Tuple[str, ...] = ()

    @classmethod
    def from_hunk(cls, hunk: Hunk) -> "StageChunk":
        return cls(remove=hunk.removed, add=hunk.added, lines=hunk.lines)

    def as_hunk(self) -> Hunk:
        """View the chunk as a Hunk in index coordinates."""
        from gitgutter.git.diff_parser import build_hunk, format_header

        return build_hunk(format_header(self.remove, self.add), self.remove, self.add, self.lines)


DiffChunks = Dict[str, List[StageChunk]]


@dataclass(frozen=True)
class BufferEdit:
    """Replace the 0-based, half-open line range [start, end) with ``lines``."""

    start: int
    end: int
    lines: Tuple[str, ...] = ()


@dataclass
class BlameInfo:
    """Blame for the inclusive line range [start, end] of the buffer."""

    sha: str
    start: int
    end: int
    author: Optional[str] = None
    author_time: Optional[int] = None
    summary: Optional[str] = None

    @property
    def committed(self) -> bool:
        return bool(self.sha.strip("0"))


@dataclass
class FoldState:
    """Folds applied to a buffer so they can be removed again."""

    enabled: bool = False
    ranges: List[Tuple[int, int]] = field(default_factory=list)
