"""Zero-context unified diff parser.

Turns the output of ``git diff -U0`` (reference blob against the current
buffer) into an ordered list of :class:`Hunk` objects, and the multi-file
``git diff --staged -U0`` output into :data:`DiffChunks`.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from gitgutter.git.models import ChangeType, DiffChunks, Hunk, LineType, Range, StageChunk

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
_HUNK_HEADER_RE = re.compile(r"^@@ -(\S+) \+(\S+) @@")
_FILE_HEADER_OLD = re.compile(r"^--- (?:a/|/dev/null|\S)")
_FILE_HEADER_NEW = re.compile(r"^\+\+\+ (?:b/|/dev/null|\S)")
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+")
_MODE_RE = re.compile(r"^(?:old|new|deleted file|new file) mode \d+$")
_SIMILARITY_RE = re.compile(r"^(?:similarity|dissimilarity) index \d+%$")


class MalformedDiff(Exception):
    """Raised when diff text contains data outside of any hunk."""


class MalformedHeader(MalformedDiff):
    """Raised when a ``@@ … @@`` line cannot be split into line ranges."""


def classify_line(line: str) -> LineType:
    """Tag a hunk body line by its leading character."""
    if line.startswith("+"):
        return LineType.ADDED
    if line.startswith("-"):
        return LineType.REMOVED
    return LineType.CONTEXT


def _parse_range(group: str, header: str) -> Range:
    parts = group.split(",")
    if len(parts) > 2:
        raise MalformedHeader(f"Too many fields in hunk range {group!r}: {header}")
    try:
        start = int(parts[0])
        count = int(parts[1]) if len(parts) == 2 else 1
    except ValueError as exc:
        raise MalformedHeader(f"Non-numeric hunk range {group!r}: {header}") from exc
    if start < 0 or count < 0:
        raise MalformedHeader(f"Negative hunk range {group!r}: {header}")
    return Range(start, count)


def parse_header(line: str) -> Tuple[Range, Range]:
    """Parse ``@@ -R[,Rc] +A[,Ac] @@`` into (removed, added). Omitted counts are 1."""
    m = _HUNK_HEADER_RE.match(line)
    if not m:
        raise MalformedHeader(f"Not a hunk header: {line}")
    return _parse_range(m.group(1), line), _parse_range(m.group(2), line)


def format_header(removed: Range, added: Range) -> str:
    return f"@@ -{removed.start},{removed.count} +{added.start},{added.count} @@"


def build_hunk(header: str, removed: Range, added: Range, lines=()) -> Hunk:
    """Classify a hunk and derive the buffer span it occupies."""
    if added.count == 0:
        change_type = ChangeType.DELETE
        start = end = added.start
    elif removed.count == 0:
        change_type = ChangeType.ADD
        start = added.start
        end = added.start + added.count - 1
    else:
        change_type = ChangeType.CHANGE
        start = added.start
        end = added.start + min(added.count, removed.count) - 1
    return Hunk(
        change_type=change_type,
        removed=removed,
        added=added,
        start=start,
        end=end,
        header=header,
        lines=tuple(lines),
    )


def _check_body(header: str, removed: Range, added: Range, lines: List[str]) -> None:
    """Body line counts must agree with the header ranges."""
    if removed.count == 0 and added.count == 0:
        raise MalformedDiff(f"Empty hunk: {header}")
    minus = sum(1 for line in lines if line.startswith("-"))
    plus = sum(1 for line in lines if line.startswith("+"))
    if (minus, plus) != (removed.count, added.count):
        raise MalformedDiff(
            f"Hunk body has -{minus} +{plus} lines, header says "
            f"-{removed.count} +{added.count}: {header}"
        )


def _is_file_header(line: str) -> bool:
    return bool(
        _DIFF_HEADER_RE.match(line)
        or _INDEX_RE.match(line)
        or _MODE_RE.match(line)
        or _SIMILARITY_RE.match(line)
        or _FILE_HEADER_OLD.match(line)
        or _FILE_HEADER_NEW.match(line)
    )


def _split_lines(text: str) -> List[str]:
    # Split on "\n" only: "\r" and other separators belong to line content
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class DiffParser:
    """Parse single-file ``-U0`` diff text into hunks.

    Usage::

        hunks = DiffParser(diff_text).parse()

    File headers before the first ``@@`` are skipped. Any other line seen
    before a hunk is open, or a body whose ``-``/``+`` line counts disagree
    with its header, raises :class:`MalformedDiff`; no partial result is
    ever returned.
    """

    def __init__(self, diff_text: str) -> None:
        self._lines = _split_lines(diff_text)

    def parse(self) -> List[Hunk]:
        pending: List[Tuple[str, Range, Range, List[str]]] = []
        body: Optional[List[str]] = None

        for idx, raw_line in enumerate(self._lines, start=1):
            if raw_line.startswith("@@"):
                removed, added = parse_header(raw_line)
                body = []
                pending.append((raw_line, removed, added, body))
                continue

            if body is None:
                if _is_file_header(raw_line):
                    continue
                raise MalformedDiff(f"Line {idx} appears before any hunk header: {raw_line!r}")

            body.append(raw_line)

        for header, removed, added, lines in pending:
            _check_body(header, removed, added, lines)
        return [build_hunk(header, removed, added, lines) for header, removed, added, lines in pending]


def parse_diff(diff_text: Optional[str]) -> List[Hunk]:
    """Parse diff text; ``None`` or empty text means no changes."""
    if not diff_text:
        return []
    return DiffParser(diff_text).parse()


def parse_staged_chunks(diff_text: str) -> DiffChunks:
    """Parse multi-file ``git diff --staged -U0`` output into chunks per path."""
    chunks: DiffChunks = {}
    path: Optional[str] = None
    current: Optional[Tuple[str, Range, Range, List[str]]] = None

    def flush() -> None:
        if path is not None and current is not None:
            header, remove, add, lines = current
            _check_body(header, remove, add, lines)
            chunks.setdefault(path, []).append(StageChunk(remove=remove, add=add, lines=tuple(lines)))

    for raw_line in _split_lines(diff_text):
        m = _DIFF_HEADER_RE.match(raw_line)
        if m:
            flush()
            current = None
            path = m.group(1)
            continue

        if path is None:
            continue

        if raw_line.startswith("@@"):
            flush()
            remove, add = parse_header(raw_line)
            current = (raw_line, remove, add, [])
            continue

        if current is None:
            # Sub-headers between "diff --git" and the first hunk
            continue

        if raw_line.startswith(("+", "-", "\\")):
            current[3].append(raw_line)

    flush()
    return chunks
