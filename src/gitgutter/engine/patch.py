"""Single-hunk patch synthesis for staging, unstaging and in-buffer revert.

Patches carry zero context lines, so they must be applied with
``git apply --cached --unidiff-zero -``. Without context git places a hunk
by its header alone, so both sides of every header are written in index
coordinates.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from gitgutter.git.diff_parser import format_header
from gitgutter.git.models import BufferEdit, ChangeType, Hunk, Range, StageChunk


def _envelope(relpath: str, header: str, body: Iterable[str]) -> str:
    lines = [
        f"diff --git a/{relpath} b/{relpath}",
        "index 000000..000000 100644",
        f"--- a/{relpath}",
        f"+++ b/{relpath}",
        header,
    ]
    lines.extend(body)
    lines.append("")
    return "\n".join(lines)


def _flip(line: str) -> str:
    if line.startswith("+"):
        return "-" + line[1:]
    if line.startswith("-"):
        return "+" + line[1:]
    return line


def index_header(preimage: Range, new_count: int) -> str:
    """Header for a hunk applied to the index.

    ``preimage`` is the index range being replaced. An empty preimage means
    "insert after line ``start``", which git reads from the line below it.
    """
    start = preimage.start + 1 if preimage.count == 0 else preimage.start
    return format_header(Range(start, preimage.count), Range(start, new_count))


def stage_patch(relpath: str, hunk: Hunk) -> str:
    """Patch that adds ``hunk`` to the index.

    The removed side of a buffer diff is already in index coordinates; the
    added side is not once other unstaged hunks above it change the line
    count, so the header is rebuilt from the removed side.
    """
    if not hunk.lines:
        raise ValueError(f"Refusing to build an empty patch for {relpath}")
    return _envelope(relpath, index_header(hunk.removed, hunk.added.count), hunk.lines)


def unstage_patch(relpath: str, chunk: StageChunk) -> str:
    """Patch that removes a staged ``chunk`` from the index again."""
    if not chunk.lines:
        raise ValueError(f"Refusing to build an empty patch for {relpath}")
    # The staged side of the chunk is what the index holds now
    header = index_header(chunk.add, chunk.remove.count)
    return _envelope(relpath, header, (_flip(line) for line in chunk.lines))


def chunk_undo(hunk: Hunk) -> BufferEdit:
    """Buffer edit that restores the reference text of ``hunk``."""
    restored = tuple(hunk.removed_lines)
    if hunk.change_type == ChangeType.DELETE:
        # Deleted text goes back below line ``start`` (0 means top of file)
        return BufferEdit(start=hunk.start, end=hunk.start, lines=restored)
    start = hunk.start - 1
    return BufferEdit(start=start, end=start + len(hunk.added_lines), lines=restored)


def apply_edit(lines: Sequence[str], edit: BufferEdit) -> List[str]:
    return [*lines[: edit.start], *edit.lines, *lines[edit.end:]]
