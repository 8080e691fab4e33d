"""Find the hunk or conflict under a line, and the next/previous one."""

from __future__ import annotations

from typing import Optional, Sequence

from gitgutter.git.models import Conflict, Hunk, StageChunk


def locate(line: int, hunks: Sequence[Hunk]) -> Optional[Hunk]:
    """Return the hunk containing 1-based ``line``, or None.

    A deletion above the first line (``start == end == 0``) is reported for
    line 1. Change hunks that grew also own the extra lines below ``end``.
    """
    for hunk in hunks:
        if line == 1 and hunk.start == 0 and hunk.end == 0:
            return hunk
        if hunk.start <= line <= hunk.effective_end:
            return hunk
    return None


def locate_conflict(line: int, conflicts: Sequence[Conflict]) -> Optional[Conflict]:
    for conflict in conflicts:
        if conflict.start <= line <= conflict.end:
            return conflict
    return None


def staged_line(line: int, hunks: Sequence[Hunk]) -> int:
    """Map a working-tree line to index coordinates.

    Every unstaged hunk that ends above ``line`` shifted it by its size delta.
    """
    shift = 0
    for hunk in hunks:
        if hunk.end >= line:
            break
        shift += hunk.size_delta
    return line - shift


def locate_staged(
    line: int,
    hunks: Sequence[Hunk],
    chunks: Sequence[StageChunk],
) -> Optional[StageChunk]:
    """Return the staged chunk under working-tree ``line``, or None."""
    target = staged_line(line, hunks)
    views = [chunk.as_hunk() for chunk in chunks]
    found = locate(target, views)
    for chunk, view in zip(chunks, views):
        if view is found:
            return chunk
    return None


def next_chunk(line: int, hunks: Sequence[Hunk], wrapscan: bool = True) -> Optional[int]:
    """First line of the next hunk below ``line``."""
    for hunk in hunks:
        if hunk.start > line:
            return max(hunk.start, 1)
    if wrapscan and hunks:
        return max(hunks[0].start, 1)
    return None


def prev_chunk(line: int, hunks: Sequence[Hunk], wrapscan: bool = True) -> Optional[int]:
    """First line of the nearest hunk that ends above ``line``."""
    for hunk in reversed(hunks):
        if hunk.end < line:
            return max(hunk.start, 1)
    if wrapscan and hunks:
        return max(hunks[-1].start, 1)
    return None


def next_conflict(line: int, conflicts: Sequence[Conflict], wrapscan: bool = True) -> Optional[int]:
    for conflict in conflicts:
        if conflict.start > line:
            return conflict.start
    if wrapscan and conflicts:
        return conflicts[0].start
    return None


def prev_conflict(line: int, conflicts: Sequence[Conflict], wrapscan: bool = True) -> Optional[int]:
    for conflict in reversed(conflicts):
        if conflict.end < line:
            return conflict.start
    if wrapscan and conflicts:
        return conflicts[-1].start
    return None
