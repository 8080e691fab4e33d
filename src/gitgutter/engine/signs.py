"""Project hunks into gutter signs and change counts."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from gitgutter.git.models import ChangeType, Hunk, SignAnnotation, SignKind, SignSummary


def project(hunks: Iterable[Hunk]) -> SignSummary:
    """Expand hunks into per-line signs plus added/changed/removed totals."""
    added = changed = removed = 0
    signs: List[SignAnnotation] = []

    for hunk in hunks:
        add, remove = hunk.added.count, hunk.removed.count
        if hunk.change_type == ChangeType.ADD:
            added += add
        elif hunk.change_type == ChangeType.DELETE:
            removed += remove
        else:
            common = min(add, remove)
            changed += common
            added += add - common
            removed += remove - common

        for lnum in range(hunk.start, hunk.end + 1):
            if hunk.change_type == ChangeType.DELETE and lnum == 0:
                signs.append(SignAnnotation(1, SignKind.TOP_DELETE))
            elif hunk.change_type == ChangeType.CHANGE and remove > add and lnum == hunk.end:
                signs.append(SignAnnotation(lnum, SignKind.CHANGE_DELETE))
            else:
                signs.append(SignAnnotation(lnum, SignKind(hunk.change_type.value)))

        if hunk.change_type == ChangeType.CHANGE and add > remove:
            for lnum in range(hunk.end + 1, hunk.end + 1 + add - remove):
                signs.append(SignAnnotation(lnum, SignKind.ADD))

    return SignSummary(signs=tuple(signs), added=added, changed=changed, removed=removed)


def status_text(summary: SignSummary) -> str:
    """Short buffer status such as ``+3 ~1 -2``; empty when nothing changed."""
    items = []
    if summary.added:
        items.append(f"+{summary.added}")
    if summary.changed:
        items.append(f"~{summary.changed}")
    if summary.removed:
        items.append(f"-{summary.removed}")
    return " ".join(items)


def fold_ranges(signs: Iterable[SignAnnotation], line_count: int) -> List[Tuple[int, int]]:
    """Inclusive ranges of lines without a sign, i.e. what to fold away."""
    marked = {s.line for s in signs}
    ranges: List[Tuple[int, int]] = []
    start = None
    for lnum in range(1, line_count + 1):
        if lnum in marked:
            if start is not None:
                ranges.append((start, lnum - 1))
                start = None
        elif start is None:
            start = lnum
    if start is not None:
        ranges.append((start, line_count))
    return ranges
