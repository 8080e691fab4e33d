"""Per-buffer engine state and the cursor-level operations built on it.

The session owns a ``buffer id -> BufferState`` mapping whose entries live
exactly as long as the buffer is attached. All diff and conflict state is
recomputed wholesale on refresh; nothing here spawns processes, the host
passes in diff text and a :class:`PatchSink`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Protocol, Sequence

from gitgutter.engine import conflicts as conflict_ops
from gitgutter.engine.cache import DiffCache
from gitgutter.engine.errors import ErrorKind, PatchApplyFailed, Result
from gitgutter.engine.locator import locate, locate_conflict, locate_staged
from gitgutter.engine.patch import apply_edit, chunk_undo, stage_patch, unstage_patch
from gitgutter.engine.signs import fold_ranges, project, status_text
from gitgutter.git.diff_parser import MalformedDiff, parse_diff, parse_staged_chunks
from gitgutter.git.models import Conflict, ConflictPart, FoldState, Hunk, SignSummary


class DiffSource(Protocol):
    def diff(self, relpath: str, content: str) -> Optional[str]:
        """Zero-context diff of the reference blob against ``content``; None if not tracked."""

    def staged_diff(self, relpath: str) -> str:
        """Zero-context diff of the index against HEAD."""


class PatchSink(Protocol):
    def apply(self, patch: str) -> None:
        """Apply ``patch`` to the index; raise PatchApplyFailed on rejection."""


@dataclass
class BufferState:
    relpath: str
    cache: DiffCache = field(default_factory=DiffCache)
    summary: SignSummary = field(default_factory=SignSummary)
    conflicts: List[Conflict] = field(default_factory=list)
    has_conflicts: bool = False
    fold: FoldState = field(default_factory=FoldState)
    started: int = 0  # last refresh token handed out
    applied: int = 0  # token of the refresh currently reflected in the state

    @property
    def hunks(self) -> List[Hunk]:
        return self.cache.hunks

    @property
    def status(self) -> str:
        return status_text(self.summary)


@dataclass
class RefreshResult:
    hunks: List[Hunk]
    summary: SignSummary
    conflicts: List[Conflict]
    signs_changed: bool = False
    stale: bool = False

    @property
    def status(self) -> str:
        return status_text(self.summary)


class Session:
    """All attached buffers of one host."""

    def __init__(self) -> None:
        self._buffers: Dict[Hashable, BufferState] = {}

    def __contains__(self, buffer_id: Hashable) -> bool:
        return buffer_id in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    # ── lifecycle ────────────────────────────────────────────────────────────

    def open(self, buffer_id: Hashable, relpath: str, *, has_conflicts: bool = False) -> BufferState:
        state = BufferState(relpath=relpath, has_conflicts=has_conflicts)
        self._buffers[buffer_id] = state
        return state

    def close(self, buffer_id: Hashable) -> None:
        """Drop every piece of state tied to the buffer."""
        self._buffers.pop(buffer_id, None)

    def get(self, buffer_id: Hashable) -> Optional[BufferState]:
        return self._buffers.get(buffer_id)

    def mark_conflicted(self, buffer_id: Hashable) -> None:
        state = self._buffers.get(buffer_id)
        if state is not None:
            state.has_conflicts = True

    # ── refresh ──────────────────────────────────────────────────────────────

    def begin_refresh(self, buffer_id: Hashable) -> int:
        """Hand out a token ordering refreshes by the time they started."""
        state = self._buffers[buffer_id]
        state.started += 1
        return state.started

    def refresh(
        self,
        buffer_id: Hashable,
        diff_text: Optional[str],
        lines: Optional[Sequence[str]] = None,
        token: Optional[int] = None,
    ) -> Result:
        """Recompute hunks, signs and conflicts for a buffer.

        ``diff_text`` of None or "" means no diff. A result whose ``token`` is
        older than the one already applied is discarded.
        """
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        if token is None:
            token = self.begin_refresh(buffer_id)
        if token < state.applied:
            return Result.success(RefreshResult(
                hunks=state.hunks, summary=state.summary,
                conflicts=state.conflicts, stale=True,
            ))

        try:
            hunks = parse_diff(diff_text)
        except MalformedDiff as exc:
            return Result.failure(ErrorKind.MALFORMED_DIFF, str(exc))

        state.applied = token
        signs_changed = state.cache.update(hunks)
        if signs_changed:
            state.summary = project(state.hunks)

        if lines is not None and state.has_conflicts:
            state.conflicts = conflict_ops.parse_conflicts(lines)
            if not state.conflicts:
                state.has_conflicts = False
        elif not state.has_conflicts:
            state.conflicts = []

        return Result.success(RefreshResult(
            hunks=state.hunks,
            summary=state.summary,
            conflicts=state.conflicts,
            signs_changed=signs_changed,
        ))

    def refresh_from(self, buffer_id: Hashable, content: str, source: DiffSource) -> Result:
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        token = self.begin_refresh(buffer_id)
        diff_text = source.diff(state.relpath, content)
        return self.refresh(buffer_id, diff_text, content.split("\n"), token=token)

    # ── chunks ───────────────────────────────────────────────────────────────

    def chunk_at(self, buffer_id: Hashable, line: int) -> Result:
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        hunk = locate(line, state.hunks)
        if hunk is None:
            return Result.failure(ErrorKind.NO_CHUNK_AT_CURSOR)
        return Result.success(hunk)

    def stage_chunk(self, buffer_id: Hashable, line: int, sink: PatchSink) -> Result:
        """Stage the hunk under ``line``. The value is the applied patch."""
        found = self.chunk_at(buffer_id, line)
        if not found.ok:
            return found
        patch = stage_patch(_unix(self._buffers[buffer_id].relpath), found.value)
        return _apply(sink, patch)

    def unstage_chunk(self, buffer_id: Hashable, line: int, staged_diff_text: str, sink: PatchSink) -> Result:
        """Remove the staged chunk under working-tree ``line`` from the index."""
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        relpath = _unix(state.relpath)
        try:
            chunks = parse_staged_chunks(staged_diff_text).get(relpath, [])
        except MalformedDiff as exc:
            return Result.failure(ErrorKind.MALFORMED_DIFF, str(exc))
        chunk = locate_staged(line, state.hunks, chunks)
        if chunk is None:
            return Result.failure(ErrorKind.NO_CHUNK_AT_CURSOR)
        return _apply(sink, unstage_patch(relpath, chunk))

    def undo_chunk(self, buffer_id: Hashable, line: int, lines: Sequence[str]) -> Result:
        """Buffer lines with the hunk under ``line`` reverted to the reference text."""
        found = self.chunk_at(buffer_id, line)
        if not found.ok:
            return found
        return Result.success(apply_edit(lines, chunk_undo(found.value)))

    # ── conflicts ────────────────────────────────────────────────────────────

    def conflict_at(self, buffer_id: Hashable, line: int) -> Result:
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        conflict = locate_conflict(line, state.conflicts)
        if conflict is None:
            return Result.failure(ErrorKind.NO_CONFLICT_AT_CURSOR)
        return Result.success(conflict)

    def resolve_conflict(
        self,
        buffer_id: Hashable,
        line: int,
        lines: Sequence[str],
        part: ConflictPart,
    ) -> Result:
        found = self.conflict_at(buffer_id, line)
        if not found.ok:
            return found
        return Result.success(conflict_ops.resolve_conflict(lines, found.value, part))

    # ── folding ──────────────────────────────────────────────────────────────

    def toggle_fold(self, buffer_id: Hashable, line_count: int) -> Result:
        """Fold unchanged lines, or unfold them again.

        The value is the fold state after toggling; its ``ranges`` are the
        folds to create, or on disable the folds to remove.
        """
        state = self._buffers.get(buffer_id)
        if state is None:
            return Result.failure(ErrorKind.UNKNOWN_BUFFER)
        if state.fold.enabled:
            state.fold = FoldState(enabled=False, ranges=state.fold.ranges)
            return Result.success(state.fold)
        if not state.summary.signs:
            return Result.failure(ErrorKind.NO_CHUNK_AT_CURSOR, "No changes")
        state.fold = FoldState(enabled=True, ranges=fold_ranges(state.summary.signs, line_count))
        return Result.success(state.fold)


def _unix(relpath: str) -> str:
    return relpath.replace("\\", "/")


def _apply(sink: PatchSink, patch: str) -> Result:
    try:
        sink.apply(patch)
    except PatchApplyFailed as exc:
        return Result.failure(ErrorKind.PATCH_APPLY_FAILED, exc.stderr or str(exc))
    return Result.success(patch)
