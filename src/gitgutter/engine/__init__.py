"""Diff/patch engine — signs, chunk lookup, patch synthesis, conflicts."""

from gitgutter.engine.cache import DiffCache
from gitgutter.engine.conflicts import ConflictParser, parse_conflicts, resolve_conflict
from gitgutter.engine.errors import ErrorKind, PatchApplyFailed, Result
from gitgutter.engine.locator import locate, locate_conflict, locate_staged, staged_line
from gitgutter.engine.patch import chunk_undo, stage_patch, unstage_patch
from gitgutter.engine.session import BufferState, RefreshResult, Session
from gitgutter.engine.signs import project, status_text

__all__ = [
    "BufferState",
    "ConflictParser",
    "DiffCache",
    "ErrorKind",
    "PatchApplyFailed",
    "RefreshResult",
    "Result",
    "Session",
    "chunk_undo",
    "locate",
    "locate_conflict",
    "locate_staged",
    "parse_conflicts",
    "project",
    "resolve_conflict",
    "stage_patch",
    "staged_line",
    "status_text",
    "unstage_patch",
]
