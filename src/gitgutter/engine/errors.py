"""Outcome values for cursor-level operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class PatchApplyFailed(Exception):
    """Raised by a patch sink when git rejects a synthesized patch."""

    def __init__(self, stderr: str) -> None:
        super().__init__(stderr or "git apply failed")
        self.stderr = stderr


class ErrorKind(str, Enum):
    MALFORMED_DIFF = "malformed_diff"
    NO_CHUNK_AT_CURSOR = "no_chunk_at_cursor"
    NO_CONFLICT_AT_CURSOR = "no_conflict_at_cursor"
    PATCH_APPLY_FAILED = "patch_apply_failed"
    UNKNOWN_BUFFER = "unknown_buffer"


_DEFAULT_MESSAGES = {
    ErrorKind.MALFORMED_DIFF: "Malformed diff",
    ErrorKind.NO_CHUNK_AT_CURSOR: "Not positioned in git chunk",
    ErrorKind.NO_CONFLICT_AT_CURSOR: "Not positioned on a conflict",
    ErrorKind.PATCH_APPLY_FAILED: "git apply failed",
    ErrorKind.UNKNOWN_BUFFER: "Buffer is not attached",
}


@dataclass(frozen=True)
class Result:
    """Either a value or an error kind with a user-facing message."""

    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str = "") -> "Result":
        return cls(error=error, message=message or _DEFAULT_MESSAGES[error])
