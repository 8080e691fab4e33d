"""Git interface layer — diff parsing and models.

The subprocess adapter is imported from ``gitgutter.git.adapter`` directly so
the engine can use the parsers without loading it.
"""

from gitgutter.git.diff_parser import (
    DiffParser,
    MalformedDiff,
    MalformedHeader,
    classify_line,
    parse_diff,
    parse_header,
    parse_staged_chunks,
)
from gitgutter.git.models import (
    ChangeType,
    Conflict,
    ConflictPart,
    Hunk,
    LineType,
    Range,
    SignAnnotation,
    SignKind,
    SignSummary,
    StageChunk,
)

__all__ = [
    "ChangeType",
    "Conflict",
    "ConflictPart",
    "DiffParser",
    "Hunk",
    "LineType",
    "MalformedDiff",
    "MalformedHeader",
    "Range",
    "SignAnnotation",
    "SignKind",
    "SignSummary",
    "StageChunk",
    "classify_line",
    "parse_diff",
    "parse_header",
    "parse_staged_chunks",
]
