"""JSON / YAML reporters for scripting and editor hosts."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import yaml

from gitgutter.engine.conflicts import highlight_regions
from gitgutter.engine.signs import status_text
from gitgutter.git.models import Conflict, Hunk, SignSummary


def hunk_to_dict(hunk: Hunk) -> Dict[str, Any]:
    return {
        "type": hunk.change_type.value,
        "start": hunk.start,
        "end": hunk.end,
        "removed": {"start": hunk.removed.start, "count": hunk.removed.count},
        "added": {"start": hunk.added.start, "count": hunk.added.count},
        "header": hunk.header,
        "lines": list(hunk.lines),
    }


def conflict_to_dict(conflict: Conflict) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "start": conflict.start,
        "sep": conflict.sep,
        "end": conflict.end,
        "current": conflict.current,
        "incoming": conflict.incoming,
        **({"common": conflict.common} if conflict.common is not None else {}),
    }
    data["regions"] = {
        name: list(span) if span else None
        for name, span in highlight_regions(conflict).items()
    }
    return data


def to_dict(
    relpath: str,
    hunks: List[Hunk],
    summary: SignSummary,
    conflicts: Optional[List[Conflict]] = None,
) -> Dict[str, Any]:
    """Convert one buffer's state to a serialisable dict."""
    return {
        "version": "1.0",
        "file": relpath,
        "status": status_text(summary),
        "added": summary.added,
        "changed": summary.changed,
        "removed": summary.removed,
        "hunks": [hunk_to_dict(h) for h in hunks],
        "signs": [{"line": s.line, "kind": s.kind.value} for s in summary.signs],
        "conflicts": [conflict_to_dict(c) for c in conflicts or []],
    }


def render(data: Dict[str, Any]) -> str:
    """Return formatted JSON string."""
    return json.dumps(data, indent=2)


def render_yaml(data: Dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
