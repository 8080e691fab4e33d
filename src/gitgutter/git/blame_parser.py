"""Parser for ``git blame --porcelain`` output."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, List, Optional

from gitgutter.git.models import BlameInfo

_GROUP_RE = re.compile(r"^([A-Za-z0-9]+)\s(\d+)\s(\d+)\s(\d+)")


def parse_blame(output: str, current_author: str = "") -> List[BlameInfo]:
    """Return one BlameInfo per porcelain group, in output order.

    Commit metadata is only printed the first time a sha appears, so later
    groups for the same sha copy it from the earlier one.
    """
    result: List[BlameInfo] = []
    seen: Dict[str, BlameInfo] = {}
    info: Optional[BlameInfo] = None

    for line in output.splitlines():
        if line.startswith("\t"):
            # File content, never metadata
            continue
        line = line.strip()
        m = _GROUP_RE.match(line)
        if m:
            sha = m.group(1)
            start = int(m.group(3))
            info = BlameInfo(sha=sha, start=start, end=start + int(m.group(4)) - 1)
            known = seen.get(sha)
            if known is not None and info.committed:
                info.author = known.author
                info.author_time = known.author_time
                info.summary = known.summary
            else:
                seen[sha] = info
            result.append(info)
            continue

        if info is None:
            continue
        if line.startswith("author "):
            author = line[len("author "):].strip()
            info.author = "You" if current_author and author == current_author else author
        elif line.startswith("author-time "):
            info.author_time = int(line[len("author-time "):].strip())
        elif line.startswith("summary "):
            info.summary = line[len("summary "):].strip()

    return result


def format_time(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


def blame_text(infos: Optional[List[BlameInfo]], line: int, *, show_summary: bool = True) -> str:
    """Inline blame text for a 1-based buffer line."""
    if infos is None:
        return ""
    if not infos:
        return "File not indexed"
    info = next((i for i in infos if i.start <= line <= i.end), None)
    if info is None or not info.committed or not info.author or info.author == "Not Committed Yet":
        return "Not committed yet"
    text = f"({info.author} {format_time(info.author_time)})"
    if show_summary and info.summary:
        text += f" {info.summary}"
    return text
