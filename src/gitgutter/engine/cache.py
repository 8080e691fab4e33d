"""Last-result cache used to skip redundant sign updates."""

from __future__ import annotations

from typing import List, Sequence

from gitgutter.git.models import Hunk


class DiffCache:
    """Holds the last hunk list computed for one buffer."""

    def __init__(self) -> None:
        self._hunks: List[Hunk] = []

    @property
    def hunks(self) -> List[Hunk]:
        return self._hunks

    def update(self, hunks: Sequence[Hunk]) -> bool:
        """Replace the cached list. Returns True when it differs from the old one."""
        hunks = list(hunks)
        if hunks == self._hunks:
            return False
        self._hunks = hunks
        return True

    def clear(self) -> None:
        self._hunks = []
