"""Tests for per-buffer session state and cursor-level operations."""

import subprocess
import sys
from typing import Optional

import pytest

from gitgutter.engine.errors import ErrorKind, Result
from gitgutter.engine.patch import stage_patch, unstage_patch
from gitgutter.engine.session import Session
from gitgutter.engine.signs import fold_ranges
from gitgutter.git.diff_parser import parse_diff, parse_staged_chunks
from gitgutter.git.models import ConflictPart, SignKind


class FakeSource:
    def __init__(self, diff: Optional[str]) -> None:
        self._diff = diff
        self.requests = []

    def diff(self, relpath: str, content: str) -> Optional[str]:
        self.requests.append((relpath, content))
        return self._diff

    def staged_diff(self, relpath: str) -> str:
        return ""


@pytest.fixture
def session() -> Session:
    s = Session()
    s.open(1, "a.txt")
    return s


class TestRefresh:
    def test_signs_from_diff(self, session, sample_diff):
        result = session.refresh(1, sample_diff)
        assert result.ok
        assert result.value.signs_changed
        assert [s.kind for s in result.value.summary.signs] == [
            SignKind.CHANGE, SignKind.ADD, SignKind.ADD, SignKind.DELETE,
        ]
        assert session.get(1).status == "+2 ~1 -2"

    def test_identical_diff_skips_sign_update(self, session, sample_diff):
        session.refresh(1, sample_diff)
        again = session.refresh(1, sample_diff)
        assert again.ok
        assert not again.value.signs_changed

    def test_empty_diff_clears_state(self, session, sample_diff):
        session.refresh(1, sample_diff)
        result = session.refresh(1, None)
        assert result.value.hunks == []
        assert result.value.signs_changed
        assert session.get(1).status == ""

    def test_stale_result_discarded(self, session, sample_diff, single_change_diff):
        older = session.begin_refresh(1)
        newer = session.begin_refresh(1)
        session.refresh(1, sample_diff, token=newer)
        result = session.refresh(1, single_change_diff, token=older)
        assert result.ok
        assert result.value.stale
        assert session.get(1).hunks == parse_diff(sample_diff)

    def test_malformed_diff_leaves_state(self, session, single_change_diff):
        session.refresh(1, single_change_diff)
        result = session.refresh(1, "+stray\n@@ -1 +1 @@\n-a\n+b\n")
        assert result.error == ErrorKind.MALFORMED_DIFF
        assert session.get(1).hunks == parse_diff(single_change_diff)

    def test_header_without_body_is_malformed(self, session, sink):
        result = session.refresh(1, "@@ -3 +3 @@\n")
        assert result.error == ErrorKind.MALFORMED_DIFF
        assert session.stage_chunk(1, 3, sink).error == ErrorKind.NO_CHUNK_AT_CURSOR
        assert sink.patches == []

    def test_unknown_buffer(self, session):
        assert session.refresh(99, "").error == ErrorKind.UNKNOWN_BUFFER
        assert session.chunk_at(99, 1).error == ErrorKind.UNKNOWN_BUFFER

    def test_refresh_from_source(self, session, single_change_diff):
        source = FakeSource(single_change_diff)
        result = session.refresh_from(1, "a\nb\nnew\n", source)
        assert result.ok
        assert source.requests == [("a.txt", "a\nb\nnew\n")]
        assert len(result.value.hunks) == 1

    def test_untracked_file_has_no_signs(self, session):
        result = session.refresh_from(1, "anything\n", FakeSource(None))
        assert result.ok
        assert result.value.hunks == []


class TestLifecycle:
    def test_close_drops_state(self, session, sample_diff):
        session.refresh(1, sample_diff)
        assert 1 in session
        session.close(1)
        assert 1 not in session
        assert len(session) == 0
        assert session.chunk_at(1, 2).error == ErrorKind.UNKNOWN_BUFFER

    def test_close_unknown_is_noop(self, session):
        session.close(42)
        assert len(session) == 1

    def test_buffers_are_independent(self, session, sample_diff):
        session.open(2, "b.txt")
        session.refresh(1, sample_diff)
        assert session.get(2).hunks == []


class TestConflictTracking:
    def test_conflicts_found_when_flagged(self, conflict_lines):
        session = Session()
        session.open("x", "x.txt", has_conflicts=True)
        result = session.refresh("x", "", conflict_lines)
        assert [c.start for c in result.value.conflicts] == [2]

    def test_flag_clears_once_resolved(self, conflict_lines):
        session = Session()
        session.open("x", "x.txt", has_conflicts=True)
        session.refresh("x", "", ["clean"])
        assert not session.get("x").has_conflicts
        # Markers reintroduced later are ignored until the host re-arms the flag
        assert session.refresh("x", "", conflict_lines).value.conflicts == []
        session.mark_conflicted("x")
        assert len(session.refresh("x", "", conflict_lines).value.conflicts) == 1

    def test_unflagged_buffer_never_scanned(self, session, conflict_lines):
        assert session.refresh(1, "", conflict_lines).value.conflicts == []

    def test_resolve(self, conflict_lines):
        session = Session()
        session.open("x", "x.txt", has_conflicts=True)
        session.refresh("x", "", conflict_lines)
        result = session.resolve_conflict("x", 3, conflict_lines, ConflictPart.INCOMING)
        assert result.value == ["local text", "theirs", "tail"]

    def test_resolve_outside_conflict(self, conflict_lines):
        session = Session()
        session.open("x", "x.txt", has_conflicts=True)
        session.refresh("x", "", conflict_lines)
        result = session.resolve_conflict("x", 7, conflict_lines, ConflictPart.CURRENT)
        assert result.error == ErrorKind.NO_CONFLICT_AT_CURSOR
        assert result.message == "Not positioned on a conflict"


class TestStaging:
    def test_stage_chunk(self, session, single_change_diff, sink):
        session.refresh(1, single_change_diff)
        result = session.stage_chunk(1, 3, sink)
        assert result.ok
        assert sink.patches == [stage_patch("a.txt", parse_diff(single_change_diff)[0])]
        assert result.value == sink.patches[0]

    def test_stage_outside_chunk(self, session, single_change_diff, sink):
        session.refresh(1, single_change_diff)
        result = session.stage_chunk(1, 1, sink)
        assert result == Result.failure(ErrorKind.NO_CHUNK_AT_CURSOR)
        assert result.message == "Not positioned in git chunk"
        assert sink.patches == []

    def test_stage_rejected(self, session, single_change_diff, failing_sink):
        session.refresh(1, single_change_diff)
        result = session.stage_chunk(1, 3, failing_sink)
        assert result.error == ErrorKind.PATCH_APPLY_FAILED
        assert "patch does not apply" in result.message

    def test_stage_windows_path(self, single_change_diff, sink):
        session = Session()
        session.open(1, "src\\a.txt")
        session.refresh(1, single_change_diff)
        session.stage_chunk(1, 3, sink)
        assert sink.patches[0].startswith("diff --git a/src/a.txt b/src/a.txt\n")

    def test_unstage_chunk(self, session, staged_diff, sink):
        session.refresh(1, "")
        result = session.unstage_chunk(1, 11, staged_diff, sink)
        assert result.ok
        expected = parse_staged_chunks(staged_diff)["a.txt"][1]
        assert sink.patches == [unstage_patch("a.txt", expected)]

    def test_unstage_nothing_staged_here(self, session, staged_diff, sink):
        session.refresh(1, "")
        assert session.unstage_chunk(1, 6, staged_diff, sink).error == ErrorKind.NO_CHUNK_AT_CURSOR
        assert sink.patches == []

    def test_unstage_other_file_only(self, staged_diff, sink):
        session = Session()
        session.open(1, "c.txt")
        session.refresh(1, "")
        assert session.unstage_chunk(1, 3, staged_diff, sink).error == ErrorKind.NO_CHUNK_AT_CURSOR

    def test_unstage_malformed(self, session, sink):
        bad = "diff --git a/a.txt b/a.txt\n@@ -x +1 @@\n+a\n"
        assert session.unstage_chunk(1, 1, bad, sink).error == ErrorKind.MALFORMED_DIFF

    def test_unstage_chunk_without_body(self, session, sink):
        bad = "diff --git a/a.txt b/a.txt\n@@ -3 +3 @@\n"
        assert session.unstage_chunk(1, 3, bad, sink).error == ErrorKind.MALFORMED_DIFF
        assert sink.patches == []


class TestUndo:
    def test_undo_change(self, session, single_change_diff):
        session.refresh(1, single_change_diff)
        result = session.undo_chunk(1, 3, ["1", "2", "new", "4"])
        assert result.value == ["1", "2", "old", "4"]

    def test_undo_outside_chunk(self, session, single_change_diff):
        session.refresh(1, single_change_diff)
        assert session.undo_chunk(1, 4, ["1", "2", "new", "4"]).error == ErrorKind.NO_CHUNK_AT_CURSOR


class TestFolding:
    def test_toggle(self, session, sample_diff):
        session.refresh(1, sample_diff)
        folded = session.toggle_fold(1, 10)
        assert folded.value.enabled
        assert folded.value.ranges == fold_ranges(session.get(1).summary.signs, 10)
        assert folded.value.ranges == [(1, 1), (3, 4), (7, 7), (9, 10)]
        unfolded = session.toggle_fold(1, 10)
        assert not unfolded.value.enabled
        assert unfolded.value.ranges == folded.value.ranges

    def test_nothing_to_fold(self, session):
        session.refresh(1, "")
        result = session.toggle_fold(1, 10)
        assert result.error == ErrorKind.NO_CHUNK_AT_CURSOR
        assert result.message == "No changes"


class TestEngineImports:
    def test_engine_does_not_load_git_adapter(self):
        code = "import sys, gitgutter.engine; print('gitgutter.git.adapter' in sys.modules)"
        out = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, check=True)
        assert out.stdout.strip() == "False"

    def test_sink_errors_come_from_engine(self):
        from gitgutter.engine import PatchApplyFailed
        from gitgutter.git import adapter

        assert adapter.PatchApplyFailed is PatchApplyFailed
