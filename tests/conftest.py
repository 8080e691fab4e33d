"""Shared test fixtures: sample diffs, conflict buffers and temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import List

import pytest

from gitgutter.engine.errors import PatchApplyFailed


@pytest.fixture
def sample_diff() -> str:
    """A -U0 diff with one change, one addition and one deletion."""
    return textwrap.dedent("""\
        diff --git a/tmp/staged b/tmp/current
        index 3b18e51..a4c5d8e 100644
        --- a/tmp/staged
        +++ b/tmp/current
        @@ -2 +2 @@
        -two
        +TWO
        @@ -4,0 +5,2 @@
        +new a
        +new b
        @@ -7,2 +8,0 @@
        -gone 1
        -gone 2
    """)


@pytest.fixture
def single_change_diff() -> str:
    return "@@ -3,1 +3,1 @@\n-old\n+new\n"


@pytest.fixture
def staged_diff() -> str:
    """git diff --staged -U0 output touching two files."""
    return textwrap.dedent("""\
        diff --git a/a.txt b/a.txt
        index 1111111..2222222 100644
        --- a/a.txt
        +++ b/a.txt
        @@ -3 +3 @@
        -old
        +new
        @@ -10,0 +11,2 @@
        +x
        +y
        diff --git a/b.txt b/b.txt
        index 3333333..4444444 100644
        --- a/b.txt
        +++ b/b.txt
        @@ -1,2 +0,0 @@
        -gone
        -too
    """)


@pytest.fixture
def conflict_lines() -> List[str]:
    return [
        "local text",
        "<<<<<<< HEAD",
        "mine",
        "=======",
        "theirs",
        ">>>>>>> branch",
        "tail",
    ]


@pytest.fixture
def diff3_conflict_lines() -> List[str]:
    return [
        "<<<<<<< HEAD",
        "mine",
        "||||||| merged common ancestors",
        "base",
        "=======",
        "theirs",
        ">>>>>>> feature/x",
    ]


class RecordingSink:
    """PatchSink that records patches and can be told to reject them."""

    def __init__(self, fail: str = "") -> None:
        self.fail = fail
        self.patches: List[str] = []

    def apply(self, patch: str) -> None:
        if self.fail:
            raise PatchApplyFailed(self.fail)
        self.patches.append(patch)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail="error: patch failed: a.txt:3\nerror: a.txt: patch does not apply")


def git(repo: Path, *args: str, input: str | None = None) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, input=input, check=True,
    )
    return result.stdout


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "core.autocrlf", "false"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    subprocess.run(["git", "add", "."], cwd=tmp_path, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    return tmp_path


@pytest.fixture
def committed_file(tmp_git_repo: Path) -> Path:
    """A committed five-line file inside tmp_git_repo."""
    path = tmp_git_repo / "notes.txt"
    path.write_text("one\ntwo\nthree\nfour\nfive\n")
    git(tmp_git_repo, "add", "notes.txt")
    git(tmp_git_repo, "commit", "-m", "add notes")
    return path


@pytest.fixture
def run_git():
    """Helper running git in a repo and returning stdout."""
    return git
