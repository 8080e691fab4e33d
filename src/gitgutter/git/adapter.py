"""Git subprocess wrapper — reference blobs, buffer diffs, staging, blame."""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from gitgutter.engine.errors import PatchApplyFailed


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(
    args: list[str],
    cwd: Path,
    timeout: int = 30,
    input: Optional[str] = None,
    check: bool = False,
) -> str:
    """Run a git command and return stdout. Raises GitError on failure.

    With ``check`` any non-zero exit is an error; otherwise only output
    mentioning ``fatal`` is (``git diff`` exits 1 when files differ).
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            input=input.encode("utf-8") if input is not None else None,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    # Bytes mode: no newline translation either way
    stdout = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        if check:
            raise GitError(stderr or f"git {' '.join(args)} exited with {result.returncode}")
        if not stderr or "fatal" not in stderr.lower():
            return stdout
        raise GitError(f"git error: {stderr}")
    return stdout


def to_unix_slash(relpath: str) -> str:
    return relpath.replace(os.sep, "/")


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def is_indexed(repo_root: Path, relpath: str) -> bool:
    out = _run_git(["ls-files", "--", to_unix_slash(relpath)], cwd=repo_root)
    return bool(out.strip())


def is_ignored(repo_root: Path, relpath: str) -> bool:
    out = _run_git(["check-ignore", "--", to_unix_slash(relpath)], cwd=repo_root)
    return out.strip() == to_unix_slash(relpath)


def has_conflicts(repo_root: Path, relpath: str) -> bool:
    """True when the index records ``relpath`` as unmerged."""
    if not is_indexed(repo_root, relpath):
        return False
    out = _run_git(["diff", "--staged", "--name-status", "--", to_unix_slash(relpath)], cwd=repo_root)
    return out.strip().startswith("U")


def show_blob(repo_root: Path, relpath: str, revision: str = "") -> str:
    """Return the content of ``relpath`` at ``revision`` (empty = the index)."""
    return _run_git(
        ["--no-pager", "show", f"{revision}:{to_unix_slash(relpath)}"],
        cwd=repo_root,
        check=True,
    )


def diff_content(repo_root: Path, relpath: str, content: str, revision: str = "") -> Optional[str]:
    """Diff the reference blob of ``relpath`` against in-memory ``content``.

    Returns ``None`` when there is nothing to compare against (inside
    ``.git``, not indexed, ignored), and ``""`` when the content is unchanged.
    """
    unix = to_unix_slash(relpath)
    if unix.startswith(".git/"):
        return None
    if not is_indexed(repo_root, relpath) or is_ignored(repo_root, relpath):
        return None
    try:
        blob = show_blob(repo_root, relpath, revision)
    except GitError:
        return None

    with tempfile.TemporaryDirectory(prefix="gitgutter-") as tmp:
        staged_file = Path(tmp) / "staged"
        current_file = Path(tmp) / "current"
        staged_file.write_text(blob, encoding="utf-8", newline="")
        current_file.write_text(content, encoding="utf-8", newline="")
        return _run_git(
            [
                "--no-pager", "diff", "--no-index", "--no-ext-diff",
                "-p", "-U0", "--no-color",
                str(staged_file), str(current_file),
            ],
            cwd=repo_root,
        )


def get_staged_diff(repo_root: Path, relpath: Optional[str] = None) -> str:
    """Return the zero-context diff of staged changes."""
    args = ["--no-pager", "diff", "--no-ext-diff", "-p", "-U0", "--no-color", "--staged"]
    if relpath:
        args += ["--", to_unix_slash(relpath)]
    return _run_git(args, cwd=repo_root)


def apply_patch(repo_root: Path, patch: str) -> None:
    """Apply ``patch`` to the index. Raises PatchApplyFailed with git's stderr."""
    try:
        _run_git(
            ["apply", "--cached", "--unidiff-zero", "-"],
            cwd=repo_root,
            input=patch,
            check=True,
        )
    except GitError as exc:
        raise PatchApplyFailed(str(exc)) from exc


def blame(repo_root: Path, relpath: str, content: str) -> str:
    """Porcelain blame of in-memory ``content`` for ``relpath``."""
    return _run_git(
        ["--no-pager", "blame", "-b", "-p", "--root", "--contents", "-", "--", to_unix_slash(relpath)],
        cwd=repo_root,
        input=content,
        check=True,
    )


def get_username(repo_root: Path) -> str:
    try:
        return _run_git(["config", "user.name"], cwd=repo_root, check=True).strip()
    except GitError:
        return ""


class GitDiffSource:
    """DiffSource backed by the git CLI."""

    def __init__(self, repo_root: Path, revision: str = "") -> None:
        self.repo_root = repo_root
        self.revision = revision

    def diff(self, relpath: str, content: str) -> Optional[str]:
        return diff_content(self.repo_root, relpath, content, self.revision)

    def staged_diff(self, relpath: str) -> str:
        return get_staged_diff(self.repo_root, relpath)


class GitPatchSink:
    """PatchSink that feeds patches to ``git apply --cached --unidiff-zero -``."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def apply(self, patch: str) -> None:
        apply_patch(self.repo_root, patch)
