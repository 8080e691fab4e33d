"""gitgutter CLI — Typer application acting as a minimal editor host.

Every command attaches the file as a buffer, refreshes it against its
reference blob, runs one engine operation and detaches again.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from gitgutter import __version__
from gitgutter.config.schema import GitGutterConfig
from gitgutter.engine.errors import ErrorKind, Result
from gitgutter.engine.session import RefreshResult, Session
from gitgutter.git.models import SignSummary

app = typer.Typer(
    name="gitgutter",
    help="Git change signs, hunk staging and conflict markers for your files.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


@dataclass
class _Buffer:
    repo_root: Path
    cfg: GitGutterConfig
    session: Session
    path: Path
    relpath: str
    content: str
    lines: List[str]
    refreshed: RefreshResult


def _split(content: str) -> List[str]:
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _write_lines(path: Path, lines: List[str], original: str) -> None:
    text = "\n".join(lines)
    if lines and original.endswith("\n"):
        text += "\n"
    path.write_bytes(text.encode("utf-8"))


def _attach(file: str, config: Optional[str], *, verbose: bool = False, debug: bool = False) -> _Buffer:
    """Resolve repo and config, then open and refresh ``file`` as a buffer."""
    from gitgutter.config.loader import ConfigError, load_config
    from gitgutter.git.adapter import GitDiffSource, GitError, get_repo_root, has_conflicts

    path = Path(file).resolve()
    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] no such file: {file}")
        raise typer.Exit(code=2)

    try:
        repo_root = get_repo_root(path.parent).resolve()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    relpath = path.relative_to(repo_root).as_posix()
    content = path.read_bytes().decode("utf-8", errors="replace")
    source = GitDiffSource(repo_root, cfg.diff.revision)

    start = time.perf_counter()
    try:
        conflicted = cfg.conflict.enabled and has_conflicts(repo_root, relpath)
        session = Session()
        session.open(relpath, relpath, has_conflicts=conflicted)
        result = session.refresh_from(relpath, content, source)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if not result.ok:
        console.print(f"[bold red]Diff error:[/bold red] {result.message}")
        raise typer.Exit(code=2)

    if verbose or debug:
        console.print(f"[dim]Repo root: {repo_root}[/dim]")
        console.print(f"[dim]Reference: {cfg.diff.revision or 'index'}:{relpath}[/dim]")
        console.print(f"[dim]Hunks: {len(result.value.hunks)}  Conflicted: {conflicted}[/dim]")
    if debug:
        console.print(f"[dim]Refresh duration: {(time.perf_counter() - start) * 1000:.0f}ms[/dim]")

    return _Buffer(
        repo_root=repo_root,
        cfg=cfg,
        session=session,
        path=path,
        relpath=relpath,
        content=content,
        lines=_split(content),
        refreshed=result.value,
    )


def _fail(result: Result) -> None:
    """Report a failed Result and exit 1."""
    style = "bold red" if result.error == ErrorKind.PATCH_APPLY_FAILED else "yellow"
    console.print(f"[{style}]{result.message}[/{style}]")
    raise typer.Exit(code=1)


_CONFIG_OPT = typer.Option(None, "--config", "-c", help="Path to .gitgutter.toml")
_VERBOSE_OPT = typer.Option(False, "--verbose", "-v", help="Verbose output")
_DEBUG_OPT = typer.Option(False, "--debug", help="Debug output with timing")


# ── signs ─────────────────────────────────────────────────────────────────────


@app.command()
def signs(
    file: str = typer.Argument(..., help="File to inspect"),
    config: Optional[str] = _CONFIG_OPT,
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json | yaml"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write report to file"),
    verbose: bool = _VERBOSE_OPT,
    debug: bool = _DEBUG_OPT,
) -> None:
    """Show gutter signs and change counts for FILE."""
    from gitgutter.config.schema import OUTPUT_FORMATS
    from gitgutter.output import json_report, terminal

    if format and format not in OUTPUT_FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {format}")
        raise typer.Exit(code=2)

    buf = _attach(file, config, verbose=verbose, debug=debug)
    fmt = format or buf.cfg.output.format
    state = buf.refreshed
    summary = state.summary if buf.cfg.signs.enabled else SignSummary()

    if fmt == "terminal":
        terminal.render_signs(
            buf.relpath, summary, buf.lines, buf.cfg.sign_texts(),
            show_summary=buf.cfg.output.show_summary,
            console=Console(),
        )
        report_text = None
    else:
        data = json_report.to_dict(buf.relpath, state.hunks, summary, state.conflicts)
        report_text = json_report.render(data) if fmt == "json" else json_report.render_yaml(data)
        print(report_text)

    if output:
        if report_text is None:
            report_text = json_report.render(
                json_report.to_dict(buf.relpath, state.hunks, summary, state.conflicts)
            )
        Path(output).write_text(report_text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")


# ── chunks ────────────────────────────────────────────────────────────────────


@app.command()
def chunk(
    file: str = typer.Argument(..., help="File to inspect"),
    line: int = typer.Argument(..., help="1-based line inside the chunk"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Show the diff chunk under LINE."""
    from gitgutter.output import terminal

    buf = _attach(file, config)
    found = buf.session.chunk_at(buf.relpath, line)
    if not found.ok:
        _fail(found)
    terminal.render_chunk(found.value, console=Console())


def _jump(file: str, line: int, config: Optional[str], forward: bool) -> None:
    from gitgutter.engine.locator import next_chunk, prev_chunk

    buf = _attach(file, config)
    move = next_chunk if forward else prev_chunk
    target = move(line, buf.refreshed.hunks, buf.cfg.navigation.wrapscan)
    if target is None:
        console.print("[yellow]No more chunks[/yellow]")
        raise typer.Exit(code=1)
    print(target)


@app.command(name="next")
def next_(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="Current 1-based line"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Print the first line of the next chunk after LINE."""
    _jump(file, line, config, forward=True)


@app.command()
def prev(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="Current 1-based line"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Print the first line of the previous chunk before LINE."""
    _jump(file, line, config, forward=False)


@app.command()
def stage(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="1-based line inside the chunk"),
    config: Optional[str] = _CONFIG_OPT,
    verbose: bool = _VERBOSE_OPT,
) -> None:
    """Stage only the chunk under LINE."""
    from gitgutter.git.adapter import GitPatchSink

    buf = _attach(file, config, verbose=verbose)
    result = buf.session.stage_chunk(buf.relpath, line, GitPatchSink(buf.repo_root))
    if not result.ok:
        _fail(result)
    if verbose:
        console.print(result.value, markup=False, style="dim")
    console.print(f"[green]✓[/green] Staged chunk at {buf.relpath}:{line}")


@app.command()
def unstage(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="1-based line inside the staged chunk"),
    config: Optional[str] = _CONFIG_OPT,
    verbose: bool = _VERBOSE_OPT,
) -> None:
    """Remove the staged chunk under LINE from the index."""
    from gitgutter.git.adapter import GitError, GitPatchSink, get_staged_diff

    buf = _attach(file, config, verbose=verbose)
    try:
        staged = get_staged_diff(buf.repo_root, buf.relpath)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    if not staged.strip():
        console.print(f"[yellow]No staged changes in {buf.relpath}[/yellow]")
        raise typer.Exit(code=1)

    result = buf.session.unstage_chunk(buf.relpath, line, staged, GitPatchSink(buf.repo_root))
    if not result.ok:
        _fail(result)
    if verbose:
        console.print(result.value, markup=False, style="dim")
    console.print(f"[green]✓[/green] Unstaged chunk at {buf.relpath}:{line}")


@app.command()
def undo(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="1-based line inside the chunk"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Revert the chunk under LINE in the working file."""
    buf = _attach(file, config)
    result = buf.session.undo_chunk(buf.relpath, line, buf.lines)
    if not result.ok:
        _fail(result)
    _write_lines(buf.path, result.value, buf.content)
    console.print(f"[green]✓[/green] Reverted chunk at {buf.relpath}:{line}")


@app.command()
def fold(
    file: str = typer.Argument(...),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Print the line ranges that hold no changes (what a fold would hide)."""
    buf = _attach(file, config)
    result = buf.session.toggle_fold(buf.relpath, len(buf.lines))
    if not result.ok:
        _fail(result)
    for start, end in result.value.ranges:
        print(f"{start},{end}")


# ── conflicts ─────────────────────────────────────────────────────────────────


@app.command()
def conflicts(
    file: str = typer.Argument(...),
    config: Optional[str] = _CONFIG_OPT,
    force: bool = typer.Option(False, "--force", help="Parse markers even if git reports no conflict"),
) -> None:
    """List merge-conflict blocks in FILE."""
    from gitgutter.engine.conflicts import parse_conflicts
    from gitgutter.output import terminal

    buf = _attach(file, config)
    found = parse_conflicts(buf.lines) if force else buf.refreshed.conflicts
    terminal.render_conflicts(buf.relpath, found, console=Console())


@app.command()
def resolve(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="1-based line inside the conflict"),
    keep: str = typer.Option(..., "--keep", "-k", help="current | incoming | both"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Resolve the conflict under LINE by keeping one or both sides."""
    from gitgutter.git.models import ConflictPart

    try:
        part = ConflictPart(keep)
    except ValueError:
        console.print(f"[bold red]Invalid side:[/bold red] {keep}")
        raise typer.Exit(code=2)

    buf = _attach(file, config)
    buf.session.mark_conflicted(buf.relpath)
    buf.session.refresh(buf.relpath, None, buf.lines)
    result = buf.session.resolve_conflict(buf.relpath, line, buf.lines, part)
    if not result.ok:
        _fail(result)
    _write_lines(buf.path, result.value, buf.content)
    console.print(f"[green]✓[/green] Kept {part.value} at {buf.relpath}:{line}")


# ── blame ─────────────────────────────────────────────────────────────────────


@app.command(name="blame")
def blame_(
    file: str = typer.Argument(...),
    line: int = typer.Argument(..., help="1-based line"),
    config: Optional[str] = _CONFIG_OPT,
) -> None:
    """Print inline blame for LINE."""
    from gitgutter.git.adapter import GitError, blame, get_username, is_indexed
    from gitgutter.git.blame_parser import blame_text, parse_blame

    buf = _attach(file, config)
    if not buf.cfg.blame.enabled:
        raise typer.Exit(code=0)
    try:
        infos = []
        if is_indexed(buf.repo_root, buf.relpath):
            infos = parse_blame(blame(buf.repo_root, buf.relpath, buf.content), get_username(buf.repo_root))
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    print(blame_text(infos, line, show_summary=buf.cfg.blame.show_summary))


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .gitgutter.toml in the repo root."""
    from gitgutter.config.defaults import DEFAULT_TOML
    from gitgutter.config.loader import CONFIG_FILENAME
    from gitgutter.git.adapter import GitError, get_repo_root

    try:
        repo_root = get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    config_path = repo_root / CONFIG_FILENAME
    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"gitgutter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """gitgutter — git change signs, hunk staging and conflict markers."""
