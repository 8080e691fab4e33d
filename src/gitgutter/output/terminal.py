"""Rich terminal reporter — sign gutter, chunk preview, conflict table."""

from __future__ import annotations

from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from gitgutter.engine.conflicts import highlight_regions
from gitgutter.engine.signs import status_text
from gitgutter.git.models import Conflict, Hunk, LineType, SignKind, SignSummary
from gitgutter.git.diff_parser import classify_line

_SIGN_STYLE = {
    SignKind.ADD: "bold green",
    SignKind.CHANGE: "bold yellow",
    SignKind.DELETE: "bold red",
    SignKind.TOP_DELETE: "bold red",
    SignKind.CHANGE_DELETE: "bold magenta",
}

_LINE_STYLE = {
    LineType.ADDED: "green",
    LineType.REMOVED: "red",
    LineType.CONTEXT: "dim",
}


def render_signs(
    relpath: str,
    summary: SignSummary,
    lines: List[str],
    sign_texts: Dict[SignKind, str],
    *,
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print the buffer with its gutter signs; only signed lines are shown."""
    console = console or Console()

    if not summary.signs:
        console.print(f"[bold green]✓ {relpath}: no changes against the reference blob.[/bold green]")
        return

    table = Table(title=relpath, title_style="bold", border_style="dim", show_edge=False)
    table.add_column("Sign", justify="center", width=4)
    table.add_column("Line", justify="right", style="green")
    table.add_column("Text")

    for sign in summary.signs:
        text = lines[sign.line - 1] if 0 < sign.line <= len(lines) else ""
        table.add_row(
            Text(sign_texts.get(sign.kind, "?"), style=_SIGN_STYLE[sign.kind]),
            str(sign.line),
            Text(text),
        )

    console.print(table)
    if show_summary:
        console.print(f"[dim]Status:[/dim] {status_text(summary)}")


def render_chunk(hunk: Hunk, console: Optional[Console] = None) -> None:
    """Print a hunk the way a diff preview window would."""
    console = console or Console()
    console.print(Text(hunk.header, style="cyan"))
    for line in hunk.lines:
        console.print(Text(line, style=_LINE_STYLE[classify_line(line)]))


def render_conflicts(relpath: str, conflicts: List[Conflict], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not conflicts:
        console.print(f"[green]No conflicts detected in {relpath}.[/green]")
        return

    table = Table(title=f"Conflicts in {relpath}", title_style="bold", border_style="dim")
    table.add_column("Lines", justify="right", style="green")
    table.add_column("Current", style="cyan")
    table.add_column("Base", style="dim")
    table.add_column("Incoming", style="magenta")

    for conflict in conflicts:
        regions = highlight_regions(conflict)

        def fmt(name: str) -> str:
            span = regions[name]
            return f"{span[0]}-{span[1]}" if span else "-"

        table.add_row(
            f"{conflict.start}-{conflict.end}",
            f"{conflict.current} ({fmt('current')})",
            fmt("base") if conflict.common is not None else "",
            f"{conflict.incoming} ({fmt('incoming')})",
        )

    console.print(table)
