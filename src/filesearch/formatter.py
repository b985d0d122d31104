"""Rich display formatting for stores, documents, operations and answers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from filesearch.models import Document, Operation, QueryResult, Store

_STATE_STYLES = {
    "active": "green",
    "pending": "yellow",
    "failed": "red",
    "unknown": "dim",
}


def score_bar(score: float, width: int = 10) -> str:
    """Render a visual confidence bar from a 0.0-1.0 score.

    Returns:
        Formatted string like ``"━━━━━━━━○○ 87%"``.
    """
    score = max(0.0, min(1.0, score))  # clamp
    filled = round(score * width)
    empty = width - filled
    return f"{'━' * filled}{'○' * empty} {int(score * 100)}%"


def truncate_text(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text at a word boundary.

    If ``len(text) <= max_len``, returns text unchanged. Otherwise cuts at
    the last space before ``max_len - len(suffix)`` and appends *suffix*.
    """
    if len(text) <= max_len:
        return text

    cutoff = max_len - len(suffix)
    if cutoff <= 0:
        return suffix[:max_len]

    space_idx = text.rfind(" ", 0, cutoff)
    if space_idx > 0:
        return text[:space_idx] + suffix
    return text[:cutoff] + suffix


def format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size_kb = size_bytes / 1024
    if size_kb < 1024:
        return f"{size_kb:.1f} KB"
    return f"{size_kb / 1024:.1f} MB"


def display_stores(stores: list[Store], console: Console | None = None) -> None:
    con = console or Console()
    if not stores:
        con.print("[yellow]No File Search stores found.[/yellow]")
        return

    table = Table(title=f"File Search Stores ({len(stores)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Display Name")
    table.add_column("Active", justify="right", style="green")
    table.add_column("Pending", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Size", justify="right")

    for s in stores:
        table.add_row(
            s.name,
            s.display_name or "",
            str(s.active_documents_count),
            str(s.pending_documents_count),
            str(s.failed_documents_count),
            format_size(s.size_bytes),
        )
    con.print(table)


def display_documents(
    documents: list[Document], store_name: str, console: Console | None = None
) -> None:
    con = console or Console()
    if not documents:
        con.print(f"[yellow]No documents in {store_name}.[/yellow]")
        return

    table = Table(title=f"Documents in {store_name} ({len(documents)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Display Name")
    table.add_column("State")
    table.add_column("Type")
    table.add_column("Size", justify="right")

    for d in documents:
        style = _STATE_STYLES.get(d.state.value, "")
        table.add_row(
            d.name,
            d.display_name or "",
            f"[{style}]{d.state.value}[/{style}]" if style else d.state.value,
            d.mime_type or "",
            format_size(d.size_bytes),
        )
    con.print(table)


def display_operation(op: Operation, console: Console | None = None) -> None:
    con = console or Console()
    if not op.done:
        con.print(f"[yellow]⏳ {op.name}: in progress[/yellow]")
    elif op.error:
        con.print(f"[red]✗ {op.name}: failed[/red]\n  {op.error}")
    else:
        con.print(f"[green]✓ {op.name}: done[/green]")


def display_query_result(
    result: QueryResult,
    terminal_width: int = 100,
    limit: int = 10,
    console: Console | None = None,
) -> None:
    """Display the answer panel followed by cited passages.

    Args:
        result: Query result to render.
        terminal_width: Current terminal width for excerpt length.
        limit: Maximum citations to display.
        console: Optional Console for testing.
    """
    con = console or Console()
    response_text = result.text or "(No response text)"

    if not result.citations:
        con.print()
        con.print(Panel(response_text, title=f"Answer ({result.model})", border_style="cyan"))
        con.print("[dim]No sources cited.[/dim]")
        return

    citations = result.citations[:limit]
    refs = " ".join(f"[{c.index}]" for c in citations)
    con.print()
    con.print(
        Panel(
            f"{response_text}\n\n[dim]Sources: {refs}[/dim]",
            title=f"Answer ({result.model})",
            border_style="cyan",
        )
    )

    con.print()
    excerpt_max = max(40, min(150, terminal_width - 20))
    for cite in citations:
        con.print(f"  [yellow]\\[{cite.index}][/yellow] [bold]\"{cite.title}\"[/bold]")
        if cite.confidence:
            con.print(f"      [dim]{score_bar(cite.confidence)}[/dim]")
        if cite.text:
            con.print(f'      [dim]"{truncate_text(cite.text, excerpt_max)}"[/dim]')
        con.print()
