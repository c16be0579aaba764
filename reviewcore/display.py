"""Terminal rendering of prioritization results and pipeline runs."""

from __future__ import annotations

import io
from collections import Counter
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reviewcore.enums.automation import AutomationStatus

if TYPE_CHECKING:
    from reviewcore.models.results import PrioritizationResult
    from reviewcore.pipeline.context import PipelineContext

DEFAULT_WIDTH = 100

_STATUS_STYLES: dict[AutomationStatus, str] = {
    AutomationStatus.SUCCESS: "green",
    AutomationStatus.PARTIAL_ERROR: "yellow",
    AutomationStatus.SKIPPED: "cyan",
    AutomationStatus.ERROR: "red",
}

_SEVERITY_STYLES: dict[str, str] = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}


def _buffered_console(width: int) -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    console = Console(
        file=buf,
        force_terminal=True,
        highlight=False,
        width=width,
    )
    return console, buf


def _styled_severity(severity: str) -> str:
    value = (severity or "").lower()
    style = _SEVERITY_STYLES.get(value)
    if style is None:
        return escape(severity or "-")
    return f"[{style}]{value}[/{style}]"


def render_prioritization(
    result: PrioritizationResult,
    *,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Render a prioritization result for the terminal.

    Shows the prioritized suggestions in delivery-policy order followed
    by the number of discarded suggestions per reason.

    Args:
        result: Outcome of ``PrioritizationPolicy.prioritize``.
        width: Console width in characters.

    Returns:
        Formatted string for terminal display.
    """
    console, buf = _buffered_console(width)

    table = Table(
        title="Prioritized Suggestions",
        title_style="bold cyan",
        show_header=True,
        header_style="bold",
        border_style="dim",
        padding=(0, 1),
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("File")
    table.add_column("Lines", justify="right")
    table.add_column("Label")
    table.add_column("Severity")
    table.add_column("Score", justify="right")
    table.add_column("Status")

    for index, s in enumerate(result.prioritized_suggestions, 1):
        if s.relevant_lines_start is None:
            lines = "-"
        elif s.relevant_lines_end in (None, s.relevant_lines_start):
            lines = str(s.relevant_lines_start)
        else:
            lines = f"{s.relevant_lines_start}-{s.relevant_lines_end}"
        table.add_row(
            str(index),
            escape(s.id),
            escape(s.relevant_file),
            lines,
            escape(s.label),
            _styled_severity(s.severity),
            f"{s.rank_score:.0f}" if s.rank_score is not None else "-",
            str(s.priority_status or ""),
        )

    if result.prioritized_suggestions:
        console.print(table)
    else:
        console.print("[yellow]No suggestions were prioritized.[/yellow]")

    reasons = Counter(
        str(s.priority_status or "unknown") for s in result.discarded_suggestions
    )
    console.print()
    console.print(
        f"[bold]Prioritized:[/bold] {len(result.prioritized_suggestions)}  "
        f"[bold]Discarded:[/bold] {len(result.discarded_suggestions)}",
    )
    for reason, count in sorted(reasons.items()):
        console.print(f"  [dim]•[/dim] {reason}: {count}")

    return buf.getvalue()


def render_pipeline_summary(
    context: PipelineContext,
    *,
    width: int = DEFAULT_WIDTH,
) -> str:
    """Render the outcome of a pipeline run.

    Args:
        context: Final context returned by the executor.
        width: Console width in characters.

    Returns:
        Formatted string for terminal display.
    """
    console, buf = _buffered_console(width)
    info = context.status_info
    style = _STATUS_STYLES.get(info.status, "white")
    name = context.pipeline_metadata.get("pipeline_name", "pipeline")

    table = Table(
        title=f"{name} PR#{context.pull_request.number}",
        title_style="bold cyan",
        show_header=True,
        header_style="bold",
        border_style="dim",
        padding=(0, 1),
    )
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Status", f"[{style}]{info.status}[/{style}]")
    if info.message:
        table.add_row("Message", escape(info.message))
    if context.skipped_reason is not None:
        table.add_row("Skipped at", escape(context.skipped_reason.stage_name))
    table.add_row("Files", str(len(context.changed_files)))
    if context.ignored_files:
        table.add_row("Ignored files", str(len(context.ignored_files)))
    table.add_row("File suggestions", str(len(context.valid_suggestions)))
    table.add_row("PR-level suggestions", str(len(context.valid_suggestions_by_pr)))
    table.add_row("Discarded", str(len(context.discarded_suggestions)))
    if context.line_comments is not None:
        table.add_row("Line comments", str(len(context.line_comments)))
    console.print(table)

    if context.errors:
        console.print()
        console.print(f"[bold red]Errors ({len(context.errors)}):[/bold red]")
        for error in context.errors:
            where = error.stage
            if error.substage:
                where += f" / {error.substage}"
            console.print(f"  [red]•[/red] {escape(where)}: {escape(error.error)}")

    return buf.getvalue()
