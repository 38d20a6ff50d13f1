"""Rich-powered console output."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from applytrack.models import ApplicationStats, FlowGraph, Reminder, ReminderPriority, RepeatFrequency
from applytrack.valuation.scorer import RankedOffer

_console = Console()


def _money(value: float | None) -> str:
    return "—" if value is None else f"${value:,.0f}"


def print_banner() -> None:
    """Display the startup banner."""
    _console.print(
        Panel.fit(
            "[bold cyan]applytrack[/bold cyan]  —  Job Application Tracker",
            border_style="cyan",
        )
    )


def print_flow(graph: FlowGraph, console: Console | None = None) -> None:
    """Display the application funnel as a transition table."""
    console = console or _console
    if graph.is_empty:
        console.print("[dim]No application movement recorded yet.[/dim]")
        return
    table = Table(title="Application Flow", show_header=True, header_style="bold magenta")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Count", justify="right")
    for edge in graph.edges:
        table.add_row(edge.source.value, edge.target.value, str(edge.count))
    console.print(table)


def print_stats(stats: ApplicationStats, console: Console | None = None) -> None:
    """Display the aggregate statistics table."""
    console = console or _console
    table = Table(title="Application Stats", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Applications", str(stats.total_applications))
    table.add_row("Recent", str(stats.recent_applications))
    table.add_row("Interviews", str(stats.total_interviews))
    table.add_row("Offers", str(stats.total_offers))
    table.add_row("Rejection rate", f"{stats.rejection_rate:.1f}%")
    table.add_row("Success rate", f"{stats.success_rate:.1f}%")
    table.add_row(
        "Avg. days to first interview",
        "—" if stats.average_response_days is None else str(stats.average_response_days),
    )
    for status, count in sorted(stats.status_counts.items()):
        table.add_row(f"  {status}", str(count))
    for month, count in stats.applications_by_month:
        table.add_row(f"  Applied in {month}", str(count))

    console.print()
    console.print(table)
    console.print()


def print_ranking(ranked: Sequence[RankedOffer], console: Console | None = None) -> None:
    """Display compared offers, best first."""
    console = console or _console
    table = Table(title="Offer Comparison", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Company", style="cyan")
    table.add_column("Role")
    table.add_column("Basis salary", justify="right")
    table.add_column("CoL index", justify="right")
    table.add_column("Adjusted", justify="right")
    table.add_column("Benefits", justify="right")
    table.add_column("Total value", justify="right", style="bold")
    table.add_column("Data")

    for item in ranked:
        offer = item.offer
        label = offer.company or f"Offer {item.index + 1}"
        if item.score_computable:
            total = _money(item.total_score)
        else:
            total = "[italic dim]insufficient data[/italic dim]"
        source = item.market_source or "stated"
        if item.salary_basis == "market-median":
            source = f"{source} (est.)"
        table.add_row(
            str(item.rank),
            label,
            offer.role,
            _money(item.basis_salary),
            f"{item.cost_of_living_index:.1f}",
            _money(item.adjusted_salary),
            _money(item.benefit_value),
            total,
            source,
        )

    console.print()
    console.print(table)
    console.print()


def print_reminders(reminders: Sequence[Reminder], console: Console | None = None) -> None:
    """Display open reminders, soonest first."""
    console = console or _console
    if not reminders:
        console.print("[dim]Nothing due.[/dim]")
        return
    table = Table(title="Upcoming Reminders", show_header=True, header_style="bold magenta")
    table.add_column("Due")
    table.add_column("Priority")
    table.add_column("Reminder", style="cyan")
    table.add_column("Repeats")
    for r in reminders:
        priority = r.priority.value
        if r.priority is ReminderPriority.HIGH:
            priority = f"[bold red]{priority}[/bold red]"
        table.add_row(
            r.due_at.strftime("%Y-%m-%d %H:%M"),
            priority,
            r.title,
            "" if r.repeat_frequency is RepeatFrequency.NONE else r.repeat_frequency.value,
        )
    console.print(table)
