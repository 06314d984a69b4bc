"""Rich Formatting Utilities for CLI Output"""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

STATUS_STYLES = {
    "pending": "yellow",
    "running": "blue",
    "completed": "green",
    "failed": "red",
}

OUTCOME_STYLES = {"completed": "green", "retrying": "yellow", "failed": "red"}


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    """Print warning message with yellow styling"""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str):
    """Print info message with blue styling"""
    console.print(f"[blue]ℹ {message}[/blue]")


def format_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def _short_time(value: str | None) -> str:
    if not value:
        return "-"
    # "2026-10-18T09:12:40.118532+00:00" -> "2026-10-18 09:12:40"
    return value.replace("T", " ")[:19]


def create_jobs_table(jobs: list[dict[str, Any]]) -> Table:
    """Create a formatted table for the job log"""
    table = Table(title="Jobs", box=box.ROUNDED)

    table.add_column("ID", justify="left", style="cyan", no_wrap=True)
    table.add_column("Type", justify="left", style="magenta")
    table.add_column("Status", justify="center")
    table.add_column("Attempts", justify="center")
    table.add_column("Scheduled For", justify="left")
    table.add_column("Error", justify="left", style="dim")

    for job in jobs:
        error = job.get("error_message") or ""
        table.add_row(
            str(job.get("id", ""))[:8],  # Short ID
            job.get("job_type", ""),
            format_status(job.get("status", "")),
            f"{job.get('attempts', 0)}/{job.get('max_attempts', 0)}",
            _short_time(job.get("scheduled_for")),
            (error[:60] + "…") if len(error) > 60 else (error or "-"),
        )

    return table


def display_job(job: dict[str, Any]):
    """Show every field of a single job"""
    lines = [
        f"• ID: [cyan]{job.get('id')}[/cyan]",
        f"• Type: [magenta]{job.get('job_type')}[/magenta]",
        f"• Status: {format_status(job.get('status', ''))}",
        f"• Attempts: {job.get('attempts')}/{job.get('max_attempts')}",
        f"• Scheduled for: {_short_time(job.get('scheduled_for'))}",
        f"• Started: {_short_time(job.get('started_at'))}",
        f"• Completed: {_short_time(job.get('completed_at'))}",
    ]
    if job.get("content_item_id"):
        lines.append(f"• Content item: [cyan]{job['content_item_id']}[/cyan]")
    if job.get("retry_of_id"):
        lines.append(f"• Retry of: [cyan]{job['retry_of_id']}[/cyan]")
    if job.get("error_message"):
        lines.append(f"\n[red]{job['error_message']}[/red]")
    if job.get("job_data"):
        lines.append(f"\n[dim]{job['job_data']}[/dim]")

    console.print(Panel("\n".join(lines), title="Job", border_style="cyan"))


def create_stats_table(stats: dict[str, Any]) -> Table:
    """Create a formatted table for queue statistics"""
    table = Table(title="Queue Statistics", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="yellow")

    table.add_row("Total jobs", str(stats.get("total_jobs", 0)))
    table.add_row("Queue depth", str(stats.get("queue_depth", 0)))
    table.add_row("Due now", str(stats.get("due_now", 0)))
    table.add_row("Failed (last hour)", str(stats.get("failed_last_hour", 0)))
    for status, count in sorted(stats.get("by_status", {}).items()):
        table.add_row(f"Status: {format_status(status)}", str(count))
    for job_type, count in sorted(stats.get("by_type", {}).items()):
        table.add_row(f"Type: {job_type}", str(count))

    return table


def display_cycle_summary(summary: dict[str, Any]):
    """Show what one poller cycle did"""
    console.print(
        Panel(
            f"• Processed: [cyan]{summary.get('processed_count', 0)}[/cyan]\n"
            f"• Completed: [green]{summary.get('completed_count', 0)}[/green]\n"
            f"• Failed: [red]{summary.get('failed_count', 0)}[/red]\n"
            f"• Skipped: [yellow]{summary.get('skipped_count', 0)}[/yellow]\n"
            f"• Reclaimed: [yellow]{summary.get('reclaimed_count', 0)}[/yellow]",
            title="Poller Cycle",
            border_style="green",
        )
    )

    results = summary.get("results", [])
    if not results:
        return

    table = Table(box=box.SIMPLE)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Outcome", justify="center")
    table.add_column("Attempts", justify="center")
    table.add_column("Next Run", justify="left")
    table.add_column("Error", style="dim")
    for result in results:
        outcome = result.get("outcome", "")
        style = OUTCOME_STYLES.get(outcome, "white")
        table.add_row(
            str(result.get("id", ""))[:8],
            result.get("job_type", ""),
            f"[{style}]{outcome}[/{style}]",
            str(result.get("attempts", "")),
            _short_time(result.get("next_run_at")),
            result.get("error") or "-",
        )
    console.print(table)
