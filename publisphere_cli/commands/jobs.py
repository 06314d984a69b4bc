"""Jobs Commands - job log browsing and queue administration"""

import json

import typer
from rich.console import Console
from rich.panel import Panel

from ..client.endpoints import PublisphereClient, PublisphereError
from ..utils.formatting import (
    create_jobs_table,
    create_stats_table,
    display_cycle_summary,
    display_job,
    print_error,
    print_info,
    print_success,
)

console = Console()
app = typer.Typer(name="jobs", help="Job queue commands")


@app.command("list")
def list_jobs(
    status: list[str] | None = typer.Option(
        None, "--status", "-s", help="Filter by status (repeatable)"
    ),
    job_type: str | None = typer.Option(None, "--type", "-t", help="Filter by job type"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of jobs to show"),
    offset: int = typer.Option(0, "--offset", "-o", help="Skip first N jobs"),
):
    """📋 List jobs, newest first"""
    try:
        with PublisphereClient() as client:
            data = client.list_jobs(
                status=status, job_type=job_type, limit=limit, offset=offset
            )
    except PublisphereError as e:
        print_error(f"Failed to list jobs: {e}")
        raise typer.Exit(1) from None

    jobs = data.get("jobs", [])
    total = data.get("total", len(jobs))

    if not jobs:
        console.print(
            Panel(
                "📭 [yellow]No jobs found![/yellow]\n\n"
                f"• Status: {', '.join(status) if status else 'any'}\n"
                f"• Type: {job_type or 'any'}",
                title="Empty Results",
                border_style="yellow",
            )
        )
        return

    console.print(create_jobs_table(jobs))
    console.print(f"\n📊 Showing [cyan]{len(jobs)}[/cyan] of [yellow]{total}[/yellow] jobs")
    if offset + limit < total:
        console.print(f"💡 Use [cyan]--offset {offset + limit}[/cyan] to see more")


@app.command("show")
def show_job(job_id: str = typer.Argument(..., help="Job ID to show")):
    """🔍 Show a single job"""
    try:
        with PublisphereClient() as client:
            job = client.get_job(job_id)
    except PublisphereError as e:
        print_error(f"Failed to get job: {e}")
        raise typer.Exit(1) from None

    display_job(job)


@app.command("stats")
def job_stats():
    """📊 Show queue statistics"""
    try:
        with PublisphereClient() as client:
            stats = client.get_job_stats()
    except PublisphereError as e:
        print_error(f"Failed to get job stats: {e}")
        raise typer.Exit(1) from None

    console.print(create_stats_table(stats))


@app.command("enqueue")
def enqueue_job(
    job_type: str = typer.Argument(..., help="Job type, e.g. publish_article"),
    data: str = typer.Option("{}", "--data", "-d", help="Job payload as JSON"),
    scheduled_for: str | None = typer.Option(
        None, "--at", help="ISO-8601 time to run the job (default: now)"
    ),
    max_attempts: int | None = typer.Option(
        None, "--max-attempts", help="Attempts before permanent failure"
    ),
    content_item_id: str | None = typer.Option(
        None, "--content-item", "-c", help="Content item for publishing jobs"
    ),
    dedupe_key: str | None = typer.Option(None, "--dedupe-key", help="Deduplication key"),
):
    """➕ Enqueue a job"""
    try:
        job_data = json.loads(data)
    except json.JSONDecodeError as e:
        print_error(f"--data is not valid JSON: {e}")
        raise typer.Exit(1) from None
    if not isinstance(job_data, dict):
        print_error("--data must be a JSON object")
        raise typer.Exit(1)

    try:
        with PublisphereClient() as client:
            result = client.enqueue_job(
                job_type,
                job_data,
                scheduled_for=scheduled_for,
                max_attempts=max_attempts,
                content_item_id=content_item_id,
                dedupe_key=dedupe_key,
            )
    except PublisphereError as e:
        print_error(f"Failed to enqueue job: {e}")
        raise typer.Exit(1) from None

    if result.get("deduplicated"):
        print_info(f"Existing job {result['job_id']} returned ({result['status']})")
    else:
        print_success(f"Enqueued job {result['job_id']} for {result['scheduled_for']}")


@app.command("retry")
def retry_job(job_id: str = typer.Argument(..., help="Failed job to re-run")):
    """🔁 Re-run a failed job as a new job"""
    try:
        with PublisphereClient() as client:
            result = client.retry_job(job_id)
    except PublisphereError as e:
        print_error(f"Failed to retry job: {e}")
        raise typer.Exit(1) from None

    print_success(f"Enqueued job {result['job_id']} (retry of {result['retry_of_id']})")


@app.command("delete")
def delete_job(
    job_id: str = typer.Argument(..., help="Finished job to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """🗑️ Delete a completed or failed job"""
    if not yes and not typer.confirm(f"Delete job {job_id}?"):
        console.print("Deletion cancelled.")
        return

    try:
        with PublisphereClient() as client:
            client.delete_job(job_id)
    except PublisphereError as e:
        print_error(f"Failed to delete job: {e}")
        raise typer.Exit(1) from None

    print_success(f"Deleted job {job_id}")


@app.command("process")
def process_jobs():
    """⚙️ Run one poller cycle on the server"""
    try:
        with PublisphereClient() as client:
            summary = client.process_jobs()
    except PublisphereError as e:
        print_error(f"Failed to process jobs: {e}")
        raise typer.Exit(1) from None

    display_cycle_summary(summary)


@app.command("cleanup")
def cleanup_jobs():
    """🧹 Delete finished jobs past the retention window"""
    try:
        with PublisphereClient() as client:
            result = client.cleanup_jobs()
    except PublisphereError as e:
        print_error(f"Failed to clean up jobs: {e}")
        raise typer.Exit(1) from None

    print_success(
        f"Deleted {result['deleted_count']} jobs older than "
        f"{result['retention_days']} days"
    )
