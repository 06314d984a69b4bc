"""Worker Commands - run the poller inside this process"""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel

from ..utils.formatting import display_cycle_summary, print_error, print_info

console = Console()
app = typer.Typer(name="worker", help="In-process job worker")


async def _run_worker(interval: float, once: bool) -> None:
    from publisphere.config.logging import setup_logging
    from publisphere.config.settings import settings
    from publisphere.infra.database import Database
    from publisphere.v1.infra.jobs.poller import PollingWorker
    from publisphere.v1.infra.jobs.runtime import build_job_runtime

    setup_logging()
    database = Database(settings)
    runtime = build_job_runtime(settings, database)
    try:
        if once:
            summary = await runtime.poller.run_cycle()
            display_cycle_summary(summary.model_dump(mode="json"))
            return

        worker = PollingWorker(runtime.poller, interval)
        try:
            await worker.start()
        finally:
            await worker.stop()
    finally:
        await runtime.aclose()
        await database.close()


@app.command("start")
def start_worker(
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between cycles (default: JOB_POLL_INTERVAL_S)"
    ),
    once: bool = typer.Option(False, "--once", help="Run a single cycle and exit"),
):
    """🚀 Poll the job store and run due jobs until interrupted"""
    from publisphere.config.settings import settings

    interval = interval or settings.job_poll_interval_s
    if not once:
        console.print(
            Panel(
                f"• Database: [blue]{settings.database_url.split('@')[-1]}[/blue]\n"
                f"• Interval: [cyan]{interval}s[/cyan]\n"
                f"• Batch size: [cyan]{settings.job_batch_size}[/cyan]\n\n"
                "[dim]Press Ctrl+C to stop[/dim]",
                title="Job Worker",
                border_style="green",
            )
        )

    try:
        asyncio.run(_run_worker(interval, once))
    except KeyboardInterrupt:
        print_info("Worker stopped")
    except Exception as e:
        print_error(f"Worker failed: {e}")
        raise typer.Exit(1) from None
