"""Publisphere Jobs CLI - Main Entry Point"""

import typer
from rich.console import Console
from rich.panel import Panel

from .client.endpoints import PublisphereClient, PublisphereError
from .commands import config, jobs, worker
from .utils.config_manager import config as config_manager
from .utils.formatting import print_error, print_info

console = Console()

# Create main Typer app
app = typer.Typer(
    name="publisphere",
    help="📰 Publisphere Jobs - scheduled publishing queue CLI",
    rich_markup_mode="rich",
)

# Add command subapps
app.add_typer(jobs.app, name="jobs")
app.add_typer(worker.app, name="worker")
app.add_typer(config.app, name="config")


@app.command()
def status():
    """📊 Check API connectivity and queue health"""
    base_url = config_manager.get("api.base_url")
    print_info(f"Checking connection to: {base_url}")

    try:
        with PublisphereClient(base_url) as client:
            health = client.health_check()
    except PublisphereError as e:
        print_error(f"Failed to connect: {e}")
        console.print(
            Panel(
                f"🚫 [red]Connection Failed[/red]\n\n"
                f"Make sure the Publisphere Jobs API is running at:\n"
                f"[blue]{base_url}[/blue]\n\n"
                f"You can update the API URL with:\n"
                f"[cyan]publisphere config set api.base_url <url>[/cyan]",
                title="Connection Error",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None

    database = health.get("database") or {}
    queue = health.get("queue") or {}
    healthy = health.get("ok", False)
    console.print(
        Panel(
            f"{'🚀 [green]Healthy[/green]' if healthy else '⚠️ [red]Degraded[/red]'}\n\n"
            f"• Version: [cyan]{health.get('version', 'unknown')}[/cyan]\n"
            f"• Environment: [yellow]{health.get('environment', 'unknown')}[/yellow]\n"
            f"• Database: {'[green]connected[/green]' if database.get('connected') else '[red]unreachable[/red]'}\n"
            f"• Pending: [cyan]{queue.get('pending', 0)}[/cyan]  "
            f"Running: [cyan]{queue.get('running', 0)}[/cyan]  "
            f"Stale: [yellow]{queue.get('stale_running', 0)}[/yellow]  "
            f"Failed (1h): [red]{queue.get('failed_last_hour', 0)}[/red]\n"
            f"• API URL: [blue]{base_url}[/blue]",
            title="System Status",
            border_style="green" if healthy else "red",
        )
    )
    if not healthy:
        raise typer.Exit(1)


@app.command()
def version():
    """📎 Show CLI version information"""
    from . import __version__

    console.print(
        Panel(
            f"📰 [bold cyan]Publisphere Jobs CLI[/bold cyan]\n\n"
            f"• Version: [green]{__version__}[/green]",
            title="Version Info",
            border_style="cyan",
        )
    )


def _version_callback(value: bool):
    if value:
        from . import __version__

        console.print(f"Publisphere Jobs CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """
    📰 Publisphere Jobs CLI

    Inspect the job log, enqueue and retry jobs, and run the poller.
    """


if __name__ == "__main__":
    app()
