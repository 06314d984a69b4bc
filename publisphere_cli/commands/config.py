"""Configuration Commands - CLI settings management"""

import typer
from rich.console import Console
from rich.panel import Panel

from ..utils.config_manager import config
from ..utils.formatting import print_error, print_info, print_success

console = Console()
app = typer.Typer(name="config", help="CLI configuration management")

SECRET_KEYS = {"api.token"}


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., 'api.base_url')"),
    value: str = typer.Argument(..., help="Configuration value"),
):
    """⚙️ Set a configuration value"""
    if key == "api.base_url" and not value.startswith(("http://", "https://")):
        print_error("API base URL must start with http:// or https://")
        raise typer.Exit(1)

    if key.endswith(".timeout") and not value.isdigit():
        print_error("Timeout values must be numeric (seconds)")
        raise typer.Exit(1)

    try:
        config.set(key, int(value) if value.isdigit() else value)
    except OSError as e:
        print_error(f"Failed to set configuration: {e}")
        raise typer.Exit(1) from None

    print_success(f"Set {key} = {_display_value(key, value)}")
    if key == "api.base_url":
        print_info("Test connection with: publisphere status")


@app.command("get")
def get_config(
    key: str | None = typer.Argument(
        None, help="Configuration key (optional - shows all if omitted)"
    ),
):
    """📋 Get configuration value(s)"""
    if not key:
        show_all_config()
        return

    value = config.get(key)
    if value is None:
        console.print(f"[yellow]Key '{key}' not found[/yellow]")
        console.print("Use [cyan]publisphere config show[/cyan] to see all available keys")
        raise typer.Exit(1)

    console.print(f"[cyan]{key}[/cyan] = [yellow]{_display_value(key, value)}[/yellow]")


@app.command("show")
def show_all_config():
    """📊 Show all configuration settings"""
    console.print(
        Panel(
            "[bold cyan]Publisphere CLI Configuration[/bold cyan]\n\n"
            f"[dim]Configuration is stored in {config.config_file}[/dim]",
            title="Configuration",
            border_style="blue",
        )
    )
    _display_config_section(config.load_config(), "")


def _display_value(key: str, value) -> str:
    if key in SECRET_KEYS and value:
        return "********"
    return str(value)


def _display_config_section(data, prefix: str, indent: int = 0):
    """Recursively display configuration sections"""
    indent_str = "  " * indent

    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key

        if isinstance(value, dict):
            console.print(f"{indent_str}[bold blue]{key}:[/bold blue]")
            _display_config_section(value, full_key, indent + 1)
        else:
            console.print(
                f"{indent_str}[cyan]{key}[/cyan]: "
                f"[yellow]{_display_value(full_key, value)}[/yellow]"
            )
