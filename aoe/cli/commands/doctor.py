"""Doctor command for aoe."""

import shutil

import click
from rich.console import Console
from rich.table import Table

from ...services.container_runtime import get_container_runtime
from ...utils.config_manager import ConfigManager


def _mark(ok: bool) -> str:
    return "[green]yes[/green]" if ok else "[red]no[/red]"


@click.command()
@click.pass_context
def doctor(ctx):
    """Check that tmux and the container runtime are usable"""
    console = Console()
    config = ConfigManager().load_config()
    runtime = get_container_runtime(config)
    image = runtime.effective_default_image(config)

    table = Table(title="aoe environment")
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Result")

    table.add_row("tmux installed", _mark(shutil.which("tmux") is not None))
    table.add_row("Container runtime", runtime.display_name)

    installed = runtime.is_available()
    table.add_row("Runtime installed", _mark(installed))

    daemon = installed and runtime.is_daemon_running()
    table.add_row("Daemon running", _mark(daemon))
    table.add_row("Version", runtime.version() or "-")

    if daemon:
        table.add_row(f"Image {image}", _mark(runtime.image_exists_locally(image)))
    else:
        table.add_row(f"Image {image}", "[yellow]unknown[/yellow]")

    console.print(table)
    if not installed or not daemon:
        ctx.exit(1)
