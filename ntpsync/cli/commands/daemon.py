import logging
import time

import typer
from rich.console import Console
from rich.panel import Panel

from ntpsync.core import BackgroundRunner
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app
from . import _load_config, _create_synchronizer

logger = logging.getLogger(__name__)


@app.command(rich_help_panel="Synchronization")
def daemon(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Keep the clock synchronized in the background.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Keep the clock synchronized in the background.

Synchronizes once at startup when SYNC_ON_BOOT is enabled, then every
INTERVAL minutes. Press [bold]Ctrl+C[/bold] to stop.

[bold cyan]Usage:[/bold cyan]
  ntpsync daemon"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    config = _load_config()
    if not config.sync_on_boot and config.interval == 0:
        OutputHelper.print_panel(
            "Nothing to do: enable [green]SYNC_ON_BOOT[/green] or set a non-zero [green]INTERVAL[/green].",
            title="Daemon",
            border_style="yellow"
        )
        raise typer.Exit(1)

    runner = BackgroundRunner(_create_synchronizer(config))
    OutputHelper.print_panel(
        f"Synchronizing with [bright_cyan]{config.server}[/bright_cyan]"
        + (f" every {config.interval} min" if config.interval else "")
        + ".\n[dim]Press Ctrl+C to stop.[/dim]",
        title="Daemon",
        border_style="bright_blue"
    )

    try:
        if config.sync_on_boot:
            runner.run_once()

        if config.interval == 0:
            runner.wait()
            return

        period = config.interval * 60
        next_run = time.monotonic() if not config.sync_on_boot else time.monotonic() + period
        while True:
            now = time.monotonic()
            if now >= next_run:
                # A pass that is still running is superseded by the new one.
                runner.stop()
                runner.run()
                next_run = now + period
                logger.debug("Next pass in %d s", period)
            time.sleep(min(1.0, max(0.0, next_run - now)))
    except KeyboardInterrupt:
        runner.stop()
        print()
