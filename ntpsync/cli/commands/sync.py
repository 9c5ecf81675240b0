import typer
from rich.console import Console
from rich.panel import Panel

from ntpsync.utils.exceptions import NtpSyncException, CanceledError
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app
from . import _load_config, _create_synchronizer, _run_cancellable


@app.command(rich_help_panel="Synchronization")
def sync(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Synchronize the system clock now.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Synchronize the system clock now.

Queries every address of every configured server and steps the clock
by the average correction when it exceeds the tolerance.
Press [bold]Ctrl+C[/bold] to cancel.

[bold cyan]Usage:[/bold cyan]
  ntpsync sync

[bold cyan]Note:[/bold cyan]
  Setting the clock usually requires root privileges."""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    config = _load_config()
    synchronizer = _create_synchronizer(config)

    try:
        with OutputHelper._console.status(f"Synchronizing with [bright_cyan]{config.server}[/bright_cyan]..."):
            result = _run_cancellable(lambda token: synchronizer.run(token, silent=True))
    except CanceledError:
        OutputHelper.print_panel("Synchronization canceled.", title="Canceled", border_style="yellow")
        raise typer.Exit(130)
    except NtpSyncException as e:
        OutputHelper.print_error(e.message, title="Synchronization Failed")
        raise typer.Exit(1)

    OutputHelper.print_panel(
        OutputHelper.sync_summary(result),
        title="Synchronized" if result.applied else "In Sync",
        border_style="green"
    )
