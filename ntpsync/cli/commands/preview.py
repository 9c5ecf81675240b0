import typer
from rich.console import Console, Group
from rich.panel import Panel

from ntpsync.utils.exceptions import NtpSyncException, CanceledError
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app
from . import _load_config, _create_synchronizer, _run_cancellable


@app.command(rich_help_panel="Synchronization")
def preview(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Query every server without touching the clock.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Query every server without touching the clock.

Shows, per configured server, how many addresses it resolved to, how many
of them failed, and the min/max/avg of correction and latency.

[bold cyan]Usage:[/bold cyan]
  ntpsync preview"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    config = _load_config()
    synchronizer = _create_synchronizer(config)

    try:
        with OutputHelper._console.status("Querying servers..."):
            result = _run_cancellable(synchronizer.preview)
    except CanceledError:
        OutputHelper.print_panel("Preview canceled.", title="Canceled", border_style="yellow")
        raise typer.Exit(130)
    except NtpSyncException as e:
        OutputHelper.print_error(e.message, title="Preview Failed")
        raise typer.Exit(1)

    clock_line = f"Local clock: [bright_green]{synchronizer.clock.format_now()}[/bright_green]"
    OutputHelper.print_panel(
        Group(clock_line, "", OutputHelper.preview_table(result), "",
              OutputHelper.correction_line(result.correction)),
        title="Preview",
        border_style="bright_blue"
    )
