import typer
from rich.console import Console
from rich.panel import Panel

from ntpsync.system import SystemClock, fetch_timezone, get_tz_service_name
from ntpsync.utils import tz_offset_to_string
from ntpsync.utils.exceptions import NtpSyncException
from ..config import ConfigManager
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app
from . import _load_config


@app.command(rich_help_panel="Time Zone")
def clock(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Show the local clock and UTC offset.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Show the local clock and the configured UTC offset.

[bold cyan]Usage:[/bold cyan]
  ntpsync clock"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    config = _load_config()
    local = SystemClock(config.utc_offset, config.local_clock)

    lines = [
        f"Local clock: [bright_green]{local.format_now()}[/bright_green]",
        f"UTC offset:  [yellow]{tz_offset_to_string(config.utc_offset)}[/yellow]",
    ]
    if config.auto_tz:
        lines.append(f"[dim]Detected automatically via {get_tz_service_name(config.tz_service)}[/dim]")
    OutputHelper.print_panel("\n".join(lines), title="Clock", border_style="bright_blue")


@app.command(rich_help_panel="Time Zone")
def tz(
    service: int = typer.Option(None, "--service", "-s", help="Time zone service index"),
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Detect the time zone and store its UTC offset.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Detect the time zone from your public IP address and store its UTC offset.

[bold cyan]Usage:[/bold cyan]
  ntpsync tz [yellow][--service N][/yellow]

[bold cyan]Services:[/bold cyan]
  0  http://ip-api.com
  1  https://ipwho.is
  2  https://ipapi.co"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    config = _load_config()
    idx = config.tz_service if service is None else service

    try:
        name, offset = fetch_timezone(idx)
    except NtpSyncException as e:
        OutputHelper.print_error(f"Failed to update time zone: {e.message}", title="Time Zone")
        raise typer.Exit(1)

    ConfigManager.set_and_store_utc_offset(offset)
    OutputHelper.print_panel(
        f"Updated time zone to [bright_cyan]{name}[/bright_cyan] "
        f"([yellow]{tz_offset_to_string(offset)}[/yellow])",
        title="Time Zone",
        border_style="green"
    )
