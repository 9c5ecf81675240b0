import typer
from rich.console import Console
from rich.panel import Panel

from ntpsync.core import BackgroundRunner
from ntpsync.utils.exceptions import ConfigError
from ..config import ConfigManager, CONFIG_KEYS
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app
from . import _load_config, _create_synchronizer


@app.command(rich_help_panel="Configuration")
def config(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Show the current configuration.
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Show the current configuration and where it is stored.

[bold cyan]Usage:[/bold cyan]
  ntpsync config
  ntpsync --config PATH config"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    current = _load_config()
    lines = [f"[dim]{ConfigManager.resolve_path()}[/dim]", ""]
    for key, value in ConfigManager.describe(current).items():
        lines.append(f"  [green]{key:<16}[/green] {value}")
    OutputHelper.print_panel("\n".join(lines), title="Configuration", border_style="bright_blue")


@app.command(name="set", rich_help_panel="Configuration")
def set_cmd(
    key: str = typer.Argument(None, help="Configuration key"),
    value: str = typer.Argument(None, help="New value"),
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Change one configuration key.
    """
    if show_help or key is None or value is None:
        console = Console(width=CONSOLE_WIDTH)
        keys = "\n".join(f"  {k}" for k in CONFIG_KEYS)
        help_text = f"""\
Change one configuration key.

Numeric values are clamped to their valid range. When SYNC_ON_CHANGES is
enabled, changing AUTO_TZ, TOLERANCE, TZ_SERVICE or UTC_OFFSET triggers a
new synchronization.

[bold cyan]Usage:[/bold cyan]
  ntpsync set [yellow]KEY[/yellow] [yellow]VALUE[/yellow]

[bold cyan]Keys:[/bold cyan]
{keys}

[bold cyan]Examples:[/bold cyan]
  ntpsync set SERVER "time.google.com, pool.ntp.org"
  ntpsync set TOLERANCE 250"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    try:
        old, new = ConfigManager.set(key, value)
    except ConfigError as e:
        OutputHelper.print_error(e.message, title="Configuration")
        raise typer.Exit(1)

    shown = ConfigManager.describe(new)[key.strip().upper()]
    OutputHelper.print_panel(
        f"[green]{key.strip().upper()}[/green] = {shown}",
        title="Configuration",
        border_style="green"
    )

    if new.sync_on_changes and ConfigManager.important_vars_changed(old, new):
        runner = BackgroundRunner(_create_synchronizer(new), grace_period=0)
        runner.run()
        try:
            runner.wait()
        except KeyboardInterrupt:
            runner.stop()
