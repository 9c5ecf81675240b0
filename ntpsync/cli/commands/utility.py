import typer
from rich.console import Console
from rich.panel import Panel

from ntpsync import __version__
from ..helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from ..app import app


@app.command(name="version", rich_help_panel="Configuration")
def version_cmd(
    show_help: bool = typer.Option(False, "--help", "-h", is_eager=True, hidden=True)
):
    """
    Show ntpsync version information.

    Alias: ntpsync -v
    """
    if show_help:
        console = Console(width=CONSOLE_WIDTH)
        help_text = """\
Show ntpsync version information.

[bold cyan]Usage:[/bold cyan]
  ntpsync version
  ntpsync -v              [dim]# Short alias[/dim]"""
        console.print(Panel(help_text, border_style="dim", box=get_panel_box(), width=CONSOLE_WIDTH))
        raise typer.Exit()

    OutputHelper.print_panel(
        f"[bright_blue]ntpsync[/bright_blue] version [bright_green]{__version__}[/bright_green]",
        title="Version",
        border_style="green"
    )
