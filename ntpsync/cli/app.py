import logging
import sys
from typing import Optional

import click
import typer
from click.exceptions import UsageError
from rich.console import Console
from rich.panel import Panel

from ntpsync import __version__
from .helpers import OutputHelper, get_panel_box, CONSOLE_WIDTH
from .config import GLOBAL_OPTIONS


def _handle_usage_error(e):
    console = Console(width=CONSOLE_WIDTH, file=sys.stderr)

    error_msg = str(e.format_message()) if hasattr(e, 'format_message') else str(e)

    cmd_name = None
    if e.ctx and e.ctx.info_name and e.ctx.info_name != 'ntpsync':
        cmd_name = e.ctx.info_name

    error_lines = []
    if cmd_name:
        error_lines.append(f"[bold cyan]Usage:[/bold cyan] ntpsync {cmd_name} [OPTIONS] [ARGS]...")
    else:
        error_lines.append("[bold cyan]Usage:[/bold cyan] ntpsync [OPTIONS] COMMAND [ARGS]...")
    error_lines.append("")
    error_lines.append(f"[red]{error_msg}[/red]")

    console.print(Panel(
        "\n".join(error_lines),
        title="Error",
        border_style="red",
        box=get_panel_box(),
        width=CONSOLE_WIDTH
    ))


def _configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True
    )


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=False,
    pretty_exceptions_show_locals=False,
    pretty_exceptions_enable=False,
    help="Keep the system clock in sync with NTP servers."
)


def _print_main_help():
    lines = []
    lines.append("[bold]Network time synchronization[/bold]")
    lines.append("[dim]Query NTP servers and correct the system clock[/dim]")
    lines.append("")
    lines.append("[bold cyan]Usage:[/bold cyan]")
    lines.append("  ntpsync [yellow][OPTIONS][/yellow] [green]COMMAND[/green] [[dim]ARGS[/dim]]...")
    lines.append("")
    lines.append("[bold cyan]Global Options:[/bold cyan]")
    lines.append("  [yellow]--config[/yellow] [cyan]PATH[/cyan]    Configuration file [dim](default: ~/.ntpsync/config)[/dim]")
    lines.append("  [yellow]--debug[/yellow]          Print diagnostic log messages")

    command_groups = [
        ("Synchronization", [
            ("sync", "Synchronize the system clock now"),
            ("preview", "Query every server without touching the clock"),
            ("daemon", "Keep the clock synchronized in the background"),
        ]),
        ("Time Zone", [
            ("clock", "Show the local clock and UTC offset"),
            ("tz", "Detect the time zone and store its UTC offset"),
        ]),
        ("Configuration", [
            ("config", "Show the current configuration"),
            ("set", "Change one configuration key"),
            ("version", "Show version information"),
        ]),
    ]

    for group_name, commands in command_groups:
        lines.append("")
        lines.append(f"[bold cyan]{group_name}:[/bold cyan]")
        for cmd, desc in commands:
            lines.append(f"  [green]{cmd:<12}[/green] {desc}")

    lines.append("")
    lines.append("[dim]Use 'ntpsync COMMAND --help' for detailed help on each command.[/dim]")

    OutputHelper.print_panel(
        "\n".join(lines),
        title="ntpsync",
        border_style="bright_blue"
    )


# =============================================================================
# App Callback
# =============================================================================

@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Configuration file to use",
        is_eager=True
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Print diagnostic log messages",
        is_eager=True
    ),
):
    """
    Keep the system clock in sync with NTP servers.
    """
    GLOBAL_OPTIONS.set(config_path, debug)
    _configure_logging(debug)

    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path

    if ctx.invoked_subcommand is None:
        _print_main_help()
        raise typer.Exit()


# =============================================================================
# Import all commands to register them with the app
# =============================================================================
from .commands import sync, preview, timezone, settings, daemon, utility

# These imports are for side-effect (command registration)
_command_modules = (sync, preview, timezone, settings, daemon, utility)


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    if len(sys.argv) == 2 and sys.argv[1] in ('--version', '-v'):
        OutputHelper.print_panel(
            f"[bright_blue]ntpsync[/bright_blue] version [bright_green]{__version__}[/bright_green]",
            title="Version",
            border_style="green"
        )
        sys.exit(0)

    try:
        # Without standalone mode, typer.Exit codes are returned rather than raised.
        result = app(standalone_mode=False)
        exit_code = result if isinstance(result, int) else 0
    except UsageError as e:
        _handle_usage_error(e)
        exit_code = 2
    except click.exceptions.Abort:
        print()
        exit_code = 1
    except KeyboardInterrupt:
        print()
        exit_code = 130
    sys.exit(exit_code)


if __name__ == '__main__':
    main()
