"""Output formatting and display utilities."""
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ntpsync.core import PreviewResult, SyncResult
from ntpsync.utils import seconds_to_human
from . import get_panel_box, CONSOLE_WIDTH


def _fmt_range(summary) -> str:
    if summary is None:
        return "-"
    lo, hi, avg = summary
    return (f"{seconds_to_human(lo, True)} / {seconds_to_human(hi, True)} / "
            f"{seconds_to_human(avg, True)}")


class OutputHelper:
    """Output formatting and display utilities."""

    # Ensure stdout uses UTF-8 encoding
    if hasattr(sys.stdout, 'reconfigure'):
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')

    _console = Console()
    PANEL_WIDTH = None

    @staticmethod
    def _get_panel_width():
        """Get panel width."""
        if OutputHelper.PANEL_WIDTH is None:
            OutputHelper.PANEL_WIDTH = CONSOLE_WIDTH
        return OutputHelper.PANEL_WIDTH

    @staticmethod
    def print_panel(content, title: str = "", border_style: str = "blue"):
        """Print content in a rich panel box."""
        width = OutputHelper._get_panel_width()
        OutputHelper._console.print(Panel(content, title=title, title_align="left", border_style=border_style, box=get_panel_box(), expand=True, width=width))

    @staticmethod
    def print_error(message: str, title: str = "Error"):
        OutputHelper.print_panel(f"[red]{escape(message)}[/red]", title=title, border_style="red")

    @staticmethod
    def sync_summary(result: SyncResult) -> str:
        lines = []
        for outcome in result.outcomes:
            if outcome.ok:
                lines.append(
                    f"[bright_cyan]{outcome.address}[/bright_cyan]  "
                    f"correction [yellow]{seconds_to_human(outcome.correction, True)}[/yellow]  "
                    f"latency [dim]{seconds_to_human(outcome.latency)}[/dim]"
                )
            else:
                lines.append(f"[bright_cyan]{outcome.address}[/bright_cyan]  [red]{escape(outcome.error)}[/red]")
        if lines:
            lines.append("")

        drift = seconds_to_human(result.correction, True)
        if result.applied:
            lines.append(f"[bright_green]Clock corrected by {drift}[/bright_green]")
        else:
            lines.append(f"Tolerating clock drift (correction is only [yellow]{drift}[/yellow]).")
        return "\n".join(lines)

    @staticmethod
    def preview_table(result: PreviewResult) -> Table:
        table = Table(expand=True, box=None)
        table.add_column("Server", style="bright_cyan")
        table.add_column("Addresses", justify="right")
        table.add_column("Errors", justify="right")
        table.add_column("Correction (min / max / avg)")
        table.add_column("Latency (min / max / avg)")

        for stats in result.servers:
            if stats.resolve_error:
                table.add_row(stats.name, "-", "-", f"[red]{escape(stats.resolve_error)}[/red]", "")
                continue
            table.add_row(
                stats.name,
                str(stats.addresses),
                str(stats.errors),
                _fmt_range(stats.correction_summary),
                _fmt_range(stats.latency_summary),
            )
        return table

    @staticmethod
    def correction_line(correction: Optional[float]) -> str:
        if correction is None:
            return "[bright_green]No correction needed.[/bright_green]"
        return f"Needed correction: [yellow]{seconds_to_human(correction, True)}[/yellow]"
