from rich.console import Console
from rich.markup import escape

from ntpsync.core import Reporter, Severity
from . import CONSOLE_WIDTH

_STYLES = {
    Severity.ERROR: ("✗", "red"),
    Severity.INFO: ("•", "bright_blue"),
    Severity.SUCCESS: ("✓", "bright_green"),
}


class ConsoleReporter(Reporter):
    """Reporter that also prints notifications to the terminal."""

    def __init__(self, verbosity: int = 0, console: Console = None):
        super().__init__(verbosity)
        self.console = console or Console(width=CONSOLE_WIDTH, stderr=True)

    def show(self, severity: Severity, message: str) -> None:
        icon, style = _STYLES[severity]
        self.console.print(f"[{style}]{icon}[/{style}] {escape(message)}", markup=True, highlight=False)
