import threading
from typing import Callable, TypeVar

import typer

from ntpsync.core import CancelToken, SyncConfig, Synchronizer, Reporter
from ntpsync.system import SystemClock
from ntpsync.utils.exceptions import CanceledError, ConfigError
from ..config import ConfigManager
from ..helpers import OutputHelper, ConsoleReporter, CONSOLE_WIDTH

T = TypeVar('T')


def _load_config() -> SyncConfig:
    try:
        return ConfigManager.load()
    except (OSError, ConfigError) as e:
        OutputHelper.print_error(f"Cannot read configuration: {e}", title="Configuration")
        raise typer.Exit(1)


def _create_synchronizer(config: SyncConfig, reporter: Reporter = None) -> Synchronizer:
    """Synchronizer wired to the real host, persisting detected UTC offsets."""
    if reporter is None:
        reporter = ConsoleReporter(config.notify)
    return Synchronizer(
        config,
        reporter,
        SystemClock(config.utc_offset, config.local_clock),
        on_utc_offset=ConfigManager.set_and_store_utc_offset,
    )


def _run_cancellable(func: Callable[[CancelToken], T]) -> T:
    """Run func(token) on a helper thread; Ctrl+C requests cancellation and waits for it."""
    token = CancelToken()
    outcome = {}

    def target():
        try:
            outcome['result'] = func(token)
        except BaseException as e:
            outcome['error'] = e

    thread = threading.Thread(target=target, name="ntpsync-foreground", daemon=True)
    thread.start()
    while thread.is_alive():
        try:
            thread.join(0.1)
        except KeyboardInterrupt:
            token.request()

    if 'error' in outcome:
        raise outcome['error']
    if token.is_canceled():
        raise CanceledError()
    return outcome.get('result')


__all__ = [
    '_load_config',
    '_create_synchronizer',
    '_run_cancellable',
    'OutputHelper',
    'CONSOLE_WIDTH',
]
