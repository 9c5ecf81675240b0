import logging
import threading
import time
from enum import Enum
from typing import Optional

from ntpsync.utils.constants import BOOT_GRACE_PERIOD, STOP_POLL_INTERVAL, STOP_MAX_POLLS
from ntpsync.utils.exceptions import NtpSyncException, CanceledError, ClockError
from .cancel import CancelToken
from .report import Level, Reporter
from .sync import Synchronizer, SyncResult, describe_error

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    CANCELED = "canceled"


class BackgroundRunner:
    """Runs synchronization passes on a background thread.

    Each run() gets a fresh CancelToken. A thread left over from a superseded
    run never overwrites the state of the current one.
    """

    def __init__(self, synchronizer: Synchronizer, reporter: Optional[Reporter] = None,
                 grace_period: float = BOOT_GRACE_PERIOD,
                 poll_interval: float = STOP_POLL_INTERVAL,
                 max_polls: int = STOP_MAX_POLLS):
        self.synchronizer = synchronizer
        self.reporter = reporter or synchronizer.reporter
        self.grace_period = grace_period
        self.poll_interval = poll_interval
        self.max_polls = max_polls

        self._lock = threading.Lock()
        self._state = RunState.IDLE
        self._generation = 0
        self._token: Optional[CancelToken] = None
        self._thread: Optional[threading.Thread] = None
        self.last_result: Optional[SyncResult] = None
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    @property
    def busy(self) -> bool:
        return self.synchronizer.busy

    def _set_state(self, generation: int, state: RunState) -> None:
        with self._lock:
            if generation == self._generation:
                self._state = state

    def _task(self, token: CancelToken, generation: int) -> None:
        try:
            # Give the host a moment to settle before touching the network.
            token.sleep(self.grace_period)
            result = self.synchronizer.run(token)
        except CanceledError:
            logger.debug("Background run %d canceled", generation)
            self._set_state(generation, RunState.CANCELED)
            return
        except ClockError as e:
            # Failing to set the clock is always shown.
            self.reporter.error(Level.QUIET, describe_error(e))
            self._finish(generation, error=e)
            return
        except NtpSyncException as e:
            self.reporter.error(Level.NORMAL, describe_error(e))
            self._finish(generation, error=e)
            return
        except Exception as e:
            logger.exception("Background run %d failed", generation)
            self.reporter.error(Level.NORMAL, describe_error(e))
            self._finish(generation, error=e)
            return
        self._finish(generation, result=result)

    def _finish(self, generation: int, result: Optional[SyncResult] = None,
                error: Optional[BaseException] = None) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.last_result = result
            self.last_error = error
            self._state = RunState.FINISHED

    def run(self) -> None:
        """Start a new background pass, regardless of the current state."""
        token = CancelToken()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._token = token
            self._state = RunState.RUNNING
            thread = threading.Thread(
                target=self._task,
                args=(token, generation),
                name=f"ntpsync-background-{generation}",
                daemon=True
            )
            self._thread = thread
        thread.start()
        logger.debug("Background run %d started", generation)

    def run_once(self) -> bool:
        """Start a pass unless one has already finished. Returns True if started."""
        if self.state == RunState.FINISHED:
            return False
        self.run()
        return True

    def stop(self) -> None:
        with self._lock:
            token = self._token
            running = self._state == RunState.RUNNING

        if running and token is not None:
            token.request()
            polls = 0
            while self.state == RunState.RUNNING and polls < self.max_polls:
                time.sleep(self.poll_interval)
                polls += 1
            if self.state == RunState.RUNNING:
                logger.warning("Background thread did not stop!")

        with self._lock:
            if self._token is token:
                self._token = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current pass to end. Returns False on timeout."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
