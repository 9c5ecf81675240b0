import threading

from ntpsync.utils.exceptions import CanceledError


class CancelToken:
    """Cooperative cancellation handle.

    request() may be called from any thread at any time, including after the
    work it was meant to cancel has already finished.
    """

    def __init__(self):
        self._event = threading.Event()

    def request(self) -> None:
        self._event.set()

    def is_canceled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise CanceledError()

    def sleep(self, seconds: float) -> None:
        """Sleep, waking up early with CanceledError if cancellation is requested."""
        if self._event.wait(seconds):
            raise CanceledError()
