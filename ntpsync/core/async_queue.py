import threading
from collections import deque
from typing import Any, Optional

from ntpsync.utils.exceptions import QueueStopped


class TaskQueue:
    """Multi-producer, multi-consumer queue with a stop signal.

    Once stop() is called, every blocked and every future pop() raises
    QueueStopped, until reset() is called.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._queue = deque()
        self._should_stop = False

    def reset(self) -> None:
        """Make the queue usable again after a stop()."""
        with self._lock:
            self._should_stop = False

    def stop(self) -> None:
        with self._lock:
            self._should_stop = True
            # make sure all waiting threads see the updated flag
            self._not_empty.notify_all()

    def is_stopping(self) -> bool:
        with self._lock:
            return self._should_stop

    def empty(self) -> bool:
        with self._lock:
            return not self._queue

    def __len__(self):
        with self._lock:
            return len(self._queue)

    def push(self, item: Any) -> None:
        with self._lock:
            self._queue.append(item)
            self._not_empty.notify()

    def pop(self) -> Any:
        with self._lock:
            self._not_empty.wait_for(lambda: self._should_stop or self._queue)
            if self._should_stop:
                raise QueueStopped()
            return self._queue.popleft()

    def try_push(self, item: Any) -> bool:
        if not self._lock.acquire(blocking=False):
            return False
        try:
            self._queue.append(item)
            self._not_empty.notify()
            return True
        finally:
            self._lock.release()

    def try_pop(self) -> Optional[Any]:
        if not self._lock.acquire(blocking=False):
            return None
        try:
            if not self._queue:
                return None
            if self._should_stop:
                raise QueueStopped()
            return self._queue.popleft()
        finally:
            self._lock.release()

    def drain(self) -> list:
        """Remove and return every queued item."""
        with self._lock:
            items = list(self._queue)
            self._queue.clear()
            return items
