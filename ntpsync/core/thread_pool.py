import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, List

from ntpsync.utils.exceptions import QueueStopped
from .async_queue import TaskQueue

logger = logging.getLogger(__name__)


def _run_task(future: Future, func: Callable, args: tuple, kwargs: dict) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        result = func(*args, **kwargs)
    except BaseException as e:
        future.set_exception(e)
    else:
        future.set_result(result)


class ThreadPool:
    """Fixed-capacity pool of worker threads, grown on demand.

    A worker is only added when no worker is idle at submission time. With
    max_workers == 0 every task runs on the caller's thread, inside submit().
    """

    def __init__(self, max_workers: int):
        if max_workers < 0:
            raise ValueError("max_workers must be >= 0")
        self.max_workers = max_workers
        self._workers: List[threading.Thread] = []
        self._tasks = TaskQueue()
        self._idle_lock = threading.Lock()
        self._num_idle = 0

    @property
    def num_workers(self) -> int:
        return len(self._workers)

    @property
    def num_idle(self) -> int:
        with self._idle_lock:
            return self._num_idle

    def _worker_loop(self):
        try:
            while True:
                future, func, args, kwargs = self._tasks.pop()
                with self._idle_lock:
                    self._num_idle -= 1
                try:
                    _run_task(future, func, args, kwargs)
                finally:
                    with self._idle_lock:
                        self._num_idle += 1
        except QueueStopped:
            pass

    def _add_worker(self):
        # Obey the limit.
        if len(self._workers) >= self.max_workers:
            return
        with self._idle_lock:
            self._num_idle += 1
        thread = threading.Thread(
            target=self._worker_loop,
            name=f"ntpsync-worker-{len(self._workers)}",
            daemon=True
        )
        self._workers.append(thread)
        thread.start()
        logger.debug("Started worker %d of %d", len(self._workers), self.max_workers)

    def submit(self, func: Callable, *args: Any, **kwargs: Any) -> Future:
        future = Future()

        if self.max_workers == 0:
            # If no worker will handle this, execute it immediately.
            _run_task(future, func, args, kwargs)
            return future

        # If all workers are busy, try to add another to the pool.
        if self.num_idle == 0:
            self._add_worker()

        self._tasks.push((future, func, args, kwargs))
        return future

    def shutdown(self, wait: bool = True) -> None:
        # Wakes up every worker stuck waiting for more tasks; they all exit.
        self._tasks.stop()

        for future, _, _, _ in self._tasks.drain():
            future.cancel()

        if wait:
            current = threading.current_thread()
            for thread in self._workers:
                if thread is not current:
                    thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False
