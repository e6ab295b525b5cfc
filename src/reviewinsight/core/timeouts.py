"""Bounded calls: run a function against a deadline."""

import logging
import queue
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .exceptions import OperationTimeout

logger = logging.getLogger(__name__)

COMPLETED = "completed"
TIMED_OUT = "timed_out"
FAILED = "failed"

_IDLE_SECONDS = 5.0  # an idle worker thread exits after this long


class BoundedWorker:
    """Runs submitted calls one at a time on a single daemon thread.

    A call submitted while an earlier one is still running waits in the
    queue, so calls sharing a worker never overlap. The thread is a daemon
    and never delays interpreter exit.
    """

    def __init__(self, name: str = "bounded"):
        self.name = name
        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        future: Future = Future()
        self._queue.put((future, fn, args, kwargs))
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=f"bounded-{self.name}", daemon=True)
                self._thread.start()
        return future

    def _run(self) -> None:
        while True:
            try:
                future, fn, args, kwargs = self._queue.get(timeout=_IDLE_SECONDS)
            except queue.Empty:
                with self._lock:
                    if self._queue.empty():
                        self._thread = None
                        return
                continue
            # Cancelled while queued behind an abandoned call
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)


@dataclass
class BoundedResult:
    """Outcome of a bounded call: which way it ended, and the value or error."""
    status: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == COMPLETED

    @property
    def reason(self) -> str:
        return str(self.error) if self.error else ""


def run_with_timeout(fn: Callable, timeout: float, *args, name: Optional[str] = None,
                     worker: Optional[BoundedWorker] = None, **kwargs) -> Any:
    """Run `fn(*args, **kwargs)` on a worker thread and wait at most `timeout` seconds.

    Raises OperationTimeout when the deadline passes first; exceptions raised
    by `fn` propagate unchanged. A timed-out call is abandoned, not joined,
    so the caller resumes at the deadline. Pass a shared `worker` to keep
    calls strictly sequential: a later call queues until an abandoned one
    has finished, and the wait counts against its own deadline.
    """
    label = name or getattr(fn, "__name__", "operation")
    worker = worker or BoundedWorker(label)
    future = worker.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        if not future.cancel():
            logger.warning(f"{label} exceeded its {timeout:g}s deadline and was abandoned")
        else:
            logger.warning(f"{label} did not start within its {timeout:g}s deadline")
        raise OperationTimeout(label, timeout)


def try_with_timeout(fn: Callable, timeout: float, *args, name: Optional[str] = None,
                     worker: Optional[BoundedWorker] = None, **kwargs) -> BoundedResult:
    """Like run_with_timeout but reports the outcome instead of raising."""
    try:
        value = run_with_timeout(fn, timeout, *args, name=name, worker=worker, **kwargs)
    except OperationTimeout as e:
        return BoundedResult(TIMED_OUT, error=e)
    except Exception as e:
        return BoundedResult(FAILED, error=e)
    return BoundedResult(COMPLETED, value=value)
