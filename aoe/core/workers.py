"""Background worker threads for slow operations.

A worker owns one daemon thread fed by a request queue. Results come back
on a second queue in submission order and are collected by the render loop
with a non-blocking ``try_recv``.
"""

import logging
import queue
import threading
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

Req = TypeVar("Req")
Res = TypeVar("Res")

_STOP = object()


class Worker(Generic[Req, Res]):
    """Single background thread processing requests in FIFO order."""

    def __init__(
        self,
        name: str,
        handler: Callable[[Req], Res],
        on_error: Callable[[Req, Exception], Res],
    ):
        """Start the worker thread.

        Args:
            name: Thread name, used in log output
            handler: Processes one request and returns its result
            on_error: Builds a failure result when ``handler`` raises
        """
        self.name = name
        self._handler = handler
        self._on_error = on_error
        self._requests: queue.Queue = queue.Queue()
        self._results: queue.Queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self):
        while True:
            request = self._requests.get()
            if request is _STOP:
                break
            try:
                result = self._handler(request)
            except Exception as e:
                logger.warning(f"{self.name} request failed: {e}")
                result = self._on_error(request, e)
            self._results.put(result)

    def submit(self, request: Req):
        self._requests.put(request)

    def try_recv(self) -> Optional[Res]:
        """Return the next finished result without blocking."""
        try:
            return self._results.get_nowait()
        except queue.Empty:
            return None

    def recv(self, timeout: Optional[float] = None) -> Optional[Res]:
        """Block until a result is available or the timeout expires."""
        try:
            return self._results.get(timeout=timeout)
        except queue.Empty:
            return None

    def shutdown(self, timeout: Optional[float] = None):
        """Stop the thread after it finishes the requests already queued."""
        self._requests.put(_STOP)
        self._thread.join(timeout)
