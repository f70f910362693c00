"""
Background keep-alive for cached credentials

A ``KeepAliveScheduler`` owns one thread that calls
``target.refresh_or_get()`` every ``interval_seconds`` so refreshes usually
happen off the request path. Several schedulers can share one stop event,
which lets a single shutdown signal reach all of them.
"""

import logging
import threading
from typing import Optional

from ..config import DEFAULT_KEEPALIVE_INTERVAL_SECONDS
from ..exceptions import AliyunDriveSDKError, ValidationError
from .types import RefreshableCredential

logger = logging.getLogger(__name__)


class KeepAliveScheduler:
    """
    Periodic refresher with cooperative cancellation.

    Args:
        target: Credential exposing ``refresh_or_get()``
        interval_seconds: Delay between ticks
        stop_event: Shared shutdown signal; a private one is created if omitted
        name: Thread name, used in log messages
    """

    def __init__(
        self,
        target: RefreshableCredential,
        interval_seconds: float = DEFAULT_KEEPALIVE_INTERVAL_SECONDS,
        stop_event: Optional[threading.Event] = None,
        name: Optional[str] = None,
    ):
        if interval_seconds <= 0:
            raise ValidationError("Keep-alive interval must be positive")

        self.target = target
        self.interval_seconds = interval_seconds
        self.name = name or f"keepalive-{getattr(target, 'name', type(target).__name__)}"
        self._stop_event = stop_event or threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._ticks = 0
        self._failures = 0

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        """Number of refresh attempts made by the background thread."""
        with self._counter_lock:
            return self._ticks

    @property
    def failures(self) -> int:
        with self._counter_lock:
            return self._failures

    def start(self) -> 'KeepAliveScheduler':
        """Start the background thread."""
        with self._start_lock:
            if self._thread is not None:
                raise ValidationError(f"Keep-alive '{self.name}' already started", "ALREADY_STARTED")
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        logger.info(f"Keep-alive '{self.name}' started with interval {self.interval_seconds}s")
        return self

    def _run(self) -> None:
        # wait() returns True once the stop event is set
        while not self._stop_event.wait(self.interval_seconds):
            with self._counter_lock:
                self._ticks += 1
            try:
                self.target.refresh_or_get()
            except AliyunDriveSDKError as e:
                self._count_failure()
                logger.warning(f"Keep-alive '{self.name}' refresh failed, retrying next tick: {e}")
            except Exception:
                self._count_failure()
                logger.exception(f"Keep-alive '{self.name}' refresh raised unexpectedly")
        logger.info(f"Keep-alive '{self.name}' stopped")

    def _count_failure(self) -> None:
        with self._counter_lock:
            self._failures += 1

    def stop(self) -> None:
        """Signal the thread to exit. Safe to call repeatedly."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the thread to exit.

        An in-flight refresh completes (or fails) before the thread exits.

        Args:
            timeout: Maximum seconds to wait, None to wait indefinitely

        Returns:
            bool: True if the thread is no longer running
        """
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            raise ValidationError("Keep-alive thread cannot join itself", "SELF_JOIN")
        thread.join(timeout)
        return not thread.is_alive()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        self.stop()
        return self.join(timeout)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
