"""
Expiring credential cache shared by the token and signature managers

A credential is either VALID (``now < expires_at``) or EXPIRED. Reads and
refreshes go through one exclusive lock per credential, so concurrent
callers that find it expired trigger a single refresh. Callers that were
blocked behind that refresh take its outcome, the new value or the error
it raised, instead of issuing another backend call.
"""

import time
import logging
import threading
from typing import Callable, Optional

from .types import CredentialState

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ExpiringCredential:
    """
    Base class for a lazily refreshed, time-limited credential.

    Subclasses implement ``_refresh(now)``, which must return the new
    ``CredentialState`` or raise. State is only replaced after a successful
    refresh, so a failure leaves the previous value and expiry in place.
    """

    name = "credential"

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or time.time
        self._lock = threading.Lock()
        self._state = CredentialState()
        # Completed refresh attempts and the error of the latest one, if it failed
        self._attempts = 0
        self._last_error: Optional[BaseException] = None

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    @property
    def expires_at(self) -> float:
        with self._lock:
            return self._state.expires_at

    def is_valid(self, now: Optional[float] = None) -> bool:
        now = self._now(now)
        with self._lock:
            return self._state.derived_value is not None and now < self._state.expires_at

    def refresh_or_get(self, now: Optional[float] = None) -> str:
        """
        Return the cached value, refreshing it first if it has expired.

        Args:
            now: Timestamp to compare against the expiry (defaults to the clock)

        Returns:
            str: A value that was valid at ``now``

        Raises:
            AliyunDriveSDKError: The refresh error, shared with every caller
                that was waiting on the same attempt
        """
        now = self._now(now)
        observed_attempts = self._attempts
        with self._lock:
            if now < self._state.expires_at and self._state.derived_value is not None:
                logger.debug(f"{self.name} cache hit")
                return self._state.derived_value

            if self._attempts != observed_attempts and self._last_error is not None:
                logger.debug(f"{self.name} refresh failed while waiting, sharing its error")
                raise self._last_error

            logger.debug(f"{self.name} expired, refreshing")
            return self._attempt_refresh(now)

    def force_refresh(self, now: Optional[float] = None) -> str:
        """Refresh regardless of the current expiry."""
        now = self._now(now)
        with self._lock:
            return self._attempt_refresh(now)

    def _attempt_refresh(self, now: float) -> str:
        # Caller holds self._lock
        try:
            state = self._refresh(now)
        except Exception as e:
            self._last_error = e
            raise
        finally:
            self._attempts += 1

        self._last_error = None
        self._state = state
        return state.derived_value

    def _refresh(self, now: float) -> CredentialState:
        raise NotImplementedError
