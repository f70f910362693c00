"""
Unit tests for the access token managers
"""

import threading
import time
import pytest
from unittest.mock import MagicMock

from aliyundrive_sdk.auth.token_manager import RefreshTokenManager, StaticTokenManager
from aliyundrive_sdk.auth.types import TokenRefreshResult
from aliyundrive_sdk.exceptions import (
    RefreshRejected,
    RefreshTransportError,
    StorageError,
    ValidationError,
)


class FakeRefresher:
    """Refresh backend that counts invocations"""

    def __init__(self, expires_in=3600, delay=0.0):
        self.expires_in = expires_in
        self.delay = delay
        self.calls = []
        self.error = None
        self._lock = threading.Lock()

    def __call__(self, refresh_token):
        with self._lock:
            self.calls.append(refresh_token)
            count = len(self.calls)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return TokenRefreshResult(
            access_token=f"access-{count}",
            refresh_token=f"refresh-{count}",
            expires_in=self.expires_in,
        )


class TestStaticTokenManager:
    """Test cases for the fixed token manager"""

    def test_returns_fixed_token(self):
        manager = StaticTokenManager("fixed")
        assert manager.access_token() == "fixed"
        assert manager.refresh_or_get(now=1e12) == "fixed"

    def test_rejects_empty_token(self):
        with pytest.raises(ValidationError):
            StaticTokenManager("")


class TestRefreshTokenManager:
    """Test cases for the refreshing access token cache"""

    def test_first_read_refreshes(self):
        """Test a new manager starts expired and refreshes on first use"""
        refresher = FakeRefresher()
        manager = RefreshTokenManager(refresher, "initial")

        assert not manager.is_valid(now=0)
        assert manager.access_token(now=1000.0) == "access-1"
        assert refresher.calls == ["initial"]
        assert manager.refresh_token == "refresh-1"

    def test_expiry_window_with_safety_margin(self):
        """Test cached until now + expires_in - margin, then exactly one refresh"""
        refresher = FakeRefresher(expires_in=3600)
        manager = RefreshTokenManager(refresher, "initial", safety_margin_seconds=60)
        start = 1000.0

        assert manager.access_token(now=start) == "access-1"
        assert manager.expires_at == start + 3540

        assert manager.access_token(now=start + 3539) == "access-1"
        assert len(refresher.calls) == 1

        assert manager.access_token(now=start + 3541) == "access-2"
        assert len(refresher.calls) == 2
        assert refresher.calls[1] == "refresh-1"

    def test_uses_clock_when_now_omitted(self):
        clock = MagicMock(return_value=500.0)
        refresher = FakeRefresher(expires_in=100)
        manager = RefreshTokenManager(refresher, "initial", safety_margin_seconds=10, clock=clock)

        manager.access_token()
        assert manager.expires_at == 590.0

        clock.return_value = 589.0
        manager.access_token()
        assert len(refresher.calls) == 1

        clock.return_value = 590.0
        manager.access_token()
        assert len(refresher.calls) == 2

    def test_concurrent_readers_share_one_refresh(self):
        """Test N concurrent reads of an expired token cause one backend call"""
        refresher = FakeRefresher(delay=0.05)
        manager = RefreshTokenManager(refresher, "initial")
        thread_count = 16
        barrier = threading.Barrier(thread_count)
        results = []
        results_lock = threading.Lock()

        def reader():
            barrier.wait()
            value = manager.access_token(now=1000.0)
            with results_lock:
                results.append(value)

        threads = [threading.Thread(target=reader) for _ in range(thread_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert len(refresher.calls) == 1
        assert results == ["access-1"] * thread_count

    def test_rejected_refresh_leaves_state(self):
        """Test a failed refresh propagates and keeps the previous state"""
        refresher = FakeRefresher(expires_in=100)
        manager = RefreshTokenManager(refresher, "initial", safety_margin_seconds=0)
        manager.access_token(now=0)
        expires_at = manager.expires_at

        refresher.error = RefreshRejected("refresh token revoked")
        with pytest.raises(RefreshRejected, match="revoked"):
            manager.access_token(now=200)

        assert manager.expires_at == expires_at
        assert manager.refresh_token == "refresh-1"
        assert not manager.is_valid(now=200)

        # next read retries rather than reusing the stale token
        refresher.error = None
        assert manager.access_token(now=201) == "access-3"
        assert refresher.calls[-1] == "refresh-1"

    def test_unexpected_error_is_wrapped(self):
        refresher = FakeRefresher()
        refresher.error = RuntimeError("socket closed")
        manager = RefreshTokenManager(refresher, "initial")

        with pytest.raises(RefreshTransportError, match="socket closed") as exc_info:
            manager.access_token(now=0)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_concurrent_failure_reaches_every_caller(self):
        """Test callers waiting on a failed refresh share its error"""
        refresher = FakeRefresher(delay=0.1)
        refresher.error = RefreshTransportError("timeout")
        manager = RefreshTokenManager(refresher, "initial")
        thread_count = 8
        barrier = threading.Barrier(thread_count)
        errors = []
        errors_lock = threading.Lock()

        def reader():
            barrier.wait()
            try:
                manager.access_token(now=0)
            except RefreshTransportError as e:
                with errors_lock:
                    errors.append(e)

        threads = [threading.Thread(target=reader) for _ in range(thread_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert len(errors) == thread_count
        assert len(refresher.calls) == 1

        # a later read starts a fresh attempt
        refresher.error = None
        refresher.delay = 0
        assert manager.access_token(now=1) == "access-2"
        assert len(refresher.calls) == 2

    def test_invalid_refresh_result(self):
        """Test empty tokens or non-positive lifetimes are rejections"""
        manager = RefreshTokenManager(
            MagicMock(return_value=TokenRefreshResult("", "r", 100)), "initial"
        )
        with pytest.raises(RefreshRejected, match="access token"):
            manager.access_token(now=0)

        manager = RefreshTokenManager(
            MagicMock(return_value=TokenRefreshResult("a", "r", 0)), "initial"
        )
        with pytest.raises(RefreshRejected, match="lifetime"):
            manager.access_token(now=0)

    def test_keeps_refresh_token_when_not_rotated(self):
        manager = RefreshTokenManager(
            MagicMock(return_value=TokenRefreshResult("a", "", 100)), "initial"
        )
        manager.access_token(now=0)
        assert manager.refresh_token == "initial"

    def test_validation(self):
        with pytest.raises(ValidationError, match="Refresh token"):
            RefreshTokenManager(FakeRefresher(), "")
        with pytest.raises(ValidationError, match="Safety margin"):
            RefreshTokenManager(FakeRefresher(), "initial", safety_margin_seconds=-1)


class TestTokenStoreIntegration:
    """Test cases for persisting rotated refresh tokens"""

    def test_loads_initial_token_from_store(self):
        store = MagicMock()
        store.load.return_value = "stored"
        refresher = FakeRefresher()

        manager = RefreshTokenManager(refresher, token_store=store)
        manager.access_token(now=0)

        assert refresher.calls == ["stored"]

    def test_saves_rotated_token(self):
        store = MagicMock()
        manager = RefreshTokenManager(FakeRefresher(), "initial", token_store=store)
        manager.access_token(now=0)

        store.save.assert_called_once_with("refresh-1")

    def test_store_failure_does_not_fail_refresh(self):
        store = MagicMock()
        store.save.side_effect = StorageError("keychain locked")
        manager = RefreshTokenManager(FakeRefresher(), "initial", token_store=store)

        assert manager.access_token(now=0) == "access-1"
        assert manager.refresh_token == "refresh-1"

    def test_empty_store_requires_token(self):
        store = MagicMock()
        store.load.return_value = None
        with pytest.raises(ValidationError):
            RefreshTokenManager(FakeRefresher(), token_store=store)
