"""
Access token managers

``RefreshTokenManager`` keeps a bearer token valid by exchanging the
refresh token whenever the cached access token has expired.
``StaticTokenManager`` returns a fixed token for callers that manage
tokens elsewhere.
"""

import logging
from typing import Optional

from ..config import DEFAULT_SAFETY_MARGIN_SECONDS
from ..exceptions import (
    RefreshRejected,
    RefreshTransportError,
    StorageError,
    TokenRefreshError,
    ValidationError,
)
from .credential import Clock, ExpiringCredential
from .types import CredentialState, RefreshTokenStore, TokenRefresher

logger = logging.getLogger(__name__)


class StaticTokenManager:
    """
    Token manager that always returns the same access token.

    Suited to short-lived scripts that already hold a valid token and do
    not want to spend a refresh.
    """

    def __init__(self, access_token: str):
        if not access_token:
            raise ValidationError("Access token cannot be empty")
        self._access_token = access_token

    def access_token(self, now: Optional[float] = None) -> str:
        return self._access_token

    def refresh_or_get(self, now: Optional[float] = None) -> str:
        return self._access_token


class RefreshTokenManager(ExpiringCredential):
    """
    Caches an access token derived from a refresh token.

    The access token is refreshed lazily: a read that finds it expired
    performs exactly one refresh while holding the lock, and concurrent
    readers wait for that result. The new expiry is
    ``now + expires_in - safety_margin_seconds``.
    """

    name = "access token"

    def __init__(
        self,
        refresher: TokenRefresher,
        refresh_token: Optional[str] = None,
        safety_margin_seconds: int = DEFAULT_SAFETY_MARGIN_SECONDS,
        clock: Optional[Clock] = None,
        token_store: Optional[RefreshTokenStore] = None,
    ):
        """
        Initialize the manager.

        Args:
            refresher: Callable exchanging a refresh token for a
                ``TokenRefreshResult``
            refresh_token: Initial refresh token; loaded from ``token_store``
                when omitted
            safety_margin_seconds: Seconds subtracted from the server lifetime
            clock: Time source returning epoch seconds
            token_store: Optional store receiving every rotated refresh token
        """
        super().__init__(clock)

        if refresh_token is None and token_store is not None:
            refresh_token = token_store.load()
        if not refresh_token:
            raise ValidationError("Refresh token cannot be empty", "MISSING_REFRESH_TOKEN")
        if safety_margin_seconds < 0:
            raise ValidationError("Safety margin must be non-negative")

        self._refresher = refresher
        self._token_store = token_store
        self.safety_margin_seconds = safety_margin_seconds
        self._state = CredentialState(secret_material=refresh_token)

    def access_token(self, now: Optional[float] = None) -> str:
        """Return a valid access token, refreshing if needed."""
        return self.refresh_or_get(now)

    @property
    def refresh_token(self) -> str:
        with self._lock:
            return self._state.secret_material

    def _refresh(self, now: float) -> CredentialState:
        try:
            result = self._refresher(self._state.secret_material)
        except TokenRefreshError as e:
            logger.error(f"Access token refresh failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Access token refresh failed: {e}")
            raise RefreshTransportError(f"Access token refresh failed: {e}") from e

        if not result.access_token:
            raise RefreshRejected("Refresh response did not contain an access token")
        if result.expires_in <= 0:
            raise RefreshRejected(
                f"Refresh response has non-positive lifetime: {result.expires_in}",
                details={'expires_in': result.expires_in}
            )

        refresh_token = result.refresh_token or self._state.secret_material
        if self._token_store is not None and refresh_token != self._state.secret_material:
            try:
                self._token_store.save(refresh_token)
            except StorageError as e:
                logger.error(f"Could not persist rotated refresh token: {e}")

        expires_at = now + result.expires_in - self.safety_margin_seconds
        logger.info(f"Access token refreshed, valid for {result.expires_in - self.safety_margin_seconds}s")
        return CredentialState(
            secret_material=refresh_token,
            derived_value=result.access_token,
            expires_at=expires_at,
        )
