"""
Type definitions shared by the credential managers

The managers never talk HTTP themselves; they call the two remote
operations through the protocols below so that the transport can be
swapped (or faked in tests).
"""

from typing import Any, Optional, Protocol, runtime_checkable
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenRefreshResult:
    """
    Result of exchanging a refresh token.

    Attributes:
        access_token: New bearer token
        refresh_token: Rotated refresh token to use next time
        expires_in: Access token lifetime in seconds
    """
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class SessionRegistration:
    """Outcome of publishing a device public key and signature."""
    accepted: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class UserInfo:
    user_id: str
    default_drive_id: str
    nick_name: Optional[str] = None
    user_name: Optional[str] = None


@dataclass
class CredentialState:
    """
    Mutable state of one cached credential.

    Only the owning manager writes this, and only while holding its lock.
    ``expires_at`` starts at the epoch so the first read refreshes.
    """
    secret_material: Any = None
    derived_value: Optional[str] = None
    expires_at: float = 0.0


@runtime_checkable
class TokenRefresher(Protocol):
    """Exchange a refresh token for a new access token"""

    def __call__(self, refresh_token: str) -> TokenRefreshResult:
        ...


@runtime_checkable
class SessionRegistrar(Protocol):
    """Publish a device public key with its signature"""

    def __call__(self, public_key_hex: str, signature: str) -> SessionRegistration:
        ...


@runtime_checkable
class RefreshableCredential(Protocol):
    """Anything a keep-alive scheduler can drive"""

    def refresh_or_get(self, now: Optional[float] = None) -> str:
        ...


@runtime_checkable
class RefreshTokenStore(Protocol):
    """Persistence for rotated refresh tokens"""

    def load(self) -> Optional[str]:
        ...

    def save(self, refresh_token: str) -> None:
        ...
