"""
Credential lifecycle management for the AliyunDrive Python SDK
"""

from .types import (
    TokenRefreshResult,
    SessionRegistration,
    UserInfo,
    CredentialState,
    TokenRefresher,
    SessionRegistrar,
    RefreshableCredential,
    RefreshTokenStore,
)

from .credential import ExpiringCredential

from .token_manager import (
    RefreshTokenManager,
    StaticTokenManager,
)

from .signature_manager import (
    SignatureManager,
    build_signing_message,
    signing_digest,
)

from .keepalive import KeepAliveScheduler

from .token_store import KeyringTokenStore

__all__ = [
    # Types
    'TokenRefreshResult',
    'SessionRegistration',
    'UserInfo',
    'CredentialState',
    'TokenRefresher',
    'SessionRegistrar',
    'RefreshableCredential',
    'RefreshTokenStore',
    
    # Managers
    'ExpiringCredential',
    'RefreshTokenManager',
    'StaticTokenManager',
    'SignatureManager',
    'build_signing_message',
    'signing_digest',
    
    # Background refresh
    'KeepAliveScheduler',
    
    # Persistence
    'KeyringTokenStore',
]
