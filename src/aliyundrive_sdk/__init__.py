"""
AliyunDrive Python SDK
Access token and device signature lifecycle management
"""

from .version import __version__
from .crypto import (
    KeyPair,
    Signature,
    HmacDrbg,
    generate_key_pair,
    key_pair_from_scalar,
    sign_digest,
    verify_digest,
)
from .auth import (
    TokenRefreshResult,
    SessionRegistration,
    UserInfo,
    RefreshTokenManager,
    StaticTokenManager,
    SignatureManager,
    KeepAliveScheduler,
    KeyringTokenStore,
)
from .config import (
    SDKConfig,
    ServerConfig,
    CredentialSettings,
    DeviceSettings,
    LoggingSettings,
    load_config,
)
from .http_client import AliyunDriveHttpClient
from .client import AliyunDriveClient, derive_device_id
from .exceptions import (
    AliyunDriveSDKError,
    ValidationError,
    ConfigurationError,
    UnsupportedPlatformError,
    StorageError,
    ArithmeticInvariantViolation,
    NonceRejected,
    ServerCommunicationError,
    ApiError,
    TokenRefreshError,
    RefreshTransportError,
    RefreshRejected,
    SessionRegistrationFailed,
)

__all__ = [
    '__version__',
    
    # Signing
    'KeyPair',
    'Signature',
    'HmacDrbg',
    'generate_key_pair',
    'key_pair_from_scalar',
    'sign_digest',
    'verify_digest',
    
    # Credential managers
    'TokenRefreshResult',
    'SessionRegistration',
    'UserInfo',
    'RefreshTokenManager',
    'StaticTokenManager',
    'SignatureManager',
    'KeepAliveScheduler',
    'KeyringTokenStore',
    
    # Configuration
    'SDKConfig',
    'ServerConfig',
    'CredentialSettings',
    'DeviceSettings',
    'LoggingSettings',
    'load_config',
    
    # Client
    'AliyunDriveHttpClient',
    'AliyunDriveClient',
    'derive_device_id',
    
    # Exceptions
    'AliyunDriveSDKError',
    'ValidationError',
    'ConfigurationError',
    'UnsupportedPlatformError',
    'StorageError',
    'ArithmeticInvariantViolation',
    'NonceRejected',
    'ServerCommunicationError',
    'ApiError',
    'TokenRefreshError',
    'RefreshTransportError',
    'RefreshRejected',
    'SessionRegistrationFailed',
]
