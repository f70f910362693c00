"""
Exception classes for the AliyunDrive Python SDK
"""

from typing import Optional, Dict, Any


class AliyunDriveSDKError(Exception):
    """Base exception for all AliyunDrive SDK errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(AliyunDriveSDKError):
    """Exception raised for validation failures"""
    pass


class ConfigurationError(AliyunDriveSDKError):
    """Exception raised when configuration cannot be loaded or is invalid"""
    pass


class UnsupportedPlatformError(AliyunDriveSDKError):
    """Exception raised when a required library or platform feature is missing"""
    pass


class StorageError(AliyunDriveSDKError):
    """Exception raised for refresh token storage errors"""
    pass


class ArithmeticInvariantViolation(AliyunDriveSDKError):
    """
    Raised when scalar arithmetic breaks an invariant that valid curve
    parameters guarantee (non-invertible element, exhausted nonce search).
    Never corrected silently.
    """
    
    def __init__(self, message: str, error_code: str = "ARITHMETIC_INVARIANT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class NonceRejected(AliyunDriveSDKError):
    """Nonce candidate produced an unusable signature; retried by the signer"""
    
    def __init__(self, message: str, error_code: str = "NONCE_REJECTED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ServerCommunicationError(AliyunDriveSDKError):
    """Exception raised for server communication errors"""
    
    def __init__(self, message: str, error_code: str = "SERVER_ERROR", 
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class ApiError(ServerCommunicationError):
    """
    Error body returned by the drive API.
    
    The server reports failures as ``{"code": ..., "message": ...}``; the
    code is kept verbatim in ``error_code``.
    """
    
    def __init__(self, code: str, message: str, http_status: int = 0,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(f'{{"code":"{code}","message":"{message}"}}', code, http_status, details)
        self.code = code
        self.api_message = message


class TokenRefreshError(AliyunDriveSDKError):
    """Access token refresh failed; the cached token was left untouched"""
    pass


class RefreshTransportError(TokenRefreshError):
    """Refresh call failed in transport (network, timeout, malformed response)"""
    
    def __init__(self, message: str, error_code: str = "REFRESH_TRANSPORT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class RefreshRejected(TokenRefreshError):
    """Server rejected the refresh token"""
    
    def __init__(self, message: str, error_code: str = "REFRESH_REJECTED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class SessionRegistrationFailed(AliyunDriveSDKError):
    """Device session registration was not accepted"""
    
    def __init__(self, message: str, error_code: str = "SESSION_REGISTRATION_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
