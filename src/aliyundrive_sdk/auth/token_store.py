"""
Refresh token persistence in the OS keychain

The server rotates the refresh token on every refresh. Without persisting
the rotated value, a restarted process would start from a token the
server has already retired.
"""

import logging
from typing import Optional

# Keyring import for OS keychain
try:
    import keyring
    from keyring.errors import KeyringError, PasswordDeleteError
    KEYRING_AVAILABLE = True
except ImportError:
    KEYRING_AVAILABLE = False
    keyring = None
    KeyringError = Exception
    PasswordDeleteError = Exception

from ..exceptions import StorageError, UnsupportedPlatformError

logger = logging.getLogger(__name__)

STORAGE_SERVICE_NAME = "AliyunDrive SDK"
DEFAULT_ACCOUNT_NAME = "refresh_token"


class KeyringTokenStore:
    """
    Stores the current refresh token under one keyring entry.

    Args:
        account: Keyring account name, e.g. a user id
        service_name: Keyring service name
    """

    def __init__(self, account: str = DEFAULT_ACCOUNT_NAME, service_name: str = STORAGE_SERVICE_NAME):
        if not KEYRING_AVAILABLE:
            raise UnsupportedPlatformError(
                "Token storage requires 'keyring' package. Install with: pip install keyring",
                "KEYRING_UNAVAILABLE"
            )
        self.account = account
        self.service_name = service_name

    def load(self) -> Optional[str]:
        try:
            return keyring.get_password(self.service_name, self.account)
        except KeyringError as e:
            raise StorageError(f"Failed to read refresh token from keyring: {e}", "KEYRING_READ_ERROR")

    def save(self, refresh_token: str) -> None:
        try:
            keyring.set_password(self.service_name, self.account, refresh_token)
        except KeyringError as e:
            raise StorageError(f"Failed to store refresh token in keyring: {e}", "KEYRING_WRITE_ERROR")
        logger.debug(f"Stored rotated refresh token for account {self.account}")

    def clear(self) -> bool:
        """Delete the stored token. Returns False if nothing was stored."""
        try:
            keyring.delete_password(self.service_name, self.account)
            return True
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise StorageError(f"Failed to delete refresh token from keyring: {e}", "KEYRING_DELETE_ERROR")
