"""
Unit tests for keyring-backed refresh token storage
"""

import pytest
from unittest.mock import patch

from keyring.errors import KeyringError, PasswordDeleteError

from aliyundrive_sdk.auth.token_store import KeyringTokenStore, STORAGE_SERVICE_NAME
from aliyundrive_sdk.auth.types import RefreshTokenStore
from aliyundrive_sdk.exceptions import StorageError, UnsupportedPlatformError


@pytest.fixture
def mock_keyring():
    with patch('aliyundrive_sdk.auth.token_store.keyring') as mock:
        yield mock


class TestKeyringTokenStore:
    """Test cases for refresh token persistence"""

    def test_load(self, mock_keyring):
        mock_keyring.get_password.return_value = "stored-token"
        store = KeyringTokenStore(account="user-1")

        assert store.load() == "stored-token"
        mock_keyring.get_password.assert_called_once_with(STORAGE_SERVICE_NAME, "user-1")

    def test_save(self, mock_keyring):
        store = KeyringTokenStore()
        store.save("rotated")
        mock_keyring.set_password.assert_called_once_with(STORAGE_SERVICE_NAME, "refresh_token", "rotated")

    def test_errors_become_storage_errors(self, mock_keyring):
        mock_keyring.get_password.side_effect = KeyringError("locked")
        mock_keyring.set_password.side_effect = KeyringError("locked")
        store = KeyringTokenStore()

        with pytest.raises(StorageError, match="read"):
            store.load()
        with pytest.raises(StorageError, match="store"):
            store.save("token")

    def test_clear(self, mock_keyring):
        store = KeyringTokenStore()
        assert store.clear() is True

        mock_keyring.delete_password.side_effect = PasswordDeleteError("missing")
        assert store.clear() is False

    @patch('aliyundrive_sdk.auth.token_store.KEYRING_AVAILABLE', False)
    def test_keyring_unavailable(self):
        with pytest.raises(UnsupportedPlatformError, match="keyring"):
            KeyringTokenStore()

    def test_satisfies_store_protocol(self, mock_keyring):
        assert isinstance(KeyringTokenStore(), RefreshTokenStore)
