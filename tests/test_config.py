"""
Unit tests for SDK configuration
"""

import json
import pytest

from aliyundrive_sdk.config import (
    SDKConfig,
    ServerConfig,
    CredentialSettings,
    DeviceSettings,
    LoggingSettings,
    load_config,
    DEFAULT_APP_ID,
    DEFAULT_SIGNATURE_TTL_SECONDS,
)
from aliyundrive_sdk.exceptions import ConfigurationError, ValidationError


class TestServerConfig:
    """Test ServerConfig validation and functionality."""

    def test_url_normalization(self):
        config = ServerConfig(base_url="https://api.example.com")
        assert config.base_url == "https://api.example.com/"

    def test_invalid_url(self):
        with pytest.raises(ValidationError, match="Invalid server URL format"):
            ServerConfig(base_url="not-a-url")

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError, match="Timeout must be positive"):
            ServerConfig(timeout=0)

    def test_invalid_retry_attempts(self):
        with pytest.raises(ValidationError, match="Retry attempts must be non-negative"):
            ServerConfig(retry_attempts=-1)


class TestCredentialSettings:
    """Test credential lifetime settings"""

    def test_defaults(self):
        settings = CredentialSettings()
        assert settings.safety_margin_seconds == 60
        assert settings.signature_ttl_seconds == DEFAULT_SIGNATURE_TTL_SECONDS
        assert settings.signature_suffix == "00"

    def test_validation(self):
        with pytest.raises(ValidationError):
            CredentialSettings(safety_margin_seconds=-1)
        with pytest.raises(ValidationError):
            CredentialSettings(signature_ttl_seconds=0)
        with pytest.raises(ValidationError):
            CredentialSettings(keepalive_interval_seconds=0)
        with pytest.raises(ValidationError):
            CredentialSettings(max_nonce_attempts=0)
        with pytest.raises(ValidationError, match="hex"):
            CredentialSettings(signature_suffix="zz")


class TestSDKConfig:
    """Test aggregate configuration loading"""

    def test_defaults(self):
        config = SDKConfig()
        assert config.device.app_id == DEFAULT_APP_ID
        assert config.device.device_id is None
        assert config.logging.level == 'WARNING'

    def test_from_dict(self):
        config = SDKConfig.from_dict({
            'server': {'base_url': 'https://drive.example.com', 'timeout': 10},
            'credentials': {'signature_ttl_seconds': 600, 'signature_suffix': '01'},
            'device': {'device_id': 'abc'},
            'logging': {'level': 'debug'},
        })
        assert config.server.base_url == 'https://drive.example.com/'
        assert config.credentials.signature_ttl_seconds == 600
        assert config.credentials.signature_suffix == '01'
        assert config.device.device_id == 'abc'
        assert config.logging.level == 'DEBUG'

    def test_from_dict_rejects_unknown(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration sections"):
            SDKConfig.from_dict({'files': {}})
        with pytest.raises(ConfigurationError, match="Invalid keys"):
            SDKConfig.from_dict({'credentials': {'ttl': 5}})
        with pytest.raises(ConfigurationError, match="must be an object"):
            SDKConfig.from_dict({'server': 'https://x'})

    def test_from_env(self):
        config = SDKConfig.from_env({
            'ALIYUNDRIVE_BASE_URL': 'https://env.example.com',
            'ALIYUNDRIVE_VERIFY_SSL': 'false',
            'ALIYUNDRIVE_SIGNATURE_TTL_SECONDS': '1800',
            'ALIYUNDRIVE_KEEPALIVE_INTERVAL_SECONDS': '2.5',
            'ALIYUNDRIVE_DEVICE_ID': 'env-device',
            'ALIYUNDRIVE_LOG_LEVEL': 'info',
            'UNRELATED': 'x',
        })
        assert config.server.base_url == 'https://env.example.com/'
        assert config.server.verify_ssl is False
        assert config.credentials.signature_ttl_seconds == 1800
        assert config.credentials.keepalive_interval_seconds == 2.5
        assert config.device.device_id == 'env-device'
        assert config.logging.level == 'INFO'

    def test_from_env_invalid_number(self):
        with pytest.raises(ConfigurationError, match="numeric"):
            SDKConfig.from_env({'ALIYUNDRIVE_TIMEOUT': 'soon'})

    def test_round_trip_dict(self):
        config = SDKConfig(device=DeviceSettings(device_id='d'), logging=LoggingSettings('ERROR'))
        assert SDKConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Test JSON file loading"""

    def test_load_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({'credentials': {'safety_margin_seconds': 30}}), encoding='utf-8')

        config = load_config(str(path))
        assert config.credentials.safety_margin_seconds == 30

    def test_default_without_path(self):
        assert load_config() == SDKConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding='utf-8')
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(str(path))

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding='utf-8')
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(str(path))
