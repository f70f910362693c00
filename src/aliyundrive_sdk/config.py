"""
Configuration management for the AliyunDrive Python SDK

Settings are plain dataclasses validated on construction. They can be
loaded from a JSON file or from ``ALIYUNDRIVE_*`` environment variables.
"""

import os
import json
from typing import Dict, Optional, Any, Mapping
from dataclasses import dataclass, field, asdict
from pathlib import Path
from urllib.parse import urlparse

from .exceptions import ConfigurationError, ValidationError

DEFAULT_BASE_URL = "https://api.aliyundrive.com/"

# Web client application id, mixed into the device signing message
DEFAULT_APP_ID = "5dde4e1bdf9e4966b387ba58f4b3fdc3"
DEFAULT_DEVICE_NAME = "Chrome浏览器"
DEFAULT_MODEL_NAME = "Mac OS网页版"

DEFAULT_SAFETY_MARGIN_SECONDS = 60
DEFAULT_SIGNATURE_TTL_SECONDS = 82800
DEFAULT_KEEPALIVE_INTERVAL_SECONDS = 10.0
DEFAULT_MAX_NONCE_ATTEMPTS = 1024
DEFAULT_SIGNATURE_SUFFIX = "00"

ENV_PREFIX = "ALIYUNDRIVE_"

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class ServerConfig:
    """Configuration for the drive API connection."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3

    def __post_init__(self):
        """Validate server configuration."""
        if not self.base_url:
            raise ValidationError("Server base_url cannot be empty")

        # Ensure base_url ends with /
        if not self.base_url.endswith('/'):
            self.base_url += '/'

        # Validate URL format
        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid server URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


@dataclass
class CredentialSettings:
    """
    Lifetimes and refresh cadence for the two cached credentials.

    Attributes:
        safety_margin_seconds: Subtracted from the server's token lifetime
        signature_ttl_seconds: Validity window of a registered device signature
        keepalive_interval_seconds: Tick interval of the background refreshers
        max_nonce_attempts: Cap on nonce candidates per signature
        signature_suffix: Hex format byte appended to the signature header
    """
    safety_margin_seconds: int = DEFAULT_SAFETY_MARGIN_SECONDS
    signature_ttl_seconds: int = DEFAULT_SIGNATURE_TTL_SECONDS
    keepalive_interval_seconds: float = DEFAULT_KEEPALIVE_INTERVAL_SECONDS
    max_nonce_attempts: int = DEFAULT_MAX_NONCE_ATTEMPTS
    signature_suffix: str = DEFAULT_SIGNATURE_SUFFIX

    def __post_init__(self):
        if self.safety_margin_seconds < 0:
            raise ValidationError("Safety margin must be non-negative")
        if self.signature_ttl_seconds <= 0:
            raise ValidationError("Signature TTL must be positive")
        if self.keepalive_interval_seconds <= 0:
            raise ValidationError("Keep-alive interval must be positive")
        if self.max_nonce_attempts < 1:
            raise ValidationError("Max nonce attempts must be at least 1")
        try:
            bytes.fromhex(self.signature_suffix)
        except ValueError:
            raise ValidationError(f"Signature suffix must be hex: {self.signature_suffix!r}")


@dataclass
class DeviceSettings:
    """Identity presented when registering a device session."""
    app_id: str = DEFAULT_APP_ID
    device_name: str = DEFAULT_DEVICE_NAME
    model_name: str = DEFAULT_MODEL_NAME
    device_id: Optional[str] = None

    def __post_init__(self):
        if not self.app_id:
            raise ValidationError("App id cannot be empty")


@dataclass
class LoggingSettings:
    """Logging configuration"""
    level: str = 'WARNING'

    def __post_init__(self):
        self.level = self.level.upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ValidationError(f"Invalid log level: {self.level}")


@dataclass
class SDKConfig:
    """Top-level SDK configuration"""
    server: ServerConfig = field(default_factory=ServerConfig)
    credentials: CredentialSettings = field(default_factory=CredentialSettings)
    device: DeviceSettings = field(default_factory=DeviceSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SDKConfig':
        """
        Build a configuration from a nested dictionary.

        Unknown sections or keys raise ``ConfigurationError`` rather than
        being ignored.

        Args:
            data: Mapping with optional ``server``, ``credentials``, ``device``
                and ``logging`` sections

        Returns:
            SDKConfig: Parsed configuration
        """
        sections = {
            'server': ServerConfig,
            'credentials': CredentialSettings,
            'device': DeviceSettings,
            'logging': LoggingSettings,
        }

        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}", "UNKNOWN_SECTION")

        kwargs = {}
        for name, section_cls in sections.items():
            section = data.get(name) or {}
            if not isinstance(section, Mapping):
                raise ConfigurationError(f"Configuration section '{name}' must be an object", "INVALID_SECTION")
            try:
                kwargs[name] = section_cls(**section)
            except TypeError as e:
                raise ConfigurationError(f"Invalid keys in section '{name}': {e}", "INVALID_SECTION")
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SDKConfig':
        """
        Build a configuration from ``ALIYUNDRIVE_*`` environment variables.

        Recognised variables: ``BASE_URL``, ``TIMEOUT``, ``VERIFY_SSL``,
        ``RETRY_ATTEMPTS``, ``SAFETY_MARGIN_SECONDS``, ``SIGNATURE_TTL_SECONDS``,
        ``KEEPALIVE_INTERVAL_SECONDS``, ``SIGNATURE_SUFFIX``, ``APP_ID``,
        ``DEVICE_ID``, ``DEVICE_NAME``, ``MODEL_NAME``, ``LOG_LEVEL``.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        data: Dict[str, Dict[str, Any]] = {'server': {}, 'credentials': {}, 'device': {}, 'logging': {}}
        try:
            if get('BASE_URL'):
                data['server']['base_url'] = get('BASE_URL')
            if get('TIMEOUT'):
                data['server']['timeout'] = float(get('TIMEOUT'))
            if get('VERIFY_SSL'):
                data['server']['verify_ssl'] = get('VERIFY_SSL').lower() not in ('0', 'false', 'no')
            if get('RETRY_ATTEMPTS'):
                data['server']['retry_attempts'] = int(get('RETRY_ATTEMPTS'))
            if get('SAFETY_MARGIN_SECONDS'):
                data['credentials']['safety_margin_seconds'] = int(get('SAFETY_MARGIN_SECONDS'))
            if get('SIGNATURE_TTL_SECONDS'):
                data['credentials']['signature_ttl_seconds'] = int(get('SIGNATURE_TTL_SECONDS'))
            if get('KEEPALIVE_INTERVAL_SECONDS'):
                data['credentials']['keepalive_interval_seconds'] = float(get('KEEPALIVE_INTERVAL_SECONDS'))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment value: {e}", "INVALID_ENV_VALUE")

        if get('SIGNATURE_SUFFIX'):
            data['credentials']['signature_suffix'] = get('SIGNATURE_SUFFIX')
        for key, name in (('app_id', 'APP_ID'), ('device_id', 'DEVICE_ID'),
                          ('device_name', 'DEVICE_NAME'), ('model_name', 'MODEL_NAME')):
            if get(name):
                data['device'][key] = get(name)
        if get('LOG_LEVEL'):
            data['logging']['level'] = get('LOG_LEVEL')

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[str] = None) -> SDKConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON file. When None, defaults are returned.

    Returns:
        SDKConfig: Parsed configuration

    Raises:
        ConfigurationError: If the file is missing or not valid JSON
    """
    if path is None:
        return SDKConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}", "CONFIG_NOT_FOUND")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file: {e}", "INVALID_CONFIG_JSON")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}", "CONFIG_READ_ERROR")

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a JSON object", "INVALID_CONFIG_ROOT")

    return SDKConfig.from_dict(data)
