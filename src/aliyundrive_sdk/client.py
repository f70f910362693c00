"""
High-level client wiring the credential managers together

``AliyunDriveClient`` owns the HTTP transport, the access token manager,
the device signature manager and one keep-alive scheduler for each. It
exposes the current credential values as request headers for whatever
layer issues the actual drive API calls.
"""

import hashlib
import logging
import threading
from typing import Dict, Optional

from .auth.keepalive import KeepAliveScheduler
from .auth.signature_manager import SignatureManager
from .auth.token_manager import RefreshTokenManager
from .auth.types import SessionRegistration
from .config import SDKConfig
from .exceptions import ValidationError
from .http_client import AliyunDriveHttpClient

logger = logging.getLogger(__name__)


def derive_device_id(user_id: str) -> str:
    """Default device id: hex SHA-256 of the user id."""
    return hashlib.sha256(user_id.encode('utf-8')).hexdigest()


class AliyunDriveClient:
    """
    Credential provider for AliyunDrive requests.

    Typical use::

        with AliyunDriveClient(refresh_token) as client:
            headers = client.credential_headers()

    Args:
        refresh_token: Initial refresh token (may be None with ``token_store``)
        config: SDK configuration; defaults are used when omitted
        http_client: Transport to use; one is created from ``config.server``
        token_store: Optional store for rotated refresh tokens
        user_id: Known user id; looked up from the API when omitted
        clock: Time source shared by both managers
    """

    def __init__(
        self,
        refresh_token: Optional[str] = None,
        config: Optional[SDKConfig] = None,
        http_client: Optional[AliyunDriveHttpClient] = None,
        token_store=None,
        user_id: Optional[str] = None,
        clock=None,
    ):
        self.config = config or SDKConfig()
        self._owns_http_client = http_client is None
        self.http_client = http_client or AliyunDriveHttpClient(self.config.server)
        self._clock = clock
        self._stop_event = threading.Event()
        self._started = False
        self._closed = False
        self._lifecycle_lock = threading.Lock()

        self.token_manager = RefreshTokenManager(
            self.http_client.refresh_access_token,
            refresh_token,
            safety_margin_seconds=self.config.credentials.safety_margin_seconds,
            clock=clock,
            token_store=token_store,
        )
        self.signature_manager: Optional[SignatureManager] = None
        self.token_keepalive: Optional[KeepAliveScheduler] = None
        self.signature_keepalive: Optional[KeepAliveScheduler] = None

        self.user_id = user_id
        self.device_id = self.config.device.device_id
        self.drive_id: Optional[str] = None

    def start(self, keepalive: bool = True) -> 'AliyunDriveClient':
        """
        Resolve the user identity and set up both credentials.

        Args:
            keepalive: Start the background refreshers

        Returns:
            AliyunDriveClient: Self, for chaining

        Raises:
            ValidationError: If the client was already started or closed
        """
        with self._lifecycle_lock:
            if self._closed:
                raise ValidationError("Client has been closed", "CLIENT_CLOSED")
            if self._started:
                raise ValidationError("Client already started", "ALREADY_STARTED")
            self._started = True

        interval = self.config.credentials.keepalive_interval_seconds
        if keepalive:
            self.token_keepalive = KeepAliveScheduler(
                self.token_manager, interval, stop_event=self._stop_event, name="keepalive-access-token"
            ).start()

        try:
            if self.user_id is None:
                user = self.http_client.get_user_info(self.token_manager.access_token(), self.device_id)
                self.user_id = user.user_id
                self.drive_id = user.default_drive_id
            if not self.device_id:
                self.device_id = derive_device_id(self.user_id)

            credentials = self.config.credentials
            self.signature_manager = SignatureManager(
                self._register_session,
                device_id=self.device_id,
                user_id=self.user_id,
                app_id=self.config.device.app_id,
                signature_ttl_seconds=credentials.signature_ttl_seconds,
                signature_suffix=credentials.signature_suffix,
                max_nonce_attempts=credentials.max_nonce_attempts,
                clock=self._clock,
            )
        except Exception:
            self.close()
            raise

        if keepalive:
            self.signature_keepalive = KeepAliveScheduler(
                self.signature_manager, interval, stop_event=self._stop_event, name="keepalive-device-signature"
            ).start()

        logger.info(f"AliyunDrive client ready for user {self.user_id}")
        return self

    def _register_session(self, public_key_hex: str, signature: str) -> SessionRegistration:
        return self.http_client.create_session(
            self.token_manager.access_token(),
            self.device_id,
            public_key_hex,
            signature,
            device_name=self.config.device.device_name,
            model_name=self.config.device.model_name,
        )

    def access_token(self) -> str:
        """Current access token."""
        return self.token_manager.access_token()

    def signature(self) -> str:
        """Current device signature header value."""
        if self.signature_manager is None:
            raise ValidationError("Client not started; call start() first", "CLIENT_NOT_STARTED")
        return self.signature_manager.signature()

    def renew_session(self) -> SessionRegistration:
        """Extend the registered device session using the current credentials."""
        signature = self.signature()
        return self.http_client.renew_session(self.access_token(), self.device_id, signature)

    def credential_headers(self) -> Dict[str, str]:
        """Headers to attach to an authenticated drive API request."""
        signature = self.signature()
        return {
            'Authorization': f'Bearer {self.access_token()}',
            'X-Device-Id': self.device_id,
            'X-Signature': signature,
        }

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Stop both keep-alive threads and release the transport.

        Idempotent. Returns only after the background threads have exited,
        so no refresh happens once this completes.
        """
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True

        self._stop_event.set()
        for scheduler in (self.token_keepalive, self.signature_keepalive):
            if scheduler is not None:
                scheduler.join(timeout)

        if self._owns_http_client:
            self.http_client.close()
        logger.info("AliyunDrive client closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
