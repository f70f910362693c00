"""
Device signature manager

Each signing cycle generates a fresh secp256k1 key pair, signs the
device-binding message ``"{app_id}:{device_id}:{user_id}:{nonce}"`` and
publishes the public key with the signature through the session
registration endpoint. The signature string is then cached as the
``X-Signature`` header value until its validity window ends.
"""

import hashlib
import logging
from typing import Optional

from ..config import (
    DEFAULT_APP_ID,
    DEFAULT_MAX_NONCE_ATTEMPTS,
    DEFAULT_SIGNATURE_SUFFIX,
    DEFAULT_SIGNATURE_TTL_SECONDS,
)
from ..crypto.secp256k1 import KeyPair, generate_key_pair, sign_digest
from ..exceptions import SessionRegistrationFailed, ValidationError
from .credential import Clock, ExpiringCredential
from .types import CredentialState, SessionRegistrar

logger = logging.getLogger(__name__)

SIGNATURE_NONCE = 0


def build_signing_message(app_id: str, device_id: str, user_id: str, nonce: int = SIGNATURE_NONCE) -> bytes:
    return f"{app_id}:{device_id}:{user_id}:{nonce}".encode('utf-8')


def signing_digest(app_id: str, device_id: str, user_id: str, nonce: int = SIGNATURE_NONCE) -> bytes:
    """SHA-256 of the device-binding message."""
    return hashlib.sha256(build_signing_message(app_id, device_id, user_id, nonce)).digest()


class SignatureManager(ExpiringCredential):
    """
    Caches the device signature and renews the device session.

    Refreshes are serialized under the same lock discipline as the access
    token. A failed registration discards the new key pair; the previous
    signature (if any) stays cached with its original expiry.
    """

    name = "device signature"

    def __init__(
        self,
        registrar: SessionRegistrar,
        device_id: str,
        user_id: str,
        app_id: str = DEFAULT_APP_ID,
        signature_ttl_seconds: int = DEFAULT_SIGNATURE_TTL_SECONDS,
        signature_suffix: str = DEFAULT_SIGNATURE_SUFFIX,
        max_nonce_attempts: int = DEFAULT_MAX_NONCE_ATTEMPTS,
        clock: Optional[Clock] = None,
        key_factory=generate_key_pair,
    ):
        super().__init__(clock)

        if not device_id:
            raise ValidationError("Device id cannot be empty")
        if not user_id:
            raise ValidationError("User id cannot be empty")
        if signature_ttl_seconds <= 0:
            raise ValidationError("Signature TTL must be positive")

        self._registrar = registrar
        self._key_factory = key_factory
        self.app_id = app_id
        self.device_id = device_id
        self.user_id = user_id
        self.signature_ttl_seconds = signature_ttl_seconds
        self.signature_suffix = signature_suffix
        self.max_nonce_attempts = max_nonce_attempts

    def signature(self, now: Optional[float] = None) -> str:
        """Return a valid signature header value, registering a new session if needed."""
        return self.refresh_or_get(now)

    @property
    def current_key_pair(self) -> Optional[KeyPair]:
        with self._lock:
            return self._state.secret_material

    def _refresh(self, now: float) -> CredentialState:
        key_pair = self._key_factory()
        digest = signing_digest(self.app_id, self.device_id, self.user_id)
        signature = sign_digest(digest, key_pair.private_scalar, max_attempts=self.max_nonce_attempts)
        header = signature.to_header(self.signature_suffix)

        try:
            registration = self._registrar(key_pair.public_key_hex(), header)
        except Exception as e:
            logger.error(f"Device session registration failed: {e}")
            raise SessionRegistrationFailed(f"Device session registration failed: {e}") from e

        if not registration.accepted:
            logger.error("Device session registration was not accepted")
            raise SessionRegistrationFailed(
                "Device session registration was not accepted",
                details={'message': registration.message}
            )

        logger.info(f"Device session registered, signature valid for {self.signature_ttl_seconds}s")
        return CredentialState(
            secret_material=key_pair,
            derived_value=header,
            expires_at=now + self.signature_ttl_seconds,
        )
