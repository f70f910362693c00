"""
Deterministic ECDSA over secp256k1 for AliyunDrive device sessions

Point arithmetic (base-point multiplication, verification, key generation)
is delegated to the cryptography package. Nonce derivation, the signing
equation and low-S normalization are done here so that signatures are
reproducible byte for byte.
"""

import logging
from typing import Tuple
from dataclasses import dataclass

# Import cryptography components
try:
    from cryptography.hazmat.primitives.asymmetric import ec
    from cryptography.hazmat.primitives.asymmetric.utils import Prehashed, encode_dss_signature
    from cryptography.hazmat.primitives import hashes
    from cryptography.exceptions import InvalidSignature
    CRYPTOGRAPHY_AVAILABLE = True
except ImportError:
    CRYPTOGRAPHY_AVAILABLE = False
    ec = None

from ..exceptions import (
    ArithmeticInvariantViolation,
    NonceRejected,
    UnsupportedPlatformError,
    ValidationError,
)
from .modular import (
    CURVE_ORDER,
    HALF_CURVE_ORDER,
    SCALAR_LENGTH,
    bytes_to_int,
    int_to_bytes32,
    invert,
    is_valid_scalar,
    left_pad32,
    reduce,
)
from .rfc6979 import HmacDrbg

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 64
UNCOMPRESSED_PUBLIC_KEY_PREFIX = b'\x04'
DEFAULT_MAX_NONCE_ATTEMPTS = 1024

Point = Tuple[int, int]


def _require_cryptography() -> None:
    if not CRYPTOGRAPHY_AVAILABLE:
        raise UnsupportedPlatformError(
            "Cryptography package not available - install with: pip install cryptography",
            "CRYPTOGRAPHY_UNAVAILABLE"
        )


@dataclass(frozen=True)
class Signature:
    """
    ECDSA signature in low-S form.

    Attributes:
        r: ``R.x mod n``
        s: Signature scalar, always ``<= n // 2``
    """
    r: int
    s: int

    def __post_init__(self):
        if not is_valid_scalar(self.r):
            raise ValidationError("Signature r must be in (0, n)", "INVALID_SIGNATURE_R")
        if not is_valid_scalar(self.s):
            raise ValidationError("Signature s must be in (0, n)", "INVALID_SIGNATURE_S")

    @property
    def has_high_s(self) -> bool:
        return self.s > HALF_CURVE_ORDER

    def normalize_s(self) -> 'Signature':
        """Return the low-S twin of this signature."""
        if self.has_high_s:
            return Signature(r=self.r, s=CURVE_ORDER - self.s)
        return self

    def to_bytes(self) -> bytes:
        """Compact 64-byte form: ``r || s``, each 32-byte big-endian."""
        return int_to_bytes32(self.r) + int_to_bytes32(self.s)

    def to_header(self, suffix: str = "00") -> str:
        """Hex-encode for the ``X-Signature`` header with a trailing format byte."""
        return self.to_bytes().hex() + suffix

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Signature':
        if len(data) != SIGNATURE_LENGTH:
            raise ValidationError(
                f"Signature must be exactly {SIGNATURE_LENGTH} bytes",
                "INVALID_SIGNATURE_LENGTH"
            )
        return cls(r=bytes_to_int(data[:SCALAR_LENGTH]), s=bytes_to_int(data[SCALAR_LENGTH:]))


@dataclass(frozen=True)
class KeyPair:
    """
    secp256k1 key pair owned by a signature manager.

    Attributes:
        private_scalar: Private key ``d`` with ``0 < d < n``
        public_point: ``d·G`` as affine ``(x, y)``
    """
    private_scalar: int
    public_point: Point

    def __post_init__(self):
        if not is_valid_scalar(self.private_scalar):
            raise ValidationError("Private scalar must be in (0, n)", "INVALID_PRIVATE_KEY")

    @property
    def private_key_bytes(self) -> bytes:
        return int_to_bytes32(self.private_scalar)

    def public_key_bytes(self) -> bytes:
        """Uncompressed SEC1 encoding ``04 || X || Y``."""
        x, y = self.public_point
        return UNCOMPRESSED_PUBLIC_KEY_PREFIX + int_to_bytes32(x) + int_to_bytes32(y)

    def public_key_hex(self) -> str:
        return self.public_key_bytes().hex()

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key_hex()[:18]}...)"


def scalar_base_mult(scalar: int) -> Point:
    """
    Compute ``scalar·G``.

    Raises:
        ValidationError: If ``scalar`` is outside ``(0, n)``
    """
    _require_cryptography()
    if not is_valid_scalar(scalar):
        raise ValidationError("Scalar must be in (0, n)", "INVALID_SCALAR")
    numbers = ec.derive_private_key(scalar, ec.SECP256K1()).public_key().public_numbers()
    return numbers.x, numbers.y


def key_pair_from_scalar(private_scalar: int) -> KeyPair:
    return KeyPair(private_scalar=private_scalar, public_point=scalar_base_mult(private_scalar))


def generate_key_pair() -> KeyPair:
    """
    Generate a fresh secp256k1 key pair from the platform CSPRNG.

    Returns:
        KeyPair: The generated key pair

    Raises:
        UnsupportedPlatformError: If cryptography package is not available
    """
    _require_cryptography()
    private_key = ec.generate_private_key(ec.SECP256K1())
    public_numbers = private_key.public_key().public_numbers()
    return KeyPair(
        private_scalar=private_key.private_numbers().private_value,
        public_point=(public_numbers.x, public_numbers.y),
    )


def _signature_from_nonce(k: int, z: int, d: int) -> Signature:
    """Apply the ECDSA signing equation for one nonce candidate."""
    if not is_valid_scalar(k):
        raise NonceRejected("Nonce candidate outside (0, n)")

    x, _ = scalar_base_mult(k)
    r = reduce(x)
    if r == 0:
        raise NonceRejected("Nonce candidate produced r == 0")

    s = reduce(invert(k) * reduce(z + r * d))
    if s == 0:
        raise NonceRejected("Nonce candidate produced s == 0")

    return Signature(r=r, s=s)


def sign_digest(message_digest: bytes, private_scalar: int,
                max_attempts: int = DEFAULT_MAX_NONCE_ATTEMPTS) -> Signature:
    """
    Sign a message digest with a deterministic nonce.

    The digest is used directly as ``z`` (left-padded to 32 bytes, not
    reduced). The result is always low-S.

    Args:
        message_digest: Message hash, at most 32 bytes
        private_scalar: Private key ``d`` with ``0 < d < n``
        max_attempts: Upper bound on nonce candidates to try

    Returns:
        Signature: Normalized ``(r, s)``

    Raises:
        ValidationError: If the digest or private scalar is invalid
        ArithmeticInvariantViolation: If no candidate is accepted within
            ``max_attempts``
    """
    if not isinstance(message_digest, (bytes, bytearray)):
        raise ValidationError("Message digest must be bytes", "INVALID_DIGEST_TYPE")
    if not is_valid_scalar(private_scalar):
        raise ValidationError("Private scalar must be in (0, n)", "INVALID_PRIVATE_KEY")

    padded_digest = left_pad32(bytes(message_digest))
    z = bytes_to_int(padded_digest)
    drbg = HmacDrbg.for_signature(padded_digest, int_to_bytes32(private_scalar))

    for attempt in range(max_attempts):
        try:
            signature = _signature_from_nonce(drbg.generate(), z, private_scalar)
        except NonceRejected as e:
            logger.debug(f"Nonce attempt {attempt + 1} rejected: {e}")
            drbg.reseed(b'')
            continue
        return signature.normalize_s()

    raise ArithmeticInvariantViolation(
        f"No acceptable nonce after {max_attempts} attempts",
        "NONCE_SEARCH_EXHAUSTED",
        {'max_attempts': max_attempts}
    )


def verify_digest(public_point: Point, message_digest: bytes, signature: Signature) -> bool:
    """
    Verify a signature against a public point.

    Args:
        public_point: Signer's public key ``(x, y)``
        message_digest: Message hash that was signed, at most 32 bytes
        signature: Signature to check

    Returns:
        bool: True if the signature is valid
    """
    _require_cryptography()
    x, y = public_point
    try:
        public_key = ec.EllipticCurvePublicNumbers(x, y, ec.SECP256K1()).public_key()
    except ValueError as e:
        raise ValidationError(f"Public point is not on secp256k1: {e}", "INVALID_PUBLIC_KEY")

    try:
        public_key.verify(
            encode_dss_signature(signature.r, signature.s),
            left_pad32(bytes(message_digest)),
            ec.ECDSA(Prehashed(hashes.SHA256())),
        )
        return True
    except InvalidSignature:
        return False


def parse_private_key_hex(private_key_hex: str) -> int:
    """Parse a hex private key (with or without ``0x``) into a valid scalar."""
    value = private_key_hex.strip().lower()
    if value.startswith('0x'):
        value = value[2:]
    try:
        scalar = int(value, 16)
    except ValueError:
        raise ValidationError("Private key must be hex encoded", "INVALID_PRIVATE_KEY_FORMAT")
    if not is_valid_scalar(scalar):
        raise ValidationError("Private scalar must be in (0, n)", "INVALID_PRIVATE_KEY")
    return scalar

