"""
Deterministic nonce generation (RFC 6979 HMAC-DRBG, HMAC-SHA256)

The session registration endpoint only accepts signatures produced with
exactly this nonce derivation, so the byte layout of the seed and the order
of HMAC updates must not change.
"""

import hmac
import hashlib

from .modular import CURVE_ORDER, bytes_to_int, int_to_bytes32, left_pad32, reduce

DRBG_BLOCK_LENGTH = 32


def build_seed(message_digest: bytes, private_key: bytes) -> bytes:
    """
    Build the initial keying material for the generator.

    Args:
        message_digest: Message hash (at most 32 bytes)
        private_key: Private scalar encoding (at most 32 bytes)

    Returns:
        bytes: ``pad32(private_key) || pad32(int(message_digest) mod n)``
    """
    z = reduce(bytes_to_int(left_pad32(message_digest)), CURVE_ORDER)
    return left_pad32(private_key) + int_to_bytes32(z)


class HmacDrbg:
    """
    HMAC-SHA256 deterministic byte generator.

    ``V`` starts as ``0x01 * 32`` and ``K`` as ``0x00 * 32``.
    """

    def __init__(self):
        self.v = b'\x01' * DRBG_BLOCK_LENGTH
        self.k = b'\x00' * DRBG_BLOCK_LENGTH

    @classmethod
    def for_signature(cls, message_digest: bytes, private_key: bytes) -> 'HmacDrbg':
        """Create a generator seeded from a digest and a private scalar."""
        drbg = cls()
        drbg.reseed(build_seed(message_digest, private_key))
        return drbg

    def _hmac(self, *parts: bytes) -> bytes:
        mac = hmac.new(self.k, digestmod=hashlib.sha256)
        for part in parts:
            mac.update(part)
        return mac.digest()

    def reseed(self, extra: bytes = b'') -> None:
        """
        Mix ``extra`` into the state.

        An empty ``extra`` performs a single ``0x00`` round, which is the
        RFC 6979 step taken after a rejected candidate.
        """
        self.k = self._hmac(self.v, b'\x00', extra)
        self.v = self._hmac(self.v)
        if extra:
            self.k = self._hmac(self.v, b'\x01', extra)
            self.v = self._hmac(self.v)

    def generate(self) -> int:
        """Advance ``V`` and return it as a big-endian integer candidate."""
        self.v = self._hmac(self.v)
        return int.from_bytes(self.v, 'big')
