"""
Fixed-width scalar arithmetic modulo the secp256k1 group order

All byte encodings in this module are 32-byte big-endian. Decoding never
accepts a variable width.
"""

from ..exceptions import ArithmeticInvariantViolation, ValidationError

# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HALF_CURVE_ORDER = CURVE_ORDER >> 1

SCALAR_LENGTH = 32


def reduce(x: int, n: int = CURVE_ORDER) -> int:
    """
    Reduce an integer into ``[0, n)``.

    Args:
        x: Any integer, negative or wider than ``n``
        n: Positive modulus

    Returns:
        int: ``r`` with ``0 <= r < n``
    """
    if n <= 0:
        raise ArithmeticInvariantViolation(f"Modulus must be positive, got {n}")
    return x % n


def invert(a: int, n: int = CURVE_ORDER) -> int:
    """
    Modular inverse via the extended Euclidean algorithm.

    Args:
        a: Element to invert
        n: Modulus

    Returns:
        int: ``a^-1 mod n``

    Raises:
        ArithmeticInvariantViolation: If ``gcd(a, n) != 1``
    """
    r = reduce(a, n)
    if r == 0:
        raise ArithmeticInvariantViolation("Zero has no modular inverse", details={'modulus': hex(n)})

    old_r, r = n, r
    old_t, t = 0, 1
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_t, t = t, old_t - q * t

    if old_r != 1:
        raise ArithmeticInvariantViolation(
            "Element is not invertible modulo n",
            details={'gcd': old_r, 'modulus': hex(n)}
        )
    return reduce(old_t, n)


def is_valid_scalar(x: int, n: int = CURVE_ORDER) -> bool:
    """Check ``0 < x < n``."""
    return 0 < x < n


def left_pad32(data: bytes) -> bytes:
    """Left-pad a byte string with zeros to 32 bytes."""
    if len(data) > SCALAR_LENGTH:
        raise ValidationError(
            f"Value must be at most {SCALAR_LENGTH} bytes, got {len(data)}",
            "VALUE_TOO_LONG"
        )
    return data.rjust(SCALAR_LENGTH, b'\x00')


def int_to_bytes32(x: int) -> bytes:
    """
    Encode an integer as exactly 32 big-endian bytes, left-padded with zeros.

    Raises:
        ArithmeticInvariantViolation: If ``x`` is outside ``[0, 2^256)``
    """
    if not 0 <= x < (1 << (8 * SCALAR_LENGTH)):
        raise ArithmeticInvariantViolation(f"Integer does not fit in {SCALAR_LENGTH} bytes")
    return x.to_bytes(SCALAR_LENGTH, 'big')


def bytes_to_int(data: bytes) -> int:
    """
    Decode an exactly 32-byte big-endian integer.

    Raises:
        ValidationError: If ``data`` is not 32 bytes long
    """
    if not isinstance(data, (bytes, bytearray)):
        raise ValidationError("Scalar encoding must be bytes", "INVALID_SCALAR_TYPE")
    if len(data) != SCALAR_LENGTH:
        raise ValidationError(
            f"Scalar encoding must be exactly {SCALAR_LENGTH} bytes",
            "INVALID_SCALAR_LENGTH"
        )
    return int.from_bytes(data, 'big')
