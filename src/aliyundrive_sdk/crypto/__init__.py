"""
Cryptographic operations for the AliyunDrive Python SDK
"""

from .modular import (
    CURVE_ORDER,
    HALF_CURVE_ORDER,
    reduce,
    invert,
    is_valid_scalar,
    left_pad32,
    int_to_bytes32,
    bytes_to_int,
)

from .rfc6979 import (
    HmacDrbg,
    build_seed,
)

from .secp256k1 import (
    KeyPair,
    Signature,
    generate_key_pair,
    key_pair_from_scalar,
    scalar_base_mult,
    sign_digest,
    verify_digest,
    parse_private_key_hex,
)

__all__ = [
    # Scalar arithmetic
    'CURVE_ORDER',
    'HALF_CURVE_ORDER',
    'reduce',
    'invert',
    'is_valid_scalar',
    'left_pad32',
    'int_to_bytes32',
    'bytes_to_int',
    
    # Deterministic nonces
    'HmacDrbg',
    'build_seed',
    
    # Keys and signatures
    'KeyPair',
    'Signature',
    'generate_key_pair',
    'key_pair_from_scalar',
    'scalar_base_mult',
    'sign_digest',
    'verify_digest',
    'parse_private_key_hex',
]
