"""
qvote Crypto Hashing Module

Provides the hash functions used by the program:
- sha256: record address derivation
- keccak256: operation digests and principal ids
"""

import hashlib
from typing import Union

from Crypto.Hash import keccak as _keccak


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        if data.startswith('0x') or data.startswith('0X'):
            return bytes.fromhex(data[2:])
        return bytes.fromhex(data)
    return data


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    k = _keccak.new(digest_bits=256)
    k.update(_to_bytes(data))
    return k.digest()


def sha256(*parts: bytes) -> bytes:
    """
    Compute SHA-256 over the concatenation of *parts*.

    Args:
        parts: Byte strings hashed in order

    Returns:
        32-byte hash
    """
    h = hashlib.sha256()
    for part in parts:
        h.update(part)
    return h.digest()


def keccak256_hex(data: Union[bytes, str]) -> str:
    """Keccak-256 as a 0x-prefixed hex string."""
    return '0x' + keccak256(data).hex()
