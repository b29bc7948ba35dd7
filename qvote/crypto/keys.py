"""
qvote Crypto Keys Module

secp256k1 key management. A principal is identified by the EIP-55 checksum
address of its public key.
"""

import secrets
from typing import Tuple, Union

from eth_keys.datatypes import (
    PrivateKey as EthPrivateKey,
    PublicKey as EthPublicKey,
    Signature as EthSignature,
)
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import decode_hex, is_address, to_checksum_address

from ..constants import PRINCIPAL_LENGTH
from ..exceptions import InvalidKeyError
from .hashing import keccak256


class PrivateKey:
    """
    secp256k1 private key for operation signing.

    Wraps eth-keys PrivateKey.
    """

    def __init__(self, key_bytes: bytes):
        """
        Initialize from raw 32-byte private key.

        Raises:
            InvalidKeyError: If key bytes are invalid
        """
        if len(key_bytes) != 32:
            raise InvalidKeyError(f"Private key must be 32 bytes, got {len(key_bytes)}")

        try:
            self._key = EthPrivateKey(key_bytes)
        except (ValidationError, ValueError) as e:
            raise InvalidKeyError(f"Invalid private key: {e}") from e

    @classmethod
    def from_hex(cls, hex_str: str) -> "PrivateKey":
        return cls(decode_hex(hex_str))

    @classmethod
    def generate(cls) -> "PrivateKey":
        """Generate a new random private key."""
        return cls(secrets.token_bytes(32))

    @property
    def public_key(self) -> "PublicKey":
        return PublicKey(self._key.public_key)

    @property
    def address(self) -> str:
        """Principal id of this key."""
        return self.public_key.to_address()

    def to_bytes(self) -> bytes:
        return self._key.to_bytes()

    def to_hex(self, with_prefix: bool = True) -> str:
        hex_str = self._key.to_bytes().hex()
        return f"0x{hex_str}" if with_prefix else hex_str

    def sign_msg_hash(self, msg_hash: bytes) -> "Signature":
        """
        Sign a 32-byte message hash.

        Args:
            msg_hash: 32-byte hash to sign

        Returns:
            Signature instance
        """
        if len(msg_hash) != 32:
            raise ValueError(f"Message hash must be 32 bytes, got {len(msg_hash)}")
        return Signature(self._key.sign_msg_hash(msg_hash))

    def __repr__(self) -> str:
        return f"PrivateKey({self.to_hex()[:10]}...)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return False
        return self._key == other._key


class PublicKey:
    """
    secp256k1 public key for verification.
    """

    def __init__(self, key: Union[EthPublicKey, bytes]):
        if isinstance(key, EthPublicKey):
            self._key = key
        elif isinstance(key, bytes):
            if len(key) == 64:
                self._key = EthPublicKey(key)
            elif len(key) == 65 and key[0] == 0x04:
                self._key = EthPublicKey(key[1:])
            elif len(key) == 33:
                try:
                    self._key = EthPublicKey.from_compressed_bytes(key)
                except (ValidationError, ValueError) as e:
                    raise InvalidKeyError(f"Invalid compressed public key: {e}") from e
            else:
                raise InvalidKeyError(f"Invalid public key length: {len(key)}")
        else:
            raise InvalidKeyError(f"Invalid public key type: {type(key)}")

    @classmethod
    def recover_from_msg_hash(cls, msg_hash: bytes, signature: "Signature") -> "PublicKey":
        """
        Recover public key from signature.

        Raises:
            BadSignature: If recovery fails
        """
        return cls(signature._signature.recover_public_key_from_msg_hash(msg_hash))

    def to_bytes(self) -> bytes:
        return self._key.to_bytes()

    def to_address(self) -> str:
        """Checksum address: last 20 bytes of keccak256(pubkey)."""
        return to_checksum_address(keccak256(self._key.to_bytes())[-PRINCIPAL_LENGTH:])

    def verify_msg_hash(self, msg_hash: bytes, signature: "Signature") -> bool:
        try:
            return PublicKey.recover_from_msg_hash(msg_hash, signature) == self
        except (BadSignature, ValidationError):
            return False

    def __repr__(self) -> str:
        return f"PublicKey(0x{self.to_bytes().hex()[:16]}...)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PublicKey):
            return False
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key.to_bytes())


class Signature:
    """
    ECDSA signature (v, r, s format).
    """

    def __init__(self, signature: EthSignature):
        self._signature = signature

    @classmethod
    def from_vrs(cls, v: int, r: int, s: int) -> "Signature":
        # Normalize v to 0/1
        if v >= 27:
            v -= 27
        return cls(EthSignature(vrs=(v, r, s)))

    @classmethod
    def from_bytes(cls, sig_bytes: bytes) -> "Signature":
        """
        Create from 65-byte signature (r[32] + s[32] + v[1]).
        """
        if len(sig_bytes) != 65:
            raise ValueError(f"Signature must be 65 bytes, got {len(sig_bytes)}")

        r = int.from_bytes(sig_bytes[0:32], byteorder='big')
        s = int.from_bytes(sig_bytes[32:64], byteorder='big')
        v = sig_bytes[64]
        return cls.from_vrs(v, r, s)

    @classmethod
    def from_hex(cls, hex_str: str) -> "Signature":
        return cls.from_bytes(decode_hex(hex_str))

    @property
    def v(self) -> int:
        return self._signature.v

    @property
    def r(self) -> int:
        return self._signature.r

    @property
    def s(self) -> int:
        return self._signature.s

    def to_bytes(self) -> bytes:
        return (
            self.r.to_bytes(32, byteorder='big')
            + self.s.to_bytes(32, byteorder='big')
            + bytes([self.v])
        )

    def to_hex(self, with_prefix: bool = True) -> str:
        hex_str = self.to_bytes().hex()
        return f"0x{hex_str}" if with_prefix else hex_str

    def __repr__(self) -> str:
        return f"Signature(v={self.v}, r={hex(self.r)[:10]}..., s={hex(self.s)[:10]}...)"


def generate_keypair() -> Tuple[PrivateKey, PublicKey]:
    """Generate a new keypair."""
    private_key = PrivateKey.generate()
    return private_key, private_key.public_key


def is_principal(value: str) -> bool:
    """True for a 20-byte hex principal id (checksummed or not)."""
    return isinstance(value, str) and is_address(value) and value.startswith("0x")


def normalize_principal(value: str) -> str:
    """
    Return the checksum form of a principal id.

    Raises:
        InvalidKeyError: If *value* is not a principal id
    """
    if not is_principal(value):
        raise InvalidKeyError(f"Not a principal id: {value!r}")
    return to_checksum_address(value)
