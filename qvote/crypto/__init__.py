"""
qvote Crypto Module

Cryptographic primitives for the governance program:
- secp256k1 keys and principal ids
- Hash functions (sha256, keccak256)
- Operation signing and signer recovery
- Program-derived record addresses
"""

from .hashing import keccak256, keccak256_hex, sha256
from .keys import (
    PrivateKey,
    PublicKey,
    Signature,
    generate_keypair,
    is_principal,
    normalize_principal,
)
from .signing import recover_signer, sign_message_hash, verify_signer
from .pda import (
    address_to_bytes,
    bytes_to_address,
    create_program_address,
    find_program_address,
    is_on_curve,
)

__all__ = [
    # Keys
    "PrivateKey",
    "PublicKey",
    "Signature",
    "generate_keypair",
    "is_principal",
    "normalize_principal",
    # Hashing
    "keccak256",
    "keccak256_hex",
    "sha256",
    # Signing
    "recover_signer",
    "sign_message_hash",
    "verify_signer",
    # Derived addresses
    "address_to_bytes",
    "bytes_to_address",
    "create_program_address",
    "find_program_address",
    "is_on_curve",
]
