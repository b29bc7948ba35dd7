"""
qvote Crypto Signing Module

Signs operation digests and recovers the signing principal.
"""

from eth_keys.exceptions import BadSignature, ValidationError

from .keys import PrivateKey, PublicKey, Signature


def sign_message_hash(private_key: PrivateKey, msg_hash: bytes) -> Signature:
    """
    Sign a 32-byte message hash.

    Args:
        private_key: PrivateKey to sign with
        msg_hash: 32-byte hash to sign

    Returns:
        Signature
    """
    return private_key.sign_msg_hash(msg_hash)


def recover_signer(msg_hash: bytes, signature: Signature) -> str:
    """
    Recover the principal id that produced *signature*.

    Raises:
        BadSignature: If the signature does not recover
    """
    return PublicKey.recover_from_msg_hash(msg_hash, signature).to_address()


def verify_signer(msg_hash: bytes, signature: Signature, principal: str) -> bool:
    """
    True if *signature* over *msg_hash* was produced by *principal*.

    Args:
        msg_hash: 32-byte message hash
        signature: Signature to check
        principal: Claimed principal id (checksum or lowercase)
    """
    try:
        return recover_signer(msg_hash, signature).lower() == principal.lower()
    except (BadSignature, ValidationError):
        return False
