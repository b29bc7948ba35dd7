"""
Governance Operations

Payloads of the four entry points, their signing envelope, and the identity
check run before any of them touches a record.

Digest of an operation:

    keccak256(rlp([program_id, op_tag, *fields]))
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Type, Union

import rlp

from ..constants import (
    ADDRESS_LENGTH,
    OP_CAST_VOTE,
    OP_CLOSE_PROPOSAL,
    OP_OPEN_GOVERNANCE,
    OP_OPEN_PROPOSAL,
    PRINCIPAL_LENGTH,
)
from ..crypto.hashing import keccak256
from ..crypto.keys import PrivateKey, Signature, is_principal, normalize_principal
from ..crypto.pda import address_to_bytes
from ..crypto.signing import sign_message_hash, verify_signer
from ..exceptions import (
    AssetAccountMismatchError,
    InvalidSignatureError,
    QVoteException,
    RecordNotFoundError,
)
from ..logger import get_logger

logger = get_logger(__name__)


def _address_field(value: Any, length: int, error: Type[QVoteException]) -> bytes:
    """Raw bytes of an address argument, or *error* if it is not *length* bytes of hex."""
    try:
        raw = address_to_bytes(value)
    except ValueError:
        raw = b""
    if len(raw) != length:
        raise error(f"Malformed address: {value!r}")
    return raw


@dataclass(frozen=True)
class OpenGovernance:
    creator: str
    name: str

    OP_TAG = OP_OPEN_GOVERNANCE

    @property
    def principal(self) -> str:
        return self.creator

    def fields(self) -> List[bytes]:
        return [
            _address_field(self.creator, PRINCIPAL_LENGTH, InvalidSignatureError),
            self.name.encode("utf-8"),
        ]


@dataclass(frozen=True)
class OpenProposal:
    creator: str
    governance: str
    metadata: str

    OP_TAG = OP_OPEN_PROPOSAL

    @property
    def principal(self) -> str:
        return self.creator

    def fields(self) -> List[bytes]:
        return [
            _address_field(self.creator, PRINCIPAL_LENGTH, InvalidSignatureError),
            _address_field(self.governance, ADDRESS_LENGTH, RecordNotFoundError),
            self.metadata.encode("utf-8"),
        ]


@dataclass(frozen=True)
class CastVote:
    voter: str
    proposal: str
    vote_type: Any
    token_account: str

    OP_TAG = OP_CAST_VOTE

    @property
    def principal(self) -> str:
        return self.voter

    def fields(self) -> List[bytes]:
        return [
            _address_field(self.voter, PRINCIPAL_LENGTH, InvalidSignatureError),
            _address_field(self.proposal, ADDRESS_LENGTH, RecordNotFoundError),
            str(self.vote_type).encode("utf-8"),
            _address_field(self.token_account, ADDRESS_LENGTH, AssetAccountMismatchError),
        ]


@dataclass(frozen=True)
class CloseProposal:
    authority: str
    proposal: str

    OP_TAG = OP_CLOSE_PROPOSAL

    @property
    def principal(self) -> str:
        return self.authority

    def fields(self) -> List[bytes]:
        return [
            _address_field(self.authority, PRINCIPAL_LENGTH, InvalidSignatureError),
            _address_field(self.proposal, ADDRESS_LENGTH, RecordNotFoundError),
        ]


Operation = Union[OpenGovernance, OpenProposal, CastVote, CloseProposal]


def operation_digest(operation: Operation, program_id: str) -> bytes:
    """Deterministic 32-byte digest binding an operation to one program."""
    payload = rlp.encode([address_to_bytes(program_id), operation.OP_TAG, operation.fields()])
    return keccak256(payload)


@dataclass(frozen=True)
class SignedOperation:
    """An operation plus the claimed principal's signature over its digest."""
    operation: Operation
    signature: Signature

    @classmethod
    def sign(cls, operation: Operation, private_key: PrivateKey, program_id: str) -> "SignedOperation":
        digest = operation_digest(operation, program_id)
        return cls(operation=operation, signature=sign_message_hash(private_key, digest))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": type(self.operation).__name__,
            "principal": self.operation.principal,
            "signature": self.signature.to_hex(),
        }


class IdentityVerifier:
    """Confirms that the claimed principal signed the operation."""

    def __init__(self, program_id: str):
        self.program_id = program_id

    def verify(self, signed: SignedOperation) -> str:
        """
        Check the signature of *signed*.

        Returns:
            The verified principal id in checksum form

        Raises:
            InvalidSignatureError: Malformed principal or signature mismatch
        """
        principal = signed.operation.principal
        if not is_principal(principal):
            raise InvalidSignatureError(f"Malformed principal id: {principal!r}")
        digest = operation_digest(signed.operation, self.program_id)
        if not verify_signer(digest, signed.signature, principal):
            logger.warning(
                f"Rejected {type(signed.operation).__name__}: signature does not match {principal}"
            )
            raise InvalidSignatureError(
                f"Signature does not recover to {principal}"
            )
        return normalize_principal(principal)
