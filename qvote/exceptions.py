"""
qvote Exceptions

Typed failures for the governance program. Every error carries a stable
numeric ``code`` so callers can map it across process boundaries.
"""

from .constants import ERROR_CODE_BASE


class QVoteException(Exception):
    """Base exception for qvote."""
    code = ERROR_CODE_BASE - 1

    def to_dict(self):
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": str(self),
        }


class UnauthorizedError(QVoteException):
    """Caller is not allowed to perform the operation."""
    code = ERROR_CODE_BASE


class InvalidSignatureError(UnauthorizedError):
    """Signature does not recover to the claimed principal."""
    code = ERROR_CODE_BASE + 1


class ProposalAlreadyClosedError(QVoteException):
    """Proposal has already been closed."""
    code = ERROR_CODE_BASE + 2


class ProposalClosedError(ProposalAlreadyClosedError):
    """Vote attempted on a closed proposal."""
    code = ERROR_CODE_BASE + 3


class RecordNotFoundError(QVoteException):
    """No record at the given address."""
    code = ERROR_CODE_BASE + 4


class RecordAlreadyExistsError(QVoteException):
    """A record already occupies the given address."""
    code = ERROR_CODE_BASE + 5


class DuplicateVoteError(RecordAlreadyExistsError):
    """Voter already cast a vote on this proposal."""
    code = ERROR_CODE_BASE + 6


class InvalidVoteTypeError(QVoteException):
    """Vote type outside {0, 1}."""
    code = ERROR_CODE_BASE + 7


class AssetAccountMismatchError(QVoteException):
    """Token account is missing, not owned by the voter, or holds another asset."""
    code = ERROR_CODE_BASE + 8


class AddressSpaceExhaustedError(QVoteException):
    """No bump value yields an off-curve derived address."""
    code = ERROR_CODE_BASE + 9


class InvalidSeedsError(QVoteException):
    """Too many seeds, or a seed longer than the allowed length."""
    code = ERROR_CODE_BASE + 10


class ArithmeticOverflowError(QVoteException):
    """A u64 counter or tally would overflow."""
    code = ERROR_CODE_BASE + 11


class InvalidKeyError(QVoteException):
    """Invalid cryptographic key."""
    code = ERROR_CODE_BASE + 12


class ConfigurationError(QVoteException):
    """Configuration error."""
    code = ERROR_CODE_BASE + 13
