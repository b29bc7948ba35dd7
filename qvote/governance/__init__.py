"""
qvote Quadratic Voting Governance

Provides:
  - credits                                      (weight.py)
  - governance_address / proposal_address /
    vote_address                                 (seeds.py)
  - OpenGovernance / OpenProposal / CastVote /
    CloseProposal / SignedOperation /
    IdentityVerifier                             (operations.py)
  - GovernanceController / ProposalResult        (controller.py)
"""

from .weight import credits
from .seeds import governance_address, proposal_address, vote_address
from .operations import (
    CastVote,
    CloseProposal,
    IdentityVerifier,
    OpenGovernance,
    OpenProposal,
    SignedOperation,
    operation_digest,
)
from .controller import GovernanceController, ProposalResult

__all__ = [
    # Weight
    "credits",
    # Addresses
    "governance_address",
    "proposal_address",
    "vote_address",
    # Operations
    "CastVote",
    "CloseProposal",
    "IdentityVerifier",
    "OpenGovernance",
    "OpenProposal",
    "SignedOperation",
    "operation_digest",
    # Controller
    "GovernanceController",
    "ProposalResult",
]
