"""
Governance Records

Governance, Proposal and Vote records as they are persisted in the record
store. Records never hold lists of their children; membership is found by
re-deriving addresses (see ``qvote.governance.seeds``).
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, Optional

from ..constants import U64_MAX, VOTE_NO, VOTE_YES
from ..exceptions import ArithmeticOverflowError, InvalidVoteTypeError


def check_u64(name: str, value: int) -> int:
    """Validate an unsigned 64-bit field."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > U64_MAX:
        raise ArithmeticOverflowError(f"{name}={value} is outside the u64 range")
    return value


def checked_add(name: str, a: int, b: int) -> int:
    """u64 addition that raises instead of wrapping."""
    total = a + b
    if total > U64_MAX:
        raise ArithmeticOverflowError(f"{name} overflow: {a} + {b}")
    return total


class VoteType(IntEnum):
    """Direction of a vote."""
    NO = VOTE_NO
    YES = VOTE_YES

    @classmethod
    def parse(cls, value: Any) -> "VoteType":
        """
        Coerce a raw vote type.

        Raises:
            InvalidVoteTypeError: For anything other than 0 or 1
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidVoteTypeError(f"Invalid vote type: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise InvalidVoteTypeError(f"Invalid vote type: {value}") from None


# ══════════════════════════════════════════════════════════════════════
#  GOVERNANCE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Governance:
    """
    A named voting space.

    Fields:
        name:            Governance name (seed of its address)
        authority:       Principal that opened it
        proposal_count:  Number of proposals opened so far
        bump:            Address derivation bump
    """
    name: str
    authority: str
    proposal_count: int = 0
    bump: int = 0

    def __post_init__(self):
        check_u64("proposal_count", self.proposal_count)

    def with_next_proposal(self) -> "Governance":
        return replace(self, proposal_count=checked_add("proposal_count", self.proposal_count, 1))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "governance",
            "name": self.name,
            "authority": self.authority,
            "proposalCount": self.proposal_count,
            "bump": self.bump,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Governance":
        return cls(
            name=data["name"],
            authority=data["authority"],
            proposal_count=data.get("proposalCount", 0),
            bump=data.get("bump", 0),
        )


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Proposal:
    """
    A single yes/no question under a governance.

    ``closed`` moves False → True exactly once. Tallies only grow while the
    proposal is open and are frozen afterwards.
    """
    metadata: str
    authority: str
    yes_votes: int = 0
    no_votes: int = 0
    closed: bool = False
    bump: int = 0
    governance: Optional[str] = None
    index: Optional[int] = None

    def __post_init__(self):
        check_u64("yes_votes", self.yes_votes)
        check_u64("no_votes", self.no_votes)

    @property
    def is_open(self) -> bool:
        return not self.closed

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes

    def with_vote(self, vote_type: VoteType, credits: int) -> "Proposal":
        """Return a copy with *credits* added to the matching tally."""
        if vote_type == VoteType.YES:
            return replace(self, yes_votes=checked_add("yes_votes", self.yes_votes, credits))
        return replace(self, no_votes=checked_add("no_votes", self.no_votes, credits))

    def as_closed(self) -> "Proposal":
        return replace(self, closed=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "proposal",
            "metadata": self.metadata,
            "authority": self.authority,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "closed": self.closed,
            "bump": self.bump,
            "governance": self.governance,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        return cls(
            metadata=data["metadata"],
            authority=data["authority"],
            yes_votes=data.get("yesVotes", 0),
            no_votes=data.get("noVotes", 0),
            closed=data.get("closed", False),
            bump=data.get("bump", 0),
            governance=data.get("governance"),
            index=data.get("index"),
        )


# ══════════════════════════════════════════════════════════════════════
#  VOTE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Vote:
    """One voter's immutable choice and weight on one proposal."""
    vote_type: VoteType
    authority: str
    credits: int
    bump: int = 0
    proposal: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "vote_type", VoteType.parse(self.vote_type))
        check_u64("credits", self.credits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "vote",
            "voteType": int(self.vote_type),
            "authority": self.authority,
            "credits": self.credits,
            "bump": self.bump,
            "proposal": self.proposal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vote":
        return cls(
            vote_type=VoteType.parse(data["voteType"]),
            authority=data["authority"],
            credits=data["credits"],
            bump=data.get("bump", 0),
            proposal=data.get("proposal"),
        )


_RECORD_KINDS = {
    "governance": Governance,
    "proposal": Proposal,
    "vote": Vote,
}


def record_from_dict(data: Dict[str, Any]):
    """Rebuild any record from its ``to_dict()`` form."""
    kind = data.get("kind")
    if kind not in _RECORD_KINDS:
        raise ValueError(f"Unknown record kind: {kind!r}")
    return _RECORD_KINDS[kind].from_dict(data)
