"""
Quadratic Voting Lifecycle Controller

Implements the four governance operations:
  - open_governance   create a named voting space for a creator
  - open_proposal     open the next proposal under the creator's governance
  - cast_vote         record one voter's quadratic-weighted yes/no vote
  - close_proposal    freeze a proposal (authority only, exactly once)

Every precondition is checked inside the operation's atomic unit before the
first write, so a failed operation leaves no trace. Uniqueness of governance
spaces, proposals and votes comes from their derived addresses: creating a
record at an occupied address fails in the store.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

from ..assets.ledger import AssetLedger
from ..exceptions import (
    DuplicateVoteError,
    ProposalAlreadyClosedError,
    ProposalClosedError,
    QVoteException,
    RecordAlreadyExistsError,
    RecordNotFoundError,
    UnauthorizedError,
)
from ..crypto.keys import is_principal, normalize_principal
from ..logger import get_logger
from ..state.records import Governance, Proposal, Vote, VoteType
from ..state.store import RecordStore
from .operations import (
    CastVote,
    CloseProposal,
    IdentityVerifier,
    OpenGovernance,
    OpenProposal,
    SignedOperation,
)
from .seeds import governance_address, proposal_address, vote_address
from .weight import credits as quadratic_credits

logger = get_logger(__name__)

_RECORD_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class ProposalResult:
    """Snapshot of a proposal's tallies."""
    address: str
    metadata: str
    yes_votes: int
    no_votes: int
    closed: bool

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes

    @property
    def outcome(self) -> str:
        if self.yes_votes > self.no_votes:
            return "PASSING"
        if self.no_votes > self.yes_votes:
            return "FAILING"
        return "TIED"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "metadata": self.metadata,
            "yesVotes": self.yes_votes,
            "noVotes": self.no_votes,
            "totalVotes": self.total_votes,
            "closed": self.closed,
            "outcome": self.outcome,
        }


class GovernanceController:
    """
    Lifecycle controller for governance, proposal and vote records.

    Args:
        store:       Record store providing create-if-absent and atomic units
        ledger:      Balance-holding subsystem queried at vote time
        program_id:  Namespace of every derived address
        asset_mint:  Asset whose balance weighs votes; None accepts any mint
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: AssetLedger,
        program_id: str,
        asset_mint: Optional[str] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.program_id = program_id
        self.asset_mint = asset_mint.lower() if asset_mint else None
        self.verifier = IdentityVerifier(program_id)

    # ── Guards ────────────────────────────────────────────────────────

    @staticmethod
    def _principal(value: str) -> str:
        if not is_principal(value):
            raise UnauthorizedError(f"Not a verifiable principal: {value!r}")
        return normalize_principal(value)

    @staticmethod
    def _address(value: str) -> str:
        if not isinstance(value, str) or not _RECORD_ADDRESS.match(value):
            raise RecordNotFoundError(f"Malformed record address: {value!r}")
        return value.lower()

    def _read(self, address: str, kind: Type) -> Any:
        record = self.store.read(address)
        if not isinstance(record, kind):
            raise RecordNotFoundError(f"No {kind.__name__.lower()} at {address}")
        return record

    @staticmethod
    def _require_authority(caller: str, proposal: Proposal, address: str) -> None:
        if caller != proposal.authority:
            raise UnauthorizedError(
                f"{caller} is not the authority of proposal {address}"
            )

    # ── Operations ────────────────────────────────────────────────────

    def open_governance(self, creator: str, name: str) -> str:
        """
        Open a governance space named *name* for *creator*.

        Returns:
            Governance address

        Raises:
            RecordAlreadyExistsError: *creator* already opened *name*
        """
        creator = self._principal(creator)
        address, bump = governance_address(self.program_id, creator, name)

        with self.store.transaction():
            self.store.create(address, Governance(name=name, authority=creator, bump=bump))

        logger.info(f"Governance '{name}' opened at {address} by {creator}")
        return address

    def open_proposal(self, creator: str, governance: str, metadata: str) -> str:
        """
        Open the next proposal under *governance*.

        The governance must re-derive from (creator, governance.name), so only
        its creator can open proposals under it. The proposal lands at index
        ``governance.proposal_count``, which is then incremented.

        Returns:
            Proposal address
        """
        creator = self._principal(creator)
        governance = self._address(governance)

        with self.store.transaction():
            gov = self._read(governance, Governance)
            expected, _ = governance_address(self.program_id, creator, gov.name)
            if expected != governance:
                raise UnauthorizedError(
                    f"Governance {governance} was not opened by {creator}"
                )

            index = gov.proposal_count
            address, bump = proposal_address(self.program_id, governance, index)
            next_gov = gov.with_next_proposal()
            proposal = Proposal(
                metadata=metadata,
                authority=creator,
                bump=bump,
                governance=governance,
                index=index,
            )
            try:
                self.store.create(address, proposal)
            except RecordAlreadyExistsError:
                logger.error(
                    f"Proposal slot {index} of {governance} already occupied at {address}; "
                    f"proposal counter is inconsistent"
                )
                raise
            self.store.update(governance, next_gov)

        logger.info(f"Proposal #{index} opened at {address} under '{gov.name}'")
        return address

    def cast_vote(self, voter: str, proposal: str, vote_type: Any, token_account: str) -> Vote:
        """
        Cast *voter*'s vote on *proposal*, weighted by the quadratic credits
        of *token_account*'s current balance.

        *token_account* is a token account address string; any other value
        is rejected like an unknown account.

        Raises:
            ProposalClosedError: Proposal is closed
            InvalidVoteTypeError: *vote_type* not in {0, 1}
            DuplicateVoteError: *voter* already voted on *proposal*
            AssetAccountMismatchError: Token account missing, not a string,
                not the voter's, or holding the wrong asset
        """
        voter = self._principal(voter)
        proposal = self._address(proposal)

        with self.store.transaction():
            current = self._read(proposal, Proposal)
            if current.closed:
                raise ProposalClosedError(f"Proposal {proposal} is closed")

            direction = VoteType.parse(vote_type)

            address, bump = vote_address(self.program_id, voter, proposal)
            if self.store.exists(address):
                raise DuplicateVoteError(f"{voter} has already voted on proposal {proposal}")

            balance = self.ledger.account_balance(token_account, voter, self.asset_mint)
            weight = quadratic_credits(balance)
            updated = current.with_vote(direction, weight)

            vote = Vote(
                vote_type=direction,
                authority=voter,
                credits=weight,
                bump=bump,
                proposal=proposal,
            )
            try:
                self.store.create(address, vote)
            except RecordAlreadyExistsError:
                raise DuplicateVoteError(
                    f"{voter} has already voted on proposal {proposal}"
                ) from None
            self.store.update(proposal, updated)

        logger.info(
            f"Vote: {voter} → {direction.name} on {proposal} "
            f"(balance={balance}, credits={weight})"
        )
        return vote

    def close_proposal(self, caller: str, proposal: str) -> Proposal:
        """
        Close *proposal*; tallies are frozen from then on.

        Raises:
            UnauthorizedError: *caller* is not the proposal authority
            ProposalAlreadyClosedError: Proposal is already closed
        """
        caller = self._principal(caller)
        proposal = self._address(proposal)

        with self.store.transaction():
            current = self._read(proposal, Proposal)
            self._require_authority(caller, current, proposal)
            if current.closed:
                raise ProposalAlreadyClosedError(f"Proposal {proposal} already closed")
            closed = current.as_closed()
            self.store.update(proposal, closed)

        logger.info(
            f"Proposal {proposal} closed by {caller} "
            f"(yes={closed.yes_votes}, no={closed.no_votes})"
        )
        return closed

    # ── Signed entry point ────────────────────────────────────────────

    def submit(self, signed: SignedOperation) -> Any:
        """
        Verify the signer of *signed* and run its operation.

        Raises:
            InvalidSignatureError: Before any record is read or written
        """
        principal = self.verifier.verify(signed)
        op = signed.operation
        try:
            if isinstance(op, OpenGovernance):
                return self.open_governance(principal, op.name)
            if isinstance(op, OpenProposal):
                return self.open_proposal(principal, op.governance, op.metadata)
            if isinstance(op, CastVote):
                return self.cast_vote(principal, op.proposal, op.vote_type, op.token_account)
            if isinstance(op, CloseProposal):
                return self.close_proposal(principal, op.proposal)
        except QVoteException as e:
            logger.warning(f"{type(op).__name__} by {principal} rejected: {type(e).__name__}: {e}")
            raise
        raise TypeError(f"Unknown operation: {type(op).__name__}")

    # ── Queries ───────────────────────────────────────────────────────

    def find_governance(self, creator: str, name: str) -> str:
        return governance_address(self.program_id, self._principal(creator), name)[0]

    def get_governance(self, address: str) -> Governance:
        return self._read(self._address(address), Governance)

    def get_proposal(self, address: str) -> Proposal:
        return self._read(self._address(address), Proposal)

    def get_vote(self, voter: str, proposal: str) -> Optional[Vote]:
        address, _ = vote_address(self.program_id, self._principal(voter), self._address(proposal))
        if not self.store.exists(address):
            return None
        record = self.store.read(address)
        return record if isinstance(record, Vote) else None

    def has_voted(self, voter: str, proposal: str) -> bool:
        return self.get_vote(voter, proposal) is not None

    def list_proposals(self, governance: str) -> List[Tuple[str, Proposal]]:
        """Proposals of *governance* in index order, found by re-deriving 0..count-1."""
        governance = self._address(governance)
        gov = self.get_governance(governance)
        proposals = []
        for index in range(gov.proposal_count):
            address, _ = proposal_address(self.program_id, governance, index)
            proposals.append((address, self.get_proposal(address)))
        return proposals

    def proposal_result(self, proposal: str) -> ProposalResult:
        proposal = self._address(proposal)
        p = self.get_proposal(proposal)
        return ProposalResult(
            address=proposal,
            metadata=p.metadata,
            yes_votes=p.yes_votes,
            no_votes=p.no_votes,
            closed=p.closed,
        )

    def __repr__(self) -> str:
        return f"<GovernanceController program={self.program_id[:10]}... store={self.store!r}>"
