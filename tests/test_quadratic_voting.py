"""
Quadratic Voting Governance Test Suite

Coverage:
  - Vote weight: floor(sqrt(balance)) over the full u64 range
  - Records: u64 fields, vote types, serialization
  - Lifecycle: open_governance, open_proposal, cast_vote, close_proposal
  - Failure semantics: every rejected operation leaves records untouched
  - Concurrency: one vote per (voter, proposal), no lost tally updates
  - Signed operations: identity verification before any record access

Run with:
    pytest tests/test_quadratic_voting.py -v
"""

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from qvote.assets import AssetLedger
from qvote.constants import U64_MAX
from qvote.crypto import PrivateKey
from qvote.exceptions import (
    ArithmeticOverflowError,
    AssetAccountMismatchError,
    DuplicateVoteError,
    InvalidSeedsError,
    InvalidSignatureError,
    InvalidVoteTypeError,
    ProposalAlreadyClosedError,
    ProposalClosedError,
    QVoteException,
    RecordAlreadyExistsError,
    RecordNotFoundError,
    UnauthorizedError,
)
from qvote.governance import (
    CastVote,
    CloseProposal,
    GovernanceController,
    OpenGovernance,
    OpenProposal,
    SignedOperation,
    credits,
    governance_address,
    proposal_address,
    vote_address,
)
from qvote.state import Governance, MemoryRecordStore, Proposal, Vote, VoteType


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

PROGRAM_ID = "0x" + "51" * 32

ALICE_KEY = PrivateKey(b"\x01" * 32)
BOB_KEY = PrivateKey(b"\x02" * 32)
CAROL_KEY = PrivateKey(b"\x03" * 32)
DAVE_KEY = PrivateKey(b"\x04" * 32)

ALICE = ALICE_KEY.address
BOB = BOB_KEY.address
CAROL = CAROL_KEY.address
DAVE = DAVE_KEY.address


def make_controller(asset_mint=None):
    """Controller over an empty store and ledger, plus one mint owned by Alice."""
    ledger = AssetLedger()
    mint = ledger.create_mint(ALICE)
    controller = GovernanceController(
        store=MemoryRecordStore(),
        ledger=ledger,
        program_id=PROGRAM_ID,
        asset_mint=mint.address if asset_mint is None else asset_mint or None,
    )
    return controller, mint.address


def fund(controller, mint, owner, amount):
    """Open a token account for *owner* holding *amount* of *mint*."""
    account = controller.ledger.create_account(owner, mint)
    if amount:
        controller.ledger.mint_to(mint, account.address, amount, ALICE)
    return account.address


@pytest.fixture
def dao():
    """Alice's governance 'DAO1' with one open proposal 'Fund X'."""
    controller, mint = make_controller()
    gov = controller.open_governance(ALICE, "DAO1")
    proposal = controller.open_proposal(ALICE, gov, "Fund X")
    return controller, mint, gov, proposal


# ══════════════════════════════════════════════════════════════════════
#  VOTE WEIGHT
# ══════════════════════════════════════════════════════════════════════


class TestVoteWeight:
    """credits(b) == floor(sqrt(b))."""

    @pytest.mark.parametrize("balance,expected", [
        (0, 0),
        (1, 1),
        (3, 1),
        (4, 2),
        (24, 4),
        (25, 5),
        (100, 10),
        (99, 9),
    ])
    def test_small_balances(self, balance, expected):
        assert credits(balance) == expected

    def test_u64_max(self):
        assert credits(U64_MAX) == 2 ** 32 - 1

    def test_u64_max_float_would_be_wrong(self):
        # A float sqrt rounds 2**64 - 1 up to 2**64 and returns 2**32
        assert int(math.sqrt(float(U64_MAX))) == 2 ** 32
        assert credits(U64_MAX) != 2 ** 32

    def test_large_perfect_square_boundary(self):
        root = 2 ** 32 - 1
        assert credits(root * root) == root
        assert credits(root * root - 1) == root - 1

    def test_near_2_pow_53(self):
        root = 94906265  # floor(sqrt(2**53))
        assert credits(root * root) == root
        assert credits((root + 1) ** 2 - 1) == root

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="u64"):
            credits(-1)

    def test_above_u64_rejected(self):
        with pytest.raises(ValueError, match="u64"):
            credits(U64_MAX + 1)

    def test_non_int_rejected(self):
        with pytest.raises(ValueError, match="int"):
            credits(4.0)


# ══════════════════════════════════════════════════════════════════════
#  RECORDS
# ══════════════════════════════════════════════════════════════════════


class TestRecords:

    def test_vote_type_parse(self):
        assert VoteType.parse(0) is VoteType.NO
        assert VoteType.parse(1) is VoteType.YES

    @pytest.mark.parametrize("raw", [2, -1, 255, "1", None, True, 1.0])
    def test_vote_type_invalid(self, raw):
        with pytest.raises(InvalidVoteTypeError):
            VoteType.parse(raw)

    def test_governance_counter_increment(self):
        gov = Governance(name="DAO1", authority=ALICE)
        assert gov.with_next_proposal().proposal_count == 1
        assert gov.proposal_count == 0

    def test_governance_counter_overflow(self):
        gov = Governance(name="DAO1", authority=ALICE, proposal_count=U64_MAX)
        with pytest.raises(ArithmeticOverflowError):
            gov.with_next_proposal()

    def test_proposal_tally_overflow(self):
        p = Proposal(metadata="m", authority=ALICE, yes_votes=U64_MAX)
        with pytest.raises(ArithmeticOverflowError):
            p.with_vote(VoteType.YES, 1)
        assert p.with_vote(VoteType.NO, 1).no_votes == 1

    def test_negative_tally_rejected(self):
        with pytest.raises(ArithmeticOverflowError):
            Proposal(metadata="m", authority=ALICE, no_votes=-1)

    def test_proposal_roundtrip(self):
        p = Proposal(metadata="Fund X", authority=ALICE, yes_votes=10, no_votes=5,
                     closed=True, bump=254, governance="0x" + "ab" * 32, index=3)
        assert Proposal.from_dict(p.to_dict()) == p

    def test_vote_roundtrip(self):
        v = Vote(vote_type=1, authority=BOB, credits=10, bump=250, proposal="0x" + "cd" * 32)
        assert v.vote_type is VoteType.YES
        restored = Vote.from_dict(v.to_dict())
        assert restored == v
        assert v.to_dict()["voteType"] == 1


# ══════════════════════════════════════════════════════════════════════
#  OPEN GOVERNANCE
# ══════════════════════════════════════════════════════════════════════


class TestOpenGovernance:

    def test_open(self):
        controller, _ = make_controller()
        address = controller.open_governance(ALICE, "DAO1")
        gov = controller.get_governance(address)
        assert gov.name == "DAO1"
        assert gov.authority == ALICE
        assert gov.proposal_count == 0
        expected, bump = governance_address(PROGRAM_ID, ALICE, "DAO1")
        assert address == expected
        assert gov.bump == bump

    def test_find_governance(self):
        controller, _ = make_controller()
        address = controller.open_governance(ALICE, "DAO1")
        assert controller.find_governance(ALICE, "DAO1") == address
        assert controller.find_governance(ALICE.lower(), "DAO1") == address

    def test_duplicate_rejected(self):
        controller, _ = make_controller()
        controller.open_governance(ALICE, "DAO1")
        with pytest.raises(RecordAlreadyExistsError):
            controller.open_governance(ALICE, "DAO1")

    def test_same_name_other_creator(self):
        controller, _ = make_controller()
        a = controller.open_governance(ALICE, "DAO1")
        b = controller.open_governance(BOB, "DAO1")
        assert a != b

    def test_name_too_long(self):
        controller, _ = make_controller()
        with pytest.raises(InvalidSeedsError):
            controller.open_governance(ALICE, "x" * 33)
        assert len(controller.store) == 0

    def test_unverifiable_principal(self):
        controller, _ = make_controller()
        with pytest.raises(UnauthorizedError):
            controller.open_governance("alice", "DAO1")


# ══════════════════════════════════════════════════════════════════════
#  OPEN PROPOSAL
# ══════════════════════════════════════════════════════════════════════


class TestOpenProposal:

    def test_open(self, dao):
        controller, _, gov, proposal = dao
        p = controller.get_proposal(proposal)
        assert p.metadata == "Fund X"
        assert p.authority == ALICE
        assert p.yes_votes == 0
        assert p.no_votes == 0
        assert p.closed is False
        assert p.index == 0
        assert p.governance == gov
        assert controller.get_governance(gov).proposal_count == 1
        assert proposal == proposal_address(PROGRAM_ID, gov, 0)[0]

    def test_n_proposals_get_sequential_indexes(self):
        controller, _ = make_controller()
        gov = controller.open_governance(ALICE, "DAO1")
        addresses = [controller.open_proposal(ALICE, gov, f"P{i}") for i in range(5)]

        assert controller.get_governance(gov).proposal_count == 5
        assert len(set(addresses)) == 5
        for i, address in enumerate(addresses):
            assert address == proposal_address(PROGRAM_ID, gov, i)[0]
            assert controller.get_proposal(address).index == i

        listed = controller.list_proposals(gov)
        assert [a for a, _ in listed] == addresses
        assert [p.metadata for _, p in listed] == [f"P{i}" for i in range(5)]

    def test_missing_governance(self):
        controller, _ = make_controller()
        missing, _ = governance_address(PROGRAM_ID, ALICE, "nope")
        with pytest.raises(RecordNotFoundError):
            controller.open_proposal(ALICE, missing, "m")

    def test_malformed_governance_address(self):
        controller, _ = make_controller()
        with pytest.raises(RecordNotFoundError, match="Malformed"):
            controller.open_proposal(ALICE, "0x1234", "m")

    def test_non_creator_rejected(self, dao):
        controller, _, gov, _ = dao
        with pytest.raises(UnauthorizedError):
            controller.open_proposal(BOB, gov, "hijack")
        assert controller.get_governance(gov).proposal_count == 1

    def test_proposal_address_is_not_a_governance(self, dao):
        controller, _, _, proposal = dao
        with pytest.raises(RecordNotFoundError):
            controller.open_proposal(ALICE, proposal, "m")

    def test_occupied_slot_is_fatal_and_counter_unchanged(self, dao):
        controller, _, gov, _ = dao
        squatted, _ = proposal_address(PROGRAM_ID, gov, 1)
        controller.store.create(squatted, Proposal(metadata="squat", authority=BOB))

        with pytest.raises(RecordAlreadyExistsError):
            controller.open_proposal(ALICE, gov, "second")
        assert controller.get_governance(gov).proposal_count == 1
        assert controller.get_proposal(squatted).metadata == "squat"

    def test_uppercase_address_accepted(self, dao):
        controller, _, gov, _ = dao
        address = controller.open_proposal(ALICE, "0x" + gov[2:].upper(), "second")
        assert address == proposal_address(PROGRAM_ID, gov, 1)[0]


# ══════════════════════════════════════════════════════════════════════
#  CAST VOTE
# ══════════════════════════════════════════════════════════════════════


class TestCastVote:

    def test_vote_yes(self, dao):
        controller, mint, _, proposal = dao
        account = fund(controller, mint, BOB, 100)

        vote = controller.cast_vote(BOB, proposal, 1, account)
        assert vote.vote_type is VoteType.YES
        assert vote.authority == BOB
        assert vote.credits == 10

        stored = controller.get_vote(BOB, proposal)
        assert stored == vote
        assert stored.bump == vote_address(PROGRAM_ID, BOB, proposal)[1]

        p = controller.get_proposal(proposal)
        assert p.yes_votes == 10
        assert p.no_votes == 0

    def test_vote_no_from_another_voter(self, dao):
        controller, mint, _, proposal = dao
        controller.cast_vote(BOB, proposal, VoteType.YES, fund(controller, mint, BOB, 100))
        vote = controller.cast_vote(CAROL, proposal, VoteType.NO, fund(controller, mint, CAROL, 25))
        assert vote.credits == 5

        result = controller.proposal_result(proposal)
        assert result.yes_votes == 10
        assert result.no_votes == 5
        assert result.total_votes == 15
        assert result.outcome == "PASSING"

    def test_duplicate_vote(self, dao):
        controller, mint, _, proposal = dao
        account = fund(controller, mint, BOB, 100)
        controller.cast_vote(BOB, proposal, 1, account)

        with pytest.raises(DuplicateVoteError):
            controller.cast_vote(BOB, proposal, 0, account)
        p = controller.get_proposal(proposal)
        assert (p.yes_votes, p.no_votes) == (10, 0)

    def test_duplicate_is_record_already_exists(self):
        assert issubclass(DuplicateVoteError, RecordAlreadyExistsError)

    def test_zero_balance_counts_nothing(self, dao):
        controller, mint, _, proposal = dao
        account = fund(controller, mint, BOB, 0)

        vote = controller.cast_vote(BOB, proposal, 1, account)
        assert vote.credits == 0
        assert controller.has_voted(BOB, proposal)
        assert controller.get_proposal(proposal).yes_votes == 0

        with pytest.raises(DuplicateVoteError):
            controller.cast_vote(BOB, proposal, 1, account)

    @pytest.mark.parametrize("raw", [2, -1, 255, "yes"])
    def test_invalid_vote_type(self, dao, raw):
        controller, mint, _, proposal = dao
        account = fund(controller, mint, BOB, 100)
        with pytest.raises(InvalidVoteTypeError):
            controller.cast_vote(BOB, proposal, raw, account)
        assert not controller.has_voted(BOB, proposal)
        assert controller.get_proposal(proposal).total_votes == 0

    def test_account_of_another_owner(self, dao):
        controller, mint, _, proposal = dao
        carol_account = fund(controller, mint, CAROL, 100)
        with pytest.raises(AssetAccountMismatchError):
            controller.cast_vote(BOB, proposal, 1, carol_account)
        assert not controller.has_voted(BOB, proposal)

    def test_account_of_wrong_asset(self, dao):
        controller, _, _, proposal = dao
        other = controller.ledger.create_mint(ALICE)
        account = fund(controller, other.address, BOB, 100)
        with pytest.raises(AssetAccountMismatchError):
            controller.cast_vote(BOB, proposal, 1, account)
        assert controller.get_proposal(proposal).total_votes == 0

    def test_missing_account(self, dao):
        controller, _, _, proposal = dao
        with pytest.raises(AssetAccountMismatchError):
            controller.cast_vote(BOB, proposal, 1, "0x" + "ee" * 32)

    @pytest.mark.parametrize("reference", [None, 42, b"\x01" * 32])
    def test_non_string_account(self, dao, reference):
        controller, mint, _, proposal = dao
        fund(controller, mint, BOB, 100)
        with pytest.raises(AssetAccountMismatchError, match="Invalid token account"):
            controller.cast_vote(BOB, proposal, 1, reference)
        assert not controller.has_voted(BOB, proposal)
        assert controller.get_proposal(proposal).total_votes == 0

    def test_any_mint_when_unconfigured(self):
        controller, _ = make_controller(asset_mint="")
        assert controller.asset_mint is None
        gov = controller.open_governance(ALICE, "DAO1")
        proposal = controller.open_proposal(ALICE, gov, "m")
        other = controller.ledger.create_mint(ALICE)
        vote = controller.cast_vote(BOB, proposal, 1, fund(controller, other.address, BOB, 49))
        assert vote.credits == 7

    def test_missing_proposal(self, dao):
        controller, mint, gov, _ = dao
        missing, _ = proposal_address(PROGRAM_ID, gov, 7)
        with pytest.raises(RecordNotFoundError):
            controller.cast_vote(BOB, missing, 1, fund(controller, mint, BOB, 1))

    def test_balance_read_at_vote_time(self, dao):
        controller, mint, gov, first = dao
        second = controller.open_proposal(ALICE, gov, "second")
        bob_account = fund(controller, mint, BOB, 100)
        carol_account = fund(controller, mint, CAROL, 0)

        assert controller.cast_vote(BOB, first, 1, bob_account).credits == 10
        controller.ledger.transfer(bob_account, carol_account, 64, BOB)
        assert controller.cast_vote(BOB, second, 1, bob_account).credits == 6
        assert controller.cast_vote(CAROL, first, 0, carol_account).credits == 8

    def test_tally_overflow_leaves_no_vote(self, dao):
        controller, mint, _, proposal = dao
        full = controller.get_proposal(proposal).with_vote(VoteType.YES, U64_MAX)
        controller.store.update(proposal, full)

        with pytest.raises(ArithmeticOverflowError):
            controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))
        assert not controller.has_voted(BOB, proposal)
        assert controller.get_proposal(proposal).yes_votes == U64_MAX


# ══════════════════════════════════════════════════════════════════════
#  CLOSE PROPOSAL
# ══════════════════════════════════════════════════════════════════════


class TestCloseProposal:

    def test_close(self, dao):
        controller, _, _, proposal = dao
        closed = controller.close_proposal(ALICE, proposal)
        assert closed.closed is True
        assert controller.get_proposal(proposal).closed is True

    def test_non_authority_never_mutates(self, dao):
        controller, mint, _, proposal = dao
        controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))
        before = controller.get_proposal(proposal)

        for intruder in (BOB, CAROL, DAVE):
            with pytest.raises(UnauthorizedError):
                controller.close_proposal(intruder, proposal)

        assert controller.get_proposal(proposal) == before
        assert before.closed is False

    def test_second_close_fails(self, dao):
        controller, mint, _, proposal = dao
        controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))
        controller.close_proposal(ALICE, proposal)
        frozen = controller.get_proposal(proposal)

        with pytest.raises(ProposalAlreadyClosedError):
            controller.close_proposal(ALICE, proposal)
        assert controller.get_proposal(proposal) == frozen

    def test_vote_after_close(self, dao):
        controller, mint, _, proposal = dao
        controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))
        controller.close_proposal(ALICE, proposal)

        with pytest.raises(ProposalClosedError):
            controller.cast_vote(CAROL, proposal, 0, fund(controller, mint, CAROL, 10_000))
        p = controller.get_proposal(proposal)
        assert (p.yes_votes, p.no_votes) == (10, 0)
        assert not controller.has_voted(CAROL, proposal)

    def test_closed_error_hierarchy(self):
        assert issubclass(ProposalClosedError, ProposalAlreadyClosedError)

    def test_other_proposals_stay_open(self, dao):
        controller, mint, gov, first = dao
        second = controller.open_proposal(ALICE, gov, "second")
        controller.close_proposal(ALICE, first)
        controller.cast_vote(BOB, second, 1, fund(controller, mint, BOB, 9))
        assert controller.get_proposal(second).yes_votes == 3


# ══════════════════════════════════════════════════════════════════════
#  END TO END
# ══════════════════════════════════════════════════════════════════════


class TestEndToEnd:

    def test_alice_bob_scenario(self):
        controller, mint = make_controller()

        gov = controller.open_governance(ALICE, "DAO1")
        proposal = controller.open_proposal(ALICE, gov, "Fund X")

        vote = controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))
        assert vote.credits == 10
        assert controller.get_proposal(proposal).yes_votes == 10

        with pytest.raises(UnauthorizedError):
            controller.close_proposal(BOB, proposal)
        assert controller.get_proposal(proposal).closed is False

        controller.close_proposal(ALICE, proposal)
        final = controller.get_proposal(proposal)
        assert final.closed is True
        assert final.yes_votes == 10
        assert controller.get_governance(gov).proposal_count == 1

    def test_snapshot_survives_reload(self, tmp_path):
        controller, mint = make_controller()
        gov = controller.open_governance(ALICE, "DAO1")
        proposal = controller.open_proposal(ALICE, gov, "Fund X")
        controller.cast_vote(BOB, proposal, 1, fund(controller, mint, BOB, 100))

        path = tmp_path / "records.json"
        controller.store.save(path)
        restored = GovernanceController(
            store=MemoryRecordStore.load(path),
            ledger=controller.ledger,
            program_id=PROGRAM_ID,
            asset_mint=mint,
        )
        assert restored.get_proposal(proposal).yes_votes == 10
        assert restored.get_vote(BOB, proposal).credits == 10
        with pytest.raises(DuplicateVoteError):
            restored.cast_vote(BOB, proposal, 1, controller.ledger.accounts_of(BOB)[0].address)


# ══════════════════════════════════════════════════════════════════════
#  CONCURRENCY
# ══════════════════════════════════════════════════════════════════════


class TestConcurrency:

    def test_same_voter_exactly_one_wins(self, dao):
        controller, mint, _, proposal = dao
        account = fund(controller, mint, BOB, 100)

        def attempt(_):
            try:
                controller.cast_vote(BOB, proposal, 1, account)
                return "ok"
            except DuplicateVoteError:
                return "duplicate"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(16)))

        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 15
        assert controller.get_proposal(proposal).yes_votes == 10

    def test_distinct_voters_no_lost_updates(self, dao):
        controller, mint, _, proposal = dao
        voters = []
        for i in range(1, 25):
            key = PrivateKey(bytes([i]) * 32)
            voters.append((key.address, fund(controller, mint, key.address, i * i), i))

        def vote(entry):
            address, account, i = entry
            return controller.cast_vote(address, proposal, i % 2, account).credits

        with ThreadPoolExecutor(max_workers=8) as pool:
            weights = list(pool.map(vote, voters))

        assert weights == [i for _, _, i in voters]
        p = controller.get_proposal(proposal)
        assert p.yes_votes == sum(i for i in range(1, 25) if i % 2 == 1)
        assert p.no_votes == sum(i for i in range(1, 25) if i % 2 == 0)

    def test_close_races_votes(self, dao):
        controller, mint, _, proposal = dao
        entries = []
        for i in range(5, 25):
            key = PrivateKey(bytes([i]) * 32)
            entries.append((key.address, fund(controller, mint, key.address, 4)))

        def vote(entry):
            address, account = entry
            try:
                controller.cast_vote(address, proposal, 1, account)
                return True
            except ProposalClosedError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(vote, e) for e in entries[:10]]
            futures.append(pool.submit(controller.close_proposal, ALICE, proposal))
            futures += [pool.submit(vote, e) for e in entries[10:]]
            results = [f.result() for f in futures]

        accepted = sum(1 for r in results if r is True)
        p = controller.get_proposal(proposal)
        assert p.closed is True
        assert p.yes_votes == 2 * accepted


# ══════════════════════════════════════════════════════════════════════
#  SIGNED OPERATIONS
# ══════════════════════════════════════════════════════════════════════


class TestSignedOperations:

    def sign(self, op, key, program_id=PROGRAM_ID):
        return SignedOperation.sign(op, key, program_id)

    def test_full_flow(self):
        controller, mint = make_controller()
        gov = controller.submit(self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY))
        proposal = controller.submit(self.sign(
            OpenProposal(creator=ALICE, governance=gov, metadata="Fund X"), ALICE_KEY
        ))
        account = fund(controller, mint, BOB, 100)
        vote = controller.submit(self.sign(
            CastVote(voter=BOB, proposal=proposal, vote_type=1, token_account=account), BOB_KEY
        ))
        assert vote.credits == 10

        with pytest.raises(UnauthorizedError):
            controller.submit(self.sign(CloseProposal(authority=BOB, proposal=proposal), BOB_KEY))
        closed = controller.submit(self.sign(CloseProposal(authority=ALICE, proposal=proposal), ALICE_KEY))
        assert closed.closed is True

    def test_forged_principal(self):
        controller, _ = make_controller()
        forged = self.sign(OpenGovernance(creator=ALICE, name="DAO1"), BOB_KEY)
        with pytest.raises(InvalidSignatureError):
            controller.submit(forged)
        assert len(controller.store) == 0

    def test_forged_close_never_mutates(self, dao):
        controller, _, _, proposal = dao
        forged = self.sign(CloseProposal(authority=ALICE, proposal=proposal), BOB_KEY)
        with pytest.raises(UnauthorizedError):
            controller.submit(forged)
        assert controller.get_proposal(proposal).closed is False

    def test_signature_bound_to_program(self):
        controller, _ = make_controller()
        other_program = self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY, "0x" + "77" * 32)
        with pytest.raises(InvalidSignatureError):
            controller.submit(other_program)

    def test_signature_bound_to_payload(self):
        controller, _ = make_controller()
        signed = self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY)
        tampered = SignedOperation(OpenGovernance(creator=ALICE, name="DAO2"), signed.signature)
        with pytest.raises(InvalidSignatureError):
            controller.submit(tampered)

    def test_malformed_principal(self):
        controller, _ = make_controller()
        signed = SignedOperation(
            OpenGovernance(creator="not-an-address", name="DAO1"),
            self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY).signature,
        )
        with pytest.raises(InvalidSignatureError, match="Malformed"):
            controller.submit(signed)

    @pytest.mark.parametrize("governance", ["not-an-address", "0x1234", "0x" + "zz" * 32, None])
    def test_malformed_governance_is_typed(self, governance):
        with pytest.raises(RecordNotFoundError, match="Malformed address"):
            self.sign(OpenProposal(creator=ALICE, governance=governance, metadata="m"), ALICE_KEY)

    def test_malformed_proposal_is_typed(self):
        for op in (
            CloseProposal(authority=ALICE, proposal="zz"),
            CastVote(voter=ALICE, proposal="zz", vote_type=1, token_account="0x" + "ee" * 32),
        ):
            with pytest.raises(RecordNotFoundError):
                self.sign(op, ALICE_KEY)

    @pytest.mark.parametrize("account", ["zz", None, "0x" + "ee" * 20])
    def test_malformed_token_account_is_typed(self, dao, account):
        _, _, _, proposal = dao
        op = CastVote(voter=BOB, proposal=proposal, vote_type=1, token_account=account)
        with pytest.raises(AssetAccountMismatchError):
            self.sign(op, BOB_KEY)

    def test_rejected_operation_propagates(self, dao):
        controller, _, gov, _ = dao
        with pytest.raises(RecordAlreadyExistsError):
            controller.submit(self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY))

    def test_to_dict(self):
        signed = self.sign(OpenGovernance(creator=ALICE, name="DAO1"), ALICE_KEY)
        data = signed.to_dict()
        assert data["operation"] == "OpenGovernance"
        assert data["principal"] == ALICE
        assert data["signature"].startswith("0x")
        assert len(data["signature"]) == 2 + 130


# ══════════════════════════════════════════════════════════════════════
#  ERRORS
# ══════════════════════════════════════════════════════════════════════


class TestErrorTaxonomy:

    def test_codes_are_unique(self):
        classes = [
            UnauthorizedError, InvalidSignatureError, ProposalAlreadyClosedError,
            ProposalClosedError, RecordNotFoundError, RecordAlreadyExistsError,
            DuplicateVoteError, InvalidVoteTypeError, AssetAccountMismatchError,
            InvalidSeedsError, ArithmeticOverflowError,
        ]
        codes = [c.code for c in classes]
        assert len(set(codes)) == len(codes)
        assert all(code >= 6000 for code in codes)

    def test_to_dict(self):
        err = DuplicateVoteError("already voted")
        assert err.to_dict() == {
            "error": "DuplicateVoteError",
            "code": DuplicateVoteError.code,
            "message": "already voted",
        }
        assert isinstance(err, QVoteException)
