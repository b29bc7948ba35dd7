"""
Record address helpers.

    Governance:  ("gov",      creator,            name)
    Proposal:    ("proposal", governance address, proposal index as u64 LE)
    Vote:        ("vote",     voter,              proposal address)
"""

from typing import Tuple

from ..constants import (
    ENDIAN,
    PROPOSAL_INDEX_BYTES,
    SEED_GOVERNANCE,
    SEED_PROPOSAL,
    SEED_VOTE,
)
from ..crypto.pda import address_to_bytes, find_program_address
from ..state.records import check_u64


def governance_address(program_id: str, creator: str, name: str) -> Tuple[str, int]:
    return find_program_address(
        [SEED_GOVERNANCE, address_to_bytes(creator), name.encode("utf-8")],
        program_id,
    )


def proposal_address(program_id: str, governance: str, index: int) -> Tuple[str, int]:
    check_u64("proposal index", index)
    return find_program_address(
        [SEED_PROPOSAL, address_to_bytes(governance), index.to_bytes(PROPOSAL_INDEX_BYTES, ENDIAN)],
        program_id,
    )


def vote_address(program_id: str, voter: str, proposal: str) -> Tuple[str, int]:
    return find_program_address(
        [SEED_VOTE, address_to_bytes(voter), address_to_bytes(proposal)],
        program_id,
    )
