"""
Program-Derived Addresses

Deterministic record addresses computed from a namespace tag and seed values.

    candidate = sha256(seed_1 || ... || seed_n || bump || program_id || "ProgramDerivedAddress")

A candidate is accepted only if it is *off* the secp256k1 curve, i.e. it is
not the x-coordinate of any curve point. No private key can therefore sign
for a derived address, and a record address can never be mistaken for a
principal. ``find_program_address`` walks the bump from 255 down to 0 and
returns the first accepted candidate.
"""

from typing import Sequence, Tuple, Union

from eth_utils import decode_hex

from ..constants import (
    ADDRESS_LENGTH,
    MAX_BUMP,
    MAX_SEED_LENGTH,
    MAX_SEEDS,
    PDA_MARKER,
    SECP256K1_P,
)
from ..exceptions import AddressSpaceExhaustedError, InvalidSeedsError
from .hashing import sha256

Seed = Union[bytes, bytearray]


def address_to_bytes(address: Union[str, bytes]) -> bytes:
    """
    Raw bytes of a principal id or record address.

    Raises:
        ValueError: *address* is neither bytes nor a hex string
    """
    if isinstance(address, (bytes, bytearray)):
        return bytes(address)
    try:
        return decode_hex(address)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Malformed address: {address!r}") from e


def bytes_to_address(raw: bytes) -> str:
    """Render a 32-byte record address."""
    if len(raw) != ADDRESS_LENGTH:
        raise ValueError(f"Record address must be {ADDRESS_LENGTH} bytes, got {len(raw)}")
    return "0x" + raw.hex()


def is_on_curve(candidate: bytes) -> bool:
    """
    True if *candidate* is the x-coordinate of a secp256k1 point.

    y² = x³ + 7 (mod p) has a solution iff the right-hand side is zero or a
    quadratic residue (Euler's criterion).
    """
    x = int.from_bytes(candidate, "big")
    if x >= SECP256K1_P:
        return False
    y_sq = (pow(x, 3, SECP256K1_P) + 7) % SECP256K1_P
    if y_sq == 0:
        return True
    return pow(y_sq, (SECP256K1_P - 1) // 2, SECP256K1_P) == 1


def _check_seeds(seeds: Sequence[Seed]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise InvalidSeedsError(f"At most {MAX_SEEDS} seeds allowed, got {len(seeds)}")
    for i, seed in enumerate(seeds):
        if not isinstance(seed, (bytes, bytearray)):
            raise InvalidSeedsError(f"Seed {i} must be bytes, got {type(seed).__name__}")
        if len(seed) > MAX_SEED_LENGTH:
            raise InvalidSeedsError(
                f"Seed {i} is {len(seed)} bytes (max {MAX_SEED_LENGTH})"
            )


def create_program_address(seeds: Sequence[Seed], program_id: Union[str, bytes]) -> str:
    """
    Compute the derived address for an exact seed list (bump included).

    Raises:
        InvalidSeedsError: Seed limits violated
        ValueError: The candidate lies on the curve
    """
    _check_seeds(seeds)
    candidate = sha256(*seeds, address_to_bytes(program_id), PDA_MARKER)
    if is_on_curve(candidate):
        raise ValueError("Derived address lies on the secp256k1 curve")
    return bytes_to_address(candidate)


def find_program_address(
    seeds: Sequence[Seed],
    program_id: Union[str, bytes],
) -> Tuple[str, int]:
    """
    Find the canonical derived address and its bump.

    Returns:
        (address, bump) with the highest bump yielding an off-curve address

    Raises:
        InvalidSeedsError: Seed limits violated (the bump counts as a seed)
        AddressSpaceExhaustedError: No bump in 0..255 is valid
    """
    seeds = list(seeds)
    _check_seeds(seeds + [b"\x00"])
    program_bytes = address_to_bytes(program_id)

    for bump in range(MAX_BUMP, -1, -1):
        candidate = sha256(*seeds, bytes([bump]), program_bytes, PDA_MARKER)
        if not is_on_curve(candidate):
            return bytes_to_address(candidate), bump

    raise AddressSpaceExhaustedError(
        f"No off-curve address for seeds {[s.hex() for s in seeds]}"
    )
