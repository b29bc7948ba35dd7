"""
qvote Asset Ledger

Balance-holding subsystem queried by cast_vote.
"""

from .ledger import (
    AssetError,
    AssetLedger,
    InsufficientBalanceError,
    Mint,
    TokenAccount,
)

__all__ = [
    "AssetError",
    "AssetLedger",
    "InsufficientBalanceError",
    "Mint",
    "TokenAccount",
]
