"""
Fungible Asset Ledger

Minimal token-account ledger used as the balance-holding subsystem:
  - mints (asset ids) with a mint authority
  - token accounts {address, mint, owner, amount}
  - mint_to / transfer
  - balance lookup for a voter's account at vote time

Amounts are raw u64 base units.
"""

import secrets
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..constants import U64_MAX
from ..exceptions import (
    ArithmeticOverflowError,
    AssetAccountMismatchError,
    QVoteException,
    UnauthorizedError,
)
from ..logger import get_logger

logger = get_logger(__name__)


class AssetError(QVoteException):
    """Base asset ledger error."""


class InsufficientBalanceError(AssetError):
    """Raised when an account balance is too low."""


def _new_address() -> str:
    return "0x" + secrets.token_bytes(32).hex()


@dataclass
class Mint:
    """A fungible asset."""
    address: str
    authority: str
    decimals: int = 0
    supply: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "authority": self.authority,
            "decimals": self.decimals,
            "supply": self.supply,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mint":
        return cls(
            address=data["address"],
            authority=data["authority"],
            decimals=data.get("decimals", 0),
            supply=data.get("supply", 0),
        )


@dataclass
class TokenAccount:
    """Holding of one mint by one owner."""
    address: str
    mint: str
    owner: str
    amount: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "mint": self.mint,
            "owner": self.owner,
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenAccount":
        return cls(
            address=data["address"],
            mint=data["mint"],
            owner=data["owner"],
            amount=data.get("amount", 0),
        )


class AssetLedger:
    """
    Token accounts keyed by address.

    The governance program only reads from it (``account_balance``); the
    mutating calls exist so balances can be set up and moved between votes.
    """

    def __init__(self):
        self._mints: Dict[str, Mint] = {}
        self._accounts: Dict[str, TokenAccount] = {}
        self._lock = threading.RLock()

    # ── Mints ─────────────────────────────────────────────────────────

    def create_mint(self, authority: str, decimals: int = 0, address: Optional[str] = None) -> Mint:
        if decimals < 0 or decimals > 18:
            raise AssetError(f"Decimals must be 0-18, got {decimals}")
        with self._lock:
            address = (address or _new_address()).lower()
            if address in self._mints:
                raise AssetError(f"Mint already exists: {address}")
            mint = Mint(address=address, authority=authority, decimals=decimals)
            self._mints[address] = mint
        logger.info(f"Mint created: {address} (authority={authority})")
        return mint

    def get_mint(self, address: str) -> Optional[Mint]:
        return self._mints.get(address.lower())

    # ── Accounts ──────────────────────────────────────────────────────

    def create_account(self, owner: str, mint: str, address: Optional[str] = None) -> TokenAccount:
        """Open an empty token account of *mint* for *owner*."""
        with self._lock:
            mint = mint.lower()
            if mint not in self._mints:
                raise AssetError(f"Unknown mint: {mint}")
            address = (address or _new_address()).lower()
            if address in self._accounts:
                raise AssetError(f"Token account already exists: {address}")
            account = TokenAccount(address=address, mint=mint, owner=owner)
            self._accounts[address] = account
        logger.debug(f"Token account {address} opened for {owner}")
        return account

    def get_account(self, address: str) -> Optional[TokenAccount]:
        return self._accounts.get(address.lower())

    def accounts_of(self, owner: str) -> List[TokenAccount]:
        with self._lock:
            return [a for a in self._accounts.values() if a.owner.lower() == owner.lower()]

    def mint_to(self, mint: str, account: str, amount: int, authority: str) -> None:
        """Mint *amount* base units into *account*; only the mint authority may do this."""
        if amount <= 0:
            raise AssetError("Mint amount must be positive")
        with self._lock:
            m = self._mints.get(mint.lower())
            if m is None:
                raise AssetError(f"Unknown mint: {mint}")
            if m.authority.lower() != authority.lower():
                raise UnauthorizedError(f"{authority} is not the mint authority of {m.address}")
            acct = self._accounts.get(account.lower())
            if acct is None or acct.mint != m.address:
                raise AssetAccountMismatchError(f"Account {account} does not hold mint {m.address}")
            if m.supply + amount > U64_MAX or acct.amount + amount > U64_MAX:
                raise ArithmeticOverflowError("Mint would overflow u64 supply")
            m.supply += amount
            acct.amount += amount
        logger.info(f"Minted {amount} of {m.address} → {acct.address}")

    def transfer(self, source: str, destination: str, amount: int, owner: str) -> None:
        """Move *amount* between two accounts of the same mint."""
        if amount <= 0:
            raise AssetError("Transfer amount must be positive")
        with self._lock:
            src = self._accounts.get(source.lower())
            dst = self._accounts.get(destination.lower())
            if src is None or dst is None:
                raise AssetAccountMismatchError("Unknown token account")
            if src.owner.lower() != owner.lower():
                raise UnauthorizedError(f"{owner} does not own {src.address}")
            if src.mint != dst.mint:
                raise AssetAccountMismatchError("Accounts hold different mints")
            if src.amount < amount:
                raise InsufficientBalanceError(
                    f"Insufficient balance: {src.amount} < {amount}"
                )
            if dst.amount + amount > U64_MAX:
                raise ArithmeticOverflowError("Transfer would overflow destination")
            src.amount -= amount
            dst.amount += amount
        logger.debug(f"Transfer: {src.address} → {dst.address} {amount}")

    # ── Balance lookup ────────────────────────────────────────────────

    def account_balance(self, account: str, owner: str, mint: Optional[str] = None) -> int:
        """
        Balance of a token account, checked against its expected owner and mint.

        Raises:
            AssetAccountMismatchError: Account missing, owned by someone else,
                or holding a different asset, or *account* is not an address string
        """
        if not isinstance(account, str):
            raise AssetAccountMismatchError(f"Invalid token account reference: {account!r}")
        with self._lock:
            acct = self._accounts.get(account.lower())
            if acct is None:
                raise AssetAccountMismatchError(f"Token account not found: {account}")
            if acct.owner.lower() != owner.lower():
                raise AssetAccountMismatchError(
                    f"Token account {acct.address} is owned by {acct.owner}, not {owner}"
                )
            if mint and acct.mint != mint.lower():
                raise AssetAccountMismatchError(
                    f"Token account {acct.address} holds {acct.mint}, expected {mint.lower()}"
                )
            return acct.amount

    def balance_of(self, principal: str, asset_id: str) -> int:
        """Total holding of *asset_id* across every account of *principal*."""
        with self._lock:
            return sum(
                a.amount for a in self._accounts.values()
                if a.owner.lower() == principal.lower() and a.mint == asset_id.lower()
            )

    # ── Snapshots ─────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "mints": [m.to_dict() for m in self._mints.values()],
                "accounts": [a.to_dict() for a in self._accounts.values()],
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetLedger":
        ledger = cls()
        for raw in data.get("mints", []):
            mint = Mint.from_dict(raw)
            ledger._mints[mint.address] = mint
        for raw in data.get("accounts", []):
            account = TokenAccount.from_dict(raw)
            ledger._accounts[account.address] = account
        return ledger

    def __repr__(self) -> str:
        return f"<AssetLedger mints={len(self._mints)} accounts={len(self._accounts)}>"
