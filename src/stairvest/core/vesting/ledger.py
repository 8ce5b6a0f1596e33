"""
Per-asset vesting bookkeeping.

The ledger keeps one AssetAccount per asset identifier. Accounts are created
lazily the first time an asset is queried or touched and are never removed.
Nothing here moves value: the controllers stage a change on the ledger, issue
the transfer, and compensate the change if the transfer fails.

Total allocation is derived, never stored:

    total_allocation = current_balance + released + revoked

so later deposits into the wallet join the vesting pool automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from ..vesting_exceptions import LedgerInvariantError
from .assets import normalize_asset
from .schedule import VestingSchedule

logger = logging.getLogger(__name__)

BalanceReader = Callable[[str], int]


@dataclass
class AssetAccount:
    """Running totals for one asset."""

    released: int = 0
    revoked: int = 0
    # None until the first revoke; kept distinct from 0 so a revoke at
    # timestamp 0 still freezes the clock.
    revoked_at: Optional[int] = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def revocation_timestamp(self) -> int:
        return self.revoked_at if self.revoked_at is not None else 0

    def to_dict(self) -> dict[str, Any]:
        return {"released": self.released, "revoked": self.revoked, "revoked_at": self.revoked_at}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssetAccount":
        return cls(
            released=int(data.get("released", 0)),
            revoked=int(data.get("revoked", 0)),
            revoked_at=data.get("revoked_at"),
        )


class AssetLedger:
    """
    Accounts keyed by asset identifier plus the vesting math over them.

    Args:
        schedule: Shared, read-only vesting schedule
        balance_reader: Returns the wallet's current balance of an asset
    """

    def __init__(self, schedule: VestingSchedule, balance_reader: BalanceReader) -> None:
        self.schedule = schedule
        self._balance_reader = balance_reader
        self._accounts: dict[str, AssetAccount] = {}

    def account(self, asset: str | None) -> AssetAccount:
        key = normalize_asset(asset)
        account = self._accounts.get(key)
        if account is None:
            account = AssetAccount()
            self._accounts[key] = account
            logger.debug("Asset account opened", extra={"event": "ledger.account_opened", "asset": key[:10]})
        return account

    # ==================== Queries ====================

    def released(self, asset: str | None = None) -> int:
        return self.account(asset).released

    def revoked(self, asset: str | None = None) -> int:
        return self.account(asset).revoked

    def revocation_timestamp(self, asset: str | None = None) -> int:
        return self.account(asset).revocation_timestamp

    def is_revoked(self, asset: str | None = None) -> bool:
        return self.account(asset).is_revoked

    def current_balance(self, asset: str | None = None) -> int:
        return self._balance_reader(normalize_asset(asset))

    def total_allocation(self, asset: str | None = None) -> int:
        account = self.account(asset)
        return self.current_balance(asset) + account.released + account.revoked

    def effective_timestamp(self, asset: str | None, as_of: int) -> int:
        """``as_of`` capped at the first revocation, if any."""
        account = self.account(asset)
        if account.revoked_at is None:
            return as_of
        return min(as_of, account.revoked_at)

    def vested_amount(self, asset: str | None, as_of: int) -> int:
        return self.schedule.vested_amount(
            self.total_allocation(asset),
            self.effective_timestamp(asset, as_of),
        )

    def releasable(self, asset: str | None, as_of: int) -> int:
        account = self.account(asset)
        vested = self.vested_amount(asset, as_of)
        amount = vested - account.released
        if amount < 0:
            raise LedgerInvariantError(
                "Released amount exceeds vested amount",
                details={
                    "asset": normalize_asset(asset),
                    "released": account.released,
                    "vested": vested,
                },
            )
        return amount

    def snapshot(self, asset: str | None, as_of: int) -> dict[str, Any]:
        """Full reconciliation view of one asset at ``as_of``."""
        account = self.account(asset)
        balance = self.current_balance(asset)
        return {
            "asset": normalize_asset(asset),
            "balance": balance,
            "released": account.released,
            "revoked": account.revoked,
            "total_allocation": balance + account.released + account.revoked,
            "vested": self.vested_amount(asset, as_of),
            "releasable": self.releasable(asset, as_of),
            "revocation_timestamp": account.revocation_timestamp,
        }

    # ==================== Mutators ====================

    def record_release(self, asset: str | None, amount: int) -> None:
        self.account(asset).released += amount

    def revert_release(self, asset: str | None, amount: int) -> None:
        self.account(asset).released -= amount

    def freeze(self, asset: str | None, timestamp: int) -> bool:
        """Fix the revocation timestamp if unset. Returns True when it was set by this call."""
        account = self.account(asset)
        if account.revoked_at is not None:
            return False
        account.revoked_at = timestamp
        return True

    def unfreeze(self, asset: str | None) -> None:
        self.account(asset).revoked_at = None

    def record_revocation(self, asset: str | None, amount: int) -> None:
        self.account(asset).revoked += amount

    def revert_revocation(self, asset: str | None, amount: int) -> None:
        self.account(asset).revoked -= amount

    def checkpoint(self, asset: str | None) -> AssetAccount:
        """Copy of the account for ``asset``, to be handed back to ``restore``."""
        return replace(self.account(asset))

    def restore(self, asset: str | None, checkpoint: AssetAccount) -> None:
        """Roll ``asset`` back to a checkpoint, discarding every change made since."""
        self._accounts[normalize_asset(asset)] = replace(checkpoint)

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {asset: account.to_dict() for asset, account in self._accounts.items()}

    def load(self, data: dict[str, Any]) -> None:
        for asset, account_data in data.items():
            self._accounts[normalize_asset(asset)] = AssetAccount.from_dict(account_data)
