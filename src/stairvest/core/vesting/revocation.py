"""
Revoker-facing claw-back of unvested value.

The first revoke of an asset freezes its vesting clock at the call's
timestamp. Every revoke, first or later, sweeps the part of the current
balance that the beneficiary cannot claim under the frozen schedule to the
treasury. Value arriving after the freeze is therefore revocable by calling
revoke again, while everything vested at the freeze point stays releasable.
"""

from __future__ import annotations

import logging

from ..access_control import Caller, CallerAuthority, caller_address
from ..vesting_exceptions import LedgerInvariantError, OnlyRevoker
from .assets import AssetGateway, normalize_asset
from .events import VestingEvent
from .ledger import AssetLedger

logger = logging.getLogger(__name__)


class RevocationController:
    def __init__(
        self,
        ledger: AssetLedger,
        gateway: AssetGateway,
        revoker: CallerAuthority,
        treasury: str,
    ) -> None:
        if not treasury:
            raise ValueError("Treasury address cannot be empty.")
        self.ledger = ledger
        self.gateway = gateway
        self.revoker = revoker
        self.treasury = treasury.lower()

    def returnable(self, asset: str | None, now: int) -> int:
        """Balance not claimable by the beneficiary at ``now``."""
        asset = normalize_asset(asset)
        balance = self.ledger.current_balance(asset)
        amount = balance - self.ledger.releasable(asset, now)
        if amount < 0:
            raise LedgerInvariantError(
                "Releasable amount exceeds wallet balance",
                details={"asset": asset, "balance": balance},
            )
        return amount

    def revoke(self, caller: Caller | None, asset: str | None, now: int) -> VestingEvent:
        """
        Freeze ``asset`` (first call only) and send the unvested remainder to the treasury.

        Raises:
            OnlyRevoker: ``caller`` is not the designated revoker; nothing changes
            AssetTransferError: the treasury transfer failed; the freeze and
                the revoked increment made by this call are undone
        """
        asset = normalize_asset(asset)
        if not self.revoker.is_authorized(caller, "revoke", asset):
            raise OnlyRevoker(
                "Only the revoker can revoke",
                details={"caller": caller_address(caller), "asset": asset},
            )

        froze = self.ledger.freeze(asset, now)
        amount = 0
        try:
            amount = self.returnable(asset, now)
            self.ledger.record_revocation(asset, amount)
            self.gateway.transfer(asset, self.treasury, amount)
        except Exception:
            self.ledger.revert_revocation(asset, amount)
            if froze:
                self.ledger.unfreeze(asset)
            raise

        logger.info(
            "Unvested amount revoked",
            extra={
                "event": "vesting.revoke",
                "asset": asset[:10],
                "treasury": self.treasury[:10],
                "amount": amount,
                "revoked_total": self.ledger.revoked(asset),
                "frozen_at": self.ledger.revocation_timestamp(asset),
                "first_revocation": froze,
            }
        )
        return VestingEvent.revoked(asset, amount, self.treasury, now)
