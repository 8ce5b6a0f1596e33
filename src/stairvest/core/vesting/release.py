"""Beneficiary-facing release of vested value."""

from __future__ import annotations

import logging

from .assets import AssetGateway, normalize_asset
from .events import VestingEvent
from .ledger import AssetLedger

logger = logging.getLogger(__name__)


class ReleaseController:
    """
    Pays out whatever has vested but not yet been released.

    Anyone may trigger a release; the value always goes to the fixed
    beneficiary. The ledger is credited before the transfer is issued and
    debited again if the transfer fails.
    """

    def __init__(self, ledger: AssetLedger, gateway: AssetGateway, beneficiary: str) -> None:
        if not beneficiary:
            raise ValueError("Beneficiary address cannot be empty.")
        self.ledger = ledger
        self.gateway = gateway
        self.beneficiary = beneficiary.lower()

    def release(self, asset: str | None, now: int) -> VestingEvent:
        asset = normalize_asset(asset)
        amount = self.ledger.releasable(asset, now)

        self.ledger.record_release(asset, amount)
        try:
            self.gateway.transfer(asset, self.beneficiary, amount)
        except Exception:
            self.ledger.revert_release(asset, amount)
            raise

        logger.info(
            "Vested amount released",
            extra={
                "event": "vesting.release",
                "asset": asset[:10],
                "beneficiary": self.beneficiary[:10],
                "amount": amount,
                "released_total": self.ledger.released(asset),
            }
        )
        return VestingEvent.released(asset, amount, self.beneficiary, now)
