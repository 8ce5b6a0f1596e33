"""
Vesting engine.

- VestingSchedule: stair and linear curves (pure math)
- AssetLedger: per-asset released/revoked/freeze bookkeeping
- ReleaseController / RevocationController: the two mutators
- VestingWallet: composition of the above with locking, events and metrics
"""

from .assets import NATIVE_ASSET, AssetGateway, normalize_asset
from .events import (
    NATIVE_RELEASED,
    NATIVE_REVOKED,
    TOKEN_RELEASED,
    TOKEN_REVOKED,
    VestingEvent,
)
from .ledger import AssetAccount, AssetLedger
from .release import ReleaseController
from .revocation import RevocationController
from .schedule import LinearVestingSchedule, StairVestingSchedule, VestingSchedule
from .wallet import VestingWallet

__all__ = [
    "NATIVE_ASSET",
    "AssetGateway",
    "normalize_asset",
    "VestingEvent",
    "NATIVE_RELEASED",
    "NATIVE_REVOKED",
    "TOKEN_RELEASED",
    "TOKEN_REVOKED",
    "AssetAccount",
    "AssetLedger",
    "ReleaseController",
    "RevocationController",
    "VestingSchedule",
    "StairVestingSchedule",
    "LinearVestingSchedule",
    "VestingWallet",
]
