"""
Vesting wallet.

Holds a pool of native value and any number of tokens for one beneficiary
and releases it according to a vesting schedule. Variants are chosen by
composition rather than subclassing:

    plain:      LinearVestingSchedule, no revoker
    stair:      StairVestingSchedule, no revoker
    revocable:  either schedule plus a revoker authority and a treasury

Every mutator runs under the wallet's re-entrant lock and commits its ledger
change before the transfer. A mutator called re-entrantly from a receive
hook sees that committed state, but its event and metrics are held back
until the outermost call on the same asset completes. If that outer
transfer fails, the asset's contract reverts the nested transfers with it,
so the asset's account is rolled back to where the outer call started and
the held-back events are dropped.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from ..access_control import AddressAuthority, Caller, CallerAuthority, caller_address
from ..config import ConfigurationError, VestingWalletConfig
from ..structured_logger import LogContext
from ..vesting_exceptions import OnlyBeneficiary, RevocationNotEnabled, VestingError
from . import metrics
from .assets import AssetGateway, normalize_asset
from .events import NATIVE_RELEASED, TOKEN_RELEASED, EventSubscriber, VestingEvent
from .ledger import AssetLedger
from .release import ReleaseController
from .revocation import RevocationController
from .schedule import LinearVestingSchedule, StairVestingSchedule, VestingSchedule

logger = logging.getLogger(__name__)

TimeProvider = Callable[[], int]


class VestingWallet:
    """
    Vesting wallet for one beneficiary.

    Args:
        beneficiary: Address that receives released value
        schedule: Vesting curve shared by every asset
        gateway: Balance/transfer access for the wallet's holdings
        revoker: Authority (or plain address) allowed to revoke; ``None``
            builds a non-revocable wallet
        treasury: Destination of revoked value; required with ``revoker``
        time_provider: Current timestamp source, read once per call
        restrict_release: Only the beneficiary may trigger a release
        beneficiary_authority: Identity check used when ``restrict_release``
            is set (defaults to matching the beneficiary address)
    """

    def __init__(
        self,
        beneficiary: str,
        schedule: VestingSchedule,
        gateway: AssetGateway,
        *,
        revoker: CallerAuthority | str | None = None,
        treasury: str | None = None,
        time_provider: TimeProvider | None = None,
        restrict_release: bool = False,
        beneficiary_authority: CallerAuthority | None = None,
    ) -> None:
        if not beneficiary:
            raise ValueError("Beneficiary address cannot be empty.")
        if (revoker is None) != (not treasury):
            raise ValueError("revoker and treasury must be provided together.")

        self.beneficiary = beneficiary.lower()
        self.schedule = schedule
        self.gateway = gateway
        self.restrict_release = restrict_release
        self.beneficiary_authority = beneficiary_authority or AddressAuthority(self.beneficiary)
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._lock = threading.RLock()

        self.ledger = AssetLedger(schedule, gateway.balance_of)
        self.release_controller = ReleaseController(self.ledger, gateway, self.beneficiary)
        self.revocation_controller: RevocationController | None = None
        if revoker is not None:
            authority = AddressAuthority(revoker) if isinstance(revoker, str) else revoker
            self.revocation_controller = RevocationController(self.ledger, gateway, authority, treasury)

        self.events: list[VestingEvent] = []
        self._subscribers: list[EventSubscriber] = []
        # asset -> events of nested calls waiting on the outermost call
        self._held_events: dict[str, list[VestingEvent]] = {}

        logger.info(
            "Vesting wallet created",
            extra={
                "event": "vesting.wallet_created",
                "address": self.address[:10],
                "beneficiary": self.beneficiary[:10],
                "schedule": schedule.to_dict(),
                "revocable": self.revocable,
            }
        )

    @classmethod
    def from_config(
        cls,
        config: VestingWalletConfig,
        gateway: AssetGateway,
        time_provider: TimeProvider | None = None,
        revoker: CallerAuthority | None = None,
    ) -> "VestingWallet":
        """
        Build a wallet from a validated configuration record.

        Raises:
            ConfigurationError: ``config.address`` is set and is not the
                gateway's holder
        """
        if config.address and config.address.lower() != gateway.holder:
            raise ConfigurationError(
                f"Configured wallet address {config.address} does not match gateway holder {gateway.holder}"
            )
        if config.schedule == "linear":
            schedule: VestingSchedule = LinearVestingSchedule(config.start, config.duration)
        else:
            schedule = StairVestingSchedule(
                start=config.start,
                duration=config.duration,
                cliff_offset=config.cliff,
                step_duration=config.step_duration,
                number_of_steps=config.number_of_steps,
            )
        return cls(
            config.beneficiary,
            schedule,
            gateway,
            revoker=(revoker or config.revoker) if config.revocable else None,
            treasury=config.treasury or None,
            time_provider=time_provider,
            restrict_release=config.restrict_release,
        )

    # ==================== Schedule Accessors ====================

    @property
    def address(self) -> str:
        return self.gateway.holder

    @property
    def revocable(self) -> bool:
        return self.revocation_controller is not None

    @property
    def treasury(self) -> str | None:
        return self.revocation_controller.treasury if self.revocation_controller else None

    @property
    def start(self) -> int:
        return self.schedule.start

    @property
    def duration(self) -> int:
        return self.schedule.duration

    @property
    def end(self) -> int:
        return self.schedule.end

    @property
    def cliff(self) -> int:
        """Timestamp at which the cliff ends; ``start`` for linear schedules."""
        if isinstance(self.schedule, StairVestingSchedule):
            return self.schedule.cliff
        return self.schedule.start

    @property
    def step_duration(self) -> int:
        """Step length in seconds; 0 for linear schedules."""
        if isinstance(self.schedule, StairVestingSchedule):
            return self.schedule.step_duration
        return 0

    @property
    def number_of_steps(self) -> int:
        """Number of unlock steps; 0 for linear schedules."""
        if isinstance(self.schedule, StairVestingSchedule):
            return self.schedule.number_of_steps
        return 0

    # ==================== Ledger Accessors ====================

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def released(self, asset: str | None = None) -> int:
        return self.ledger.released(asset)

    def revoked(self, asset: str | None = None) -> int:
        return self.ledger.revoked(asset)

    def revocation_timestamp(self, asset: str | None = None) -> int:
        return self.ledger.revocation_timestamp(asset)

    def balance(self, asset: str | None = None) -> int:
        return self.ledger.current_balance(asset)

    def releasable(self, asset: str | None = None, as_of: int | None = None) -> int:
        if as_of is None:
            as_of = self._current_time()
        return self.ledger.releasable(asset, as_of)

    def vested_amount(self, asset: str | None = None, as_of: int | None = None) -> int:
        """Amount of ``asset`` vested at ``as_of``, with the clock capped at revocation."""
        if as_of is None:
            as_of = self._current_time()
        return self.ledger.vested_amount(asset, as_of)

    def snapshot(self, asset: str | None = None, as_of: int | None = None) -> dict[str, Any]:
        if as_of is None:
            as_of = self._current_time()
        return self.ledger.snapshot(asset, as_of)

    # ==================== Mutators ====================

    def release(self, asset: str | None = None, caller: Caller | None = None) -> int:
        """
        Release everything currently releasable of ``asset`` (native if omitted).

        Returns:
            Amount transferred to the beneficiary (may be 0)

        Raises:
            OnlyBeneficiary: release is restricted and ``caller`` is not the beneficiary
            AssetTransferError: transfer failed; the ledger is unchanged
        """
        asset = normalize_asset(asset)
        with self._lock:
            if self.restrict_release and not self.beneficiary_authority.is_authorized(caller, "release", asset):
                metrics.record_failure("release", OnlyBeneficiary.__name__)
                raise OnlyBeneficiary(
                    "Only the beneficiary can release",
                    details={"caller": caller_address(caller), "asset": asset},
                )
            return self._run("release", asset, lambda now: self.release_controller.release(asset, now))

    def revoke(self, caller: Caller | None, asset: str | None = None) -> int:
        """
        Revoke the unvested remainder of ``asset`` (native if omitted).

        Returns:
            Amount transferred to the treasury (may be 0)

        Raises:
            RevocationNotEnabled: wallet was built without a revoker
            OnlyRevoker: ``caller`` is not the revoker
            AssetTransferError: transfer failed; the ledger is unchanged
        """
        asset = normalize_asset(asset)
        controller = self.revocation_controller
        if controller is None:
            metrics.record_failure("revoke", RevocationNotEnabled.__name__)
            raise RevocationNotEnabled("Wallet is not revocable", details={"asset": asset})
        with self._lock:
            return self._run("revoke", asset, lambda now: controller.revoke(caller, asset, now))

    def _run(self, operation: str, asset: str, action: Callable[[int], VestingEvent]) -> int:
        """
        Run one mutator on ``asset`` and settle its event.

        Only the outermost call on an asset settles: it records metrics and
        publishes its own event plus those of calls nested inside its
        transfer. On failure it restores the asset's account as it found it.
        """
        outermost = asset not in self._held_events
        with LogContext(operation):
            if outermost:
                checkpoint = self.ledger.checkpoint(asset)
                self._held_events[asset] = []
            try:
                event = action(self._current_time())
            except Exception as exc:
                if outermost:
                    self.ledger.restore(asset, checkpoint)
                    discarded = self._held_events.pop(asset)
                    if discarded:
                        logger.warning(
                            "Nested operations rolled back",
                            extra={
                                "event": "vesting.nested_rollback",
                                "asset": asset[:10],
                                "discarded": len(discarded),
                            }
                        )
                if isinstance(exc, VestingError):
                    metrics.record_failure(operation, type(exc).__name__)
                raise

            if not outermost:
                self._held_events[asset].append(event)
                return event.amount
            for settled in self._held_events.pop(asset) + [event]:
                self._record(settled)
                self._publish(settled)
            return event.amount

    # ==================== Events ====================

    def subscribe(self, subscriber: EventSubscriber) -> None:
        self._subscribers.append(subscriber)

    @staticmethod
    def _record(event: VestingEvent) -> None:
        if event.event_type in (NATIVE_RELEASED, TOKEN_RELEASED):
            metrics.record_release(event.asset, event.amount)
        else:
            metrics.record_revocation(event.asset, event.amount)

    def _publish(self, event: VestingEvent) -> None:
        self.events.append(event)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                # Value has already moved.
                logger.error(
                    "Event subscriber failed",
                    exc_info=True,
                    extra={"event": "vesting.subscriber_error", "event_type": event.event_type},
                )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "beneficiary": self.beneficiary,
            "schedule": self.schedule.to_dict(),
            "treasury": self.treasury,
            "restrict_release": self.restrict_release,
            "accounts": self.ledger.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        gateway: AssetGateway,
        revoker: CallerAuthority | str | None = None,
        time_provider: TimeProvider | None = None,
    ) -> "VestingWallet":
        """
        Restore a wallet persisted with ``to_dict``.

        Authorities are not persisted; pass the revoker again for revocable wallets.
        """
        if data.get("address") and data["address"].lower() != gateway.holder:
            raise ValueError("Gateway holder does not match persisted wallet address.")
        wallet = cls(
            data["beneficiary"],
            VestingSchedule.from_dict(data["schedule"]),
            gateway,
            revoker=revoker,
            treasury=data.get("treasury"),
            time_provider=time_provider,
            restrict_release=data.get("restrict_release", False),
        )
        wallet.ledger.load(data.get("accounts", {}))
        return wallet
