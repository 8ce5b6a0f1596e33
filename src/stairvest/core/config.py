"""
StairVest configuration.

Process-wide settings come from ``STAIRVEST_*`` environment variables.
Wallet construction parameters are described by ``VestingWalletConfig``,
which can be built from a mapping (e.g. a parsed JSON document) or from the
environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


LOG_LEVEL = os.getenv("STAIRVEST_LOG_LEVEL", "INFO").strip().upper()
LOG_JSON = _env_flag("STAIRVEST_LOG_JSON", "1")
METRICS_ENABLED = _env_flag("STAIRVEST_METRICS_ENABLED", "1")
NATIVE_SYMBOL = os.getenv("STAIRVEST_NATIVE_SYMBOL", "ETH").strip() or "ETH"

_SCHEDULE_FIELDS = ("start", "duration", "cliff", "step_duration", "number_of_steps")


def _parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ConfigurationError(f"{name} must be an integer, got {value!r}")


@dataclass
class VestingWalletConfig:
    """
    Everything needed to stand up one vesting wallet.

    ``schedule`` selects the curve: "stair" (cliff + steps) or "linear".
    Revocation is enabled only when both ``revoker`` and ``treasury`` are
    set. ``cliff`` is an offset from ``start``, in seconds.
    """

    beneficiary: str
    start: int
    duration: int
    schedule: str = "stair"
    cliff: int = 0
    step_duration: int = 0
    number_of_steps: int = 0
    revoker: str = ""
    treasury: str = ""
    restrict_release: bool = False
    address: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.beneficiary:
            raise ConfigurationError("beneficiary is required")
        if self.schedule not in ("stair", "linear"):
            raise ConfigurationError(f"Unknown schedule type: {self.schedule}")
        if bool(self.revoker) != bool(self.treasury):
            raise ConfigurationError("revoker and treasury must be configured together")

    @property
    def revocable(self) -> bool:
        return bool(self.revoker and self.treasury)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VestingWalletConfig":
        missing = [name for name in ("beneficiary", "start", "duration") if name not in data]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        known = {
            "beneficiary", "schedule", "revoker", "treasury", "restrict_release", "address",
            *_SCHEDULE_FIELDS,
        }
        values: dict[str, Any] = {
            name: _parse_int(data[name], name) for name in _SCHEDULE_FIELDS if name in data
        }
        restrict = data.get("restrict_release", False)
        if isinstance(restrict, str):
            restrict = restrict.strip().lower() in {"1", "true", "yes", "on"}
        return cls(
            beneficiary=str(data["beneficiary"]),
            schedule=str(data.get("schedule", "stair")),
            revoker=str(data.get("revoker", "") or ""),
            treasury=str(data.get("treasury", "") or ""),
            restrict_release=bool(restrict),
            address=str(data.get("address", "") or ""),
            extra={k: v for k, v in data.items() if k not in known},
            **values,
        )

    @classmethod
    def from_env(cls, prefix: str = "STAIRVEST_WALLET_") -> "VestingWalletConfig":
        """Build from variables such as ``STAIRVEST_WALLET_BENEFICIARY``."""
        data: dict[str, Any] = {}
        for name in ("beneficiary", "schedule", "revoker", "treasury", "restrict_release", "address",
                     *_SCHEDULE_FIELDS):
            value = os.getenv(f"{prefix}{name.upper()}", "").strip()
            if value:
                data[name] = value
        logger.debug(
            "Loaded wallet configuration from environment",
            extra={"event": "config.wallet_loaded", "fields": sorted(data)},
        )
        return cls.from_mapping(data)
