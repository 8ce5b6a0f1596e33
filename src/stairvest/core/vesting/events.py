"""Audit records emitted by vesting wallet mutators."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

from .assets import NATIVE_ASSET

NATIVE_RELEASED = "NativeReleased"
TOKEN_RELEASED = "TokenReleased"
NATIVE_REVOKED = "NativeRevoked"
TOKEN_REVOKED = "TokenRevoked"


@dataclass(frozen=True)
class VestingEvent:
    """One value movement out of a vesting wallet."""

    event_type: str
    asset: str
    amount: int
    destination: str
    timestamp: int

    @classmethod
    def released(cls, asset: str, amount: int, destination: str, timestamp: int) -> "VestingEvent":
        kind = NATIVE_RELEASED if asset == NATIVE_ASSET else TOKEN_RELEASED
        return cls(kind, asset, amount, destination, timestamp)

    @classmethod
    def revoked(cls, asset: str, amount: int, destination: str, timestamp: int) -> "VestingEvent":
        kind = NATIVE_REVOKED if asset == NATIVE_ASSET else TOKEN_REVOKED
        return cls(kind, asset, amount, destination, timestamp)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


EventSubscriber = Callable[[VestingEvent], None]
