"""
Vesting schedules.

A schedule is an immutable set of time parameters plus a pure function that
maps a total allocation and a timestamp to the amount vested at that
timestamp. Schedules never look at balances or ledgers; the wallet feeds them
the derived total allocation for each asset.

Two curves are provided:
- StairVestingSchedule: nothing vests before the cliff, then a fixed fraction
  unlocks at the cliff and after every further step.
- LinearVestingSchedule: straight-line vesting between start and end.

All arithmetic is integer arithmetic. Fractional amounts are truncated toward
zero, so the vested amount never exceeds the exact pro-rata entitlement and
the remainder is only resolved when the schedule is fully vested.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..vesting_exceptions import (
    InvalidCliffDuration,
    InvalidScheduleError,
    InvalidStepConfiguration,
)


def _require_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScheduleError(
            f"{field_name} must be an integer, got {type(value).__name__}",
            details={"field": field_name},
        )
    if value < 0:
        raise InvalidScheduleError(
            f"{field_name} cannot be negative",
            details={"field": field_name, "value": value},
        )
    return value


class VestingSchedule(ABC):
    """Common interface for vesting curves."""

    start: int
    duration: int

    @property
    def end(self) -> int:
        return self.start + self.duration

    @abstractmethod
    def vested_amount(self, total_allocation: int, as_of: int) -> int:
        """Return the portion of ``total_allocation`` vested at ``as_of``."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize schedule parameters."""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "VestingSchedule":
        """Rebuild a schedule from ``to_dict`` output."""
        kind = data.get("kind", "stair")
        if kind == "stair":
            return StairVestingSchedule(
                start=data["start"],
                duration=data["duration"],
                cliff_offset=data["cliff_offset"],
                step_duration=data["step_duration"],
                number_of_steps=data["number_of_steps"],
            )
        if kind == "linear":
            return LinearVestingSchedule(start=data["start"], duration=data["duration"])
        raise InvalidScheduleError(f"Unknown schedule kind: {kind}", details={"kind": kind})


@dataclass(frozen=True)
class StairVestingSchedule(VestingSchedule):
    """
    Cliff followed by discrete, equally sized unlock steps.

    The first step unlocks the instant the cliff ends. Each further step
    unlocks ``step_duration`` seconds after the previous one. Once
    ``number_of_steps`` steps have completed the whole allocation is vested.

    Example (cliff 365 days, step 90 days, 4 steps, allocation 1000):
        day 364 -> 0, day 365 -> 250, day 455 -> 500, day 635 -> 1000

    Raises:
        InvalidCliffDuration: cliff_offset exceeds duration
        InvalidStepConfiguration: zero steps, zero step duration, or the
            steps do not fit inside duration
    """

    start: int
    duration: int
    cliff_offset: int
    step_duration: int
    number_of_steps: int

    def __post_init__(self) -> None:
        for name in ("start", "duration", "cliff_offset", "step_duration", "number_of_steps"):
            _require_non_negative_int(getattr(self, name), name)

        if self.cliff_offset > self.duration:
            raise InvalidCliffDuration(
                f"Cliff offset {self.cliff_offset} exceeds duration {self.duration}",
                details={"cliff_offset": self.cliff_offset, "duration": self.duration},
            )
        if self.number_of_steps == 0 or self.step_duration == 0:
            raise InvalidStepConfiguration(
                "Step duration and number of steps must both be positive",
                details={
                    "step_duration": self.step_duration,
                    "number_of_steps": self.number_of_steps,
                },
            )
        stepped_end = self.cliff_offset + self.step_duration * self.number_of_steps
        if stepped_end > self.duration:
            raise InvalidStepConfiguration(
                f"Cliff plus steps ({stepped_end}) exceeds duration {self.duration}",
                details={"stepped_end": stepped_end, "duration": self.duration},
            )

    @property
    def cliff(self) -> int:
        """Timestamp at which the cliff ends and the first step unlocks."""
        return self.start + self.cliff_offset

    def steps_completed(self, as_of: int) -> int:
        """Number of unlocked steps at ``as_of``, capped at ``number_of_steps``."""
        if as_of < self.cliff:
            return 0
        completed = (as_of - self.cliff) // self.step_duration + 1
        return min(completed, self.number_of_steps)

    def vested_amount(self, total_allocation: int, as_of: int) -> int:
        steps = self.steps_completed(as_of)
        if steps == 0:
            return 0
        if steps >= self.number_of_steps:
            return total_allocation
        return total_allocation * steps // self.number_of_steps

    def unlock_timestamps(self) -> list[int]:
        """Timestamps at which each step unlocks, in order."""
        return [self.cliff + i * self.step_duration for i in range(self.number_of_steps)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "stair",
            "start": self.start,
            "duration": self.duration,
            "cliff_offset": self.cliff_offset,
            "step_duration": self.step_duration,
            "number_of_steps": self.number_of_steps,
        }


@dataclass(frozen=True)
class LinearVestingSchedule(VestingSchedule):
    """Straight-line vesting from ``start`` to ``start + duration``."""

    start: int
    duration: int

    def __post_init__(self) -> None:
        _require_non_negative_int(self.start, "start")
        _require_non_negative_int(self.duration, "duration")

    def vested_amount(self, total_allocation: int, as_of: int) -> int:
        if as_of < self.start:
            return 0
        if as_of >= self.end:
            return total_allocation
        return total_allocation * (as_of - self.start) // self.duration

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "linear", "start": self.start, "duration": self.duration}
