"""
Unit tests for stair and linear vesting schedules.

Coverage targets:
- Cliff lockup, first step at cliff end, full vest at final step
- Truncating division between steps
- Construction-time validation errors
"""

import pytest

from stairvest.core.vesting.schedule import (
    LinearVestingSchedule,
    StairVestingSchedule,
    VestingSchedule,
)
from stairvest.core.vesting_exceptions import (
    InvalidCliffDuration,
    InvalidScheduleError,
    InvalidStepConfiguration,
    ScheduleConfigurationError,
)

DAY = 86_400
START = 1_700_000_000


def _schedule(**overrides):
    params = dict(
        start=START,
        duration=725 * DAY,
        cliff_offset=365 * DAY,
        step_duration=90 * DAY,
        number_of_steps=4,
    )
    params.update(overrides)
    return StairVestingSchedule(**params)


class TestStairVesting:
    def test_one_year_cliff_quarterly_steps(self):
        schedule = _schedule()

        assert schedule.vested_amount(1000, START + 364 * DAY) == 0
        assert schedule.vested_amount(1000, START + 365 * DAY) == 250
        assert schedule.vested_amount(1000, START + (365 + 90) * DAY) == 500
        assert schedule.vested_amount(1000, START + (365 + 270) * DAY) == 1000

    def test_nothing_vests_one_second_before_cliff(self):
        schedule = _schedule()
        assert schedule.vested_amount(1000, schedule.cliff - 1) == 0
        assert schedule.vested_amount(1000, schedule.cliff) == 250

    def test_step_holds_until_next_boundary(self):
        schedule = _schedule()
        second_step = schedule.cliff + 90 * DAY
        assert schedule.vested_amount(1000, second_step - 1) == 250
        assert schedule.vested_amount(1000, second_step) == 500

    def test_before_start_vests_nothing(self):
        schedule = _schedule()
        assert schedule.vested_amount(1000, START - 1) == 0
        assert schedule.vested_amount(1000, 0) == 0

    def test_full_vest_after_end(self):
        schedule = _schedule()
        assert schedule.vested_amount(1000, schedule.end + 10 * DAY) == 1000

    def test_fractional_steps_truncate(self):
        schedule = _schedule(number_of_steps=3, step_duration=100 * DAY)
        # 1000 / 3 per step, truncated
        assert schedule.vested_amount(1000, schedule.cliff) == 333
        assert schedule.vested_amount(1000, schedule.cliff + 100 * DAY) == 666
        # Final step resolves the remainder exactly
        assert schedule.vested_amount(1000, schedule.cliff + 200 * DAY) == 1000

    def test_single_step_vests_everything_at_cliff(self):
        schedule = _schedule(number_of_steps=1)
        assert schedule.vested_amount(999, schedule.cliff - 1) == 0
        assert schedule.vested_amount(999, schedule.cliff) == 999

    def test_zero_cliff_unlocks_first_step_at_start(self):
        schedule = _schedule(cliff_offset=0)
        assert schedule.cliff == START
        assert schedule.vested_amount(1000, START) == 250

    def test_zero_allocation(self):
        assert _schedule().vested_amount(0, START + 700 * DAY) == 0

    def test_large_allocation_has_no_precision_loss(self):
        total = 10**27 + 3
        schedule = _schedule()
        assert schedule.vested_amount(total, schedule.cliff) == total // 4
        assert schedule.vested_amount(total, schedule.cliff + 270 * DAY) == total

    def test_steps_completed_is_capped(self):
        schedule = _schedule()
        assert schedule.steps_completed(schedule.cliff - 1) == 0
        assert schedule.steps_completed(schedule.cliff) == 1
        assert schedule.steps_completed(schedule.end + 1000 * DAY) == 4

    def test_unlock_timestamps(self):
        schedule = _schedule()
        cliff = START + 365 * DAY
        assert schedule.unlock_timestamps() == [
            cliff,
            cliff + 90 * DAY,
            cliff + 180 * DAY,
            cliff + 270 * DAY,
        ]

    def test_steps_may_end_exactly_at_duration(self):
        schedule = _schedule(duration=365 * DAY + 4 * 90 * DAY)
        assert schedule.end == START + 725 * DAY


class TestStairValidation:
    def test_cliff_longer_than_duration(self):
        with pytest.raises(InvalidCliffDuration):
            _schedule(cliff_offset=726 * DAY)

    def test_zero_steps(self):
        with pytest.raises(InvalidStepConfiguration):
            _schedule(number_of_steps=0)

    def test_zero_step_duration(self):
        with pytest.raises(InvalidStepConfiguration):
            _schedule(step_duration=0)

    def test_steps_overrun_duration(self):
        with pytest.raises(InvalidStepConfiguration) as exc_info:
            _schedule(number_of_steps=5)
        assert exc_info.value.details["stepped_end"] == 365 * DAY + 5 * 90 * DAY

    def test_negative_and_non_integer_parameters(self):
        with pytest.raises(InvalidScheduleError):
            _schedule(start=-1)
        with pytest.raises(InvalidScheduleError):
            _schedule(step_duration=1.5)
        with pytest.raises(InvalidScheduleError):
            _schedule(number_of_steps=True)

    def test_errors_share_configuration_base(self):
        with pytest.raises(ScheduleConfigurationError):
            _schedule(cliff_offset=800 * DAY)

    def test_schedule_is_immutable(self):
        schedule = _schedule()
        with pytest.raises(AttributeError):
            schedule.start = 0


class TestLinearVesting:
    def test_linear_progression(self):
        schedule = LinearVestingSchedule(start=START, duration=100)
        assert schedule.vested_amount(1000, START - 1) == 0
        assert schedule.vested_amount(1000, START) == 0
        assert schedule.vested_amount(1000, START + 25) == 250
        assert schedule.vested_amount(1000, START + 33) == 330
        assert schedule.vested_amount(1000, START + 100) == 1000

    def test_linear_truncates(self):
        schedule = LinearVestingSchedule(start=0, duration=3)
        assert schedule.vested_amount(10, 1) == 3
        assert schedule.vested_amount(10, 2) == 6

    def test_zero_duration_vests_at_start(self):
        schedule = LinearVestingSchedule(start=START, duration=0)
        assert schedule.vested_amount(500, START - 1) == 0
        assert schedule.vested_amount(500, START) == 500


class TestScheduleSerialization:
    def test_stair_round_trip(self):
        schedule = _schedule()
        assert VestingSchedule.from_dict(schedule.to_dict()) == schedule

    def test_linear_round_trip(self):
        schedule = LinearVestingSchedule(start=START, duration=DAY)
        restored = VestingSchedule.from_dict(schedule.to_dict())
        assert isinstance(restored, LinearVestingSchedule)
        assert restored == schedule

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidScheduleError):
            VestingSchedule.from_dict({"kind": "exponential", "start": 0, "duration": 1})
