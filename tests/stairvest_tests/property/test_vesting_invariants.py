"""
Property-based tests for vesting wallet invariants.

Schedules are generated within their validity constraints and wallets are
driven through random sequences of deposits, releases, revocations and
clock advances. After every step value must be conserved:

    released + revoked + balance == total deposited

and the beneficiary and treasury must hold exactly what the ledger says
was released and revoked.

Uses Hypothesis for property-based testing with random inputs.
"""

from hypothesis import given, settings, strategies as st

from stairvest.core.native_ledger import NativeLedger
from stairvest.core.vesting import AssetGateway, StairVestingSchedule, VestingWallet

WALLET = "0xwallet"
BENEFICIARY = "0xbeneficiary"
REVOKER = "0xrevoker"
TREASURY = "0xtreasury"


@st.composite
def stair_schedules(draw):
    cliff = draw(st.integers(min_value=0, max_value=10_000))
    step = draw(st.integers(min_value=1, max_value=5_000))
    steps = draw(st.integers(min_value=1, max_value=48))
    slack = draw(st.integers(min_value=0, max_value=10_000))
    start = draw(st.integers(min_value=0, max_value=2_000_000_000))
    return StairVestingSchedule(
        start=start,
        duration=cliff + step * steps + slack,
        cliff_offset=cliff,
        step_duration=step,
        number_of_steps=steps,
    )


actions = st.lists(
    st.one_of(
        st.tuples(st.just("advance"), st.integers(min_value=0, max_value=50_000)),
        st.tuples(st.just("deposit"), st.integers(min_value=0, max_value=10**6)),
        st.tuples(st.just("release"), st.just(0)),
        st.tuples(st.just("revoke"), st.just(0)),
    ),
    max_size=30,
)


class TestScheduleProperties:
    """Shape of the stair curve."""

    @given(
        schedule=stair_schedules(),
        total=st.integers(min_value=0, max_value=10**30),
        t1=st.integers(min_value=0, max_value=2_100_000_000),
        t2=st.integers(min_value=0, max_value=2_100_000_000),
    )
    @settings(max_examples=200)
    def test_vested_is_monotonic_and_bounded(self, schedule, total, t1, t2):
        early, late = sorted((t1, t2))
        vested_early = schedule.vested_amount(total, early)
        vested_late = schedule.vested_amount(total, late)
        assert 0 <= vested_early <= vested_late <= total

    @given(schedule=stair_schedules(), total=st.integers(min_value=0, max_value=10**30))
    def test_fully_vested_at_final_step(self, schedule, total):
        final_step = schedule.unlock_timestamps()[-1]
        assert schedule.vested_amount(total, final_step) == total
        assert schedule.vested_amount(total, schedule.end) == total

    @given(schedule=stair_schedules(), total=st.integers(min_value=1, max_value=10**30))
    def test_nothing_before_cliff(self, schedule, total):
        if schedule.cliff > 0:
            assert schedule.vested_amount(total, schedule.cliff - 1) == 0

    @given(schedule=stair_schedules(), total=st.integers(min_value=0, max_value=10**12))
    def test_curve_is_flat_between_unlocks(self, schedule, total):
        unlocks = schedule.unlock_timestamps()
        for index, unlock_at in enumerate(unlocks[:-1]):
            next_unlock = unlocks[index + 1]
            assert schedule.vested_amount(total, unlock_at) == schedule.vested_amount(total, next_unlock - 1)


class TestWalletConservation:
    """Value is never created or lost by wallet operations."""

    @given(
        schedule=stair_schedules(),
        initial=st.integers(min_value=0, max_value=10**6),
        steps=actions,
    )
    @settings(max_examples=150, deadline=None)
    def test_value_is_conserved(self, schedule, initial, steps):
        native = NativeLedger()
        native.deposit(WALLET, initial)
        now = [schedule.start]
        wallet = VestingWallet(
            BENEFICIARY,
            schedule,
            AssetGateway(WALLET, native=native),
            revoker=REVOKER,
            treasury=TREASURY,
            time_provider=lambda: now[0],
        )

        deposited = initial
        first_revocation = None
        for action, value in steps:
            if action == "advance":
                now[0] += value
            elif action == "deposit":
                native.deposit(WALLET, value)
                deposited += value
            elif action == "release":
                wallet.release()
            else:
                wallet.revoke(REVOKER)
                if first_revocation is None:
                    first_revocation = now[0]

            released = wallet.released()
            revoked = wallet.revoked()
            assert released + revoked + wallet.balance() == deposited
            assert native.balance_of(BENEFICIARY) == released
            assert native.balance_of(TREASURY) == revoked
            assert released <= wallet.vested_amount(as_of=now[0])
            assert wallet.releasable() >= 0
            if first_revocation is not None:
                assert wallet.revocation_timestamp() == first_revocation

    @given(
        schedule=stair_schedules(),
        total=st.integers(min_value=0, max_value=10**6),
        revoke_after=st.integers(min_value=0, max_value=50_000),
        later=st.integers(min_value=0, max_value=10**6),
    )
    @settings(max_examples=150, deadline=None)
    def test_revocation_freezes_vested_amount(self, schedule, total, revoke_after, later):
        native = NativeLedger()
        native.deposit(WALLET, total)
        now = [schedule.start + revoke_after]
        wallet = VestingWallet(
            BENEFICIARY,
            schedule,
            AssetGateway(WALLET, native=native),
            revoker=REVOKER,
            treasury=TREASURY,
            time_provider=lambda: now[0],
        )

        expected_vested = schedule.vested_amount(total, now[0])
        returned = wallet.revoke(REVOKER)
        assert returned == total - expected_vested

        now[0] += later
        assert wallet.releasable() == expected_vested
        assert wallet.release() == expected_vested
        assert wallet.release() == 0
