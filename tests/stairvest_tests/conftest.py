"""Shared fixtures for vesting wallet tests."""

import pytest

from stairvest.core.contracts.erc20 import ERC20Token
from stairvest.core.native_ledger import NativeLedger
from stairvest.core.vesting import AssetGateway, StairVestingSchedule, VestingWallet

DAY = 86_400
START = 1_700_000_000

WALLET = "0xwallet"
BENEFICIARY = "0xbeneficiary"
REVOKER = "0xrevoker"
TREASURY = "0xtreasury"
TOKEN_OWNER = "0xtokenowner"


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int):
        self.current_time += seconds

    def at_day(self, day: int):
        self.current_time = START + day * DAY


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def schedule():
    """Cliff 365 days, four 90-day steps, 725-day duration."""
    return StairVestingSchedule(
        start=START,
        duration=725 * DAY,
        cliff_offset=365 * DAY,
        step_duration=90 * DAY,
        number_of_steps=4,
    )


@pytest.fixture
def native():
    ledger = NativeLedger()
    ledger.deposit(WALLET, 1000)
    return ledger


@pytest.fixture
def token():
    token = ERC20Token(name="Vest Token", symbol="VST", owner=TOKEN_OWNER)
    token.mint(TOKEN_OWNER, WALLET, 1000)
    return token


@pytest.fixture
def gateway(native, token):
    return AssetGateway(WALLET, native=native, tokens=[token])


@pytest.fixture
def wallet(schedule, gateway, clock):
    return VestingWallet(
        BENEFICIARY,
        schedule,
        gateway,
        revoker=REVOKER,
        treasury=TREASURY,
        time_provider=clock.now,
    )
