"""
CLI tests using click's CliRunner.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from stairvest.cli.main import cli

SCHEDULE_ARGS = [
    "--duration", "725",
    "--cliff", "365",
    "--step", "90",
    "--steps", "4",
    "--amount", "1000",
    "--unit", "days",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_stairvest_logger():
    # The CLI attaches a handler bound to the runner's captured stderr.
    root = logging.getLogger("stairvest")
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_curve_json(runner):
    result = runner.invoke(cli, ["--log-level", "WARNING", "--json-output", "curve", *SCHEDULE_ARGS], obj={})
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["schedule"]["kind"] == "stair"
    assert [row["offset"] for row in payload["steps"]] == [365, 455, 545, 635]
    assert [row["vested"] for row in payload["steps"]] == [250, 500, 750, 1000]


def test_curve_table(runner):
    result = runner.invoke(cli, ["curve", *SCHEDULE_ARGS], obj={})
    assert result.exit_code == 0, result.output
    assert "Vesting Curve" in result.output
    assert "1000" in result.output


def test_curve_rejects_cliff_past_duration(runner):
    args = list(SCHEDULE_ARGS)
    args[args.index("--cliff") + 1] = "800"
    result = runner.invoke(cli, ["curve", *args], obj={})
    assert result.exit_code == 1
    assert "Cliff" in result.output or "cliff" in result.output


def test_simulate_revoke_then_release(runner):
    result = runner.invoke(
        cli,
        ["--log-level", "WARNING", "--json-output", "simulate", *SCHEDULE_ARGS, "--revoke-at", "400", "--release-at", "500"],
        obj={},
    )
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["balances"] == {"beneficiary": 250, "treasury": 750, "wallet": 0}
    assert [step["action"] for step in payload["steps"]] == ["revoke", "release"]
    assert [step["moved"] for step in payload["steps"]] == [750, 250]
    assert [event["event_type"] for event in payload["events"]] == ["NativeRevoked", "NativeReleased"]


def test_simulate_late_deposit_sweep(runner):
    result = runner.invoke(
        cli,
        [
            "--log-level", "WARNING", "--json-output", "simulate", *SCHEDULE_ARGS,
            "--revoke-at", "400",
            "--deposit", "500:100",
            "--revoke-at", "500",
            "--release-at", "500",
        ],
        obj={},
    )
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert [step["action"] for step in payload["steps"]] == ["revoke", "deposit", "revoke", "release"]
    assert [step["moved"] for step in payload["steps"]] == [750, 100, 75, 275]
    assert payload["balances"] == {"beneficiary": 275, "treasury": 825, "wallet": 0}


def test_simulate_bad_deposit(runner):
    result = runner.invoke(cli, ["simulate", *SCHEDULE_ARGS, "--deposit", "oops"], obj={})
    assert result.exit_code == 1
    assert "OFFSET:AMOUNT" in result.output


def test_simulate_table(runner):
    result = runner.invoke(cli, ["simulate", *SCHEDULE_ARGS, "--release-at", "635"], obj={})
    assert result.exit_code == 0, result.output
    assert "Simulation" in result.output
    assert "Beneficiary" in result.output


def test_log_level_defaults_to_configuration(runner, monkeypatch):
    from stairvest.core import config

    monkeypatch.setattr(config, "LOG_LEVEL", "ERROR")
    result = runner.invoke(cli, ["curve", *SCHEDULE_ARGS], obj={})
    assert result.exit_code == 0, result.output
    assert logging.getLogger("stairvest").level == logging.ERROR


def test_log_level_option_overrides_configuration(runner, monkeypatch):
    from stairvest.core import config

    monkeypatch.setattr(config, "LOG_LEVEL", "ERROR")
    result = runner.invoke(cli, ["--log-level", "DEBUG", "curve", *SCHEDULE_ARGS], obj={})
    assert result.exit_code == 0, result.output
    assert logging.getLogger("stairvest").level == logging.DEBUG
