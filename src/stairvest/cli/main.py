#!/usr/bin/env python3
"""
StairVest CLI

Inspect stair vesting curves and dry-run release/revoke scenarios against an
in-memory wallet:

    stairvest curve --cliff 365 --step 90 --steps 4 --duration 725 --amount 1000 --unit days
    stairvest simulate --cliff 365 --step 90 --steps 4 --duration 725 --amount 1000 \\
        --unit days --revoke-at 400 --release-at 500 --deposit 450:100
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.contracts.exceptions import ContractExecutionError
from ..core.native_ledger import NativeLedger
from ..core.structured_logger import configure_logging
from ..core.vesting import NATIVE_ASSET, AssetGateway, StairVestingSchedule, VestingWallet
from ..core.vesting_exceptions import VestingError

logger = logging.getLogger(__name__)
console = Console()

UNITS = {"seconds": 1, "hours": 3600, "days": 86400}

WALLET_ADDRESS = "0xvesting"
BENEFICIARY = "0xbeneficiary"
REVOKER = "0xrevoker"
TREASURY = "0xtreasury"


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _parse_deposit(value: str) -> tuple[int, int]:
    try:
        offset, amount = value.split(":", 1)
        return int(offset), int(amount)
    except ValueError as exc:
        raise click.BadParameter(f"expected OFFSET:AMOUNT, got {value!r}") from exc


def _schedule_options(func):
    options = [
        click.option("--start", default=0, type=int, show_default=True, help="Schedule start timestamp"),
        click.option("--duration", required=True, type=int, help="Total schedule length (in --unit)"),
        click.option("--cliff", required=True, type=int, help="Cliff offset from start (in --unit)"),
        click.option("--step", "step", required=True, type=int, help="Step length (in --unit)"),
        click.option("--steps", required=True, type=int, help="Number of unlock steps"),
        click.option("--amount", required=True, type=int, help="Total allocation"),
        click.option(
            "--unit",
            type=click.Choice(sorted(UNITS)),
            default="seconds",
            show_default=True,
            help="Unit for durations and offsets",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_schedule(start: int, duration: int, cliff: int, step: int, steps: int, unit: str) -> StairVestingSchedule:
    scale = UNITS[unit]
    return StairVestingSchedule(
        start=start,
        duration=duration * scale,
        cliff_offset=cliff * scale,
        step_duration=step * scale,
        number_of_steps=steps,
    )


@click.group()
@click.option("--log-level", default=None, help="Override STAIRVEST_LOG_LEVEL")
@click.option("--json-output", "json_output", is_flag=True, help="Emit JSON instead of tables")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, json_output: bool):
    """Stair vesting schedule tools."""
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output
    configure_logging(level=log_level)


@cli.command("curve")
@_schedule_options
@click.pass_context
def curve(ctx: click.Context, start, duration, cliff, step, steps, amount, unit):
    """
    Show when each step unlocks and the cumulative vested amount.

    Example:
        stairvest curve --duration 725 --cliff 365 --step 90 --steps 4 --amount 1000 --unit days
    """
    try:
        schedule = _build_schedule(start, duration, cliff, step, steps, unit)
    except VestingError as exc:
        _handle_cli_error(exc)
        return

    scale = UNITS[unit]
    rows = []
    for index, unlock_at in enumerate(schedule.unlock_timestamps(), start=1):
        rows.append({
            "step": index,
            "timestamp": unlock_at,
            "offset": (unlock_at - schedule.start) // scale,
            "vested": schedule.vested_amount(amount, unlock_at),
        })

    if ctx.obj.get("json_output"):
        click.echo(json.dumps({"schedule": schedule.to_dict(), "steps": rows}, indent=2))
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Step", justify="right", style="cyan")
    table.add_column(f"Offset ({unit})", justify="right")
    table.add_column("Timestamp", justify="right")
    table.add_column("Vested", justify="right", style="green")
    for row in rows:
        table.add_row(str(row["step"]), str(row["offset"]), str(row["timestamp"]), str(row["vested"]))
    console.print(Panel(table, title="[bold green]Vesting Curve", border_style="green"))


@cli.command("simulate")
@_schedule_options
@click.option("--release-at", "release_at", multiple=True, type=int, help="Offset of a release call")
@click.option("--revoke-at", "revoke_at", multiple=True, type=int, help="Offset of a revoke call")
@click.option("--deposit", "deposits", multiple=True, help="Late deposit as OFFSET:AMOUNT")
@click.pass_context
def simulate(ctx: click.Context, start, duration, cliff, step, steps, amount, unit,
             release_at, revoke_at, deposits):
    """
    Replay release, revoke and deposit calls against an in-memory wallet.

    Calls at the same offset run in the order deposit, revoke, release.
    """
    scale = UNITS[unit]
    try:
        schedule = _build_schedule(start, duration, cliff, step, steps, unit)
        parsed_deposits = [_parse_deposit(value) for value in deposits]
        native = NativeLedger()
        native.deposit(WALLET_ADDRESS, amount)
    except (VestingError, ContractExecutionError, click.BadParameter) as exc:
        _handle_cli_error(exc)
        return

    clock = _Clock(schedule.start)
    wallet = VestingWallet(
        BENEFICIARY,
        schedule,
        AssetGateway(WALLET_ADDRESS, native=native),
        revoker=REVOKER,
        treasury=TREASURY,
        time_provider=clock,
    )

    order = {"deposit": 0, "revoke": 1, "release": 2}
    actions: list[tuple[int, str, int]] = [(offset, "deposit", value) for offset, value in parsed_deposits]
    actions += [(offset, "revoke", 0) for offset in revoke_at]
    actions += [(offset, "release", 0) for offset in release_at]
    actions.sort(key=lambda action: (action[0], order[action[1]]))

    steps_log: list[dict[str, Any]] = []
    try:
        for offset, action, value in actions:
            clock.now = schedule.start + offset * scale
            if action == "deposit":
                native.deposit(WALLET_ADDRESS, value)
                moved = value
            elif action == "revoke":
                moved = wallet.revoke(REVOKER)
            else:
                moved = wallet.release()
            steps_log.append({"offset": offset, "action": action, "moved": moved, **wallet.snapshot(NATIVE_ASSET)})
    except (VestingError, ContractExecutionError) as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(json.dumps({
            "steps": steps_log,
            "events": [event.to_dict() for event in wallet.events],
            "balances": {
                "beneficiary": native.balance_of(BENEFICIARY),
                "treasury": native.balance_of(TREASURY),
                "wallet": native.balance_of(WALLET_ADDRESS),
            },
        }, indent=2))
        return

    table = Table(box=box.ROUNDED)
    for column in ("Offset", "Action", "Moved", "Balance", "Released", "Revoked", "Vested"):
        table.add_column(column, justify="right")
    for entry in steps_log:
        table.add_row(
            str(entry["offset"]),
            entry["action"],
            str(entry["moved"]),
            str(entry["balance"]),
            str(entry["released"]),
            str(entry["revoked"]),
            str(entry["vested"]),
        )
    console.print(Panel(table, title=f"[bold green]Simulation ({native.symbol})", border_style="green"))
    console.print(
        f"[cyan]Beneficiary:[/] {native.balance_of(BENEFICIARY)}  "
        f"[magenta]Treasury:[/] {native.balance_of(TREASURY)}  "
        f"[yellow]Locked:[/] {native.balance_of(WALLET_ADDRESS)}"
    )


def main():
    """Console script entry point."""
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
