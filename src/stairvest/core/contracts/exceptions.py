"""Errors raised by on-ledger asset contracts."""

from __future__ import annotations


class ContractExecutionError(Exception):
    """Raised when a contract call reverts.

    A reverted call leaves no trace in contract state: balances, allowances
    and the event log are exactly as they were before the call.
    """

    def __init__(self, message: str, contract: str = "") -> None:
        super().__init__(message)
        self.contract = contract
