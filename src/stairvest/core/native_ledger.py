"""
Native asset balances.

Account-based balance book for the chain's native value. Vesting wallets hold
native value here under their own address and push it out with ``transfer``.
Mirrors the ERC20 contract's all-or-nothing semantics, including receive
hooks that can reject (and thereby revert) an incoming transfer.
"""

from __future__ import annotations

import logging
from typing import Callable

from . import config
from .contracts.exceptions import ContractExecutionError

logger = logging.getLogger(__name__)

NATIVE_LEDGER_ID = "native"

# hook(sender, amount)
NativeReceiveHook = Callable[[str, int], None]


class NativeLedger:
    def __init__(self, symbol: str | None = None) -> None:
        self.symbol = symbol or config.NATIVE_SYMBOL
        self.balances: dict[str, int] = {}
        self.receive_hooks: dict[str, NativeReceiveHook] = {}
        self.total_deposited = 0

    @staticmethod
    def _normalize(address: str) -> str:
        return address.lower()

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ContractExecutionError("Native: amount must be an integer", contract=NATIVE_LEDGER_ID)
        if amount < 0:
            raise ContractExecutionError("Native: amount cannot be negative", contract=NATIVE_LEDGER_ID)

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def deposit(self, account: str, amount: int) -> int:
        """Credit ``amount`` of new native value to ``account``. Returns the new balance."""
        self._validate_amount(amount)
        if not account:
            raise ContractExecutionError("Native: deposit to empty address", contract=NATIVE_LEDGER_ID)
        account_norm = self._normalize(account)
        self.balances[account_norm] = self.balances.get(account_norm, 0) + amount
        self.total_deposited += amount
        logger.debug(
            "Native deposit",
            extra={"event": "native.deposit", "to": account_norm[:10], "amount": amount},
        )
        return self.balances[account_norm]

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move native value between accounts.

        Raises:
            ContractExecutionError: insufficient balance, bad amount, or the
                recipient's hook rejected the transfer
        """
        self._validate_amount(amount)
        if not recipient:
            raise ContractExecutionError("Native: recipient is empty", contract=NATIVE_LEDGER_ID)
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise ContractExecutionError(
                f"Native: transfer amount exceeds balance ({amount} > {sender_balance})",
                contract=NATIVE_LEDGER_ID,
            )

        hook = self.receive_hooks.get(recipient_norm)
        balances_before = dict(self.balances) if hook is not None else None

        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount

        if hook is not None:
            try:
                hook(sender_norm, amount)
            except Exception as exc:
                self.balances = balances_before
                raise ContractExecutionError(
                    f"Native: recipient rejected transfer: {exc}",
                    contract=NATIVE_LEDGER_ID,
                ) from exc

        logger.debug(
            "Native transfer",
            extra={
                "event": "native.transfer",
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )
        return True

    def register_receive_hook(self, account: str, hook: NativeReceiveHook | None) -> None:
        account_norm = self._normalize(account)
        if hook is None:
            self.receive_hooks.pop(account_norm, None)
        else:
            self.receive_hooks[account_norm] = hook
