"""
ERC20 fungible token.

In-memory implementation of the EIP-20 balance ledger that vesting wallets
hold and push out. Provides:
- Balance and allowance queries
- transfer / approve / transferFrom
- Owner-only minting and pausing
- Receive hooks: a recipient may register a callback that runs after the
  balances move. A hook that raises reverts the whole transfer, which makes
  hooks usable both for re-entrant callbacks and as rejecting recipients.
- Transfer and Approval events

Every state-changing call is all-or-nothing: either it completes and emits
its event, or it raises ContractExecutionError and leaves state untouched.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .exceptions import ContractExecutionError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# hook(token_address, sender, amount)
ReceiveHook = Callable[[str, str, int], None]


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    ERC20 token with owner minting and pause support.

    Balances are plain integers in the token's smallest unit. Addresses are
    normalized to lowercase.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address
    address: str = ""

    # Owner (for minting and pausing)
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    # Supply cap (0 = unlimited)
    max_supply: int = 0

    paused: bool = False

    receive_hooks: dict[str, ReceiveHook] = field(default_factory=dict, repr=False)

    UINT256_MAX: int = 2**256 - 1

    def __post_init__(self) -> None:
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{secrets.token_hex(8)}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """Get the token balance of an account."""
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Get the allowance granted by owner to spender."""
        return self.allowances.get(self._normalize(owner), {}).get(self._normalize(spender), 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer (zero is allowed)

        Returns:
            True if successful

        Raises:
            ContractExecutionError: If the transfer reverts
        """
        self._require_not_paused()
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise ContractExecutionError(
                f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})",
                contract=self.address,
            )

        self._move(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to spend tokens on behalf of owner."""
        self._require_not_paused()
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.append(TokenEvent("Approval", owner_norm, spender_norm, amount))
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """Transfer tokens using an allowance granted to ``spender``."""
        self._require_not_paused()
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise ContractExecutionError(
                f"ERC20: insufficient allowance ({current_allowance} < {amount})",
                contract=self.address,
            )
        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise ContractExecutionError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})",
                contract=self.address,
            )

        if current_allowance != self.UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount
        try:
            self._move(from_norm, to_norm, amount)
        except ContractExecutionError:
            if current_allowance != self.UINT256_MAX:
                self.allowances[from_norm][spender_norm] = current_allowance
            raise
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            ContractExecutionError: If caller is not owner or the cap is exceeded
        """
        self._require_not_paused()
        self._require_owner(minter)

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        if self.max_supply > 0 and self.total_supply + amount > self.max_supply:
            raise ContractExecutionError(
                f"ERC20: mint would exceed max supply "
                f"({self.total_supply + amount} > {self.max_supply})",
                contract=self.address,
            )

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_norm, amount))

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    # ==================== Admin Functions ====================

    def pause(self, caller: str) -> bool:
        """Pause token transfers (owner only)."""
        self._require_owner(caller)
        self.paused = True
        return True

    def unpause(self, caller: str) -> bool:
        """Unpause token transfers (owner only)."""
        self._require_owner(caller)
        self.paused = False
        return True

    def register_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        """Install (or with ``None`` remove) the receive hook for ``account``."""
        account_norm = self._normalize(account)
        if hook is None:
            self.receive_hooks.pop(account_norm, None)
        else:
            self.receive_hooks[account_norm] = hook

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        """Move balance, emit Transfer, run the recipient hook; revert on hook failure."""
        hook = self.receive_hooks.get(to_norm)
        balances_before = dict(self.balances) if hook is not None else None
        events_before = len(self.events)

        self.balances[from_norm] = self.balances.get(from_norm, 0) - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", from_norm, to_norm, amount))

        if hook is None:
            return
        try:
            hook(self.address, from_norm, amount)
        except Exception as exc:
            # Nested transfers made from the hook revert with this one.
            self.balances = balances_before
            del self.events[events_before:]
            raise ContractExecutionError(
                f"ERC20: recipient rejected transfer: {exc}",
                contract=self.address,
            ) from exc

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, field_name: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise ContractExecutionError(f"ERC20: {field_name} is zero address", contract=self.address)

    def _validate_amount(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ContractExecutionError("ERC20: amount must be an integer", contract=self.address)
        if amount < 0:
            raise ContractExecutionError("ERC20: amount cannot be negative", contract=self.address)
        if amount > self.UINT256_MAX:
            raise ContractExecutionError("ERC20: amount exceeds uint256", contract=self.address)

    def _require_owner(self, caller: str) -> None:
        if self._normalize(caller) != self.owner:
            raise ContractExecutionError("ERC20: caller is not owner", contract=self.address)

    def _require_not_paused(self) -> None:
        if self.paused:
            raise ContractExecutionError("ERC20: token is paused", contract=self.address)

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize token state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
            "max_supply": self.max_supply,
            "paused": self.paused,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ERC20Token":
        """Deserialize token state from dictionary."""
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=data.get("total_supply", 0),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
            max_supply=data.get("max_supply", 0),
            paused=data.get("paused", False),
        )
        token.balances = dict(data.get("balances", {}))
        token.allowances = {k: dict(v) for k, v in data.get("allowances", {}).items()}
        return token
