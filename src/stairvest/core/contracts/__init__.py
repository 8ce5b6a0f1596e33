"""
Asset contracts held by vesting wallets.

- ERC20: Fungible token standard
"""

from .erc20 import ERC20Token, TokenEvent, ZERO_ADDRESS
from .exceptions import ContractExecutionError

__all__ = [
    "ERC20Token",
    "TokenEvent",
    "ZERO_ADDRESS",
    "ContractExecutionError",
]
