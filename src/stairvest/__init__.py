"""
StairVest - Cliff and Stair Vesting Wallets

Releases a pool of native value and fungible tokens to a beneficiary on a
cliff-plus-steps schedule, with optional revocation of the unvested
remainder to a treasury.

Main Components:
- Schedules: stair (cliff + discrete steps) and linear vesting curves
- Ledger: per-asset released/revoked accounting with derived allocation
- Wallet: release and revoke with commit-then-transfer ordering
- Assets: native balance book, ERC20 tokens and the gateway between them
"""

__version__ = "0.1.0"
__author__ = "StairVest Development Team"

__all__ = []
