"""
Vesting-specific exception hierarchy.

Every failure of a vesting operation is an explicit, typed condition. Zero
amount releases and revocations are valid outcomes and never raise.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller may re-invoke the operation
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# ==================== Configuration Errors ====================


class ScheduleConfigurationError(VestingError):
    """Raised when schedule parameters cannot form a valid schedule.

    Only raised at construction time; a schedule that exists is valid.
    """
    pass


class InvalidCliffDuration(ScheduleConfigurationError):
    """Raised when the cliff offset is longer than the schedule duration."""
    pass


class InvalidStepConfiguration(ScheduleConfigurationError):
    """Raised when the step count or step length is zero, or the steps overrun the duration."""
    pass


class InvalidScheduleError(ScheduleConfigurationError):
    """Raised for malformed parameters (negative or non-integer values, unknown kind)."""
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(VestingError):
    """Raised when the caller fails the identity check for an operation."""
    pass


class OnlyRevoker(AuthorizationError):
    """Raised when a revoke is attempted by anyone but the designated revoker."""
    pass


class OnlyBeneficiary(AuthorizationError):
    """Raised when a gated release is attempted by anyone but the beneficiary."""
    pass


class RevocationNotEnabled(VestingError):
    """Raised when revoke is called on a wallet built without a revoker."""
    pass


# ==================== Asset Errors ====================


class AssetTransferError(VestingError):
    """Raised when the asset holder rejects a transfer.

    The ledger change staged for the operation has been compensated by the
    time this propagates; re-invoking the operation is safe.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class UnknownAssetError(VestingError):
    """Raised when an asset identifier does not resolve to any holder."""
    pass


class InvalidAmountError(VestingError):
    """Raised when a deposit or transfer amount is negative or not an integer."""
    pass


# ==================== Ledger Errors ====================


class LedgerInvariantError(VestingError):
    """Raised when released/revoked/balance totals fail to reconcile.

    Indicates the asset holder was modified outside the wallet; the
    operation is aborted before any state changes.
    """
    pass
