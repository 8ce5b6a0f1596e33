"""
Caller identity checks for vesting wallets.

A wallet never decides by itself who may call what. It is handed an
authority per role (revoker, optionally beneficiary) and asks it whether the
current caller qualifies. Two authorities are provided:

- AddressAuthority: the caller is identified by a plain address string. Use
  when the host has already authenticated the caller.
- SignedCallerAuthority: the caller presents a SignedRequest and must prove
  control of the registered secp256k1 key over a message naming the
  operation and asset. Nonces prevent replay and a maximum age rejects
  stale requests.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Protocol, Set, Union, runtime_checkable

from .crypto_utils import verify_signature_hex

logger = logging.getLogger(__name__)


@dataclass
class SignedRequest:
    """
    Signed request for a privileged operation.

    The message must be ``operation_message(operation, asset, nonce)``, e.g.
    ``"revoke:native:17"``; authorities reject a request whose message names
    a different call, so a signature for one call cannot be reused for
    another.
    """

    address: str
    signature: str  # hex r||s, 64 bytes
    message: str
    timestamp: int
    nonce: int
    public_key: str  # hex x||y, 64 bytes

    def __post_init__(self) -> None:
        self.address = self.address.lower()
        if not self.signature:
            raise ValueError("Signature is required")

    def get_message_hash(self) -> bytes:
        return hashlib.sha256(self.message.encode()).digest()


Caller = Union[str, SignedRequest]


def operation_message(operation: str, asset: str, nonce: int) -> str:
    """Canonical message a caller signs to authorize ``operation`` on ``asset``."""
    return f"{operation}:{asset}:{nonce}"


def caller_address(caller: Caller | None) -> str:
    """Best-effort address of a caller, for logs and error details."""
    if caller is None:
        return ""
    if isinstance(caller, SignedRequest):
        return caller.address
    return str(caller).lower()


@runtime_checkable
class CallerAuthority(Protocol):
    address: str

    def is_authorized(self, caller: Caller | None, operation: str, asset: str) -> bool:
        ...


@dataclass
class AddressAuthority:
    """Authorizes exactly one address (case-insensitive)."""

    address: str

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("Authority address cannot be empty.")
        self.address = self.address.lower()

    def is_authorized(self, caller: Caller | None, operation: str = "", asset: str = "") -> bool:
        if caller is None:
            return False
        return caller_address(caller) == self.address


@dataclass
class AccessControl:
    """
    Signature verification with replay protection.

    Usage:
        ac = AccessControl()
        if ac.verify_caller(signed_request, expected_address):
            perform_privileged_operation()
    """

    used_nonces: Dict[str, Set[int]] = field(default_factory=dict)
    max_age_seconds: int = 300
    time_provider: Callable[[], float] = field(default=time.time, repr=False)

    def verify_caller(self, request: SignedRequest, expected_address: str) -> bool:
        """
        Check that ``request`` proves control of ``expected_address``.

        Verifies, in order: address match, request age, nonce freshness and
        the ECDSA signature over the message. The nonce is consumed only when
        every check passes.
        """
        expected_norm = expected_address.lower()
        request_norm = request.address.lower()

        if request_norm != expected_norm:
            logger.warning(
                "Access denied: address mismatch",
                extra={
                    "event": "access_control.address_mismatch",
                    "expected": expected_norm[:10],
                    "actual": request_norm[:10],
                }
            )
            return False

        age = abs(int(self.time_provider()) - request.timestamp)
        if age > self.max_age_seconds:
            logger.warning(
                "Access denied: request too old",
                extra={
                    "event": "access_control.stale_request",
                    "address": request_norm[:10],
                    "age_seconds": age,
                    "max_age": self.max_age_seconds,
                }
            )
            return False

        nonces = self.used_nonces.setdefault(request_norm, set())
        if request.nonce in nonces:
            logger.error(
                "Access denied: replay attack detected",
                extra={
                    "event": "access_control.replay_attack",
                    "address": request_norm[:10],
                    "nonce": request.nonce,
                }
            )
            return False

        try:
            valid = verify_signature_hex(request.public_key, request.get_message_hash(), request.signature)
        except ValueError:
            valid = False
        if not valid:
            logger.error(
                "Access denied: invalid signature",
                extra={
                    "event": "access_control.invalid_signature",
                    "address": request_norm[:10],
                    "signed_message": request.message[:50],
                }
            )
            return False

        nonces.add(request.nonce)
        logger.info(
            "Access granted",
            extra={
                "event": "access_control.access_granted",
                "address": request_norm[:10],
                "nonce": request.nonce,
            }
        )
        return True


@dataclass
class SignedCallerAuthority:
    """
    Authorizes one address, proven by a signature from its registered key.

    Plain address strings are always rejected.
    """

    address: str
    public_key: str
    access_control: AccessControl = field(default_factory=AccessControl)

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("Authority address cannot be empty.")
        self.address = self.address.lower()
        self.public_key = self.public_key.lower()

    def is_authorized(self, caller: Caller | None, operation: str, asset: str) -> bool:
        if not isinstance(caller, SignedRequest):
            return False
        expected_message = operation_message(operation, asset, caller.nonce)
        if caller.message != expected_message:
            logger.warning(
                "Access denied: signed message does not match operation",
                extra={
                    "event": "access_control.message_mismatch",
                    "address": caller.address[:10],
                    "operation": operation,
                    "asset": asset[:10],
                    "signed_message": caller.message[:50],
                }
            )
            return False
        if caller.public_key.lower() != self.public_key:
            logger.warning(
                "Access denied: unregistered key",
                extra={"event": "access_control.unknown_key", "address": caller.address[:10]},
            )
            return False
        return self.access_control.verify_caller(caller, self.address)
