"""
Vesting wallet instrumentation.

Prometheus counters for value released to beneficiaries and revoked to
treasuries, labelled by asset kind ("native" or "token"), plus a call
counter per operation and outcome.
The helpers become no-ops when metrics are disabled in configuration.
"""

from __future__ import annotations

from prometheus_client import Counter

from .. import config
from .assets import is_native

released_amount_counter = Counter(
    "stairvest_released_amount_total",
    "Total amount released to beneficiaries",
    ["kind"],
)

revoked_amount_counter = Counter(
    "stairvest_revoked_amount_total",
    "Total amount revoked to treasuries",
    ["kind"],
)

operation_counter = Counter(
    "stairvest_operations_total",
    "Vesting wallet mutator calls",
    ["operation", "outcome"],
)


def asset_kind(asset: str) -> str:
    return "native" if is_native(asset) else "token"


def record_release(asset: str, amount: int) -> None:
    if not config.METRICS_ENABLED:
        return
    released_amount_counter.labels(kind=asset_kind(asset)).inc(amount)
    operation_counter.labels(operation="release", outcome="success").inc()


def record_revocation(asset: str, amount: int) -> None:
    if not config.METRICS_ENABLED:
        return
    revoked_amount_counter.labels(kind=asset_kind(asset)).inc(amount)
    operation_counter.labels(operation="revoke", outcome="success").inc()


def record_failure(operation: str, reason: str) -> None:
    """Count a failed mutator call; ``reason`` is the exception class name."""
    if not config.METRICS_ENABLED:
        return
    operation_counter.labels(operation=operation, outcome=reason).inc()
