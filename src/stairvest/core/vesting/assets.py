"""
Asset gateway.

Single seam between the vesting engine and the contracts that actually hold
value. An asset is identified by a string: the reserved ``NATIVE_ASSET`` key
for native value, otherwise the token contract address. New token addresses
can be registered, or discovered through a resolver, at any time.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..contracts.erc20 import ERC20Token
from ..contracts.exceptions import ContractExecutionError
from ..native_ledger import NativeLedger
from ..vesting_exceptions import AssetTransferError, InvalidAmountError, UnknownAssetError

logger = logging.getLogger(__name__)

NATIVE_ASSET = "native"

TokenResolver = Callable[[str], Optional[ERC20Token]]


def normalize_asset(asset: str | None) -> str:
    """Map ``None`` to the native key and lowercase token addresses."""
    if asset is None:
        return NATIVE_ASSET
    if not isinstance(asset, str) or not asset:
        raise UnknownAssetError(f"Invalid asset identifier: {asset!r}")
    return asset.lower()


def is_native(asset: str) -> bool:
    return asset == NATIVE_ASSET


class AssetGateway:
    """
    Balance query and push transfer for every asset a wallet holds.

    Args:
        holder: Address whose balances are read and debited
        native: Native balance book (optional if only tokens are vested)
        tokens: Initially known tokens
        resolver: Fallback lookup for token addresses not registered yet
    """

    def __init__(
        self,
        holder: str,
        native: NativeLedger | None = None,
        tokens: list[ERC20Token] | None = None,
        resolver: TokenResolver | None = None,
    ) -> None:
        if not holder:
            raise ValueError("Holder address cannot be empty.")
        self.holder = holder.lower()
        self.native = native
        self._tokens: dict[str, ERC20Token] = {}
        self._resolver = resolver
        for token in tokens or []:
            self.register_token(token)

    def register_token(self, token: ERC20Token) -> str:
        asset = normalize_asset(token.address)
        if is_native(asset):
            raise UnknownAssetError("Token address collides with the native asset key")
        self._tokens[asset] = token
        logger.info(
            "Token registered with gateway",
            extra={"event": "gateway.token_registered", "token": token.symbol, "asset": asset[:10]},
        )
        return asset

    def known_assets(self) -> list[str]:
        assets = [NATIVE_ASSET] if self.native is not None else []
        return assets + sorted(self._tokens)

    def token(self, asset: str) -> ERC20Token:
        asset = normalize_asset(asset)
        token = self._tokens.get(asset)
        if token is None and self._resolver is not None:
            token = self._resolver(asset)
            if token is not None:
                self._tokens[asset] = token
        if token is None:
            raise UnknownAssetError(f"No token contract known at {asset}", details={"asset": asset})
        return token

    def balance_of(self, asset: str) -> int:
        """Current balance of ``asset`` held by the wallet."""
        asset = normalize_asset(asset)
        if is_native(asset):
            if self.native is None:
                raise UnknownAssetError("No native ledger configured", details={"asset": asset})
            return self.native.balance_of(self.holder)
        return self.token(asset).balance_of(self.holder)

    def transfer(self, asset: str, destination: str, amount: int) -> None:
        """
        Push ``amount`` of ``asset`` from the holder to ``destination``.

        Raises:
            AssetTransferError: the holding contract reverted the transfer
            UnknownAssetError: ``asset`` does not resolve
        """
        asset = normalize_asset(asset)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmountError(f"Transfer amount must be a non-negative integer, got {amount!r}")

        if is_native(asset):
            if self.native is None:
                raise UnknownAssetError("No native ledger configured", details={"asset": asset})
            contract = self.native
        else:
            contract = self.token(asset)

        try:
            contract.transfer(self.holder, destination, amount)
        except ContractExecutionError as exc:
            logger.warning(
                "Asset transfer reverted",
                extra={
                    "event": "gateway.transfer_failed",
                    "asset": asset[:10],
                    "to": destination[:10],
                    "amount": amount,
                    "reason": str(exc),
                },
            )
            raise AssetTransferError(
                f"Transfer of {amount} {asset} to {destination} failed: {exc}",
                details={"asset": asset, "destination": destination, "amount": amount},
            ) from exc
