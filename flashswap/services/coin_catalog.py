"""
Coin Catalog

Turns the exchange's coin list into the source assets a user may pick,
keeps the picker's search filter, and orders entries by pinned symbols and
wallet balance.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..config import settings
from ..core.quote.models import AssetRef
from ..providers.base import CoinListSource
from ..types.swft import SwftCoinInfo

logger = logging.getLogger(__name__)


class CatalogStatus(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class BalanceLookup(Protocol):
    """Wallet collaborator that reports holdings of one asset."""

    async def balance_of(self, account: str, asset: AssetRef) -> Decimal: ...


@dataclass
class CatalogEntry:
    asset: AssetRef
    balance: Optional[Decimal] = None

    @property
    def symbol(self) -> str:
        return self.asset.symbol


def supported_assets(
    coins: Iterable[SwftCoinInfo],
    target: AssetRef,
    network: Optional[str] = None,
) -> List[AssetRef]:
    """Coins on ``network`` that can be swapped into ``target``, in exchange order."""

    network = (network or settings.supported_network).upper()
    assets: List[AssetRef] = []
    seen = set()
    for coin in coins:
        if coin.main_network.upper() != network:
            continue
        if target.symbol in {code.upper() for code in coin.unsupported_targets}:
            continue
        asset = AssetRef(
            symbol=coin.coin_code,
            network=coin.main_network,
            contract=coin.contract or None,
            decimals=coin.coin_decimal,
        )
        if asset == target or asset in seen:
            continue
        seen.add(asset)
        assets.append(asset)
    return assets


def filter_assets(entries: Sequence[CatalogEntry], search: Optional[str]) -> List[CatalogEntry]:
    """Match by symbol substring, or by exact contract address."""

    needle = (search or "").strip().upper()
    if not needle:
        return list(entries)
    return [
        entry
        for entry in entries
        if needle in entry.asset.symbol
        or (entry.asset.contract is not None and entry.asset.contract.upper() == needle)
    ]


def most_used(entries: Sequence[CatalogEntry], symbols: Optional[Sequence[str]] = None) -> List[CatalogEntry]:
    """Entries whose symbol is pinned, in pin order."""

    order = [s.upper() for s in (symbols if symbols is not None else settings.most_used_coins)]
    pinned = [entry for entry in entries if entry.symbol in order]
    return sorted(pinned, key=lambda entry: order.index(entry.symbol))


def sort_by_balance(entries: Sequence[CatalogEntry]) -> List[CatalogEntry]:
    """Largest balance first; ties and unknown balances fall back to symbol order."""

    return sorted(entries, key=lambda entry: (-(entry.balance or Decimal("0")), entry.symbol))


class CoinCatalog:
    """Source assets offered for the fixed target, loaded from the exchange."""

    def __init__(
        self,
        source: CoinListSource,
        target: AssetRef,
        *,
        network: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._target = target
        self._network = network or settings.supported_network
        self.logger = logger or logging.getLogger(__name__)
        self.status = CatalogStatus.LOADING
        self.entries: List[CatalogEntry] = []
        self.search = ""

    @property
    def assets(self) -> List[AssetRef]:
        return [entry.asset for entry in self.entries]

    @property
    def filtered(self) -> List[CatalogEntry]:
        return filter_assets(self.entries, self.search)

    @property
    def pinned(self) -> List[CatalogEntry]:
        return most_used(self.entries)

    async def load(self) -> CatalogStatus:
        self.status = CatalogStatus.LOADING
        try:
            result = await self._source.get_coin_list()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("Coin list load failed: %s", exc, exc_info=True)
            self.status = CatalogStatus.ERROR
            return self.status
        if not result.is_success(getattr(self._source, "success_code", settings.swft_success_code)):
            self.logger.warning("Coin list returned code %s: %s", result.res_code, result.res_msg)
            self.status = CatalogStatus.ERROR
            return self.status
        self.entries = [CatalogEntry(asset) for asset in supported_assets(result.data, self._target, self._network)]
        self.status = CatalogStatus.LOADED
        self.logger.info("Loaded %d source assets on %s", len(self.entries), self._network)
        return self.status

    async def refresh_balances(self, account: Optional[str], lookup: BalanceLookup) -> None:
        """Fetch balances for every entry and reorder by holdings.

        A failed lookup leaves that entry's balance unknown.
        """
        if not account or not self.entries:
            return

        async def _one(entry: CatalogEntry) -> None:
            try:
                entry.balance = await lookup.balance_of(account, entry.asset)
            except Exception as exc:  # noqa: BLE001
                self.logger.debug("Balance lookup for %s failed: %s", entry.symbol, exc)
                entry.balance = None

        await asyncio.gather(*(_one(entry) for entry in self.entries))
        self.entries = sort_by_balance(self.entries)

    def balances(self) -> Dict[AssetRef, Optional[Decimal]]:
        return {entry.asset: entry.balance for entry in self.entries}
