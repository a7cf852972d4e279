"""
Tests for the Coin Catalog service

Covers filtering of the exchange coin list, search, pinned coins and
balance ordering.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from flashswap.core.quote import AssetRef
from flashswap.services.coin_catalog import (
    CatalogEntry,
    CatalogStatus,
    CoinCatalog,
    filter_assets,
    most_used,
    sort_by_balance,
    supported_assets,
)
from flashswap.types.swft import SwftCoinInfo, SwftCoinListResponse


DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"


def coin(code, network="ETH", decimals=18, contract="", no_support=""):
    return SwftCoinInfo(
        coinCode=code,
        coinDecimal=decimals,
        contact=contract,
        mainNetwork=network,
        noSupportCoin=no_support,
    )


@pytest.fixture
def coins():
    return [
        coin("ETH"),
        coin("DAI", contract=DAI),
        coin("USDT", decimals=6, contract="0xdac17f958d2ee523a2206206994597c13d831ec7"),
        coin("BNB", network="BSC"),
        coin("SHIB", no_support="USDT,USDC"),
        coin("WBTC", decimals=8, contract="0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"),
        coin("DAI", contract=DAI),
    ]


# =============================================================================
# Coin list filtering
# =============================================================================


class TestSupportedAssets:
    def test_keeps_swappable_coins_on_network(self, coins, usdt):
        assets = supported_assets(coins, usdt, network="ETH")

        assert [asset.symbol for asset in assets] == ["ETH", "DAI", "WBTC"]

    def test_carries_decimals_and_contract(self, coins, usdt):
        wbtc = supported_assets(coins, usdt)[-1]

        assert wbtc.decimals == 8
        assert wbtc.contract == "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"
        assert not supported_assets(coins, usdt)[0].contract


class TestSearchAndOrdering:
    @pytest.fixture
    def entries(self, coins, usdt):
        return [CatalogEntry(asset) for asset in supported_assets(coins, usdt)]

    def test_symbol_substring_case_insensitive(self, entries):
        assert [e.symbol for e in filter_assets(entries, " da ")] == ["DAI"]

    def test_exact_contract_match(self, entries):
        assert [e.symbol for e in filter_assets(entries, DAI.upper())] == ["DAI"]
        assert filter_assets(entries, DAI[:20]) == []

    def test_empty_search_returns_everything(self, entries):
        assert len(filter_assets(entries, "")) == len(entries)

    def test_most_used_in_pin_order(self, entries):
        assert [e.symbol for e in most_used(entries, ["wbtc", "eth", "usdc"])] == ["WBTC", "ETH"]

    def test_sort_by_balance(self, entries):
        entries[0].balance = Decimal("0.5")
        entries[2].balance = Decimal("3")

        assert [e.symbol for e in sort_by_balance(entries)] == ["WBTC", "ETH", "DAI"]


# =============================================================================
# CoinCatalog
# =============================================================================


class TestCoinCatalog:
    @pytest.fixture
    def source(self, coins):
        source = AsyncMock()
        source.success_code = "800"
        source.get_coin_list.return_value = SwftCoinListResponse(resCode="800", data=coins)
        return source

    @pytest.mark.asyncio
    async def test_load(self, source, usdt):
        catalog = CoinCatalog(source, usdt)
        assert catalog.status == CatalogStatus.LOADING

        status = await catalog.load()

        assert status == CatalogStatus.LOADED
        assert [asset.symbol for asset in catalog.assets] == ["ETH", "DAI", "WBTC"]

    @pytest.mark.asyncio
    async def test_load_error_code(self, source, usdt):
        source.get_coin_list.return_value = SwftCoinListResponse(resCode="9999", resMsg="busy")
        catalog = CoinCatalog(source, usdt)

        assert await catalog.load() == CatalogStatus.ERROR
        assert catalog.assets == []

    @pytest.mark.asyncio
    async def test_load_exception(self, source, usdt):
        source.get_coin_list.side_effect = OSError("network down")
        catalog = CoinCatalog(source, usdt)

        assert await catalog.load() == CatalogStatus.ERROR

    @pytest.mark.asyncio
    async def test_search_and_pinned(self, source, usdt):
        catalog = CoinCatalog(source, usdt)
        await catalog.load()

        catalog.search = "w"
        assert [e.symbol for e in catalog.filtered] == ["WBTC"]
        assert [e.symbol for e in catalog.pinned] == ["ETH", "DAI", "WBTC"]

    @pytest.mark.asyncio
    async def test_refresh_balances(self, source, usdt, wallet_account):
        holdings = {"ETH": Decimal("1.5"), "WBTC": Decimal("2")}

        async def balance_of(account, asset: AssetRef):
            if asset.symbol == "DAI":
                raise RuntimeError("rpc error")
            return holdings[asset.symbol]

        lookup = AsyncMock()
        lookup.balance_of.side_effect = balance_of
        catalog = CoinCatalog(source, usdt)
        await catalog.load()

        await catalog.refresh_balances(wallet_account, lookup)

        assert [e.symbol for e in catalog.entries] == ["WBTC", "ETH", "DAI"]
        balances = {asset.symbol: balance for asset, balance in catalog.balances().items()}
        assert balances == {"ETH": Decimal("1.5"), "WBTC": Decimal("2"), "DAI": None}

    @pytest.mark.asyncio
    async def test_refresh_balances_without_account(self, source, usdt):
        lookup = AsyncMock()
        catalog = CoinCatalog(source, usdt)
        await catalog.load()

        await catalog.refresh_balances(None, lookup)

        lookup.balance_of.assert_not_called()
