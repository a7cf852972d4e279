"""Shared fixtures for the quote refresh tests."""

import asyncio
from collections import deque
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest

from flashswap.core.quote import AssetRef, ManualClock, net_return_amount
from flashswap.providers.base import QuoteSource
from flashswap.types.swft import SwftPriceResponse


VALID_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
WALLET_ACCOUNT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


def price_response(rate: str = "1800", code: str = "800", **fields: Any) -> SwftPriceResponse:
    if code != "800":
        return SwftPriceResponse.model_validate({"resCode": code, "resMsg": fields.get("msg", "pair unavailable")})
    data: Dict[str, Any] = {"instantRate": rate, "depositCoinFeeRate": "0", "receiveCoinFee": "0"}
    data.update(fields)
    return SwftPriceResponse.model_validate({"resCode": "800", "resMsg": "success", "data": data})


class ScriptedQuoteSource(QuoteSource):
    """Quote source answering from a script of (delay, response or exception) steps.

    Latency is simulated on the shared ManualClock. Once the script runs
    out, every call answers immediately with ``default``.
    """

    name = "scripted"
    success_code = "800"

    def __init__(self, clock: ManualClock, default: Optional[SwftPriceResponse] = None):
        self.clock = clock
        self.default = default or price_response("1800")
        self.calls: List[Tuple[AssetRef, AssetRef]] = []
        self.cancelled = 0
        self._script: deque = deque()

    def respond(self, result: Any = None, delay: float = 0.0) -> "ScriptedQuoteSource":
        self._script.append((delay, result if result is not None else self.default))
        return self

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def get_price_info(self, from_asset: AssetRef, to_asset: AssetRef) -> SwftPriceResponse:
        self.calls.append((from_asset, to_asset))
        delay, result = self._script.popleft() if self._script else (0.0, self.default)
        if delay:
            try:
                await self.clock.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if isinstance(result, BaseException):
            raise result
        return result

    def get_return_amount(self, amount: Decimal, quote) -> Decimal:
        return net_return_amount(amount, quote)


class ControlledQuoteSource(QuoteSource):
    """Quote source whose calls stay open until the test resolves them.

    Cancellation is ignored so that a superseded call still completes and
    its late result reaches the fetcher.
    """

    name = "controlled"
    success_code = "800"

    def __init__(self):
        self.pending: List[asyncio.Future] = []

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}

    async def get_price_info(self, from_asset: AssetRef, to_asset: AssetRef) -> SwftPriceResponse:
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        while True:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                if future.done():
                    return future.result()

    def resolve(self, index: int, response: SwftPriceResponse) -> None:
        self.pending[index].set_result(response)

    def get_return_amount(self, amount: Decimal, quote) -> Decimal:
        return net_return_amount(amount, quote)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def source(clock):
    return ScriptedQuoteSource(clock)


@pytest.fixture
def controlled_source():
    return ControlledQuoteSource()


@pytest.fixture
def eth():
    return AssetRef(symbol="ETH", network="ETH", decimals=18)


@pytest.fixture
def link():
    return AssetRef(
        symbol="LINK",
        network="ETH",
        contract="0x514910771AF9Ca656af840dff83E8264EcF986CA",
        decimals=18,
    )


@pytest.fixture
def usdt():
    return AssetRef(
        symbol="USDT",
        network="ETH",
        contract="0xdac17f958d2ee523a2206206994597c13d831ec7",
        decimals=6,
    )


@pytest.fixture
def make_price():
    return price_response


@pytest.fixture
def valid_address():
    return VALID_ADDRESS


@pytest.fixture
def wallet_account():
    return WALLET_ACCOUNT
