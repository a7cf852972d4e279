from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from ..core.quote.models import AssetRef, Quote
    from ..types.swft import SwftCoinListResponse, SwftPriceResponse


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class QuoteSource(Provider):
    """Provider of conversion terms between two assets"""

    success_code: str = "800"

    @abstractmethod
    async def get_price_info(self, from_asset: "AssetRef", to_asset: "AssetRef") -> "SwftPriceResponse":
        """Fetch the current conversion terms. A non-success code is not an exception."""
        pass

    @abstractmethod
    def get_return_amount(self, amount: Decimal, quote: "Quote") -> Decimal:
        """Amount of the target asset received for ``amount`` of the source asset"""
        pass


class CoinListSource(Provider):
    """Provider of the assets the exchange can swap"""

    @abstractmethod
    async def get_coin_list(self) -> "SwftCoinListResponse":
        """Fetch every coin the exchange lists"""
        pass
