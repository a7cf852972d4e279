"""Async client for the SWFT exchange API."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.quote.calculator import net_return_amount
from ..core.quote.errors import QuoteSourceError
from ..core.quote.models import AssetRef, Quote
from ..types.swft import SwftCoinListResponse, SwftEnvelope, SwftPriceResponse
from .base import CoinListSource, QuoteSource

logger = logging.getLogger(__name__)


class SwftProvider(QuoteSource, CoinListSource):
    """Thin wrapper around the SWFT ``/api/v1`` endpoints."""

    name = "swft"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        success_code: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.swft_api_url).rstrip("/")
        self.timeout_s = timeout_s or settings.swft_timeout_seconds
        self.success_code = success_code or settings.swft_success_code
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json, text/plain, */*",
            "content-type": "application/json",
            "user-agent": "FlashSwapQuoteClient/1.0",
        }

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            response = await client.post(path, json=payload, headers=self._headers())
            response.raise_for_status()
            try:
                body = response.json()
            except ValueError as exc:
                raise QuoteSourceError(f"SWFT {path} returned non-JSON body", provider=self.name) from exc
        if not isinstance(body, dict):
            raise QuoteSourceError(f"SWFT {path} returned {type(body).__name__}, expected object", provider=self.name)
        return body

    @staticmethod
    def coin_code(asset: AssetRef) -> str:
        return asset.symbol

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "No base URL configured"}
        try:
            result = await self.get_coin_list()
        except Exception as e:  # noqa: BLE001
            return {"status": "error", "reason": str(e)}
        if not result.is_success(self.success_code):
            return {"status": "error", "reason": f"resCode {result.res_code}"}
        return {"status": "healthy", "coins": len(result.data)}

    async def get_price_info(self, from_asset: AssetRef, to_asset: AssetRef) -> SwftPriceResponse:
        """Fetch the instant rate and fees for swapping ``from_asset`` into ``to_asset``.

        Only a successful envelope has its ``data`` validated; failures come
        back as a response with the code and message and no data.
        """

        body = await self._post(
            "/api/v1/getBaseInfo",
            {
                "depositCoinCode": self.coin_code(from_asset),
                "receiveCoinCode": self.coin_code(to_asset),
            },
        )
        envelope = SwftEnvelope.model_validate(body)
        if not envelope.is_success(self.success_code):
            logger.info(
                "SWFT getBaseInfo %s->%s: %s %s",
                from_asset.symbol,
                to_asset.symbol,
                envelope.res_code,
                envelope.res_msg,
            )
            return SwftPriceResponse(resCode=envelope.res_code, resMsg=envelope.res_msg, data=None)
        return SwftPriceResponse.model_validate(body)

    async def get_coin_list(self) -> SwftCoinListResponse:
        body = await self._post("/api/v1/queryCoinList", {"supportType": "advanced"})
        envelope = SwftEnvelope.model_validate(body)
        if not envelope.is_success(self.success_code):
            return SwftCoinListResponse(resCode=envelope.res_code, resMsg=envelope.res_msg)
        return SwftCoinListResponse.model_validate(body)

    def get_return_amount(self, amount: Decimal, quote: Quote) -> Decimal:
        return net_return_amount(amount, quote)
