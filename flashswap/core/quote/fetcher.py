"""
Quote Fetcher

Runs one asynchronous quote lookup per trigger with switch-latest semantics:
a new request cancels the task of the previous one, and every completion is
checked against a generation counter before it is delivered, so a slow
response can never overwrite the result of a newer request regardless of
the order in which the source answers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from ...config import settings
from ...providers.base import QuoteSource
from ...types.swft import SwftPriceInfo
from .clock import Clock, LoopClock
from .errors import EngineStateError, QuoteSourceError
from .models import (
    AmountInput,
    AssetRef,
    FailureReason,
    FetchOutcome,
    Quote,
    QuoteFailure,
    QuoteRequest,
    QuoteSuccess,
)


OutcomeSink = Callable[[FetchOutcome], None]


def quote_from_price_info(info: SwftPriceInfo, request: QuoteRequest, fetched_at: float) -> Quote:
    return Quote(
        from_asset=request.from_asset,
        to_asset=request.to_asset,
        rate=info.instant_rate,
        deposit_fee_rate=info.deposit_coin_fee_rate,
        receive_fee=info.receive_coin_fee,
        min_deposit=info.deposit_min,
        max_deposit=info.deposit_max,
        generation=request.generation,
        fetched_at=fetched_at,
    )


class QuoteFetcher:
    """Switch-latest wrapper around a :class:`QuoteSource`."""

    def __init__(
        self,
        source: QuoteSource,
        sink: OutcomeSink,
        *,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._sink = sink
        self._clock = clock or LoopClock()
        self.logger = logger or logging.getLogger(__name__)
        self._success_code = getattr(source, "success_code", None) or settings.swft_success_code

        self._generation = 0
        self._wanted: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self.dropped = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def request(self, from_asset: AssetRef, to_asset: AssetRef, amount: AmountInput) -> QuoteRequest:
        """Start a lookup, superseding whatever is still outstanding."""
        if self._closed:
            raise EngineStateError("fetch quotes", "closed")
        self._generation += 1
        request = QuoteRequest(
            from_asset=from_asset,
            to_asset=to_asset,
            amount=amount,
            generation=self._generation,
        )
        self._abort_task()
        self._wanted = request.generation
        self._task = asyncio.create_task(self._run(request), name=f"quote-fetch-{request.generation}")
        return request

    def cancel(self) -> None:
        """Drop interest in the outstanding lookup, if any."""
        self._wanted = None
        self._abort_task()

    def close(self) -> Optional[asyncio.Task]:
        """Stop accepting requests. Returns the aborted task, if one was running."""
        task = self._task
        self._closed = True
        self.cancel()
        return task if task is not None and not task.done() else None

    async def aclose(self) -> None:
        task = self.close()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    # ---------------------------
    # Internals
    # ---------------------------
    def _abort_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, request: QuoteRequest) -> None:
        outcome = await self._lookup(request)
        self._deliver(outcome)

    async def _lookup(self, request: QuoteRequest) -> FetchOutcome:
        source_name = getattr(self._source, "name", type(self._source).__name__)
        try:
            response = await self._source.get_price_info(request.from_asset, request.to_asset)
        except asyncio.CancelledError:
            raise
        except (ValidationError, QuoteSourceError) as exc:
            self.logger.warning(
                "Quote %d from %s rejected: invalid payload: %s", request.generation, source_name, exc
            )
            return QuoteFailure(request=request, reason=FailureReason.INVALID_PAYLOAD, message=str(exc))
        except (httpx.HTTPError, asyncio.TimeoutError, OSError) as exc:
            self.logger.warning("Quote %d from %s failed: %s", request.generation, source_name, exc)
            return QuoteFailure(request=request, reason=FailureReason.TRANSPORT, message=str(exc))
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "Quote %d from %s raised: %s", request.generation, source_name, exc, exc_info=True
            )
            return QuoteFailure(request=request, reason=FailureReason.TRANSPORT, message=str(exc))

        if not response.is_success(self._success_code):
            self.logger.warning(
                "Quote %d from %s returned code %s: %s",
                request.generation,
                source_name,
                response.res_code,
                response.res_msg,
            )
            return QuoteFailure(
                request=request,
                reason=FailureReason.RESPONSE_CODE,
                message=response.res_msg or "",
                response_code=response.res_code,
            )
        if response.data is None:
            return QuoteFailure(
                request=request,
                reason=FailureReason.INVALID_PAYLOAD,
                message="success response without price data",
                response_code=response.res_code,
            )
        quote = quote_from_price_info(response.data, request, self._clock.time())
        return QuoteSuccess(request=request, quote=quote)

    def _deliver(self, outcome: FetchOutcome) -> None:
        generation = outcome.request.generation
        if self._closed or generation != self._wanted:
            self.dropped += 1
            self.logger.debug("Dropping stale quote %d (current %s)", generation, self._wanted)
            return
        self._wanted = None
        try:
            self._sink(outcome)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("Quote %d outcome handler failed: %s", generation, exc, exc_info=True)
