"""
Trigger Coalescer

Turns asset selections, amount keystrokes and a periodic refresh tick into a
single ordered stream of "fetch a fresh quote now" triggers.

The combination is an explicit state machine rather than an operator chain:

1. amount changes are debounced, then dropped if equal to the previous
   debounced amount;
2. the latest asset and debounced amount form a candidate pair once both are
   known;
3. candidate pairs are debounced again and dropped if equal to the last
   emitted pair;
4. each refresh tick re-emits the last emitted pair unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ...config import settings
from .clock import Clock, TimerHandle
from .models import AmountInput, AssetRef


REASON_INPUT = "input"
REASON_TIMER = "timer"
REASON_FORCED = "forced"


@dataclass(frozen=True)
class Trigger:
    asset: AssetRef
    amount: AmountInput
    reason: str = REASON_INPUT


TriggerSink = Callable[[Trigger], None]
_Pair = Tuple[AssetRef, AmountInput]


class TriggerCoalescer:
    """Debounces and combines refresh inputs on a shared clock."""

    def __init__(
        self,
        clock: Clock,
        sink: TriggerSink,
        *,
        debounce_seconds: Optional[float] = None,
        refresh_interval_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._sink = sink
        self._debounce = settings.input_debounce_seconds if debounce_seconds is None else debounce_seconds
        self._interval = (
            settings.quote_refresh_interval_seconds
            if refresh_interval_seconds is None
            else refresh_interval_seconds
        )
        if self._interval <= 0:
            raise ValueError("refresh interval must be positive")
        self.logger = logger or logging.getLogger(__name__)

        self._running = False
        self._asset: Optional[AssetRef] = None
        self._amount: AmountInput = None
        self._has_amount = False
        self._pending_amount: AmountInput = None
        self._candidate: Optional[_Pair] = None
        self._last_emitted: Optional[_Pair] = None

        self._amount_timer: Optional[TimerHandle] = None
        self._pair_timer: Optional[TimerHandle] = None
        self._tick_timer: Optional[TimerHandle] = None
        self.emitted = 0

    # ---------------------------
    # Lifecycle
    # ---------------------------
    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_pair(self) -> Optional[_Pair]:
        return self._last_emitted

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tick_timer = self._clock.call_later(self._interval, self._on_tick)

    def stop(self) -> None:
        self._running = False
        for timer in (self._amount_timer, self._pair_timer, self._tick_timer):
            if timer is not None:
                timer.cancel()
        self._amount_timer = None
        self._pair_timer = None
        self._tick_timer = None
        self._candidate = None

    # ---------------------------
    # Inputs
    # ---------------------------
    def on_asset(self, asset: AssetRef) -> None:
        if not self._running:
            self.logger.debug("Ignoring asset %s: coalescer stopped", asset.symbol)
            return
        self._asset = asset
        self._propose()

    def on_amount(self, value: AmountInput) -> None:
        if not self._running:
            return
        self._pending_amount = value
        if self._amount_timer is not None:
            self._amount_timer.cancel()
        self._amount_timer = self._clock.call_later(self._debounce, self._flush_amount)

    def force(self) -> bool:
        """Re-emit the last pair immediately. Returns False if there is none yet."""
        if not self._running or self._last_emitted is None:
            return False
        self._emit(self._last_emitted, REASON_FORCED)
        return True

    # ---------------------------
    # Internal transitions
    # ---------------------------
    def _flush_amount(self) -> None:
        self._amount_timer = None
        value = self._pending_amount
        if self._has_amount and value == self._amount:
            return
        self._amount = value
        self._has_amount = True
        self._propose()

    def _propose(self) -> None:
        if self._asset is None or not self._has_amount:
            return
        self._candidate = (self._asset, self._amount)
        if self._pair_timer is not None:
            self._pair_timer.cancel()
        self._pair_timer = self._clock.call_later(self._debounce, self._flush_pair)

    def _flush_pair(self) -> None:
        self._pair_timer = None
        pair, self._candidate = self._candidate, None
        if pair is None or pair == self._last_emitted:
            return
        self._emit(pair, REASON_INPUT)

    def _on_tick(self) -> None:
        if not self._running:
            return
        self._tick_timer = self._clock.call_later(self._interval, self._on_tick)
        if self._last_emitted is None:
            self.logger.debug("Refresh tick with no asset/amount pair yet")
            return
        self._emit(self._last_emitted, REASON_TIMER)

    def _emit(self, pair: _Pair, reason: str) -> None:
        self._last_emitted = pair
        self.emitted += 1
        asset, amount = pair
        self.logger.debug("Trigger %s: %s amount=%r", reason, asset.symbol, amount)
        self._sink(Trigger(asset=asset, amount=amount, reason=reason))
