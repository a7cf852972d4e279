"""
Quote Refresh Engine

Owns one swap session: feeds user input into the trigger coalescer, runs
quote lookups through the switch-latest fetcher, derives the output amount
and keeps the field-level validation flags. All state changes happen in
callbacks on a single event loop, so no locking is involved.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Union
from uuid import uuid4

from ...config import settings
from ...providers.base import QuoteSource
from ...services.address import first_account, is_address_valid
from .calculator import compute_output, is_positive_amount, parse_amount
from .clock import Clock, LoopClock, TimerHandle
from .coalescer import Trigger, TriggerCoalescer
from .errors import (
    ACCOUNT,
    DEPOSIT_LIMIT,
    FROM_AMOUNT,
    PRICE,
    TO_ADDRESS,
    EngineStateError,
    QuoteEngineError,
)
from .fetcher import QuoteFetcher
from .models import (
    AmountInput,
    AssetRef,
    EngineSnapshot,
    EngineState,
    EngineStatus,
    FetchOutcome,
    Quote,
    QuoteSuccess,
    SubmitResult,
    SwapOrder,
)
from .validation import ValidationTracker

if TYPE_CHECKING:
    from ...services.coin_catalog import CatalogStatus, CoinCatalog


Listener = Callable[[EngineSnapshot], None]
AddressValidator = Callable[[str], bool]


def default_target_asset() -> AssetRef:
    return AssetRef(
        symbol=settings.target_symbol,
        network=settings.target_network,
        contract=settings.target_contract or None,
        decimals=settings.target_decimals,
    )


def default_source_asset() -> AssetRef:
    return AssetRef(
        symbol=settings.default_symbol,
        network=settings.default_network,
        decimals=settings.default_decimals,
    )


class QuoteRefreshEngine:
    """
    Keeps a conversion quote fresh for the selected asset and amount.

    Lifecycle: ``IDLE`` until :meth:`start`, which selects the default
    asset and moves to ``AWAITING_QUOTE``. Each coalesced trigger returns
    the engine to ``AWAITING_QUOTE``; the matching fetch outcome moves it to
    ``FRESH`` or ``STALE``. :meth:`stop` tears every subscription down and
    is final.
    """

    def __init__(
        self,
        source: QuoteSource,
        *,
        clock: Optional[Clock] = None,
        target_asset: Optional[AssetRef] = None,
        default_asset: Optional[AssetRef] = None,
        initial_amount: AmountInput = None,
        address_validator: Optional[AddressValidator] = None,
        catalog: Optional["CoinCatalog"] = None,
        debounce_seconds: Optional[float] = None,
        refresh_interval_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session_id = uuid4().hex[:12]
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock or LoopClock()
        self._source = source
        self._target = target_asset or default_target_asset()
        self._default_asset = default_asset or default_source_asset()
        self._initial_amount = initial_amount
        self._validate_address = address_validator or partial(is_address_valid, network=self._target.network)
        self._catalog = catalog
        self._debounce = settings.input_debounce_seconds if debounce_seconds is None else debounce_seconds

        self._state = EngineState()
        self._errors = ValidationTracker()
        self._coalescer = TriggerCoalescer(
            self._clock,
            self._on_trigger,
            debounce_seconds=self._debounce,
            refresh_interval_seconds=refresh_interval_seconds,
        )
        self._fetcher = QuoteFetcher(source, self._on_outcome, clock=self._clock)

        self._field_timers: Dict[str, TimerHandle] = {}
        self._field_seen: Dict[str, Any] = {}
        self._listeners: List[Listener] = []

    # ---------------------------
    # Read-only state
    # ---------------------------
    @property
    def status(self) -> EngineStatus:
        return self._state.status

    @property
    def target_asset(self) -> AssetRef:
        return self._target

    @property
    def selected_asset(self) -> Optional[AssetRef]:
        return self._state.selected_asset

    @property
    def latest_quote(self) -> Optional[Quote]:
        return self._state.latest_quote

    @property
    def output_amount(self) -> Decimal:
        return self._state.output_amount

    @property
    def quote_load_error(self) -> bool:
        return self._state.quote_load_error

    @property
    def errors(self) -> FrozenSet[str]:
        return self._errors.names()

    @property
    def generation(self) -> int:
        return self._fetcher.generation

    @property
    def is_connected(self) -> bool:
        return bool(self._state.account)

    def snapshot(self) -> EngineSnapshot:
        state = self._state
        return EngineSnapshot(
            status=state.status,
            selected_asset=state.selected_asset,
            target_asset=self._target,
            last_amount=state.last_amount,
            latest_quote=state.latest_quote,
            output_amount=state.output_amount,
            quote_load_error=state.quote_load_error,
            errors=self._errors.names(),
            account=state.account,
            generation=self._fetcher.generation,
        )

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---------------------------
    # Lifecycle
    # ---------------------------
    def start(self) -> None:
        if self._state.status == EngineStatus.STOPPED:
            raise EngineStateError("start", self._state.status.value)
        if self._state.status != EngineStatus.IDLE:
            return
        self.logger.info(
            "Quote session %s starting: %s -> %s",
            self.session_id,
            self._default_asset.symbol,
            self._target.symbol,
        )
        self._coalescer.start()
        self._state.status = EngineStatus.AWAITING_QUOTE
        self.select_asset(self._default_asset)
        if self._initial_amount is not None:
            self.set_amount(self._initial_amount)

    def stop(self) -> None:
        if self._state.status == EngineStatus.STOPPED:
            return
        self._coalescer.stop()
        self._fetcher.close()
        for timer in self._field_timers.values():
            timer.cancel()
        self._field_timers.clear()
        self._state.status = EngineStatus.STOPPED
        self.logger.info("Quote session %s stopped", self.session_id)
        self._notify()
        self._listeners.clear()

    async def aclose(self) -> None:
        """Stop the session and wait for an aborted fetch to unwind."""
        pending = self._fetcher.close()
        self.stop()
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)

    async def __aenter__(self) -> "QuoteRefreshEngine":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------------------------
    # User input
    # ---------------------------
    def select_asset(self, asset: AssetRef) -> None:
        if not self._accepting_input("select an asset"):
            return
        self._state.selected_asset = asset
        self._coalescer.on_asset(asset)
        self._notify()

    def set_amount(self, value: AmountInput) -> None:
        if not self._accepting_input("set the amount"):
            return
        self._state.last_amount = value
        self._coalescer.on_amount(value)
        self._inspect_field(FROM_AMOUNT, value, is_positive_amount)
        self._inspect_field(DEPOSIT_LIMIT, value, self._within_deposit_limits)
        self._notify()

    def set_to_address(self, address: Optional[str]) -> None:
        if not self._accepting_input("set the destination address"):
            return
        self._state.to_address = (address or "").strip()
        self._inspect_field(TO_ADDRESS, self._state.to_address, self._address_ok)

    def set_account(self, accounts: Union[Sequence[str], str, None]) -> None:
        """Wallet notification. An empty list or None means disconnected."""
        if isinstance(accounts, str):
            accounts = [accounts]
        account = first_account(accounts)
        if account != self._state.account:
            self.logger.info("Session %s account %s", self.session_id, "connected" if account else "disconnected")
        self._state.account = account
        if account:
            self._errors.clear_error(ACCOUNT)
        self._notify()

    def refresh(self) -> bool:
        """Re-fetch the quote for the current pair without waiting for the timer."""
        if self._state.status in (EngineStatus.IDLE, EngineStatus.STOPPED):
            return False
        return self._coalescer.force()

    async def load_assets(self) -> "CatalogStatus":
        """Load the source asset list and select its first entry."""
        if self._catalog is None:
            raise QuoteEngineError("No coin catalog configured for this session")
        status = await self._catalog.load()
        assets = self._catalog.assets
        if assets and self._state.status not in (EngineStatus.IDLE, EngineStatus.STOPPED):
            self.select_asset(assets[0])
        return status

    # ---------------------------
    # Submit
    # ---------------------------
    def submit(self) -> SubmitResult:
        """Validate every field at once and, if all pass, build the swap order.

        Each check sets its own flag independently. Without a quote for the
        selected asset the submit is aborted.
        """
        state = self._state
        self._errors.clear()

        if not is_positive_amount(state.last_amount):
            self._errors.set_error(FROM_AMOUNT)
        if not self._address_ok(state.to_address):
            self._errors.set_error(TO_ADDRESS)
        quote = state.latest_quote
        if quote is None or quote.from_asset != state.selected_asset:
            self._errors.set_error(PRICE)
            quote = None
        if not state.account:
            self._errors.set_error(ACCOUNT)
        if quote is not None and is_positive_amount(state.last_amount):
            if not self._within_deposit_limits(state.last_amount):
                self._errors.set_error(DEPOSIT_LIMIT)
        expected_output = None
        if quote is not None and not self._errors.names():
            expected_output = self._expected_output(quote, state.last_amount)
            if expected_output is None:
                self._errors.set_error(PRICE)
        self._notify()

        errors = self._errors.names()
        if quote is None:
            self.logger.info("Session %s submit aborted: no quote available", self.session_id)
            return SubmitResult(accepted=False, errors=errors)
        if errors:
            return SubmitResult(accepted=False, errors=errors)

        order = SwapOrder(
            from_asset=quote.from_asset,
            to_asset=quote.to_asset,
            amount=parse_amount(state.last_amount),
            to_address=state.to_address,
            account=state.account,
            quote=quote,
            expected_output=expected_output,
        )
        self.logger.info(
            "Session %s swap order %s %s -> %s",
            self.session_id,
            order.amount,
            order.from_asset.symbol,
            order.to_asset.symbol,
        )
        return SubmitResult(accepted=True, errors=errors, order=order)

    # ---------------------------
    # Internal reactions
    # ---------------------------
    def _accepting_input(self, operation: str) -> bool:
        status = self._state.status
        if status == EngineStatus.IDLE:
            raise EngineStateError(operation, status.value)
        if status == EngineStatus.STOPPED:
            self.logger.debug("Session %s ignoring input after stop: %s", self.session_id, operation)
            return False
        return True

    def _address_ok(self, address: str) -> bool:
        return bool(address) and self._validate_address(address)

    def _within_deposit_limits(self, value: AmountInput) -> bool:
        """True when the amount fits the latest quote's deposit range, or no range is known."""
        quote = self._state.latest_quote
        if quote is None:
            return True
        amount = parse_amount(value)
        if amount is None:
            return False
        if quote.min_deposit is not None and amount < quote.min_deposit:
            return False
        if quote.max_deposit is not None and quote.max_deposit > 0 and amount > quote.max_deposit:
            return False
        return True

    def _expected_output(self, quote: Quote, amount: AmountInput) -> Optional[Decimal]:
        try:
            return compute_output(quote, amount, self._source.get_return_amount)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("Session %s could not price the order: %s", self.session_id, exc, exc_info=True)
            return None

    def _inspect_field(self, name: str, value: Any, check: Callable[[Any], bool]) -> None:
        timer = self._field_timers.pop(name, None)
        if timer is not None:
            timer.cancel()
        self._field_timers[name] = self._clock.call_later(self._debounce, self._apply_inspection, name, value, check)

    def _apply_inspection(self, name: str, value: Any, check: Callable[[Any], bool]) -> None:
        self._field_timers.pop(name, None)
        if name in self._field_seen and self._field_seen[name] == value:
            return
        self._field_seen[name] = value
        if check(value) and self._errors.has_error(name):
            self._errors.clear_error(name)
            self._notify()

    def _on_trigger(self, trigger: Trigger) -> None:
        if self._state.status == EngineStatus.STOPPED:
            return
        request = self._fetcher.request(trigger.asset, self._target, trigger.amount)
        self._state.status = EngineStatus.AWAITING_QUOTE
        self.logger.debug(
            "Session %s quote %d requested (%s): %s amount=%r",
            self.session_id,
            request.generation,
            trigger.reason,
            trigger.asset.symbol,
            trigger.amount,
        )
        self._notify()

    def _on_outcome(self, outcome: FetchOutcome) -> None:
        if self._state.status == EngineStatus.STOPPED:
            return
        state = self._state
        output = None
        if isinstance(outcome, QuoteSuccess):
            output = self._expected_output(outcome.quote, outcome.request.amount)
        if output is not None:
            state.latest_quote = outcome.quote
            state.quote_amount = outcome.request.amount
            state.output_amount = output
            state.quote_load_error = False
            state.status = EngineStatus.FRESH
            self._errors.clear_error(PRICE)
        else:
            state.quote_load_error = True
            state.status = EngineStatus.STALE
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("Quote listener failed: %s", exc, exc_info=True)
