"""
Quote Refresh Models

Value types shared by the coalescer, fetcher, calculator and engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union


AmountInput = Union[str, int, float, Decimal, None]


@dataclass(frozen=True)
class AssetRef:
    """A tradable asset. Identity is (symbol, network, contract)."""

    symbol: str
    network: str
    contract: Optional[str] = None
    decimals: int = field(default=18, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", self.symbol.strip().upper())
        object.__setattr__(self, "network", self.network.strip().upper())
        contract = (self.contract or "").strip().lower()
        object.__setattr__(self, "contract", contract or None)
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")

    @property
    def is_native(self) -> bool:
        return self.contract is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "network": self.network,
            "contract": self.contract,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class QuoteRequest:
    """One fetch, tagged with the generation of the trigger that caused it."""

    from_asset: AssetRef
    to_asset: AssetRef
    amount: AmountInput
    generation: int


@dataclass(frozen=True)
class Quote:
    """Conversion terms returned by the quote source."""

    from_asset: AssetRef
    to_asset: AssetRef
    rate: Decimal
    deposit_fee_rate: Decimal = Decimal("0")
    receive_fee: Decimal = Decimal("0")
    min_deposit: Optional[Decimal] = None
    max_deposit: Optional[Decimal] = None
    generation: int = 0
    fetched_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromAsset": self.from_asset.to_dict(),
            "toAsset": self.to_asset.to_dict(),
            "rate": str(self.rate),
            "depositFeeRate": str(self.deposit_fee_rate),
            "receiveFee": str(self.receive_fee),
            "minDeposit": str(self.min_deposit) if self.min_deposit is not None else None,
            "maxDeposit": str(self.max_deposit) if self.max_deposit is not None else None,
            "generation": self.generation,
            "fetchedAt": self.fetched_at,
        }


class FailureReason(str, Enum):
    """Why a fetch produced no quote."""

    RESPONSE_CODE = "response_code"       # Source answered with a non-success code
    TRANSPORT = "transport"               # Network / HTTP level failure
    INVALID_PAYLOAD = "invalid_payload"   # Response did not validate


@dataclass(frozen=True)
class QuoteSuccess:
    request: QuoteRequest
    quote: Quote

    ok = True


@dataclass(frozen=True)
class QuoteFailure:
    request: QuoteRequest
    reason: FailureReason
    message: str = ""
    response_code: Optional[str] = None

    ok = False


FetchOutcome = Union[QuoteSuccess, QuoteFailure]


class EngineStatus(str, Enum):
    """Lifecycle of a quote refresh session."""

    IDLE = "idle"                       # Not started
    AWAITING_QUOTE = "awaiting_quote"   # Trigger emitted, fetch in flight
    FRESH = "fresh"                     # Latest fetch succeeded
    STALE = "stale"                     # Latest fetch failed, last quote kept
    STOPPED = "stopped"                 # Session torn down


@dataclass
class EngineState:
    """Mutable session aggregate. Written only by the engine."""

    selected_asset: Optional[AssetRef] = None
    last_amount: AmountInput = None
    to_address: str = ""
    account: Optional[str] = None
    status: EngineStatus = EngineStatus.IDLE
    latest_quote: Optional[Quote] = None
    quote_amount: AmountInput = None
    output_amount: Decimal = Decimal("0")
    quote_load_error: bool = False


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only view handed to the presentation layer."""

    status: EngineStatus
    selected_asset: Optional[AssetRef]
    target_asset: AssetRef
    last_amount: AmountInput
    latest_quote: Optional[Quote]
    output_amount: Decimal
    quote_load_error: bool
    errors: FrozenSet[str]
    account: Optional[str]
    generation: int

    @property
    def has_quote(self) -> bool:
        return self.latest_quote is not None

    @property
    def is_connected(self) -> bool:
        return bool(self.account)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "selectedAsset": self.selected_asset.to_dict() if self.selected_asset else None,
            "targetAsset": self.target_asset.to_dict(),
            "amount": None if self.last_amount is None else str(self.last_amount),
            "latestQuote": self.latest_quote.to_dict() if self.latest_quote else None,
            "outputAmount": str(self.output_amount),
            "quoteLoadError": self.quote_load_error,
            "errors": {name: True for name in sorted(self.errors)},
            "account": self.account,
            "generation": self.generation,
        }


@dataclass(frozen=True)
class SwapOrder:
    """Everything the wallet needs to execute a validated swap."""

    from_asset: AssetRef
    to_asset: AssetRef
    amount: Decimal
    to_address: str
    account: str
    quote: Quote
    expected_output: Decimal


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    errors: FrozenSet[str]
    order: Optional[SwapOrder] = None
