"""
Quote Refresh Module

Keeps a swap quote fresh while the user edits the source asset and amount:
trigger coalescing, switch-latest fetching, output conversion and field
validation.
"""

from .calculator import compute_output, is_positive_amount, net_return_amount, parse_amount
from .clock import Clock, LoopClock, ManualClock
from .coalescer import Trigger, TriggerCoalescer
from .engine import QuoteRefreshEngine, default_source_asset, default_target_asset
from .errors import (
    ACCOUNT,
    DEPOSIT_LIMIT,
    FROM_AMOUNT,
    PRICE,
    TO_ADDRESS,
    EngineStateError,
    QuoteEngineError,
    QuoteSourceError,
)
from .fetcher import QuoteFetcher
from .models import (
    AssetRef,
    EngineSnapshot,
    EngineStatus,
    FailureReason,
    Quote,
    QuoteFailure,
    QuoteRequest,
    QuoteSuccess,
    SubmitResult,
    SwapOrder,
)
from .validation import ValidationTracker

__all__ = [
    # Engine
    "QuoteRefreshEngine",
    "default_source_asset",
    "default_target_asset",
    # Components
    "TriggerCoalescer",
    "Trigger",
    "QuoteFetcher",
    "ValidationTracker",
    "compute_output",
    "net_return_amount",
    "parse_amount",
    "is_positive_amount",
    # Clocks
    "Clock",
    "LoopClock",
    "ManualClock",
    # Models
    "AssetRef",
    "Quote",
    "QuoteRequest",
    "QuoteSuccess",
    "QuoteFailure",
    "FailureReason",
    "EngineStatus",
    "EngineSnapshot",
    "SubmitResult",
    "SwapOrder",
    # Errors
    "QuoteEngineError",
    "EngineStateError",
    "QuoteSourceError",
    "FROM_AMOUNT",
    "TO_ADDRESS",
    "PRICE",
    "ACCOUNT",
    "DEPOSIT_LIMIT",
]
