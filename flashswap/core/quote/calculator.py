"""Conversion of a source amount into the target asset using a quote."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, Overflow, ROUND_DOWN, localcontext
from typing import Any, Callable, Optional

from .models import Quote

logger = logging.getLogger(__name__)

ConversionRule = Callable[[Decimal, Quote], Decimal]

_ZERO = Decimal("0")

# Amounts of 10**30 units or more are rejected as input errors.
_MAX_AMOUNT_EXPONENT = 30


def parse_amount(raw: Any) -> Optional[Decimal]:
    """Read a user-entered amount.

    Returns None for anything that is not a finite number, and for
    magnitudes no asset supply could reach.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip().replace(",", "")
        if not raw:
            return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not value.is_finite():
        return None
    if value and value.adjusted() >= _MAX_AMOUNT_EXPONENT:
        return None
    return value


def is_positive_amount(raw: Any) -> bool:
    value = parse_amount(raw)
    return value is not None and value > 0


def net_return_amount(amount: Decimal, quote: Quote) -> Decimal:
    """SWFT pricing: the deposit fee is taken first, the chain fee comes off the proceeds."""
    gross = amount * (Decimal("1") - quote.deposit_fee_rate) * quote.rate
    return max(gross - quote.receive_fee, _ZERO)


def compute_output(quote: Optional[Quote], amount: Any, rule: Optional[ConversionRule] = None) -> Decimal:
    """
    Output amount in the target asset for ``amount`` of the source asset.

    Empty, unparseable and non-positive amounts convert to zero, and so does
    a result the decimal context cannot represent. The result is truncated
    to the target asset's precision.

    Raises:
        ValueError: if ``quote`` is None
    """
    if quote is None:
        raise ValueError("compute_output requires a quote")
    value = parse_amount(amount)
    if value is None or value <= 0:
        return _ZERO
    try:
        result = (rule or net_return_amount)(value, quote)
        if result <= 0:
            return _ZERO
        step = Decimal(1).scaleb(-quote.to_asset.decimals)
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, result.adjusted() + quote.to_asset.decimals + 2)
            return result.quantize(step, rounding=ROUND_DOWN)
    except (Overflow, InvalidOperation) as exc:
        logger.warning(
            "Cannot convert %s %s at rate %s: %s", value, quote.from_asset.symbol, quote.rate, exc.__class__.__name__
        )
        return _ZERO
