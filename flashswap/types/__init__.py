from .swft import SwftCoinInfo, SwftCoinListResponse, SwftEnvelope, SwftPriceInfo, SwftPriceResponse

__all__ = [
    "SwftCoinInfo",
    "SwftCoinListResponse",
    "SwftEnvelope",
    "SwftPriceInfo",
    "SwftPriceResponse",
]
