"""Helpers for validating destination addresses and formatting connected accounts."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Sequence

from eth_utils import is_address, to_checksum_address

_NETWORK_ALIASES = {
    "eth": "ETH",
    "ethereum": "ETH",
    "mainnet": "ETH",
    "bsc": "BSC",
    "bnb": "BSC",
    "heco": "HECO",
    "ht": "HECO",
    "polygon": "POLYGON",
    "matic": "POLYGON",
}

# Networks whose addresses follow the EVM hex format (EIP-55 checksum when mixed case).
_EVM_NETWORKS = {"ETH", "BSC", "HECO", "POLYGON"}


def normalize_network(network: str | None) -> str:
    """Collapse user-provided network identifiers into SWFT network codes."""

    if not network:
        return "ETH"
    cleaned = network.strip()
    return _NETWORK_ALIASES.get(cleaned.lower(), cleaned.upper())


def is_evm_network(network: str | None) -> bool:
    return normalize_network(network) in _EVM_NETWORKS


@lru_cache(maxsize=256)
def is_address_valid(address: str, network: str = "ETH") -> bool:
    """True when ``address`` can receive funds on ``network``.

    Mixed-case EVM addresses must carry a valid checksum; all-lowercase or
    all-uppercase hex is accepted as is.
    """

    if not address or not isinstance(address, str):
        return False
    if not is_evm_network(network):
        return False
    return bool(is_address(address.strip()))


def checksum(address: str) -> str:
    return to_checksum_address(address.strip())


def first_account(accounts: Optional[Sequence[str]]) -> Optional[str]:
    """The active account from a wallet notification, or None when disconnected."""

    if not accounts:
        return None
    account = accounts[0]
    return account if account else None


def short_address(address: Optional[str], keep: int = 5) -> Optional[str]:
    if not address:
        return None
    if len(address) <= keep * 2:
        return address
    return f"{address[:keep]}...{address[-keep:]}"


__all__ = [
    "normalize_network",
    "is_evm_network",
    "is_address_valid",
    "checksum",
    "first_account",
    "short_address",
]
