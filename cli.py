#!/usr/bin/env python3
"""Simple CLI for watching FlashSwap quotes locally"""

import argparse
import asyncio
from typing import Optional

from flashswap.config import settings
from flashswap.core.quote import (
    AssetRef,
    EngineSnapshot,
    QuoteRefreshEngine,
    default_target_asset,
    is_positive_amount,
)
from flashswap.logging_config import bind_session, setup_logging
from flashswap.providers.swft import SwftProvider
from flashswap.services.coin_catalog import CatalogStatus, CoinCatalog


def print_snapshot(snapshot: EngineSnapshot) -> None:
    """Pretty print one engine state change"""
    asset = snapshot.selected_asset.symbol if snapshot.selected_asset else "-"
    target = snapshot.target_asset.symbol
    marker = "⚠️ " if snapshot.quote_load_error else "🔄"

    if snapshot.latest_quote is None:
        print(f"{marker} [{snapshot.status.value}] {asset} → {target}: waiting for quote")
        return

    quote = snapshot.latest_quote
    print(
        f"{marker} [{snapshot.status.value}] #{quote.generation} "
        f"1 {asset} = {quote.rate} {target} | "
        f"{snapshot.last_amount} {asset} → {snapshot.output_amount} {target}"
    )


async def cli_quote(symbol: str, amount: str, seconds: float, contract: Optional[str], decimals: int):
    """Keep a quote fresh for ``seconds`` and print every update"""
    provider = SwftProvider()
    asset = AssetRef(symbol=symbol, network=settings.supported_network, contract=contract, decimals=decimals)
    engine = QuoteRefreshEngine(provider, default_asset=asset, initial_amount=amount)
    bind_session(engine.session_id)

    last_generation = -1

    def _on_change(snapshot: EngineSnapshot) -> None:
        nonlocal last_generation
        quote = snapshot.latest_quote
        generation = quote.generation if quote else 0
        if generation != last_generation or snapshot.quote_load_error:
            last_generation = generation
            print_snapshot(snapshot)

    engine.add_listener(_on_change)
    print(f"🔍 Watching {symbol.upper()} → {engine.target_asset.symbol} for {seconds:.0f}s (Ctrl+C to stop)...")
    async with engine:
        await asyncio.sleep(seconds)


async def cli_coins(search: Optional[str]):
    """List source assets that can be swapped into the target"""
    catalog = CoinCatalog(SwftProvider(), default_target_asset())
    status = await catalog.load()
    if status != CatalogStatus.LOADED:
        print("❌ Could not load the coin list")
        return

    catalog.search = search or ""
    entries = catalog.filtered
    print(f"\n🪙 {len(entries)} assets on {settings.supported_network}")
    print("=" * 50)
    for i, entry in enumerate(entries, 1):
        contract = entry.asset.contract or "native"
        print(f"{i:3d}. {entry.symbol:<12} {entry.asset.decimals:>3} decimals  {contract}")

    pinned = catalog.pinned
    if pinned and not search:
        print(f"\nMost used: {', '.join(entry.symbol for entry in pinned)}")


async def cli_health():
    result = await SwftProvider().health_check()
    status = result.get("status")
    icon = "✅" if status == "healthy" else "❌"
    print(f"{icon} swft: {status} {result.get('reason') or result.get('coins', '')}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="FlashSwap quote CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    quote_parser = subparsers.add_parser("quote", help="Watch a live quote")
    quote_parser.add_argument("symbol", help="Source asset symbol, e.g. ETH")
    quote_parser.add_argument("amount", help="Source amount")
    quote_parser.add_argument("--seconds", type=float, default=30.0, help="How long to keep refreshing")
    quote_parser.add_argument("--contract", default=None, help="Token contract address")
    quote_parser.add_argument("--decimals", type=int, default=18, help="Token decimal places")

    coins_parser = subparsers.add_parser("coins", help="List supported source assets")
    coins_parser.add_argument("search", nargs="?", default=None, help="Symbol fragment or contract address")

    subparsers.add_parser("health", help="Check the quote source")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    if command == "quote":
        if not is_positive_amount(args.amount):
            print(f"❌ Amount must be a positive number, got {args.amount!r}")
            return
        await cli_quote(args.symbol, args.amount, args.seconds, args.contract, args.decimals)

    elif command == "coins":
        await cli_coins(args.search)

    elif command == "health":
        await cli_health()

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nGoodbye! 👋")
