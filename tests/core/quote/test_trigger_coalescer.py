"""Tests for the trigger coalescer."""

import pytest

from flashswap.core.quote import TriggerCoalescer
from flashswap.core.quote.coalescer import REASON_FORCED, REASON_INPUT, REASON_TIMER


@pytest.fixture
def triggers():
    return []


@pytest.fixture
def coalescer(clock, triggers):
    coalescer = TriggerCoalescer(
        clock,
        triggers.append,
        debounce_seconds=0.05,
        refresh_interval_seconds=10.0,
    )
    coalescer.start()
    return coalescer


# =============================================================================
# Coalescing
# =============================================================================


class TestCoalescing:
    @pytest.mark.asyncio
    async def test_needs_both_asset_and_amount(self, coalescer, clock, triggers, eth):
        coalescer.on_asset(eth)
        await clock.advance(1.0)
        assert triggers == []

        coalescer.on_amount("1")
        await clock.advance(0.11)
        assert len(triggers) == 1
        assert triggers[0].asset == eth
        assert triggers[0].amount == "1"
        assert triggers[0].reason == REASON_INPUT

    @pytest.mark.asyncio
    async def test_amount_burst_emits_last_value(self, coalescer, clock, triggers, eth):
        coalescer.on_asset(eth)
        for value in ("1", "1.", "1.5"):
            coalescer.on_amount(value)
            await clock.advance(0.01)
        await clock.advance(0.2)

        assert [t.amount for t in triggers] == ["1.5"]

    @pytest.mark.asyncio
    async def test_asset_switch_within_window_emits_latest_pair(self, coalescer, clock, triggers, eth, link):
        coalescer.on_amount("2")
        await clock.advance(0.06)
        coalescer.on_asset(eth)
        coalescer.on_asset(link)
        await clock.advance(0.06)

        assert len(triggers) == 1
        assert triggers[0].asset == link

    @pytest.mark.asyncio
    async def test_repeated_pair_is_suppressed(self, coalescer, clock, triggers, eth):
        coalescer.on_asset(eth)
        coalescer.on_amount("3")
        await clock.advance(0.11)
        coalescer.on_asset(eth)
        await clock.advance(0.11)

        assert coalescer.emitted == 1

    @pytest.mark.asyncio
    async def test_returning_to_earlier_pair_emits_again(self, coalescer, clock, triggers, eth, link):
        coalescer.on_amount("3")
        coalescer.on_asset(eth)
        await clock.advance(0.11)
        coalescer.on_asset(link)
        await clock.advance(0.11)
        coalescer.on_asset(eth)
        await clock.advance(0.11)

        assert [t.asset for t in triggers] == [eth, link, eth]


# =============================================================================
# Refresh tick
# =============================================================================


class TestRefreshTick:
    @pytest.mark.asyncio
    async def test_tick_reemits_last_pair(self, coalescer, clock, triggers, eth):
        coalescer.on_asset(eth)
        coalescer.on_amount("1")
        await clock.advance(0.2)

        await clock.advance(9.8)
        assert len(triggers) == 2
        assert triggers[1].reason == REASON_TIMER
        assert coalescer.last_pair == (eth, "1")

        await clock.advance(10.0)
        assert len(triggers) == 3

    @pytest.mark.asyncio
    async def test_force(self, coalescer, clock, triggers, eth):
        assert coalescer.force() is False

        coalescer.on_asset(eth)
        coalescer.on_amount("1")
        await clock.advance(0.11)

        assert coalescer.force() is True
        assert triggers[-1].reason == REASON_FORCED

    @pytest.mark.asyncio
    async def test_stop_cancels_everything(self, coalescer, clock, triggers, eth):
        coalescer.on_asset(eth)
        coalescer.on_amount("1")
        await clock.advance(0.11)
        coalescer.on_amount("2")

        coalescer.stop()
        await clock.advance(60.0)

        assert len(triggers) == 1
        assert not coalescer.is_running
        assert clock.pending == 0

    def test_interval_must_be_positive(self, clock):
        with pytest.raises(ValueError):
            TriggerCoalescer(clock, lambda trigger: None, refresh_interval_seconds=0)
