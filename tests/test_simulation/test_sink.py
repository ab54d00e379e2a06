"""Tests for the best-effort progress sink wrapper."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradesim.exceptions import SinkWriteError
from tradesim.models import TradeType
from tradesim.simulation.models import SimulationTrade
from tradesim.simulation.sink import BestEffortSink


def _make_trade() -> SimulationTrade:
    return SimulationTrade(
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        type=TradeType.BUY,
        price=Decimal("10"),
        amount=Decimal("0.1"),
        confidence=Decimal("0.5"),
        reasoning="test",
    )


class TestBestEffortSink:
    @pytest.mark.asyncio
    async def test_writes_forwarded_with_run_id(self) -> None:
        inner = AsyncMock()
        sink = BestEffortSink(inner, "sim_1")
        trade = _make_trade()

        sink.report_progress(20)
        sink.cache_trade(trade, {"pool_id": "p"})
        await sink.drain()

        inner.report_progress.assert_awaited_once_with("sim_1", 20)
        inner.cache_trade.assert_awaited_once_with("sim_1", trade, {"pool_id": "p"})
        assert sink.failures == 0

    @pytest.mark.asyncio
    async def test_async_failures_absorbed(self) -> None:
        inner = AsyncMock()
        inner.report_progress.side_effect = SinkWriteError("disk full")
        inner.cache_trade.side_effect = RuntimeError("boom")
        sink = BestEffortSink(inner, "sim_1")

        sink.report_progress(20)
        sink.cache_trade(_make_trade(), {})
        await sink.drain()

        assert sink.failures == 2

    @pytest.mark.asyncio
    async def test_sync_failures_absorbed(self) -> None:
        """A sink that raises before returning an awaitable is also contained."""
        inner = MagicMock()
        inner.report_progress.side_effect = ValueError("not async")
        sink = BestEffortSink(inner, "sim_1")

        sink.report_progress(60)
        await sink.drain()

        assert sink.failures == 1

    @pytest.mark.asyncio
    async def test_no_sink_is_noop(self) -> None:
        sink = BestEffortSink(None, "sim_1")
        sink.report_progress(100)
        sink.cache_trade(_make_trade(), {})
        await sink.drain()
        assert sink.failures == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_pending_writes(self) -> None:
        written: list[int] = []

        class SlowSink:
            async def report_progress(self, run_id: str, percent: int) -> None:
                written.append(percent)

            async def cache_trade(self, run_id: str, trade: SimulationTrade, context: dict) -> None:
                pass

        sink = BestEffortSink(SlowSink(), "sim_1")
        for percent in (0, 20, 60):
            sink.report_progress(percent)
        await sink.drain()

        assert written == [0, 20, 60]
