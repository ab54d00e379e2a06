"""Best-effort progress and trade-cache sink.

Contract: writes to the sink are fire-and-forget with respect to the
pipeline. Each write is scheduled as its own asyncio task; a failing write is
logged at warning level and dropped. There are no retries; retry policy, if
any, belongs to the sink implementation. drain() waits for outstanding
writes so that no task outlives the run that scheduled it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

from tradesim.logging import get_logger
from tradesim.simulation.models import SimulationTrade

logger = get_logger(__name__)


class ProgressSink(Protocol):
    """External collaborator receiving run progress and emitted trades."""

    async def report_progress(self, run_id: str, percent: int) -> None: ...

    async def cache_trade(
        self, run_id: str, trade: SimulationTrade, context: dict
    ) -> None: ...


class BestEffortSink:
    """Wraps an optional ProgressSink for one run, isolating every failure.

    Args:
        sink: The collaborator, or None to discard all writes.
        run_id: Identifier every write is keyed by.
    """

    def __init__(self, sink: ProgressSink | None, run_id: str) -> None:
        self._sink = sink
        self._run_id = run_id
        self._pending: set[asyncio.Task[None]] = set()
        self.failures = 0

    def report_progress(self, percent: int) -> None:
        """Schedule a progress write."""
        if self._sink is None:
            return
        sink = self._sink
        self._schedule(
            "progress_report_failed",
            lambda: sink.report_progress(self._run_id, percent),
            percent=percent,
        )

    def cache_trade(self, trade: SimulationTrade, context: dict) -> None:
        """Schedule a trade-cache write."""
        if self._sink is None:
            return
        sink = self._sink
        self._schedule(
            "trade_cache_failed",
            lambda: sink.cache_trade(self._run_id, trade, context),
            trade_type=trade.type.value,
            timestamp=trade.timestamp.isoformat(),
        )

    async def drain(self) -> None:
        """Wait for all scheduled writes to finish."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending)
            self._pending.difference_update(pending)

    def _schedule(
        self,
        event: str,
        write: Callable[[], Awaitable[None]],
        **log_context: object,
    ) -> None:
        try:
            awaitable = write()
        except Exception as e:
            self._record_failure(event, e, log_context)
            return
        task = asyncio.create_task(self._guard(event, awaitable, log_context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guard(
        self, event: str, awaitable: Awaitable[None], log_context: dict
    ) -> None:
        try:
            await awaitable
        except Exception as e:
            self._record_failure(event, e, log_context)

    def _record_failure(self, event: str, error: Exception, log_context: dict) -> None:
        self.failures += 1
        logger.warning(
            event,
            run_id=self._run_id,
            error=str(error),
            error_type=type(error).__name__,
            **log_context,
        )
