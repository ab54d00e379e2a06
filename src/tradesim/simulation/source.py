"""Historical trade source collaborators.

The engine depends only on the TradeSource protocol. Concrete sources here
cover in-memory lists, a directory of JSON files, and a TTL cache wrapper
that can sit in front of any other source.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Protocol

from tradesim.logging import get_logger
from tradesim.models import HistoricalTrade

logger = get_logger(__name__)


class TradeSource(Protocol):
    """External collaborator supplying historical trades."""

    async def fetch_trades(
        self, market_id: str, start: datetime, end: datetime
    ) -> list[HistoricalTrade]:
        """Return trades for ``market_id`` within ``[start, end]``, oldest first."""
        ...


def _within(
    trades: list[HistoricalTrade], start: datetime, end: datetime
) -> list[HistoricalTrade]:
    selected = [t for t in trades if start <= t.timestamp <= end]
    selected.sort(key=lambda t: t.timestamp)
    return selected


class StaticTradeSource:
    """Serves a fixed list of trades, filtered to the requested window.

    Args:
        trades: Trades for every market this source answers for.
    """

    def __init__(self, trades: list[HistoricalTrade]) -> None:
        self._trades = list(trades)

    async def fetch_trades(
        self, market_id: str, start: datetime, end: datetime
    ) -> list[HistoricalTrade]:
        return _within(self._trades, start, end)


class DirectoryTradeSource:
    """Reads ``<trades_dir>/<market_id>.json`` files of wire-format trades.

    Each file holds a JSON list of trade dicts. Entries that cannot be
    parsed are skipped with a warning. A missing file yields no trades.

    Args:
        trades_dir: Directory holding one JSON file per market.
    """

    def __init__(self, trades_dir: str | Path) -> None:
        self._trades_dir = Path(trades_dir)

    def _path_for(self, market_id: str) -> Path | None:
        if not market_id or "/" in market_id or "\\" in market_id or market_id.startswith("."):
            return None
        return self._trades_dir / f"{market_id}.json"

    async def fetch_trades(
        self, market_id: str, start: datetime, end: datetime
    ) -> list[HistoricalTrade]:
        path = self._path_for(market_id)
        if path is None:
            logger.warning("invalid_market_id", market_id=market_id)
            return []
        if not path.exists():
            logger.info("trade_file_missing", market_id=market_id, path=str(path))
            return []

        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        trades: list[HistoricalTrade] = []
        skipped = 0
        for entry in json.loads(raw):
            try:
                trades.append(HistoricalTrade.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                skipped += 1
                logger.debug("trade_entry_skipped", market_id=market_id, error=str(e))

        if skipped:
            logger.warning(
                "trade_entries_skipped",
                market_id=market_id,
                skipped=skipped,
                loaded=len(trades),
            )
        return _within(trades, start, end)


class CachedTradeSource:
    """TTL cache in front of another TradeSource.

    Results are keyed by (market_id, start, end). Empty results are never
    cached so that a later fetch can still find data.

    Args:
        source: The source to delegate to on a miss.
        ttl_seconds: Lifetime of a cached result.
        time_fn: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        source: TradeSource,
        ttl_seconds: float = 300.0,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._ttl = ttl_seconds
        self._time_fn = time_fn
        self._cache: dict[tuple[str, datetime, datetime], tuple[float, list[HistoricalTrade]]] = {}

    async def fetch_trades(
        self, market_id: str, start: datetime, end: datetime
    ) -> list[HistoricalTrade]:
        key = (market_id, start, end)
        now = self._time_fn()

        cached = self._cache.get(key)
        if cached is not None:
            expires_at, trades = cached
            if now < expires_at:
                logger.debug("trade_cache_hit", market_id=market_id, trade_count=len(trades))
                return list(trades)
            del self._cache[key]

        trades = await self._source.fetch_trades(market_id, start, end)
        if trades:
            self._cache[key] = (now + self._ttl, list(trades))
            logger.info("trades_cached", market_id=market_id, trade_count=len(trades))
        return trades

    def clear(self) -> None:
        """Drop every cached result."""
        self._cache.clear()
