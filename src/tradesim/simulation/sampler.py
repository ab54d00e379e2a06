"""Down-sampling of long trade windows.

Windows longer than the threshold are partitioned into fixed-length buckets
and each non-empty bucket is represented by its largest trade by USD amount.
"""

import math
from datetime import datetime, timedelta

from tradesim.logging import get_logger
from tradesim.models import HistoricalTrade

logger = get_logger(__name__)


def bucket_count(start: datetime, end: datetime, interval_minutes: int) -> int:
    """Number of buckets of ``interval_minutes`` needed to cover ``[start, end)``."""
    interval = timedelta(minutes=interval_minutes)
    return max(0, math.ceil((end - start) / interval))


def sample_trades(
    trades: list[HistoricalTrade],
    start: datetime,
    end: datetime,
    sampling_interval: int = 5,
    threshold_minutes: int = 60,
) -> list[HistoricalTrade]:
    """Reduce trades to at most one per ``sampling_interval`` bucket.

    Args:
        trades: Trades ordered by timestamp.
        start: Window start (inclusive).
        end: Window end (exclusive).
        sampling_interval: Bucket length in minutes.
        threshold_minutes: Windows of at most this many minutes are returned
            unchanged.

    Returns:
        The input trades when the window is short; otherwise the largest
        trade (by amount_usd, first occurrence wins ties) of every non-empty
        bucket, in bucket order. Trades outside ``[start, end)`` are dropped.
    """
    duration_minutes = (end - start).total_seconds() / 60
    if duration_minutes <= threshold_minutes:
        return list(trades)

    interval = timedelta(minutes=sampling_interval)
    best: dict[int, HistoricalTrade] = {}

    for trade in trades:
        if not (start <= trade.timestamp < end):
            continue
        index = (trade.timestamp - start) // interval
        current = best.get(index)
        if current is None or trade.amount_usd_value > current.amount_usd_value:
            best[index] = trade

    sampled = [best[i] for i in sorted(best)]

    logger.info(
        "trades_sampled",
        original_count=len(trades),
        sampled_count=len(sampled),
        bucket_count=bucket_count(start, end, sampling_interval),
        sampling_interval=sampling_interval,
    )
    return sampled
