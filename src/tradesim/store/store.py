"""SQLite-backed progress sink and simulated trade cache.

SimulationStore implements the ProgressSink protocol the engine writes to,
plus the read methods the HTTP API uses to report on a run. All SQL is
isolated behind this interface.

CRITICAL: Decimal values are stored inside the JSON payload as strings and
never pass through float.
"""

import json
import time

import aiosqlite

from tradesim.exceptions import SinkWriteError
from tradesim.logging import get_logger
from tradesim.simulation.models import SimulationTrade
from tradesim.store.database import SimulationDatabase

logger = get_logger(__name__)


class SimulationStore:
    """Async SQLite store for run progress and emitted trades.

    Write failures surface as SinkWriteError; the engine's BestEffortSink
    logs and drops them.

    Usage:
        async with SimulationDatabase("data/simulations.db") as database:
            store = SimulationStore(database)
            result = await SimulationEngine(params, source, sink=store).run()
    """

    def __init__(self, database: SimulationDatabase) -> None:
        self._database = database

    # ──────────────────────────────────────────────
    # Write methods (ProgressSink)
    # ──────────────────────────────────────────────

    async def report_progress(self, run_id: str, percent: int) -> None:
        """Record a progress checkpoint for a run.

        Raises:
            SinkWriteError: If the database write fails.
        """
        try:
            await self._database.db.execute(
                "INSERT INTO simulation_progress (run_id, percent, recorded_at) "
                "VALUES (?, ?, ?)",
                (run_id, percent, int(time.time() * 1000)),
            )
            await self._database.db.commit()
        except (aiosqlite.Error, RuntimeError) as e:
            raise SinkWriteError(f"progress write failed for {run_id}: {e}") from e

        logger.debug("progress_recorded", run_id=run_id, percent=percent)

    async def cache_trade(
        self, run_id: str, trade: SimulationTrade, context: dict
    ) -> None:
        """Append an emitted trade to the run's cache.

        Raises:
            SinkWriteError: If the database write fails.
        """
        try:
            await self._database.db.execute(
                "INSERT INTO simulated_trades "
                "(run_id, timestamp, type, payload, context, cached_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    run_id,
                    trade.timestamp.isoformat(),
                    trade.type.value,
                    json.dumps(trade.to_dict()),
                    json.dumps(context),
                    int(time.time() * 1000),
                ),
            )
            await self._database.db.commit()
        except (aiosqlite.Error, RuntimeError) as e:
            raise SinkWriteError(f"trade cache write failed for {run_id}: {e}") from e

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def get_progress(self, run_id: str) -> int | None:
        """Return the highest progress recorded for a run, or None if unknown."""
        cursor = await self._database.db.execute(
            "SELECT MAX(percent) FROM simulation_progress WHERE run_id = ?",
            (run_id,),
        )
        row = await cursor.fetchone()
        if row is None or row[0] is None:
            return None
        return int(row[0])

    async def get_cached_trades(self, run_id: str) -> list[dict]:
        """Return the cached trades for a run in emission order.

        Each entry is ``{"trade": <SimulationTrade dict>, "context": {...}}``.
        """
        cursor = await self._database.db.execute(
            "SELECT payload, context FROM simulated_trades "
            "WHERE run_id = ? ORDER BY id ASC",
            (run_id,),
        )
        rows = await cursor.fetchall()
        return [
            {"trade": json.loads(payload), "context": json.loads(context)}
            for payload, context in rows
        ]
