"""High-level entry points for running simulations.

Provides run_simulation() for a single run against any trade source and
run_simulation_cli() for convenient CLI usage with date strings, wiring the
file-backed trade source and the SQLite store from settings.
"""

import time
from datetime import datetime
from decimal import Decimal

from tradesim.config import AppSettings
from tradesim.logging import get_logger
from tradesim.models import parse_timestamp
from tradesim.simulation.engine import SimulationEngine
from tradesim.simulation.models import SimulationParams, SimulationResult
from tradesim.simulation.sink import ProgressSink
from tradesim.simulation.source import CachedTradeSource, DirectoryTradeSource, TradeSource
from tradesim.store.database import SimulationDatabase
from tradesim.store.store import SimulationStore
from tradesim.strategy.models import StrategyName

logger = get_logger(__name__)


async def run_simulation(
    params: SimulationParams,
    trade_source: TradeSource,
    settings: AppSettings | None = None,
    store: ProgressSink | None = None,
    run_id: str | None = None,
) -> SimulationResult:
    """Run a single simulation with the given parameters.

    Args:
        params: The run request.
        trade_source: Collaborator supplying historical trades.
        settings: Application settings. Defaults to AppSettings().
        store: Optional progress sink (e.g. SimulationStore).
        run_id: Identifier for the run. Generated when omitted.

    Returns:
        SimulationResult with trades, metrics and market context.

    Raises:
        DataUnavailableError: If no trades exist for the window.
    """
    if settings is None:
        settings = AppSettings()

    start_time = time.monotonic()
    engine = SimulationEngine(
        params=params,
        trade_source=trade_source,
        sink=store,
        settings=settings,
        run_id=run_id,
    )
    result = await engine.run()

    logger.info(
        "run_simulation_complete",
        simulation_id=result.simulation_id,
        pool_id=params.pool_id,
        total_trades=result.metrics.total_trades,
        total_profit=str(result.metrics.total_profit),
        elapsed_seconds=round(time.monotonic() - start_time, 2),
    )
    return result


def _parse_cli_date(value: str) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid date format. Expected ISO-8601 or Unix seconds. Error: {e}"
        ) from e


async def run_simulation_cli(
    pool_id: str,
    start_date: str,
    end_date: str,
    strategy: str | None = None,
    trade_size: Decimal | None = None,
    sampling_interval: int | None = None,
    window_extension_factor: Decimal = Decimal("1"),
    settings: AppSettings | None = None,
) -> SimulationResult:
    """Convenience entry point for CLI usage with date strings.

    Reads trades from ``settings.data.trades_dir`` and, when the store is
    enabled, records progress and emitted trades to ``settings.store.db_path``.

    Args:
        pool_id: Market identifier (file name under the trades directory).
        start_date: Window start as ISO-8601 or Unix seconds.
        end_date: Window end as ISO-8601 or Unix seconds.
        strategy: Strategy name. Defaults to the configured strategy.
        trade_size: Base trade size. Defaults to the configured size.
        sampling_interval: Sampling bucket width in minutes.
        window_extension_factor: Factor (> 1) to extend the window backwards.
        settings: Application settings. Defaults to AppSettings().

    Returns:
        SimulationResult for the run.

    Raises:
        ValueError: If date strings or the strategy name are invalid.
        DataUnavailableError: If no trades exist for the window.
    """
    if settings is None:
        settings = AppSettings()

    strategy_config = settings.strategy.to_strategy_config()
    if strategy is not None:
        try:
            strategy_config = strategy_config.with_overrides(strategy=StrategyName(strategy))
        except ValueError as e:
            raise ValueError(f"Unknown strategy: {strategy}") from e

    params = SimulationParams(
        start_date=_parse_cli_date(start_date),
        end_date=_parse_cli_date(end_date),
        pool_id=pool_id,
        trade_size=trade_size,
        window_extension_factor=window_extension_factor,
        strategy_config=strategy_config,
        sampling_interval=sampling_interval,
    )

    source = CachedTradeSource(
        DirectoryTradeSource(settings.data.trades_dir),
        ttl_seconds=settings.simulation.trade_cache_ttl_seconds,
    )

    if not settings.store.enabled:
        result = await run_simulation(params, source, settings=settings)
    else:
        async with SimulationDatabase(settings.store.db_path) as database:
            result = await run_simulation(
                params, source, settings=settings, store=SimulationStore(database)
            )

    m = result.metrics
    logger.info(
        "simulation_cli_summary",
        pool_id=pool_id,
        strategy=strategy_config.strategy.value,
        date_range=f"{start_date} to {end_date}",
        total_trades=m.total_trades,
        successful_trades=m.successful_trades,
        win_rate=str(m.win_rate),
        total_profit=str(m.total_profit),
        sharpe_ratio=str(m.sharpe_ratio),
        max_drawdown=str(m.max_drawdown),
        benchmark_return=str(m.benchmark_return),
    )
    return result
