"""FastAPI application factory for the simulation HTTP API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from tradesim.api import routes
from tradesim.config import AppSettings
from tradesim.simulation.source import CachedTradeSource, DirectoryTradeSource, TradeSource
from tradesim.store.store import SimulationStore


def create_app(
    settings: AppSettings | None = None,
    trade_source: TradeSource | None = None,
    store: SimulationStore | None = None,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. Defaults to AppSettings().
        trade_source: Trade source for runs. Defaults to the cached
                      directory source under settings.data.trades_dir.
        store: Optional SimulationStore for progress and trade lookups.
               main.py's lifespan sets app.state.store when the store is enabled.
        lifespan: Optional async context manager for startup/shutdown.

    Returns:
        Configured FastAPI application with routes registered.
    """
    if settings is None:
        settings = AppSettings()
    if trade_source is None:
        trade_source = CachedTradeSource(
            DirectoryTradeSource(settings.data.trades_dir),
            ttl_seconds=settings.simulation.trade_cache_ttl_seconds,
        )

    app = FastAPI(title="Trade Simulation API", lifespan=lifespan)

    app.state.settings = settings
    app.state.trade_source = trade_source
    app.state.store = store

    # Background (live) simulation tasks keyed by simulation id
    app.state.simulation_tasks: dict = {}

    app.include_router(routes.router, prefix="/api")

    return app
