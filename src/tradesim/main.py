"""Entry point for the trade simulation engine.

Two subcommands:

    tradesim run --pool-id POOL --start 2024-01-01T00:00:00Z --end 2024-01-01T06:00:00Z
        Run one simulation over the trades directory and print the result JSON.

    tradesim serve
        Start the HTTP API under uvicorn. The SQLite store is opened in the
        FastAPI lifespan when STORE_ENABLED is true.
"""

import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from decimal import Decimal

import uvicorn
from fastapi import FastAPI

from tradesim.api.app import create_app
from tradesim.config import AppSettings
from tradesim.exceptions import DataUnavailableError
from tradesim.logging import get_logger, setup_logging
from tradesim.simulation.runner import run_simulation_cli
from tradesim.store.database import SimulationDatabase
from tradesim.store.store import SimulationStore
from tradesim.strategy.models import StrategyName


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the simulation store for the lifetime of the API server."""
    logger = get_logger("tradesim.main")
    settings: AppSettings = app.state.settings

    database: SimulationDatabase | None = None
    if settings.store.enabled:
        database = SimulationDatabase(settings.store.db_path)
        await database.connect()
        app.state.store = SimulationStore(database)

    logger.info("lifespan_started", store_enabled=settings.store.enabled)

    yield

    # Cancel unfinished background simulations before closing the store
    tasks = [
        entry["task"]
        for entry in app.state.simulation_tasks.values()
        if entry["task"] is not None and not entry["task"].done()
    ]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    if database is not None:
        await database.close()

    logger.info("tradesim_api_stopped")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tradesim", description="Trade simulation engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one simulation and print the result")
    run_parser.add_argument("--pool-id", required=True)
    run_parser.add_argument("--start", required=True, help="ISO-8601 or Unix seconds")
    run_parser.add_argument("--end", required=True, help="ISO-8601 or Unix seconds")
    run_parser.add_argument(
        "--strategy",
        default=None,
        choices=[name.value for name in StrategyName],
    )
    run_parser.add_argument("--trade-size", type=Decimal, default=None)
    run_parser.add_argument("--sampling-interval", type=int, default=None)
    run_parser.add_argument("--window-extension-factor", type=Decimal, default=Decimal("1"))

    subparsers.add_parser("serve", help="Start the HTTP API")
    return parser


async def _run_command(args: argparse.Namespace, settings: AppSettings) -> int:
    logger = get_logger("tradesim.main")
    try:
        result = await run_simulation_cli(
            pool_id=args.pool_id,
            start_date=args.start,
            end_date=args.end,
            strategy=args.strategy,
            trade_size=args.trade_size,
            sampling_interval=args.sampling_interval,
            window_extension_factor=args.window_extension_factor,
            settings=settings,
        )
    except DataUnavailableError as e:
        logger.error("simulation_data_unavailable", error=str(e))
        return 2
    except ValueError as e:
        logger.error("invalid_arguments", error=str(e))
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


async def _serve_command(settings: AppSettings) -> int:
    logger = get_logger("tradesim.main")
    app = create_app(settings, lifespan=lifespan)

    logger.info("starting_api", host=settings.api.host, port=settings.api.port)

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()
    return 0


async def run(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch to the selected subcommand."""
    args = _build_parser().parse_args(argv)

    settings = AppSettings()
    setup_logging(settings.log_level)

    if args.command == "run":
        return await _run_command(args, settings)
    return await _serve_command(settings)


def main() -> None:
    """Synchronous entry point."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
