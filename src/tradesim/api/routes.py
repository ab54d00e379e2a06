"""JSON API endpoints for running simulations and inspecting their progress."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tradesim.exceptions import DataUnavailableError, InvalidParamsError
from tradesim.logging import get_logger
from tradesim.simulation.engine import new_run_id
from tradesim.simulation.models import SimulationParams
from tradesim.simulation.runner import run_simulation
from tradesim.strategy.models import STRATEGY_DESCRIPTIONS

log = get_logger(__name__)

router = APIRouter()


async def _run_simulation_task(
    simulation_id: str, app_state: Any, params: SimulationParams
) -> None:
    """Run a live simulation as a background task and store the result.

    Args:
        simulation_id: Run id shared by the task entry and the store.
        app_state: FastAPI app.state object for storing results.
        params: The run request.
    """
    entry = app_state.simulation_tasks[simulation_id]
    try:
        result = await run_simulation(
            params,
            app_state.trade_source,
            settings=app_state.settings,
            store=app_state.store,
            run_id=simulation_id,
        )
        entry["result"] = result.to_dict()
        entry["status"] = "complete"
    except DataUnavailableError as e:
        log.warning("simulation_task_no_data", simulation_id=simulation_id, error=str(e))
        entry["result"] = {"error": str(e)}
        entry["status"] = "error"
    except Exception as e:
        log.error("simulation_task_error", simulation_id=simulation_id, error=str(e))
        entry["result"] = {"error": str(e)}
        entry["status"] = "error"


@router.post("/simulation")
async def run_simulation_endpoint(request: Request) -> JSONResponse:
    """Run a simulation.

    Historical runs execute inline and return the full result. Runs with
    ``simulate_live`` start as a background task; poll
    ``/simulation/{id}`` for the outcome.
    """
    try:
        body = await request.json()
    except Exception:
        return JSONResponse(content={"error": "Invalid JSON body"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse(content={"error": "Invalid JSON body"}, status_code=400)

    try:
        params = SimulationParams.from_dict(body)
    except InvalidParamsError as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)

    app_state = request.app.state
    simulation_id = new_run_id()

    if params.simulate_live:
        app_state.simulation_tasks[simulation_id] = {
            "task": None,
            "status": "running",
            "result": None,
        }
        task = asyncio.create_task(
            _run_simulation_task(simulation_id, app_state, params)
        )
        app_state.simulation_tasks[simulation_id]["task"] = task
        return JSONResponse(
            content={"simulation_id": simulation_id, "status": "running"}
        )

    try:
        result = await run_simulation(
            params,
            app_state.trade_source,
            settings=app_state.settings,
            store=app_state.store,
            run_id=simulation_id,
        )
    except DataUnavailableError as e:
        return JSONResponse(content={"error": str(e)}, status_code=404)

    return JSONResponse(content=result.to_dict())


@router.get("/simulation/{simulation_id}")
async def get_simulation_status(simulation_id: str, request: Request) -> JSONResponse:
    """Status and (when finished) result of a background simulation."""
    entry = request.app.state.simulation_tasks.get(simulation_id)
    if entry is None:
        return JSONResponse(content={"error": "Simulation not found"}, status_code=404)

    return JSONResponse(content={
        "simulation_id": simulation_id,
        "status": entry["status"],
        "result": entry["result"],
    })


@router.get("/simulation/{simulation_id}/progress")
async def get_simulation_progress(simulation_id: str, request: Request) -> JSONResponse:
    """Latest recorded progress percentage for a run."""
    store = request.app.state.store
    if store is None:
        return JSONResponse(content={"error": "Simulation store not configured"}, status_code=501)

    progress = await store.get_progress(simulation_id)
    if progress is None:
        return JSONResponse(content={"error": "Simulation not found"}, status_code=404)

    return JSONResponse(content={"simulation_id": simulation_id, "progress": progress})


@router.get("/simulation/{simulation_id}/trades")
async def get_simulation_trades(simulation_id: str, request: Request) -> JSONResponse:
    """Trades a run has emitted so far, in emission order."""
    store = request.app.state.store
    if store is None:
        return JSONResponse(content={"error": "Simulation store not configured"}, status_code=501)

    trades = await store.get_cached_trades(simulation_id)
    return JSONResponse(content={"simulation_id": simulation_id, "trades": trades})


@router.get("/strategies")
async def get_strategies() -> JSONResponse:
    """Available strategies with descriptions."""
    return JSONResponse(content=[
        {"name": name.value, "description": description}
        for name, description in STRATEGY_DESCRIPTIONS.items()
    ])
