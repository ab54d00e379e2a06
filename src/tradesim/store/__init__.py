"""SQLite persistence for simulation progress and emitted trades."""

from tradesim.store.database import SimulationDatabase
from tradesim.store.store import SimulationStore

__all__ = [
    "SimulationDatabase",
    "SimulationStore",
]
