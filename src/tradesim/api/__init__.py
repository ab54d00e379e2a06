"""HTTP API for running simulations (FastAPI)."""

from tradesim.api.app import create_app

__all__ = ["create_app"]
