"""Shared test fixtures for the trade simulation engine."""

from pathlib import Path

import pytest

from tradesim.config import AppSettings, DataSettings, StoreSettings


@pytest.fixture
def app_settings(tmp_path: Path) -> AppSettings:
    """Return AppSettings with test defaults (store and trades under tmp_path)."""
    return AppSettings(
        log_level="DEBUG",
        store=StoreSettings(enabled=True, db_path=str(tmp_path / "simulations.db")),
        data=DataSettings(trades_dir=str(tmp_path / "trades")),
    )
