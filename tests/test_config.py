"""Tests for environment-driven configuration."""

from decimal import Decimal

import pytest

from tradesim.config import AppSettings, CostSettings, SimulationSettings, StrategySettings
from tradesim.strategy.models import StrategyName


class TestSettings:
    def test_defaults(self) -> None:
        settings = AppSettings()
        assert settings.simulation.sampling_threshold_minutes == 60
        assert settings.simulation.default_sampling_interval == 5
        assert settings.simulation.default_trade_size == Decimal("0.1")
        assert settings.indicators.rsi_period == 14
        assert settings.indicators.bollinger_std_dev == Decimal("2")
        assert settings.costs.fee_pct == Decimal("0.003")

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SIMULATION_DEFAULT_TRADE_SIZE", "0.25")
        monkeypatch.setenv("COSTS_FEE_PCT", "0.0005")
        assert SimulationSettings().default_trade_size == Decimal("0.25")
        assert CostSettings().fee_pct == Decimal("0.0005")

    def test_strategy_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRATEGY_STRATEGY", "volatilityBreakout")
        monkeypatch.setenv("STRATEGY_TAKE_PROFIT", "1.5")
        config = StrategySettings().to_strategy_config()
        assert config.strategy is StrategyName.VOLATILITY_BREAKOUT
        assert config.take_profit == Decimal("1.5")
