"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from tradesim.strategy.models import StrategyName, TradingStrategyConfig


class IndicatorSettings(BaseSettings):
    """Technical indicator periods used to build the market context."""

    model_config = SettingsConfigDict(env_prefix="INDICATOR_")

    sma_period: int = 20
    ema_period: int = 20
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std_dev: Decimal = Decimal("2")


class SimulationSettings(BaseSettings):
    """Simulation pipeline defaults.

    Controls trade sampling for long windows, the default trade size when a
    request carries none, and the lifetime of cached trade fetches.
    All fields configurable via SIMULATION_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SIMULATION_")

    sampling_threshold_minutes: int = 60  # windows at or below this are not sampled
    default_sampling_interval: int = 5  # minutes per bucket
    default_simulation_duration: int = 15  # minutes, echoed in the result
    default_trade_size: Decimal = Decimal("0.1")
    trade_cache_ttl_seconds: float = 300.0


class StrategySettings(BaseSettings):
    """Default strategy configuration for requests that do not specify one."""

    model_config = SettingsConfigDict(env_prefix="STRATEGY_")

    strategy: StrategyName = StrategyName.MOMENTUM
    stop_loss: Decimal = Decimal("0.2")  # percent
    take_profit: Decimal = Decimal("0.5")  # percent
    trade_size_scaling: Decimal = Decimal("1.0")

    def to_strategy_config(self) -> TradingStrategyConfig:
        """Construct a TradingStrategyConfig from these defaults."""
        return TradingStrategyConfig(
            strategy=self.strategy,
            stop_loss=self.stop_loss,
            take_profit=self.take_profit,
            trade_size_scaling=self.trade_size_scaling,
        )


class CostSettings(BaseSettings):
    """Transaction cost model for the metrics calculator."""

    model_config = SettingsConfigDict(env_prefix="COSTS_")

    fee_pct: Decimal = Decimal("0.003")  # 0.3% pool fee tier
    base_slippage: Decimal = Decimal("0.001")  # 0.1%
    slippage_log_factor: Decimal = Decimal("0.0001")


class StoreSettings(BaseSettings):
    """SQLite progress and trade cache store."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    enabled: bool = True
    db_path: str = "data/simulations.db"


class DataSettings(BaseSettings):
    """File-backed historical trade source."""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    trades_dir: str = "data/trades"


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    indicators: IndicatorSettings = IndicatorSettings()
    simulation: SimulationSettings = SimulationSettings()
    strategy: StrategySettings = StrategySettings()
    costs: CostSettings = CostSettings()
    store: StoreSettings = StoreSettings()
    data: DataSettings = DataSettings()
    api: ApiSettings = ApiSettings()
