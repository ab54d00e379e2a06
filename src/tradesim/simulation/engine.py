"""Simulation engine: replays historical trades through a strategy.

Runs one simulation as a sequential pipeline:

    INIT -> FETCH_TRADES -> SAMPLE -> BUILD_CONTEXT -> DECIDE_LOOP -> AGGREGATE -> DONE

An empty trade fetch moves the run to FAILED and raises DataUnavailableError;
nothing after FETCH_TRADES can fail the run. Progress checkpoints and emitted
trades go to a BestEffortSink, so collaborator write failures are logged and
never block or abort the pipeline.

Decisions never look ahead: the decision for a trade sees only indicator
values computable from prices up to and including that trade.

CRITICAL: All monetary values use Decimal. Never use float for prices,
amounts, or profits.
"""

import time
import uuid
from decimal import Decimal

import structlog

from tradesim.analytics.metrics import compute_simulation_metrics
from tradesim.config import AppSettings
from tradesim.exceptions import DataUnavailableError
from tradesim.indicators.models import TechnicalIndicators
from tradesim.logging import get_logger
from tradesim.models import HistoricalTrade, TradeType
from tradesim.simulation.context import build_market_context, extract_prices, has_valid_price
from tradesim.simulation.models import (
    MarketContext,
    RunStage,
    SimulationParams,
    SimulationResult,
    SimulationTrade,
)
from tradesim.simulation.sampler import sample_trades
from tradesim.simulation.sink import BestEffortSink, ProgressSink
from tradesim.simulation.source import TradeSource
from tradesim.strategy.decision import decide
from tradesim.strategy.models import TradeDecision, TradingStrategyConfig

logger = get_logger(__name__)

#: Progress checkpoints reported to the sink.
PROGRESS_START = 0
PROGRESS_FETCHED = 20
PROGRESS_CONTEXT = 60
PROGRESS_DECIDED = 80
PROGRESS_AGGREGATING = 90
PROGRESS_DONE = 100

_HUNDRED = Decimal("100")


def new_run_id() -> str:
    """Return a fresh simulation run identifier."""
    return f"sim_{uuid.uuid4().hex[:12]}"


class SimulationEngine:
    """Single-run simulation pipeline.

    An engine instance owns all of its working state and is used for one
    run. Concurrent runs use separate instances; the only thing they may
    share is the sink collaborator.

    Args:
        params: The run request.
        trade_source: Collaborator supplying historical trades.
        sink: Optional progress/trade-cache collaborator.
        settings: Application settings. Defaults to AppSettings().
        run_id: Identifier for the run. Generated when omitted.
    """

    def __init__(
        self,
        params: SimulationParams,
        trade_source: TradeSource,
        sink: ProgressSink | None = None,
        settings: AppSettings | None = None,
        run_id: str | None = None,
    ) -> None:
        if settings is None:
            settings = AppSettings()

        self._params = params
        self._trade_source = trade_source
        self._settings = settings
        self.run_id = run_id or new_run_id()
        self._sink = BestEffortSink(sink, self.run_id)

        self._strategy_config: TradingStrategyConfig = (
            params.strategy_config or settings.strategy.to_strategy_config()
        )
        self._trade_size: Decimal = (
            params.trade_size
            if params.trade_size is not None
            else settings.simulation.default_trade_size
        )

        self._stage = RunStage.INIT
        self._progress = 0
        self._result: SimulationResult | None = None

    @property
    def stage(self) -> RunStage:
        return self._stage

    @property
    def progress(self) -> int:
        return self._progress

    async def run(self) -> SimulationResult:
        """Execute the run and return its result.

        Returns:
            SimulationResult with progress 100.

        Raises:
            DataUnavailableError: If the trade source returned no trades.
        """
        start_time = time.monotonic()
        with structlog.contextvars.bound_contextvars(simulation_id=self.run_id):
            try:
                return await self._run(start_time)
            finally:
                await self._sink.drain()

    async def _run(self, start_time: float) -> SimulationResult:
        params = self._params
        logger.info(
            "simulation_starting",
            pool_id=params.pool_id,
            strategy=self._strategy_config.strategy.value,
            simulation_type="live" if params.simulate_live else "historical",
            start=params.start_date.isoformat(),
            end=params.end_date.isoformat(),
        )
        self._set_progress(PROGRESS_START)

        # 1. Fetch
        trades = await self._fetch_trades()
        self._set_progress(PROGRESS_FETCHED)

        # 2. Sample
        self._stage = RunStage.SAMPLE
        sampled = sample_trades(
            trades,
            start=params.fetch_start,
            end=params.end_date,
            sampling_interval=(
                params.sampling_interval
                or self._settings.simulation.default_sampling_interval
            ),
            threshold_minutes=self._settings.simulation.sampling_threshold_minutes,
        )

        # 3. Market context
        self._stage = RunStage.BUILD_CONTEXT
        market_context = build_market_context(sampled, self._settings.indicators)
        self._set_progress(PROGRESS_CONTEXT)

        # 4. Decide
        self._stage = RunStage.DECIDE_LOOP
        simulated = self._decide_loop(sampled, market_context)
        self._set_progress(PROGRESS_DECIDED)

        # 5. Aggregate
        self._stage = RunStage.AGGREGATE
        self._result = self._aggregate(sampled, simulated, market_context)
        self._set_progress(PROGRESS_AGGREGATING)

        self._stage = RunStage.DONE
        self._result.is_running = False
        self._set_progress(PROGRESS_DONE)

        metrics = self._result.metrics
        logger.info(
            "simulation_complete",
            trades_processed=len(sampled),
            simulated_trades=metrics.total_trades,
            win_rate=str(metrics.win_rate),
            total_profit=str(metrics.total_profit),
            elapsed_seconds=round(time.monotonic() - start_time, 3),
        )
        return self._result

    async def _fetch_trades(self) -> list[HistoricalTrade]:
        """Fetch trades for the (possibly extended) window.

        Raises:
            DataUnavailableError: If no trades were returned.
        """
        self._stage = RunStage.FETCH_TRADES
        params = self._params
        try:
            trades = await self._trade_source.fetch_trades(
                params.pool_id, params.fetch_start, params.end_date
            )
        except Exception as e:
            self._stage = RunStage.FAILED
            logger.error("trade_fetch_failed", pool_id=params.pool_id, error=str(e))
            raise

        if not trades:
            self._stage = RunStage.FAILED
            logger.warning(
                "no_historical_trades",
                pool_id=params.pool_id,
                start=params.fetch_start.isoformat(),
                end=params.end_date.isoformat(),
            )
            raise DataUnavailableError(params.pool_id, params.fetch_start, params.end_date)

        logger.info(
            "historical_trades_fetched",
            trade_count=len(trades),
            extended_window=params.uses_extended_window,
        )
        return trades

    def _decide_loop(
        self, trades: list[HistoricalTrade], market_context: MarketContext
    ) -> list[SimulationTrade]:
        """Run the decision function over every trade in order."""
        indicators = market_context.technical_indicators
        total_prices = len(extract_prices(trades))
        prices_seen = 0

        simulated: list[SimulationTrade] = []
        previous: SimulationTrade | None = None
        cache_context = {
            "pool_id": self._params.pool_id,
            "strategy": self._strategy_config.strategy.value,
        }

        for trade in trades:
            if not has_valid_price(trade):
                logger.debug("trade_skipped_invalid_price", timestamp=trade.timestamp.isoformat())
                continue
            prices_seen += 1

            visible: TechnicalIndicators = indicators.as_of(total_prices - prices_seen)
            decision = decide(trade, visible, self._strategy_config, previous)
            if not decision.should_trade or decision.type is None:
                continue

            simulated_trade = self._materialize(trade, decision, previous)
            simulated.append(simulated_trade)
            previous = simulated_trade
            self._sink.cache_trade(simulated_trade, cache_context)

        logger.info(
            "decision_loop_complete",
            trades_replayed=prices_seen,
            simulated_trades=len(simulated),
        )
        return simulated

    def _materialize(
        self,
        trade: HistoricalTrade,
        decision: TradeDecision,
        previous: SimulationTrade | None,
    ) -> SimulationTrade:
        """Turn a trade decision into a SimulationTrade with profit and exits."""
        assert decision.type is not None
        config = self._strategy_config
        amount = self._trade_size * config.trade_size_scaling

        profit = None
        if previous is not None:
            profit = previous.type.sign * amount * (trade.price - previous.price)

        take_profit = config.take_profit / _HUNDRED
        stop_loss = config.stop_loss / _HUNDRED
        if decision.type is TradeType.BUY:
            target_price = trade.price * (1 + take_profit)
            stop_loss_price = trade.price * (1 - stop_loss)
        else:
            target_price = trade.price * (1 - take_profit)
            stop_loss_price = trade.price * (1 + stop_loss)

        return SimulationTrade(
            timestamp=trade.timestamp,
            type=decision.type,
            price=trade.price,
            amount=amount,
            confidence=decision.confidence,
            reasoning=decision.reasoning,
            profit=profit,
            target_price=target_price,
            stop_loss_price=stop_loss_price,
        )

    def _aggregate(
        self,
        trades: list[HistoricalTrade],
        simulated: list[SimulationTrade],
        market_context: MarketContext,
    ) -> SimulationResult:
        prices = extract_prices(trades)
        first_price = prices[0] if prices else Decimal("0")
        last_price = prices[-1] if prices else Decimal("0")

        metrics = compute_simulation_metrics(
            simulated, first_price, last_price, self._settings.costs
        )

        return SimulationResult(
            simulation_id=self.run_id,
            trades=simulated,
            linked_historical_trades=trades,
            metrics=metrics,
            market_context=market_context,
            simulation_duration=(
                self._params.simulation_duration
                or self._settings.simulation.default_simulation_duration
            ),
            is_live_simulation=self._params.simulate_live,
            used_extended_window=self._params.uses_extended_window,
            progress=self._progress,
            is_running=True,
        )

    def _set_progress(self, percent: int) -> None:
        """Advance progress (never backwards) and report it to the sink."""
        if percent < self._progress:
            return
        self._progress = percent
        if self._result is not None:
            self._result.progress = percent
        self._sink.report_progress(percent)
