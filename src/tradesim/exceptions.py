"""Custom exceptions for the trade simulation engine.

Only DataUnavailableError crosses the engine boundary. Numeric degenerate
cases (zero variance, zero losses, short series) are not errors and never
raise; every formula has a defined fallback value instead.
"""


class SimulationError(Exception):
    """Base exception for all simulation errors."""


class DataUnavailableError(SimulationError):
    """Raised when no historical trades exist for the requested window."""

    def __init__(self, market_id: str, start: object, end: object) -> None:
        self.market_id = market_id
        self.start = start
        self.end = end
        super().__init__(
            f"No historical trades found for {market_id} between {start} and {end}"
        )


class InvalidParamsError(SimulationError, ValueError):
    """Raised when a simulation request or strategy config is malformed."""


class SinkWriteError(SimulationError):
    """Raised when a progress or trade-cache write fails.

    Always absorbed by BestEffortSink; never aborts a run.
    """
