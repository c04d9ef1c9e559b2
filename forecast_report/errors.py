"""Error taxonomy for the forecast report.

Everything a single symbol can fail with derives from ``ReportError`` so the
batch runner can isolate it without hiding programming errors.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base class for expected, per-symbol report failures."""


class DataUnavailableError(ReportError):
    """Raised when prices cannot be fetched for a symbol and date range."""


class EmptyWindowError(ReportError):
    """Raised when a training or test window holds no observations."""


class ModelFitError(ReportError):
    """Raised when the training data cannot support an ARIMA fit."""


class MetricUndefinedError(ReportError, ZeroDivisionError):
    """Raised when an actual value of zero makes MAPE undefined."""


class PipelineError(ReportError):
    """A failure of one pipeline stage for one symbol."""

    def __init__(self, symbol: str, stage: str, cause: Exception):
        self.symbol = symbol
        self.stage = stage
        self.cause = cause
        super().__init__(f"{symbol}: {stage} failed ({type(cause).__name__}): {cause}")
