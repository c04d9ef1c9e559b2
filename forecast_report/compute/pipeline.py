"""Per-symbol forecast pipeline and the batch runner over many symbols.

Each symbol is processed independently into either a ``SymbolAnalysis`` or a
``SymbolFailure``; one symbol failing never stops the others.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import Iterable, Iterator, Optional, Union

import pandas as pd

from forecast_report.compute.forecast_arima import (
    FittedModel,
    fit_auto_arima,
    forecast_arima,
    in_sample_fitted,
)
from forecast_report.compute.metrics import compute_accuracy
from forecast_report.compute.significance import coefficient_table
from forecast_report.compute.windowing import split_series
from forecast_report.data.prices import PriceFetcher, close_series, fetch_prices
from forecast_report.errors import ModelFitError, PipelineError, ReportError
from forecast_report.models.schemas import (
    AccuracyMetrics,
    AccuracyRecord,
    CoefficientRow,
    ForecastResult,
    ReportConfig,
    SymbolFailure,
)

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ["Symbol", "RMSE", "MAE", "MAPE"]
FAILURE_COLUMNS = ["Symbol", "Stage", "Error", "Message"]


@dataclass
class SymbolAnalysis:
    symbol: str
    prices: pd.Series
    train: pd.Series
    test: pd.Series
    fitted: FittedModel
    forecast: ForecastResult
    test_accuracy: AccuracyMetrics
    train_accuracy: AccuracyMetrics
    coefficients: list[CoefficientRow] = field(default_factory=list)

    @property
    def record(self) -> AccuracyRecord:
        return AccuracyRecord(symbol=self.symbol, **self.test_accuracy.model_dump())


@contextmanager
def _stage(symbol: str, stage: str) -> Iterator[None]:
    try:
        yield
    except PipelineError:
        raise
    except ReportError as exc:
        raise PipelineError(symbol, stage, exc) from exc


def analyze_symbol(
    symbol: str,
    config: ReportConfig,
    fetch: Optional[PriceFetcher] = None,
) -> SymbolAnalysis:
    """Fetch, split, fit, forecast and score one symbol.

    Raises:
        PipelineError: naming the symbol and the stage that failed
    """
    if fetch is None:
        fetch = partial(fetch_prices, provider=config.provider)

    with _stage(symbol, "fetch"):
        prices = close_series(fetch(symbol, config.history_start, config.test_end), symbol)

    with _stage(symbol, "window"):
        train, test = split_series(prices, config.training_end, config.test_start, config.test_end)
    logger.info(
        "%s: %d training and %d test observations", symbol, len(train), len(test)
    )

    with _stage(symbol, "fit"):
        fitted = fit_auto_arima(
            train,
            max_p=config.max_p,
            max_d=config.max_d,
            max_q=config.max_q,
            criterion=config.criterion,
            min_observations=config.min_train_observations,
        )
        try:
            coefficients = coefficient_table(fitted)
        except ValueError as exc:
            raise ModelFitError(f"Coefficient standard errors unavailable: {exc}") from exc

    # Trading days between the windows are forecast but not scored
    gap = int(((prices.index > train.index[-1]) & (prices.index < test.index[0])).sum())

    with _stage(symbol, "forecast"):
        forecast = forecast_arima(
            fitted,
            horizon=len(test),
            index=test.index,
            levels=config.confidence_levels,
            skip=gap,
        )

    with _stage(symbol, "score"):
        test_accuracy = compute_accuracy(forecast.forecast, test.to_numpy())
        fitted_values = in_sample_fitted(fitted)
        train_accuracy = compute_accuracy(fitted_values.to_numpy(), train.loc[fitted_values.index].to_numpy())

    logger.info(
        "%s: %s test RMSE=%.4f MAE=%.4f MAPE=%.2f%%",
        symbol,
        fitted.label,
        test_accuracy.rmse,
        test_accuracy.mae,
        test_accuracy.mape,
    )

    return SymbolAnalysis(
        symbol=symbol,
        prices=prices,
        train=train,
        test=test,
        fitted=fitted,
        forecast=forecast,
        test_accuracy=test_accuracy,
        train_accuracy=train_accuracy,
        coefficients=coefficients,
    )


def rank_by_mape(records: Iterable[AccuracyRecord]) -> list[AccuracyRecord]:
    """Ascending MAPE; ``sorted`` is stable so ties keep input order."""
    return sorted(records, key=lambda record: record.mape)


@dataclass
class BatchRun:
    analyses: list[SymbolAnalysis]
    failures: list[SymbolFailure]

    @property
    def ranked(self) -> list[AccuracyRecord]:
        return rank_by_mape(analysis.record for analysis in self.analyses)

    def results_table(self) -> pd.DataFrame:
        rows = [[r.symbol, r.rmse, r.mae, r.mape] for r in self.ranked]
        return pd.DataFrame(rows, columns=RESULT_COLUMNS)

    def failures_table(self) -> pd.DataFrame:
        rows = [[f.symbol, f.stage, f.error_type, f.message] for f in self.failures]
        return pd.DataFrame(rows, columns=FAILURE_COLUMNS)


def _attempt(
    symbol: str,
    config: ReportConfig,
    fetch: Optional[PriceFetcher],
) -> Union[SymbolAnalysis, SymbolFailure]:
    try:
        return analyze_symbol(symbol, config, fetch)
    except PipelineError as exc:
        logger.warning("Skipping %s", exc)
        return SymbolFailure(
            symbol=symbol,
            stage=exc.stage,
            error_type=type(exc.cause).__name__,
            message=str(exc.cause),
        )


def run_batch(config: ReportConfig, fetch: Optional[PriceFetcher] = None) -> BatchRun:
    """Run the pipeline for every configured symbol, in order."""
    outcomes = [_attempt(symbol, config, fetch) for symbol in config.symbols]
    return BatchRun(
        analyses=[o for o in outcomes if isinstance(o, SymbolAnalysis)],
        failures=[o for o in outcomes if isinstance(o, SymbolFailure)],
    )
