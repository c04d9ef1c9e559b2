"""Automatic ARIMA order selection and forecasting for stock prices.

Estimation is delegated to statsmodels; this module only searches the
candidate orders and packages the results.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.stattools import kpss

from forecast_report.errors import EmptyWindowError, ModelFitError
from forecast_report.models.schemas import ConfidenceBand, ForecastResult

logger = logging.getLogger(__name__)


@dataclass
class FittedModel:
    """A selected ARIMA model and the training window it was fitted on."""

    results: Any
    order: tuple[int, int, int]
    trend: str
    criterion: str
    criterion_value: float
    n_obs: int
    train_index: pd.DatetimeIndex

    @property
    def label(self) -> str:
        p, d, q = self.order
        drift = " with drift" if self.trend == "t" else ""
        mean = " with non-zero mean" if self.trend == "c" else ""
        return f"ARIMA({p},{d},{q}){drift}{mean}"


def _training_values(train: pd.Series, min_observations: int) -> np.ndarray:
    values = np.asarray(train, dtype=float)
    if len(values) < min_observations:
        raise ModelFitError(
            f"Need at least {min_observations} data points for ARIMA fitting, got {len(values)}"
        )
    if not np.all(np.isfinite(values)):
        raise ModelFitError("Training series contains non-finite values")
    if np.ptp(values) == 0:
        raise ModelFitError("Training series is constant; ARIMA cannot be fitted")
    return values


def select_differencing(values: Sequence[float], max_d: int = 2, alpha: float = 0.05) -> int:
    """Number of differences needed for stationarity, by repeated KPSS tests.

    The null hypothesis of KPSS is stationarity, so differencing stops as soon
    as the test no longer rejects at level ``alpha``.
    """
    x = np.asarray(values, dtype=float)
    d = 0
    while d < max_d:
        if len(x) < 3 or np.ptp(x) == 0:
            break
        with warnings.catch_warnings():
            # p-values outside the lookup table are clipped with a warning
            warnings.filterwarnings("ignore")
            _, p_value, _, _ = kpss(x, regression="c", nlags="auto")
        if p_value >= alpha:
            break
        x = np.diff(x)
        d += 1
    return d


def _trend_candidates(d: int) -> list[str]:
    # statsmodels drops trend terms of lower order than d
    if d == 0:
        return ["c"]
    if d == 1:
        return ["n", "t"]
    return ["n"]


def fit_arima(series: Any, order: tuple = (5, 1, 0), trend: str = "n") -> Any:
    """Fit an ARIMA model of a fixed order to a price series.

    Args:
        series: Price series or array of prices, oldest first
        order: ARIMA order (p, d, q)
        trend: statsmodels trend term ("n", "c" or "t")

    Returns:
        Fitted statsmodels ARIMA results
    """
    values = np.asarray(series, dtype=float)
    # Suppress convergence warnings for cleaner output
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore")
        try:
            model = ARIMA(values, order=order, trend=trend)
            return model.fit()
        except (ValueError, np.linalg.LinAlgError) as exc:
            raise ModelFitError(f"ARIMA{tuple(order)} fit failed: {exc}") from exc


def fit_auto_arima(
    train: pd.Series,
    max_p: int = 3,
    max_d: int = 2,
    max_q: int = 3,
    criterion: str = "aicc",
    min_observations: int = 60,
) -> FittedModel:
    """Select and fit the ARIMA model with the lowest information criterion.

    The differencing order comes from ``select_differencing``; p, q and the
    trend term are searched exhaustively within the given bounds.

    Args:
        train: Training price series (datetime index, sorted ascending)
        max_p: Largest autoregressive order tried
        max_d: Largest differencing order allowed
        max_q: Largest moving-average order tried
        criterion: "aicc", "aic" or "bic"
        min_observations: Shortest training series accepted

    Returns:
        FittedModel for the best candidate
    """
    values = _training_values(train, min_observations)
    d = select_differencing(values, max_d=max_d)

    best: Optional[tuple[float, Any, tuple[int, int, int], str]] = None
    for p in range(max_p + 1):
        for q in range(max_q + 1):
            for trend in _trend_candidates(d):
                order = (p, d, q)
                try:
                    results = fit_arima(values, order, trend)
                except ModelFitError as exc:
                    logger.debug("Skipping ARIMA%s trend=%s: %s", order, trend, exc)
                    continue

                score = float(getattr(results, criterion))
                if not np.isfinite(score):
                    logger.debug("Skipping ARIMA%s trend=%s: %s is not finite", order, trend, criterion)
                    continue
                if best is None or score < best[0]:
                    best = (score, results, order, trend)

    if best is None:
        raise ModelFitError(f"No ARIMA candidate with d={d} could be fitted")

    score, results, order, trend = best
    fitted = FittedModel(
        results=results,
        order=order,
        trend=trend,
        criterion=criterion,
        criterion_value=score,
        n_obs=len(values),
        train_index=pd.DatetimeIndex(train.index),
    )
    logger.info("Selected %s (%s=%.2f)", fitted.label, criterion.upper(), score)
    return fitted


def forecast_trend(forecast: Sequence[float]) -> str:
    """Classify a forecast path as "upward", "downward" or "flat"."""
    first_pred = forecast[0]
    last_pred = forecast[-1]
    pct_change = (last_pred - first_pred) / first_pred if first_pred != 0 else 0

    if pct_change > 0.01:  # > 1% increase
        return "upward"
    if pct_change < -0.01:  # > 1% decrease
        return "downward"
    return "flat"


def forecast_arima(
    fitted: FittedModel,
    horizon: int,
    index: Optional[pd.DatetimeIndex] = None,
    levels: Sequence[int] = (80, 95),
    skip: int = 0,
) -> ForecastResult:
    """Generate price forecast with prediction intervals.

    Args:
        fitted: Model returned by ``fit_auto_arima``
        horizon: Number of steps to forecast
        index: Dates of the forecast steps (e.g. the test window). Defaults
            to the business days after the last training date.
        levels: Confidence levels in percent
        skip: Steps between the training window and the first returned
            step. They are forecast but not returned.

    Returns:
        ForecastResult with one band per confidence level
    """
    if horizon < 1:
        raise EmptyWindowError("Forecast horizon must be at least one step")
    if skip < 0:
        raise ValueError("skip must not be negative")

    last_train_date = fitted.train_index[-1]
    if index is None:
        dates = pd.bdate_range(start=last_train_date + pd.Timedelta(days=1), periods=skip + horizon)[skip:]
    else:
        dates = pd.DatetimeIndex(index)
        if len(dates) != horizon:
            raise ValueError(f"Forecast index has {len(dates)} dates for horizon {horizon}")
        if dates[0] <= last_train_date:
            raise ValueError("Forecast dates must follow the training window")

    prediction = fitted.results.get_forecast(steps=skip + horizon)
    predicted = np.asarray(prediction.predicted_mean, dtype=float)[skip:]

    intervals = {}
    for level in levels:
        conf_int = np.asarray(prediction.conf_int(alpha=1 - level / 100), dtype=float)[skip:]
        intervals[int(level)] = ConfidenceBand(
            lower=conf_int[:, 0].tolist(),
            upper=conf_int[:, 1].tolist(),
        )

    return ForecastResult(
        horizon=horizon,
        dates=dates.strftime("%Y-%m-%d").tolist(),
        forecast=predicted.tolist(),
        intervals=intervals,
        trend=forecast_trend(predicted),
    )


def in_sample_fitted(fitted: FittedModel) -> pd.Series:
    """One-step in-sample predictions over the training window.

    The first ``d`` values are dropped; a differenced model has no prior
    level to predict them from.
    """
    values = np.asarray(fitted.results.fittedvalues, dtype=float)
    series = pd.Series(values, index=fitted.train_index, name="fitted")
    return series.iloc[fitted.order[1]:]
