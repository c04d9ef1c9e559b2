"""Walk-forward backtesting for a fixed ARIMA order."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from forecast_report.compute.forecast_arima import fit_arima
from forecast_report.compute.metrics import compute_accuracy
from forecast_report.errors import ModelFitError

logger = logging.getLogger(__name__)


def walk_forward_backtest(
    series: pd.Series,
    horizon: int,
    order: tuple = (5, 1, 0),
    trend: str = "n",
    n_splits: int = 5,
    min_train_size: int = 60,
) -> dict:
    """Walk-forward validation for ARIMA model.

    Simulates real-world usage: train on historical data, predict future,
    then move forward and repeat.

    Args:
        series: Price series (datetime index, sorted ascending)
        horizon: Forecast horizon in trading days
        order: ARIMA order (p, d, q)
        trend: statsmodels trend term for the order
        n_splits: Number of validation windows
        min_train_size: Smallest training window used for a split

    Returns:
        dict with:
            - mae, rmse, mape: accuracy over all splits
            - splits: number of splits that produced predictions
            - predictions: all predictions made
            - actuals: corresponding actual values
    """
    if horizon < 1 or n_splits < 1:
        raise ValueError("horizon and n_splits must be positive")

    total_length = len(series)
    if total_length < min_train_size + horizon:
        raise ValueError(
            f"Series too short for backtesting. Need at least {min_train_size + horizon} "
            f"data points, got {total_length}"
        )

    # Reduce n_splits if we don't have enough data
    n_splits = max(1, min(n_splits, (total_length - min_train_size) // horizon))

    predictions = []
    actuals = []
    completed = 0

    for i in range(n_splits):
        # Start from the end and work backwards
        test_end_idx = total_length - (n_splits - i - 1) * horizon
        test_start_idx = test_end_idx - horizon

        train_data = series.iloc[:test_start_idx]
        test_data = series.iloc[test_start_idx:test_end_idx]

        try:
            fitted = fit_arima(train_data, order, trend)
        except ModelFitError as exc:
            logger.debug("Skipping split %d: %s", i, exc)
            continue

        pred = np.asarray(fitted.get_forecast(steps=horizon).predicted_mean, dtype=float)
        predictions.extend(pred.tolist())
        actuals.extend(test_data.to_numpy(dtype=float).tolist())
        completed += 1

    if completed == 0:
        raise ModelFitError("Backtest failed: no valid predictions were made")

    metrics = compute_accuracy(predictions, actuals)

    return {
        "mae": metrics.mae,
        "rmse": metrics.rmse,
        "mape": metrics.mape,
        "splits": completed,
        "predictions": predictions,
        "actuals": actuals,
    }
