"""Forecast accuracy metrics."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from forecast_report.errors import MetricUndefinedError
from forecast_report.models.schemas import AccuracyMetrics


def compute_accuracy(forecast: Sequence[float], actual: Sequence[float]) -> AccuracyMetrics:
    """RMSE, MAE and MAPE (in percent) of ``forecast`` against ``actual``.

    Raises:
        ValueError: lengths differ or are zero
        MetricUndefinedError: an actual value is zero, so MAPE is undefined
    """
    predictions = np.asarray(forecast, dtype=float)
    actuals = np.asarray(actual, dtype=float)

    if predictions.shape != actuals.shape:
        raise ValueError(
            f"Forecast has {predictions.size} values but actual series has {actuals.size}"
        )
    if actuals.size == 0:
        raise ValueError("Cannot score an empty forecast")
    if np.any(actuals == 0):
        raise MetricUndefinedError("MAPE is undefined when an actual value is zero")

    mae = mean_absolute_error(actuals, predictions)
    rmse = np.sqrt(mean_squared_error(actuals, predictions))
    mape = np.mean(np.abs((actuals - predictions) / actuals)) * 100

    return AccuracyMetrics(rmse=float(rmse), mae=float(mae), mape=float(mape))
