"""Unit tests for forecast accuracy metrics."""

import numpy as np
import pytest

from forecast_report.compute.metrics import compute_accuracy
from forecast_report.errors import MetricUndefinedError


def test_perfect_forecast_has_zero_error():
    actual = [101.5, 102.25, 99.75, 100.0]
    metrics = compute_accuracy(actual, actual)

    assert metrics.rmse == 0
    assert metrics.mae == 0
    assert metrics.mape == 0


def test_known_values():
    metrics = compute_accuracy([102.0, 96.0, 100.0], [100.0, 100.0, 100.0])

    assert metrics.mae == pytest.approx(2.0)
    assert metrics.rmse == pytest.approx(np.sqrt(20 / 3))
    assert metrics.mape == pytest.approx(2.0)


def test_mape_uses_absolute_actuals():
    metrics = compute_accuracy([-90.0, 55.0], [-100.0, 50.0])
    assert metrics.mape == pytest.approx(10.0)


def test_rmse_not_below_mae():
    np.random.seed(7)
    for _ in range(20):
        actual = np.random.uniform(50, 150, 15)
        forecast = actual + np.random.normal(0, 5, 15)
        metrics = compute_accuracy(forecast, actual)
        assert metrics.rmse >= metrics.mae


def test_zero_actual_is_undefined():
    with pytest.raises(MetricUndefinedError):
        compute_accuracy([1.0, 2.0], [1.0, 0.0])


def test_zero_actual_is_division_error():
    with pytest.raises(ZeroDivisionError):
        compute_accuracy([1.0], [0.0])


def test_length_mismatch():
    with pytest.raises(ValueError, match="Forecast has 2 values"):
        compute_accuracy([1.0, 2.0], [1.0, 2.0, 3.0])


def test_empty_input():
    with pytest.raises(ValueError, match="empty"):
        compute_accuracy([], [])
