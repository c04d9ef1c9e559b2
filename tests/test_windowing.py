"""Unit tests for training/test window splitting."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from forecast_report.compute.windowing import split_series
from forecast_report.errors import EmptyWindowError


def _sample_series() -> pd.Series:
    dates = pd.bdate_range(start="2024-01-01", end="2024-08-30")
    np.random.seed(42)
    prices = 100 + np.cumsum(np.random.normal(0, 1, len(dates)))
    return pd.Series(prices, index=dates, name="AAPL")


@pytest.mark.parametrize(
    "training_end, test_start, test_end",
    [
        (date(2024, 5, 31), date(2024, 6, 1), date(2024, 6, 30)),
        (date(2024, 3, 15), date(2024, 3, 18), date(2024, 3, 18)),
        (date(2024, 6, 28), date(2024, 7, 1), date(2024, 8, 30)),
        (date(2024, 1, 31), date(2024, 3, 1), date(2024, 12, 31)),
    ],
)
def test_split_partitions_series(training_end, test_start, test_end):
    series = _sample_series()
    train, test = split_series(series, training_end, test_start, test_end)

    # Subsets of the original, disjoint, and ordered train-before-test
    assert train.index.isin(series.index).all()
    assert test.index.isin(series.index).all()
    assert train.index.intersection(test.index).empty
    assert train.index[-1] < test.index[0]

    combined = pd.concat([train, test])
    assert combined.index.is_monotonic_increasing
    assert (combined == series.loc[combined.index]).all()

    assert train.index[-1] <= pd.Timestamp(training_end)
    assert test.index[0] >= pd.Timestamp(test_start)
    assert test.index[-1] <= pd.Timestamp(test_end)


def test_split_reference_month():
    series = _sample_series()
    train, test = split_series(series, date(2024, 5, 31), date(2024, 6, 1), date(2024, 6, 30))

    # June 2024 has 20 business days
    assert len(test) == 20
    assert train.index[-1] == pd.Timestamp("2024-05-31")
    assert test.index[0] == pd.Timestamp("2024-06-03")


def test_split_weekend_test_window_is_empty():
    series = _sample_series()

    with pytest.raises(EmptyWindowError, match="No observations in test window"):
        split_series(series, date(2024, 5, 31), date(2024, 6, 1), date(2024, 6, 2))


def test_split_training_window_empty():
    series = _sample_series()

    with pytest.raises(EmptyWindowError, match="training end"):
        split_series(series, date(2023, 12, 31), date(2024, 1, 1), date(2024, 1, 31))


def test_split_rejects_overlapping_boundaries():
    series = _sample_series()

    with pytest.raises(ValueError, match="must be before"):
        split_series(series, date(2024, 6, 1), date(2024, 6, 1), date(2024, 6, 30))

    with pytest.raises(ValueError, match="must not be after"):
        split_series(series, date(2024, 5, 31), date(2024, 6, 30), date(2024, 6, 1))
