"""Training/test window split by calendar boundaries."""

from __future__ import annotations

from datetime import date

import pandas as pd

from forecast_report.errors import EmptyWindowError


def split_series(
    series: pd.Series,
    training_end: date,
    test_start: date,
    test_end: date,
) -> tuple[pd.Series, pd.Series]:
    """Split a price series into training and test windows.

    Args:
        series: Price series (datetime index, sorted ascending)
        training_end: Last date (inclusive) of the training window
        test_start: First date (inclusive) of the test window
        test_end: Last date (inclusive) of the test window

    Returns:
        (train, test) series. Both are views of ``series`` and never overlap.
    """
    if not training_end < test_start:
        raise ValueError(f"training_end {training_end} must be before test_start {test_start}")
    if not test_start <= test_end:
        raise ValueError(f"test_start {test_start} must not be after test_end {test_end}")

    index = series.index
    train = series[index <= pd.Timestamp(training_end)]
    test = series[(index >= pd.Timestamp(test_start)) & (index <= pd.Timestamp(test_end))]

    if test.empty:
        raise EmptyWindowError(f"No observations in test window {test_start} to {test_end}")
    if train.empty:
        raise EmptyWindowError(f"No observations on or before training end {training_end}")

    return train, test
