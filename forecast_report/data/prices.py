"""Market-data provider dispatch.

Turns a (symbol, start, end) request into a daily price frame or a
``DataUnavailableError``. One attempt per request, no retries.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

import pandas as pd

from forecast_report.config import settings
from forecast_report.data import alpha_vantage, csv_files, yahoo
from forecast_report.errors import DataUnavailableError

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str, date, date], pd.DataFrame]

PROVIDERS: dict[str, PriceFetcher] = {
    "yahoo": yahoo.fetch_daily,
    "alpha_vantage": alpha_vantage.fetch_daily,
    "csv": csv_files.fetch_daily,
}


def get_fetcher(provider: Optional[str] = None) -> PriceFetcher:
    name = (provider or settings.DATA_PROVIDER).lower()
    try:
        return PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown data provider {name!r}; expected one of {sorted(PROVIDERS)}"
        ) from None


def fetch_prices(
    symbol: str,
    start: date,
    end: date,
    provider: Optional[str] = None,
) -> pd.DataFrame:
    """Fetch daily bars for ``symbol`` restricted to ``[start, end]`` inclusive."""
    if start > end:
        raise ValueError(f"start {start} is after end {end}")

    fetcher = get_fetcher(provider)
    logger.info("Fetching %s from %s to %s", symbol, start, end)
    df = fetcher(symbol, start, end)

    df = df.loc[(df.index >= pd.Timestamp(start)) & (df.index <= pd.Timestamp(end))]
    if df.empty:
        raise DataUnavailableError(f"No data for {symbol} between {start} and {end}")
    return df


def close_series(df: pd.DataFrame, symbol: str = "") -> pd.Series:
    """Extract the closing-price series: ascending unique dates, no NaN."""
    if "close" not in df.columns:
        raise DataUnavailableError(f"No close column in price data for {symbol}")

    series = pd.to_numeric(df["close"], errors="coerce").astype(float).dropna()
    series = series[~series.index.duplicated(keep="last")].sort_index()
    if series.empty:
        raise DataUnavailableError(f"No closing prices for {symbol}")
    if (series < 0).any():
        raise DataUnavailableError(f"Negative closing prices for {symbol}")

    series.index = pd.DatetimeIndex(series.index, name="date")
    series.name = symbol or "close"
    return series
