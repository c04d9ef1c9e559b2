"""Yahoo Finance daily bars via yfinance."""

from __future__ import annotations

from datetime import date, timedelta

import pandas as pd
import yfinance as yf

from forecast_report.config import settings
from forecast_report.errors import DataUnavailableError

COLUMN_MAPPING = {
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Close": "close",
    "Adj Close": "adj_close",
    "Volume": "volume",
}


def fetch_daily(symbol: str, start: date, end: date) -> pd.DataFrame:
    # yfinance treats ``end`` as exclusive
    try:
        data = yf.download(
            symbol,
            start=start.isoformat(),
            end=(end + timedelta(days=1)).isoformat(),
            auto_adjust=False,
            progress=False,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    except Exception as exc:  # noqa: BLE001 - yfinance raises many unrelated types
        raise DataUnavailableError(f"Yahoo Finance request failed for {symbol}: {exc}") from exc

    if data is None or data.empty:
        raise DataUnavailableError(f"No data found for {symbol}")

    if isinstance(data.columns, pd.MultiIndex):
        data.columns = data.columns.get_level_values(0)

    data = data.rename(columns=COLUMN_MAPPING)
    if "close" not in data.columns:
        raise DataUnavailableError(f"Yahoo Finance returned no close prices for {symbol}")

    data.index = pd.to_datetime(data.index)
    if data.index.tz is not None:
        data.index = data.index.tz_localize(None)
    data.index.name = "date"
    data.sort_index(inplace=True)
    return data
