from datetime import date

import pandas as pd
import pytest
import yfinance as yf

from forecast_report.config import settings
from forecast_report.data.yahoo import fetch_daily
from forecast_report.errors import DataUnavailableError


def _download_frame(symbol: str = "AAPL") -> pd.DataFrame:
    dates = pd.to_datetime(["2024-06-03", "2024-06-04", "2024-06-05"])
    fields = ["Adj Close", "Close", "High", "Low", "Open", "Volume"]
    columns = pd.MultiIndex.from_product([fields, [symbol]], names=["Price", "Ticker"])
    data = [
        [192.0, 194.0, 194.9, 192.2, 192.9, 50_000_000],
        [192.5, 194.4, 195.3, 193.0, 194.6, 47_000_000],
        [193.9, 195.9, 196.9, 194.1, 195.4, 54_000_000],
    ]
    return pd.DataFrame(data, index=pd.Index(dates, name="Date"), columns=columns)


def test_fetch_daily_flattens_columns(monkeypatch):
    settings.REQUEST_TIMEOUT_SECONDS = 5.0
    calls = {}

    def fake_download(symbol, **kwargs):
        calls["symbol"] = symbol
        calls.update(kwargs)
        return _download_frame(symbol)

    monkeypatch.setattr(yf, "download", fake_download)

    df = fetch_daily("AAPL", date(2024, 6, 1), date(2024, 6, 5))

    assert "close" in df.columns
    assert "adj_close" in df.columns
    assert df.index.name == "date"
    assert df["close"].tolist() == [194.0, 194.4, 195.9]

    # End date is made inclusive and the timeout is explicit
    assert calls["symbol"] == "AAPL"
    assert calls["start"] == "2024-06-01"
    assert calls["end"] == "2024-06-06"
    assert calls["timeout"] == 5.0


def test_fetch_daily_empty_is_data_unavailable(monkeypatch):
    monkeypatch.setattr(yf, "download", lambda *args, **kwargs: pd.DataFrame())

    with pytest.raises(DataUnavailableError, match="No data found for NOPE"):
        fetch_daily("NOPE", date(2024, 6, 1), date(2024, 6, 5))


def test_fetch_daily_provider_error_is_data_unavailable(monkeypatch):
    def fail(*args, **kwargs):
        raise ConnectionError("unreachable")

    monkeypatch.setattr(yf, "download", fail)

    with pytest.raises(DataUnavailableError, match="Yahoo Finance request failed"):
        fetch_daily("AAPL", date(2024, 6, 1), date(2024, 6, 5))
