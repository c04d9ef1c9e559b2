from datetime import date

import numpy as np
import pandas as pd
import pytest

from forecast_report.data.csv_files import CSV_DATA_DIR_ENV, load_csv
from forecast_report.data.prices import close_series, fetch_prices, get_fetcher
from forecast_report.errors import DataUnavailableError


def _sample_df() -> pd.DataFrame:
    data = {
        "date": ["2024-05-30", "2024-05-31", "2024-06-03", "2024-06-04"],
        "open": [100.0, 101.0, 102.0, 103.0],
        "high": [102.0, 103.0, 104.0, 105.0],
        "low": [99.0, 100.0, 101.0, 102.0],
        "close": [101.0, 102.0, 103.0, 104.0],
        "volume": [1000000, 1200000, 1100000, 900000],
    }
    return pd.DataFrame(data)


def test_load_csv_nasdaq_format(tmp_path, monkeypatch):
    csv = (
        "Date,Close/Last,Volume,Open,High,Low\n"
        "06/04/2024,\"$1,104.00\",900000,$103.00,$105.00,$102.00\n"
        "06/03/2024,$103.00,1100000,$102.00,$104.00,$101.00\n"
    )
    (tmp_path / "AAPL.csv").write_text(csv)
    monkeypatch.setenv(CSV_DATA_DIR_ENV, str(tmp_path))

    df = load_csv("AAPL")

    assert df.index.is_monotonic_increasing
    assert df["close"].tolist() == [103.0, 1104.0]
    assert df["open"].dtype == float


def test_load_csv_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv(CSV_DATA_DIR_ENV, str(tmp_path))

    with pytest.raises(DataUnavailableError, match="No CSV data for MSFT"):
        load_csv("MSFT")


def test_fetch_prices_restricts_to_range(tmp_path, monkeypatch):
    _sample_df().to_csv(tmp_path / "AAPL.csv", index=False)
    monkeypatch.setenv(CSV_DATA_DIR_ENV, str(tmp_path))

    df = fetch_prices("AAPL", date(2024, 5, 31), date(2024, 6, 3), provider="csv")

    assert list(df.index.strftime("%Y-%m-%d")) == ["2024-05-31", "2024-06-03"]


def test_fetch_prices_empty_range(tmp_path, monkeypatch):
    _sample_df().to_csv(tmp_path / "AAPL.csv", index=False)
    monkeypatch.setenv(CSV_DATA_DIR_ENV, str(tmp_path))

    with pytest.raises(DataUnavailableError, match="No data for AAPL"):
        fetch_prices("AAPL", date(2020, 1, 1), date(2020, 12, 31), provider="csv")


def test_get_fetcher_unknown_provider():
    with pytest.raises(ValueError, match="Unknown data provider"):
        get_fetcher("bloomberg")


def test_close_series_cleans_input():
    index = pd.to_datetime(["2024-06-04", "2024-06-03", "2024-06-03", "2024-06-05"])
    df = pd.DataFrame({"close": [104.0, 102.0, 103.0, np.nan]}, index=index)

    series = close_series(df, "AAPL")

    assert series.name == "AAPL"
    assert series.index.is_monotonic_increasing
    assert series.index.is_unique
    assert series.tolist() == [103.0, 104.0]


def test_close_series_rejects_negative_prices():
    index = pd.to_datetime(["2024-06-03", "2024-06-04"])
    df = pd.DataFrame({"close": [10.0, -1.0]}, index=index)

    with pytest.raises(DataUnavailableError, match="Negative"):
        close_series(df, "BAD")


def test_close_series_requires_close_column():
    df = pd.DataFrame({"open": [1.0]}, index=pd.to_datetime(["2024-06-03"]))

    with pytest.raises(DataUnavailableError):
        close_series(df, "BAD")


def test_load_csv_unparseable_date(tmp_path, monkeypatch):
    df = _sample_df()
    df.loc[1, "date"] = "not-a-date"
    df.to_csv(tmp_path / "BAD.csv", index=False)
    monkeypatch.setenv(CSV_DATA_DIR_ENV, str(tmp_path))

    with pytest.raises(DataUnavailableError, match="Unparseable dates in CSV data for BAD"):
        load_csv("BAD")
