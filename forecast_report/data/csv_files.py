from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pandas as pd

from forecast_report.config import settings
from forecast_report.errors import DataUnavailableError

CSV_DATA_DIR_ENV = "FORECAST_REPORT_CSV_DIR"


def get_csv_data_dir() -> Path:
    env_path = os.getenv(CSV_DATA_DIR_ENV)
    if env_path:
        return Path(env_path)
    return Path(settings.CSV_DATA_DIR)


def _clean_numeric(column: pd.Series) -> pd.Series:
    # NASDAQ exports carry dollar signs and thousands separators
    cleaned = column.astype(str).str.replace("$", "", regex=False).str.replace(",", "", regex=False).str.strip()
    return pd.to_numeric(cleaned, errors="coerce")


def load_csv(symbol: str) -> pd.DataFrame:
    path = get_csv_data_dir() / f"{symbol}.csv"
    if not path.exists():
        raise DataUnavailableError(f"No CSV data for {symbol} at {path}")

    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DataUnavailableError(f"Unreadable CSV data for {symbol}: {exc}") from exc

    # Normalize column names: lowercase and strip spaces
    df.columns = [col.strip().lower().replace("/", "_").replace(" ", "_") for col in df.columns]
    df.rename(columns={"close_last": "close"}, inplace=True)

    if not {"date", "close"}.issubset(df.columns):
        raise DataUnavailableError(f"CSV data for {symbol} needs 'date' and 'close' columns")

    for col in ["open", "high", "low", "close", "adj_close", "volume"]:
        if col in df.columns:
            df[col] = _clean_numeric(df[col])

    try:
        df["date"] = pd.to_datetime(df["date"])
    except (ValueError, TypeError) as exc:
        raise DataUnavailableError(f"Unparseable dates in CSV data for {symbol}: {exc}") from exc
    df.sort_values("date", inplace=True)
    df.set_index("date", inplace=True)
    return df


def fetch_daily(symbol: str, start: date, end: date) -> pd.DataFrame:
    return load_csv(symbol)
