"""Chart generation for the forecast report.

All charts are returned as PNG bytes.
"""

from __future__ import annotations

from io import BytesIO
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for batch use

import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import numpy as np
import pandas as pd

from forecast_report.models.schemas import AccuracyRecord, ForecastResult

BAND_COLORS = ["#fdba74", "#fed7aa", "#ffedd5"]
METRIC_COLORS = {"RMSE": "#2563eb", "MAE": "#f97316", "MAPE": "#16a34a"}


def _fig_to_png(fig: plt.Figure) -> bytes:
    """Render matplotlib figure to PNG bytes."""
    buf = BytesIO()
    fig.savefig(buf, format="png", dpi=100, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return buf.getvalue()


def plot_price_history(series: pd.Series, symbol: str = "") -> bytes:
    """Plot the daily closing price history.

    Args:
        series: Closing prices, datetime index
        symbol: Ticker symbol for title

    Returns:
        PNG bytes
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    ax.plot(series.index, series.values, label="Close", linewidth=1.5, color="#2563eb")

    ax.set_xlabel("Date")
    ax.set_ylabel("Price ($)")
    ax.set_title(f"{symbol} Price History" if symbol else "Price History")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m"))
    ax.xaxis.set_major_locator(mdates.AutoDateLocator())
    fig.autofmt_xdate()

    return _fig_to_png(fig)


def plot_forecast(
    train: pd.Series,
    test: pd.Series,
    forecast: ForecastResult,
    symbol: str = "",
    history_days: int = 120,
) -> bytes:
    """Plot recent training prices, the forecast with its bands, and the actuals.

    Args:
        train: Training window prices, datetime index
        test: Actual prices over the forecast period, datetime index
        forecast: Forecast for the test period
        symbol: Ticker symbol for title
        history_days: Number of training observations to show (default 120)

    Returns:
        PNG bytes
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    recent = train.tail(history_days)
    ax.plot(recent.index, recent.values, label="Training", linewidth=1.5, color="#2563eb")

    forecast_dates = pd.to_datetime(forecast.dates)

    # Widest band first so narrower ones stay visible on top
    levels = sorted(forecast.intervals, reverse=True)
    for color, level in zip(BAND_COLORS, levels):
        band = forecast.intervals[level]
        ax.fill_between(
            forecast_dates,
            band.lower,
            band.upper,
            alpha=0.5,
            color=color,
            label=f"{level}% interval",
        )

    ax.plot(forecast_dates, forecast.forecast, label="Forecast", linewidth=2, linestyle="--", color="#ea580c")
    if not test.empty:
        ax.plot(test.index, test.values, label="Actual", linewidth=1.5, color="#111827")

    if not recent.empty:
        ax.axvline(x=recent.index[-1], color="gray", linestyle=":", linewidth=1, alpha=0.7)

    ax.set_xlabel("Date")
    ax.set_ylabel("Price ($)")
    ax.set_title(f"{symbol} Forecast vs Actual" if symbol else "Forecast vs Actual")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
    ax.xaxis.set_major_locator(mdates.AutoDateLocator())
    fig.autofmt_xdate()

    return _fig_to_png(fig)


def plot_metrics_comparison(records: Sequence[AccuracyRecord]) -> bytes:
    """Grouped bar chart of RMSE, MAE and MAPE per symbol.

    Args:
        records: Accuracy records, plotted in the given order

    Returns:
        PNG bytes
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    if not records:
        ax.text(0.5, 0.5, "No successful forecasts", ha="center", va="center", transform=ax.transAxes)
        return _fig_to_png(fig)

    symbols = [r.symbol for r in records]
    values = {
        "RMSE": [r.rmse for r in records],
        "MAE": [r.mae for r in records],
        "MAPE": [r.mape for r in records],
    }

    x = np.arange(len(symbols))
    width = 0.8 / len(values)
    for i, (metric, heights) in enumerate(values.items()):
        bars = ax.bar(x + (i - 1) * width, heights, width, label=metric, color=METRIC_COLORS[metric])
        ax.bar_label(bars, fmt="%.2f", fontsize=7, padding=2)

    ax.set_xticks(x)
    ax.set_xticklabels(symbols)
    ax.set_xlabel("Symbol")
    ax.set_ylabel("Error (MAPE in %)")
    ax.set_title("Forecast Accuracy by Symbol")
    ax.legend(loc="upper left")
    ax.grid(True, axis="y", alpha=0.3)

    return _fig_to_png(fig)
