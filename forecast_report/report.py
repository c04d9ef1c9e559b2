"""Write report tables and charts to an output directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from forecast_report.compute.pipeline import BatchRun, SymbolAnalysis
from forecast_report.plots.charts import (
    plot_forecast,
    plot_metrics_comparison,
    plot_price_history,
)

logger = logging.getLogger(__name__)

COEFFICIENT_COLUMNS = ["Coefficient", "Estimate", "StandardError", "TStatistic", "PValue"]


def format_table(df: pd.DataFrame) -> str:
    if df.empty:
        return "(none)"
    return df.to_string(index=False, float_format=lambda v: f"{v:.4f}")


def coefficients_frame(analysis: SymbolAnalysis) -> pd.DataFrame:
    rows = [
        [c.name, c.estimate, c.std_error, c.t_statistic, c.p_value]
        for c in analysis.coefficients
    ]
    return pd.DataFrame(rows, columns=COEFFICIENT_COLUMNS)


def accuracy_frame(analysis: SymbolAnalysis) -> pd.DataFrame:
    """Training (in-sample) and test accuracy side by side."""
    rows = []
    for window, metrics in (("Training", analysis.train_accuracy), ("Test", analysis.test_accuracy)):
        rows.append([window, metrics.rmse, metrics.mae, metrics.mape])
    return pd.DataFrame(rows, columns=["Window", "RMSE", "MAE", "MAPE"])


def forecast_frame(analysis: SymbolAnalysis) -> pd.DataFrame:
    forecast = analysis.forecast
    df = pd.DataFrame(
        {
            "Date": forecast.dates,
            "Actual": analysis.test.to_numpy(),
            "Forecast": forecast.forecast,
        }
    )
    for level, band in sorted(forecast.intervals.items()):
        df[f"Lo{level}"] = band.lower
        df[f"Hi{level}"] = band.upper
    return df


def _write_png(path: Path, png: bytes) -> None:
    path.write_bytes(png)
    logger.debug("Wrote %s", path)


def write_symbol_charts(analysis: SymbolAnalysis, output_dir: Path) -> None:
    symbol = analysis.symbol
    _write_png(output_dir / f"{symbol}_prices.png", plot_price_history(analysis.prices, symbol))
    _write_png(
        output_dir / f"{symbol}_forecast.png",
        plot_forecast(analysis.train, analysis.test, analysis.forecast, symbol),
    )


def write_detail(
    analysis: SymbolAnalysis,
    output_dir: Path,
    backtest: Optional[dict] = None,
) -> None:
    """Write the detailed single-symbol walkthrough."""
    symbol = analysis.symbol
    coefficients_frame(analysis).to_csv(output_dir / f"{symbol}_coefficients.csv", index=False)
    forecast_frame(analysis).to_csv(output_dir / f"{symbol}_forecast.csv", index=False)

    lines = [
        f"{symbol}: {analysis.fitted.label}",
        f"{analysis.fitted.criterion.upper()} = {analysis.fitted.criterion_value:.4f}",
        "",
        "Accuracy",
        format_table(accuracy_frame(analysis)),
        "",
        "Coefficient significance",
        format_table(coefficients_frame(analysis)),
    ]
    if backtest is not None:
        lines += [
            "",
            f"Walk-forward backtest ({backtest['splits']} splits)",
            f"RMSE={backtest['rmse']:.4f} MAE={backtest['mae']:.4f} MAPE={backtest['mape']:.2f}%",
        ]
    lines += ["", analysis.fitted.results.summary().as_text()]

    (output_dir / f"{symbol}_summary.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")


def write_report(run: BatchRun, output_dir: Path, plots: bool = True) -> Path:
    """Write results, failures and charts for a batch run.

    Returns:
        The output directory
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    run.results_table().to_csv(output_dir / "results.csv", index=False)
    run.failures_table().to_csv(output_dir / "failures.csv", index=False)

    if plots:
        for analysis in run.analyses:
            write_symbol_charts(analysis, output_dir)
        _write_png(output_dir / "metrics_comparison.png", plot_metrics_comparison(run.ranked))

    logger.info("Report written to %s", output_dir)
    return output_dir
