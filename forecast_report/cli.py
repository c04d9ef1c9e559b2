"""Command-line entry point for the ARIMA forecast accuracy report.

Usage:
    forecast-report --symbols AAPL MSFT GOOGL --detail AAPL

This runs:
1. The batch over all symbols, ranked by test-window MAPE
2. A detailed walkthrough for one symbol (fatal if it fails), reusing its
   batch analysis when the symbol is part of the batch
3. Writes tables and charts to the output directory
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from forecast_report.compute.backtest import walk_forward_backtest
from forecast_report.compute.pipeline import SymbolAnalysis, analyze_symbol, run_batch
from forecast_report.config import settings
from forecast_report.data.prices import PROVIDERS
from forecast_report.errors import PipelineError, ReportError
from forecast_report.models.schemas import INFORMATION_CRITERIA, ReportConfig
from forecast_report.report import (
    accuracy_frame,
    coefficients_frame,
    format_table,
    write_detail,
    write_report,
    write_symbol_charts,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forecast-report",
        description="Fit auto-selected ARIMA models per symbol and rank one-month forecast accuracy.",
    )
    parser.add_argument("--symbols", nargs="+", help="Ticker symbols (default: SYMBOLS setting)")
    parser.add_argument("--detail", help="Symbol for the detailed walkthrough (default: DETAIL_SYMBOL)")
    parser.add_argument("--no-detail", action="store_true", help="Skip the detailed walkthrough")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="Market-data provider")
    parser.add_argument("--training-end", type=date.fromisoformat, help="Last training date (YYYY-MM-DD)")
    parser.add_argument("--test-start", type=date.fromisoformat, help="First test date (YYYY-MM-DD)")
    parser.add_argument("--test-end", type=date.fromisoformat, help="Last test date (YYYY-MM-DD)")
    parser.add_argument("--lookback-years", type=int, help="Years of history ending at the test end")
    parser.add_argument("--max-p", type=int, help="Largest AR order searched")
    parser.add_argument("--max-d", type=int, help="Largest differencing order")
    parser.add_argument("--max-q", type=int, help="Largest MA order searched")
    parser.add_argument("--criterion", choices=INFORMATION_CRITERIA, help="Order selection criterion")
    parser.add_argument(
        "--walk-forward-splits",
        type=int,
        default=0,
        help="Walk-forward backtest splits for the detailed symbol (0 disables)",
    )
    parser.add_argument("--output-dir", type=Path, default=None, help="Report output directory")
    parser.add_argument("--no-plots", action="store_true", help="Skip chart rendering")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL)")
    return parser


def _run_detail(
    symbol: str,
    config: ReportConfig,
    walk_forward_splits: int,
    analysis: Optional[SymbolAnalysis] = None,
) -> tuple[SymbolAnalysis, Optional[dict]]:
    if analysis is None:
        analysis = analyze_symbol(symbol, config)

    backtest = None
    if walk_forward_splits > 0:
        try:
            backtest = walk_forward_backtest(
                analysis.train,
                horizon=len(analysis.test),
                order=analysis.fitted.order,
                trend=analysis.fitted.trend,
                n_splits=walk_forward_splits,
                min_train_size=config.min_train_observations,
            )
        except (ValueError, ReportError) as exc:
            logger.warning("Walk-forward backtest for %s skipped: %s", symbol, exc)

    print(f"\n{symbol}: {analysis.fitted.label}")
    print(format_table(accuracy_frame(analysis)))
    print("\nCoefficient significance")
    print(format_table(coefficients_frame(analysis)))
    if backtest is not None:
        print(
            f"\nWalk-forward backtest ({backtest['splits']} splits): "
            f"RMSE={backtest['rmse']:.4f} MAE={backtest['mae']:.4f} MAPE={backtest['mape']:.2f}%"
        )
    return analysis, backtest


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ReportConfig.from_settings(
            symbols=args.symbols,
            provider=args.provider,
            training_end=args.training_end,
            test_start=args.test_start,
            test_end=args.test_end,
            lookback_years=args.lookback_years,
            max_p=args.max_p,
            max_d=args.max_d,
            max_q=args.max_q,
            criterion=args.criterion,
        )
    except ValidationError as exc:
        parser.error(str(exc))

    output_dir = args.output_dir or Path(settings.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)

    detail_symbol = None if args.no_detail else (args.detail or settings.DETAIL_SYMBOL).strip().upper()

    run = run_batch(config)

    detail = backtest = None
    if detail_symbol:
        failed = next((f for f in run.failures if f.symbol == detail_symbol), None)
        if failed is not None:
            logger.error(
                "Detailed walkthrough failed for %s at the %s stage: %s",
                failed.symbol,
                failed.stage,
                failed.message,
            )
            return 1
        batched = next((a for a in run.analyses if a.symbol == detail_symbol), None)
        try:
            detail, backtest = _run_detail(detail_symbol, config, args.walk_forward_splits, batched)
        except PipelineError as exc:
            logger.error(
                "Detailed walkthrough failed for %s at the %s stage: %s",
                exc.symbol,
                exc.stage,
                exc.cause,
            )
            return 1

    print("\nForecast accuracy ranked by MAPE")
    print(format_table(run.results_table()))
    if run.failures:
        print("\nFailed symbols")
        print(format_table(run.failures_table()))

    write_report(run, output_dir, plots=not args.no_plots)
    if detail is not None:
        write_detail(detail, output_dir, backtest)
        # Batch symbols already have their charts
        if not args.no_plots and detail_symbol not in config.symbols:
            write_symbol_charts(detail, output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
