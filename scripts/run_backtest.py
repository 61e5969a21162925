#!/usr/bin/env python3
"""
Backtest Runner

Runs a single backtest (or a parameter sweep) from the command line
against the synthetic or CSV data provider and prints the result
summary. The per-step portfolio history can be written to a CSV file.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger
from tqdm import tqdm

from agent_backtester.backtesting.engine import SimulationEngine
from agent_backtester.core.enums import DataProviderType, Interval
from agent_backtester.core.events import EventType
from agent_backtester.core.models.backtest import BacktestConfig
from agent_backtester.core.models.market import DataRequest
from agent_backtester.core.utils.logging_config import setup_logging
from agent_backtester.core.utils.validation import validate_symbol
from agent_backtester.infrastructure.data import CSVDataProvider, DataProviderFactory


def parse_sweep(values: list[str]) -> dict[str, list[float]]:
    """Parse ``name=v1,v2,...`` arguments into parameter ranges."""
    ranges: dict[str, list[float]] = {}
    for value in values:
        name, _, candidates = value.partition("=")
        if not name or not candidates:
            raise ValueError(f"Invalid sweep parameter: {value}")
        ranges[name] = [float(candidate) for candidate in candidates.split(",")]
    return ranges


async def run(args: argparse.Namespace) -> int:
    symbols = [validate_symbol(symbol) for symbol in args.symbols]
    config = BacktestConfig(
        start_date=datetime.strptime(args.start_date, "%Y-%m-%d"),
        end_date=datetime.strptime(args.end_date, "%Y-%m-%d"),
        initial_capital=args.capital,
        symbols=tuple(symbols),
        commission=args.commission,
        slippage=args.slippage,
    )

    if args.csv_dir:
        provider = CSVDataProvider(
            files={symbol: Path(args.csv_dir) / f"{symbol}.csv" for symbol in symbols}
        )
    else:
        provider = DataProviderFactory.create(DataProviderType.MOCK, {"symbols": symbols})

    data = await provider.fetch_multiple_symbols(
        [DataRequest(symbol, config.start_date, config.end_date, Interval.D1) for symbol in config.symbols]
    )

    engine = SimulationEngine(config)
    await engine.load_historical_data(data)

    with tqdm(total=engine.get_total_data_points(), desc="Backtest", unit="bar") as progress:
        engine.events.subscribe(EventType.TIME_STEP_PROCESSED, lambda _: progress.update(1))
        engine.events.subscribe(EventType.BACKTEST_STARTED, lambda _: progress.reset())

        if args.sweep:
            results = await engine.run_parameter_sweep(parse_sweep(args.sweep))
            summary = {key: result.summary() for key, result in results.items()}
        else:
            result = await engine.run_backtest()
            summary = result.summary()

    print(json.dumps(summary, indent=2, default=str))

    if args.output and engine.tracker is not None:
        Path(args.output).write_text(engine.tracker.export_to_csv())
        logger.success(f"Wrote portfolio history to {args.output}")

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Run a backtest against synthetic or CSV market data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Synthetic data for two symbols
  python run_backtest.py --symbols AAPL MSFT --start-date 2023-01-01 --end-date 2023-06-30

  # CSV files named <SYMBOL>.csv in data/
  python run_backtest.py --symbols AAPL --csv-dir data --start-date 2023-01-01 --end-date 2023-12-31

  # Parameter sweep, writing the history of the last run
  python run_backtest.py --symbols AAPL --start-date 2023-01-01 --end-date 2023-03-31 \\
      --sweep fast=5,10 slow=20,50 --output history.csv
        """,
    )

    parser.add_argument("--symbols", nargs="+", required=True, help="Symbols to replay")

    parser.add_argument(
        "--start-date", type=str, required=True, help="Start date in YYYY-MM-DD format"
    )

    parser.add_argument("--end-date", type=str, required=True, help="End date in YYYY-MM-DD format")

    parser.add_argument(
        "--capital", type=float, default=100_000.0, help="Initial capital (default: 100000)"
    )

    parser.add_argument("--commission", type=float, default=0.0, help="Commission rate")

    parser.add_argument("--slippage", type=float, default=0.0, help="Slippage rate")

    parser.add_argument(
        "--csv-dir", type=str, help="Directory with <SYMBOL>.csv files (default: synthetic data)"
    )

    parser.add_argument(
        "--sweep", nargs="+", metavar="NAME=V1,V2", help="Parameter ranges for a sweep"
    )

    parser.add_argument("--output", type=str, help="Write the portfolio history CSV here")

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    try:
        datetime.strptime(args.start_date, "%Y-%m-%d")
        datetime.strptime(args.end_date, "%Y-%m-%d")
    except ValueError:
        logger.error("Invalid date format. Use YYYY-MM-DD format.")
        return 1

    if args.start_date >= args.end_date:
        logger.error("Start date must be before end date")
        return 1

    setup_logging(debug=args.debug)

    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.exception(f"Backtest failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
