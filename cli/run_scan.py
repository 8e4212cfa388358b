#!/usr/bin/env python3
"""
CLI Signal Scan Runner
======================
Batch job that runs the Setup 123 scanner over one OHLCV file per
instrument and reports the resolved outcomes.

1. Loads bars from CSV/parquet files
2. Detects and resolves every 123 pattern
3. Reports the most recent setup and its state on the last bar
4. Logs per-instrument and per-direction statistics
5. Optionally writes signals and statistics to JSON

Usage:
    python -m cli.run_scan data/PETR4.csv data/VALE3.csv
    python -m cli.run_scan data/btc.parquet --ticker BTCUSDT --timeframe 4h
    python -m cli.run_scan data/*.csv --output signals.json
"""

import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from setup123.analysis.statistics import calculate_signal_stats, stats_by_direction
from setup123.config.settings import get_settings
from setup123.core.models import LiveSetup, Signal, SignalStats
from setup123.data.loader import bars_from_dataframe, load_bars
from setup123.detection.live import detect_current_setup123
from setup123.detection.scanner import detect_all_setup123
from setup123.utils.indicators import compute_indicators
from setup123.utils.logging import setup_logging


# =============================================================================
# SCAN RESULT
# =============================================================================

@dataclass
class InstrumentResult:
    """Outcome of scanning a single instrument file."""
    ticker: str
    path: Path
    success: bool
    bars: int = 0
    signals: List[Signal] = field(default_factory=list)
    stats: Optional[SignalStats] = None
    current_setup: Optional[LiveSetup] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ticker': self.ticker,
            'path': str(self.path),
            'success': self.success,
            'bars': self.bars,
            'signals_found': len(self.signals),
            'stats': self.stats.to_dict() if self.stats else None,
            'current_setup': self.current_setup.to_dict() if self.current_setup else None,
            'error': self.error,
        }


# =============================================================================
# JOB
# =============================================================================

def scan_instrument(
    path: Path,
    ticker: str,
    timeframe: str,
    min_candles: int
) -> InstrumentResult:
    """
    Load one instrument's bars and run the scanner on them.

    Failures are logged and reported in the result, never raised.
    """
    ticker = ticker.upper()
    logger.info(f"Scanning {ticker} from {path}")

    try:
        df = load_bars(path)

        if len(df) < min_candles:
            logger.warning(f"{ticker}: insufficient data ({len(df)} bars, {min_candles} required)")
            return InstrumentResult(
                ticker=ticker, path=path, success=False, bars=len(df), error="Insufficient data"
            )

        logger.info(f"{ticker}: {len(df)} bars loaded")

        bars = bars_from_dataframe(df)
        indicators = compute_indicators([bar.close for bar in bars])

        signals = detect_all_setup123(ticker, bars, timeframe, indicators)
        stats = calculate_signal_stats(signals)
        current = detect_current_setup123(ticker, bars, timeframe, indicators, history=signals)

        if not signals:
            logger.info(f"{ticker}: no signals found")
        else:
            logger.info(f"{ticker}: {len(signals)} signals detected")
            logger.info(f"  - Take profit (success): {stats.success}")
            logger.info(f"  - Stop loss (failure): {stats.failure}")
            logger.info(f"  - Pending: {stats.pending}")
            logger.info(f"  - Expired: {stats.expired}")
            logger.info(
                f"{ticker}: success rate {stats.success_rate:.1f}% "
                f"({stats.success} TP / {stats.resolved} resolved)"
            )

        if current is not None:
            logger.info(
                f"{ticker}: current {current.setup_type} {current.state.value} - "
                f"entry {current.signal.entry_price:.2f}, stop {current.signal.stop_price:.2f}, "
                f"historical success rate {current.success_rate:.1f}%"
            )

        return InstrumentResult(
            ticker=ticker,
            path=path,
            success=True,
            bars=len(df),
            signals=signals,
            stats=stats,
            current_setup=current,
        )

    except Exception as e:
        logger.error(f"{ticker}: scan failed - {e}")
        return InstrumentResult(ticker=ticker, path=path, success=False, error=str(e))


def run_scan(
    paths: List[Path],
    timeframe: str,
    min_candles: int,
    ticker: Optional[str] = None
) -> List[InstrumentResult]:
    """Scan every file in order and log a final summary."""
    results: List[InstrumentResult] = []

    for i, path in enumerate(paths, start=1):
        name = ticker or path.stem
        logger.info(f"[{i}/{len(paths)}] Processing {name}")
        results.append(scan_instrument(path, name, timeframe, min_candles))

    _log_summary(results)
    return results


def _log_summary(results: List[InstrumentResult]) -> None:
    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]
    all_signals = [s for r in successful for s in r.signals]

    logger.info("=" * 60)
    logger.info("SCAN SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Instruments processed: {len(results)}")
    logger.info(f"Succeeded: {len(successful)}")
    logger.info(f"Failed: {len(failed)}")
    logger.info(f"Total signals detected: {len(all_signals)}")

    for result in failed:
        logger.warning(f"  - {result.ticker}: {result.error}")

    for direction, stats in stats_by_direction(all_signals).items():
        logger.info(
            f"{direction}: {stats.total} signals, success rate {stats.success_rate:.1f}%, "
            f"avg {stats.avg_candles_to_resolve:.1f} candles to resolve"
        )


def write_results(results: List[InstrumentResult], output: Path) -> None:
    """
    Write instrument summaries and all signals as JSON.

    Summaries are keyed by input file, so two files for the same ticker
    are both kept.
    """
    payload = {
        'instruments': {str(r.path): r.to_dict() for r in results},
        'signals': [s.to_dict() for r in results for s in r.signals],
    }
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w') as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Results written to {output}")


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Detect and resolve Setup 123 signals over OHLCV files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="CSV or parquet OHLCV files, one instrument per file"
    )
    parser.add_argument(
        "--ticker",
        help="Instrument name (single file only; defaults to the file name)"
    )
    parser.add_argument(
        "--timeframe", "-t",
        default=settings.scan.default_timeframe,
        help="Timeframe label"
    )
    parser.add_argument(
        "--min-candles",
        type=int,
        default=settings.scan.min_candles,
        help="Skip instruments with fewer bars"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write signals and statistics to this JSON file"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level"
    )
    parser.add_argument(
        "--no-log-files",
        action="store_true",
        help="Log to stderr only"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Also write every log record as JSON lines"
    )
    parser.add_argument(
        "--log-dir",
        default=settings.log_dir,
        help="Directory for log files"
    )

    args = parser.parse_args(argv)

    if args.ticker and len(args.files) > 1:
        parser.error("--ticker can only be used with a single file")

    setup_logging(
        log_level=args.log_level,
        log_dir=args.log_dir,
        enable_file=not args.no_log_files,
        enable_json=args.json_logs
    )

    results = run_scan(args.files, args.timeframe, args.min_candles, args.ticker)

    if args.output:
        write_results(results, args.output)

    if results and not any(r.success for r in results):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
