"""Signal aggregation and reporting helpers."""

from setup123.analysis.statistics import (
    calculate_signal_stats,
    group_signal_stats,
    signals_to_dataframe,
    stats_by_direction,
    stats_by_ticker,
)

__all__ = [
    "calculate_signal_stats",
    "group_signal_stats",
    "signals_to_dataframe",
    "stats_by_direction",
    "stats_by_ticker",
]
