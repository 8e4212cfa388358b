"""
Signal Statistics
=================
Outcome aggregation over resolved 123 signals.

Success rate only counts signals that reached the stop or the target:
expired and pending signals never had a filled outcome to judge.
"""

from typing import Callable, Dict, Iterable, List

import pandas as pd

from setup123.core.models import Signal, SignalStats, SignalStatus


def calculate_signal_stats(signals: Iterable[Signal]) -> SignalStats:
    """
    Aggregate status counts and rates over a list of signals.

    Args:
        signals: Signals to aggregate (any subset)

    Returns:
        SignalStats with success_rate in percent
    """
    stats = SignalStats()

    total_candles = 0
    with_candles = 0

    for signal in signals:
        stats.total += 1

        if signal.status == SignalStatus.SUCCESS:
            stats.success += 1
        elif signal.status == SignalStatus.FAILURE:
            stats.failure += 1
        elif signal.status == SignalStatus.EXPIRED:
            stats.expired += 1
        else:
            stats.pending += 1

        if signal.candles_to_resolve is not None:
            total_candles += signal.candles_to_resolve
            with_candles += 1

    resolved = stats.success + stats.failure
    stats.success_rate = (stats.success / resolved) * 100 if resolved > 0 else 0.0
    stats.avg_candles_to_resolve = total_candles / with_candles if with_candles > 0 else 0.0

    return stats


def group_signal_stats(
    signals: Iterable[Signal],
    key: Callable[[Signal], str]
) -> Dict[str, SignalStats]:
    """
    Aggregate statistics per group.

    Args:
        signals: Signals to aggregate
        key: Function returning the group label of a signal

    Returns:
        Mapping of group label to SignalStats, in first-seen order
    """
    groups: Dict[str, List[Signal]] = {}
    for signal in signals:
        groups.setdefault(key(signal), []).append(signal)

    return {label: calculate_signal_stats(members) for label, members in groups.items()}


def stats_by_direction(signals: Iterable[Signal]) -> Dict[str, SignalStats]:
    """Statistics per trade direction ('buy' / 'sell')."""
    return group_signal_stats(signals, lambda s: s.direction.value)


def stats_by_ticker(signals: Iterable[Signal]) -> Dict[str, SignalStats]:
    """Statistics per instrument."""
    return group_signal_stats(signals, lambda s: s.ticker)


def signals_to_dataframe(signals: Iterable[Signal]) -> pd.DataFrame:
    """
    Flatten signals into a DataFrame for reporting.

    Returns:
        One row per signal with the Signal.to_dict() columns
    """
    rows = [signal.to_dict() for signal in signals]
    if not rows:
        return pd.DataFrame(columns=_SIGNAL_COLUMNS)
    return pd.DataFrame(rows, columns=_SIGNAL_COLUMNS)


_SIGNAL_COLUMNS = [
    'ticker', 'setup_type', 'direction', 'timeframe', 'signal_time',
    'p1_index', 'p2_index', 'p3_index', 'p1_price', 'p2_price', 'p3_price',
    'entry_price', 'stop_price', 'target_price',
    'status', 'resolved_at', 'resolved_price', 'candles_to_resolve',
]
