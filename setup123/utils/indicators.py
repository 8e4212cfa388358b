"""
Technical Indicators for Setup 123 Engine
=========================================
Reference indicator provider for the scanner: EMA trend filter and
MACD histogram momentum filter.

Every series is length-preserving. Positions that cannot be computed
yet (warm-up) hold NaN.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray


# =============================================================================
# CONSTANTS
# =============================================================================

EMA_FAST_PERIOD = 8
EMA_SLOW_PERIOD = 80

MACD_FAST_PERIOD = 12
MACD_SLOW_PERIOD = 26
MACD_SIGNAL_PERIOD = 9


# =============================================================================
# MOVING AVERAGES
# =============================================================================

def ema_series(period: int, values: Sequence[float]) -> NDArray[np.float64]:
    """
    Calculate Exponential Moving Average for a series.

    EMA = (value - EMA_prev) * k + EMA_prev, k = 2 / (period + 1),
    seeded with the simple mean of the first `period` values.

    Args:
        period: EMA period
        values: Input values (e.g. closes)

    Returns:
        Array of EMA values, NaN for the first period - 1 entries
    """
    n = len(values)
    result = np.full(n, np.nan)

    if period <= 0 or n < period:
        return result

    k = 2 / (period + 1)

    # Seed: left-to-right sum keeps results reproducible across platforms
    total = 0.0
    for value in values[:period]:
        total += float(value)
    ema = total / period
    result[period - 1] = ema

    for i in range(period, n):
        ema = (float(values[i]) - ema) * k + ema
        result[i] = ema

    return result


def macd_series(
    values: Sequence[float],
    fast_period: int = MACD_FAST_PERIOD,
    slow_period: int = MACD_SLOW_PERIOD,
    signal_period: int = MACD_SIGNAL_PERIOD
) -> pd.DataFrame:
    """
    Calculate MACD line, signal line and histogram.

    MACD Line = EMA(fast) - EMA(slow)
    Signal Line = EMA(signal) of the available MACD values
    Histogram = MACD Line - Signal Line

    Args:
        values: Input values (e.g. closes)
        fast_period: Fast EMA period (default: 12)
        slow_period: Slow EMA period (default: 26)
        signal_period: Signal EMA period (default: 9)

    Returns:
        DataFrame with columns [macd, signal, histogram], one row per value
    """
    n = len(values)
    empty = np.full(n, np.nan)

    if n < slow_period:
        return pd.DataFrame({'macd': empty, 'signal': empty.copy(), 'histogram': empty.copy()})

    ema_fast = ema_series(fast_period, values)
    ema_slow = ema_series(slow_period, values)

    # NaN propagates where either EMA is still warming up
    macd_line = ema_fast - ema_slow

    # Signal line is computed over the compacted MACD values and mapped back
    available = ~np.isnan(macd_line)
    signal_line = np.full(n, np.nan)
    signal_line[available] = ema_series(signal_period, macd_line[available])

    histogram = macd_line - signal_line

    return pd.DataFrame({
        'macd': macd_line,
        'signal': signal_line,
        'histogram': histogram,
    })


# =============================================================================
# INDICATOR BUNDLE
# =============================================================================

@dataclass
class IndicatorSeries:
    """
    Index-aligned indicator values consumed by the scanner.

    Each entry is a number or a not-available marker (None or NaN).
    """
    ema_fast: Sequence[Optional[float]]
    ema_slow: Sequence[Optional[float]]
    macd_histogram: Sequence[Optional[float]]

    def validate(self, length: int) -> None:
        """
        Check that every series is aligned with a bar sequence.

        Raises:
            ValueError: If a series length differs from `length`.
        """
        for name in ('ema_fast', 'ema_slow', 'macd_histogram'):
            size = len(getattr(self, name))
            if size != length:
                raise ValueError(
                    f"Indicator series '{name}' has {size} values, expected {length}"
                )

    def at(self, series: str, index: int) -> Optional[float]:
        """Value of a series at `index`, or None while warming up."""
        value = getattr(self, series)[index]
        if value is None or pd.isna(value):
            return None
        return float(value)


def compute_indicators(closes: Sequence[float]) -> IndicatorSeries:
    """
    Build the scanner's indicator bundle from close prices.

    Args:
        closes: Close prices in bar order

    Returns:
        IndicatorSeries with EMA 8, EMA 80 and the MACD 12/26/9 histogram
    """
    macd = macd_series(closes, MACD_FAST_PERIOD, MACD_SLOW_PERIOD, MACD_SIGNAL_PERIOD)

    return IndicatorSeries(
        ema_fast=ema_series(EMA_FAST_PERIOD, closes),
        ema_slow=ema_series(EMA_SLOW_PERIOD, closes),
        macd_histogram=macd['histogram'].to_numpy(),
    )
