"""
Setup 123 Pattern Scanner
=========================
Historical detection of every 123 pattern in a bar series.

A 123 buy is a V in the lows (P2 below P1 and P3) inside an uptrend
(EMA 8 above EMA 80) with a positive MACD histogram at P3. A 123 sell
is the mirrored inverted V in the highs inside a downtrend with a
negative histogram.

Only one position is open at a time: a new pattern is considered only
after the previous one has been resolved by the trade resolver, or
right after P3 when its entry never filled.
"""

from typing import List, Optional, Sequence, Union

import pandas as pd
from loguru import logger

from setup123.core.models import Bar, Direction, Signal, SignalStatus
from setup123.data.loader import bars_from_dataframe
from setup123.detection.resolver import evaluate_signal, next_allowed_index
from setup123.utils.indicators import EMA_SLOW_PERIOD, IndicatorSeries, compute_indicators
from setup123.utils.logging import get_pattern_logger


# =============================================================================
# CONSTANTS
# =============================================================================

PATTERN_BARS = 3

# EMA 80 warm-up plus the pattern window
MIN_CANDLES = EMA_SLOW_PERIOD + PATTERN_BARS

# First P1 index with a defined EMA 80
SCAN_START_INDEX = EMA_SLOW_PERIOD - 1

# Target at 161.8% of the entry-to-stop distance
FIBONACCI_TARGET = 1.618


BarsInput = Union[Sequence[Bar], pd.DataFrame]


def detect_all_setup123(
    ticker: str,
    bars: BarsInput,
    timeframe: str = "1d",
    indicators: Optional[IndicatorSeries] = None
) -> List[Signal]:
    """
    Detect and resolve every 123 pattern in a bar series.

    Args:
        ticker: Instrument identifier
        bars: Bars in time order, as Bar records or an OHLCV DataFrame
        timeframe: Timeframe label stored on each signal
        indicators: Precomputed EMA 8 / EMA 80 / MACD histogram aligned
                    with `bars`. Computed from closes when omitted.

    Returns:
        Signals ordered by their P3 index. Empty when fewer than
        MIN_CANDLES bars are given.

    Raises:
        ValueError: If `indicators` is not aligned with `bars`.
    """
    bars = _normalize_bars(bars)
    n = len(bars)

    if n < MIN_CANDLES:
        logger.debug(f"{ticker}: {n} bars, at least {MIN_CANDLES} required - skipping scan")
        return []

    if indicators is None:
        indicators = compute_indicators([bar.close for bar in bars])
    indicators.validate(n)

    pattern_log = get_pattern_logger(ticker.upper(), timeframe)
    signals: List[Signal] = []
    next_allowed = 0

    for i in range(SCAN_START_INDEX, n - 2):
        if i < next_allowed:
            continue

        p3_index = i + 2
        ema_fast = indicators.at('ema_fast', p3_index)
        ema_slow = indicators.at('ema_slow', p3_index)
        if ema_fast is None or ema_slow is None:
            continue

        if _trend_agrees(Direction.BUY, ema_fast, ema_slow) and _matches_pattern(bars, i, Direction.BUY):
            direction = Direction.BUY
        elif _trend_agrees(Direction.SELL, ema_fast, ema_slow) and _matches_pattern(bars, i, Direction.SELL):
            direction = Direction.SELL
        else:
            continue

        # A shape without momentum confirmation ends this index, sell included
        if not _momentum_confirms(direction, indicators.at('macd_histogram', p3_index)):
            continue

        signal = _build_signal(ticker, timeframe, bars, i, direction)
        resolved_index = evaluate_signal(signal, bars, p3_index, direction)
        signals.append(signal)
        next_allowed = next_allowed_index(signal, resolved_index, n)

        pattern_log.info(
            f"{signal.setup_type} P3={p3_index} "
            f"entry={signal.entry_price:.4f} stop={signal.stop_price:.4f} "
            f"target={signal.target_price:.4f} -> {signal.status.value}"
        )

    pending = sum(1 for s in signals if s.status == SignalStatus.PENDING)
    logger.debug(f"{ticker}: scanned {n} bars, {len(signals)} signals ({pending} pending)")

    return signals


def _trend_agrees(direction: Direction, ema_fast: float, ema_slow: float) -> bool:
    if direction == Direction.BUY:
        return ema_fast > ema_slow
    return ema_fast < ema_slow


def _matches_pattern(bars: Sequence[Bar], p1_index: int, direction: Direction) -> bool:
    """V in the lows for a buy, inverted V in the highs for a sell."""
    c1, c2, c3 = bars[p1_index], bars[p1_index + 1], bars[p1_index + 2]
    if direction == Direction.BUY:
        return c2.low < c1.low and c3.low > c2.low
    return c2.high > c1.high and c3.high < c2.high


def _momentum_confirms(direction: Direction, histogram: Optional[float]) -> bool:
    """MACD histogram strictly on the side of the trade."""
    if histogram is None:
        return False
    if direction == Direction.BUY:
        return histogram > 0
    return histogram < 0


def _build_signal(
    ticker: str,
    timeframe: str,
    bars: Sequence[Bar],
    p1_index: int,
    direction: Direction
) -> Signal:
    """Create a pending signal with its entry, stop and target levels."""
    c1, c2, c3 = bars[p1_index], bars[p1_index + 1], bars[p1_index + 2]

    if direction == Direction.BUY:
        p1_price, p2_price, p3_price = c1.low, c2.low, c3.low
        entry_price = c3.high
        stop_price = c2.low
        target_price = entry_price + (entry_price - stop_price) * FIBONACCI_TARGET
    else:
        p1_price, p2_price, p3_price = c1.high, c2.high, c3.high
        entry_price = c3.low
        stop_price = c2.high
        target_price = entry_price - (stop_price - entry_price) * FIBONACCI_TARGET

    return Signal(
        ticker=ticker.upper(),
        direction=direction,
        timeframe=timeframe,
        signal_time=c3.time,
        p1_index=p1_index,
        p2_index=p1_index + 1,
        p3_index=p1_index + 2,
        p1_price=p1_price,
        p2_price=p2_price,
        p3_price=p3_price,
        entry_price=entry_price,
        stop_price=stop_price,
        target_price=target_price,
    )


def _normalize_bars(bars: BarsInput) -> List[Bar]:
    """
    Convert any supported bar input to a list of Bar records.

    Raises:
        ValueError: If the container or its items are not supported.
    """
    if isinstance(bars, pd.DataFrame):
        return bars_from_dataframe(bars)

    bars = list(bars)
    if bars and not isinstance(bars[0], Bar):
        raise ValueError(f"Unsupported bar type: {type(bars[0])}")
    return bars
