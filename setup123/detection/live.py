"""
Live Setup 123 Detection
========================
The most recent 123 pattern on a bar series and where the last close
stands against it.

The search walks back from the last bar over at most LOOKBACK_BARS bars.
The direction of the current EMA 8 / EMA 80 trend is searched first; the
opposite direction only when nothing matched. Each candidate must pass
the same trend and MACD gates at its P3 as in the historical scan.

The historical success rate of the same setup type is attached, so the
caller sees how this pattern has played out on the instrument.
"""

from typing import List, Optional, Sequence

from loguru import logger

from setup123.analysis.statistics import calculate_signal_stats
from setup123.core.models import Bar, Direction, LiveSetup, SetupState, Signal
from setup123.detection.scanner import (
    BarsInput,
    _build_signal,
    _matches_pattern,
    _momentum_confirms,
    _normalize_bars,
    _trend_agrees,
    detect_all_setup123,
)
from setup123.utils.indicators import EMA_SLOW_PERIOD, IndicatorSeries, compute_indicators


LOOKBACK_BARS = 100


def detect_current_setup123(
    ticker: str,
    bars: BarsInput,
    timeframe: str = "1d",
    indicators: Optional[IndicatorSeries] = None,
    history: Optional[Sequence[Signal]] = None
) -> Optional[LiveSetup]:
    """
    Find the most recent confirmed 123 pattern and its current state.

    Args:
        ticker: Instrument identifier
        bars: Bars in time order, as Bar records or an OHLCV DataFrame
        timeframe: Timeframe label
        indicators: Precomputed indicator bundle aligned with `bars`
        history: Historical signals of the instrument used for the success
                 rate. Scanned from `bars` when omitted.

    Returns:
        LiveSetup, or None when the current trend is undefined or no
        pattern passes the gates within the lookback.
    """
    bars = _normalize_bars(bars)
    n = len(bars)

    if n < EMA_SLOW_PERIOD:
        return None

    if indicators is None:
        indicators = compute_indicators([bar.close for bar in bars])
    indicators.validate(n)

    last = n - 1
    ema_fast = indicators.at('ema_fast', last)
    ema_slow = indicators.at('ema_slow', last)
    if ema_fast is None or ema_slow is None:
        return None

    preferred = Direction.BUY if ema_fast > ema_slow else Direction.SELL
    alternate = Direction.SELL if preferred == Direction.BUY else Direction.BUY

    direction = preferred
    p1_index = _find_recent_pattern(bars, indicators, preferred)
    if p1_index is None:
        direction = alternate
        p1_index = _find_recent_pattern(bars, indicators, alternate)
    if p1_index is None:
        logger.debug(f"{ticker}: no 123 pattern in the last {LOOKBACK_BARS} bars")
        return None

    signal = _build_signal(ticker, timeframe, bars, p1_index, direction)
    last_price = bars[last].close

    if history is None:
        history = detect_all_setup123(ticker, bars, timeframe, indicators)
    same_type = [s for s in history if s.setup_type == signal.setup_type]

    setup = LiveSetup(
        signal=signal,
        state=setup_state(signal, last_price),
        last_price=last_price,
        last_time=bars[last].time,
        success_rate=calculate_signal_stats(same_type).success_rate,
    )

    logger.debug(
        f"{signal.ticker}: {setup.setup_type} at P3={signal.p3_index} is {setup.state.value} "
        f"(close {last_price:.4f}, entry {signal.entry_price:.4f}, stop {signal.stop_price:.4f})"
    )
    return setup


def setup_state(signal: Signal, price: float) -> SetupState:
    """Classify a price against the signal's entry and stop."""
    if signal.direction == Direction.BUY:
        if price < signal.stop_price:
            return SetupState.INVALIDATED
        if price > signal.entry_price:
            return SetupState.ACTIVE
        return SetupState.FORMING

    if price > signal.stop_price:
        return SetupState.INVALIDATED
    if price < signal.entry_price:
        return SetupState.ACTIVE
    return SetupState.FORMING


def _find_recent_pattern(
    bars: List[Bar],
    indicators: IndicatorSeries,
    direction: Direction
) -> Optional[int]:
    """P1 index of the newest pattern in `direction` passing both gates."""
    last = len(bars) - 1
    start = max(0, last - LOOKBACK_BARS)

    for i in range(last - 2, start - 1, -1):
        p3_index = i + 2
        ema_fast = indicators.at('ema_fast', p3_index)
        ema_slow = indicators.at('ema_slow', p3_index)
        if ema_fast is None or ema_slow is None:
            continue

        if not _trend_agrees(direction, ema_fast, ema_slow):
            continue
        if not _matches_pattern(bars, i, direction):
            continue
        # Vetoed patterns are skipped, the search goes on to older bars
        if not _momentum_confirms(direction, indicators.at('macd_histogram', p3_index)):
            continue

        return i

    return None
