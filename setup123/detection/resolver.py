"""
Trade Resolver
==============
Forward simulation of the trade implied by a 123 signal.

Rules:
1. The entry fills only if the bar right after P3 breaks the entry level
   (buy: high >= entry, sell: low <= entry). Otherwise the setup expires
   unfilled on that bar.
2. Once filled, bars are checked from the entry bar on, stop before
   target: when both levels fall inside one bar the stop is assumed hit
   first. Exits fill exactly at the planned level.
3. A filled trade still open MAX_CANDLES_TO_RESOLVE bars after entry
   expires, provided the data extends past that horizon.
4. Anything else stays pending.
"""

from typing import Optional, Sequence

from setup123.core.models import Bar, Direction, Signal, SignalStatus


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_CANDLES_TO_RESOLVE = 50


def evaluate_signal(
    signal: Signal,
    bars: Sequence[Bar],
    p3_index: int,
    direction: Direction
) -> Optional[int]:
    """
    Resolve a freshly built signal against the bars that follow P3.

    Sets status, resolved_at, resolved_price and candles_to_resolve on
    the signal in place.

    Args:
        signal: Pending signal
        bars: Full bar sequence
        p3_index: Index of the P3 bar
        direction: Trade direction

    Returns:
        Index of the bar where the position closed, or None while pending
    """
    entry_index = p3_index + 1
    if entry_index >= len(bars):
        return None

    entry_bar = bars[entry_index]
    is_buy = direction == Direction.BUY

    if is_buy:
        triggered = entry_bar.high >= signal.entry_price
    else:
        triggered = entry_bar.low <= signal.entry_price

    if not triggered:
        signal.status = SignalStatus.EXPIRED
        signal.resolved_at = entry_bar.time
        signal.candles_to_resolve = 1
        return entry_index

    horizon_index = entry_index + MAX_CANDLES_TO_RESOLVE
    last_index = min(len(bars) - 1, horizon_index)

    # The entry bar itself may already reach the stop or the target
    for j in range(entry_index, last_index + 1):
        bar = bars[j]

        if is_buy:
            stop_hit = bar.low <= signal.stop_price
            target_hit = bar.high >= signal.target_price
        else:
            stop_hit = bar.high >= signal.stop_price
            target_hit = bar.low <= signal.target_price

        if stop_hit:
            _close(signal, SignalStatus.FAILURE, bar, signal.stop_price, j - p3_index)
            return j
        if target_hit:
            _close(signal, SignalStatus.SUCCESS, bar, signal.target_price, j - p3_index)
            return j

    if len(bars) > horizon_index:
        signal.status = SignalStatus.EXPIRED
        signal.candles_to_resolve = MAX_CANDLES_TO_RESOLVE
        return horizon_index

    return None


def next_allowed_index(
    signal: Signal,
    resolved_index: Optional[int],
    bar_count: int
) -> int:
    """
    First P1 index at which the scanner may open a new position.

    An unfilled setup frees the scan right after P3. A closed position
    frees it after the closing bar. A position still open at the end of
    the data blocks the rest of the scan.
    """
    if signal.status == SignalStatus.EXPIRED and signal.candles_to_resolve == 1:
        return signal.p3_index + 1
    if resolved_index is not None:
        return resolved_index + 1
    return bar_count


def _close(
    signal: Signal,
    status: SignalStatus,
    bar: Bar,
    price: float,
    candles: int
) -> None:
    signal.status = status
    signal.resolved_at = bar.time
    signal.resolved_price = price
    signal.candles_to_resolve = candles
