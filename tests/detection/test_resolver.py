"""
Unit Tests for the Trade Resolver
=================================
Entry trigger, stop/target ordering, horizon expiry and the scan cursor rule.
"""

from datetime import datetime, timedelta

import pytest

from setup123.core.models import Bar, Direction, Signal, SignalStatus
from setup123.detection.resolver import (
    MAX_CANDLES_TO_RESOLVE,
    evaluate_signal,
    next_allowed_index,
)


P3 = 2


def make_bars(n: int, high: float = 101.0, low: float = 100.0):
    """Flat bars that never reach the default stop or target."""
    start = datetime(2024, 1, 1)
    return [
        Bar(time=start + timedelta(days=i), open=100.5, high=high, low=low, close=100.5, volume=1000)
        for i in range(n)
    ]


def set_bar(bars, idx, **levels):
    old = bars[idx]
    bars[idx] = Bar(
        time=old.time,
        open=levels.get('open', old.open),
        high=levels.get('high', old.high),
        low=levels.get('low', old.low),
        close=levels.get('close', old.close),
        volume=old.volume,
    )


def make_signal(direction: Direction = Direction.BUY) -> Signal:
    if direction == Direction.BUY:
        entry, stop, target = 101.0, 99.0, 104.0
    else:
        entry, stop, target = 100.0, 102.0, 97.0
    return Signal(
        ticker="TEST",
        direction=direction,
        timeframe="1d",
        signal_time=datetime(2024, 1, 3),
        p1_index=0,
        p2_index=1,
        p3_index=P3,
        p1_price=0.0,
        p2_price=stop,
        p3_price=0.0,
        entry_price=entry,
        stop_price=stop,
        target_price=target,
    )


class TestEntryTrigger:
    """Entry fill on the bar right after P3."""

    def test_no_bar_after_p3_stays_pending(self):
        """Test a pattern on the last bar stays pending."""
        bars = make_bars(P3 + 1)
        signal = make_signal()

        assert evaluate_signal(signal, bars, P3, Direction.BUY) is None
        assert signal.status == SignalStatus.PENDING
        assert signal.resolved_at is None
        assert signal.candles_to_resolve is None

    def test_buy_not_triggered_expires_on_next_bar(self):
        """Test an unfilled buy expires on the next bar."""
        bars = make_bars(10, high=100.9)
        signal = make_signal()

        idx = evaluate_signal(signal, bars, P3, Direction.BUY)

        assert idx == P3 + 1
        assert signal.status == SignalStatus.EXPIRED
        assert signal.candles_to_resolve == 1
        assert signal.resolved_at == bars[P3 + 1].time
        assert signal.resolved_price is None

    def test_sell_not_triggered_expires(self):
        """Test an unfilled sell expires on the next bar."""
        bars = make_bars(10, high=101.0, low=100.1)
        signal = make_signal(Direction.SELL)

        idx = evaluate_signal(signal, bars, P3, Direction.SELL)

        assert idx == P3 + 1
        assert signal.status == SignalStatus.EXPIRED
        assert signal.candles_to_resolve == 1

    def test_touching_entry_exactly_fills(self):
        """Test a high equal to the entry fills the buy."""
        # Flat bars have high == entry: filled, then never resolved
        bars = make_bars(10)
        signal = make_signal()

        assert evaluate_signal(signal, bars, P3, Direction.BUY) is None
        assert signal.status == SignalStatus.PENDING

    def test_touching_target_exactly_succeeds(self):
        """Test a high equal to the target succeeds."""
        bars = make_bars(10)
        set_bar(bars, P3 + 1, high=104.0)
        signal = make_signal()

        evaluate_signal(signal, bars, P3, Direction.BUY)

        assert signal.status == SignalStatus.SUCCESS

    def test_trigger_only_checked_on_first_bar(self):
        """Test a later breakout does not fill an expired entry."""
        bars = make_bars(80, high=100.5)
        set_bar(bars, P3 + 2, high=110.0)
        signal = make_signal()

        evaluate_signal(signal, bars, P3, Direction.BUY)

        assert signal.status == SignalStatus.EXPIRED
        assert signal.candles_to_resolve == 1


class TestStopAndTarget:
    """Outcome of a filled trade."""

    def test_entry_bar_hits_target(self):
        """Test target reached on the entry bar."""
        bars = make_bars(10)
        set_bar(bars, P3 + 1, high=105.0)
        signal = make_signal()

        idx = evaluate_signal(signal, bars, P3, Direction.BUY)

        assert idx == P3 + 1
        assert signal.status == SignalStatus.SUCCESS
        assert signal.resolved_price == signal.target_price
        assert signal.candles_to_resolve == 1
        assert signal.resolved_at == bars[P3 + 1].time

    def test_later_bar_hits_stop(self):
        """Test stop reached on a later bar."""
        bars = make_bars(20)
        set_bar(bars, P3 + 5, low=98.0)
        signal = make_signal()

        idx = evaluate_signal(signal, bars, P3, Direction.BUY)

        assert idx == P3 + 5
        assert signal.status == SignalStatus.FAILURE
        assert signal.resolved_price == signal.stop_price
        assert signal.candles_to_resolve == 5

    def test_buy_stop_wins_tie(self):
        """Test stop wins when a buy bar spans stop and target."""
        bars = make_bars(10)
        set_bar(bars, P3 + 1, high=110.0, low=90.0)
        signal = make_signal()

        evaluate_signal(signal, bars, P3, Direction.BUY)

        assert signal.status == SignalStatus.FAILURE
        assert signal.resolved_price == 99.0

    def test_sell_stop_wins_tie(self):
        """Test stop wins when a sell bar spans stop and target."""
        bars = make_bars(10)
        set_bar(bars, P3 + 3, high=103.0, low=95.0)
        signal = make_signal(Direction.SELL)

        idx = evaluate_signal(signal, bars, P3, Direction.SELL)

        assert idx == P3 + 3
        assert signal.status == SignalStatus.FAILURE
        assert signal.resolved_price == 102.0
        assert signal.candles_to_resolve == 3

    def test_sell_target(self):
        """Test a sell reaching its target."""
        bars = make_bars(10)
        set_bar(bars, P3 + 2, low=96.5)
        signal = make_signal(Direction.SELL)

        evaluate_signal(signal, bars, P3, Direction.SELL)

        assert signal.status == SignalStatus.SUCCESS
        assert signal.resolved_price == 97.0
        assert signal.candles_to_resolve == 2

    def test_resolution_never_moves_trade_levels(self):
        """Test entry, stop and target are left untouched."""
        bars = make_bars(10)
        set_bar(bars, P3 + 1, high=120.0)
        signal = make_signal()

        evaluate_signal(signal, bars, P3, Direction.BUY)

        assert (signal.entry_price, signal.stop_price, signal.target_price) == (101.0, 99.0, 104.0)


class TestHorizon:
    """Expiry after MAX_CANDLES_TO_RESOLVE bars."""

    def test_expires_when_data_extends_past_horizon(self):
        """Test expiry after the horizon bar."""
        horizon = P3 + 1 + MAX_CANDLES_TO_RESOLVE
        bars = make_bars(horizon + 1)
        signal = make_signal()

        idx = evaluate_signal(signal, bars, P3, Direction.BUY)

        assert idx == horizon
        assert signal.status == SignalStatus.EXPIRED
        assert signal.candles_to_resolve == MAX_CANDLES_TO_RESOLVE
        assert signal.resolved_price is None

    def test_pending_when_data_ends_before_horizon(self):
        """Test a filled trade stays pending when data runs out."""
        horizon = P3 + 1 + MAX_CANDLES_TO_RESOLVE
        bars = make_bars(horizon)
        signal = make_signal()

        assert evaluate_signal(signal, bars, P3, Direction.BUY) is None
        assert signal.status == SignalStatus.PENDING
        assert signal.candles_to_resolve is None

    def test_target_on_horizon_bar_still_counts(self):
        """Test a hit on the horizon bar resolves the trade."""
        horizon = P3 + 1 + MAX_CANDLES_TO_RESOLVE
        bars = make_bars(horizon + 5)
        set_bar(bars, horizon, high=104.5)
        signal = make_signal()

        idx = evaluate_signal(signal, bars, P3, Direction.BUY)

        assert idx == horizon
        assert signal.status == SignalStatus.SUCCESS
        assert signal.candles_to_resolve == MAX_CANDLES_TO_RESOLVE + 1

    def test_target_after_horizon_ignored(self):
        """Test hits after the horizon are ignored."""
        horizon = P3 + 1 + MAX_CANDLES_TO_RESOLVE
        bars = make_bars(horizon + 5)
        set_bar(bars, horizon + 1, high=104.5)
        signal = make_signal()

        evaluate_signal(signal, bars, P3, Direction.BUY)

        assert signal.status == SignalStatus.EXPIRED


class TestNextAllowedIndex:
    """Cursor rule used by the scanner."""

    def test_unfilled_frees_after_p3(self):
        """Test an unfilled entry frees the bar after P3."""
        signal = make_signal()
        signal.status = SignalStatus.EXPIRED
        signal.candles_to_resolve = 1

        assert next_allowed_index(signal, P3 + 1, 100) == P3 + 1

    def test_closed_frees_after_close_bar(self):
        """Test a closed trade frees the bar after its close."""
        signal = make_signal()
        signal.status = SignalStatus.FAILURE
        signal.candles_to_resolve = 7

        assert next_allowed_index(signal, P3 + 7, 100) == P3 + 8

    def test_horizon_expiry_frees_after_horizon(self):
        """Test a horizon expiry frees the bar after the horizon."""
        signal = make_signal()
        signal.status = SignalStatus.EXPIRED
        signal.candles_to_resolve = MAX_CANDLES_TO_RESOLVE
        horizon = P3 + 1 + MAX_CANDLES_TO_RESOLVE

        assert next_allowed_index(signal, horizon, 100) == horizon + 1

    @pytest.mark.parametrize("bar_count", [5, 83, 500])
    def test_pending_blocks_rest_of_scan(self, bar_count):
        """Test an open trade blocks the rest of the scan."""
        signal = make_signal()

        assert next_allowed_index(signal, None, bar_count) == bar_count
