"""
Data Models for Setup 123 Engine
================================
Dataclasses shared by the scanner, the resolver and the aggregator.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

import pandas as pd


BarTime = Union[str, datetime, pd.Timestamp]


class Direction(str, Enum):
    """Trade direction implied by a 123 pattern."""
    BUY = "buy"
    SELL = "sell"


class SignalStatus(str, Enum):
    """Signal lifecycle status."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not SignalStatus.PENDING


class SetupState(str, Enum):
    """Where the last close stands against the most recent pattern."""
    ACTIVE = "active"            # beyond the entry
    FORMING = "forming"          # between stop and entry
    INVALIDATED = "invalidated"  # beyond the stop


@dataclass(frozen=True)
class Bar:
    """OHLCV price bar."""
    time: BarTime
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


def _format_time(value: Optional[BarTime]) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


@dataclass
class Signal:
    """
    A detected 123 pattern and the outcome of the trade it implies.

    Entry, stop and target are set once by the scanner. The resolver only
    fills the status and resolution fields.
    """
    ticker: str
    direction: Direction
    timeframe: str
    signal_time: BarTime

    # Pivot points
    p1_index: int
    p2_index: int
    p3_index: int
    p1_price: float
    p2_price: float
    p3_price: float

    # Trade levels
    entry_price: float
    stop_price: float
    target_price: float

    # Resolution
    status: SignalStatus = SignalStatus.PENDING
    resolved_at: Optional[BarTime] = None
    resolved_price: Optional[float] = None
    candles_to_resolve: Optional[int] = None

    @property
    def setup_type(self) -> str:
        return f"123-{self.direction.value}"

    @property
    def is_resolved(self) -> bool:
        return self.status.is_terminal

    @property
    def risk(self) -> float:
        """Entry-to-stop distance in price units."""
        return abs(self.entry_price - self.stop_price)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'ticker': self.ticker,
            'setup_type': self.setup_type,
            'direction': self.direction.value,
            'timeframe': self.timeframe,
            'signal_time': _format_time(self.signal_time),
            'p1_index': self.p1_index,
            'p2_index': self.p2_index,
            'p3_index': self.p3_index,
            'p1_price': self.p1_price,
            'p2_price': self.p2_price,
            'p3_price': self.p3_price,
            'entry_price': self.entry_price,
            'stop_price': self.stop_price,
            'target_price': self.target_price,
            'status': self.status.value,
            'resolved_at': _format_time(self.resolved_at),
            'resolved_price': self.resolved_price,
            'candles_to_resolve': self.candles_to_resolve,
        }


@dataclass
class LiveSetup:
    """
    The most recent 123 pattern on a bar series, seen from its last bar.

    `signal` carries the pivots and levels exactly as the historical scan
    would build them; it is never resolved here.
    """
    signal: Signal
    state: SetupState
    last_price: float
    last_time: BarTime
    success_rate: float = 0.0  # historical, same setup type, percent

    @property
    def setup_type(self) -> str:
        return self.signal.setup_type

    @property
    def first_target(self) -> float:
        """One risk unit beyond the entry."""
        if self.signal.direction == Direction.BUY:
            return self.signal.entry_price + self.signal.risk
        return self.signal.entry_price - self.signal.risk

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ticker': self.signal.ticker,
            'setup_type': self.setup_type,
            'timeframe': self.signal.timeframe,
            'state': self.state.value,
            'last_price': self.last_price,
            'last_time': _format_time(self.last_time),
            'p1_index': self.signal.p1_index,
            'p2_index': self.signal.p2_index,
            'p3_index': self.signal.p3_index,
            'entry_price': self.signal.entry_price,
            'stop_price': self.signal.stop_price,
            'first_target': self.first_target,
            'target_price': self.signal.target_price,
            'success_rate': self.success_rate,
        }


@dataclass
class SignalStats:
    """Aggregate outcome counts over a list of signals."""
    total: int = 0
    success: int = 0
    failure: int = 0
    pending: int = 0
    expired: int = 0
    success_rate: float = 0.0
    avg_candles_to_resolve: float = 0.0

    @property
    def resolved(self) -> int:
        """Signals that reached the stop or the target."""
        return self.success + self.failure

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'success': self.success,
            'failure': self.failure,
            'pending': self.pending,
            'expired': self.expired,
            'success_rate': self.success_rate,
            'avg_candles_to_resolve': self.avg_candles_to_resolve,
        }
