"""
Setup 123 Detection Module
==========================
Pattern scanner, trade resolver and live detector.

Submodules:
    - scanner: Historical 123 pattern detection
    - resolver: Entry, stop, target and horizon resolution
    - live: Most recent 123 pattern and its current state
"""

from setup123.detection.resolver import MAX_CANDLES_TO_RESOLVE, evaluate_signal, next_allowed_index
from setup123.detection.scanner import FIBONACCI_TARGET, MIN_CANDLES, detect_all_setup123
from setup123.detection.live import LOOKBACK_BARS, detect_current_setup123, setup_state

__all__ = [
    "FIBONACCI_TARGET",
    "LOOKBACK_BARS",
    "MAX_CANDLES_TO_RESOLVE",
    "MIN_CANDLES",
    "detect_all_setup123",
    "detect_current_setup123",
    "evaluate_signal",
    "next_allowed_index",
    "setup_state",
]
