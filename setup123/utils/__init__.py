"""Utility modules for the Setup 123 engine."""

from setup123.utils.logging import setup_logging, get_pattern_logger
from setup123.utils.indicators import IndicatorSeries, compute_indicators, ema_series, macd_series

__all__ = [
    "setup_logging",
    "get_pattern_logger",
    "IndicatorSeries",
    "compute_indicators",
    "ema_series",
    "macd_series",
]
