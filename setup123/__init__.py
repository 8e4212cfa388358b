"""
Setup 123 Backtesting Engine
============================
Detection and trade-resolution backtesting for the three-pivot "123"
reversal pattern.

Modules:
    - core: Bar, Signal and statistics models
    - detection: Pattern scanner, trade resolver and live detector
    - analysis: Signal aggregation
    - utils: Indicators and logging
    - data: Bar loading helpers
    - config: Runtime settings
"""

__version__ = "0.1.0"
__author__ = "Setup123 Team"
