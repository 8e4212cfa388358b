"""
Core Module
===========
Fundamental data structures for the Setup 123 engine.

This module contains:
- models: Bar, Signal, LiveSetup, SignalStats dataclasses and their enums
"""

from setup123.core.models import (
    Bar,
    Direction,
    LiveSetup,
    SetupState,
    Signal,
    SignalStats,
    SignalStatus,
)

__all__ = [
    'Bar',
    'Direction',
    'LiveSetup',
    'SetupState',
    'Signal',
    'SignalStats',
    'SignalStatus',
]
