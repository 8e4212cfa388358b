"""Runtime configuration for the Setup 123 engine."""

from setup123.config.settings import ScanSettings, Settings, get_settings

__all__ = ["ScanSettings", "Settings", "get_settings"]
