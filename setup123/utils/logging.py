"""
Logging Configuration for Setup 123 Engine
==========================================
loguru sinks for the scan job: console, a daily job log, an error log,
an optional JSON log and the pattern audit log.

Audit records are emitted through get_pattern_logger(ticker, timeframe);
the audit sink prints the bound instrument and timeframe in front of
every detected pattern, so one file covers a whole batch run.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from setup123.config.settings import get_settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

AUDIT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {extra[ticker]: <10} | {extra[timeframe]: <4} | {message}"


def _is_audit_record(record) -> bool:
    return record["extra"].get("pattern", False)


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    enable_file: bool = True,
    enable_json: bool = False
) -> None:
    """
    Configure logging for a scan run.

    Settings are read when this is called, never at import time, so the
    detection modules stay importable whatever the environment holds.

    Args:
        log_level: Logging level (default: SETUP123_LOG_LEVEL)
        log_dir: Directory for log files (default: SETUP123_LOG_DIR)
        enable_file: Write the job, error and pattern audit logs
        enable_json: Also write every record as JSON lines
    """
    cfg = get_settings()
    logger.remove()

    level = (log_level or cfg.log_level).upper()
    log_path = Path(log_dir or cfg.log_dir)

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=cfg.debug
    )

    if enable_file or enable_json:
        log_path.mkdir(parents=True, exist_ok=True)

    if enable_file:
        _add_file_sinks(log_path, level)

    if enable_json:
        # Serialized records keep the bound ticker/timeframe under "extra"
        logger.add(
            log_path / "scan_{time:YYYY-MM-DD}.json",
            level=level,
            serialize=True,
            rotation="00:00",
            retention="30 days"
        )

    logger.info(f"Logging initialized at {level} level")


def _add_file_sinks(log_path: Path, level: str) -> None:
    """Daily job log, long-lived error log and the pattern audit log."""
    logger.add(
        log_path / "setup123_{time:YYYY-MM-DD}.log",
        level=level,
        format=FILE_FORMAT,
        filter=lambda record: not _is_audit_record(record),
        rotation="00:00",
        retention="30 days",
        compression="gz"
    )

    logger.add(
        log_path / "errors_{time:YYYY-MM-DD}.log",
        level="ERROR",
        format=FILE_FORMAT + "\n{exception}",
        rotation="00:00",
        retention="90 days",
        compression="gz",
        backtrace=True,
        diagnose=True
    )

    logger.add(
        log_path / "patterns_{time:YYYY-MM-DD}.log",
        level="INFO",
        format=AUDIT_FORMAT,
        filter=_is_audit_record,
        rotation="00:00",
        retention="365 days"
    )


def get_pattern_logger(ticker: str, timeframe: str):
    """Logger bound to one instrument whose records go to the audit log."""
    return logger.bind(pattern=True, ticker=ticker, timeframe=timeframe)
