"""
Bar Loading Utility for Setup 123 Engine
========================================
Reads OHLCV files into DataFrames and converts them into the
Bar records the scanner consumes.
"""

from pathlib import Path
from typing import List, Union

import pandas as pd
from loguru import logger

from setup123.core.models import Bar


# =============================================================================
# CONSTANTS
# =============================================================================

REQUIRED_COLUMNS = ['time', 'open', 'high', 'low', 'close', 'volume']

COLUMN_ALIASES = {
    'timestamp': 'time',
    'date': 'time',
    'datetime': 'time',
}


# =============================================================================
# PUBLIC API
# =============================================================================

def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize OHLCV column names.

    Args:
        df: Raw OHLCV DataFrame

    Returns:
        Copy of the DataFrame with lower-case columns and a 'time' column

    Raises:
        ValueError: If required columns are missing
    """
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns=COLUMN_ALIASES)

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    return df


def load_bars(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load an OHLCV file sorted by time.

    Args:
        path: CSV or parquet file

    Returns:
        DataFrame with columns: time, open, high, low, close, volume

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or columns are missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bar file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.csv':
        df = pd.read_csv(path)
    elif suffix == '.parquet':
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported bar file format: {suffix}")

    df = normalize_columns(df)
    df['time'] = pd.to_datetime(df['time'])
    df = df.sort_values('time', kind='mergesort').reset_index(drop=True)

    logger.debug(f"Loaded {len(df)} bars from {path}")
    return df[REQUIRED_COLUMNS]


def bars_from_dataframe(df: pd.DataFrame) -> List[Bar]:
    """
    Convert an OHLCV DataFrame to Bar records, preserving row order.

    Args:
        df: DataFrame with (aliasable) OHLCV columns

    Returns:
        List of Bar instances
    """
    df = normalize_columns(df)

    return [
        Bar(
            time=row.time,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
        )
        for row in df[REQUIRED_COLUMNS].itertuples(index=False)
    ]
