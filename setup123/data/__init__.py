"""Bar loading helpers."""

from setup123.data.loader import bars_from_dataframe, load_bars, normalize_columns

__all__ = ["bars_from_dataframe", "load_bars", "normalize_columns"]
