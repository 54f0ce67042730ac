"""Adapter for the tag configuration tables.

Reads the order table (``{category: [tag, ...]}``) and the tag info table
(``[[tagName, category, sortingOrder, notes, popularityScore], ...]``) from
JSON files into Polars DataFrames.
"""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl

from yomitan_dict_builder.core.exceptions import ConfigurationError
from yomitan_dict_builder.core.tag_table import info_frame, order_frame

from .base_adapter import BaseAdapter


class TagConfigAdapter(BaseAdapter):
    """Adapter for the two tag configuration JSON files.

    Args:
        order_path: Path to the order table JSON
        info_path: Path to the tag info table JSON
    """

    def __init__(self, order_path: Path | str, info_path: Path | str) -> None:
        """Initialize adapter.

        Raises:
            FileNotFoundError: One of the JSON files does not exist
        """
        self.order_path = Path(order_path)
        self.info_path = Path(info_path)
        for path in (self.order_path, self.info_path):
            if not path.exists():
                raise FileNotFoundError(f"Tag configuration file not found: {path}")

    def _load_json(self, path: Path) -> object:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(path.name, f"invalid JSON ({e})") from e

    def read(self) -> dict[str, pl.DataFrame]:
        """Read both tables.

        Returns:
            ``{"order": order_df, "info": info_df}``

        Raises:
            ConfigurationError: Malformed table contents
        """
        order_df = order_frame(self._load_json(self.order_path))
        info_df = info_frame(self._load_json(self.info_path))
        frames = {"order": order_df, "info": info_df}
        for name, df in frames.items():
            if not self.validate(df):
                raise ConfigurationError(f"<{name} table>", "table is empty")
        return frames

    def validate(self, df: pl.DataFrame) -> bool:
        """Validate a DataFrame."""
        return not df.is_empty()

    def repair(self, df: pl.DataFrame) -> pl.DataFrame:
        """Repair data if needed (no-op for configuration tables)."""
        return df
