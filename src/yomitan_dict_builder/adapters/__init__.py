"""辞書ビルド用のデータソースアダプタ群."""

from .base_adapter import BaseAdapter
from .jsonl_adapter import JsonlCorpusAdapter
from .tag_config_adapter import TagConfigAdapter

__all__ = [
    "BaseAdapter",
    "JsonlCorpusAdapter",
    "TagConfigAdapter",
]
