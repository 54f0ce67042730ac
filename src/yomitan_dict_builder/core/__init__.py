"""辞書ビルドのコア処理群.

- タグ表（設定表 → 不変の正規タグ表）
- 正規化（コーパスレコード → 中間表現）
- タグ後処理（生タグの解決と整列）
- 発音の統合（見出し語単位の重複排除）
"""

from .diagnostics import Diagnostics
from .exceptions import ConfigurationError, DictionaryBuildError, RecordError, SchemaConformanceError
from .merge import merge_entries, merge_pronunciations
from .normalize import normalize
from .postprocess import postprocess, postprocess_all, sort_tags
from .tag_table import CanonicalTag, TagTable, load_tag_table

__all__ = [
    "CanonicalTag",
    "ConfigurationError",
    "Diagnostics",
    "DictionaryBuildError",
    "RecordError",
    "SchemaConformanceError",
    "TagTable",
    "load_tag_table",
    "merge_entries",
    "merge_pronunciations",
    "normalize",
    "postprocess",
    "postprocess_all",
    "sort_tags",
]
