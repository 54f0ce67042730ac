"""builder_ci: リリース用の CI 統合レイヤ.

コーパスの取得、辞書の一括ビルド、リリースマニフェスト生成、公開を提供する。
"""

from builder_ci.fetcher import fetch_corpora, load_release_config
from builder_ci.manifest import (
    compare_revisions,
    create_release_manifest,
    load_release_manifest,
    should_publish,
    write_release_manifest,
)

__version__ = "0.1.0"

__all__ = [
    # fetcher
    "load_release_config",
    "fetch_corpora",
    # manifest
    "create_release_manifest",
    "write_release_manifest",
    "load_release_manifest",
    "compare_revisions",
    "should_publish",
]
