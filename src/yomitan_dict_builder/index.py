"""辞書 index（index.json）とリビジョン.

Yomitan の更新検出に使う4つのフィールド（revision, isUpdatable, indexUrl, downloadUrl）を生成します。

更新の流れ（Yomitan 側）:
    1. indexUrl から新しい index を取得
    2. 手元の revision と比較し、後の日付なら downloadUrl を記録
    3. ユーザーが更新を選ぶと downloadUrl を取得して置き換える

revision はビルド時刻ではなくコーパスのスナップショット日付から作る。
同じスナップショットからの再ビルドは同じ revision になる。
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from loguru import logger

from .config import ALL, DEFAULT_BASE_URL, BuildOptions, Flavor, Langs
from .core.exceptions import SchemaConformanceError

FORMAT_VERSION = 3
AUTHOR = "wty contributors"
PROJECT_URL = "https://github.com/daxida/kty"
DESCRIPTION = "Dictionaries for various language pairs generated from Wiktionary data, via Kaikki."
ATTRIBUTION = "https://kaikki.org/"

SNAPSHOT_SUFFIX = ".snapshot"


def revision_from_date(d: date) -> str:
    """スナップショット日付を revision 文字列にする（ドット区切り）.

    Examples:
        >>> revision_from_date(date(2026, 2, 22))
        '2026.02.22'
    """
    return f"{d.year:04d}.{d.month:02d}.{d.day:02d}"


def snapshot_sidecar(dataset_path: Path) -> Path:
    return dataset_path.with_name(dataset_path.name + SNAPSHOT_SUFFIX)


def _date_from_filename(path: Path) -> date | None:
    """ファイル名から日付を推定する.

    対応例:
      - en-extract_20260222.jsonl -> 2026-02-22
      - en-extract_260222.jsonl -> 2026-02-22
    """
    name = path.name.lower()
    m8 = re.search(r"_(\d{8})(?:\D|$)", name)
    if m8:
        ymd = m8.group(1)
        return date(int(ymd[:4]), int(ymd[4:6]), int(ymd[6:8]))

    m6 = re.search(r"_(\d{6})(?:\D|$)", name)
    if m6:
        ymd = m6.group(1)
        return date(2000 + int(ymd[:2]), int(ymd[2:4]), int(ymd[4:6]))

    return None


def infer_snapshot_date(path: Path | str) -> date:
    """コーパスのスナップショット日付.

    優先順位:
        1. fetcher が書く ``<dataset>.snapshot``（HTTP Last-Modified の ISO 日付）
        2. ファイル名の ``_YYYYMMDD`` / ``_YYMMDD``
        3. ファイルの mtime（UTC の日付）
    """
    path = Path(path)
    sidecar = snapshot_sidecar(path)
    if sidecar.exists():
        text = sidecar.read_text(encoding="utf-8").strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.warning(f"Ignoring malformed snapshot sidecar {sidecar}: {text!r}")

    from_name = _date_from_filename(path)
    if from_name is not None:
        return from_name

    return datetime.fromtimestamp(path.stat().st_mtime, tz=UTC).date()


def latest_snapshot_date(paths: Iterable[Path]) -> date:
    """複数のコーパスを読む辞書は最も新しいスナップショット日付を使う.

    Raises:
        ValueError: paths が空の場合
    """
    dates = [infer_snapshot_date(p) for p in paths]
    if not dates:
        raise ValueError("No dataset to infer a snapshot date from")
    return max(dates)


def index_url(name: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """index.json のコピーの配布URL."""
    return f"{base_url.rstrip('/')}/index/{name}-index.json?download=true"


def download_url(name: str, source: str, target: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """パッケージ（zip）の配布URL."""
    return f"{base_url.rstrip('/')}/dict/{target}/{source}/{name}.zip?download=true"


def _is_absolute_http_url(url: str | None) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


@dataclass(frozen=True)
class DictionaryIndex:
    title: str
    revision: str
    is_updatable: bool
    index_url: str | None
    download_url: str | None
    source_language: str | None
    target_language: str
    format: int = FORMAT_VERSION
    author: str = AUTHOR
    url: str = PROJECT_URL
    description: str = DESCRIPTION
    attribution: str = ATTRIBUTION
    sequenced: bool = True

    def __post_init__(self) -> None:
        if self.is_updatable and not (
            _is_absolute_http_url(self.index_url) and _is_absolute_http_url(self.download_url)
        ):
            raise SchemaConformanceError("index", "isUpdatable", self.title)

    def to_dict(self) -> dict[str, Any]:
        """index.json の内容（フィールド順は固定）."""
        data: dict[str, Any] = {
            "title": self.title,
            "format": self.format,
            "revision": self.revision,
            "sequenced": self.sequenced,
            "author": self.author,
            "url": self.url,
            "description": self.description,
            "attribution": self.attribution,
        }
        if self.source_language is not None:
            data["sourceLanguage"] = self.source_language
        data["targetLanguage"] = self.target_language
        data["isUpdatable"] = self.is_updatable
        if self.is_updatable:
            data["indexUrl"] = self.index_url
            data["downloadUrl"] = self.download_url
        return data


def build_index(
    name: str,
    flavor: Flavor | str,
    langs: Langs,
    snapshot: date,
    options: BuildOptions | None = None,
) -> DictionaryIndex:
    """実行オプションから DictionaryIndex を組み立てる.

    Args:
        name: 辞書名
        flavor: 辞書種別（ipa-merged は sourceLanguage を持たない）
        langs: 言語指定
        snapshot: コーパスのスナップショット日付
        options: 実行オプション（base_url, updatable）
    """
    options = options or BuildOptions()
    flavor = Flavor(flavor)
    source = None if flavor is Flavor.IPA_MERGED else langs.source
    path_source = ALL if source is None else source

    idx_url = dl_url = None
    if options.updatable:
        idx_url = index_url(name, options.base_url)
        dl_url = download_url(name, path_source, langs.target, options.base_url)

    return DictionaryIndex(
        title=name,
        revision=revision_from_date(snapshot),
        is_updatable=options.updatable,
        index_url=idx_url,
        download_url=dl_url,
        source_language=source,
        target_language=langs.target,
    )
