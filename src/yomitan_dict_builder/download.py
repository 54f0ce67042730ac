"""kaikki.org からの抽出データ取得.

エディション全体の ``raw-wiktextract-data.jsonl.gz`` を取得し、サーバーの
Last-Modified をスナップショット日付として ``<dataset>.snapshot`` に書く。
辞書の revision はこの日付から決まる（index.infer_snapshot_date）。
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from email.utils import parsedate_to_datetime
from pathlib import Path

import httpx
from loguru import logger

from .index import snapshot_sidecar

KAIKKI_BASE_URL = "https://kaikki.org"
KAIKKI_FILENAME = "raw-wiktextract-data.jsonl.gz"
CHUNK_SIZE = 1 << 20


def corpus_path(kaikki_dir: Path, edition: str) -> Path:
    """取得したエディション全体の保存先."""
    return kaikki_dir / f"{edition}-extract.jsonl.gz"


def kaikki_url(edition: str) -> str:
    """エディション全体の抽出データの URL.

    Examples:
        >>> kaikki_url("en")
        'https://kaikki.org/dictionary/raw-wiktextract-data.jsonl.gz'
        >>> kaikki_url("de")
        'https://kaikki.org/dewiktionary/raw-wiktextract-data.jsonl.gz'
    """
    if edition == "en":
        return f"{KAIKKI_BASE_URL}/dictionary/{KAIKKI_FILENAME}"
    return f"{KAIKKI_BASE_URL}/{edition}wiktionary/{KAIKKI_FILENAME}"


def _last_modified_date(response: httpx.Response) -> date | None:
    value = response.headers.get("last-modified")
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).astimezone(UTC).date()
    except (TypeError, ValueError):
        logger.warning(f"Unparseable Last-Modified header: {value!r}")
        return None


def _read_sidecar(dest: Path) -> str | None:
    sidecar = snapshot_sidecar(dest)
    if not sidecar.exists():
        return None
    return sidecar.read_text(encoding="utf-8").strip() or None


def download_kaikki_jsonl(
    edition: str,
    dest: Path,
    force: bool = False,
    client: httpx.Client | None = None,
) -> dict:
    """kaikki.org からエディションの抽出データを取得し、スナップショット日付を記録する.

    既存ファイルのスナップショット日付がサーバーの Last-Modified と同じなら取得を省く。
    ダウンロードは ``<dest>.part`` に書き、完了後に置き換える。

    Args:
        edition: Wiktionary エディション
        dest: 保存先（``<root>/kaikki/<edition>-extract.jsonl.gz``）
        force: 既存ファイルがあっても再取得するか
        client: 使用する httpx.Client（未指定なら内部で作成）

    Returns:
        取得結果のメタデータ辞書

    Raises:
        httpx.HTTPError: 通信エラーや 4xx/5xx 応答
    """
    url = kaikki_url(edition)
    own_client = client is None
    client = client or httpx.Client(follow_redirects=True, timeout=httpx.Timeout(60.0, read=300.0))

    try:
        head = client.head(url)
        head.raise_for_status()
        remote = _last_modified_date(head)
        existing = _read_sidecar(dest)

        if dest.exists() and not force and remote is not None and existing == remote.isoformat():
            logger.info(f"Corpus already up to date: {edition} ({existing})")
            return {
                "edition": edition,
                "url": url,
                "path": str(dest),
                "snapshot": existing,
                "fetched_at": datetime.now(UTC).isoformat(),
                "skipped": True,
            }

        logger.info(f"Downloading {edition} edition from {url}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        part = dest.with_name(dest.name + ".part")
        size = 0
        with client.stream("GET", url) as response:
            response.raise_for_status()
            remote = _last_modified_date(response) or remote
            with open(part, "wb") as f:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    f.write(chunk)
                    size += len(chunk)
        part.replace(dest)
    finally:
        if own_client:
            client.close()

    snapshot = (remote or datetime.now(UTC).date()).isoformat()
    snapshot_sidecar(dest).write_text(snapshot + "\n", encoding="utf-8")
    logger.info(f"Downloaded {edition}: {size:,} bytes, snapshot {snapshot}")

    return {
        "edition": edition,
        "url": url,
        "path": str(dest),
        "snapshot": snapshot,
        "fetched_at": datetime.now(UTC).isoformat(),
        "skipped": False,
    }
