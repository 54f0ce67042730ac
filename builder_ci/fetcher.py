"""リリース設定の読み込みと、リリース対象エディションのコーパス取得."""

from __future__ import annotations

from pathlib import Path

import yaml
from loguru import logger

from yomitan_dict_builder.config import EDITIONS, validate_edition, validate_lang_code
from yomitan_dict_builder.download import corpus_path, download_kaikki_jsonl


def load_release_config(release_yml: Path) -> dict:
    """release.yml を読み込み、言語コードを検証して返す.

    Args:
        release_yml: release.yml ファイルのパス

    Returns:
        設定辞書（editions, sources, glossary_targets, flavors, publish）

    Raises:
        ValueError: 未対応のエディションや不正な言語コード
    """
    with open(release_yml, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    editions = [validate_edition(e) for e in config.get("editions") or EDITIONS]
    if "all" in editions:
        editions = list(EDITIONS)

    config["editions"] = editions
    config["sources"] = [validate_lang_code(s) for s in config.get("sources") or []]
    config["glossary_targets"] = [validate_lang_code(t) for t in config.get("glossary_targets") or []]
    config["flavors"] = list(config.get("flavors") or ["main", "ipa", "ipa-merged", "glossary"])
    config.setdefault("publish", {})

    logger.info(
        f"Loaded release config from {release_yml}: {len(editions)} editions, "
        f"{len(config['sources'])} sources, {len(config['glossary_targets'])} glossary targets"
    )
    return config


def fetch_corpora(editions: list[str], root_dir: Path, force: bool = False) -> list[dict]:
    """各エディションのコーパスを取得する（失敗は記録して続行）."""
    results = []
    for edition in editions:
        dest = corpus_path(root_dir / "kaikki", edition)
        try:
            results.append(download_kaikki_jsonl(edition, dest, force=force))
        except Exception as e:
            logger.error(f"Failed to fetch {edition}: {e}")
            results.append({"edition": edition, "error": str(e), "skipped": False})
    return results
