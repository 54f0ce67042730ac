"""リリースマニフェスト（release_manifest.json）の生成と管理."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger


def create_release_manifest(
    dictionaries: list[dict],
    corpora: list[dict] | None = None,
    builder_version: str = "0.1.0",
) -> dict:
    """リリースマニフェストを作成.

    Args:
        dictionaries: 辞書ごとの結果（name, flavor, source, target, revision, status, ...）
        corpora: fetch 結果のメタデータリスト
        builder_version: builder_ci のバージョン

    Returns:
        マニフェスト辞書（辞書は name 順）
    """
    dictionaries = sorted(dictionaries, key=lambda d: d["name"])
    failed = [d["name"] for d in dictionaries if d.get("status") == "failed"]
    manifest = {
        "release_info": {
            "built_at": datetime.now(UTC).isoformat(),
            "builder_version": builder_version,
            "total": len(dictionaries),
            "failed": len(failed),
        },
        "corpora": corpora or [],
        "dictionaries": dictionaries,
    }
    return manifest


def write_release_manifest(manifest: dict, output_path: Path) -> Path:
    """マニフェストを JSON（indent=2, 末尾改行）で保存する."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(manifest, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info(f"Release manifest written to {output_path}")
    return output_path


def load_release_manifest(manifest_path: Path) -> dict:
    """前回のマニフェストを読み込む.

    初回のリリース（ファイルが無い）や壊れたファイルは空の辞書として扱い、
    全辞書を新規（added）とみなす。
    """
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.info(f"No previous manifest at {manifest_path}")
        return {}
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring unreadable manifest {manifest_path}: {e}")
        return {}

    logger.info(f"Loaded previous manifest: {len(manifest.get('dictionaries', []))} dictionaries")
    return manifest


def _built(manifest: dict) -> dict[str, dict]:
    return {
        d["name"]: d
        for d in manifest.get("dictionaries", [])
        if d.get("status") == "built"
    }


def compare_revisions(old_manifest: dict, new_manifest: dict) -> dict:
    """前回と今回のマニフェストで、ビルド済み辞書の revision を突き合わせる.

    失敗した辞書はどちらの側でも数えない（前回の公開物を残す）。
    戻り値は changed / added / removed / unchanged の4つのリスト（名前順）。
    changed の要素だけ old_revision と new_revision を持つ。
    """
    before = _built(old_manifest)
    after = _built(new_manifest)
    common = sorted(before.keys() & after.keys())

    result = {
        "changed": [
            {
                "name": name,
                "old_revision": before[name].get("revision"),
                "new_revision": after[name].get("revision"),
            }
            for name in common
            if before[name].get("revision") != after[name].get("revision")
        ],
        "added": [{"name": name} for name in sorted(after.keys() - before.keys())],
        "removed": [{"name": name} for name in sorted(before.keys() - after.keys())],
        "unchanged": [
            {"name": name}
            for name in common
            if before[name].get("revision") == after[name].get("revision")
        ],
    }
    logger.info(
        "Revisions: " + ", ".join(f"{len(items)} {kind}" for kind, items in result.items())
    )
    return result


def should_publish(comparison: dict, force: bool = False) -> bool:
    """比較結果から公開が必要かを判定.

    Args:
        comparison: compare_revisions の結果
        force: 強制公開フラグ
    """
    if force:
        logger.info("Force publish enabled")
        return True

    if comparison["changed"] or comparison["added"]:
        logger.info("Publish required due to new revisions")
        return True

    logger.info("No new revisions, publish not required")
    return False
