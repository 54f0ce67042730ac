"""発音の統合（Pronunciation Merger）.

- (ipa, dialect) による重複排除（エディションの違いだけのものは1件に畳む）
- 見出し語ごとのグルーピング
- 再生成時の差分を小さくするための安定した並び順
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from .models import IntermediateEntry, MergedPronunciationEntry, MergedTranscription, Pronunciation


def _min_order_key(transcription: MergedTranscription) -> float:
    # タグの無い発音は最後
    if not transcription.tags:
        return float("inf")
    return min(tag.order_key for tag in transcription.tags)


def merge_pronunciations(
    headword: str,
    pronunciations: Iterable[Pronunciation],
) -> MergedPronunciationEntry:
    """1つの見出し語の発音を統合する.

    Args:
        headword: 見出し語
        pronunciations: 後処理済みの発音（複数エディション分をまとめて渡してよい）

    Returns:
        (ipa, dialect) で重複排除した MergedPronunciationEntry。
        同じキーが複数あれば最初に出現したもののタグを採用する。
        並び順はタグの最小 order_key の昇順（タグ無しは最後）、同順位は方言ラベルの初出順。

    Examples:
        >>> us = Pronunciation(ipa="/haʊs/", dialect="US")
        >>> uk = Pronunciation(ipa="/hɑʊs/", dialect="UK")
        >>> merged = merge_pronunciations("house", [us, uk, us])
        >>> len(merged.transcriptions)
        2
    """
    by_key: dict[tuple[str, str], MergedTranscription] = {}
    dialect_rank: dict[str, int] = {}
    for p in pronunciations:
        dialect_rank.setdefault(p.dialect, len(dialect_rank))
        key = (p.ipa, p.dialect)
        if key in by_key:
            continue
        by_key[key] = MergedTranscription(ipa=p.ipa, dialect=p.dialect, tags=tuple(p.tags))

    first_seen = {key: i for i, key in enumerate(by_key)}
    ordered = sorted(
        by_key.values(),
        key=lambda t: (_min_order_key(t), dialect_rank[t.dialect], first_seen[(t.ipa, t.dialect)]),
    )
    return MergedPronunciationEntry(headword=headword, transcriptions=tuple(ordered))


def merge_entries(entries: Iterable[IntermediateEntry]) -> list[MergedPronunciationEntry]:
    """後処理済みエントリの発音を見出し語ごとに統合する.

    寄与する全エディションの正規化・後処理が終わってから呼ぶこと（同期点）。

    Returns:
        見出し語の昇順に並べた統合結果（発音の無い見出し語は含めない）
    """
    grouped: dict[str, list[Pronunciation]] = {}
    for entry in entries:
        if entry.pronunciations:
            grouped.setdefault(entry.headword, []).extend(entry.pronunciations)

    merged = [merge_pronunciations(headword, grouped[headword]) for headword in sorted(grouped)]
    total = sum(len(m.transcriptions) for m in merged)
    logger.debug(f"Merged pronunciations: {len(merged)} headwords, {total} transcriptions")
    return merged
