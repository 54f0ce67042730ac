"""タグ後処理（Tag Postprocessor）.

正規化済みエントリの生タグを正規タグへ解決し、要素ごとに整列済みのタグ列を割り当てます。

処理は2フェーズ:
    1. エントリ内の全要素（語形・語義・発音）の生タグの和集合を集め、各文字列を1度だけ解決
    2. 要素ごとに解決結果を割り当て（Unknown は除外、正規名で重複排除、order_key 昇順）

出力タグ順を決めるのは sort_tags() だけ。他のコンポーネントはタグを並べ替えない。
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from .diagnostics import Diagnostics
from .models import IntermediateEntry
from .tag_table import CanonicalTag, TagTable


def sort_tags(tags: Iterable[CanonicalTag]) -> list[CanonicalTag]:
    """正規名で重複排除し、order_key の昇順に並べる.

    order_key は順序表の位置から一意に振られるので、並びは全順序で決定的。
    """
    unique: dict[str, CanonicalTag] = {}
    for tag in tags:
        unique.setdefault(tag.name, tag)
    return sorted(unique.values(), key=lambda t: t.order_key)


def postprocess(
    entry: IntermediateEntry,
    tag_table: TagTable,
    diagnostics: Diagnostics | None = None,
) -> IntermediateEntry:
    """エントリのタグを解決・整列する（in place）.

    raw_tags から毎回計算し直すので、処理済みのエントリに再適用しても結果は変わらない。

    Args:
        entry: normalize() の出力
        tag_table: 共有の不変タグ表
        diagnostics: 指定時は解決できた/できなかった生タグを記録する

    Returns:
        同じ entry オブジェクト

    Examples:
        >>> entry = postprocess(entry, table)
        >>> [t.name for t in entry.forms[0].tags]
        ['plural', 'masculine']
    """
    items = entry.all_tagged_items()

    # Phase 1: 生タグの和集合を1度だけ解決
    occurrences: Counter[str] = Counter()
    for item in items:
        occurrences.update(item.raw_tags)

    resolved: dict[str, CanonicalTag | None] = {raw: tag_table.resolve(raw) for raw in occurrences}

    if diagnostics is not None:
        for raw, count in occurrences.items():
            if resolved[raw] is None:
                diagnostics.record_rejected(raw, entry.headword, count)
            else:
                diagnostics.record_accepted(raw, entry.headword, count)

    # Phase 2: 要素ごとに割り当て
    for item in items:
        item.tags = sort_tags(tag for raw in item.raw_tags if (tag := resolved[raw]) is not None)

    entry.pos_tag = tag_table.resolve(entry.pos) if entry.pos else None
    return entry


def postprocess_all(
    entries: Iterable[IntermediateEntry],
    tag_table: TagTable,
    diagnostics: Diagnostics | None = None,
) -> list[IntermediateEntry]:
    """複数エントリをまとめて後処理する."""
    return [postprocess(entry, tag_table, diagnostics) for entry in entries]
