"""タグ表（Tag Table）.

2つの設定表からプロセス全体で共有する不変のタグ表を構築します。

- 順序表: ``{category: [tag, ...]}`` を出現順に平坦化し、位置を order_key とする
- 情報表: ``[tagName, category, sortingOrder, notes, popularityScore]`` の行リスト

設計方針:
    - 順序表と情報表の結合は polars の join で行い、情報表にあって順序表に無いタグは
      ConfigurationError（コーパス処理前に中断）
    - 順序表にあって情報表に無いタグは警告のみ（表から除外され、解決時は Unknown）
    - エイリアス（notes の各要素）で複数の表記を1つの正規タグ名へ寄せる
    - 正規タグ名の完全一致はエイリアスより常に優先する
    - 複数の正規タグが同じエイリアスを主張する場合は曖昧なので ConfigurationError
"""

from __future__ import annotations

import json
import unicodedata
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any

import polars as pl
from loguru import logger

from .exceptions import ConfigurationError

ORDER_SCHEMA = {"name": pl.String, "order_category": pl.String, "order_key": pl.Int64}
INFO_SCHEMA = {
    "name": pl.String,
    "category": pl.String,
    "sorting_order": pl.Int64,
    "notes": pl.List(pl.String),
    "notes_is_list": pl.Boolean,
    "popularity": pl.Float64,
}


@dataclass(frozen=True)
class CanonicalTag:
    """正規タグ.

    Attributes:
        name: 正規タグ名（表内で一意）
        category: Yomitan タグバンクのカテゴリ
        order_key: 平坦化した順序表での位置（出力タグ順の唯一の基準）
        sorting_order: タグバンクへ出力する sortingOrder
        display: 表示用の注記（notes の先頭要素。無ければ name）
        notes: 設定表の notes（文字列またはタプル）
        popularity: タグバンクへ出力する popularityScore
    """

    name: str
    category: str
    order_key: int
    sorting_order: int = 0
    display: str = ""
    notes: str | tuple[str, ...] = ""
    popularity: float = 0

    def aliases(self) -> tuple[str, ...]:
        if isinstance(self.notes, str):
            return (self.notes,) if self.notes else ()
        return self.notes


def normalize_tag_string(raw: str) -> str:
    """生タグ文字列を照合用に整形する（NFC、前後空白除去、連続空白の圧縮）.

    Examples:
        >>> normalize_tag_string("  masc.  ")
        'masc.'
        >>> normalize_tag_string("General  American")
        'General American'
    """
    s = unicodedata.normalize("NFC", raw)
    return " ".join(s.split())


def _lookup_key(raw: str) -> str:
    return normalize_tag_string(raw).casefold()


def format_tag_name(name: str) -> str:
    """Yomitan のタグ文字列表現（空白区切りリストなので空白は '-' に置換）."""
    return "-".join(name.split())


def order_frame(order: Mapping[str, Any]) -> pl.DataFrame:
    """順序表を平坦化した DataFrame（name, order_category, order_key）に変換する.

    Raises:
        ConfigurationError: 形式不正、または同じタグが複数回出現した場合
    """
    if not isinstance(order, Mapping):
        raise ConfigurationError("<order table>", f"expected an object of category lists, got {type(order)}")

    rows: list[dict[str, Any]] = []
    seen: dict[str, str] = {}
    for category, tags in order.items():
        if not isinstance(tags, list):
            raise ConfigurationError(str(category), "order table category must map to a list of tags")
        for tag in tags:
            if not isinstance(tag, str) or not tag.strip():
                raise ConfigurationError(str(tag), f"invalid tag name in order category '{category}'")
            name = normalize_tag_string(tag)
            if name in seen:
                raise ConfigurationError(
                    name, f"listed twice in the order table (categories '{seen[name]}' and '{category}')"
                )
            seen[name] = category
            rows.append({"name": name, "order_category": category, "order_key": len(rows)})

    return pl.DataFrame(rows, schema=ORDER_SCHEMA)


def _validate_info_row(row: Any) -> dict[str, Any]:
    if not isinstance(row, list | tuple) or len(row) != 5:
        raise ConfigurationError(
            str(row)[:40], "tag info row must be [tagName, category, sortingOrder, notes, popularityScore]"
        )

    name, category, sorting_order, notes, popularity = row
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(str(name), "tag name must be a non-empty string")
    name = normalize_tag_string(name)
    if not isinstance(category, str):
        raise ConfigurationError(name, "category must be a string")
    if isinstance(sorting_order, bool) or not isinstance(sorting_order, int):
        raise ConfigurationError(name, "sortingOrder must be an integer")
    if isinstance(popularity, bool) or not isinstance(popularity, int | float):
        raise ConfigurationError(name, "popularityScore must be a number")

    if isinstance(notes, str):
        notes_list, is_list = ([notes] if notes else []), False
    elif isinstance(notes, list) and all(isinstance(n, str) for n in notes):
        notes_list, is_list = list(notes), True
    else:
        raise ConfigurationError(name, "notes must be a string or a list of strings")

    return {
        "name": name,
        "category": category,
        "sorting_order": sorting_order,
        "notes": notes_list,
        "notes_is_list": is_list,
        "popularity": float(popularity),
    }


def info_frame(rows: list[Any]) -> pl.DataFrame:
    """タグ情報表を DataFrame に変換する.

    Raises:
        ConfigurationError: 行の形式不正、またはタグ名の重複
    """
    if not isinstance(rows, list):
        raise ConfigurationError("<info table>", f"expected a list of rows, got {type(rows)}")

    records = [_validate_info_row(row) for row in rows]
    seen: set[str] = set()
    for record in records:
        if record["name"] in seen:
            raise ConfigurationError(record["name"], "duplicate entry in the tag info table")
        seen.add(record["name"])

    return pl.DataFrame(records, schema=INFO_SCHEMA)


class TagTable:
    """不変のタグ表.

    構築後は変更しない。並行して読み取っても安全（ロック不要）。
    resolve() は同じ文字列に対して常に同一の CanonicalTag オブジェクトを返す。
    """

    def __init__(self, tags: list[CanonicalTag]) -> None:
        by_name: dict[str, CanonicalTag] = {}
        name_keys: dict[str, str] = {}
        for tag in sorted(tags, key=lambda t: t.order_key):
            key = _lookup_key(tag.name)
            if key in name_keys and name_keys[key] != tag.name:
                raise ConfigurationError(tag.name, f"collides with tag '{name_keys[key]}' (case-insensitive)")
            by_name[tag.name] = tag
            name_keys[key] = tag.name

        claims: dict[str, set[str]] = {}
        for tag in by_name.values():
            for alias in tag.aliases():
                key = _lookup_key(alias)
                # 正規タグ名の完全一致が優先されるので、名前と同じキーはエイリアスとして扱わない
                if not key or key in name_keys:
                    continue
                claims.setdefault(key, set()).add(tag.name)

        alias_keys: dict[str, str] = {}
        for key, names in claims.items():
            if len(names) > 1:
                raise ConfigurationError(key, f"ambiguous alias claimed by tags {sorted(names)}")
            alias_keys[key] = next(iter(names))

        self._by_name: Mapping[str, CanonicalTag] = MappingProxyType(by_name)
        self._name_keys: Mapping[str, str] = MappingProxyType(name_keys)
        self._alias_keys: Mapping[str, str] = MappingProxyType(alias_keys)
        # 生タグ文字列 → 解決結果（未知の None も含めて覚える）
        self._resolved: dict[str, CanonicalTag | None] = {}

    @classmethod
    def from_frames(cls, order_df: pl.DataFrame, info_df: pl.DataFrame) -> TagTable:
        """順序表と情報表（DataFrame）を name で結合してタグ表を構築する.

        Raises:
            ConfigurationError: 情報表のタグが順序表に存在しない場合（最初の1件を名指し）
        """
        missing_order = info_df.join(order_df, on="name", how="anti").sort("name")
        if len(missing_order) > 0:
            names = missing_order["name"].to_list()
            raise ConfigurationError(
                names[0],
                f"present in the tag info table but absent from the order table "
                f"({len(names)} tag(s) total: {', '.join(names[:10])})",
            )

        missing_info = order_df.join(info_df, on="name", how="anti")
        if len(missing_info) > 0:
            logger.warning(
                f"{len(missing_info)} ordered tag(s) have no tag info row and will be treated as unknown: "
                f"{', '.join(missing_info['name'].to_list()[:10])}"
            )

        joined = order_df.join(info_df, on="name", how="inner").sort("order_key")

        tags: list[CanonicalTag] = []
        for row in joined.iter_rows(named=True):
            notes_list: list[str] = row["notes"] or []
            notes: str | tuple[str, ...] = (
                tuple(notes_list) if row["notes_is_list"] else (notes_list[0] if notes_list else "")
            )
            display = notes_list[0] if notes_list else row["name"]
            popularity = row["popularity"]
            tags.append(
                CanonicalTag(
                    name=row["name"],
                    category=row["category"],
                    order_key=row["order_key"],
                    sorting_order=row["sorting_order"],
                    display=display,
                    notes=notes,
                    popularity=int(popularity) if float(popularity).is_integer() else popularity,
                )
            )

        logger.debug(f"Tag table built: {len(tags)} tags, {len(joined)} joined rows")
        return cls(tags)

    @classmethod
    def from_tables(cls, order: Mapping[str, Any], info: list[Any]) -> TagTable:
        """読み込み済みの順序表・情報表（JSON相当の Python 値）から構築する."""
        return cls.from_frames(order_frame(order), info_frame(info))

    @classmethod
    def from_files(cls, order_path: Path | str, info_path: Path | str) -> TagTable:
        """JSONファイルから構築する."""
        from yomitan_dict_builder.adapters.tag_config_adapter import TagConfigAdapter

        frames = TagConfigAdapter(order_path, info_path).read()
        return cls.from_frames(frames["order"], frames["info"])

    def resolve(self, raw_tag: str) -> CanonicalTag | None:
        """生タグ文字列を正規タグへ解決する（未知なら None）.

        正規タグ名の完全一致（大文字小文字無視）を先に試し、次にエイリアスを引く。
        """
        if not isinstance(raw_tag, str):
            return None
        try:
            return self._resolved[raw_tag]
        except KeyError:
            pass
        key = _lookup_key(raw_tag)
        name = (self._name_keys.get(key) or self._alias_keys.get(key)) if key else None
        tag = self._by_name[name] if name is not None else None
        self._resolved[raw_tag] = tag
        return tag

    def get(self, name: str) -> CanonicalTag | None:
        return self._by_name.get(name)

    @property
    def tags(self) -> tuple[CanonicalTag, ...]:
        return tuple(self._by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[CanonicalTag]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


def load_default_tag_table() -> TagTable:
    """パッケージ同梱の既定タグ表（data/tag_order.json, data/tag_bank.json）を読む."""
    data_dir = resources.files("yomitan_dict_builder") / "data"
    order = json.loads((data_dir / "tag_order.json").read_text(encoding="utf-8"))
    info = json.loads((data_dir / "tag_bank.json").read_text(encoding="utf-8"))
    return TagTable.from_tables(order, info)


def load_tag_table(order_path: Path | str | None = None, info_path: Path | str | None = None) -> TagTable:
    """実行開始時に1度だけ呼ぶタグ表ローダー.

    どちらのパスも未指定なら同梱の既定表を使う。片方だけの指定は不整合なのでエラー。
    """
    if order_path is None and info_path is None:
        table = load_default_tag_table()
        logger.info(f"Loaded default tag tables ({len(table)} tags)")
        return table
    if order_path is None or info_path is None:
        raise ValueError("Both --tag-order and --tag-bank must be given to override the tag tables")
    table = TagTable.from_files(order_path, info_path)
    logger.info(f"Loaded tag tables from {order_path} and {info_path} ({len(table)} tags)")
    return table
