"""コーパスレコードと中間表現のデータモデル.

- RawEntry: wiktextract の1レコード（読み取り専用）
- IntermediateEntry: Normalizer が生成し、Postprocessor / Merger が更新する中間表現
- MergedPronunciationEntry: 複数エディションの発音を見出し語単位で統合したもの

タグは postprocess 前は raw_tags（生文字列）のみを持ち、postprocess 後に tags
（CanonicalTag の整列済み列）が埋まる。raw_tags は残すので postprocess は冪等。
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .tag_table import CanonicalTag


def _as_list(value: Any) -> Any:
    # 欠損は空リスト扱い。型の検証は normalize 側で行う
    return [] if value is None else value


@dataclass(frozen=True)
class RawEntry:
    """wiktextract の1レコード.

    from_record() はフィールドを取り出すだけで構造の検証はしない。
    """

    word: Any
    lang_code: str
    pos: Any
    senses: Any
    forms: Any
    sounds: Any
    translations: Any
    etymology_text: str
    edition: str = ""
    line_no: int | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any], edition: str = "", line_no: int | None = None) -> RawEntry:
        etymology = record.get("etymology_text") or ""
        return cls(
            word=record.get("word"),
            lang_code=str(record.get("lang_code") or ""),
            pos=record.get("pos", ""),
            senses=_as_list(record.get("senses")),
            forms=_as_list(record.get("forms")),
            sounds=_as_list(record.get("sounds")),
            translations=_as_list(record.get("translations")),
            etymology_text=etymology if isinstance(etymology, str) else "",
            edition=edition,
            line_no=line_no,
        )


@dataclass(frozen=True)
class Example:
    text: str
    translation: str = ""


@dataclass
class Sense:
    gloss: str
    examples: list[Example] = field(default_factory=list)
    raw_tags: tuple[str, ...] = ()
    tags: list[CanonicalTag] = field(default_factory=list)


@dataclass
class Form:
    text: str
    raw_tags: tuple[str, ...] = ()
    tags: list[CanonicalTag] = field(default_factory=list)


@dataclass
class Pronunciation:
    ipa: str
    raw_tags: tuple[str, ...] = ()
    dialect: str = ""
    tags: list[CanonicalTag] = field(default_factory=list)


@dataclass(frozen=True)
class Translation:
    lang_code: str
    word: str
    sense: str = ""


@dataclass
class IntermediateEntry:
    """正規化済みエントリ（中間表現）."""

    headword: str
    lang_code: str
    pos: str
    senses: list[Sense] = field(default_factory=list)
    forms: list[Form] = field(default_factory=list)
    pronunciations: list[Pronunciation] = field(default_factory=list)
    translations: list[Translation] = field(default_factory=list)
    etymology: str = ""
    edition: str = ""
    revision: str | None = None
    pos_tag: CanonicalTag | None = None

    def all_tagged_items(self) -> list[Sense | Form | Pronunciation]:
        """タグを持つ全要素（senses, forms, pronunciations）."""
        return [*self.senses, *self.forms, *self.pronunciations]

    def to_dict(self) -> dict[str, Any]:
        """tidy.jsonl 出力用の辞書表現."""

        def names(tags: list[CanonicalTag]) -> list[str]:
            return [t.name for t in tags]

        return {
            "headword": self.headword,
            "lang_code": self.lang_code,
            "pos": self.pos,
            "edition": self.edition,
            "revision": self.revision,
            "senses": [
                {
                    "gloss": s.gloss,
                    "tags": names(s.tags),
                    "examples": [{"text": e.text, "translation": e.translation} for e in s.examples],
                }
                for s in self.senses
            ],
            "forms": [{"text": f.text, "tags": names(f.tags)} for f in self.forms],
            "pronunciations": [
                {"ipa": p.ipa, "dialect": p.dialect, "tags": names(p.tags)} for p in self.pronunciations
            ],
            "translations": [
                {"lang_code": t.lang_code, "word": t.word, "sense": t.sense} for t in self.translations
            ],
            "etymology": self.etymology,
        }


@dataclass(frozen=True)
class MergedTranscription:
    ipa: str
    dialect: str
    tags: tuple[CanonicalTag, ...] = ()


@dataclass(frozen=True)
class MergedPronunciationEntry:
    """見出し語ごとに統合された発音.

    (ipa, dialect) で重複排除済み。ソース（エディション）の帰属は保持しない。
    """

    headword: str
    transcriptions: tuple[MergedTranscription, ...] = ()

    def keys(self) -> set[tuple[str, str]]:
        return {(t.ipa, t.dialect) for t in self.transcriptions}

    def merged_with(self, pronunciations: Iterable[Pronunciation]) -> MergedPronunciationEntry:
        """追加の発音と統合した新しいエントリを返す（集合として可換・冪等）."""
        from .merge import merge_pronunciations

        return merge_pronunciations(self.headword, [*self.as_pronunciations(), *pronunciations])

    def as_pronunciations(self) -> list[Pronunciation]:
        """再マージ用に Pronunciation へ戻す."""
        return [
            Pronunciation(
                ipa=t.ipa,
                raw_tags=tuple(tag.name for tag in t.tags),
                dialect=t.dialect,
                tags=list(t.tags),
            )
            for t in self.transcriptions
        ]
