"""レコード正規化（RawEntry → IntermediateEntry）.

wiktextract の1レコードを中間表現へ組み替えるための関数群です。

設計方針:
    - senses / forms は落とさない。構造的に同一な要素（同じテキストと同じ生タグ多重集合）だけを畳む
    - 生タグ文字列はそのまま保持し、解決は Tag Postprocessor に任せる
    - 見出し語が空、必須の構造フィールドが壊れている場合は RecordError（エントリ単位でスキップ）
    - 抽出時のメタ行（table-tags / inflection-template / class）は語形ではないので取り込まない
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from .exceptions import RecordError
from .models import Example, Form, IntermediateEntry, Pronunciation, RawEntry, Sense, Translation

# 語形リストに混ざる抽出メタ情報（語形そのものではない）
FORM_META_TAGS = frozenset({"table-tags", "inflection-template", "class"})

# 翻訳表で「訳なし」を表す記号
_TRIVIAL_TRANSLATIONS = frozenset({"", "-", "\u2014", "\u2013"})


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def _raw_tags(item: dict[str, Any]) -> tuple[str, ...]:
    """tags と raw_tags を順序を保って連結する（文字列以外と空文字は除外）."""
    out: list[str] = []
    for key in ("tags", "raw_tags"):
        values = item.get(key) or []
        if not isinstance(values, list):
            continue
        for v in values:
            if isinstance(v, str) and v.strip():
                out.append(v.strip())
    return tuple(out)


def _multiset(tags: tuple[str, ...]) -> tuple[tuple[str, int], ...]:
    return tuple(sorted(Counter(tags).items()))


def _require_list(raw: RawEntry, headword: str, field: str) -> list[Any]:
    value = getattr(raw, field)
    if not isinstance(value, list):
        raise RecordError(headword, raw.line_no, f"'{field}' must be a list, got {type(value).__name__}")
    return value


def _normalize_examples(sense: dict[str, Any]) -> list[Example]:
    examples: list[Example] = []
    raw_examples = sense.get("examples") or []
    if not isinstance(raw_examples, list):
        return examples
    for ex in raw_examples:
        if not isinstance(ex, dict):
            continue
        text = _clean_text(ex.get("text"))
        if not text:
            continue
        translation = _clean_text(ex.get("translation")) or _clean_text(ex.get("english"))
        examples.append(Example(text=text, translation=translation))
    return examples


def _normalize_senses(raw: RawEntry, headword: str) -> list[Sense]:
    senses: list[Sense] = []
    seen: set[tuple] = set()
    for item in _require_list(raw, headword, "senses"):
        if not isinstance(item, dict):
            raise RecordError(headword, raw.line_no, "sense is not an object")

        glosses = item.get("glosses") or []
        # 入れ子の語義は親の gloss が先頭に来るので末尾を採用する
        gloss = _clean_text(glosses[-1]) if isinstance(glosses, list) and glosses else ""
        examples = _normalize_examples(item)
        tags = _raw_tags(item)

        key = (gloss, tuple(examples), _multiset(tags))
        if key in seen:
            continue
        seen.add(key)
        senses.append(Sense(gloss=gloss, examples=examples, raw_tags=tags))
    return senses


def _normalize_forms(raw: RawEntry, headword: str) -> list[Form]:
    forms: list[Form] = []
    seen: set[tuple] = set()
    for item in _require_list(raw, headword, "forms"):
        if not isinstance(item, dict):
            raise RecordError(headword, raw.line_no, "unparseable form (not an object)")

        tags = _raw_tags(item)
        if FORM_META_TAGS.intersection(tags):
            continue

        text = _clean_text(item.get("form"))
        if not text:
            raise RecordError(headword, raw.line_no, "unparseable form (missing 'form' text)")

        key = (text, _multiset(tags))
        if key in seen:
            continue
        seen.add(key)
        forms.append(Form(text=text, raw_tags=tags))
    return forms


def dialect_label(sound: dict[str, Any]) -> str:
    """発音の方言ラベル.

    明示的な dialect フィールドがあればそれを、無ければ生タグを ", " で連結した文字列。
    """
    explicit = _clean_text(sound.get("dialect"))
    if explicit:
        return explicit
    return ", ".join(_raw_tags(sound))


def _normalize_pronunciations(raw: RawEntry, headword: str) -> list[Pronunciation]:
    pronunciations: list[Pronunciation] = []
    seen: set[tuple] = set()
    for item in _require_list(raw, headword, "sounds"):
        if not isinstance(item, dict):
            continue
        # 音声ファイルのみの sound（ipa なし）は対象外
        ipa = _clean_text(item.get("ipa"))
        if not ipa:
            continue
        tags = _raw_tags(item)
        dialect = dialect_label(item)

        key = (ipa, dialect, _multiset(tags))
        if key in seen:
            continue
        seen.add(key)
        pronunciations.append(Pronunciation(ipa=ipa, raw_tags=tags, dialect=dialect))
    return pronunciations


def _normalize_translations(raw: RawEntry, headword: str) -> list[Translation]:
    translations: list[Translation] = []
    seen: set[Translation] = set()
    for item in _require_list(raw, headword, "translations"):
        if not isinstance(item, dict):
            continue
        word = _clean_text(item.get("word"))
        if word in _TRIVIAL_TRANSLATIONS:
            continue
        lang_code = _clean_text(item.get("lang_code")) or _clean_text(item.get("code"))
        if not lang_code:
            continue
        tr = Translation(lang_code=lang_code, word=word, sense=_clean_text(item.get("sense")))
        if tr in seen:
            continue
        seen.add(tr)
        translations.append(tr)
    return translations


def normalize(raw: RawEntry, revision: str | None = None) -> IntermediateEntry:
    """RawEntry を IntermediateEntry に変換する.

    Args:
        raw: コーパスの1レコード
        revision: 元スナップショットのリビジョン（"YYYY.MM.DD"）

    Returns:
        正規化済みエントリ（タグは未解決）

    Raises:
        RecordError: 見出し語が空、または必須の構造フィールドが壊れている場合

    Examples:
        >>> raw = RawEntry.from_record({"word": "Haus", "lang_code": "de", "pos": "noun"})
        >>> normalize(raw).headword
        'Haus'
    """
    headword = _clean_text(raw.word)
    if not headword:
        raise RecordError("", raw.line_no, "empty headword")

    if not isinstance(raw.pos, str):
        raise RecordError(headword, raw.line_no, "'pos' must be a string")

    return IntermediateEntry(
        headword=headword,
        lang_code=raw.lang_code,
        pos=raw.pos.strip(),
        senses=_normalize_senses(raw, headword),
        forms=_normalize_forms(raw, headword),
        pronunciations=_normalize_pronunciations(raw, headword),
        translations=_normalize_translations(raw, headword),
        etymology=raw.etymology_text.strip(),
        edition=raw.edition,
        revision=revision,
    )
