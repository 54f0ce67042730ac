"""Pronunciation flavors: ipa (one language pair) and ipa-merged (all editions)."""

from __future__ import annotations

from collections.abc import Iterable

from yomitan_dict_builder.config import EditionRole, Flavor, Langs
from yomitan_dict_builder.core.merge import merge_entries, merge_pronunciations
from yomitan_dict_builder.core.models import IntermediateEntry, MergedPronunciationEntry
from yomitan_dict_builder.core.postprocess import sort_tags
from yomitan_dict_builder.core.tag_table import CanonicalTag, format_tag_name
from yomitan_dict_builder.schema import TermMetaEntry, Transcription

from .base import DictionaryBuilder, Output
from .main import get_reading

IPA_TAG_CATEGORIES = frozenset({"dialect", "region"})


def ipa_tags(tags: Iterable[CanonicalTag]) -> list[CanonicalTag]:
    return [t for t in tags if t.category in IPA_TAG_CATEGORIES]


def _meta_entry(flavor: Flavor, term: str, reading: str, merged: MergedPronunciationEntry) -> TermMetaEntry:
    transcriptions: list[Transcription] = []
    seen: set[tuple[str, tuple[str, ...]]] = set()
    referenced: list[CanonicalTag] = []
    for t in merged.transcriptions:
        tags = ipa_tags(t.tags)
        names = tuple(format_tag_name(tag.name) for tag in tags)
        # 方言ラベルが違っても、絞り込み後のタグが同じなら出力上は同一の表記
        if (t.ipa, names) in seen:
            continue
        seen.add((t.ipa, names))
        referenced.extend(tags)
        transcriptions.append(Transcription(ipa=t.ipa, tags=names))
    return TermMetaEntry(
        term=term,
        reading=reading,
        transcriptions=tuple(transcriptions),
        tags=tuple(sort_tags(referenced)),
    ).validate(flavor)


class IpaBuilder(DictionaryBuilder):
    flavor = Flavor.IPA
    edition_role = EditionRole.TARGET

    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        return entry.lang_code == langs.source and bool(entry.pronunciations)

    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        merged = merge_pronunciations(entry.headword, entry.pronunciations)
        return [_meta_entry(self.flavor, entry.headword, get_reading(entry), merged)]


class IpaMergedBuilder(DictionaryBuilder):
    """Pronunciations of the target language gathered from every edition.

    There is no source language; ``langs.source`` is the ``all`` sentinel.
    """

    flavor = Flavor.IPA_MERGED
    edition_role = EditionRole.ALL

    def record_lang(self, langs: Langs) -> str:
        return langs.target

    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        return entry.lang_code == langs.target and bool(entry.pronunciations)

    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        merged = merge_pronunciations(entry.headword, entry.pronunciations)
        return [_meta_entry(self.flavor, entry.headword, entry.headword, merged)]

    def build_all(self, entries: Iterable[IntermediateEntry], langs: Langs) -> list[Output]:
        kept = [e for e in entries if self.keep(e, langs)]
        return [_meta_entry(self.flavor, m.headword, m.headword, m) for m in merge_entries(kept)]
