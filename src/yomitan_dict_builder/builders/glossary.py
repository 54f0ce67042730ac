"""Translation flavors: glossary and glossary-extended.

glossary reads the source-language edition and turns the translation table of
each record into short definitions in the target language.

glossary-extended pairs translations of the same sense: every source-language
translation becomes a lemma whose definitions are the target-language
translations of that sense. Results from all selected editions are merged by
lemma.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from yomitan_dict_builder.config import EditionRole, Flavor, Langs
from yomitan_dict_builder.core.models import IntermediateEntry
from yomitan_dict_builder.core.tag_table import CanonicalTag
from yomitan_dict_builder.schema import TermEntry, node, structured

from .base import DictionaryBuilder, Output
from .main import get_reading, pos_label, pos_tags


def group_translations(entry: IntermediateEntry, lang_code: str) -> dict[str, list[str]]:
    """Translation words into ``lang_code`` grouped by sense ("" = no sense), first-seen order."""
    groups: dict[str, list[str]] = {}
    for tr in entry.translations:
        if tr.lang_code != lang_code:
            continue
        words = groups.setdefault(tr.sense, [])
        if tr.word not in words:
            words.append(tr.word)
    return groups


class GlossaryBuilder(DictionaryBuilder):
    flavor = Flavor.GLOSSARY
    edition_role = EditionRole.SOURCE

    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        if entry.lang_code != langs.source:
            return False
        return any(t.lang_code == langs.target for t in entry.translations)

    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        groups = group_translations(entry, langs.target)
        if not groups:
            return []

        definitions: list[Any] = []
        for sense, words in groups.items():
            if not sense:
                definitions.extend(words)
                continue
            items = [node("li", word) for word in words]
            definitions.append(structured(node("div", [node("span", sense), node("ul", items)])))

        pos = pos_label(entry)
        return [
            TermEntry(
                term=entry.headword,
                reading=get_reading(entry),
                definition_tags=pos,
                rules=pos,
                definitions=tuple(definitions),
                tags=pos_tags(entry),
            ).validate(self.flavor)
        ]


@dataclass
class _Lemma:
    pos: str
    tags: tuple[CanonicalTag, ...]
    definitions: list[str] = field(default_factory=list)


class GlossaryExtendedBuilder(DictionaryBuilder):
    flavor = Flavor.GLOSSARY_EXTENDED
    edition_role = EditionRole.SELECTED

    def record_lang(self, langs: Langs) -> str | None:
        # any record language: only its translation table matters
        return None

    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        codes = {t.lang_code for t in entry.translations}
        return langs.source in codes and langs.target in codes

    def _pairs(self, entry: IntermediateEntry, langs: Langs) -> list[tuple[str, list[str]]]:
        sources = group_translations(entry, langs.source)
        targets = group_translations(entry, langs.target)
        pairs: list[tuple[str, list[str]]] = []
        for sense, lemmas in sources.items():
            definitions = targets.get(sense)
            if not definitions:
                continue
            pairs.extend((lemma, definitions) for lemma in lemmas)
        return pairs

    def _entry(
        self, lemma: str, pos: str, tags: tuple[CanonicalTag, ...], definitions: list[str]
    ) -> TermEntry:
        return TermEntry(
            term=lemma,
            reading="",
            definition_tags=pos,
            rules=pos,
            definitions=tuple(definitions),
            tags=tags,
        ).validate(self.flavor)

    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        pos = pos_label(entry)
        return [self._entry(lemma, pos, pos_tags(entry), defs) for lemma, defs in self._pairs(entry, langs)]

    def build_all(self, entries: Iterable[IntermediateEntry], langs: Langs) -> list[Output]:
        lemmas: dict[str, _Lemma] = {}
        for entry in entries:
            if not self.keep(entry, langs):
                continue
            for lemma, definitions in self._pairs(entry, langs):
                agg = lemmas.get(lemma)
                if agg is None:
                    agg = lemmas[lemma] = _Lemma(pos=pos_label(entry), tags=pos_tags(entry))
                for d in definitions:
                    if d not in agg.definitions:
                        agg.definitions.append(d)

        return [
            self._entry(lemma, agg.pos, agg.tags, agg.definitions) for lemma, agg in sorted(lemmas.items())
        ]
