"""main flavor: full entries with senses, examples, etymology and inflected forms."""

from __future__ import annotations

from typing import Any

from yomitan_dict_builder.config import EditionRole, Flavor, Langs
from yomitan_dict_builder.core.models import Form, IntermediateEntry, Sense
from yomitan_dict_builder.core.postprocess import sort_tags
from yomitan_dict_builder.core.tag_table import CanonicalTag, format_tag_name
from yomitan_dict_builder.schema import TermEntry, node, structured

from .base import DictionaryBuilder, Output

CANONICAL = "canonical"
NON_LEMMA = "non-lemma"


def pos_label(entry: IntermediateEntry) -> str:
    """Resolved POS tag name, or the raw POS when the tag table does not know it."""
    if entry.pos_tag is not None:
        return format_tag_name(entry.pos_tag.name)
    return format_tag_name(entry.pos)


def pos_tags(entry: IntermediateEntry) -> tuple[CanonicalTag, ...]:
    return (entry.pos_tag,) if entry.pos_tag is not None else ()


def _is_canonical(form: Form) -> bool:
    return CANONICAL in form.raw_tags or any(t.name == CANONICAL for t in form.tags)


def get_reading(entry: IntermediateEntry) -> str:
    """The canonical form (e.g. with stress marks) when it differs from the headword."""
    for form in entry.forms:
        if _is_canonical(form) and form.text != entry.headword:
            return form.text
    return entry.headword


def _sense_node(sense: Sense) -> dict[str, Any]:
    content: list[Any] = []
    if sense.tags:
        content.append(
            node(
                "div",
                [node("span", format_tag_name(t.name), data="tag", title=t.display) for t in sense.tags],
                data="tags",
            )
        )
    content.append(node("div", sense.gloss, data="gloss"))
    if sense.examples:
        items = []
        for ex in sense.examples:
            example: list[Any] = [node("div", ex.text, data="example-text")]
            if ex.translation:
                example.append(node("div", ex.translation, data="example-translation"))
            items.append(node("li", example, data="example"))
        content.append(node("ul", items, data="examples"))
    return structured(node("div", content, data="sense"))


class MainBuilder(DictionaryBuilder):
    flavor = Flavor.MAIN
    edition_role = EditionRole.TARGET
    labels = ("lemma", "form")

    def keep(self, entry: IntermediateEntry, langs: Langs) -> bool:
        return entry.lang_code == langs.source

    def build(self, entry: IntermediateEntry, langs: Langs) -> list[Output]:
        outputs: list[Output] = []
        lemma = self._lemma(entry)
        if lemma is not None:
            outputs.append(lemma)
        outputs.extend(self._forms(entry))
        return outputs

    def _lemma(self, entry: IntermediateEntry) -> TermEntry | None:
        senses = [s for s in entry.senses if s.gloss]
        if not senses:
            return None

        definitions: list[Any] = [_sense_node(s) for s in senses]
        if entry.etymology:
            definitions.append(structured(node("div", entry.etymology, data="etymology")))

        referenced = sort_tags([*pos_tags(entry), *(t for s in senses for t in s.tags)])
        pos = pos_label(entry)
        return TermEntry(
            term=entry.headword,
            reading=get_reading(entry),
            definition_tags=pos,
            rules=pos,
            definitions=tuple(definitions),
            label="lemma",
            tags=tuple(referenced),
        ).validate(self.flavor)

    def _forms(self, entry: IntermediateEntry) -> list[TermEntry]:
        # one record per form text; repeated texts get one definition per tag list
        by_text: dict[str, list[Form]] = {}
        for form in entry.forms:
            if form.text == entry.headword or _is_canonical(form):
                continue
            by_text.setdefault(form.text, []).append(form)

        outputs: list[TermEntry] = []
        for text, forms in by_text.items():
            definitions: list[list[Any]] = []
            for form in forms:
                definition = [entry.headword, [format_tag_name(t.name) for t in form.tags]]
                if definition not in definitions:
                    definitions.append(definition)
            outputs.append(
                TermEntry(
                    term=text,
                    reading=text,
                    definition_tags=NON_LEMMA,
                    rules="",
                    definitions=tuple(definitions),
                    label="form",
                    tags=tuple(sort_tags(t for f in forms for t in f.tags)),
                ).validate(self.flavor)
            )
        return outputs
