"""Yomitan output records.

Wire shapes (format 3):

- term bank row: ``[term, reading, definitionTags, rules, score, definitions, sequence, termTags]``
- term meta bank row (IPA):
  ``[term, "ipa", {"reading": ..., "transcriptions": [{"ipa": ..., "tags": [...]}]}]``
- tag bank row: ``[name, category, sortingOrder, notes, popularityScore]``

Builders construct ``TermEntry`` / ``TermMetaEntry`` objects and call
``validate()``; the emitter turns them into rows and assigns sequence numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from yomitan_dict_builder.core.exceptions import SchemaConformanceError
from yomitan_dict_builder.core.tag_table import CanonicalTag, format_tag_name

Definition = str | dict[str, Any] | list[Any]


def node(tag: str, content: Any, data: str | None = None, title: str | None = None) -> dict[str, Any]:
    """Build one structured-content element (div, span, ul, li, ...)."""
    element: dict[str, Any] = {"tag": tag}
    if title:
        element["title"] = title
    if data:
        element["data"] = {"content": data}
    element["content"] = content
    return element


def structured(content: Any) -> dict[str, Any]:
    """Wrap a node as a structured-content definition."""
    return {"type": "structured-content", "content": content}


def _valid_definition(definition: Any) -> bool:
    if isinstance(definition, str):
        return bool(definition)
    if isinstance(definition, dict):
        return definition.get("type") in {"text", "structured-content", "image"}
    if isinstance(definition, list):
        # deinflection: [uninflected term, [rule, ...]]
        return (
            len(definition) == 2
            and isinstance(definition[0], str)
            and bool(definition[0])
            and isinstance(definition[1], list)
            and all(isinstance(r, str) for r in definition[1])
        )
    return False


@dataclass(frozen=True)
class TermEntry:
    """One term bank record.

    Attributes:
        label: "lemma" / "form" / "term", used for per-label counts in reports
        tags: canonical tags referenced by this record (collected into the tag bank)
    """

    term: str
    reading: str
    definition_tags: str
    rules: str
    definitions: tuple[Definition, ...]
    score: int = 0
    term_tags: str = ""
    label: str = "term"
    tags: tuple[CanonicalTag, ...] = ()

    def validate(self, flavor: str) -> TermEntry:
        """Check the record against the term bank schema.

        Raises:
            SchemaConformanceError: empty term, no usable definitions or a non-string tag field
        """
        if not isinstance(self.term, str) or not self.term.strip():
            raise SchemaConformanceError(flavor, "term", str(self.term))
        if not isinstance(self.reading, str):
            raise SchemaConformanceError(flavor, "reading", self.term)
        for name in ("definition_tags", "rules", "term_tags"):
            if not isinstance(getattr(self, name), str):
                raise SchemaConformanceError(flavor, name, self.term)
        if not self.definitions or not all(_valid_definition(d) for d in self.definitions):
            raise SchemaConformanceError(flavor, "definitions", self.term)
        return self

    def to_row(self, sequence: int) -> list[Any]:
        return [
            self.term,
            self.reading,
            self.definition_tags,
            self.rules,
            self.score,
            list(self.definitions),
            sequence,
            self.term_tags,
        ]


@dataclass(frozen=True)
class Transcription:
    ipa: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class TermMetaEntry:
    """One term meta bank record (IPA mode)."""

    term: str
    reading: str
    transcriptions: tuple[Transcription, ...]
    mode: str = "ipa"
    label: str = "term"
    tags: tuple[CanonicalTag, ...] = ()

    def validate(self, flavor: str) -> TermMetaEntry:
        """Raises SchemaConformanceError for an empty term or no transcriptions."""
        if not isinstance(self.term, str) or not self.term.strip():
            raise SchemaConformanceError(flavor, "term", str(self.term))
        if not self.transcriptions:
            raise SchemaConformanceError(flavor, "transcriptions", self.term)
        for t in self.transcriptions:
            if not t.ipa:
                raise SchemaConformanceError(flavor, "transcriptions.ipa", self.term)
            if not all(isinstance(tag, str) and tag for tag in t.tags):
                raise SchemaConformanceError(flavor, "transcriptions.tags", self.term)
        return self

    def to_row(self) -> list[Any]:
        return [
            self.term,
            self.mode,
            {
                "reading": self.reading,
                "transcriptions": [{"ipa": t.ipa, "tags": list(t.tags)} for t in self.transcriptions],
            },
        ]


def tag_bank_row(tag: CanonicalTag) -> list[Any]:
    return [format_tag_name(tag.name), tag.category, tag.sorting_order, tag.display, tag.popularity]
