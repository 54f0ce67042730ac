"""Unit tests for Yomitan output records."""

import pytest

from yomitan_dict_builder.core.exceptions import SchemaConformanceError
from yomitan_dict_builder.core.tag_table import TagTable
from yomitan_dict_builder.schema import TermEntry, TermMetaEntry, Transcription, node, structured, tag_bank_row


class TestTermEntry:
    """TermEntry のテスト."""

    def test_to_row(self) -> None:
        entry = TermEntry(
            term="Häuser",
            reading="Häuser",
            definition_tags="non-lemma",
            rules="",
            definitions=(["Haus", ["plural"]],),
        )

        assert entry.validate("main").to_row(5) == [
            "Häuser",
            "Häuser",
            "non-lemma",
            "",
            0,
            [["Haus", ["plural"]]],
            5,
            "",
        ]

    @pytest.mark.parametrize(
        ("term", "definitions", "field"),
        [
            ("", ("house",), "term"),
            ("Haus", (), "definitions"),
            ("Haus", ("",), "definitions"),
            ("Haus", ({"type": "bogus"},), "definitions"),
            ("Haus", (["", []],), "definitions"),
        ],
    )
    def test_validate_rejects(self, term: str, definitions: tuple, field: str) -> None:
        entry = TermEntry(term=term, reading="", definition_tags="", rules="", definitions=definitions)

        with pytest.raises(SchemaConformanceError) as exc_info:
            entry.validate("main")

        assert exc_info.value.field == field
        assert exc_info.value.flavor == "main"

    def test_structured_content(self) -> None:
        definition = structured(node("div", [node("span", "n", data="tag", title="noun")], data="sense"))
        entry = TermEntry(term="Haus", reading="", definition_tags="", rules="", definitions=(definition,))

        assert entry.validate("main") is entry
        assert definition["content"]["data"] == {"content": "sense"}
        assert definition["content"]["content"][0]["title"] == "noun"


class TestTermMetaEntry:
    """TermMetaEntry のテスト."""

    def test_validate_rejects_empty_transcriptions(self) -> None:
        with pytest.raises(SchemaConformanceError):
            TermMetaEntry(term="house", reading="house", transcriptions=()).validate("ipa")

    def test_validate_rejects_empty_ipa(self) -> None:
        meta = TermMetaEntry(term="house", reading="house", transcriptions=(Transcription(ipa=""),))

        with pytest.raises(SchemaConformanceError):
            meta.validate("ipa")


class TestTagBankRow:
    """tag_bank_row() のテスト."""

    def test_row(self, tag_table: TagTable) -> None:
        assert tag_bank_row(tag_table.get("General American")) == [
            "General-American",
            "dialect",
            0,
            "GA",
            0,
        ]
