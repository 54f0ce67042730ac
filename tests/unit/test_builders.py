"""Unit tests for the flavor builders."""

import copy

import pytest

from yomitan_dict_builder.builders import (
    GlossaryBuilder,
    GlossaryExtendedBuilder,
    IpaBuilder,
    IpaMergedBuilder,
    MainBuilder,
    get_builder,
)
from yomitan_dict_builder.config import Flavor, Langs
from yomitan_dict_builder.core.models import IntermediateEntry, RawEntry
from yomitan_dict_builder.core.normalize import normalize
from yomitan_dict_builder.core.postprocess import postprocess
from yomitan_dict_builder.core.tag_table import TagTable
from yomitan_dict_builder.schema import TermEntry, TermMetaEntry

HAUS = {
    "word": "Haus",
    "lang_code": "de",
    "pos": "noun",
    "etymology_text": "From Middle High German hūs.",
    "senses": [
        {"glosses": ["house"], "tags": ["neuter"], "examples": [{"text": "Das Haus", "english": "The house"}]},
        {"glosses": []},
    ],
    "forms": [
        {"form": "Haus", "tags": ["canonical"]},
        {"form": "Häuser", "tags": ["masc.", "pl."]},
        {"form": "Hauses", "tags": ["sg."]},
        {"form": "Hause", "tags": ["sg."]},
        {"form": "Hause", "tags": ["mystery"]},
    ],
    "sounds": [{"ipa": "/haʊ̯s/"}],
}

HOUSE = {
    "word": "house",
    "lang_code": "en",
    "pos": "noun",
    "senses": [{"glosses": ["building"]}],
    "sounds": [
        {"ipa": "/haʊs/", "tags": ["US"]},
        {"ipa": "/hɑʊs/", "tags": ["UK", "mystery"]},
    ],
    "translations": [
        {"lang_code": "de", "word": "Haus", "sense": "building"},
        {"lang_code": "de", "word": "Gebäude", "sense": "building"},
        {"lang_code": "fr", "word": "maison", "sense": "building"},
        {"lang_code": "de", "word": "Haus"},
        {"lang_code": "fr", "word": "ménage", "sense": "household"},
    ],
}


def _entry(record: dict, tag_table: TagTable, edition: str = "de") -> IntermediateEntry:
    return postprocess(normalize(RawEntry.from_record(record, edition=edition)), tag_table)


class TestGetBuilder:
    """get_builder() のテスト."""

    def test_every_flavor_has_builder(self) -> None:
        for flavor in Flavor:
            assert get_builder(flavor).flavor is flavor

    def test_unknown_flavor(self) -> None:
        with pytest.raises(ValueError):
            get_builder("nope")


class TestMainBuilder:
    """main 辞書のテスト."""

    def test_lemma_and_forms(self, tag_table: TagTable) -> None:
        entry = _entry(HAUS, tag_table)
        outputs = MainBuilder().build(entry, Langs("en", "de", "en"))

        lemma = outputs[0]
        assert isinstance(lemma, TermEntry)
        assert lemma.label == "lemma"
        assert lemma.term == "Haus"
        assert lemma.reading == "Haus"
        assert lemma.definition_tags == "n"
        # gloss の無い語義は出力しない。語源は最後の定義
        assert len(lemma.definitions) == 2
        assert lemma.definitions[-1]["content"]["data"] == {"content": "etymology"}

        forms = {o.term: o for o in outputs[1:]}
        assert set(forms) == {"Häuser", "Hauses", "Hause"}
        assert forms["Häuser"].definitions == (["Haus", ["plural", "masculine"]],)
        assert forms["Häuser"].definition_tags == "non-lemma"
        assert forms["Hause"].definitions == (["Haus", ["singular"]], ["Haus", []])

    def test_canonical_form_becomes_reading(self, tag_table: TagTable) -> None:
        record = {**HAUS, "word": "Strasse", "forms": [{"form": "Straße", "tags": ["canonical"]}]}
        outputs = MainBuilder().build(_entry(record, tag_table), Langs("en", "de", "en"))

        assert [o.label for o in outputs] == ["lemma"]
        assert outputs[0].reading == "Straße"

    def test_keep_by_source_language(self, tag_table: TagTable) -> None:
        entry = _entry(HAUS, tag_table)

        assert MainBuilder().keep(entry, Langs("en", "de", "en"))
        assert not MainBuilder().keep(entry, Langs("en", "fr", "en"))

    def test_no_gloss_no_lemma(self, tag_table: TagTable) -> None:
        record = {"word": "Haus", "lang_code": "de", "pos": "noun", "senses": [{"glosses": []}]}

        assert MainBuilder().build(_entry(record, tag_table), Langs("en", "de", "en")) == []


class TestIpaBuilders:
    """ipa / ipa-merged 辞書のテスト."""

    def test_ipa_meta_entry(self, tag_table: TagTable) -> None:
        entry = _entry(HOUSE, tag_table, edition="en")
        [meta] = IpaBuilder().build(entry, Langs("en", "en", "en"))

        assert isinstance(meta, TermMetaEntry)
        assert meta.to_row() == [
            "house",
            "ipa",
            {
                "reading": "house",
                "transcriptions": [
                    {"ipa": "/haʊs/", "tags": ["US"]},
                    {"ipa": "/hɑʊs/", "tags": ["UK"]},
                ],
            },
        ]

    def test_same_output_transcription_collapses(self, tag_table: TagTable) -> None:
        """方言ラベルが違っても、出力タグが同じ同一 IPA は1つにまとめる."""
        record = {**HOUSE, "sounds": [{"ipa": "/haʊs/", "tags": ["US"]}, {"ipa": "/haʊs/", "tags": ["US", "mystery"]}]}
        entry = _entry(record, tag_table, edition="en")

        [meta] = IpaBuilder().build(entry, Langs("en", "en", "en"))

        assert [(t.ipa, t.tags) for t in meta.transcriptions] == [("/haʊs/", ("US",))]

    def test_ipa_keep_requires_pronunciation(self, tag_table: TagTable) -> None:
        record = {**HOUSE, "sounds": []}

        assert not IpaBuilder().keep(_entry(record, tag_table, edition="en"), Langs("en", "en", "en"))

    def test_ipa_merged_across_editions(self, tag_table: TagTable) -> None:
        from_en = _entry({**HOUSE, "sounds": [{"ipa": "/haʊs/", "tags": ["US"]}]}, tag_table, edition="en")
        from_de = _entry(
            {**HOUSE, "sounds": [{"ipa": "/hɑʊs/", "tags": ["UK"]}, {"ipa": "/haʊs/", "tags": ["US"]}]},
            tag_table,
            edition="de",
        )

        outputs = IpaMergedBuilder().build_all([from_en, from_de], Langs("all", "all", "en"))

        assert len(outputs) == 1
        assert [(t.ipa, t.tags) for t in outputs[0].transcriptions] == [("/haʊs/", ("US",)), ("/hɑʊs/", ("UK",))]

    def test_ipa_merged_reads_target_records(self) -> None:
        assert IpaMergedBuilder().record_lang(Langs("all", "all", "en")) == "en"


class TestGlossaryBuilders:
    """glossary / glossary-extended 辞書のテスト."""

    def test_glossary_definitions(self, tag_table: TagTable) -> None:
        entry = _entry(HOUSE, tag_table, edition="en")
        [term] = GlossaryBuilder().build(entry, Langs("en", "en", "de"))

        assert term.term == "house"
        structured_def, plain = term.definitions
        assert plain == "Haus"
        assert structured_def["type"] == "structured-content"
        span, ul = structured_def["content"]["content"]
        assert span["content"] == "building"
        assert [li["content"] for li in ul["content"]] == ["Haus", "Gebäude"]

    def test_glossary_keep_needs_target_translation(self, tag_table: TagTable) -> None:
        entry = _entry(HOUSE, tag_table, edition="en")

        assert GlossaryBuilder().keep(entry, Langs("en", "en", "de"))
        assert not GlossaryBuilder().keep(entry, Langs("en", "en", "ja"))

    def test_glossary_extended_pairs_by_sense(self, tag_table: TagTable) -> None:
        entry = _entry(HOUSE, tag_table, edition="en")
        other = _entry(
            {
                "word": "home",
                "lang_code": "en",
                "pos": "noun",
                "translations": [
                    {"lang_code": "fr", "word": "maison", "sense": "dwelling"},
                    {"lang_code": "de", "word": "Heim", "sense": "dwelling"},
                ],
            },
            tag_table,
            edition="en",
        )

        outputs = GlossaryExtendedBuilder().build_all([other, entry], Langs("all", "fr", "de"))

        # "ménage" は de の訳が無い語義なので出力しない
        assert [o.term for o in outputs] == ["maison"]
        assert outputs[0].definitions == ("Heim", "Haus", "Gebäude")
        assert outputs[0].reading == ""


class TestBuilderIndependence:
    """ある辞書種別のビルドがエントリを変更しないことのテスト."""

    def test_builders_do_not_mutate_entries(self, tag_table: TagTable) -> None:
        entry = _entry(HOUSE, tag_table, edition="en")
        snapshot = copy.deepcopy(entry)

        GlossaryBuilder().build_all([entry], Langs("en", "en", "de"))
        IpaBuilder().build_all([entry], Langs("en", "en", "en"))
        MainBuilder().build_all([entry], Langs("en", "en", "en"))

        assert entry == snapshot
