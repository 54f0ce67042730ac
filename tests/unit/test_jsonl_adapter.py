"""Unit tests for JsonlCorpusAdapter."""

import gzip
import json
from pathlib import Path

import pytest

from yomitan_dict_builder.adapters.jsonl_adapter import JsonlCorpusAdapter
from yomitan_dict_builder.core.exceptions import RecordError


class TestJsonlCorpusAdapter:
    """Test JsonlCorpusAdapter functionality."""

    def test_read_plain_jsonl(self, tmp_path: Path, write_jsonl) -> None:
        """Test reading records in file order."""
        path = write_jsonl(
            tmp_path / "en-extract.jsonl",
            [
                {"word": "house", "lang_code": "en", "pos": "noun"},
                {"word": "Haus", "lang_code": "de", "pos": "noun"},
            ],
        )

        entries = list(JsonlCorpusAdapter(path, edition="en").read())

        assert [e.word for e in entries] == ["house", "Haus"]
        assert [e.line_no for e in entries] == [1, 2]
        assert entries[0].edition == "en"

    def test_read_gzip(self, tmp_path: Path) -> None:
        """Test reading a gzip extract."""
        path = tmp_path / "en-extract.jsonl.gz"
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(json.dumps({"word": "house", "lang_code": "en", "pos": "noun"}) + "\n")

        entries = list(JsonlCorpusAdapter(path, edition="en").read())

        assert len(entries) == 1

    def test_lang_filter_and_limit(self, tmp_path: Path, write_jsonl) -> None:
        path = write_jsonl(
            tmp_path / "en-extract.jsonl",
            [
                {"word": "Haus", "lang_code": "de", "pos": "noun"},
                {"word": "house", "lang_code": "en", "pos": "noun"},
                {"word": "Maus", "lang_code": "de", "pos": "noun"},
                {"word": "Laus", "lang_code": "de", "pos": "noun"},
            ],
        )

        adapter = JsonlCorpusAdapter(path, edition="en", lang_codes={"de"}, limit=2)
        entries = list(adapter.read())

        assert [e.word for e in entries] == ["Haus", "Maus"]
        assert adapter.accepted_count == 2

    def test_bad_lines_are_reported_and_skipped(self, tmp_path: Path, write_jsonl) -> None:
        """Test undecodable lines go to on_error without aborting the read."""
        path = write_jsonl(
            tmp_path / "en-extract.jsonl",
            [
                "{not json",
                "[1, 2]",
                "",
                {"word": "house", "lang_code": "en", "pos": "noun"},
            ],
        )
        errors: list[RecordError] = []

        entries = list(JsonlCorpusAdapter(path, edition="en", on_error=errors.append).read())

        assert [e.word for e in entries] == ["house"]
        assert [e.line_no for e in errors] == [1, 2]

    def test_invalid_utf8_line_is_skipped(self, tmp_path: Path) -> None:
        """Test a line with bytes that are not UTF-8 only costs that line."""
        path = tmp_path / "en-extract.jsonl"
        path.write_bytes(
            b'{"word": "Haus", "lang_code": "de", "pos": "noun"}\n'
            b'{"word": "Bau\xff", "lang_code": "de", "pos": "noun"}\n'
            b'{"word": "Maus", "lang_code": "de", "pos": "noun"}\n'
        )
        errors: list[RecordError] = []

        adapter = JsonlCorpusAdapter(path, edition="en", on_error=errors.append)
        entries = list(adapter.read())

        assert [e.word for e in entries] == ["Haus", "Maus"]
        assert [e.line_no for e in errors] == [2]
        assert "invalid UTF-8" in errors[0].reason
        assert adapter.line_count == 3

    def test_invalid_utf8_in_gzip(self, tmp_path: Path) -> None:
        path = tmp_path / "en-extract.jsonl.gz"
        with gzip.open(path, "wb") as f:
            f.write(b"\xff\xfe\n")
            f.write(json.dumps({"word": "Haus", "lang_code": "de"}).encode("utf-8") + b"\n")
        errors: list[RecordError] = []

        entries = list(JsonlCorpusAdapter(path, edition="en", on_error=errors.append).read())

        assert [e.word for e in entries] == ["Haus"]
        assert [e.line_no for e in errors] == [1]

    def test_filter_and_reject(self, tmp_path: Path, write_jsonl) -> None:
        """Test field=value conditions: all filters must match, any reject drops."""
        path = write_jsonl(
            tmp_path / "en-extract.jsonl",
            [
                {"word": "Haus", "lang_code": "de", "pos": "noun"},
                {"word": "laufen", "lang_code": "de", "pos": "verb"},
                {"word": "Maus", "lang_code": "de", "pos": "noun"},
                {"word": "Laus", "lang_code": "de", "pos": "noun"},
            ],
        )

        adapter = JsonlCorpusAdapter(
            path,
            edition="en",
            filters=[("pos", "noun")],
            rejects=[("word", "Maus")],
        )
        entries = list(adapter.read())

        assert [e.word for e in entries] == ["Haus", "Laus"]
        assert adapter.filtered_count == 2

    def test_legacy_code_field(self, tmp_path: Path, write_jsonl) -> None:
        path = write_jsonl(tmp_path / "en-extract.jsonl", [{"word": "house", "code": "en", "pos": "noun"}])

        entries = list(JsonlCorpusAdapter(path, edition="en", lang_codes={"en"}).read())

        assert entries[0].lang_code == "en"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            JsonlCorpusAdapter(tmp_path / "missing.jsonl", edition="en")
