"""Unit tests for diagnostics reports."""

from pathlib import Path

import polars as pl

from yomitan_dict_builder.core.diagnostics import Diagnostics
from yomitan_dict_builder.core.exceptions import RecordError


class TestDiagnostics:
    """Diagnostics の集計テスト."""

    def test_counts_and_first_headword(self) -> None:
        d = Diagnostics()
        d.record_rejected("mystery", "Haus", 2)
        d.record_rejected("mystery", "Maus")
        d.record_rejected("riddle", "Maus")
        d.record_accepted("pl.", "Haus")

        assert d.rejected["mystery"].count == 3
        assert d.rejected["mystery"].first_headword == "Haus"
        assert d.tags_dropped == 4
        assert d.distinct_tags_dropped == 2

    def test_tag_frame_order(self) -> None:
        """rejected が先頭、グループ内は出現数の降順."""
        d = Diagnostics()
        d.record_accepted("pl.", "Haus", 10)
        d.record_rejected("riddle", "Maus", 1)
        d.record_rejected("mystery", "Haus", 5)

        df = d.tag_frame()

        assert df["raw_tag"].to_list() == ["mystery", "riddle", "pl."]
        assert df["status"].to_list() == ["rejected", "rejected", "accepted"]


class TestWriteReports:
    """write_reports() のテスト."""

    def test_writes_tsv(self, tmp_path: Path) -> None:
        d = Diagnostics()
        d.record_rejected("mystery", "Haus")
        d.record_skipped(RecordError("", 3, "empty headword"))

        paths = d.write_reports(tmp_path / "diag")

        tags = pl.read_csv(paths["tags"], separator="\t")
        skipped = pl.read_csv(paths["skipped"], separator="\t")
        assert tags["raw_tag"].to_list() == ["mystery"]
        assert skipped["line_no"].to_list() == [3]
        assert skipped["reason"].to_list() == ["empty headword"]

    def test_no_data_no_files(self, tmp_path: Path) -> None:
        paths = Diagnostics().write_reports(tmp_path)

        assert paths == {"tags": None, "skipped": None}
        assert not (tmp_path / "tags.tsv").exists()
