"""タグ解決とスキップレコードの診断情報.

コーパス品質のレビュー用に、解決できた生タグ・できなかった生タグ（Unknown）と
スキップしたレコードを集計し、TSVレポートとして出力します。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import polars as pl

from .exceptions import RecordError

TAG_REPORT_SCHEMA = {
    "raw_tag": pl.String,
    "status": pl.String,
    "count": pl.Int64,
    "first_headword": pl.String,
}
SKIPPED_REPORT_SCHEMA = {
    "line_no": pl.Int64,
    "headword": pl.String,
    "reason": pl.String,
}


@dataclass
class TagStat:
    count: int = 0
    first_headword: str = ""


@dataclass
class Diagnostics:
    """1回の実行で集めた診断情報.

    Attributes:
        accepted: 正規タグへ解決できた生タグ → 出現数と最初の見出し語
        rejected: 解決できなかった生タグ（Unknown として出力から除外）
        skipped: スキップしたレコードの RecordError
    """

    accepted: dict[str, TagStat] = field(default_factory=dict)
    rejected: dict[str, TagStat] = field(default_factory=dict)
    skipped: list[RecordError] = field(default_factory=list)

    def _record(self, table: dict[str, TagStat], raw_tag: str, headword: str, count: int) -> None:
        stat = table.get(raw_tag)
        if stat is None:
            stat = table[raw_tag] = TagStat(first_headword=headword)
        stat.count += count

    def record_accepted(self, raw_tag: str, headword: str, count: int = 1) -> None:
        self._record(self.accepted, raw_tag, headword, count)

    def record_rejected(self, raw_tag: str, headword: str, count: int = 1) -> None:
        self._record(self.rejected, raw_tag, headword, count)

    def record_skipped(self, error: RecordError) -> None:
        self.skipped.append(error)

    @property
    def tags_dropped(self) -> int:
        """除外した生タグの延べ数."""
        return sum(stat.count for stat in self.rejected.values())

    @property
    def distinct_tags_dropped(self) -> int:
        return len(self.rejected)

    def tag_frame(self) -> pl.DataFrame:
        """タグ集計の DataFrame（rejected を先頭、各グループ内は出現数の降順）."""
        rows = [
            {"raw_tag": raw, "status": status, "count": stat.count, "first_headword": stat.first_headword}
            for status, table in (("rejected", self.rejected), ("accepted", self.accepted))
            for raw, stat in table.items()
        ]
        df = pl.DataFrame(rows, schema=TAG_REPORT_SCHEMA)
        return df.sort(
            [pl.col("status") == "accepted", "count", "raw_tag"],
            descending=[False, True, False],
        )

    def skipped_frame(self) -> pl.DataFrame:
        rows = [{"line_no": e.line_no, "headword": e.headword, "reason": e.reason} for e in self.skipped]
        return pl.DataFrame(rows, schema=SKIPPED_REPORT_SCHEMA)

    def write_reports(self, output_dir: Path | str) -> dict[str, Path | None]:
        """診断レポートをTSVファイルとして出力する.

        Args:
            output_dir: 出力ディレクトリ

        Returns:
            出力したTSVのパス（該当データが無ければ None）
            - "tags": tags.tsv
            - "skipped": skipped_records.tsv
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        result_paths: dict[str, Path | None] = {}

        tags_path = output_dir / "tags.tsv"
        tag_df = self.tag_frame()
        if len(tag_df) > 0:
            tag_df.write_csv(tags_path, separator="\t")
            result_paths["tags"] = tags_path
        else:
            result_paths["tags"] = None

        skipped_path = output_dir / "skipped_records.tsv"
        skipped_df = self.skipped_frame()
        if len(skipped_df) > 0:
            skipped_df.write_csv(skipped_path, separator="\t")
            result_paths["skipped"] = skipped_path
        else:
            result_paths["skipped"] = None

        return result_paths
