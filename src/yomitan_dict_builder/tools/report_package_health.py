"""ビルド済み Yomitan パッケージの健全性チェックを行い、TSVレポートを出力する。"""

from __future__ import annotations

import argparse
import csv
import json
import re
import zipfile
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

REQUIRED_INDEX_FIELDS = ("title", "format", "revision")
REVISION_RE = re.compile(r"^\d{4}\.\d{2}\.\d{2}$")
BANK_RE = re.compile(r"^(term|term_meta|tag)_bank_(\d+)\.json$")


def _write_tsv(path: Path, header: Sequence[str], rows: Iterable[Sequence[object]]) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, delimiter="\t")
        writer.writerow(list(header))
        count = 0
        for r in rows:
            writer.writerow(["" if v is None else v for v in r])
            count += 1
    return count


def load_package_files(package_path: Path) -> dict[str, Any]:
    """zip またはディレクトリから JSON ファイルを読み込む（ファイル名 → 内容）."""
    package_path = Path(package_path)
    files: dict[str, Any] = {}
    if package_path.is_dir():
        for p in sorted(package_path.glob("*.json")):
            files[p.name] = json.loads(p.read_text(encoding="utf-8"))
        return files

    with zipfile.ZipFile(package_path) as zf:
        for name in sorted(zf.namelist()):
            if name.endswith(".json"):
                files[name] = json.loads(zf.read(name).decode("utf-8"))
    return files


def _is_absolute_http_url(url: Any) -> bool:
    if not isinstance(url, str) or not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def check_index(index: Any) -> list[tuple[str, str]]:
    """index.json の問題点（field, problem）の一覧."""
    if not isinstance(index, dict):
        return [("index.json", "missing or not an object")]

    problems: list[tuple[str, str]] = []
    for name in REQUIRED_INDEX_FIELDS:
        if name not in index:
            problems.append((name, "missing"))
    if "format" in index and index["format"] != 3:
        problems.append(("format", f"expected 3, got {index['format']!r}"))
    revision = index.get("revision")
    if revision is not None and not (isinstance(revision, str) and REVISION_RE.match(revision)):
        problems.append(("revision", f"not YYYY.MM.DD: {revision!r}"))
    if index.get("isUpdatable"):
        for name in ("indexUrl", "downloadUrl"):
            if not _is_absolute_http_url(index.get(name)):
                problems.append((name, "isUpdatable requires an absolute http(s) URL"))
    return problems


def _check_term_row(row: Any) -> str | None:
    if not isinstance(row, list) or len(row) != 8:
        return "term row must have 8 fields"
    term, reading, definition_tags, rules, score, definitions, sequence, term_tags = row
    if not isinstance(term, str) or not term:
        return "empty term"
    if not all(isinstance(v, str) for v in (reading, definition_tags, rules, term_tags)):
        return "reading/definitionTags/rules/termTags must be strings"
    if isinstance(score, bool) or not isinstance(score, int | float):
        return "score must be a number"
    if not isinstance(definitions, list) or not definitions:
        return "definitions must be a non-empty list"
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        return "sequence must be an integer"
    return None


def _check_meta_row(row: Any) -> str | None:
    if not isinstance(row, list) or len(row) != 3:
        return "term meta row must have 3 fields"
    term, mode, data = row
    if not isinstance(term, str) or not term:
        return "empty term"
    if mode != "ipa":
        return f"unsupported mode {mode!r}"
    if not isinstance(data, dict) or not data.get("transcriptions"):
        return "ipa data must carry transcriptions"
    return None


def run_health_checks(package_path: Path, out_dir: Path) -> Path:
    package_path = Path(package_path)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    files = load_package_files(package_path)
    index = files.get("index.json")

    index_problems = check_index(index)
    index_out = out_dir / "index_problems.tsv"
    index_problem_count = _write_tsv(index_out, ["field", "problem"], index_problems)

    bad_rows: list[tuple[str, int, str]] = []
    referenced: Counter[str] = Counter()
    tag_bank_names: list[str] = []
    totals: Counter[str] = Counter()

    for name, rows in files.items():
        m = BANK_RE.match(name)
        if not m:
            continue
        kind = m.group(1)
        if not isinstance(rows, list):
            bad_rows.append((name, 0, "bank is not a list"))
            continue
        totals[kind] += len(rows)
        for i, row in enumerate(rows):
            if kind == "term":
                problem = _check_term_row(row)
                if problem is None:
                    referenced.update(row[2].split())
                    referenced.update(row[7].split())
            elif kind == "term_meta":
                problem = _check_meta_row(row)
                if problem is None:
                    for t in row[2]["transcriptions"]:
                        referenced.update(t.get("tags", []))
            else:
                problem = None if isinstance(row, list) and len(row) == 5 else "tag row must have 5 fields"
                if problem is None:
                    tag_bank_names.append(row[0])
            if problem is not None:
                bad_rows.append((name, i, problem))

    bad_rows_out = out_dir / "bad_rows.tsv"
    bad_rows_count = _write_tsv(bad_rows_out, ["file", "row", "problem"], bad_rows)

    # tag_bank に無いタグ参照（未解決の品詞など。Yomitan は表示できるがスタイルが付かない）
    known = set(tag_bank_names)
    missing = sorted(
        ((tag, n) for tag, n in referenced.items() if tag not in known), key=lambda x: (-x[1], x[0])
    )
    missing_out = out_dir / "missing_tag_references.tsv"
    missing_count = _write_tsv(missing_out, ["tag", "references"], missing)

    dup_tags = sorted((tag, n) for tag, n in Counter(tag_bank_names).items() if n > 1)
    dup_out = out_dir / "duplicate_bank_tags.tsv"
    dup_count = _write_tsv(dup_out, ["tag", "count"], dup_tags)

    summary_out = out_dir / "package_health_summary.tsv"
    _write_tsv(
        summary_out,
        ["metric", "value"],
        [
            ("package_path", str(package_path)),
            ("title", index.get("title") if isinstance(index, dict) else None),
            ("revision", index.get("revision") if isinstance(index, dict) else None),
            ("is_updatable", index.get("isUpdatable") if isinstance(index, dict) else None),
            ("total_terms", totals["term"]),
            ("total_term_meta", totals["term_meta"]),
            ("total_tags", totals["tag"]),
            ("index_problems", index_problem_count),
            ("bad_rows", bad_rows_count),
            ("missing_tag_references", missing_count),
            ("duplicate_bank_tags", dup_count),
        ],
    )

    return summary_out


def main() -> None:
    p = argparse.ArgumentParser(description="Check a built Yomitan package and write TSV reports.")
    p.add_argument("--package", type=Path, required=True, help="Path to the package zip (or bank directory)")
    p.add_argument("--out-dir", type=Path, required=True, help="Output directory for TSV reports")
    args = p.parse_args()

    summary = run_health_checks(args.package, args.out_dir)
    print(f"Wrote health reports: {summary.parent}")


if __name__ == "__main__":
    main()
