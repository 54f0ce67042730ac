"""1種類の辞書をビルドするパイプライン.

処理フロー:
    Phase 0: タグ表の読み込み（設定の不整合はここで中断。コーパスは1行も読まない）
    Phase 1: コーパス読み込み → 正規化 → タグ後処理（エントリ単位）
    Phase 2: 辞書種別ごとの Builder で Yomitan レコードへ射影（統合系はここが同期点）
    Phase 3: index の生成、バンクファイル書き出し、zip 化
    Phase 4: 診断レポート（tags.tsv, skipped_records.tsv）
"""

from __future__ import annotations

import json
import shutil
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from loguru import logger

from .adapters.jsonl_adapter import JsonlCorpusAdapter
from .builders import DictionaryBuilder, get_builder
from .config import ALL, EDITIONS, BuildOptions, EditionRole, Flavor, Langs, PathManager, dict_name
from .core.diagnostics import Diagnostics
from .core.exceptions import RecordError
from .core.models import IntermediateEntry
from .core.normalize import normalize
from .core.postprocess import postprocess
from .core.tag_table import TagTable, load_tag_table
from .download import corpus_path, download_kaikki_jsonl
from .emitter import archive_package, emit, write_package
from .index import build_index, latest_snapshot_date, revision_from_date


@dataclass
class BuildReport:
    """1回のビルドの結果.

    Attributes:
        processed: 正規化できたエントリ数
        skipped: スキップしたレコード数（RecordError）
        tags_dropped: 除外した生タグの延べ数
        distinct_tags_dropped: 除外した生タグの種類数
        entries_written: 出力したレコード数
    """

    name: str
    flavor: Flavor
    revision: str = ""
    processed: int = 0
    skipped: int = 0
    tags_dropped: int = 0
    distinct_tags_dropped: int = 0
    entries_written: int = 0
    entries_by_label: dict[str, int] = field(default_factory=dict)
    package_path: Path | None = None
    index_path: Path | None = None
    report_paths: dict[str, Path | None] = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"[{self.name}] processed={self.processed:,} skipped={self.skipped:,} "
            f"tags_dropped={self.tags_dropped:,} ({self.distinct_tags_dropped:,} distinct) "
            f"entries_written={self.entries_written:,} revision={self.revision}"
        )


def make_langs(
    flavor: Flavor | str,
    source: str | None = None,
    target: str | None = None,
    edition: str | None = None,
) -> Langs:
    """辞書種別ごとの規約で Langs を組み立てる.

    - main, ipa: edition = target
    - glossary: edition = source
    - glossary-extended: 指定エディション（既定は全エディション）
    - ipa-merged: 全エディション、ソース言語なし

    Raises:
        ValueError: 必要な言語コードが無い、またはエディションとして存在しない場合
    """
    flavor = Flavor(flavor)
    if target is None:
        raise ValueError(f"{flavor} requires a target language")
    if flavor is Flavor.IPA_MERGED:
        return Langs(edition=ALL, source=ALL, target=target)
    if source is None:
        raise ValueError(f"{flavor} requires a source language")

    if flavor in (Flavor.MAIN, Flavor.IPA):
        if target not in EDITIONS:
            raise ValueError(f"No Wiktionary edition for target language {target!r}")
        return Langs(edition=target, source=source, target=target)
    if flavor is Flavor.GLOSSARY:
        if source not in EDITIONS:
            raise ValueError(f"No Wiktionary edition for source language {source!r}")
        return Langs(edition=source, source=source, target=target)
    return Langs(edition=edition or ALL, source=source, target=target)


def _datasets(
    builder: DictionaryBuilder,
    langs: Langs,
    pm: PathManager,
    options: BuildOptions | None = None,
    client: httpx.Client | None = None,
) -> list[tuple[str, Path]]:
    """読むコーパスファイル（edition, path）の一覧.

    ``options.download`` なら見つからないエディションを kaikki.org から取得し、
    ``options.redownload`` なら既存ファイルがあっても取り直す。

    Raises:
        FileNotFoundError: コーパスが1つも見つからない場合（単一エディションなら欠損も）
        httpx.HTTPError: 取得に失敗した場合
    """
    options = options or BuildOptions()
    if builder.edition_role is EditionRole.ALL:
        editions = EDITIONS
    else:
        editions = langs.editions()

    lang = builder.record_lang(langs)
    found: list[tuple[str, Path]] = []
    for edition in editions:
        path = None if options.redownload else pm.find_dataset(edition, lang)
        if path is None and (options.download or options.redownload):
            path = corpus_path(pm.dir_kaikki, edition)
            download_kaikki_jsonl(edition, path, force=options.redownload, client=client)
        if path is None:
            candidates = ", ".join(p.name for p in pm.dataset_candidates(edition, lang))
            if len(editions) == 1:
                raise FileNotFoundError(
                    f"No corpus for edition '{edition}' in {pm.dir_kaikki}: {candidates} (use --download to fetch it)"
                )
            logger.debug(f"No corpus for edition '{edition}', skipping ({candidates})")
            continue
        found.append((edition, path))

    if not found:
        raise FileNotFoundError(f"No corpus found in {pm.dir_kaikki} for {langs}")
    return found


def read_entries(
    builder: DictionaryBuilder,
    langs: Langs,
    datasets: list[tuple[str, Path]],
    tag_table: TagTable,
    diagnostics: Diagnostics,
    revision: str | None = None,
    first: int = 0,
    filters: Sequence[tuple[str, str]] = (),
    rejects: Sequence[tuple[str, str]] = (),
) -> list[IntermediateEntry]:
    """コーパスを読み、対象エントリを正規化・後処理して返す（Phase 1）."""
    lang = builder.record_lang(langs)
    entries: list[IntermediateEntry] = []
    for edition, path in datasets:
        logger.info(f"[Phase 1] Reading {edition} edition: {path}")
        adapter = JsonlCorpusAdapter(
            path,
            edition=edition,
            lang_codes={lang} if lang is not None else None,
            limit=first,
            on_error=diagnostics.record_skipped,
            filters=filters,
            rejects=rejects,
        )
        kept = 0
        for raw in adapter.read():
            try:
                entry = normalize(raw, revision=revision)
            except RecordError as e:
                diagnostics.record_skipped(e)
                logger.debug(str(e))
                continue
            if not builder.keep(entry, langs):
                continue
            entries.append(postprocess(entry, tag_table, diagnostics))
            kept += 1
        logger.info(f"[Phase 1] {edition}: kept {kept:,} entries for {builder.flavor}")
    return entries


def write_tidy(entries: list[IntermediateEntry], path: Path) -> Path:
    """中間表現を JSON Lines で保存する（--save-temps 用）."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for entry in entries:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False))
            f.write("\n")
    logger.info(f"Wrote tidy entries: {path}")
    return path


def make_dictionary(
    flavor: Flavor | str,
    langs: Langs,
    options: BuildOptions | None = None,
    tag_table: TagTable | None = None,
    client: httpx.Client | None = None,
) -> BuildReport:
    """1種類の辞書をビルドする.

    Args:
        flavor: 辞書種別
        langs: make_langs() で組み立てた言語指定
        options: 実行オプション
        tag_table: 読み込み済みのタグ表（未指定なら options に従って読む）
        client: コーパス取得に使う httpx.Client（--download 時、未指定なら内部で作成）

    Returns:
        BuildReport

    Raises:
        ConfigurationError: タグ設定表の不整合
        SchemaConformanceError: 出力レコードが Yomitan スキーマを満たせない
        FileNotFoundError: コーパスが見つからない
        httpx.HTTPError: コーパスの取得に失敗した
    """
    options = options or BuildOptions()
    builder = get_builder(flavor)
    name = dict_name(builder.flavor, langs, options.prefix)
    pm = PathManager(options.root_dir, name, langs)
    report = BuildReport(name=name, flavor=builder.flavor)

    # Phase 0
    if tag_table is None:
        logger.info("[Phase 0] Loading tag tables")
        tag_table = load_tag_table(options.tag_order, options.tag_bank)

    datasets = _datasets(builder, langs, pm, options, client=client)
    snapshot = options.snapshot_date or latest_snapshot_date(path for _, path in datasets)
    report.revision = revision_from_date(snapshot)

    # Phase 1
    diagnostics = Diagnostics()
    entries = read_entries(
        builder,
        langs,
        datasets,
        tag_table,
        diagnostics,
        revision=report.revision,
        first=options.first,
        filters=options.filters,
        rejects=options.rejects,
    )
    report.processed = len(entries)
    report.skipped = len(diagnostics.skipped)
    report.tags_dropped = diagnostics.tags_dropped
    report.distinct_tags_dropped = diagnostics.distinct_tags_dropped

    if options.save_temps:
        write_tidy(entries, pm.path_tidy)

    # Phase 2
    logger.info(f"[Phase 2] Building {builder.flavor} records from {len(entries):,} entries")
    outputs = builder.build_all(entries, langs)
    report.entries_written = len(outputs)
    report.entries_by_label = dict(Counter(o.label for o in outputs))

    # Phase 3
    if not outputs:
        logger.warning(f"[Phase 3] No records for {name}; nothing to package")
    elif options.package:
        index = build_index(name, builder.flavor, langs, snapshot, options)
        package = emit(outputs, index, tag_table)
        pm.setup_dirs()
        written = write_package(package, pm.dir_temp, pretty=options.pretty)

        report.index_path = pm.path_index
        shutil.copyfile(written[0], report.index_path)
        report.package_path = archive_package(pm.dir_temp, pm.path_zip, index.revision)
        if not options.save_temps:
            shutil.rmtree(pm.dir_temp)
        logger.info(f"[Phase 3] Wrote {report.package_path}")

    # Phase 4
    report.report_paths = diagnostics.write_reports(pm.dir_diagnostics)
    logger.info(report.summary())
    return report
