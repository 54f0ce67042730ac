"""CI release orchestrator: fetch corpora, build every dictionary, verify, and optionally publish."""

from __future__ import annotations

import argparse
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

import polars as pl
from loguru import logger

from builder_ci.fetcher import fetch_corpora, load_release_config
from builder_ci.manifest import (
    compare_revisions,
    create_release_manifest,
    load_release_manifest,
    should_publish,
    write_release_manifest,
)
from builder_ci.publisher import publish_release
from builder_ci.readme import generate_readme
from yomitan_dict_builder.cli import configure_logging
from yomitan_dict_builder.config import (
    DEFAULT_BASE_URL,
    DEFAULT_PREFIX,
    BuildOptions,
    Flavor,
    Langs,
    PathManager,
    dict_name,
)
from yomitan_dict_builder.pipeline import make_dictionary, make_langs
from yomitan_dict_builder.tools.report_package_health import run_health_checks

MANIFEST_NAME = "release_manifest.json"
RELEASE_FLAVORS = (Flavor.MAIN, Flavor.IPA, Flavor.IPA_MERGED, Flavor.GLOSSARY)
HEALTH_METRICS = ("index_problems", "bad_rows", "missing_tag_references", "duplicate_bank_tags")


@dataclass(frozen=True)
class ReleaseJob:
    flavor: Flavor
    langs: Langs

    def name(self, prefix: str = DEFAULT_PREFIX) -> str:
        return dict_name(self.flavor, self.langs, prefix)


def _pairs_with(edition: str, langs: list[str]) -> list[str]:
    # the Simple English edition only pairs with itself
    if edition == "simple":
        return ["simple"] if "simple" in langs else []
    return [lang for lang in langs if lang != "simple"]


def plan_jobs(config: dict) -> list[ReleaseJob]:
    """release.yml の設定から辞書ごとのジョブを並べる.

    - main / ipa: 各エディション（= target）× sources
    - ipa-merged: 各エディションの言語を target にして1つ
    - glossary: 各エディション（= source）× glossary_targets（同一言語は除く）
    """
    flavors: list[Flavor] = []
    for f in config.get("flavors", []):
        flavor = Flavor(f)
        if flavor not in RELEASE_FLAVORS:
            logger.warning(f"Flavor {flavor} is not part of a release, skipping")
            continue
        flavors.append(flavor)

    jobs: list[ReleaseJob] = []
    seen: set[str] = set()

    def add(flavor: Flavor, **kwargs: str) -> None:
        job = ReleaseJob(flavor, make_langs(flavor, **kwargs))
        name = job.name()
        if name not in seen:
            seen.add(name)
            jobs.append(job)

    for edition in config["editions"]:
        for flavor in (Flavor.MAIN, Flavor.IPA):
            if flavor in flavors:
                for source in _pairs_with(edition, config["sources"]):
                    add(flavor, source=source, target=edition)
        if Flavor.IPA_MERGED in flavors and edition != "simple":
            add(Flavor.IPA_MERGED, target=edition)
        if Flavor.GLOSSARY in flavors:
            for target in _pairs_with(edition, config["glossary_targets"]):
                if target != edition:
                    add(Flavor.GLOSSARY, source=edition, target=target)

    logger.info(f"Planned {len(jobs)} dictionaries")
    return jobs


def _health_to_manifest(summary_path: Path) -> dict | None:
    """package_health_summary.tsv（metric, value）から問題件数だけを取り出す."""
    if not summary_path.exists():
        return None
    summary = pl.read_csv(summary_path, separator="\t", infer_schema=False)
    values = dict(zip(summary["metric"].to_list(), summary["value"].to_list(), strict=True))
    result: dict[str, int | None] = {}
    for key in HEALTH_METRICS:
        raw = values.get(key)
        result[key] = int(raw) if raw is not None and raw.isdigit() else None
    return result


def _relative(path: Path | None, root_dir: Path) -> str | None:
    if path is None:
        return None
    try:
        return path.relative_to(root_dir).as_posix()
    except ValueError:
        return path.as_posix()


def run_job(job: ReleaseJob, options: BuildOptions) -> dict:
    """1つの辞書をビルドして、マニフェスト用の結果を返す.

    失敗は例外にせず ``status: failed`` として返す（リリース全体は止めない）。
    """
    name = job.name(options.prefix)
    record: dict = {
        "name": name,
        "flavor": job.flavor.value,
        "source": None if job.flavor is Flavor.IPA_MERGED else job.langs.source,
        "target": job.langs.target,
    }
    start = time.perf_counter()
    try:
        report = make_dictionary(job.flavor, job.langs, options)
    except Exception as e:
        logger.error(f"[{name}] failed: {e}")
        record.update(status="failed", error=str(e))
        return record

    record.update(
        revision=report.revision,
        processed=report.processed,
        skipped=report.skipped,
        tags_dropped=report.tags_dropped,
        entries_written=report.entries_written,
        entries_by_label=report.entries_by_label,
    )
    if report.package_path is None:
        record["status"] = "empty"
    else:
        record["status"] = "built"
        record["package"] = _relative(report.package_path, options.root_dir)
        record["index"] = _relative(report.index_path, options.root_dir)
        health_dir = PathManager(options.root_dir, name, job.langs).dir_diagnostics / "health"
        summary_path = run_health_checks(report.package_path, health_dir)
        record["health_checks"] = _health_to_manifest(summary_path)

    logger.info(f"[{name}] {record['status']} in {time.perf_counter() - start:.2f}s")
    return record


def build_all(jobs: list[ReleaseJob], options: BuildOptions, workers: int = 1) -> list[dict]:
    """ジョブを実行する。workers > 1 ならプロセスプールで並列に."""
    if workers <= 1:
        return [run_job(job, options) for job in jobs]

    results = []
    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(run_job, job, options): job for job in jobs}
        for future in as_completed(futures):
            results.append(future.result())
    return results


def run_release(
    config: dict,
    root_dir: Path,
    workers: int = 1,
    fetch: bool = True,
    force: bool = False,
    publish: bool = False,
    repo_id: str | None = None,
    base_url: str | None = None,
    first: int = 0,
) -> dict:
    """リリースを実行してマニフェストを返す.

    Raises:
        ValueError: 公開を要求したのに repo_id / HF_TOKEN が無い場合
    """
    root_dir = Path(root_dir)
    publish_cfg = config.get("publish", {})
    repo_id = repo_id or publish_cfg.get("repo_id")
    base_url = base_url or publish_cfg.get("base_url") or DEFAULT_BASE_URL

    logger.info(f"=== Release start: {len(config['editions'])} editions ===")
    if publish:
        if not repo_id:
            raise ValueError("publish requested but repo_id is not set")
        if not os.environ.get("HF_TOKEN"):
            raise ValueError("publish requested but HF_TOKEN is not set")

    corpora = fetch_corpora(config["editions"], root_dir, force=force) if fetch else []

    options = BuildOptions(
        root_dir=root_dir,
        quiet=True,
        first=first,
        base_url=base_url,
        prefix=config.get("prefix", DEFAULT_PREFIX),
    )
    results = build_all(plan_jobs(config), options, workers=workers)

    manifest_path = root_dir / MANIFEST_NAME
    manifest = create_release_manifest(results, corpora)
    comparison = compare_revisions(load_release_manifest(manifest_path), manifest)
    write_release_manifest(manifest, manifest_path)

    readme_path = root_dir / "README.md"
    readme_path.write_text(generate_readme(manifest, repo_id), encoding="utf-8")

    info = manifest["release_info"]
    if info["failed"]:
        logger.warning(f"{info['failed']} of {info['total']} dictionaries failed")

    if publish and should_publish(comparison, force=force):
        publish_release(
            root_dir=root_dir,
            manifest_path=manifest_path,
            readme_path=readme_path,
            repo_id=repo_id,
            token=os.environ["HF_TOKEN"],
            commit_message=f"Release {info['built_at'][:10]}",
        )

    logger.info("=== Release done ===")
    return manifest


def main() -> None:
    p = argparse.ArgumentParser(description="Build (and optionally publish) a dictionary release")
    p.add_argument(
        "--release-yml",
        type=Path,
        default=Path(__file__).parent / "release.yml",
        help="release.yml path",
    )
    p.add_argument("--root-dir", type=Path, default=Path("data"), help="Root data directory")
    p.add_argument("-j", "--jobs", type=int, default=1, help="Dictionaries built in parallel")
    p.add_argument("--no-fetch", action="store_true", help="Use the corpora already under <root>/kaikki")
    p.add_argument("--first", type=int, default=0, help="Only read the first N records per corpus")
    p.add_argument("--base-url", default=None, help="Base URL for indexUrl / downloadUrl")
    p.add_argument("--force", action="store_true", help="Refetch corpora and publish even without changes")
    p.add_argument("--publish", action="store_true", help="Publish to HuggingFace")
    p.add_argument("--repo-id", default=None, help="HF dataset repo id for publish")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")

    args = p.parse_args()
    configure_logging(verbose=args.verbose)

    config = load_release_config(args.release_yml)
    manifest = run_release(
        config,
        root_dir=args.root_dir,
        workers=args.jobs,
        fetch=not args.no_fetch,
        force=args.force,
        publish=args.publish,
        repo_id=args.repo_id,
        base_url=args.base_url,
        first=args.first,
    )
    info = manifest["release_info"]
    if info["total"] and info["failed"] == info["total"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
