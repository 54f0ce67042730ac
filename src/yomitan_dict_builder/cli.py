"""CLI エントリポイント（yomitan-dict）."""

from __future__ import annotations

import argparse
import os
import sys
from datetime import date
from pathlib import Path

import httpx
from loguru import logger

from .config import (
    ALL,
    DEFAULT_BASE_URL,
    DEFAULT_PREFIX,
    EDITIONS,
    FILTER_FIELDS,
    BuildOptions,
    Flavor,
    parse_field_condition,
    validate_edition,
    validate_lang_code,
)
from .core.exceptions import DictionaryBuildError
from .download import corpus_path, download_kaikki_jsonl
from .pipeline import make_dictionary, make_langs

# コーパス取得だけを行うサブコマンド（辞書種別ではない）
DOWNLOAD_COMMAND = "download"


def configure_logging(quiet: bool = False, verbose: bool = False) -> str:
    """loguru のシンクを設定する.

    既定は INFO（進捗表示）、--quiet で WARNING、--verbose で DEBUG。
    環境変数 LOGURU_LEVEL があればそれを優先する。
    """
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = "INFO"
    level = os.environ.get("LOGURU_LEVEL", level)

    logger.remove()
    logger.add(sys.stderr, level=level)
    return level


def _add_base_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root-dir",
        type=Path,
        default=Path("data"),
        help="Root directory for corpora and outputs (default: data)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_base_options(parser)
    parser.add_argument(
        "--save-temps",
        action="store_true",
        help="Keep the bank files and write tidy.jsonl under <root>/temp/<name>/",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument(
        "--download",
        action="store_true",
        help="Fetch missing corpora from kaikki.org into <root>/kaikki",
    )
    parser.add_argument(
        "--redownload",
        action="store_true",
        help="Fetch the corpora from kaikki.org even if they already exist",
    )
    parser.add_argument(
        "--filter",
        dest="filters",
        metavar="KEY=VALUE",
        type=parse_field_condition,
        action="append",
        default=[],
        help=f"Only keep records whose KEY equals VALUE (repeatable; KEY in {', '.join(FILTER_FIELDS)})",
    )
    parser.add_argument(
        "--reject",
        dest="rejects",
        metavar="KEY=VALUE",
        type=parse_field_condition,
        action="append",
        default=[],
        help="Drop records whose KEY equals VALUE (repeatable)",
    )
    parser.add_argument(
        "--first",
        type=int,
        default=0,
        help="Only read the first N matching records of each corpus (0 = all)",
    )
    parser.add_argument(
        "--snapshot-date",
        type=date.fromisoformat,
        default=None,
        help="Corpus snapshot date YYYY-MM-DD (default: inferred from the corpus files)",
    )
    parser.add_argument("--tag-order", type=Path, default=None, help="Tag order table JSON")
    parser.add_argument("--tag-bank", type=Path, default=None, help="Tag info table JSON")
    parser.add_argument(
        "--base-url",
        type=str,
        default=DEFAULT_BASE_URL,
        help="Base URL for indexUrl / downloadUrl",
    )
    parser.add_argument(
        "--prefix",
        type=str,
        default=DEFAULT_PREFIX,
        help=f"Dictionary name prefix (default: {DEFAULT_PREFIX})",
    )
    parser.add_argument(
        "--not-updatable",
        action="store_true",
        help="Emit isUpdatable=false and no update URLs",
    )
    parser.add_argument(
        "--no-package",
        action="store_true",
        help="Skip writing the Yomitan package (diagnostics only)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yomitan-dict",
        description="Build Yomitan dictionaries from wiktextract (kaikki.org) JSONL extracts",
    )
    sub = parser.add_subparsers(dest="flavor", required=True)

    for flavor, help_text in (
        (Flavor.MAIN, "Full entries: senses, examples, etymology and inflected forms"),
        (Flavor.IPA, "Pronunciations (IPA) for one language pair"),
        (Flavor.GLOSSARY, "Short translations from the source edition's translation tables"),
    ):
        p = sub.add_parser(flavor.value, help=help_text)
        p.add_argument("source", type=validate_lang_code, help="Source language code")
        p.add_argument("target", type=validate_lang_code, help="Target language code")
        _add_common_options(p)

    p = sub.add_parser(Flavor.IPA_MERGED.value, help="Pronunciations of TARGET merged from every edition")
    p.add_argument("target", type=validate_lang_code, help="Target language code")
    _add_common_options(p)

    p = sub.add_parser(
        Flavor.GLOSSARY_EXTENDED.value,
        help="Translation pairs SOURCE -> TARGET taken from any edition's translation tables",
    )
    p.add_argument("source", type=validate_lang_code, help="Source language code")
    p.add_argument("target", type=validate_lang_code, help="Target language code")
    p.add_argument(
        "--edition",
        type=validate_edition,
        default="all",
        help="Edition to read, or 'all' (default: all)",
    )
    _add_common_options(p)

    p = sub.add_parser(DOWNLOAD_COMMAND, help="Fetch whole-edition extracts from kaikki.org into <root>/kaikki")
    p.add_argument("editions", nargs="+", type=validate_edition, metavar="EDITION", help="Edition, or 'all'")
    p.add_argument("--redownload", action="store_true", help="Fetch even if the local snapshot is current")
    _add_base_options(p)

    return parser


def options_from_args(args: argparse.Namespace) -> BuildOptions:
    return BuildOptions(
        root_dir=args.root_dir,
        save_temps=args.save_temps,
        pretty=args.pretty,
        quiet=args.quiet,
        verbose=args.verbose,
        first=args.first,
        snapshot_date=args.snapshot_date,
        tag_order=args.tag_order,
        tag_bank=args.tag_bank,
        base_url=args.base_url,
        prefix=args.prefix,
        updatable=not args.not_updatable,
        package=not args.no_package,
        download=args.download,
        redownload=args.redownload,
        filters=tuple(args.filters),
        rejects=tuple(args.rejects),
    )


def download_editions(editions: list[str], root_dir: Path, force: bool = False) -> int:
    """kaikki.org から各エディションの抽出データを <root>/kaikki に取得する."""
    targets = list(EDITIONS) if ALL in editions else list(dict.fromkeys(editions))
    failed = 0
    for edition in targets:
        try:
            download_kaikki_jsonl(edition, corpus_path(root_dir / "kaikki", edition), force=force)
        except httpx.HTTPError as e:
            logger.error(f"Download failed for {edition}: {e}")
            failed += 1
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    """CLI エントリポイント.

    Returns:
        終了コード（成功 0、致命的エラー 1）
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    if args.flavor == DOWNLOAD_COMMAND:
        return download_editions(args.editions, args.root_dir, force=args.redownload)

    try:
        langs = make_langs(
            args.flavor,
            source=getattr(args, "source", None),
            target=args.target,
            edition=getattr(args, "edition", None),
        )
        report = make_dictionary(args.flavor, langs, options_from_args(args))
    except (DictionaryBuildError, ValueError, FileNotFoundError, httpx.HTTPError) as e:
        logger.error(f"{args.flavor} failed: {e}")
        return 1

    if report.package_path is not None:
        logger.success(f"Built {report.name}: {report.package_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
