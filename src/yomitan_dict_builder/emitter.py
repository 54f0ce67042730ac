"""Package Emitter: assemble builder output into a Yomitan package.

- emit(): pure assembly of records, index and referenced tags
- write_package(): bank files on disk (index.json, term_bank_n, term_meta_bank_n, tag_bank_1)
- archive_package(): deterministic zip of a written package directory
"""

from __future__ import annotations

import json
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from .core.postprocess import sort_tags
from .core.tag_table import CanonicalTag, TagTable, format_tag_name
from .index import DictionaryIndex
from .schema import TermEntry, TermMetaEntry, tag_bank_row

BANK_SIZE = 10_000


@dataclass
class Package:
    index: DictionaryIndex
    terms: list[TermEntry] = field(default_factory=list)
    term_meta: list[TermMetaEntry] = field(default_factory=list)
    tags: list[CanonicalTag] = field(default_factory=list)

    def term_rows(self) -> list[list[Any]]:
        """Term bank rows; sequence numbers follow output order, starting at 1."""
        return [entry.to_row(sequence) for sequence, entry in enumerate(self.terms, start=1)]

    def term_meta_rows(self) -> list[list[Any]]:
        return [entry.to_row() for entry in self.term_meta]

    def tag_rows(self) -> list[list[Any]]:
        return [tag_bank_row(tag) for tag in self.tags]


def _tags_named_in(field_value: str, tag_table: TagTable) -> list[CanonicalTag]:
    tags: list[CanonicalTag] = []
    for token in field_value.split():
        tag = tag_table.resolve(token)
        if tag is not None and format_tag_name(tag.name) == token:
            tags.append(tag)
    return tags


def emit(
    outputs: Iterable[TermEntry | TermMetaEntry],
    index: DictionaryIndex,
    tag_table: TagTable,
) -> Package:
    """Split builder output into term / term meta records and collect the tag bank.

    The tag bank holds every canonical tag a record references, either through
    its ``tags`` or by name in ``definition_tags`` / ``term_tags``.
    """
    package = Package(index=index)
    referenced: list[CanonicalTag] = []
    for output in outputs:
        referenced.extend(output.tags)
        if isinstance(output, TermEntry):
            package.terms.append(output)
            referenced.extend(_tags_named_in(output.definition_tags, tag_table))
            referenced.extend(_tags_named_in(output.term_tags, tag_table))
        else:
            package.term_meta.append(output)

    package.tags = sort_tags(referenced)
    return package


def _chunks(rows: list[Any], size: int) -> list[list[Any]]:
    return [rows[i : i + size] for i in range(0, len(rows), size)]


def _write_json(path: Path, data: Any, pretty: bool) -> Path:
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)
    return path


def write_package(package: Package, out_dir: Path | str, pretty: bool = False) -> list[Path]:
    """Write the package's files into ``out_dir``.

    Returns:
        Written paths, index.json first
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # stale banks from a previous run would end up in the archive
    for stale in out_dir.glob("*_bank_*.json"):
        stale.unlink()

    written = [_write_json(out_dir / "index.json", package.index.to_dict(), pretty)]
    for n, chunk in enumerate(_chunks(package.term_rows(), BANK_SIZE), start=1):
        written.append(_write_json(out_dir / f"term_bank_{n}.json", chunk, pretty))
    for n, chunk in enumerate(_chunks(package.term_meta_rows(), BANK_SIZE), start=1):
        written.append(_write_json(out_dir / f"term_meta_bank_{n}.json", chunk, pretty))
    written.append(_write_json(out_dir / "tag_bank_1.json", package.tag_rows(), pretty))

    logger.debug(
        f"Wrote {len(written)} files to {out_dir} "
        f"(terms={len(package.terms)}, term_meta={len(package.term_meta)}, tags={len(package.tags)})"
    )
    return written


def _revision_timestamp(revision: str) -> tuple[int, int, int, int, int, int]:
    year, month, day = (int(part) for part in revision.split("."))
    return (year, month, day, 0, 0, 0)


def archive_package(src_dir: Path | str, zip_path: Path | str, revision: str) -> Path:
    """Zip a written package directory.

    Entries are stored in name order with timestamps taken from the revision
    date, so the same package always produces the same bytes.
    """
    src_dir = Path(src_dir)
    zip_path = Path(zip_path)
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    date_time = _revision_timestamp(revision)

    files = sorted(p for p in src_dir.glob("*.json") if p.is_file())
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in files:
            info = zipfile.ZipInfo(path.name, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, path.read_bytes())

    logger.info(f"Archived {len(files)} files into {zip_path}")
    return zip_path
