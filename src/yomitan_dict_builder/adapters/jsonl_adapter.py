"""JsonlCorpusAdapter for reading wiktextract JSONL extracts.

This adapter streams one kaikki.org extract (plain ``.jsonl`` or gzip
``.jsonl.gz``) line by line and yields ``RawEntry`` records. The file is read
as bytes and each line is decoded on its own, so a line that is not UTF-8 or
not a JSON object is reported through ``on_error`` and skipped; it never
aborts the read.
"""

from __future__ import annotations

import gzip
import json
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import IO, Any

from loguru import logger

from yomitan_dict_builder.core.exceptions import RecordError
from yomitan_dict_builder.core.models import RawEntry

from .base_adapter import BaseAdapter

PROGRESS_INTERVAL = 10_000


class JsonlCorpusAdapter(BaseAdapter):
    """Adapter for a wiktextract JSONL corpus.

    Args:
        file_path: Path to the ``.jsonl`` / ``.jsonl.gz`` extract
        edition: Wiktionary edition the extract comes from (e.g. "en")
        lang_codes: When given, only records whose ``lang_code`` is in this set are yielded
        limit: Stop after this many accepted records (0 = no limit)
        on_error: Called with a RecordError for every undecodable line
        filters: ``(field, value)`` pairs a record must all match to be yielded
        rejects: ``(field, value)`` pairs; a record matching any of them is dropped
    """

    def __init__(
        self,
        file_path: Path | str,
        edition: str,
        lang_codes: set[str] | None = None,
        limit: int = 0,
        on_error: Callable[[RecordError], None] | None = None,
        filters: Sequence[tuple[str, str]] = (),
        rejects: Sequence[tuple[str, str]] = (),
    ) -> None:
        """Initialize adapter.

        Raises:
            FileNotFoundError: JSONL file does not exist
        """
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise FileNotFoundError(f"JSONL file not found: {self.file_path}")
        self.edition = edition
        self.lang_codes = lang_codes
        self.limit = limit
        self.on_error = on_error
        self.filters = tuple(filters)
        self.rejects = tuple(rejects)
        self.line_count = 0
        self.accepted_count = 0
        self.filtered_count = 0

    def _open(self) -> IO[bytes]:
        if self.file_path.suffix == ".gz":
            return gzip.open(self.file_path, "rb")
        return open(self.file_path, "rb")

    def _report(self, error: RecordError) -> None:
        if self.on_error is not None:
            self.on_error(error)
        else:
            logger.warning(str(error))

    def rejected(self, record: dict[str, Any]) -> bool:
        """--filter / --reject の field=value 条件で落とすレコードか."""
        if any(record.get(key) == value for key, value in self.rejects):
            return True
        return not all(record.get(key) == value for key, value in self.filters)

    def read(self) -> Iterator[RawEntry]:
        """Yield RawEntry records in file order."""
        self.line_count = 0
        self.accepted_count = 0
        self.filtered_count = 0
        with self._open() as f:
            for line_no, raw_line in enumerate(f, start=1):
                self.line_count = line_no
                if line_no % PROGRESS_INTERVAL == 0:
                    logger.info(f"[{self.edition}] Processed {line_no:,} lines...")

                try:
                    line = raw_line.decode("utf-8").strip()
                    if not line:
                        continue
                    record = json.loads(line)
                except UnicodeDecodeError as e:
                    self._report(RecordError("", line_no, f"invalid UTF-8 ({e.reason} at byte {e.start})"))
                    continue
                except json.JSONDecodeError as e:
                    self._report(RecordError("", line_no, f"invalid JSON ({e.msg})"))
                    continue

                if not self.validate(record):
                    self._report(RecordError("", line_no, "record is not a JSON object"))
                    continue

                record = self.repair(record)
                if self.lang_codes is not None and record.get("lang_code") not in self.lang_codes:
                    continue
                if self.rejected(record):
                    self.filtered_count += 1
                    continue

                self.accepted_count += 1
                yield RawEntry.from_record(record, edition=self.edition, line_no=line_no)

                if self.limit and self.accepted_count >= self.limit:
                    logger.info(f"[{self.edition}] Reached record limit ({self.limit})")
                    break

        logger.info(
            f"[{self.edition}] Processed {self.line_count:,} lines. "
            f"Accepted {self.accepted_count:,} records from {self.file_path.name}"
        )
        if self.filtered_count:
            logger.info(f"[{self.edition}] Dropped {self.filtered_count:,} records by --filter/--reject")

    def validate(self, data: Any) -> bool:
        """A corpus record must be a JSON object."""
        return isinstance(data, dict)

    def repair(self, data: dict[str, Any]) -> dict[str, Any]:
        """Older extracts carry the language code under ``code``."""
        if "lang_code" not in data and isinstance(data.get("code"), str):
            data = {**data, "lang_code": data["code"]}
        return data
