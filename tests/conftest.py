"""テスト共通のフィクスチャ."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from yomitan_dict_builder.core.tag_table import TagTable

SMALL_ORDER = {
    "partOfSpeech": ["n", "v"],
    "number": ["singular", "plural"],
    "gender": ["masculine", "feminine"],
    "dialect": ["General American", "Received Pronunciation"],
    "region": ["US", "UK"],
}

SMALL_INFO = [
    ["n", "partOfSpeech", 0, ["noun"], 0],
    ["v", "partOfSpeech", 0, ["verb"], 0],
    ["singular", "grammar", 0, ["sg."], 0],
    ["plural", "grammar", 0, ["pl.", "plural number"], 0],
    ["masculine", "grammar", 0, ["masc.", "m"], 0],
    ["feminine", "grammar", 0, ["fem.", "f"], 0],
    ["General American", "dialect", 0, ["GA", "GenAm"], 0],
    ["Received Pronunciation", "dialect", 0, ["RP"], 0],
    ["US", "region", 0, ["United States", "American"], 0],
    ["UK", "region", 0, ["United Kingdom", "British"], 0],
]


@pytest.fixture
def tag_table() -> TagTable:
    return TagTable.from_tables(SMALL_ORDER, SMALL_INFO)


@pytest.fixture
def write_jsonl() -> Callable[[Path, list], Path]:
    """レコードのリストを JSON Lines として書き出すヘルパ（文字列はそのまま1行として書く）."""

    def _write(path: Path, records: list) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for record in records:
                line = record if isinstance(record, str) else json.dumps(record, ensure_ascii=False)
                f.write(line + "\n")
        return path

    return _write
