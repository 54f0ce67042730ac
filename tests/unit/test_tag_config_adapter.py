"""Unit tests for TagConfigAdapter."""

import json
from pathlib import Path

import pytest

from yomitan_dict_builder.adapters.tag_config_adapter import TagConfigAdapter
from yomitan_dict_builder.core.exceptions import ConfigurationError


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestTagConfigAdapter:
    """Test TagConfigAdapter functionality."""

    def test_read_tables(self, tmp_path: Path) -> None:
        order = _write(tmp_path / "order.json", {"number": ["singular", "plural"]})
        info = _write(
            tmp_path / "info.json",
            [["singular", "grammar", 0, "sg.", 0], ["plural", "grammar", 0, ["pl."], 1]],
        )

        frames = TagConfigAdapter(order, info).read()

        assert frames["order"]["name"].to_list() == ["singular", "plural"]
        assert frames["info"]["notes"].to_list() == [["sg."], ["pl."]]
        assert frames["info"]["notes_is_list"].to_list() == [False, True]

    def test_invalid_json(self, tmp_path: Path) -> None:
        order = tmp_path / "order.json"
        order.write_text("{", encoding="utf-8")
        info = _write(tmp_path / "info.json", [])

        with pytest.raises(ConfigurationError, match="invalid JSON"):
            TagConfigAdapter(order, info).read()

    def test_empty_table(self, tmp_path: Path) -> None:
        order = _write(tmp_path / "order.json", {"number": ["plural"]})
        info = _write(tmp_path / "info.json", [])

        with pytest.raises(ConfigurationError, match="empty"):
            TagConfigAdapter(order, info).read()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            TagConfigAdapter(tmp_path / "order.json", tmp_path / "info.json")
