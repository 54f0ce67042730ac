"""ビルド設定とパス規約.

- Langs: 1回の実行の (edition, source, target)
- BuildOptions: CLI から渡される実行オプション
- PathManager: コーパス・出力・一時ファイル・診断のパス規約
- 辞書名の規約（main: ``wty-<source>-<target>`` など）
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from pathlib import Path

# 辞書を生成する Wiktionary エディション（kaikki.org が抽出を公開しているもの）
EDITIONS: tuple[str, ...] = (
    "cs",
    "de",
    "el",
    "en",
    "es",
    "fr",
    "id",
    "it",
    "ja",
    "ko",
    "ku",
    "ms",
    "nl",
    "pl",
    "pt",
    "ru",
    "simple",
    "th",
    "tr",
    "vi",
    "zh",
)

# 「全エディション」「ソース言語なし」を表すパス・メタデータ上の記号
ALL = "all"

DEFAULT_PREFIX = "wty"
DEFAULT_BASE_URL = "https://huggingface.co/datasets/daxida/test-dataset/resolve/main"

_LANG_CODE_RE = re.compile(r"^[a-z]{2,3}(-[a-z]{2,8})*$")


class Flavor(StrEnum):
    MAIN = "main"
    IPA = "ipa"
    IPA_MERGED = "ipa-merged"
    GLOSSARY = "glossary"
    GLOSSARY_EXTENDED = "glossary-extended"


class EditionRole(StrEnum):
    """どのエディションのコーパスを読むか."""

    TARGET = "target"  # edition == target
    SOURCE = "source"  # edition == source
    SELECTED = "selected"  # 指定した1エディション、または全エディション
    ALL = "all"  # 全エディション


def validate_lang_code(code: str) -> str:
    """言語コードを検証して小文字で返す.

    Raises:
        ValueError: ISO 639 風のコードでない場合

    Examples:
        >>> validate_lang_code("DE")
        'de'
        >>> validate_lang_code("roa-opt")
        'roa-opt'
    """
    normalized = code.strip().lower()
    if normalized == "simple" or _LANG_CODE_RE.match(normalized):
        return normalized
    raise ValueError(f"Invalid language code: {code!r}")


def validate_edition(edition: str) -> str:
    """エディションを検証する（"all" も可）.

    Raises:
        ValueError: 未対応のエディション
    """
    normalized = edition.strip().lower()
    if normalized == ALL or normalized in EDITIONS:
        return normalized
    raise ValueError(f"Unsupported Wiktionary edition: {edition!r} (supported: {', '.join(EDITIONS)}, all)")


# --filter / --reject で比較できるレコードのフィールド（文字列値のもの）
FILTER_FIELDS: tuple[str, ...] = ("word", "pos", "lang_code", "lang", "etymology_text")


def parse_field_condition(text: str) -> tuple[str, str]:
    """``KEY=VALUE`` 形式のレコード条件を (field, value) に分解する.

    Raises:
        ValueError: ``=`` が無い、または比較できないフィールドの場合

    Examples:
        >>> parse_field_condition("pos=noun")
        ('pos', 'noun')
    """
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Expected KEY=VALUE, got {text!r}")
    if key not in FILTER_FIELDS:
        raise ValueError(f"Unsupported filter field: {key!r} (supported: {', '.join(FILTER_FIELDS)})")
    return key, value


@dataclass(frozen=True)
class Langs:
    """1回の実行の言語指定.

    Attributes:
        edition: 読むエディション（"all" なら全エディション）
        source: ソース言語（ipa-merged では "all"）
        target: ターゲット言語
    """

    edition: str
    source: str
    target: str

    def editions(self) -> tuple[str, ...]:
        if self.edition == ALL:
            return EDITIONS
        return (self.edition,)


@dataclass(frozen=True)
class BuildOptions:
    root_dir: Path = Path("data")
    save_temps: bool = False
    pretty: bool = False
    quiet: bool = False
    verbose: bool = False
    first: int = 0
    snapshot_date: date | None = None
    tag_order: Path | None = None
    tag_bank: Path | None = None
    base_url: str = DEFAULT_BASE_URL
    prefix: str = DEFAULT_PREFIX
    updatable: bool = True
    package: bool = True
    # コーパスが無ければ kaikki.org から取得する / 既存でも取り直す
    download: bool = False
    redownload: bool = False
    # (field, value) のレコード条件
    filters: tuple[tuple[str, str], ...] = ()
    rejects: tuple[tuple[str, str], ...] = ()


def dict_name(flavor: Flavor | str, langs: Langs, prefix: str = DEFAULT_PREFIX) -> str:
    """辞書名（タイトル、ファイル名、URL に共通）.

    Examples:
        >>> dict_name(Flavor.MAIN, Langs("en", "de", "en"))
        'wty-de-en'
        >>> dict_name(Flavor.IPA_MERGED, Langs("all", "all", "en"))
        'wty-en-ipa'
    """
    flavor = Flavor(flavor)
    if flavor is Flavor.MAIN:
        return f"{prefix}-{langs.source}-{langs.target}"
    if flavor is Flavor.IPA:
        return f"{prefix}-{langs.source}-{langs.target}-ipa"
    if flavor is Flavor.IPA_MERGED:
        return f"{prefix}-{langs.target}-ipa"
    if flavor is Flavor.GLOSSARY:
        return f"{prefix}-{langs.source}-{langs.target}-gloss"
    return f"{prefix}-{langs.edition}-{langs.source}-{langs.target}-gloss"


class PathManager:
    """ルートディレクトリ配下のパス規約.

    ``<root>/kaikki``     入力コーパス
    ``<root>/dict``       ``<target>/<source|all>/<name>.zip``
    ``<root>/index``      ``<name>-index.json``（indexUrl で配布する index のコピー）
    ``<root>/temp``       ``<name>/``（バンクファイル、tidy.jsonl）
    ``<root>/diagnostics`` ``<name>/``（tags.tsv, skipped_records.tsv）
    """

    def __init__(self, root_dir: Path | str, name: str, langs: Langs) -> None:
        self.root_dir = Path(root_dir)
        self.name = name
        self.langs = langs

    @property
    def dir_kaikki(self) -> Path:
        return self.root_dir / "kaikki"

    @property
    def dir_dict(self) -> Path:
        return self.root_dir / "dict" / self.langs.target / self.langs.source

    @property
    def dir_index(self) -> Path:
        return self.root_dir / "index"

    @property
    def dir_temp(self) -> Path:
        return self.root_dir / "temp" / self.name

    @property
    def dir_diagnostics(self) -> Path:
        return self.root_dir / "diagnostics" / self.name

    @property
    def path_zip(self) -> Path:
        return self.dir_dict / f"{self.name}.zip"

    @property
    def path_index(self) -> Path:
        return self.dir_index / f"{self.name}-index.json"

    @property
    def path_tidy(self) -> Path:
        return self.dir_temp / "tidy.jsonl"

    def dataset_candidates(self, edition: str, lang: str | None = None) -> list[Path]:
        """コーパスファイルの候補（言語で絞り込み済みのもの → エディション全体の順）."""
        names: list[str] = []
        if lang is not None:
            names.append(f"{lang}-{edition}-extract")
        names.append(f"{edition}-extract")
        return [self.dir_kaikki / f"{n}{ext}" for n in names for ext in (".jsonl", ".jsonl.gz")]

    def find_dataset(self, edition: str, lang: str | None = None) -> Path | None:
        for path in self.dataset_candidates(edition, lang):
            if path.exists():
                return path
        return None

    def setup_dirs(self) -> None:
        for d in (self.dir_kaikki, self.dir_dict, self.dir_index, self.dir_temp):
            d.mkdir(parents=True, exist_ok=True)
