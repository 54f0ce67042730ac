"""Dictionary builder exceptions.

ビルド中のエラー分類を定義します。

- ConfigurationError: タグ設定表の不整合（致命的。コーパス処理前に中断）
- RecordError: 壊れたコーパスレコード（非致命的。エントリをスキップして継続）
- SchemaConformanceError: Yomitan スキーマに表現できない出力（その辞書種別のみ致命的）

未知タグは例外ではなく、Tag Postprocessor で破棄して Diagnostics に記録します。
"""

from __future__ import annotations


class DictionaryBuildError(Exception):
    """辞書ビルドに関する例外の基底クラス."""


class ConfigurationError(DictionaryBuildError):
    """タグ順序表・タグ情報表の不整合.

    Attributes:
        tag: 問題のあるタグ名（またはエイリアス）
        reason: 不整合の内容
    """

    def __init__(self, tag: str, reason: str) -> None:
        self.tag = tag
        self.reason = reason
        super().__init__(f"Invalid tag configuration for '{tag}': {reason}")


class RecordError(DictionaryBuildError):
    """1件のコーパスレコードを正規化できなかった.

    Attributes:
        headword: 見出し語（取得できなかった場合は空文字）
        line_no: 入力JSONLの行番号（不明なら None）
        reason: スキップ理由
    """

    def __init__(self, headword: str, line_no: int | None, reason: str) -> None:
        self.headword = headword
        self.line_no = line_no
        self.reason = reason
        where = f"line {line_no}" if line_no is not None else "unknown line"
        super().__init__(f"Skipped record '{headword}' ({where}): {reason}")


class SchemaConformanceError(DictionaryBuildError):
    """出力レコードが Yomitan スキーマを満たせない.

    Attributes:
        flavor: 辞書種別（main, ipa, ...）
        field: 表現できなかったフィールド
        headword: 対象の見出し語
    """

    def __init__(self, flavor: str, field: str, headword: str) -> None:
        self.flavor = flavor
        self.field = field
        self.headword = headword
        super().__init__(
            f"[{flavor}] Cannot represent '{headword}' in the Yomitan schema: "
            f"field '{field}' is missing or invalid"
        )
