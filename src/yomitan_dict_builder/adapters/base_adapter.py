"""入力ソースアダプタ（基底クラス）.

コーパス（JSONL）やタグ設定表（JSON）を共通インターフェースで扱うための
抽象基底クラスを定義します。
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

import polars as pl

from yomitan_dict_builder.core.models import RawEntry


class BaseAdapter(ABC):
    """入力ソースアダプタの基底クラス.

    全てのアダプタはこのクラスを継承し、read()/validate()/repair() を実装します。
    """

    @abstractmethod
    def read(self) -> pl.DataFrame | dict[str, pl.DataFrame] | Iterator[RawEntry]:
        """データソースを読み込む.

        Returns:
            - 設定表: DataFrame（複数テーブルなら DataFrame 辞書）
            - コーパス: RawEntry のイテレータ（巨大なので逐次読み）

        Raises:
            FileNotFoundError: ファイルが存在しない場合
            ValueError: データ形式が不正な場合
        """
        ...

    @abstractmethod
    def validate(self, data: Any) -> bool:
        """データ整合性を検証する."""
        ...

    @abstractmethod
    def repair(self, data: Any) -> Any:
        """壊れたデータを修復する（必要なら）."""
        ...
