"""設定管理モデル。

全設定項目はデフォルト値を持ち、設定ファイルが一つも存在しなくても
有効なインスタンスを構築できる。
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import Field, StrictBool, field_validator

from toolbatch.models._base import ToolbatchBaseModel
from toolbatch.models.catalog import DEFAULT_DELIMITER
from toolbatch.models.history import DEFAULT_HISTORY_LIMIT

DEFAULT_HISTORY_KEY: Final[str] = "__INSPECTOR_BULK_TOOL_CALLS"
"""履歴を保存するキー。"""

DEFAULT_HISTORY_FILE: Final[str] = ".toolbatch/history.json"
"""履歴ストレージファイルのデフォルトパス（カレントディレクトリ相対）。"""


class OutputFormat(StrEnum):
    """実行結果の出力形式。"""

    TEXT = "text"
    JSON = "json"


class ToolbatchConfig(ToolbatchBaseModel):
    """全設定項目を統合した不変モデル。

    デフォルト値のみで有効なインスタンスを構築可能。
    """

    # 名前解決設定
    delimiter: str = Field(default=DEFAULT_DELIMITER, min_length=1)

    # カタログ設定
    catalog: str | None = Field(default=None, min_length=1)
    csv_delimiter: str = Field(default=",", min_length=1, max_length=1)
    csv_trim: StrictBool = True
    csv_skip_empty_lines: StrictBool = True

    # 履歴設定
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, gt=0)
    history_key: str = Field(default=DEFAULT_HISTORY_KEY, min_length=1)
    history_file: str = Field(default=DEFAULT_HISTORY_FILE, min_length=1)
    save_history: StrictBool = True

    # 出力設定
    output_format: OutputFormat = OutputFormat.TEXT

    @field_validator("csv_delimiter")
    @classmethod
    def validate_csv_delimiter(cls, v: str) -> str:
        """CSV 区切り文字に引用符や改行が使われていないことを検証する。"""
        if v in ('"', "\n", "\r"):
            msg = f"Invalid csv_delimiter {v!r}: quote and newline are reserved"
            raise ValueError(msg)
        return v
