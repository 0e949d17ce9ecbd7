"""カタログレコードの定義。

CSV の 1 行（server, tool, request_args）から構築される不変レコード。
server と tool_name を区切り文字で連結した full_name がカタログ内の一意キーとなる。
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import Field, computed_field

from toolbatch.models._base import ToolbatchBaseModel
from toolbatch.models.history import HistoryItem

DEFAULT_DELIMITER: Final[str] = "-"
"""full_name 構築とカテゴリ分割に使用するデフォルト区切り文字。"""


class CatalogRecord(ToolbatchBaseModel):
    """カタログに登録された 1 件のツール呼び出し定義。

    Attributes:
        server: サーバー名（空文字不可）。
        tool_name: ツール名（空文字不可）。
        arguments: JSON デコード済みの呼び出し引数。
        delimiter: full_name 構築に使用する区切り文字。
    """

    server: str = Field(min_length=1)
    tool_name: str = Field(min_length=1)
    arguments: Any = None
    delimiter: str = Field(default=DEFAULT_DELIMITER, min_length=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        """server + delimiter + tool_name の合成名。"""
        return f"{self.server}{self.delimiter}{self.tool_name}"

    def to_history_item(self) -> HistoryItem:
        """履歴永続化用の HistoryItem に変換する。"""
        return HistoryItem(name=self.full_name, arguments=self.arguments)
