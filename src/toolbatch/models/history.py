"""実行履歴モデルの定義。

1 回のバッチ実行で解決済みの (name, arguments) 組を HistoryItem として保持し、
その順序付き列を HistoryEntry、HistoryEntry の上限付き列を HistoryLog とする。
永続化形式は ``[[{"name": ..., "arguments": ...}, ...], ...]`` の JSON 配列。
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import Field, TypeAdapter

from toolbatch.models._base import ToolbatchBaseModel

DEFAULT_HISTORY_LIMIT: Final[int] = 3
"""保持する履歴エントリ数のデフォルト上限。"""


class HistoryItem(ToolbatchBaseModel):
    """履歴に記録される 1 件の解決済み呼び出し。

    Attributes:
        name: 呼び出し対象のツール名（空文字不可）。
        arguments: 実行時に使用した引数。
    """

    name: str = Field(min_length=1)
    arguments: Any = None


HistoryEntry = tuple[HistoryItem, ...]
"""1 回のバッチ実行を表す HistoryItem の順序付き列。"""

HistoryLog = tuple[HistoryEntry, ...]
"""HistoryEntry の順序付き列。古いものが先頭、最新が末尾。"""

HISTORY_LOG_ADAPTER: Final[TypeAdapter[list[list[HistoryItem]]]] = TypeAdapter(
    list[list[HistoryItem]]
)
"""永続化形式（配列の配列）との相互変換に使用する TypeAdapter。"""
