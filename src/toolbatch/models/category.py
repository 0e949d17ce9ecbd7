"""カテゴリと選択状態に関するモデルの定義。"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import Field

from toolbatch.models._base import ToolbatchBaseModel

UNCATEGORIZED: Final[str] = "uncategorized"
"""区切り文字を含まない項目が属するカテゴリ名。"""


class CategoryState(StrEnum):
    """カテゴリ単位の選択状態。有効な項目のみを対象に算出する。"""

    NONE = "none"
    PARTIAL = "partial"
    ALL = "all"


class CategoryItem(ToolbatchBaseModel):
    """カテゴリに属する 1 項目。

    Attributes:
        name: カテゴリ内での表示名。最初の区切り文字以降の名前で、
            未分類の場合は元の名前そのまま。
        full_name: 元の呼び出し可能項目名。呼び出しと履歴にはこちらを使う。
    """

    name: str
    full_name: str


class Category(ToolbatchBaseModel):
    """呼び出し可能項目のカテゴリ。

    Attributes:
        name: カテゴリ名（最初の区切り文字までの接頭辞、または "uncategorized"）。
        expanded: 展開状態。表示用だが選択状態の一部として保持する。
        items: 入力順を保持した項目列。
    """

    name: str
    expanded: bool = True
    items: tuple[CategoryItem, ...] = Field(default_factory=tuple)

    @property
    def item_names(self) -> tuple[str, ...]:
        """項目名のタプルを返す。"""
        return tuple(item.name for item in self.items)


class SelectedTest(ToolbatchBaseModel):
    """選択済みの (カテゴリ, 項目) 組と元の呼び出し可能項目名。"""

    category: str
    item: str
    name: str
