"""選択状態パッケージ。

呼び出し可能項目のカテゴリ分割と、カテゴリ階層の選択状態管理を担当する。
"""

from toolbatch.selection._partition import partition_items, split_name
from toolbatch.selection._state import SelectionState, match_catalog_record

__all__ = [
    "SelectionState",
    "match_catalog_record",
    "partition_items",
    "split_name",
]
