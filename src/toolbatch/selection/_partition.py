"""CategoryPartitioner — 呼び出し可能項目のカテゴリ分割。

項目名の最初の区切り文字までをカテゴリ名、以降を項目名とする。
区切り文字を含まない項目は "uncategorized" に属する。
カテゴリは初出順、カテゴリ内の項目は入力順を保持する。
各項目は元の名前を full_name として持ち、呼び出しにはそちらを使う。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from toolbatch.models.catalog import DEFAULT_DELIMITER
from toolbatch.models.category import UNCATEGORIZED, Category, CategoryItem


def split_name(name: str, delimiter: str = DEFAULT_DELIMITER) -> tuple[str, str]:
    """項目名を (カテゴリ名, 項目名) に分割する。

    先頭が区切り文字の場合（接頭辞が空）も未分類として扱い、
    区切り文字以降を項目名とする。
    """
    index = name.find(delimiter)
    if index == -1:
        return UNCATEGORIZED, name
    category = name[:index] or UNCATEGORIZED
    return category, name[index + len(delimiter) :]


def partition_items(
    names: Iterable[str], delimiter: str = DEFAULT_DELIMITER
) -> list[Category]:
    """項目名の列をカテゴリ列に分割する。

    同じ名前が複数回現れた場合は最初の 1 件のみを残す。
    "foo" と "uncategorized-foo" のように表示名が衝突する場合、
    後から現れた項目は元の名前を表示名とする。

    Args:
        names: 呼び出し可能項目の名前（入力順）。
        delimiter: カテゴリ区切り文字。

    Returns:
        初出順の Category リスト。全項目がいずれか一つのカテゴリに属する。

    Raises:
        ValueError: delimiter が空文字の場合。
    """
    if not delimiter:
        raise ValueError("delimiter must not be empty")

    grouped: dict[str, dict[str, CategoryItem]] = {}
    for name in dict.fromkeys(names):
        category, item = split_name(name, delimiter)
        items = grouped.setdefault(category, {})
        display = _unique_display_name(items, item, name)
        items[display] = CategoryItem(name=display, full_name=name)

    return [
        Category(name=category, items=tuple(items.values()))
        for category, items in grouped.items()
    ]


def _unique_display_name(
    taken: Mapping[str, object], item: str, full_name: str
) -> str:
    if item not in taken:
        return item
    if full_name not in taken:
        return full_name
    suffix = 2
    while f"{full_name} ({suffix})" in taken:
        suffix += 1
    return f"{full_name} ({suffix})"
