"""SelectionState — カテゴリ階層の選択状態エンジン。

カテゴリごとの展開状態・検索語と、項目ごとの選択真偽値を保持する。
カタログに対応するエントリを持つ「有効」な項目のみが一括選択と
カテゴリ状態（none / partial / all）の算出に参加する。
派生値はキャッシュせず、参照のたびに現在の状態から再計算する。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from toolbatch.catalog._catalog import TestCatalog
from toolbatch.models.catalog import DEFAULT_DELIMITER, CatalogRecord
from toolbatch.models.category import (
    Category,
    CategoryItem,
    CategoryState,
    SelectedTest,
)


def match_catalog_record(
    catalog: TestCatalog | None,
    category: str,
    item: str,
    delimiter: str = DEFAULT_DELIMITER,
    full_name: str | None = None,
) -> CatalogRecord | None:
    """項目に対応するカタログレコードを返す。

    呼び出し可能項目の命名規則とカタログの合成キーの区切り位置が
    一致するとは限らないため、以下の名前を候補として照合する。

    - 元の呼び出し可能項目名（full_name 指定時）
    - ``category + delimiter + item`` の合成名
    - 項目名そのもの

    まず候補をキーとするエントリを順に探し、見つからなければ
    レコードの full_name が候補に一致するエントリを探す。

    Args:
        catalog: 照合対象のカタログ。None の場合は常に None。
        category: カテゴリ名。
        item: カテゴリ内の項目名。
        delimiter: 合成名の区切り文字。
        full_name: 元の呼び出し可能項目名。

    Returns:
        最初に一致したレコード。一致しなければ None。
    """
    if catalog is None:
        return None
    candidates = list(
        dict.fromkeys(
            name
            for name in (full_name, f"{category}{delimiter}{item}", item)
            if name is not None
        )
    )
    for name in candidates:
        record = catalog.get(name)
        if record is not None:
            return record
    for name in candidates:
        record = catalog.find_by_full_name(name)
        if record is not None:
            return record
    return None


@dataclass
class _CategoryEntry:
    """カテゴリ 1 件分の可変状態。"""

    expanded: bool
    items: dict[str, bool]
    full_names: dict[str, str]
    search: str = ""
    order: list[str] = field(default_factory=list)


class SelectionState:
    """カテゴリ列に対する選択状態。

    項目リストが変わった場合は set_categories() で再構築する。
    再構築時、引き続き存在するカテゴリの展開状態と項目の選択値は引き継ぎ、
    新しい項目は未選択、消えた項目は破棄する。
    """

    def __init__(
        self,
        categories: Sequence[Category] = (),
        catalog: TestCatalog | None = None,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        self._catalog = catalog
        self._delimiter = delimiter
        self._entries: dict[str, _CategoryEntry] = {}
        self.set_categories(categories)

    # ------------------------------------------------------------------
    # 構成
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> TestCatalog | None:
        """有効判定に使用するカタログ。"""
        return self._catalog

    @property
    def delimiter(self) -> str:
        return self._delimiter

    def set_catalog(self, catalog: TestCatalog | None) -> None:
        """有効判定に使用するカタログを差し替える。選択値は変更しない。"""
        self._catalog = catalog

    def set_categories(self, categories: Sequence[Category]) -> None:
        """カテゴリ列から状態を再構築する。

        既存の展開状態・検索語は同名のカテゴリが、選択値は同じ元の名前を
        持つ項目が引き続き存在する場合に限り引き継ぐ。
        """
        previous = self._entries
        entries: dict[str, _CategoryEntry] = {}
        for category in categories:
            old = previous.get(category.name)
            kept: dict[str, bool] = (
                {old.full_names[name]: value for name, value in old.items.items()}
                if old is not None
                else {}
            )
            full_names: dict[str, str] = {}
            for category_item in category.items:
                full_names.setdefault(category_item.name, category_item.full_name)
            entries[category.name] = _CategoryEntry(
                expanded=old.expanded if old is not None else category.expanded,
                items={
                    name: kept.get(full_name, False)
                    for name, full_name in full_names.items()
                },
                full_names=full_names,
                search=old.search if old is not None else "",
                order=list(full_names),
            )
        self._entries = entries

    @property
    def category_names(self) -> list[str]:
        """カテゴリ名を表示順で返す。"""
        return list(self._entries)

    @property
    def categories(self) -> list[Category]:
        """現在の展開状態を反映したカテゴリ列を返す。"""
        return [
            Category(
                name=name,
                expanded=entry.expanded,
                items=tuple(
                    CategoryItem(name=item, full_name=entry.full_names[item])
                    for item in entry.order
                ),
            )
            for name, entry in self._entries.items()
        ]

    def _entry(self, category: str) -> _CategoryEntry:
        try:
            return self._entries[category]
        except KeyError:
            raise KeyError(f"Unknown category: {category!r}") from None

    def _check_item(self, entry: _CategoryEntry, category: str, item: str) -> None:
        if item not in entry.items:
            raise KeyError(f"Unknown item {item!r} in category {category!r}")

    # ------------------------------------------------------------------
    # 有効判定
    # ------------------------------------------------------------------

    def full_name(self, category: str, item: str) -> str:
        """項目の元の呼び出し可能項目名を返す。"""
        entry = self._entry(category)
        self._check_item(entry, category, item)
        return entry.full_names[item]

    def catalog_record(self, category: str, item: str) -> CatalogRecord | None:
        """項目に対応するカタログレコードを返す。"""
        return match_catalog_record(
            self._catalog,
            category,
            item,
            self._delimiter,
            self.full_name(category, item),
        )

    def is_enabled(self, category: str, item: str) -> bool:
        """項目がカタログのエントリに対応しているか判定する。"""
        return self.catalog_record(category, item) is not None

    def enabled_items(self, category: str) -> list[str]:
        """カテゴリ内の有効な項目名を表示順で返す。"""
        entry = self._entry(category)
        return [item for item in entry.order if self.is_enabled(category, item)]

    def enabled_count(self, category: str) -> int:
        """カテゴリ内の有効な項目数を返す。"""
        return len(self.enabled_items(category))

    # ------------------------------------------------------------------
    # 変更操作
    # ------------------------------------------------------------------

    def toggle_expanded(self, category: str) -> bool:
        """カテゴリの展開状態を反転し、新しい値を返す。"""
        entry = self._entry(category)
        entry.expanded = not entry.expanded
        return entry.expanded

    def is_expanded(self, category: str) -> bool:
        return self._entry(category).expanded

    def is_selected(self, category: str, item: str) -> bool:
        entry = self._entry(category)
        self._check_item(entry, category, item)
        return entry.items[item]

    def set_item(self, category: str, item: str, value: bool) -> None:
        """項目の選択値を設定する。有効判定は行わない。"""
        entry = self._entry(category)
        self._check_item(entry, category, item)
        entry.items[item] = value

    def toggle_item(self, category: str, item: str) -> bool:
        """項目の選択値を反転し、新しい値を返す。"""
        value = not self.is_selected(category, item)
        self.set_item(category, item, value)
        return value

    def toggle_category(self, category: str) -> None:
        """カテゴリ内の有効な項目を一括で選択・解除する。

        有効な項目が全て選択済みなら全て解除し、そうでなければ全て選択する。
        有効でない項目は変更しない。有効な項目がなければ何もしない。
        """
        entry = self._entry(category)
        enabled = self.enabled_items(category)
        if not enabled:
            return
        new_value = not all(entry.items[item] for item in enabled)
        for item in enabled:
            entry.items[item] = new_value

    def toggle_all(self) -> None:
        """全カテゴリの有効な項目を一括で選択・解除する。

        判定条件は「全カテゴリの有効な項目が全て選択済みか」。
        """
        enabled = [
            (entry, item)
            for name, entry in self._entries.items()
            for item in entry.order
            if self.is_enabled(name, item)
        ]
        if not enabled:
            return
        new_value = not all(entry.items[item] for entry, item in enabled)
        for entry, item in enabled:
            entry.items[item] = new_value

    def clear(self) -> None:
        """全項目の選択を解除する。"""
        for entry in self._entries.values():
            for item in entry.items:
                entry.items[item] = False

    # ------------------------------------------------------------------
    # 検索
    # ------------------------------------------------------------------

    def set_search(self, category: str, term: str) -> None:
        """カテゴリの検索語を設定する。選択値は変更しない。"""
        self._entry(category).search = term

    def clear_search(self, category: str) -> None:
        self._entry(category).search = ""

    def search_term(self, category: str) -> str:
        return self._entry(category).search

    def visible_items(self, category: str) -> list[str]:
        """検索語に大文字小文字を区別せず部分一致する項目名を返す。"""
        entry = self._entry(category)
        if not entry.search:
            return list(entry.order)
        needle = entry.search.lower()
        return [item for item in entry.order if needle in item.lower()]

    # ------------------------------------------------------------------
    # 派生値
    # ------------------------------------------------------------------

    def category_state(self, category: str) -> CategoryState:
        """有効な項目のみを対象にカテゴリの選択状態を算出する。"""
        entry = self._entry(category)
        enabled = self.enabled_items(category)
        selected = sum(1 for item in enabled if entry.items[item])
        if selected == 0:
            return CategoryState.NONE
        if selected == len(enabled):
            return CategoryState.ALL
        return CategoryState.PARTIAL

    @property
    def total_selected(self) -> int:
        """選択値が True の項目数。有効判定によらず数える。"""
        return sum(
            sum(1 for value in entry.items.values() if value)
            for entry in self._entries.values()
        )

    @property
    def selected_tests(self) -> list[SelectedTest]:
        """選択済みの (カテゴリ, 項目) 組を表示順で返す。"""
        return [
            SelectedTest(category=name, item=item, name=entry.full_names[item])
            for name, entry in self._entries.items()
            for item in entry.order
            if entry.items[item]
        ]

    @property
    def selected_names(self) -> list[str]:
        """選択済み項目の元の呼び出し可能項目名を表示順で返す。"""
        return [test.name for test in self.selected_tests]

    @property
    def selected_summary(self) -> str | None:
        """カテゴリごとの選択状況の要約。何も選択されていなければ None。

        全項目選択時は ``"<category> (All <n>)"``、それ以外は
        ``"<category> (<k>/<n>)"`` とし、``", "`` で連結する。
        """
        parts: list[str] = []
        for name, entry in self._entries.items():
            selected = sum(1 for value in entry.items.values() if value)
            if selected == 0:
                continue
            total = len(entry.items)
            if selected == total:
                parts.append(f"{name} (All {total})")
            else:
                parts.append(f"{name} ({selected}/{total})")
        return ", ".join(parts) if parts else None

    def snapshot(self) -> dict[str, dict[str, object]]:
        """``{category: {"expanded": bool, "items": {item: bool}}}`` 形式の複製を返す。"""
        return {
            name: {"expanded": entry.expanded, "items": dict(entry.items)}
            for name, entry in self._entries.items()
        }
