"""BatchSession — バルク実行のオーケストレーション。

カタログ提供者・Invoker・履歴ストアをコンストラクタで受け取り、
カタログ読み込み → 選択 → 並列実行 → 履歴保存 → 再実行の流れを束ねる。
モジュールレベルのシングルトンは持たず、生成元が一つのセッションの
ライフサイクルを所有する。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from toolbatch.catalog._catalog import TestCatalog
from toolbatch.catalog._manager import CatalogProvider
from toolbatch.engine._executor import ExecutionEngine
from toolbatch.engine._invoker import Invoker
from toolbatch.engine._progress import ProgressReporter
from toolbatch.history._store import HistoryStore
from toolbatch.models.catalog import DEFAULT_DELIMITER
from toolbatch.models.execution import ExecutionRecord
from toolbatch.models.history import HistoryItem
from toolbatch.selection._partition import partition_items
from toolbatch.selection._state import SelectionState

logger = logging.getLogger(__name__)


class BatchSession:
    """一つの接続先に対するバルク実行セッション。

    Attributes:
        selection: 呼び出し可能項目の選択状態。
        executor: 並列実行エンジン。
        history: 実行履歴ストア。
    """

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        invoker: Invoker,
        history: HistoryStore,
        *,
        delimiter: str = DEFAULT_DELIMITER,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self._catalog_provider = catalog_provider
        self._delimiter = delimiter
        self._connected = False
        self._items: tuple[str, ...] = ()
        self.history = history
        self.executor = ExecutionEngine(invoker, reporter=reporter)
        self.selection = SelectionState(
            catalog=catalog_provider.get_catalog(), delimiter=delimiter
        )

    # ------------------------------------------------------------------
    # 接続・カタログ・項目
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    def set_connected(self, connected: bool) -> None:
        """接続状態を設定する。未接続の間は実行要求を無視する。"""
        self._connected = connected

    @property
    def catalog(self) -> TestCatalog | None:
        return self._catalog_provider.get_catalog()

    @property
    def items(self) -> tuple[str, ...]:
        """現在の呼び出し可能項目名（入力順）。"""
        return self._items

    async def load_catalog(self) -> TestCatalog:
        """カタログを読み込み、選択状態の有効判定に反映する。

        Raises:
            LoadError: 取得元が読み取れない場合。
            MalformedRecordError: カタログ行が不正な場合。
        """
        catalog = await self._catalog_provider.load_catalog()
        self.selection.set_catalog(catalog)
        return catalog

    def set_items(self, names: Sequence[str]) -> None:
        """呼び出し可能項目の一覧を差し替え、カテゴリと選択状態を再構築する。"""
        self._items = tuple(names)
        self.selection.set_categories(partition_items(self._items, self._delimiter))

    # ------------------------------------------------------------------
    # 実行
    # ------------------------------------------------------------------

    def resolve_selected(
        self, manual_arguments: Mapping[str, Any] | None = None
    ) -> list[HistoryItem]:
        """選択済み項目を (name, arguments) の組に解決する。

        name は常に元の呼び出し可能項目名とする。引数は項目に対応する
        カタログレコードから取り、なければ name をキーに manual_arguments
        から取る。どちらにもなければ空の辞書とする。
        """
        manual = manual_arguments if manual_arguments is not None else {}
        batch: list[HistoryItem] = []
        for test in self.selection.selected_tests:
            record = self.selection.catalog_record(test.category, test.item)
            arguments = (
                record.arguments if record is not None else manual.get(test.name, {})
            )
            batch.append(HistoryItem(name=test.name, arguments=arguments))
        return batch

    async def run_selected(
        self, manual_arguments: Mapping[str, Any] | None = None
    ) -> list[ExecutionRecord]:
        """選択済み項目を並列実行し、完了後に履歴へ保存する。

        未接続、または選択が空の場合は何もしない。
        """
        if not self._connected or self.selection.total_selected == 0:
            return []
        batch = self.resolve_selected(manual_arguments)
        records = await self.executor.run_resolved(batch, connected=self._connected)
        if records:
            await self.history.append(batch)
        return records

    async def replay(self, index: int) -> list[ExecutionRecord]:
        """履歴の index 番目のバッチを保存済みの引数でそのまま再実行する。

        Raises:
            IndexError: 範囲外の場合。
        """
        entry = self.history.get(index)
        logger.info("Replaying history entry %d (%d calls)", index, len(entry))
        return await self.executor.run_resolved(entry, connected=self._connected)

    def clear_results(self) -> None:
        self.executor.clear_results()
