"""ExecutionEngine — 選択項目の並列ディスパッチと実行レコード管理。

全ての呼び出しを asyncio.TaskGroup 内でタスクとして生成してから待機するため、
I/O 待ちは重なり合う。完了順は保証しない。
個々の呼び出しの失敗はそのレコードに記録するのみで、他の呼び出しや
バッチ全体の待機（fan-out / fan-in）には影響しない。
タイムアウトとキャンセルは行わない。応答しない呼び出しは running のまま残る。
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from toolbatch.catalog._catalog import TestCatalog
from toolbatch.engine._invoker import Invoker
from toolbatch.engine._progress import ProgressReporter
from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRecord,
    ExecutionRunning,
    ExecutionSuccess,
    ExecutionSummary,
)
from toolbatch.models.history import HistoryItem

logger = logging.getLogger(__name__)


def resolve_batch(
    names: Sequence[str],
    catalog: TestCatalog | None = None,
    manual_arguments: Mapping[str, Any] | None = None,
) -> list[HistoryItem]:
    """選択された名前を (name, arguments) の組に解決する。

    カタログにエントリがあればその引数を優先し（カタログ駆動モード）、
    なければ manual_arguments の値を使用する（手入力モード）。
    どちらにもなければ空の辞書を引数とする。

    Args:
        names: 選択順の名前列。
        catalog: 引数解決に使用するカタログ。
        manual_arguments: 名前 → 手入力引数の辞書。

    Returns:
        選択順の HistoryItem リスト。
    """
    manual = manual_arguments if manual_arguments is not None else {}
    resolved: list[HistoryItem] = []
    for name in names:
        record = None
        if catalog is not None:
            record = catalog.get(name) or catalog.find_by_full_name(name)
        if record is not None:
            arguments = record.arguments
        else:
            arguments = manual.get(name, {})
        resolved.append(HistoryItem(name=name, arguments=arguments))
    return resolved


def _error_message(exc: BaseException) -> str:
    """例外を空でないメッセージ文字列に変換する。"""
    return str(exc) or type(exc).__name__


class ExecutionEngine:
    """Invoker を用いてバッチを並列実行し、実行レコードを保持する。

    レコードはディスパッチ順に並び、各レコードは running から
    success / error へ一度だけ置き換わる。clear_results() は全レコードを
    一括で破棄するが、実行中の呼び出しはキャンセルしない。
    破棄後に完了した呼び出しの結果は破棄済みのレコード列には書き戻さない。
    """

    def __init__(
        self,
        invoker: Invoker,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self._invoker = invoker
        self._reporter = reporter
        self._records: list[ExecutionRecord] = []
        self._generation = 0
        self._active = 0

    @property
    def records(self) -> list[ExecutionRecord]:
        """現在の実行レコード（ディスパッチ順）の複製。"""
        return list(self._records)

    @property
    def is_running(self) -> bool:
        """バッチの待機中であれば True。"""
        return self._active > 0

    def summary(self) -> ExecutionSummary:
        """現在の実行レコードの集計を返す。"""
        return ExecutionSummary.from_records(self._records)

    def clear_results(self) -> None:
        """全実行レコードを一括で破棄する。実行中の呼び出しはキャンセルしない。"""
        self._records = []
        self._generation += 1

    async def run(
        self,
        selected_names: Sequence[str],
        catalog: TestCatalog | None = None,
        manual_arguments: Mapping[str, Any] | None = None,
        *,
        connected: bool = True,
    ) -> list[ExecutionRecord]:
        """選択された名前の引数を解決し、並列に呼び出す。

        未接続、または選択が空の場合は何もしない。

        Args:
            selected_names: 選択順の名前列。
            catalog: 引数解決に使用するカタログ。
            manual_arguments: カタログにない名前の手入力引数。
            connected: 接続先に接続済みか。

        Returns:
            このバッチの終端状態の実行レコード（ディスパッチ順）。
        """
        if not connected or not selected_names:
            return []
        items = resolve_batch(selected_names, catalog, manual_arguments)
        return await self._dispatch(items)

    async def run_resolved(
        self,
        items: Sequence[HistoryItem],
        *,
        connected: bool = True,
    ) -> list[ExecutionRecord]:
        """解決済みの (name, arguments) 組をそのまま並列に呼び出す。

        履歴の再実行に使用する。カタログと選択状態は参照しない。
        """
        if not connected or not items:
            return []
        return await self._dispatch(items)

    async def _dispatch(self, items: Sequence[HistoryItem]) -> list[ExecutionRecord]:
        generation = self._generation
        batch: list[ExecutionRecord] = []
        self._active += 1
        try:
            self._start_reporter()
            async with asyncio.TaskGroup() as tg:
                for item in items:
                    started_at = datetime.now(timezone.utc)
                    running = ExecutionRunning(name=item.name, started_at=started_at)
                    position = len(self._records)
                    self._records.append(running)
                    slot = len(batch)
                    batch.append(running)
                    logger.debug("Dispatching '%s'", item.name)
                    self._notify_start(item.name)
                    tg.create_task(
                        self._call(item, started_at, batch, slot, position, generation)
                    )
        finally:
            self._active -= 1
            self._stop_reporter()
        return batch

    async def _call(
        self,
        item: HistoryItem,
        started_at: datetime,
        batch: list[ExecutionRecord],
        slot: int,
        position: int,
        generation: int,
    ) -> None:
        start = time.monotonic()
        record: ExecutionSuccess | ExecutionError
        try:
            result = await self._invoker.call_tool(item.name, item.arguments)
        except Exception as exc:
            logger.warning(
                "Tool '%s' failed with %s: %s",
                item.name,
                type(exc).__name__,
                exc,
                exc_info=True,
            )
            record = ExecutionError(
                name=item.name,
                started_at=started_at,
                error=_error_message(exc),
                duration_millis=(time.monotonic() - start) * 1000,
            )
        else:
            record = ExecutionSuccess(
                name=item.name,
                started_at=started_at,
                result=result,
                duration_millis=(time.monotonic() - start) * 1000,
            )

        batch[slot] = record
        if generation == self._generation:
            self._records[position] = record
        self._notify_complete(item.name, record)

    def _start_reporter(self) -> None:
        if self._reporter is None:
            return
        try:
            self._reporter.start()
        except Exception:
            logger.warning("Progress reporter failed to start", exc_info=True)

    def _stop_reporter(self) -> None:
        if self._reporter is None:
            return
        try:
            self._reporter.stop()
        except Exception:
            logger.warning("Progress reporter failed to stop", exc_info=True)

    def _notify_start(self, name: str) -> None:
        if self._reporter is None:
            return
        try:
            self._reporter.on_call_start(name)
        except Exception:
            logger.warning(
                "Progress reporter failed on start of '%s'", name, exc_info=True
            )

    def _notify_complete(
        self, name: str, record: ExecutionSuccess | ExecutionError
    ) -> None:
        if self._reporter is None:
            return
        try:
            self._reporter.on_call_complete(name, record)
        except Exception:
            logger.warning(
                "Progress reporter failed on completion of '%s'", name, exc_info=True
            )
