"""HistoryStore — 上限付きの実行履歴ストア。

完了したバッチの解決済み (name, arguments) 組を末尾に追加し、
上限を超えたら最も古いエントリを破棄する（FIFO）。
追加のたびに履歴全体を JSON にシリアライズしてストレージへ書き込む。
読み込み・書き込みの失敗はログに記録するのみで、呼び出し元には送出しない。
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Final

from pydantic import ValidationError

from toolbatch.history._storage import KeyValueStorage
from toolbatch.models.catalog import CatalogRecord
from toolbatch.models.config import DEFAULT_HISTORY_KEY
from toolbatch.models.history import (
    DEFAULT_HISTORY_LIMIT,
    HISTORY_LOG_ADAPTER,
    HistoryEntry,
    HistoryItem,
    HistoryLog,
)

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
"""履歴変更の通知を受け取るコールバック。"""

_EMPTY_LOG: Final[HistoryLog] = ()


class PersistenceDecodeError(Exception):
    """保存済み履歴のデコードエラー。不正な JSON、想定外の構造等。"""


class PersistenceWriteError(Exception):
    """履歴の書き込みエラー。"""


def dump_history(log: HistoryLog) -> str:
    """履歴を永続化形式の JSON 文字列に変換する。"""
    return HISTORY_LOG_ADAPTER.dump_json([list(entry) for entry in log]).decode("utf-8")


def parse_history(text: str) -> HistoryLog:
    """永続化形式の JSON 文字列から履歴を復元する。

    Raises:
        PersistenceDecodeError: JSON として不正、または配列の配列でない場合。
    """
    try:
        entries = HISTORY_LOG_ADAPTER.validate_json(text)
    except ValidationError as exc:
        raise PersistenceDecodeError(f"Invalid history data: {exc}") from exc
    return tuple(tuple(entry) for entry in entries)


def _to_history_item(item: HistoryItem | CatalogRecord) -> HistoryItem:
    if isinstance(item, CatalogRecord):
        return item.to_history_item()
    return item


class HistoryStore:
    """実行履歴の保持・永続化・変更通知を行うストア。

    現在の履歴は不変のタプルとして保持し、変更時は新しいタプルに差し替える。
    購読者への通知は append() の呼び出しスタック内では行わず、
    イベントループの次の反復で非同期に行う。
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_HISTORY_KEY,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self._storage = storage
        self._key = key
        self._limit = limit
        self._log: HistoryLog = _EMPTY_LOG
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def snapshot(self) -> HistoryLog:
        """現在の履歴（古い順）。"""
        return self._log

    def get_all(self) -> HistoryLog:
        """現在の履歴を古い順に返す。"""
        return self._log

    def get(self, index: int) -> HistoryEntry:
        """index 番目（0 始まり、古い順）のエントリを返す。

        Raises:
            IndexError: 範囲外の場合。
        """
        if not 0 <= index < len(self._log):
            raise IndexError(
                f"History index {index} out of range (0..{len(self._log) - 1})"
                if self._log
                else "History is empty"
            )
        return self._log[index]

    def load(self) -> HistoryLog:
        """ストレージから履歴を読み込む。

        値が存在しない、またはデコードできない場合は空の履歴とする。
        デコード失敗はログに記録し、例外は送出しない。
        上限を超えるエントリが保存されていた場合は新しいものを残す。
        """
        try:
            raw = self._storage.get_item(self._key)
        except Exception as exc:
            logger.warning("Failed to read saved history: %s", exc, exc_info=True)
            self._log = _EMPTY_LOG
            return self._log

        if raw is None:
            self._log = _EMPTY_LOG
            return self._log

        try:
            log = parse_history(raw)
        except PersistenceDecodeError as exc:
            logger.warning("Failed to parse saved history, starting empty: %s", exc)
            self._log = _EMPTY_LOG
            return self._log

        self._log = log[-self._limit :]
        return self._log

    async def append(self, batch: Sequence[HistoryItem | CatalogRecord]) -> HistoryLog:
        """バッチを履歴の末尾に追加して保存する。

        上限を超えた場合は最も古いエントリを破棄する。
        書き込みの失敗はログに記録するのみで、追加自体は取り消さない。
        複数の append は直列化される。

        Args:
            batch: 解決済みの呼び出し列。CatalogRecord は HistoryItem に変換する。

        Returns:
            追加後の履歴。
        """
        entry: HistoryEntry = tuple(_to_history_item(item) for item in batch)
        async with self._lock:
            log = (*self._log, entry)
            if len(log) > self._limit:
                log = log[len(log) - self._limit :]
            self._log = log
            try:
                self._persist(log)
            except PersistenceWriteError as exc:
                logger.warning("History was not saved: %s", exc, exc_info=True)
        asyncio.get_running_loop().call_soon(self._notify)
        return self._log

    def _persist(self, log: HistoryLog) -> None:
        """履歴全体をストレージに書き込む。

        Raises:
            PersistenceWriteError: ストレージへの書き込みに失敗した場合。
        """
        try:
            self._storage.set_item(self._key, dump_history(log))
        except Exception as exc:
            raise PersistenceWriteError(
                f"Failed to save history under '{self._key}': {exc}"
            ) from exc

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """履歴変更の通知を購読する。

        Returns:
            購読を解除する関数。
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.warning("History listener failed", exc_info=True)
