"""ProgressReporter — stderr 進捗表示。

TTY 時は Rich Live テーブル、非 TTY 時はプレーンテキストで自動切替する。
進捗表示・ログは stderr に出力し、stdout は結果出力専用とする。
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRunning,
    ExecutionSuccess,
    ExecutionSummary,
)


# =============================================================================
# ProgressReporter Protocol
# =============================================================================


@runtime_checkable
class ProgressReporter(Protocol):
    """ツール呼び出しの進捗を報告するプロトコル。"""

    def on_call_start(self, name: str) -> None:
        """呼び出しのディスパッチを通知する。"""
        ...

    def on_call_complete(
        self, name: str, record: ExecutionSuccess | ExecutionError
    ) -> None:
        """呼び出しの完了を通知する。"""
        ...

    def start(self) -> None:
        """進捗表示を開始する。"""
        ...

    def stop(self) -> None:
        """進捗表示を停止する。"""
        ...


# =============================================================================
# PlainProgressReporter
# =============================================================================


class PlainProgressReporter:
    """非 TTY 環境向けプレーンテキスト進捗レポーター。"""

    def on_call_start(self, name: str) -> None:
        """report_call_start に委譲する。"""
        report_call_start(name)

    def on_call_complete(
        self, name: str, record: ExecutionSuccess | ExecutionError
    ) -> None:
        """report_call_complete に委譲する。"""
        report_call_complete(name, record)

    def start(self) -> None:
        """プレーンテキストでは開始処理なし。"""

    def stop(self) -> None:
        """プレーンテキストでは停止処理なし。"""


# =============================================================================
# ファクトリ関数
# =============================================================================


def create_progress_reporter() -> ProgressReporter:
    """stderr の TTY 状態に基づいて適切な ProgressReporter を生成する。"""
    if sys.stderr.isatty():
        from toolbatch.engine._live_progress import RichProgressReporter

        return RichProgressReporter()
    return PlainProgressReporter()


def report_call_start(name: str) -> None:
    """呼び出し開始を stderr に表示する。

    出力フォーマット:
        "Calling tool: {name}..."
    """
    print(f"Calling tool: {name}...", file=sys.stderr)


def report_call_complete(
    name: str, record: ExecutionSuccess | ExecutionError | ExecutionRunning
) -> None:
    """呼び出し完了を stderr に表示する。

    出力フォーマット:
        成功: "Tool {name}: success ({duration}ms)"
        エラー: "Tool {name}: error ({error}) ({duration}ms)"

    Args:
        name: 完了した呼び出しの名前。
        record: 終端状態の実行レコード。
    """
    if isinstance(record, ExecutionSuccess):
        msg = f"Tool {name}: success ({record.duration_millis:.0f}ms)"
    elif isinstance(record, ExecutionError):
        msg = f"Tool {name}: error ({record.error}) ({record.duration_millis:.0f}ms)"
    else:
        raise TypeError(f"Not a terminal record: {type(record)}")

    print(msg, file=sys.stderr)


def report_summary(summary: ExecutionSummary) -> None:
    """全体完了サマリーを stderr に表示する。

    出力フォーマット:
        "Batch complete: {total} calls ({succeeded} succeeded, {failed} failed)"
    """
    msg = (
        f"Batch complete: {summary.total} calls "
        f"({summary.succeeded} succeeded, {summary.failed} failed)"
    )
    print(msg, file=sys.stderr)
