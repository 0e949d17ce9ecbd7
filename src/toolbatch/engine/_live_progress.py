"""RichProgressReporter — TTY 環境向け Rich Live テーブル進捗表示。

バッチ実行中、呼び出しごとの状態と所要時間を stderr のテーブルに描画し続ける。
"""

from __future__ import annotations

import sys

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from toolbatch.models.execution import ExecutionError, ExecutionSuccess

SettledRecord = ExecutionSuccess | ExecutionError


class RichProgressReporter:
    """TTY 環境向け Rich Live テーブル進捗レポーター。

    calls は名前 → 完了レコードの辞書で、実行中の呼び出しは None を持つ。
    挿入順がそのままテーブルの行順（ディスパッチ順）になる。
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(file=sys.stderr)
        self._live: Live | None = None
        self.calls: dict[str, SettledRecord | None] = {}

    def on_call_start(self, name: str) -> None:
        self.calls[name] = None
        self._redraw()

    def on_call_complete(self, name: str, record: SettledRecord) -> None:
        self.calls[name] = record
        self._redraw()

    def start(self) -> None:
        """Live 表示を開始する。既に開始済みなら何もしない。"""
        if self._live is not None:
            return
        self._live = Live(
            self.build_table(), console=self._console, refresh_per_second=8
        )
        self._live.start()

    def stop(self) -> None:
        """最終状態を描画して Live 表示を停止する。"""
        live, self._live = self._live, None
        if live is None:
            return
        live.update(self.build_table(), refresh=True)
        live.stop()

    @property
    def failed(self) -> int:
        return sum(isinstance(r, ExecutionError) for r in self.calls.values())

    @property
    def settled(self) -> int:
        return sum(r is not None for r in self.calls.values())

    def build_table(self) -> Table:
        """現在の calls からテーブルを構築する。"""
        table = Table(
            title="toolbatch",
            caption=f"{self.settled}/{len(self.calls)} settled, {self.failed} failed",
        )
        table.add_column("Call", overflow="fold")
        table.add_column("Status")
        table.add_column("Time", justify="right")
        for name, record in self.calls.items():
            if record is None:
                table.add_row(name, Spinner("dots", text="running"), "")
            else:
                table.add_row(
                    name, _status_text(record), f"{record.duration_millis:.0f}ms"
                )
        return table

    def _redraw(self) -> None:
        if self._live is not None:
            self._live.update(self.build_table())


def _status_text(record: SettledRecord) -> Text:
    if isinstance(record, ExecutionSuccess):
        return Text("ok", style="bold green")
    return Text(f"error: {record.error}", style="bold red")
