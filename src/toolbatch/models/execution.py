"""ツール呼び出し実行レコードの定義。

status フィールドの固定値で型を一意に特定する判別共用体。
running で生成され、呼び出しの完了時に success または error へ一度だけ置き換わる。
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import Field

from toolbatch.models._base import ToolbatchBaseModel


class ExecutionRunning(ToolbatchBaseModel):
    """実行中の呼び出し。判別キー: status="running"。

    Attributes:
        status: 判別キー。固定値 "running"。
        name: 呼び出し対象の名前。
        started_at: ディスパッチ時刻。
    """

    status: Literal["running"] = "running"
    name: str = Field(min_length=1)
    started_at: datetime


class ExecutionSuccess(ToolbatchBaseModel):
    """成功した呼び出し。判別キー: status="success"。

    Attributes:
        status: 判別キー。固定値 "success"。
        name: 呼び出し対象の名前。
        started_at: ディスパッチ時刻。
        result: 呼び出しの戻り値。
        duration_millis: ディスパッチからの経過時間（ミリ秒、非負）。
    """

    status: Literal["success"] = "success"
    name: str = Field(min_length=1)
    started_at: datetime
    result: Any = None
    duration_millis: float = Field(ge=0, allow_inf_nan=False)


class ExecutionError(ToolbatchBaseModel):
    """例外で終了した呼び出し。判別キー: status="error"。

    Attributes:
        status: 判別キー。固定値 "error"。
        name: 呼び出し対象の名前。
        started_at: ディスパッチ時刻。
        error: 文字列化したエラーメッセージ。
        duration_millis: ディスパッチからの経過時間（ミリ秒、非負）。
    """

    status: Literal["error"] = "error"
    name: str = Field(min_length=1)
    started_at: datetime
    error: str = Field(min_length=1)
    duration_millis: float = Field(ge=0, allow_inf_nan=False)


ExecutionRecord = Annotated[
    Union[ExecutionRunning, ExecutionSuccess, ExecutionError],
    Field(discriminator="status"),
]
"""実行レコードの判別共用体。status フィールドの値で型を自動選択する。"""


class ExecutionSummary(ToolbatchBaseModel):
    """実行レコード群の集計。

    Attributes:
        total: レコード総数。
        succeeded: success の件数。
        failed: error の件数。
        running: running の件数。
    """

    total: int = Field(ge=0)
    succeeded: int = Field(ge=0)
    failed: int = Field(ge=0)
    running: int = Field(ge=0)

    @classmethod
    def from_records(
        cls,
        records: Iterable[ExecutionRunning | ExecutionSuccess | ExecutionError],
    ) -> ExecutionSummary:
        """レコード列から集計を構築する。"""
        succeeded = failed = running = 0
        for record in records:
            if isinstance(record, ExecutionSuccess):
                succeeded += 1
            elif isinstance(record, ExecutionError):
                failed += 1
            else:
                running += 1
        return cls(
            total=succeeded + failed + running,
            succeeded=succeeded,
            failed=failed,
            running=running,
        )
