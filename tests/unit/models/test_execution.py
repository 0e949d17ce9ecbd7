"""実行レコードモデルのテスト。"""

from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRecord,
    ExecutionRunning,
    ExecutionSuccess,
    ExecutionSummary,
)

_STARTED_AT = datetime(2026, 1, 1, tzinfo=timezone.utc)
_ADAPTER: TypeAdapter[ExecutionRecord] = TypeAdapter(ExecutionRecord)


class TestExecutionRecordDiscriminator:
    """status による判別共用体の型選択を検証。"""

    def test_running(self) -> None:
        record = _ADAPTER.validate_python(
            {"status": "running", "name": "a", "started_at": _STARTED_AT}
        )
        assert isinstance(record, ExecutionRunning)

    def test_success(self) -> None:
        record = _ADAPTER.validate_python(
            {
                "status": "success",
                "name": "a",
                "started_at": _STARTED_AT,
                "result": {"ok": True},
                "duration_millis": 12.5,
            }
        )
        assert isinstance(record, ExecutionSuccess)
        assert record.result == {"ok": True}

    def test_error(self) -> None:
        record = _ADAPTER.validate_python(
            {
                "status": "error",
                "name": "a",
                "started_at": _STARTED_AT,
                "error": "boom",
                "duration_millis": 1,
            }
        )
        assert isinstance(record, ExecutionError)

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _ADAPTER.validate_python(
                {"status": "pending", "name": "a", "started_at": _STARTED_AT}
            )


class TestExecutionRecordValidation:
    """フィールド制約を検証。"""

    def test_negative_duration_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExecutionSuccess(name="a", started_at=_STARTED_AT, duration_millis=-1)

    def test_empty_error_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExecutionError(
                name="a", started_at=_STARTED_AT, error="", duration_millis=0
            )


class TestExecutionSummary:
    """from_records の集計を検証。"""

    def test_counts_each_status(self) -> None:
        records = [
            ExecutionRunning(name="a", started_at=_STARTED_AT),
            ExecutionSuccess(name="b", started_at=_STARTED_AT, duration_millis=1),
            ExecutionSuccess(name="c", started_at=_STARTED_AT, duration_millis=1),
            ExecutionError(
                name="d", started_at=_STARTED_AT, error="x", duration_millis=1
            ),
        ]
        summary = ExecutionSummary.from_records(records)
        assert summary == ExecutionSummary(
            total=4, succeeded=2, failed=1, running=1
        )

    def test_empty(self) -> None:
        assert ExecutionSummary.from_records([]).total == 0
