"""ProgressReporter のテスト。

stderr への進捗表示と、TTY 状態による Rich / プレーンテキストの自動切替を検証する。
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from toolbatch.engine._live_progress import RichProgressReporter
from toolbatch.engine._progress import (
    PlainProgressReporter,
    ProgressReporter,
    create_progress_reporter,
    report_call_complete,
    report_call_start,
    report_summary,
)
from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRunning,
    ExecutionSuccess,
    ExecutionSummary,
)

_STARTED_AT = datetime(2026, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# report_call_start
# =============================================================================


class TestReportCallStart:
    """report_call_start の stderr 出力を検証。"""

    def test_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        report_call_start("github-search")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Calling tool: github-search..."


# =============================================================================
# report_call_complete
# =============================================================================


class TestReportCallComplete:
    """report_call_complete の出力を検証。"""

    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        record = ExecutionSuccess(
            name="a", started_at=_STARTED_AT, duration_millis=12.4
        )
        report_call_complete("a", record)
        assert capsys.readouterr().err.strip() == "Tool a: success (12ms)"

    def test_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        record = ExecutionError(
            name="a", started_at=_STARTED_AT, error="boom", duration_millis=3
        )
        report_call_complete("a", record)
        assert capsys.readouterr().err.strip() == "Tool a: error (boom) (3ms)"

    def test_running_rejected(self) -> None:
        with pytest.raises(TypeError):
            report_call_complete(
                "a", ExecutionRunning(name="a", started_at=_STARTED_AT)
            )


# =============================================================================
# report_summary
# =============================================================================


class TestReportSummary:
    """report_summary の出力を検証。"""

    def test_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        report_summary(ExecutionSummary(total=3, succeeded=2, failed=1, running=0))
        assert (
            capsys.readouterr().err.strip()
            == "Batch complete: 3 calls (2 succeeded, 1 failed)"
        )


# =============================================================================
# PlainProgressReporter / create_progress_reporter
# =============================================================================


class TestPlainProgressReporter:
    """プレーンテキストレポーターの委譲を検証。"""

    def test_delegates(self, capsys: pytest.CaptureFixture[str]) -> None:
        reporter = PlainProgressReporter()
        reporter.start()
        reporter.on_call_start("a")
        reporter.on_call_complete(
            "a", ExecutionSuccess(name="a", started_at=_STARTED_AT, duration_millis=0)
        )
        reporter.stop()
        err = capsys.readouterr().err
        assert "Calling tool: a..." in err
        assert "Tool a: success (0ms)" in err

    def test_satisfies_protocol(self) -> None:
        assert isinstance(PlainProgressReporter(), ProgressReporter)


class TestCreateProgressReporter:
    """TTY 状態による切替を検証。"""

    def test_non_tty_gives_plain(self) -> None:
        with patch("toolbatch.engine._progress.sys.stderr") as mock_stderr:
            mock_stderr.isatty.return_value = False
            assert isinstance(create_progress_reporter(), PlainProgressReporter)

    def test_tty_gives_rich(self) -> None:
        with patch("toolbatch.engine._progress.sys.stderr") as mock_stderr:
            mock_stderr.isatty.return_value = True
            assert isinstance(create_progress_reporter(), RichProgressReporter)
