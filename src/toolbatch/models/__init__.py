"""toolbatch ドメインモデルパッケージ。"""

from toolbatch.models._base import ToolbatchBaseModel
from toolbatch.models.catalog import DEFAULT_DELIMITER, CatalogRecord
from toolbatch.models.category import (
    UNCATEGORIZED,
    Category,
    CategoryItem,
    CategoryState,
    SelectedTest,
)
from toolbatch.models.config import OutputFormat, ToolbatchConfig
from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRecord,
    ExecutionRunning,
    ExecutionSuccess,
    ExecutionSummary,
)
from toolbatch.models.exit_code import ExitCode
from toolbatch.models.history import (
    DEFAULT_HISTORY_LIMIT,
    HISTORY_LOG_ADAPTER,
    HistoryEntry,
    HistoryItem,
    HistoryLog,
)

__all__ = [
    "CatalogRecord",
    "Category",
    "CategoryItem",
    "CategoryState",
    "DEFAULT_DELIMITER",
    "DEFAULT_HISTORY_LIMIT",
    "ExecutionError",
    "ExecutionRecord",
    "ExecutionRunning",
    "ExecutionSuccess",
    "ExecutionSummary",
    "ExitCode",
    "HISTORY_LOG_ADAPTER",
    "HistoryEntry",
    "HistoryItem",
    "HistoryLog",
    "OutputFormat",
    "SelectedTest",
    "ToolbatchBaseModel",
    "ToolbatchConfig",
    "UNCATEGORIZED",
]
