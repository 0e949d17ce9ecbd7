"""バッチ実行エンジン。

以下の流れでツール呼び出しのバッチを実行する:

1. カタログ読み込み（CatalogProvider）
2. 呼び出し可能項目のカテゴリ分割と選択（SelectionState）
3. 引数解決（カタログ駆動 / 手入力）
4. 並列ディスパッチ（ExecutionEngine）
5. 履歴保存（HistoryStore）
"""

from toolbatch.engine._executor import ExecutionEngine, resolve_batch
from toolbatch.engine._invoker import (
    Invoker,
    InvokerResolveError,
    ToolLister,
    load_invoker,
)
from toolbatch.engine._progress import (
    PlainProgressReporter,
    ProgressReporter,
    create_progress_reporter,
)
from toolbatch.engine._session import BatchSession

__all__ = [
    "BatchSession",
    "ExecutionEngine",
    "Invoker",
    "InvokerResolveError",
    "PlainProgressReporter",
    "ProgressReporter",
    "ToolLister",
    "create_progress_reporter",
    "load_invoker",
    "resolve_batch",
]
