"""設定管理モジュール。"""

from toolbatch.config._locator import find_project_root
from toolbatch.config._resolver import resolve_config, resolve_history_path

__all__ = [
    "find_project_root",
    "resolve_config",
    "resolve_history_path",
]
