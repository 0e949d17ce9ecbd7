"""設定ファイルとプロジェクトルートの探索。

探索はすべてカレント → 親方向に行い、ファイルシステムルートで打ち切る。
"""

from __future__ import annotations

import stat as stat_module
from collections.abc import Callable
from pathlib import Path
from typing import Final

PROJECT_DIR_NAME: Final[str] = ".toolbatch"
"""プロジェクト設定ディレクトリ名。"""

CONFIG_FILE_NAME: Final[str] = "config.toml"
_PYPROJECT_FILE_NAME: Final[str] = "pyproject.toml"


def _walk_up(
    start: Path,
    target_name: str,
    is_kind: Callable[[int], bool],
) -> Path | None:
    """start から親方向に target_name を探し、種別が一致した最初のパスを返す。

    Raises:
        OSError: 探索パス上のアクセス権限エラー等。
    """
    for directory in (start.resolve(), *start.resolve().parents):
        candidate = directory / target_name
        try:
            mode = candidate.stat().st_mode
        except FileNotFoundError:
            continue
        if is_kind(mode):
            return candidate
    return None


def find_project_root(start: Path) -> Path | None:
    """.toolbatch/ ディレクトリを含む最も近い祖先ディレクトリを返す。

    Args:
        start: 探索開始ディレクトリ。

    Returns:
        プロジェクトルート。見つからなければ None。
    """
    found = _walk_up(start, PROJECT_DIR_NAME, stat_module.S_ISDIR)
    return found.parent if found is not None else None


def find_config_file(start: Path) -> Path | None:
    """プロジェクトの .toolbatch/config.toml のパスを返す。

    ファイル自体の存在チェックは行わない（パスのみ構築）。
    """
    root = find_project_root(start)
    if root is None:
        return None
    return root / PROJECT_DIR_NAME / CONFIG_FILE_NAME


def find_pyproject_toml(start: Path) -> Path | None:
    """最も近い pyproject.toml を返す。見つからなければ None。"""
    return _walk_up(start, _PYPROJECT_FILE_NAME, stat_module.S_ISREG)


def get_user_config_path() -> Path:
    """ユーザーグローバル設定 ~/.config/toolbatch/config.toml のパスを返す。"""
    return Path.home() / ".config" / "toolbatch" / CONFIG_FILE_NAME
