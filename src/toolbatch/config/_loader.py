"""TOML 設定ファイルローダー。

パースのみを担当し、値の検証は ToolbatchConfig が行う。
読み取りエラーはそのまま送出する。
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Final

_TOOL_TABLE: Final[str] = "tool"
_SECTION_NAME: Final[str] = "toolbatch"


def load_toml_config(path: Path) -> dict[str, object]:
    """TOML ファイルを読み込み辞書として返す。

    Raises:
        tomllib.TOMLDecodeError: TOML 構文エラーの場合。
        FileNotFoundError: ファイルが存在しない場合。
        PermissionError: 読み取り権限がない場合。
    """
    with path.open("rb") as f:
        return tomllib.load(f)


def load_optional_toml_config(path: Path) -> dict[str, object] | None:
    """TOML ファイルを読み込む。ファイルが存在しなければ None。"""
    try:
        return load_toml_config(path)
    except FileNotFoundError:
        return None


def load_pyproject_config(path: Path) -> dict[str, object] | None:
    """pyproject.toml の [tool.toolbatch] テーブルを返す。

    テーブルが存在しない、またはテーブルでない場合は None。

    Raises:
        tomllib.TOMLDecodeError: TOML 構文エラーの場合。
        FileNotFoundError: ファイルが存在しない場合。
    """
    data = load_toml_config(path)
    tool = data.get(_TOOL_TABLE)
    if not isinstance(tool, dict):
        return None
    section = tool.get(_SECTION_NAME)
    return section if isinstance(section, dict) else None
