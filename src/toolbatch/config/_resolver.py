"""設定リゾルバー。

優先順位（高い順）:
    CLI オプション > .toolbatch/config.toml > pyproject.toml [tool.toolbatch]
    > ~/.config/toolbatch/config.toml > デフォルト値
"""

from __future__ import annotations

import logging
from pathlib import Path

from toolbatch.config._loader import load_optional_toml_config, load_pyproject_config
from toolbatch.config._locator import (
    find_config_file,
    find_project_root,
    find_pyproject_toml,
    get_user_config_path,
)
from toolbatch.models.config import ToolbatchConfig

logger = logging.getLogger(__name__)


def merge_config_layers(
    *layers: dict[str, object] | None,
) -> dict[str, object]:
    """設定レイヤーをキー単位でマージする。

    後のレイヤーが先のレイヤーを上書きする。None のレイヤーはスキップする。

    Args:
        layers: 低優先度から高優先度の順の設定辞書。
    """
    merged: dict[str, object] = {}
    for layer in layers:
        if layer is not None:
            merged.update(layer)
    return merged


def filter_cli_overrides(cli_options: dict[str, object]) -> dict[str, object]:
    """CLI オプション辞書から未指定（None）の値を除外する。"""
    return {key: value for key, value in cli_options.items() if value is not None}


def resolve_config(
    start_dir: Path | None = None,
    cli_overrides: dict[str, object] | None = None,
) -> ToolbatchConfig:
    """設定ソースを階層解決し ToolbatchConfig を構築する。

    存在しない設定ファイルは該当レイヤーごとスキップする。

    Args:
        start_dir: 探索開始ディレクトリ。None の場合はカレントディレクトリ。
        cli_overrides: CLI オプションの辞書。None 値は未指定扱い。

    Raises:
        pydantic.ValidationError: マージ後の設定が不正な場合。
        tomllib.TOMLDecodeError: 設定ファイルの TOML 構文が不正な場合。
        PermissionError: 設定ファイルの読み取り権限がない場合。
    """
    start = start_dir if start_dir is not None else Path.cwd()

    user_layer = load_optional_toml_config(get_user_config_path())

    pyproject_layer: dict[str, object] | None = None
    pyproject_path = find_pyproject_toml(start)
    if pyproject_path is not None:
        pyproject_layer = load_pyproject_config(pyproject_path)

    project_layer: dict[str, object] | None = None
    config_path = find_config_file(start)
    if config_path is not None:
        project_layer = load_optional_toml_config(config_path)

    cli_layer = filter_cli_overrides(cli_overrides) if cli_overrides else None

    for name, layer in (
        ("user", user_layer),
        ("pyproject", pyproject_layer),
        ("project", project_layer),
        ("cli", cli_layer),
    ):
        if layer:
            logger.debug("Config layer %s: %s", name, sorted(layer))

    merged = merge_config_layers(user_layer, pyproject_layer, project_layer, cli_layer)
    return ToolbatchConfig.model_validate(merged)


def resolve_history_path(
    config: ToolbatchConfig, start_dir: Path | None = None
) -> Path:
    """履歴ファイルの絶対パスを返す。

    相対パスはプロジェクトルート（.toolbatch/ を含むディレクトリ）基準で解決し、
    プロジェクトルートがなければ start_dir 基準とする。
    """
    path = Path(config.history_file).expanduser()
    if path.is_absolute():
        return path
    start = start_dir if start_dir is not None else Path.cwd()
    base = find_project_root(start) or start.resolve()
    return base / path
