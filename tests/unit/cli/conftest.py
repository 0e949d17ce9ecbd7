"""CLI テスト共通フィクスチャ・ヘルパー。"""

from __future__ import annotations

import sys
import types
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

PATCH_USER_CONFIG = "toolbatch.config._resolver.get_user_config_path"

INVOKER_MODULE = "toolbatch_cli_test_invokers"
ECHO_INVOKER = f"{INVOKER_MODULE}:EchoInvoker"
LISTING_INVOKER = f"{INVOKER_MODULE}:ListingInvoker"

CATALOG_CSV = (
    "server,tool,request_args\n"
    'github,search_repositories,"{""query"": ""user:alice""}"\n'
    'github,get_issue,"{""number"": 1}"\n'
    'slack,post_message,"{""channel"": ""general""}"\n'
)

class EchoInvoker:
    """引数をそのまま返す Invoker。名前に "fail" を含む呼び出しは失敗する。"""

    async def call_tool(self, name: str, arguments: Any) -> Any:
        sys.modules[INVOKER_MODULE].calls.append((name, arguments))
        if "fail" in name:
            raise RuntimeError(f"{name} is down")
        return {"echo": arguments}


class ListingInvoker(EchoInvoker):
    """呼び出し可能項目の一覧を提供する Invoker。"""

    def list_tools(self) -> list[str]:
        return ["github-search_repositories", "jira-create_issue", "ping"]


@pytest.fixture(autouse=True)
def invoker_module() -> Iterator[types.ModuleType]:
    """テスト用 Invoker を持つモジュールを sys.modules に登録する。"""
    module = types.ModuleType(INVOKER_MODULE)
    module.EchoInvoker = EchoInvoker  # type: ignore[attr-defined]
    module.ListingInvoker = ListingInvoker  # type: ignore[attr-defined]
    module.calls = []  # type: ignore[attr-defined]
    sys.modules[INVOKER_MODULE] = module
    yield module
    del sys.modules[INVOKER_MODULE]


@pytest.fixture
def calls(invoker_module: types.ModuleType) -> list[tuple[str, Any]]:
    """テスト用 Invoker が受け取った (name, arguments) の記録。"""
    return invoker_module.calls  # type: ignore[no-any-return]


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """tmp_path をカレントディレクトリとし、ユーザー設定を無効化する。"""
    monkeypatch.chdir(tmp_path)
    with patch(PATCH_USER_CONFIG, return_value=tmp_path / "no-user" / "config.toml"):
        yield tmp_path


def write_catalog(base: Path, content: str = CATALOG_CSV) -> Path:
    """カタログ CSV を書き込みパスを返す。"""
    path = base / "catalog.csv"
    path.write_text(content, encoding="utf-8")
    return path


def history_path(base: Path) -> Path:
    """デフォルト設定での履歴ファイルパス。"""
    return base / ".toolbatch" / "history.json"
