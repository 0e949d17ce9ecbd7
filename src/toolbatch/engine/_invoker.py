"""Invoker — リモート呼び出しの外部協調者インターフェース。

実際の呼び出し処理（MCP クライアント等）は本パッケージの範囲外であり、
``call_tool(name, arguments)`` を持つ任意のオブジェクトを受け付ける。
"""

from __future__ import annotations

import importlib
import inspect
from typing import Any, Protocol, runtime_checkable


class InvokerResolveError(Exception):
    """``module:attr`` 形式の Invoker 指定を解決できない。"""


@runtime_checkable
class Invoker(Protocol):
    """名前付きのリモート操作を呼び出すプロトコル。

    call_tool は任意の例外を送出してよい。実行エンジンは例外を
    その呼び出しのエラー結果として記録し、他の呼び出しには影響させない。
    """

    async def call_tool(self, name: str, arguments: Any) -> Any: ...


@runtime_checkable
class ToolLister(Protocol):
    """接続先から呼び出し可能項目の名前一覧を取得するプロトコル。"""

    def list_tools(self) -> list[str]: ...


def load_invoker(spec: str) -> Invoker:
    """``module:attr`` 形式の指定から Invoker を読み込む。

    attr がクラスまたは引数なしで呼べるファクトリ関数の場合は呼び出した結果を、
    それ以外はオブジェクトそのものを Invoker として使用する。

    Args:
        spec: ``package.module:attr`` 形式の文字列。

    Returns:
        call_tool を持つオブジェクト。

    Raises:
        InvokerResolveError: 形式不正、モジュール/属性不在、
            または call_tool を持たないオブジェクトの場合。
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise InvokerResolveError(
            f"Invalid invoker '{spec}': expected 'module:attr' "
            "(e.g. 'my_package.client:invoker')."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise InvokerResolveError(
            f"Cannot import invoker module '{module_name}': {exc}"
        ) from exc

    try:
        target = getattr(module, attr)
    except AttributeError:
        raise InvokerResolveError(
            f"Module '{module_name}' has no attribute '{attr}'."
        ) from None

    if inspect.isclass(target) or (
        callable(target) and not isinstance(target, Invoker)
    ):
        target = target()

    if not isinstance(target, Invoker):
        raise InvokerResolveError(
            f"Invoker '{spec}' does not provide an async call_tool(name, arguments)."
        )
    return target
