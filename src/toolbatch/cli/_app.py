"""CliApp — Typer アプリケーション定義。

サブコマンド:
    run: カタログを読み込み、選択した項目を並列実行して履歴に保存する。
    catalog: カタログのカテゴリと項目、有効状態を表示する。
    history: 保存済みの実行履歴を表示する。
    replay: 保存済みのバッチを同じ引数で再実行する。

stdout は結果出力専用とし、進捗・エラーは stderr に出力する。
"""

from __future__ import annotations

import asyncio
import fnmatch
import importlib.metadata
import json
import logging
import sys
import tomllib
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import TypeAdapter, ValidationError

from toolbatch.catalog import (
    CatalogManager,
    CsvOptions,
    LoadError,
    MalformedRecordError,
    TestCatalog,
    TextCatalogSource,
    create_catalog_source,
)
from toolbatch.config import resolve_config, resolve_history_path
from toolbatch.engine import (
    BatchSession,
    Invoker,
    InvokerResolveError,
    ToolLister,
    create_progress_reporter,
    load_invoker,
)
from toolbatch.engine._progress import report_summary
from toolbatch.history import HistoryStore, JsonFileStorage, NullStorage
from toolbatch.models.config import OutputFormat, ToolbatchConfig
from toolbatch.models.execution import (
    ExecutionError,
    ExecutionRecord,
    ExecutionSuccess,
    ExecutionSummary,
)
from toolbatch.models.exit_code import ExitCode
from toolbatch.models.history import HistoryLog
from toolbatch.selection import SelectionState, partition_items

_RECORDS_ADAPTER: TypeAdapter[list[ExecutionRecord]] = TypeAdapter(
    list[ExecutionRecord]
)

app = typer.Typer(
    name="toolbatch",
    help="Run batches of remote tool calls driven by a CSV test catalog.",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    """--version 指定時にバージョン番号を出力して終了する。"""
    if value:
        print(importlib.metadata.version("toolbatch"))
        raise typer.Exit()


def main() -> None:
    """CLI エントリポイント。pyproject.toml の [project.scripts] から呼び出される。"""
    app()


@app.callback()
def _root_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    """Run batches of remote tool calls driven by a CSV test catalog."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


# =============================================================================
# 共通ヘルパー
# =============================================================================


def _fail(message: str, code: ExitCode = ExitCode.INPUT_ERROR) -> typer.Exit:
    """stderr にエラーを出力し、送出すべき typer.Exit を返す。"""
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(code=code)


def _load_config(overrides: dict[str, object]) -> ToolbatchConfig:
    """設定を解決する。失敗時は終了コード 4 で終了する。"""
    try:
        return resolve_config(cli_overrides=overrides)
    except (ValidationError, tomllib.TOMLDecodeError) as e:
        raise _fail(
            f"Invalid configuration: {e}\n"
            "Check .toolbatch/config.toml and [tool.toolbatch] in pyproject.toml."
        ) from None
    except PermissionError as e:
        raise _fail(
            f"Cannot read configuration file: {e}\n"
            "Check file permissions for .toolbatch/config.toml."
        ) from None


def _load_invoker(spec: str) -> Invoker:
    try:
        return load_invoker(spec)
    except InvokerResolveError as e:
        raise _fail(
            f"{e}\nPass --invoker as 'module:attr' pointing at an object "
            "with an async call_tool(name, arguments) method."
        ) from None


def _load_manual_arguments(path: Path | None) -> dict[str, Any]:
    """手入力引数ファイル（項目名 → 引数の JSON オブジェクト）を読み込む。"""
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise _fail(
            f"Cannot read arguments file {path}: {e}\n"
            'The file must contain a JSON object such as {"server-tool": {...}}.'
        ) from None
    if not isinstance(data, dict):
        raise _fail(
            f"Arguments file {path} must contain a JSON object, "
            f"got {type(data).__name__}."
        )
    return data


def _history_store(config: ToolbatchConfig) -> HistoryStore:
    storage = (
        JsonFileStorage(resolve_history_path(config))
        if config.save_history
        else NullStorage()
    )
    store = HistoryStore(storage, key=config.history_key, limit=config.history_limit)
    store.load()
    return store


def _catalog_manager(identifier: str, config: ToolbatchConfig) -> CatalogManager:
    return CatalogManager(
        create_catalog_source(identifier),
        identifier,
        delimiter=config.delimiter,
        csv_options=CsvOptions(
            delimiter=config.csv_delimiter,
            trim=config.csv_trim,
            skip_empty_lines=config.csv_skip_empty_lines,
        ),
    )


def _build_session(
    config: ToolbatchConfig,
    invoker: Invoker,
    manager: CatalogManager,
    history: HistoryStore,
) -> BatchSession:
    session = BatchSession(
        manager,
        invoker,
        history,
        delimiter=config.delimiter,
        reporter=create_progress_reporter(),
    )
    session.set_connected(True)
    return session


async def _load_catalog(session: BatchSession) -> TestCatalog:
    try:
        return await session.load_catalog()
    except LoadError as e:
        raise _fail(f"{e}\nCheck the catalog path or URL and try again.") from None
    except MalformedRecordError as e:
        raise _fail(
            f"Malformed catalog: {e}\n"
            "Each row needs non-empty server, tool and request_args (JSON) columns."
        ) from None


def _invocable_items(invoker: Invoker, catalog: TestCatalog | None) -> list[str]:
    """Invoker が一覧を提供すればそれを、なければカタログの完全名を返す。"""
    if isinstance(invoker, ToolLister):
        return list(invoker.list_tools())
    if catalog is None:
        return []
    return [record.full_name for record in catalog.records()]


def _apply_selection(
    selection: SelectionState, patterns: list[str], select_all: bool
) -> None:
    """--all と --select の指定を選択状態に反映する。"""
    if select_all:
        selection.clear()
        selection.toggle_all()
    if not patterns:
        return
    for category in selection.categories:
        for item in category.items:
            if any(
                fnmatch.fnmatchcase(candidate, pattern)
                for pattern in patterns
                for candidate in (item.full_name, item.name)
            ):
                selection.set_item(category.name, item.name, True)


def _print_records(
    records: list[ExecutionRecord], output_format: OutputFormat
) -> None:
    """実行結果を stdout に出力する。"""
    if output_format == OutputFormat.JSON:
        print(_RECORDS_ADAPTER.dump_json(records, indent=2).decode("utf-8"))
        return
    for record in records:
        if isinstance(record, ExecutionSuccess):
            result = json.dumps(record.result, ensure_ascii=False, default=str)
            print(f"[success] {record.name} ({record.duration_millis:.0f}ms): {result}")
        elif isinstance(record, ExecutionError):
            print(
                f"[error]   {record.name} ({record.duration_millis:.0f}ms): "
                f"{record.error}"
            )
        else:
            print(f"[running] {record.name}")


def _exit_code_for(records: list[ExecutionRecord]) -> ExitCode:
    if any(isinstance(record, ExecutionError) for record in records):
        return ExitCode.EXECUTION_ERROR
    return ExitCode.SUCCESS


def _finish(records: list[ExecutionRecord], output_format: OutputFormat) -> None:
    _print_records(records, output_format)
    report_summary(ExecutionSummary.from_records(records))
    raise typer.Exit(code=_exit_code_for(records))


# =============================================================================
# run
# =============================================================================


@app.command()
def run(
    invoker: Annotated[
        str,
        typer.Option(
            "--invoker", "-i", help="Invoker as 'module:attr' with async call_tool."
        ),
    ],
    catalog: Annotated[
        str | None,
        typer.Argument(help="Catalog CSV path or URL. Defaults to config 'catalog'."),
    ] = None,
    select: Annotated[
        list[str] | None,
        typer.Option(
            "--select", "-s", help="Glob pattern on item names. Repeatable."
        ),
    ] = None,
    select_all: Annotated[
        bool, typer.Option("--all", help="Select every item enabled by the catalog.")
    ] = False,
    arguments_file: Annotated[
        Path | None,
        typer.Option(
            "--arguments",
            help="JSON object mapping item names to arguments for items "
            "without a catalog entry.",
        ),
    ] = None,
    delimiter: Annotated[
        str | None,
        typer.Option("--delimiter", help="Separator between server and tool names."),
    ] = None,
    output_format: Annotated[
        OutputFormat | None,
        typer.Option("--format", help="Output format: text or json."),
    ] = None,
    save_history: Annotated[
        bool | None,
        typer.Option("--save-history/--no-save-history", help="Save run history."),
    ] = None,
    history_limit: Annotated[
        int | None,
        typer.Option("--history-limit", help="Number of batches to keep.", min=1),
    ] = None,
) -> None:
    """Load a catalog, select items and run them concurrently."""
    config = _load_config(
        {
            "catalog": catalog,
            "delimiter": delimiter,
            "output_format": output_format,
            "save_history": save_history,
            "history_limit": history_limit,
        }
    )
    if config.catalog is None:
        raise _fail(
            "No catalog specified.\n"
            "Pass a CSV path or URL, or set 'catalog' in .toolbatch/config.toml."
        )
    resolved_invoker = _load_invoker(invoker)
    manual_arguments = _load_manual_arguments(arguments_file)

    session = _build_session(
        config,
        resolved_invoker,
        _catalog_manager(config.catalog, config),
        _history_store(config),
    )
    records = asyncio.run(
        _run_batch(
            session, resolved_invoker, select or [], select_all, manual_arguments
        )
    )
    _finish(records, config.output_format)


async def _run_batch(
    session: BatchSession,
    invoker: Invoker,
    patterns: list[str],
    select_all: bool,
    manual_arguments: dict[str, Any],
) -> list[ExecutionRecord]:
    catalog = await _load_catalog(session)
    session.set_items(_invocable_items(invoker, catalog))
    _apply_selection(session.selection, patterns, select_all)
    if session.selection.total_selected == 0:
        raise _fail(
            "No items selected.\n"
            "Use --all to select every enabled item, or --select PATTERN."
        )
    return await session.run_selected(manual_arguments)


# =============================================================================
# catalog
# =============================================================================


_STATE_MARKERS = {"all": "[x]", "partial": "[-]", "none": "[ ]"}


@app.command("catalog")
def catalog_command(
    catalog: Annotated[
        str | None,
        typer.Argument(help="Catalog CSV path or URL. Defaults to config 'catalog'."),
    ] = None,
    invoker: Annotated[
        str | None,
        typer.Option(
            "--invoker",
            "-i",
            help="List items from this invoker and mark the ones the catalog enables.",
        ),
    ] = None,
    delimiter: Annotated[
        str | None,
        typer.Option("--delimiter", help="Separator between server and tool names."),
    ] = None,
) -> None:
    """Show catalog categories, items and whether each item is enabled."""
    config = _load_config({"catalog": catalog, "delimiter": delimiter})
    if config.catalog is None:
        raise _fail(
            "No catalog specified.\n"
            "Pass a CSV path or URL, or set 'catalog' in .toolbatch/config.toml."
        )
    manager = _catalog_manager(config.catalog, config)
    try:
        loaded = asyncio.run(manager.load_catalog())
    except LoadError as e:
        raise _fail(f"{e}\nCheck the catalog path or URL and try again.") from None
    except MalformedRecordError as e:
        raise _fail(f"Malformed catalog: {e}") from None

    resolved_invoker = _load_invoker(invoker) if invoker is not None else None
    names = (
        _invocable_items(resolved_invoker, loaded)
        if resolved_invoker is not None
        else [record.full_name for record in loaded.records()]
    )
    selection = SelectionState(
        partition_items(names, config.delimiter),
        catalog=loaded,
        delimiter=config.delimiter,
    )
    selection.toggle_all()

    print(f"Catalog: {config.catalog} ({len(loaded)} entries)")
    for category in selection.categories:
        state = selection.category_state(category.name)
        enabled = selection.enabled_count(category.name)
        print(
            f"{_STATE_MARKERS[state.value]} {category.name} "
            f"({enabled}/{len(category.items)} enabled)"
        )
        for item in category.item_names:
            marker = "*" if selection.is_enabled(category.name, item) else " "
            print(f"    {marker} {item}")


# =============================================================================
# history / replay
# =============================================================================


def _format_entry_line(index: int, log: HistoryLog) -> str:
    entry = log[index]
    names = ", ".join(item.name for item in entry)
    return f"[{index}] {len(entry)} calls: {names}"


@app.command()
def history(
    output_format: Annotated[
        OutputFormat | None,
        typer.Option("--format", help="Output format: text or json."),
    ] = None,
) -> None:
    """List saved batches, oldest first."""
    config = _load_config({"output_format": output_format})
    log = _history_store(config).get_all()
    if config.output_format == OutputFormat.JSON:
        print(
            json.dumps(
                [[item.model_dump(mode="json") for item in entry] for entry in log],
                ensure_ascii=False,
                indent=2,
            )
        )
        return
    if not log:
        print("No saved history.", file=sys.stderr)
        return
    for index in range(len(log)):
        print(_format_entry_line(index, log))


@app.command()
def replay(
    index: Annotated[int, typer.Argument(help="History index shown by 'history'.")],
    invoker: Annotated[
        str,
        typer.Option(
            "--invoker", "-i", help="Invoker as 'module:attr' with async call_tool."
        ),
    ],
    output_format: Annotated[
        OutputFormat | None,
        typer.Option("--format", help="Output format: text or json."),
    ] = None,
) -> None:
    """Run a saved batch again with its recorded arguments."""
    config = _load_config({"output_format": output_format})
    history_store = _history_store(config)
    if not history_store.get_all():
        raise _fail("No saved history.\nRun 'toolbatch run' first.")
    try:
        history_store.get(index)
    except IndexError as e:
        raise _fail(f"{e}\nRun 'toolbatch history' to list saved batches.") from None

    resolved_invoker = _load_invoker(invoker)
    session = _build_session(
        config,
        resolved_invoker,
        CatalogManager(TextCatalogSource(), config.catalog or ""),
        history_store,
    )
    records = asyncio.run(session.replay(index))
    _finish(records, config.output_format)
