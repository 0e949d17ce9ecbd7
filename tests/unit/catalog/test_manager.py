"""CatalogManager のテスト。"""

import logging

import pytest

from toolbatch.catalog._catalog import MalformedRecordError
from toolbatch.catalog._manager import CatalogManager, CatalogProvider
from toolbatch.catalog._parser import CsvOptions
from toolbatch.catalog._source import LoadError, TextCatalogSource

_VALID_CSV = (
    "server,tool,request_args\n"
    'github,search_repositories,"{""query"":""x""}"\n'
    'slack,post_message,"{""channel"":""general""}"\n'
)
_MALFORMED_CSV = "server,tool,request_args\ngithub,,{}\n"


def _make_manager(text: str | None = _VALID_CSV, **kwargs: object) -> CatalogManager:
    """TextCatalogSource を使う CatalogManager を生成するヘルパー。"""
    return CatalogManager(TextCatalogSource(text), "inline", **kwargs)  # type: ignore[arg-type]


class TestCatalogManagerLoad:
    """load_catalog の成功・失敗を検証。"""

    async def test_load_sets_catalog(self) -> None:
        manager = _make_manager()
        assert manager.get_catalog() is None
        catalog = await manager.load_catalog()
        assert manager.get_catalog() is catalog
        assert catalog.has("github-search_repositories")
        assert catalog.has("slack-post_message")

    async def test_load_error_keeps_previous(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        manager = _make_manager()
        previous = await manager.load_catalog()
        manager.set_source(TextCatalogSource())
        with pytest.raises(LoadError), caplog.at_level(logging.ERROR):
            await manager.load_catalog()
        assert manager.get_catalog() is previous
        assert "Failed to load catalog" in caplog.text

    async def test_malformed_keeps_previous(self) -> None:
        manager = _make_manager()
        previous = await manager.load_catalog()
        manager.set_source(TextCatalogSource(_MALFORMED_CSV))
        with pytest.raises(MalformedRecordError):
            await manager.load_catalog()
        assert manager.get_catalog() is previous

    async def test_reload_replaces_whole_catalog(self) -> None:
        manager = _make_manager()
        await manager.load_catalog()
        manager.set_source(
            TextCatalogSource("server,tool,request_args\njira,create,{}\n")
        )
        catalog = await manager.load_catalog()
        assert list(catalog) == ["jira-create"]


class TestCatalogManagerOptions:
    """区切り文字と CSV オプションの受け渡しを検証。"""

    def test_custom_delimiter(self) -> None:
        manager = _make_manager(delimiter="__")
        catalog = manager.load_from_text(_VALID_CSV)
        assert catalog.has("github__search_repositories")

    def test_csv_options(self) -> None:
        manager = _make_manager(csv_options=CsvOptions(delimiter=";"))
        catalog = manager.load_from_text("server;tool;request_args\na;b;{}\n")
        assert catalog.has("a-b")

    def test_set_source_identifier(self) -> None:
        manager = _make_manager()
        manager.set_source_identifier("other.csv")
        assert manager.identifier == "other.csv"

    def test_satisfies_provider_protocol(self) -> None:
        assert isinstance(_make_manager(), CatalogProvider)
