"""TestCatalog 構築のテスト。"""

import json
import logging

import pytest

from toolbatch.catalog._catalog import (
    KEY_ARGUMENTS,
    KEY_SERVER,
    KEY_TOOL,
    MalformedRecordError,
    TestCatalog,
    build_catalog,
    build_record,
)
from toolbatch.catalog._parser import parse_csv
from toolbatch.models.catalog import CatalogRecord


def _make_row(
    server: str = "github",
    tool: str = "search_repositories",
    request_args: str = '{"query": "x"}',
) -> dict[str, str]:
    """テスト用のカタログ行を生成するヘルパー。"""
    return {KEY_SERVER: server, KEY_TOOL: tool, KEY_ARGUMENTS: request_args}


# =============================================================================
# build_record
# =============================================================================


class TestBuildRecord:
    """1 行からのレコード構築を検証。"""

    def test_decodes_arguments(self) -> None:
        record = build_record(_make_row(request_args='{"query": "user:alice"}'))
        assert record.server == "github"
        assert record.tool_name == "search_repositories"
        assert record.arguments == {"query": "user:alice"}
        assert record.full_name == "github-search_repositories"

    def test_non_object_json_allowed(self) -> None:
        assert build_record(_make_row(request_args="[1, 2]")).arguments == [1, 2]

    @pytest.mark.parametrize("key", [KEY_SERVER, KEY_TOOL, KEY_ARGUMENTS])
    def test_missing_field(self, key: str) -> None:
        row = _make_row()
        del row[key]
        with pytest.raises(MalformedRecordError) as exc_info:
            build_record(row, row_index=2)
        assert exc_info.value.field == key
        assert exc_info.value.row_index == 2

    @pytest.mark.parametrize("key", [KEY_SERVER, KEY_TOOL, KEY_ARGUMENTS])
    def test_empty_field(self, key: str) -> None:
        row = _make_row()
        row[key] = ""
        with pytest.raises(MalformedRecordError):
            build_record(row)

    def test_invalid_json(self) -> None:
        with pytest.raises(MalformedRecordError, match="invalid JSON") as exc_info:
            build_record(_make_row(request_args="{not json"))
        assert exc_info.value.field == KEY_ARGUMENTS

    def test_custom_delimiter(self) -> None:
        record = build_record(_make_row(), delimiter="__")
        assert record.full_name == "github__search_repositories"


# =============================================================================
# build_catalog
# =============================================================================


class TestBuildCatalog:
    """行リストからのカタログ構築を検証。"""

    def test_keys_are_full_names(self) -> None:
        catalog = build_catalog(
            [_make_row(), _make_row(server="slack", tool="post_message")]
        )
        assert list(catalog) == ["github-search_repositories", "slack-post_message"]
        assert len(catalog) == 2

    def test_every_row_resolvable(self) -> None:
        rows = [
            _make_row(server="a", tool="one", request_args='{"n": 1}'),
            _make_row(server="a", tool="two", request_args='{"n": 2}'),
            _make_row(server="b", tool="one", request_args="null"),
        ]
        catalog = build_catalog(rows)
        for row in rows:
            record = catalog.get(f"{row[KEY_SERVER]}-{row[KEY_TOOL]}")
            assert record is not None
            assert record.arguments == json.loads(row[KEY_ARGUMENTS])

    def test_duplicate_last_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        rows = [_make_row(request_args='{"v": 1}'), _make_row(request_args='{"v": 2}')]
        with caplog.at_level(logging.DEBUG, logger="toolbatch.catalog._catalog"):
            catalog = build_catalog(rows)
        assert len(catalog) == 1
        record = catalog.get("github-search_repositories")
        assert record is not None
        assert record.arguments == {"v": 2}
        assert "overrides" in caplog.text

    def test_malformed_row_aborts_build(self) -> None:
        rows = [_make_row(), _make_row(tool="")]
        with pytest.raises(MalformedRecordError) as exc_info:
            build_catalog(rows)
        assert exc_info.value.row_index == 1

    def test_empty_rows(self) -> None:
        assert len(build_catalog([])) == 0

    def test_from_csv_text(self) -> None:
        text = (
            "server,tool,request_args\n"
            'github,search_repositories,"{""query"":""x""}"\n'
        )
        catalog = build_catalog(parse_csv(text))
        assert catalog.has("github-search_repositories")


# =============================================================================
# TestCatalog
# =============================================================================


class TestTestCatalogLookup:
    """参照系メソッドを検証。"""

    def test_has_get_contains(self) -> None:
        catalog = build_catalog([_make_row()])
        assert catalog.has("github-search_repositories")
        assert "github-search_repositories" in catalog
        assert catalog.get("missing") is None

    def test_entries_and_records_keep_order(self) -> None:
        catalog = build_catalog([_make_row(tool="b"), _make_row(tool="a")])
        assert [name for name, _ in catalog.entries()] == ["github-b", "github-a"]
        assert [r.tool_name for r in catalog.records()] == ["b", "a"]

    def test_find_by_full_name_independent_of_key(self) -> None:
        """キーと full_name が異なる構成でも full_name で引ける。"""
        record = CatalogRecord(server="s", tool_name="t", delimiter="__")
        catalog = TestCatalog({"custom-key": record})
        assert catalog.get("s__t") is None
        assert catalog.find_by_full_name("s__t") == record

    def test_records_mapping_is_read_only(self) -> None:
        source = {"github-search_repositories": build_record(_make_row())}
        catalog = TestCatalog(source)
        source.clear()
        assert len(catalog) == 1

    def test_repr(self) -> None:
        assert "1 records" in repr(build_catalog([_make_row()]))
