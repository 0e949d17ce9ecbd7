"""TestCatalog — full_name をキーとするカタログレコードの集合。

CSV の行マッピングから CatalogRecord を構築し、full_name をキーとして保持する。
同一キーの行は後勝ちで上書きされる。
1 行でも不正な行があればカタログ全体の構築を中止し、部分的なカタログは生成しない。
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Final

from toolbatch.models.catalog import DEFAULT_DELIMITER, CatalogRecord

logger = logging.getLogger(__name__)

KEY_SERVER: Final[str] = "server"
KEY_TOOL: Final[str] = "tool"
KEY_ARGUMENTS: Final[str] = "request_args"

REQUIRED_COLUMNS: Final[tuple[str, ...]] = (KEY_SERVER, KEY_TOOL, KEY_ARGUMENTS)
"""カタログ行に必須の列名。"""


class MalformedRecordError(Exception):
    """カタログ行の必須フィールド欠落、または引数 JSON の不正。

    Attributes:
        row_index: 問題のあった行のインデックス（ヘッダーを除く 0 始まり）。
        field: 問題のあったフィールド名。
    """

    def __init__(self, message: str, *, row_index: int, field: str) -> None:
        super().__init__(message)
        self.row_index = row_index
        self.field = field


class TestCatalog:
    """full_name → CatalogRecord の不変マッピング。

    build_catalog() で構築する。再読み込み時はインスタンスごと置き換える。
    """

    __test__ = False

    def __init__(
        self,
        records: Mapping[str, CatalogRecord],
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        self._records: Mapping[str, CatalogRecord] = MappingProxyType(dict(records))
        self._delimiter = delimiter
        # キーとは独立に full_name からも引けるようにする
        self._by_full_name: dict[str, CatalogRecord] = {
            record.full_name: record for record in self._records.values()
        }

    @property
    def delimiter(self) -> str:
        """full_name 構築に使用した区切り文字。"""
        return self._delimiter

    def has(self, name: str) -> bool:
        """name をキーとするレコードが存在するか判定する。"""
        return name in self._records

    def get(self, name: str) -> CatalogRecord | None:
        """name をキーとするレコードを返す。存在しなければ None。"""
        return self._records.get(name)

    def entries(self) -> list[tuple[str, CatalogRecord]]:
        """(full_name, レコード) の組を挿入順で返す。"""
        return list(self._records.items())

    def records(self) -> list[CatalogRecord]:
        """レコードを挿入順で返す。"""
        return list(self._records.values())

    def find_by_full_name(self, name: str) -> CatalogRecord | None:
        """レコードの full_name が name と一致するものを返す。

        キーと full_name が一致しない区切り文字構成のカタログでも
        名前を解決できるよう、キー検索とは独立に照合する。
        """
        return self._by_full_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"TestCatalog({len(self)} records, delimiter={self._delimiter!r})"


def _require(row: Mapping[str, str], key: str, row_index: int) -> str:
    value = row.get(key)
    if not value:
        raise MalformedRecordError(
            f"Row {row_index + 1}: missing required field '{key}'",
            row_index=row_index,
            field=key,
        )
    return value


def build_record(
    row: Mapping[str, str],
    row_index: int = 0,
    delimiter: str = DEFAULT_DELIMITER,
) -> CatalogRecord:
    """1 行のマッピングから CatalogRecord を構築する。

    Args:
        row: ヘッダー名 → フィールド値の辞書。
        row_index: エラーメッセージ用の行インデックス。
        delimiter: full_name 構築に使用する区切り文字。

    Returns:
        構築された CatalogRecord。

    Raises:
        MalformedRecordError: 必須フィールド欠落、または request_args が不正な JSON の場合。
    """
    server = _require(row, KEY_SERVER, row_index)
    tool_name = _require(row, KEY_TOOL, row_index)
    raw_arguments = _require(row, KEY_ARGUMENTS, row_index)

    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(
            f"Row {row_index + 1}: invalid JSON in '{KEY_ARGUMENTS}': {exc}",
            row_index=row_index,
            field=KEY_ARGUMENTS,
        ) from exc

    return CatalogRecord(
        server=server,
        tool_name=tool_name,
        arguments=arguments,
        delimiter=delimiter,
    )


def build_catalog(
    rows: Sequence[Mapping[str, str]],
    delimiter: str = DEFAULT_DELIMITER,
) -> TestCatalog:
    """行マッピングのリストから TestCatalog を構築する。

    Args:
        rows: parse_csv() の戻り値。
        delimiter: full_name 構築に使用する区切り文字。

    Returns:
        構築された TestCatalog。

    Raises:
        MalformedRecordError: いずれかの行が不正な場合。部分的なカタログは返さない。
    """
    records: dict[str, CatalogRecord] = {}
    for index, row in enumerate(rows):
        record = build_record(row, index, delimiter)
        if record.full_name in records:
            logger.debug(
                "Catalog row %d overrides earlier entry '%s'",
                index + 1,
                record.full_name,
            )
        records[record.full_name] = record
    return TestCatalog(records, delimiter=delimiter)
