"""CatalogManager — カタログの読み込みと保持。

CatalogProvider プロトコル（load_catalog / get_catalog）を直接実装し、
オーケストレーション層はこのプロトコルのみに依存する。
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from toolbatch.catalog._catalog import MalformedRecordError, TestCatalog, build_catalog
from toolbatch.catalog._parser import CsvOptions, parse_csv
from toolbatch.catalog._source import CatalogSource, LoadError
from toolbatch.models.catalog import DEFAULT_DELIMITER

logger = logging.getLogger(__name__)


@runtime_checkable
class CatalogProvider(Protocol):
    """オーケストレーション層が必要とするカタログ操作。"""

    async def load_catalog(self) -> TestCatalog:
        """カタログを（再）読み込みし、現在のカタログとして保持する。"""
        ...

    def get_catalog(self) -> TestCatalog | None:
        """現在のカタログを返す。未読み込みなら None。"""
        ...


class CatalogManager:
    """CatalogSource からカタログを読み込み、最新のカタログを保持する。

    読み込みは取得 → パース → 構築の順で行い、全て成功した場合のみ
    現在のカタログを丸ごと置き換える。失敗時は直前のカタログを維持する。
    """

    def __init__(
        self,
        source: CatalogSource,
        identifier: str,
        *,
        delimiter: str = DEFAULT_DELIMITER,
        csv_options: CsvOptions | None = None,
    ) -> None:
        self._source = source
        self._identifier = identifier
        self._delimiter = delimiter
        self._csv_options = csv_options if csv_options is not None else CsvOptions()
        self._catalog: TestCatalog | None = None

    @property
    def identifier(self) -> str:
        """読み込み対象の識別子（パス、URL 等）。"""
        return self._identifier

    def set_source(self, source: CatalogSource) -> None:
        """取得元を差し替える。現在のカタログは変更しない。"""
        self._source = source

    def set_source_identifier(self, identifier: str) -> None:
        """読み込み対象の識別子を差し替える。現在のカタログは変更しない。"""
        self._identifier = identifier

    def get_catalog(self) -> TestCatalog | None:
        return self._catalog

    async def load_catalog(self) -> TestCatalog:
        """取得元からカタログを読み込む。

        Returns:
            新たに構築された TestCatalog。

        Raises:
            LoadError: 取得元が読み取れない場合。
            MalformedRecordError: カタログ行が不正な場合。
        """
        try:
            text = await self._source.load(self._identifier)
        except LoadError:
            logger.error("Failed to load catalog from '%s'", self._identifier)
            raise
        return self.load_from_text(text)

    def load_from_text(self, text: str) -> TestCatalog:
        """アップロード済みテキストからカタログを構築し、現在のカタログとする。

        Raises:
            MalformedRecordError: カタログ行が不正な場合。
        """
        rows = parse_csv(text, self._csv_options)
        try:
            catalog = build_catalog(rows, delimiter=self._delimiter)
        except MalformedRecordError as exc:
            logger.error("Malformed catalog '%s': %s", self._identifier, exc)
            raise
        self._catalog = catalog
        logger.info(
            "Loaded %d catalog entries from '%s'", len(catalog), self._identifier
        )
        return catalog
