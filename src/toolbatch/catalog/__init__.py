"""カタログパッケージ。

CSV テキストのパース、TestCatalog の構築、取得元からの読み込みを担当する。
"""

from toolbatch.catalog._catalog import (
    KEY_ARGUMENTS,
    KEY_SERVER,
    KEY_TOOL,
    REQUIRED_COLUMNS,
    MalformedRecordError,
    TestCatalog,
    build_catalog,
    build_record,
)
from toolbatch.catalog._manager import CatalogManager, CatalogProvider
from toolbatch.catalog._parser import CsvOptions, parse_csv
from toolbatch.catalog._source import (
    CatalogSource,
    FileCatalogSource,
    HttpCatalogSource,
    LoadError,
    TextCatalogSource,
    create_catalog_source,
    is_url,
)

__all__ = [
    "CatalogManager",
    "CatalogProvider",
    "CatalogSource",
    "CsvOptions",
    "FileCatalogSource",
    "HttpCatalogSource",
    "KEY_ARGUMENTS",
    "KEY_SERVER",
    "KEY_TOOL",
    "LoadError",
    "MalformedRecordError",
    "REQUIRED_COLUMNS",
    "TestCatalog",
    "TextCatalogSource",
    "build_catalog",
    "build_record",
    "create_catalog_source",
    "is_url",
    "parse_csv",
]
