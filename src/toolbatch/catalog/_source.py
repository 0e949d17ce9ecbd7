"""CatalogSource — カタログテキストの取得元。

ファイル、アップロード済みテキスト、HTTP の 3 種類の取得元を提供する。
いずれも読み取り不能な場合は LoadError を送出する。
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

import httpx

_DEFAULT_HTTP_TIMEOUT_SECONDS: Final[float] = 30.0


class LoadError(Exception):
    """カタログ取得元の読み取りエラー。ファイル不在、権限不足、HTTP エラー等。"""


@runtime_checkable
class CatalogSource(Protocol):
    """カタログの生テキストを取得するプロトコル。"""

    async def load(self, identifier: str) -> str:
        """identifier が指すカタログテキストを返す。

        Raises:
            LoadError: 読み取りできない場合。
        """
        ...


class FileCatalogSource:
    """ローカルファイルから UTF-8 テキストを読み込む取得元。

    相対パスは base_dir（None の場合はカレントディレクトリ）を基準に解決する。
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir

    def resolve(self, identifier: str) -> Path:
        """identifier を読み込み対象のパスに解決する。"""
        path = Path(identifier).expanduser()
        if not path.is_absolute() and self._base_dir is not None:
            path = self._base_dir / path
        return path

    async def load(self, identifier: str) -> str:
        path = self.resolve(identifier)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            raise LoadError(
                f"Catalog file not found: {path}\n"
                "Check the path or set 'catalog' in .toolbatch/config.toml."
            ) from None
        except UnicodeDecodeError as exc:
            raise LoadError(f"Catalog file is not valid UTF-8: {path}: {exc}") from exc
        except OSError as exc:
            raise LoadError(f"Failed to read catalog file {path}: {exc}") from exc


class TextCatalogSource:
    """アップロード済みのテキストを保持する取得元。

    upload() されるまでは load() で LoadError を送出する。
    identifier は無視する。
    """

    def __init__(self, text: str | None = None) -> None:
        self._text = text

    def upload(self, text: str) -> None:
        """カタログテキストを差し替える。"""
        self._text = text

    async def load(self, identifier: str) -> str:
        if self._text is None:
            raise LoadError("No catalog uploaded. Call upload() first.")
        return self._text


class HttpCatalogSource:
    """HTTP(S) URL からカタログテキストを取得する取得元。

    client を渡さない場合は呼び出しごとに httpx.AsyncClient を生成する。
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def load(self, identifier: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(identifier, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(identifier, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise LoadError(
                f"Failed to fetch catalog {identifier}: "
                f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LoadError(f"Failed to fetch catalog {identifier}: {exc}") from exc
        return response.text


def is_url(identifier: str) -> bool:
    """identifier が HTTP(S) URL か判定する。"""
    return identifier.startswith(("http://", "https://"))


def create_catalog_source(
    identifier: str, base_dir: Path | None = None
) -> CatalogSource:
    """identifier の形式に応じた CatalogSource を生成する。"""
    if is_url(identifier):
        return HttpCatalogSource()
    return FileCatalogSource(base_dir)
