"""KeyValueStorage — 履歴永続化の外部協調者。

キー → 文字列の単純な永続化インターフェースと、
揮発（メモリ）・永続（JSON ファイル）・無効（no-op）の 3 実装を提供する。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """ストレージの読み書きエラー。ファイル破損、I/O エラー等。"""


@runtime_checkable
class KeyValueStorage(Protocol):
    """履歴ストアが必要とするキー・値ストレージ操作。"""

    def get_item(self, key: str) -> str | None:
        """key の値を返す。存在しなければ None。"""
        ...

    def set_item(self, key: str, value: str) -> None:
        """key に value を保存する。"""
        ...


class MemoryStorage:
    """プロセス内の辞書に保存する揮発ストレージ。テスト用途にも使用する。"""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial) if initial else {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)

    def has_item(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class NullStorage:
    """何も保存しないストレージ。履歴保存を無効化する場合に使用する。"""

    def get_item(self, key: str) -> str | None:
        return None

    def set_item(self, key: str, value: str) -> None:
        """保存しない。"""

    def remove_item(self, key: str) -> None:
        """保存しない。"""

    def clear(self) -> None:
        """保存しない。"""

    def keys(self) -> list[str]:
        return []

    def has_item(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0


class JsonFileStorage:
    """1 つの JSON オブジェクトファイルにキー → 文字列を保存する永続ストレージ。

    書き込みは同一ディレクトリの一時ファイルに書き出してから
    os.replace で置き換えるため、途中で失敗しても既存ファイルは壊れない。
    既存ファイルが破損している場合、set_item は空のオブジェクトから書き直す。
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        """ファイル全体を読み込む。ファイルが存在しなければ空辞書。

        Raises:
            StorageError: 読み取り失敗、または JSON オブジェクトでない場合。
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"Failed to read {self._path}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt storage file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(
                f"Corrupt storage file {self._path}: expected a JSON object, "
                f"got {type(data).__name__}"
            )
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        """ファイル全体をアトミックに書き込む。

        Raises:
            StorageError: ディレクトリ作成・書き込み失敗時。
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(
                f"Failed to write {self._path}: {exc}\n"
                "Check file permissions and available disk space."
            ) from exc

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError as exc:
            logger.warning("Overwriting unreadable storage file: %s", exc)
            data = {}
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

    def clear(self) -> None:
        self._write_all({})

    def keys(self) -> list[str]:
        return list(self._read_all())

    def has_item(self, key: str) -> bool:
        return key in self._read_all()

    def __len__(self) -> int:
        return len(self._read_all())
