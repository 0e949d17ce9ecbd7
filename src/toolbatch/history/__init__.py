"""実行履歴パッケージ。"""

from toolbatch.history._storage import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    NullStorage,
    StorageError,
)
from toolbatch.history._store import (
    HistoryStore,
    PersistenceDecodeError,
    PersistenceWriteError,
    dump_history,
    parse_history,
)

__all__ = [
    "HistoryStore",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NullStorage",
    "PersistenceDecodeError",
    "PersistenceWriteError",
    "StorageError",
    "dump_history",
    "parse_history",
]
