"""ExitCode — 終了コードの定義。"""

from enum import IntEnum


class ExitCode(IntEnum):
    """プロセス終了コード。

    0-1 はバッチ実行の結果に対応し、4 は CLI 層固有の入力エラー。
    """

    SUCCESS = 0
    EXECUTION_ERROR = 1
    INPUT_ERROR = 4
