"""CsvParser — 表形式テキストの行マッピングへの変換。

先頭の空でないレコードをヘッダーとし、以降の各レコードを
ヘッダー名 → フィールド値の辞書に変換する。
引用符で囲まれたフィールドは区切り文字・改行を含むことができ、
連続する 2 つの引用符は 1 つのリテラル引用符に置き換わる。
I/O を一切行わない純粋関数として実装する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from pydantic import Field, StrictBool, field_validator

from toolbatch.models._base import ToolbatchBaseModel

QUOTE: Final[str] = '"'
"""フィールドの引用符。"""


class CsvOptions(ToolbatchBaseModel):
    """CSV パースオプション。

    Attributes:
        delimiter: フィールド区切り文字（1 文字）。
        trim: 引用符外の前後空白を除去するか。
        skip_empty_lines: 空レコードを読み飛ばすか。
    """

    delimiter: str = Field(default=",", min_length=1, max_length=1)
    trim: StrictBool = True
    skip_empty_lines: StrictBool = True

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """引用符と改行を区切り文字として使用できないことを検証する。"""
        if v in (QUOTE, "\n", "\r"):
            msg = f"Invalid delimiter {v!r}: quote and newline are reserved"
            raise ValueError(msg)
        return v


@dataclass
class _Field:
    """パース中のフィールド。"""

    chars: list[str] = field(default_factory=list)
    quoted: bool = False
    closed: bool = False

    def value(self, trim: bool) -> str:
        text = "".join(self.chars)
        if trim and not self.quoted:
            return text.strip()
        return text


def _is_empty_record(record: list[_Field], trim: bool) -> bool:
    """単一の引用符なしフィールドで値が空のレコードを空行とみなす。"""
    return len(record) == 1 and not record[0].quoted and record[0].value(trim) == ""


def _split_records(text: str, options: CsvOptions) -> list[list[_Field]]:
    """テキストを引用符を考慮してレコード（フィールド列）に分割する。

    改行は ``\\n``, ``\\r\\n``, ``\\r`` のいずれも行区切りとして扱う。
    末尾の改行は空レコードを生成しない。
    """
    records: list[list[_Field]] = []
    record: list[_Field] = []
    current = _Field()
    in_quotes = False
    pending = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if in_quotes:
            if char == QUOTE:
                if i + 1 < length and text[i + 1] == QUOTE:
                    current.chars.append(QUOTE)
                    i += 2
                    continue
                in_quotes = False
                current.closed = True
            else:
                current.chars.append(char)
        elif char == QUOTE:
            # 開き引用符より前の空白は値に含めない
            if options.trim and not "".join(current.chars).strip():
                current.chars.clear()
            in_quotes = True
            current.quoted = True
        elif char == options.delimiter:
            record.append(current)
            current = _Field()
        elif char in ("\n", "\r"):
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            record.append(current)
            records.append(record)
            record = []
            current = _Field()
            pending = False
            i += 1
            continue
        elif current.closed and options.trim and char.isspace():
            pass
        else:
            current.chars.append(char)
        pending = True
        i += 1

    if pending or record:
        record.append(current)
        records.append(record)
    return records


def parse_csv(text: str, options: CsvOptions | None = None) -> list[dict[str, str]]:
    """CSV テキストを行マッピングのリストに変換する。

    ヘッダーが存在しない（空テキスト、空行のみ）場合は空リストを返す。
    ヘッダーより少ないフィールドの行は不足分を空文字で補い、
    ヘッダーより多いフィールドは切り捨てる。

    Args:
        text: CSV テキスト。
        options: パースオプション。None の場合はデフォルト値。

    Returns:
        ヘッダー名 → フィールド値の辞書のリスト（入力順）。
    """
    opts = options if options is not None else CsvOptions()
    records = _split_records(text, opts)

    headers: list[str] | None = None
    rows: list[dict[str, str]] = []
    for record in records:
        if headers is None:
            if _is_empty_record(record, trim=True):
                continue
            headers = [f.value(trim=True) for f in record]
            continue
        if opts.skip_empty_lines and _is_empty_record(record, opts.trim):
            continue
        values = [f.value(opts.trim) for f in record]
        rows.append(
            {
                header: values[index] if index < len(values) else ""
                for index, header in enumerate(headers)
            }
        )
    return rows
