"""ToolbatchConfig のテスト。"""

import pytest
from pydantic import ValidationError

from toolbatch.models.config import (
    DEFAULT_HISTORY_FILE,
    DEFAULT_HISTORY_KEY,
    OutputFormat,
    ToolbatchConfig,
)


class TestToolbatchConfigDefaults:
    """デフォルト値のみで有効なインスタンスを構築できる。"""

    def test_defaults(self) -> None:
        config = ToolbatchConfig()
        assert config.delimiter == "-"
        assert config.catalog is None
        assert config.csv_delimiter == ","
        assert config.csv_trim is True
        assert config.csv_skip_empty_lines is True
        assert config.history_limit == 3
        assert config.history_key == DEFAULT_HISTORY_KEY
        assert config.history_file == DEFAULT_HISTORY_FILE
        assert config.save_history is True
        assert config.output_format == OutputFormat.TEXT

    def test_history_key_value(self) -> None:
        assert DEFAULT_HISTORY_KEY == "__INSPECTOR_BULK_TOOL_CALLS"


class TestToolbatchConfigValidation:
    """不正な値の拒否を検証。"""

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_history_limit(self, limit: int) -> None:
        with pytest.raises(ValidationError):
            ToolbatchConfig(history_limit=limit)

    def test_empty_delimiter(self) -> None:
        with pytest.raises(ValidationError):
            ToolbatchConfig(delimiter="")

    @pytest.mark.parametrize("value", ['"', "\n", ";;"])
    def test_invalid_csv_delimiter(self, value: str) -> None:
        with pytest.raises(ValidationError):
            ToolbatchConfig(csv_delimiter=value)

    def test_semicolon_csv_delimiter(self) -> None:
        assert ToolbatchConfig(csv_delimiter=";").csv_delimiter == ";"

    def test_strict_bool(self) -> None:
        with pytest.raises(ValidationError):
            ToolbatchConfig(save_history="yes")  # type: ignore[arg-type]

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ToolbatchConfig(model="opus")  # type: ignore[call-arg]

    def test_output_format_from_string(self) -> None:
        config = ToolbatchConfig.model_validate({"output_format": "json"})
        assert config.output_format == OutputFormat.JSON
