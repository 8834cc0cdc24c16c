"""
Unit tests for ParseOptions.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from structscan import ParseOptions
from structscan.config import DEFAULT_OPTIONS


class TestParseOptions:
    """Tests for option defaults, validation and environment loading."""

    def test_defaults(self) -> None:
        assert DEFAULT_OPTIONS.separator == ";"
        assert DEFAULT_OPTIONS.default_driver == "postgres"
        assert DEFAULT_OPTIONS.encoding is None

    def test_from_env(self) -> None:
        options = ParseOptions.from_env(
            {
                "STRUCTSCAN_LIST_SEPARATOR": ",",
                "STRUCTSCAN_DEFAULT_DRIVER": "sqlite3",
                "STRUCTSCAN_FILE_ENCODING": "utf-8",
            }
        )
        assert options == ParseOptions(separator=",", default_driver="sqlite3", encoding="utf-8")

    def test_from_env_ignores_empty(self) -> None:
        assert ParseOptions.from_env({"STRUCTSCAN_LIST_SEPARATOR": ""}) == ParseOptions()

    def test_from_process_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRUCTSCAN_DEFAULT_DRIVER", "mysql")
        assert ParseOptions.from_env().default_driver == "mysql"

    def test_empty_separator_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParseOptions(separator="")

    @pytest.mark.parametrize("driver", ["", "Postgres", "pg/sql", "1db"])
    def test_invalid_driver_rejected(self, driver: str) -> None:
        with pytest.raises(ValidationError):
            ParseOptions(default_driver=driver)

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_OPTIONS.separator = ","  # type: ignore[misc]
