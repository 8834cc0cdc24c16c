"""
Coercion options.

Options can be built directly or read from the environment:

    STRUCTSCAN_LIST_SEPARATOR   separator for list values (default ";")
    STRUCTSCAN_DEFAULT_DRIVER   database driver used when a descriptor names none
                                (default "postgres")
    STRUCTSCAN_FILE_ENCODING    encoding for files opened in text mode
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

LIST_SEPARATOR_VAR = "STRUCTSCAN_LIST_SEPARATOR"
DEFAULT_DRIVER_VAR = "STRUCTSCAN_DEFAULT_DRIVER"
FILE_ENCODING_VAR = "STRUCTSCAN_FILE_ENCODING"

DRIVER_NAME_RE = re.compile(r"[a-z][a-z0-9_]*")


class ParseOptions(BaseModel):
    """Settings shared by the coercion routines."""

    separator: str = ";"
    default_driver: str = "postgres"
    encoding: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if not v:
            raise ValueError("List separator must not be empty")
        return v

    @field_validator("default_driver")
    @classmethod
    def validate_default_driver(cls, v: str) -> str:
        if not DRIVER_NAME_RE.fullmatch(v):
            raise ValueError(f"Invalid driver name '{v}'")
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ParseOptions:
        """Build options from environment variables, ignoring unset or empty ones."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for var, key in (
            (LIST_SEPARATOR_VAR, "separator"),
            (DEFAULT_DRIVER_VAR, "default_driver"),
            (FILE_ENCODING_VAR, "encoding"),
        ):
            raw = env.get(var, "")
            if raw:
                values[key] = raw
        return cls(**values)


DEFAULT_OPTIONS = ParseOptions()
