"""
Populate records from field tags.

These are the everyday callers of the scanner and the coercion engine:

    @dataclass
    class Settings:
        host: str = tagged({"env": "HOST", "default": "localhost"}, default="")
        port: int = tagged({"env": "PORT", "default": "8080"}, default=0)
        timeout: Duration = tagged({"default": "30s"}, default=Duration(0))

    settings = load_env(load_defaults(Settings()), prefix="APP_")

``load_defaults`` never overwrites values already set; ``load_env`` does the
same unless ``hard=True`` is passed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, TypeVar

from .coercion import parse, parse_hard
from .config import ParseOptions
from .records import FieldInfo, Location
from .scanner import scan

logger = logging.getLogger(__name__)

R = TypeVar("R")


def apply_tag(
    record: R,
    key: str,
    *,
    hard: bool = False,
    options: ParseOptions | None = None,
) -> R:
    """
    Coerce the text of tag ``key`` into every field that carries it.

    Raises:
        NotARecordError: If ``record`` is not a record instance.
        ParseError: If a tag's text cannot be coerced into its field.
    """
    apply = parse_hard if hard else parse

    def on_field(info: FieldInfo, loc: Location) -> None:
        text = info.tag(key)
        if text:
            apply(text, loc, options)

    scan(record, on_field)
    return record


def load_defaults(record: R, *, tag: str = "default", options: ParseOptions | None = None) -> R:
    """Fill empty fields from their ``default`` tags."""
    return apply_tag(record, tag, options=options)


def load_env(
    record: R,
    *,
    tag: str = "env",
    prefix: str = "",
    environ: Mapping[str, str] | None = None,
    hard: bool = False,
    options: ParseOptions | None = None,
) -> R:
    """
    Fill fields from the environment variables their ``env`` tags name.

    Variables that are unset are skipped. By default only empty fields are
    filled; ``hard=True`` overwrites.

    Raises:
        NotARecordError: If ``record`` is not a record instance.
        ParseError: If a variable's value cannot be coerced into its field.
    """
    env: Mapping[str, Any] = os.environ if environ is None else environ
    apply = parse_hard if hard else parse

    def on_field(info: FieldInfo, loc: Location) -> None:
        name = info.tag(tag)
        if not name:
            return
        var = prefix + name
        if var not in env:
            logger.debug("Environment variable %s not set for field %s", var, info.name)
            return
        apply(env[var], loc, options)

    scan(record, on_field)
    return record
