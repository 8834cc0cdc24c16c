"""
Error types for record scanning and string coercion.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class StructScanError(Exception):
    """Base exception for all structscan errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScanError(StructScanError):
    """Raised when a value cannot be scanned."""


class NotARecordError(ScanError, TypeError):
    """
    Raised when the scan root is not a record instance.

    Examples:
    - None
    - A dataclass or model class instead of an instance
    - A scalar such as an int or a string
    """

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"object is not a record instance: {type(value).__name__}")


class ParseKind(StrEnum):
    """Destination kind a coercion failed for."""

    BOOL = "bool"
    FLOAT = "float"
    INT = "int"
    UINT = "uint"
    DURATION = "duration"
    RESOURCE_OPEN = "resource_open"


class ParseError(StructScanError, ValueError):
    """
    Raised when text cannot be coerced into a destination type.

    Attributes:
        kind: Destination kind that failed
        text: The input text
        target: The destination type, if known
    """

    def __init__(self, kind: ParseKind, text: str, target: Any = None, reason: str | None = None):
        self.kind = kind
        self.text = text
        self.target = target
        message = f"cannot parse {text!r} as {kind.value}"
        if target is not None:
            message += f" for {getattr(target, '__name__', target)}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
