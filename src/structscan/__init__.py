"""
structscan - walk record fields and coerce strings into them.

The scanner visits the fields of dataclass and pydantic model instances,
handing each settable field's metadata and a writable location to a callback.
The coercion engine turns strings into correctly typed values for such
locations.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version

from .coercion import is_empty, parse, parse_hard, register_coercer
from .config import ParseOptions
from .duration import Duration, format_duration, parse_duration
from .errors import NotARecordError, ParseError, ParseKind, ScanError, StructScanError
from .records import (
    AttributeLocation,
    FieldInfo,
    Location,
    ValueLocation,
    is_record,
    location,
    record_fields,
    tagged,
)
from .resources import register_driver, unregister_driver
from .scanner import scan, scan_all
from .tags import apply_tag, load_defaults, load_env
from .types import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
)

try:
    __version__ = _metadata_version("structscan")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    # Scanning
    "scan",
    "scan_all",
    "FieldInfo",
    "Location",
    "AttributeLocation",
    "ValueLocation",
    "is_record",
    "location",
    "record_fields",
    "tagged",
    # Coercion
    "parse",
    "parse_hard",
    "is_empty",
    "register_coercer",
    "register_driver",
    "unregister_driver",
    "ParseOptions",
    # Loaders
    "apply_tag",
    "load_defaults",
    "load_env",
    # Types
    "Duration",
    "format_duration",
    "parse_duration",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    # Errors
    "StructScanError",
    "ScanError",
    "NotARecordError",
    "ParseError",
    "ParseKind",
]
