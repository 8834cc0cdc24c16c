"""
Recursive record field visitor.

The scanner walks a record's fields in declaration order. Nested records,
whether held directly or through an optional field, are reported to the
struct callback and traversed before the field itself is offered to the field
callback. Private fields are never offered; fields of frozen records are
traversed but not offered.

Usage:
    def fill(info: FieldInfo, loc: Location) -> None:
        parse(info.tag("default"), loc)

    scan(config, fill)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .errors import NotARecordError
from .records import AttributeLocation, FieldInfo, Location, is_record, record_fields

logger = logging.getLogger(__name__)

StructCallback = Callable[[FieldInfo], None]
FieldCallback = Callable[[FieldInfo, Location], None]


def _ignore_struct(info: FieldInfo) -> None:
    return None


def scan(record: Any, on_field: FieldCallback) -> None:
    """
    Visit every settable field of ``record``.

    Raises:
        NotARecordError: If ``record`` is not a record instance.
    """
    scan_all(record, _ignore_struct, on_field)


def scan_all(record: Any, on_struct: StructCallback, on_field: FieldCallback) -> None:
    """
    Visit every nested record and every settable field of ``record``.

    ``on_struct`` is called for a field holding a record before that record's
    own fields are visited. ``on_field`` is called for every settable field,
    including fields holding records. Exceptions raised by either callback stop
    the scan and propagate unchanged; fields visited before the failure keep
    whatever the callbacks assigned.

    Raises:
        NotARecordError: If ``record`` is not a record instance.
    """
    if not is_record(record):
        raise NotARecordError(record)

    for info in record_fields(record):
        value = getattr(record, info.name, None)

        if is_record(value):
            if info.exposed:
                on_struct(info)
                scan_all(value, on_struct, on_field)
            else:
                logger.debug("Not traversing private record field %s", info.name)

        if not info.settable:
            continue

        on_field(info, AttributeLocation(record, info.name, info.type))
