"""
Record introspection.

A record is an instance of a ``@dataclass`` class or of a pydantic
``BaseModel`` subclass. This module turns record classes into ordered
``FieldInfo`` descriptors and wraps their storage in ``Location`` handles that
the scanner hands to callbacks and the coercion engine writes through.

Tags are declared on dataclass fields via metadata::

    @dataclass
    class Server:
        host: str = tagged({"env": "HOST", "default": "localhost"}, default="")
        port: int = field(default=0, metadata={"tags": {"env": "PORT"}})

and on pydantic fields via ``Field(json_schema_extra={"tags": {...}})``.
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import typing
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType, NoneType, UnionType
from typing import Annotated, Any, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

TAGS_KEY = "tags"
SETTABLE_KEY = "settable"

_EMPTY_TAGS: Mapping[str, str] = MappingProxyType({})


def tagged(
    tags: Mapping[str, str] | None = None,
    /,
    *,
    settable: bool = True,
    **field_kwargs: Any,
) -> Any:
    """
    Declare a dataclass field carrying tags.

    Args:
        tags: Tag key to tag text mapping
        settable: False hides the field from field callbacks
        **field_kwargs: Passed through to ``dataclasses.field``
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[TAGS_KEY] = dict(tags or {})
    if not settable:
        metadata[SETTABLE_KEY] = False
    return dataclasses.field(metadata=metadata, **field_kwargs)


@dataclass(frozen=True)
class FieldInfo:
    """
    Metadata for one record field.

    Attributes:
        name: Attribute name
        type: Declared type (resolved annotation)
        tags: Read-only tag mapping
        exposed: False for private (underscore-prefixed) fields
        settable: Whether callers may assign through the field's location
        index: Declaration position within the record
    """

    name: str
    type: Any
    tags: Mapping[str, str] = dataclasses.field(default_factory=lambda: _EMPTY_TAGS)
    exposed: bool = True
    settable: bool = True
    index: int = 0

    def tag(self, key: str, default: str = "") -> str:
        """Return the text of tag ``key``, or ``default`` when absent."""
        return self.tags.get(key, default)


def is_record_type(tp: Any) -> bool:
    """True for dataclass classes and pydantic model classes."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_record(value: Any) -> bool:
    """True for dataclass and pydantic model instances (not classes)."""
    if isinstance(value, type):
        return False
    return isinstance(value, BaseModel) or dataclasses.is_dataclass(value)


def _collect_tags(metadata: Mapping[str, Any] | None) -> Mapping[str, str]:
    if not metadata:
        return _EMPTY_TAGS
    tags = {k: v for k, v in metadata.items() if isinstance(v, str)}
    nested = metadata.get(TAGS_KEY)
    if isinstance(nested, Mapping):
        tags.update({str(k): str(v) for k, v in nested.items()})
    return MappingProxyType(tags) if tags else _EMPTY_TAGS


def _field_hint(cls: type, name: str, annotation: Any) -> Any:
    """Resolve one string annotation, keeping it as a string when it cannot be resolved."""
    if not isinstance(annotation, str):
        return annotation
    holder = type(
        cls.__name__, (), {"__annotations__": {name: annotation}, "__module__": cls.__module__}
    )
    try:
        return typing.get_type_hints(holder, localns=dict(vars(cls)), include_extras=True)[name]
    except (NameError, TypeError):
        logger.debug("Cannot resolve annotation %r of %s.%s", annotation, cls.__name__, name)
        return annotation


def _dataclass_fields(cls: type) -> list[FieldInfo]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        # Some forward reference is out of reach (e.g. a class local to a function);
        # resolve the remaining fields one at a time
        hints = {f.name: _field_hint(cls, f.name, f.type) for f in dataclasses.fields(cls)}

    frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
    infos = []
    for index, f in enumerate(dataclasses.fields(cls)):
        exposed = not f.name.startswith("_")
        settable = exposed and not frozen and f.metadata.get(SETTABLE_KEY, True) is not False
        infos.append(
            FieldInfo(
                name=f.name,
                type=hints.get(f.name, f.type),
                tags=_collect_tags(f.metadata),
                exposed=exposed,
                settable=settable,
                index=index,
            )
        )
    return infos


def _model_fields(cls: type[BaseModel]) -> list[FieldInfo]:
    frozen = bool(cls.model_config.get("frozen"))
    infos = []
    for index, (name, f) in enumerate(cls.model_fields.items()):
        extra = f.json_schema_extra if isinstance(f.json_schema_extra, Mapping) else None
        exposed = not name.startswith("_")
        settable = (
            exposed
            and not frozen
            and not f.frozen
            and (extra or {}).get(SETTABLE_KEY, True) is not False
        )
        infos.append(
            FieldInfo(
                name=name,
                type=f.annotation,
                tags=_collect_tags(extra),
                exposed=exposed,
                settable=settable,
                index=index,
            )
        )
    return infos


@functools.cache
def _class_fields(cls: type) -> tuple[FieldInfo, ...]:
    if issubclass(cls, BaseModel):
        return tuple(_model_fields(cls))
    return tuple(_dataclass_fields(cls))


def record_fields(record: Any) -> list[FieldInfo]:
    """
    Return the fields of a record or record class in declaration order.

    Raises:
        TypeError: If ``record`` is neither a record nor a record class.
    """
    cls = record if isinstance(record, type) else type(record)
    if not is_record_type(cls):
        raise TypeError(f"{cls.__name__} is not a dataclass or pydantic model")
    return list(_class_fields(cls))


def unwrap_type(tp: Any) -> Any:
    """
    Strip wrappers that do not change a destination's kind.

    ``Annotated[X, ...]`` becomes ``X``, ``X | None`` becomes ``X`` and a
    ``NewType`` becomes its supertype. Unions of several concrete types are
    returned unchanged.
    """
    while True:
        origin = typing.get_origin(tp)
        if origin is Annotated:
            tp = typing.get_args(tp)[0]
        elif origin is Union or origin is UnionType:
            args = [a for a in typing.get_args(tp) if a is not NoneType]
            if len(args) != 1:
                return tp
            tp = args[0]
        elif hasattr(tp, "__supertype__"):
            tp = tp.__supertype__
        elif type(tp).__name__ == "TypeAliasType":
            tp = tp.__value__
        else:
            return tp


def is_optional(tp: Any) -> bool:
    """True when ``None`` is an accepted value of ``tp``."""
    if typing.get_origin(tp) is Annotated:
        return is_optional(typing.get_args(tp)[0])
    if typing.get_origin(tp) in (Union, UnionType):
        return NoneType in typing.get_args(tp)
    return tp is None or tp is NoneType or tp is Any


def zero_value(tp: Any) -> Any:
    """The value a freshly allocated slot of type ``tp`` holds."""
    if is_optional(tp):
        return None
    tp = unwrap_type(tp)
    origin = typing.get_origin(tp) or tp
    if origin is tuple:
        return ()
    if isinstance(origin, type) and issubclass(origin, Sequence):
        if not issubclass(origin, (str, bytes)):
            return []
    if tp is bool:
        return False
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        if issubclass(tp, (int, float, str)):
            return tp()
        if issubclass(tp, timedelta):
            return timedelta(0)
    return None


class Location(ABC):
    """A settable storage slot with a declared type."""

    type: Any

    @abstractmethod
    def get(self) -> Any: ...

    @abstractmethod
    def set(self, value: Any) -> None: ...


class AttributeLocation(Location):
    """Location of a named attribute on a record."""

    __slots__ = ("record", "name", "type")

    def __init__(self, record: Any, name: str, tp: Any):
        self.record = record
        self.name = name
        self.type = tp

    def get(self) -> Any:
        return getattr(self.record, self.name, None)

    def set(self, value: Any) -> None:
        setattr(self.record, self.name, value)

    def __repr__(self) -> str:
        return f"AttributeLocation({type(self.record).__name__}.{self.name})"


class ValueLocation(Location):
    """
    A detached slot holding a single value.

    Starts out holding the zero value of its type unless ``value`` is given.
    """

    __slots__ = ("type", "value")

    _UNSET: Any = object()

    def __init__(self, tp: Any, value: Any = _UNSET):
        self.type = tp
        self.value = zero_value(tp) if value is ValueLocation._UNSET else value

    def get(self) -> Any:
        return self.value

    def set(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"ValueLocation({self.type!r}, {self.value!r})"


def location(record: Any, name: str) -> AttributeLocation:
    """
    Build the location of field ``name`` on ``record``.

    Raises:
        KeyError: If the record has no such field.
    """
    for info in record_fields(record):
        if info.name == name:
            return AttributeLocation(record, name, info.type)
    raise KeyError(f"{type(record).__name__} has no field {name!r}")
