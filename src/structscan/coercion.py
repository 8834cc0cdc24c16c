"""
String to typed value coercion.

``parse_hard`` converts text into the type declared by a location and assigns
it. ``parse`` does the same only while the location still holds an empty
value, so defaults applied with ``parse`` never clobber values a caller has
already set, while explicit overrides applied with ``parse_hard`` always win.

Dispatch is on the destination type after ``Annotated``, ``Optional`` and
``NewType`` wrappers are removed:

- ``bool``: ``1 t T TRUE true True`` / ``0 f F FALSE false False``
- ``float``, ``Float32``, ``Float64``: decimal, ``inf``/``nan`` or hex floats
- ``Duration``, ``timedelta``: duration literals such as ``"1h30m"``
- ``int`` and sized integers: ``0x``/``0o``/``0b`` prefixes, leading-zero octal
- ``str``: verbatim
- lists, tuples and sequences: ``;`` separated items, each coerced with ``parse``
- streams and connections: opened from a path or a ``[driver/]dsn`` descriptor

Anything else is left untouched.
"""

from __future__ import annotations

import logging
import math
import re
import struct
import typing
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import Any

from .config import DEFAULT_OPTIONS, ParseOptions
from .duration import Duration, parse_duration
from .errors import ParseError, ParseKind
from .records import Location, ValueLocation, unwrap_type
from .resources import is_connection_target, is_file_target, open_connection, open_file
from .types import float_width, int_width

logger = logging.getLogger(__name__)

EMPTY_RENDERINGS = frozenset({"false", "0", "[]", "", "<nil>"})

Coercer = Callable[[str, Any, ParseOptions], Any]

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_PREFIXED_INT_RE = re.compile(r"0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+")
_OCTAL_INT_RE = re.compile(r"0[0-7_]*")
_DECIMAL_INT_RE = re.compile(r"[1-9][0-9_]*")
_HEX_FLOAT_RE = re.compile(r"[+-]?0[xX]")
_HEX_EXPONENT_RE = re.compile(r"[pP][+-]?\d")


# =============================================================================
# Emptiness
# =============================================================================


def render(value: Any) -> str:
    """Render a value to the canonical text the emptiness check compares against."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return format(value, "g")
    if isinstance(value, timedelta):
        return str(value // timedelta(microseconds=1))
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(render(v) for v in value) + "]"
    return str(value)


def is_empty(value: Any) -> bool:
    """
    True if ``value`` counts as unset.

    Note: this is a rendering check, so an intentional ``0``, ``False`` or the
    string ``"0"`` is indistinguishable from a value never set.
    """
    return render(value) in EMPTY_RENDERINGS


# =============================================================================
# Scalars
# =============================================================================


def _coerce_bool(text: str, target: Any, options: ParseOptions) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ParseError(ParseKind.BOOL, text, target)


def _coerce_float(text: str, target: Any, options: ParseOptions) -> float:
    if text != text.strip():
        raise ParseError(ParseKind.FLOAT, text, target)
    hex_float = _HEX_FLOAT_RE.match(text) is not None
    if hex_float and not _HEX_EXPONENT_RE.search(text):
        raise ParseError(ParseKind.FLOAT, text, target, "hexadecimal float needs a p exponent")
    if not hex_float and "_" in text:
        raise ParseError(ParseKind.FLOAT, text, target, "underscores need a base prefix")
    try:
        value = float.fromhex(text.replace("_", "")) if hex_float else float(text)
    except (ValueError, OverflowError) as exc:
        raise ParseError(ParseKind.FLOAT, text, target) from exc

    infinite_literal = text.lstrip("+-").lower() in ("inf", "infinity")
    if math.isinf(value) and not infinite_literal:
        raise ParseError(ParseKind.FLOAT, text, target, "value out of range")

    if float_width(target) == 32 and math.isfinite(value):
        try:
            value = struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError as exc:
            raise ParseError(ParseKind.FLOAT, text, target, "value out of range") from exc
        if math.isinf(value):
            raise ParseError(ParseKind.FLOAT, text, target, "value out of range")
    return target(value)


def parse_int(text: str, bits: int = 64, signed: bool = True) -> int:
    """
    Parse an integer literal with base inferred from its prefix.

    Raises:
        ValueError: On malformed input or values outside the ``bits`` range.
    """
    digits = text
    negative = False
    if signed and digits[:1] in ("+", "-"):
        negative = digits[0] == "-"
        digits = digits[1:]

    if _PREFIXED_INT_RE.fullmatch(digits) or _DECIMAL_INT_RE.fullmatch(digits):
        value = int(digits, 0)
    elif _OCTAL_INT_RE.fullmatch(digits):
        value = int(digits, 8)
    else:
        raise ValueError(f"invalid integer literal {text!r}")

    if negative:
        value = -value
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= value <= high:
        raise ValueError(f"{text!r} out of range for {bits}-bit integer")
    return value


def _coerce_int(text: str, target: Any, options: ParseOptions) -> int:
    bits, signed = int_width(target)
    try:
        value = parse_int(text, bits, signed)
    except ValueError as exc:
        kind = ParseKind.INT if signed else ParseKind.UINT
        raise ParseError(kind, text, target, str(exc)) from exc
    return target(value)


def _coerce_duration(text: str, target: Any, options: ParseOptions) -> Any:
    try:
        ns = parse_duration(text)
    except ValueError as exc:
        raise ParseError(ParseKind.DURATION, text, target, str(exc)) from exc
    if issubclass(target, timedelta):
        return Duration(ns).to_timedelta()
    return target(ns)


def _coerce_str(text: str, target: Any, options: ParseOptions) -> str:
    return text


# =============================================================================
# Containers and resources
# =============================================================================


def _sequence_element(target: Any) -> tuple[type, Any] | None:
    """Return ``(container, element type)`` for sequence targets."""
    origin = typing.get_origin(target) or target
    if not isinstance(origin, type) or not issubclass(origin, Sequence):
        return None
    if issubclass(origin, (str, bytes, bytearray)):
        return None

    args = typing.get_args(target)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, args[0]
        if not args:
            return tuple, str
        return None
    return list, (args[0] if args else str)


def _coerce_sequence(text: str, target: Any, options: ParseOptions) -> Any:
    container, element = _sequence_element(target)  # type: ignore[misc]
    items = []
    for part in text.split(options.separator):
        cell = ValueLocation(element)
        parse(part.strip(), cell, options)
        items.append(cell.get())
    return container(items)


def _coerce_file(text: str, target: Any, options: ParseOptions) -> Any:
    return open_file(text, target, encoding=options.encoding)


def _coerce_connection(text: str, target: Any, options: ParseOptions) -> Any:
    return open_connection(text, options.default_driver, target)


# =============================================================================
# Dispatch
# =============================================================================

_COERCERS: dict[Any, Coercer] = {
    bool: _coerce_bool,
    str: _coerce_str,
    Duration: _coerce_duration,
    timedelta: _coerce_duration,
}


def register_coercer(target: type, coercer: Coercer) -> None:
    """
    Register a coercer for values of exactly ``target``.

    Registered coercers take precedence over the built-in kind checks.
    """
    _COERCERS[target] = coercer


def find_coercer(target: Any) -> Coercer | None:
    """Return the coercer for a destination type, or None if it is unsupported."""
    target = unwrap_type(target)
    try:
        coercer = _COERCERS.get(target)
    except TypeError:
        return None
    if coercer is not None:
        return coercer

    if isinstance(target, type) and typing.get_origin(target) is None:
        if issubclass(target, bool):
            return _coerce_bool
        if issubclass(target, (Duration, timedelta)):
            return _coerce_duration
        if issubclass(target, int):
            return _coerce_int
        if issubclass(target, float):
            return _coerce_float
        if issubclass(target, str):
            return _coerce_str
    if _sequence_element(target) is not None:
        return _coerce_sequence
    if is_file_target(target):
        return _coerce_file
    if is_connection_target(target):
        return _coerce_connection
    return None


def parse_hard(text: str, loc: Location, options: ParseOptions | None = None) -> None:
    """
    Coerce ``text`` into the type of ``loc`` and assign it.

    Empty text is a no-op, as is a destination type with no coercer.

    Raises:
        ParseError: If the text is malformed for the destination or a
            resource cannot be opened.
    """
    if text == "":
        return

    target = unwrap_type(loc.type)
    coercer = find_coercer(target)
    if coercer is None:
        logger.debug("No coercer for %r, leaving %r untouched", target, loc)
        return
    loc.set(coercer(text, target, options or DEFAULT_OPTIONS))


def parse(text: str, loc: Location, options: ParseOptions | None = None) -> None:
    """
    Like ``parse_hard``, but only when ``loc`` currently holds an empty value.

    Raises:
        ParseError: As ``parse_hard``.
    """
    if not is_empty(loc.get()):
        logger.debug("Keeping existing value of %r", loc)
        return
    parse_hard(text, loc, options)
