"""
Sized numeric types.

Python integers are unbounded, so fields that need a fixed width are annotated
with one of these ``int``/``float`` subclasses. Coercion range-checks against
``bits`` and ``signed`` and builds the value as the annotated type.

Plain ``int`` is treated as a signed 64-bit integer and plain ``float`` as a
64-bit float.
"""

from __future__ import annotations

from .duration import Duration


class Int8(int):
    bits = 8
    signed = True


class Int16(int):
    bits = 16
    signed = True


class Int32(int):
    bits = 32
    signed = True


class Int64(int):
    bits = 64
    signed = True


class Uint(int):
    bits = 64
    signed = False


class Uint8(int):
    bits = 8
    signed = False


class Uint16(int):
    bits = 16
    signed = False


class Uint32(int):
    bits = 32
    signed = False


class Uint64(int):
    bits = 64
    signed = False


class Float32(float):
    bits = 32


class Float64(float):
    bits = 64


def int_width(tp: type) -> tuple[int, bool]:
    """Return ``(bits, signed)`` for an integer type."""
    return getattr(tp, "bits", 64), getattr(tp, "signed", True)


def float_width(tp: type) -> int:
    return getattr(tp, "bits", 64)


__all__ = [
    "Duration",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "float_width",
    "int_width",
]
