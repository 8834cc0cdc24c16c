"""
Time spans expressed as integer nanosecond counts.

Duration literals use the familiar ``<number><unit>`` syntax, e.g. ``"300ms"``,
``"-1.5h"`` or ``"2h45m"``. Valid units are ``ns``, ``us`` (or ``µs``),
``ms``, ``s``, ``m`` and ``h``.

Usage:
    from structscan.duration import Duration, parse_duration

    timeout = Duration.parse("1h30m")
    assert timeout == 90 * Duration.MINUTE
    str(timeout)  # "1h30m0s"
"""

from __future__ import annotations

import re
from datetime import timedelta

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5 micro sign
    "μs": MICROSECOND,  # U+03BC greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_MAX_NS = (1 << 63) - 1

# One "<number><unit>" group; the number needs at least one digit.
_COMPONENT_RE = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")


def parse_duration(text: str) -> int:
    """
    Parse a duration literal into nanoseconds.

    Raises:
        ValueError: On malformed input or values outside the signed 64-bit range.
    """
    orig = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueError(f"invalid duration {orig!r}")

    total = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT_RE.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {orig!r}")
        whole, frac, unit_name = match.groups()
        if not whole and not frac:
            raise ValueError(f"invalid duration {orig!r}")
        unit = _UNITS.get(unit_name)
        if unit is None:
            raise ValueError(f"unknown unit {unit_name!r} in duration {orig!r}")

        total += int(whole or "0") * unit
        if frac:
            total += int(frac) * unit // 10 ** len(frac)
        if total > _MAX_NS + 1:
            raise ValueError(f"invalid duration {orig!r}")
        pos = match.end()

    if negative:
        total = -total
    if total > _MAX_NS:
        raise ValueError(f"invalid duration {orig!r}")
    return total


def _format_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{str(frac).rjust(width, '0').rstrip('0')}"


def format_duration(ns: int) -> str:
    """Format nanoseconds as a duration literal, e.g. ``"1h30m0s"`` or ``"1.5ms"``."""
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    u = abs(ns)

    if u < SECOND:
        for unit, name in ((MILLISECOND, "ms"), (MICROSECOND, "µs")):
            if u >= unit:
                return f"{sign}{_format_fraction(u, unit)}{name}"
        return f"{sign}{u}ns"

    hours, rem = divmod(u, HOUR)
    minutes, rem = divmod(rem, MINUTE)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return f"{out}{_format_fraction(rem, SECOND)}s"


class Duration(int):
    """
    A time span counted in nanoseconds.

    Fields annotated with ``Duration`` are coerced from duration literals rather
    than plain integers.
    """

    NANOSECOND = NANOSECOND
    MICROSECOND = MICROSECOND
    MILLISECOND = MILLISECOND
    SECOND = SECOND
    MINUTE = MINUTE
    HOUR = HOUR

    bits = 64
    signed = True

    @classmethod
    def parse(cls, text: str) -> Duration:
        return cls(parse_duration(text))

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> Duration:
        return cls(delta // timedelta(microseconds=1) * MICROSECOND)

    def to_timedelta(self) -> timedelta:
        """Convert to a timedelta, truncating below microsecond precision."""
        return timedelta(microseconds=int(self) // MICROSECOND)

    def seconds(self) -> float:
        return int(self) / SECOND

    def __str__(self) -> str:
        return format_duration(int(self))

    def __repr__(self) -> str:
        return f"Duration({format_duration(int(self))!r})"
