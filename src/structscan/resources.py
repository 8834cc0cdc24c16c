"""
Resource handles opened from string descriptors.

Two kinds of resources can be coerced from text:

- Files and streams: the text is a filesystem path. The declared type decides
  the open mode (text or binary, read-only or update).
- Database connections: the text is a descriptor of the form
  ``[driver/]dsn``, e.g. ``"sqlite3/:memory:"`` or
  ``"postgres://app:secret@db/app"``. Without a driver prefix the default
  driver (``postgres``) is used. Drivers are looked up in a registry so
  applications can add their own::

      register_driver("mysql", lambda dsn: pymysql.connect(**parse(dsn)))

Opened handles are returned to the caller, who owns and closes them.
"""

from __future__ import annotations

import io
import logging
import re
import sqlite3
import typing
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .config import DRIVER_NAME_RE
from .errors import ParseError, ParseKind

logger = logging.getLogger(__name__)


# =============================================================================
# Capability protocols
# =============================================================================


@runtime_checkable
class Reader(Protocol):
    def read(self, size: int = -1, /) -> Any: ...


@runtime_checkable
class Writer(Protocol):
    def write(self, data: Any, /) -> int: ...


@runtime_checkable
class Closer(Protocol):
    def close(self) -> None: ...


@runtime_checkable
class ReadCloser(Reader, Closer, Protocol):
    pass


@runtime_checkable
class WriteCloser(Writer, Closer, Protocol):
    pass


@runtime_checkable
class ReadWriter(Reader, Writer, Protocol):
    pass


@runtime_checkable
class ReadWriteCloser(Reader, Writer, Closer, Protocol):
    pass


@runtime_checkable
class Connection(Protocol):
    """A DB-API 2.0 connection."""

    def cursor(self) -> Any: ...

    def commit(self) -> None: ...

    def close(self) -> None: ...


# =============================================================================
# Files
# =============================================================================

# Target type -> (mode, buffering)
_FILE_MODES: dict[Any, tuple[str, int]] = {
    typing.TextIO: ("r", -1),
    io.TextIOBase: ("r", -1),
    io.TextIOWrapper: ("r", -1),
    typing.IO: ("rb", -1),
    typing.BinaryIO: ("rb", -1),
    io.IOBase: ("rb", -1),
    io.BufferedIOBase: ("rb", -1),
    io.BufferedReader: ("rb", -1),
    io.RawIOBase: ("rb", 0),
    io.FileIO: ("rb", 0),
    Reader: ("rb", -1),
    ReadCloser: ("rb", -1),
    Writer: ("r+b", -1),
    WriteCloser: ("r+b", -1),
    ReadWriter: ("r+b", -1),
    ReadWriteCloser: ("r+b", -1),
}


def _base_type(target: Any) -> Any:
    return typing.get_origin(target) or target


def is_file_target(target: Any) -> bool:
    """True if values of ``target`` are opened from a filesystem path."""
    try:
        return _base_type(target) in _FILE_MODES
    except TypeError:
        # Unhashable annotation
        return False


def open_file(path: str, target: Any = typing.BinaryIO, *, encoding: str | None = None) -> Any:
    """
    Open ``path`` in the mode suited to ``target``.

    Raises:
        ParseError: If the file cannot be opened.
    """
    mode, buffering = _FILE_MODES.get(_base_type(target), ("rb", -1))
    logger.debug("Opening %s (mode=%s) for %s", path, mode, getattr(target, "__name__", target))
    try:
        if "b" in mode:
            return open(path, mode, buffering=buffering)  # noqa: SIM115
        return open(path, mode, encoding=encoding)  # noqa: SIM115
    except OSError as exc:
        raise ParseError(ParseKind.RESOURCE_OPEN, path, target, str(exc)) from exc


# =============================================================================
# Database connections
# =============================================================================

DEFAULT_DRIVER = "postgres"

DESCRIPTOR_RE = re.compile(rf"(?:(?P<driver>{DRIVER_NAME_RE.pattern})/)?(?P<dsn>.*)", re.DOTALL)

ConnectFunc = Callable[[str], Any]

_DRIVERS: dict[str, ConnectFunc] = {}


def register_driver(name: str, connect: ConnectFunc) -> None:
    """
    Register ``connect`` as the opener for driver ``name``.

    Replaces any driver already registered under that name.
    """
    if not DRIVER_NAME_RE.fullmatch(name):
        raise ValueError(f"Invalid driver name '{name}'")
    _DRIVERS[name] = connect


def unregister_driver(name: str) -> None:
    _DRIVERS.pop(name, None)


def registered_drivers() -> list[str]:
    return sorted(_DRIVERS)


def _postgres_dsn(dsn: str) -> str:
    # Normalize Heroku's postgres:// to postgresql://
    if dsn.startswith("postgres://"):
        return "postgresql://" + dsn[len("postgres://") :]
    # Bare user:pass@host/db form
    if "://" not in dsn and "=" not in dsn and "@" in dsn:
        return "postgresql://" + dsn
    return dsn


def _connect_postgres(dsn: str) -> Any:
    import psycopg

    return psycopg.connect(_postgres_dsn(dsn))


def _connect_sqlite(dsn: str) -> sqlite3.Connection:
    return sqlite3.connect(dsn)


def is_connection_target(target: Any) -> bool:
    """True for connection types: the ``Connection`` protocol, sqlite3 and psycopg."""
    target = _base_type(target)
    if target is Connection:
        return True
    if not isinstance(target, type):
        return False
    if issubclass(target, sqlite3.Connection):
        return True
    package = (getattr(target, "__module__", "") or "").split(".")[0]
    return package in ("psycopg", "psycopg2") and target.__name__.lower().endswith("connection")


def split_descriptor(text: str, default_driver: str = DEFAULT_DRIVER) -> tuple[str, str]:
    """
    Split a connection descriptor into ``(driver, dsn)``.

    Examples:
        >>> split_descriptor("mysql/user:pass@host/db")
        ('mysql', 'user:pass@host/db')
        >>> split_descriptor("user:pass@host/db")
        ('postgres', 'user:pass@host/db')
    """
    match = DESCRIPTOR_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"Invalid connection descriptor '{text}'")
    return match.group("driver") or default_driver, match.group("dsn")


def open_connection(text: str, default_driver: str = DEFAULT_DRIVER, target: Any = None) -> Any:
    """
    Open a database connection from a descriptor.

    Raises:
        ParseError: If the driver is unknown or the connection fails.
    """
    driver, dsn = split_descriptor(text, default_driver)
    connect = _DRIVERS.get(driver)
    if connect is None:
        raise ParseError(ParseKind.RESOURCE_OPEN, text, target, f"unknown driver '{driver}'")

    logger.debug("Opening %s connection", driver)
    try:
        return connect(dsn)
    except Exception as exc:
        raise ParseError(ParseKind.RESOURCE_OPEN, text, target, str(exc)) from exc


register_driver("postgres", _connect_postgres)
register_driver("postgresql", _connect_postgres)
register_driver("sqlite", _connect_sqlite)
register_driver("sqlite3", _connect_sqlite)
