"""Shared pytest fixtures for structscan tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from structscan import coercion, resources


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    """Return a small UTF-8 text file."""
    path = tmp_path / "settings.txt"
    path.write_text("hello structscan\n", encoding="utf-8")
    return path


@pytest.fixture
def isolated_drivers(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Give the test its own copy of the database driver registry."""
    drivers = dict(resources._DRIVERS)
    monkeypatch.setattr(resources, "_DRIVERS", drivers)
    return drivers


@pytest.fixture
def isolated_coercers(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Give the test its own copy of the coercer registry."""
    coercers = dict(coercion._COERCERS)
    monkeypatch.setattr(coercion, "_COERCERS", coercers)
    return coercers


@pytest.fixture
def connect_calls(isolated_drivers: dict) -> list[tuple[str, str]]:
    """Register recording fake ``mysql`` and ``postgres`` drivers."""
    calls: list[tuple[str, str]] = []

    def fake(driver: str):
        def connect(dsn: str) -> object:
            calls.append((driver, dsn))
            return object()

        return connect

    resources.register_driver("mysql", fake("mysql"))
    resources.register_driver("postgres", fake("postgres"))
    return calls
