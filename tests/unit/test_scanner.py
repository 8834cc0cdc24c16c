"""
Unit tests for the record scanner.

Covers traversal order, nested and optional records, privacy and
settability rules, and error propagation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, ConfigDict, Field

from structscan import FieldInfo, Location, NotARecordError, scan, scan_all, tagged


@dataclass
class Inner:
    value: int = 0
    name: str = ""


@dataclass
class Outer:
    title: str = ""
    inner: Inner = field(default_factory=Inner)
    maybe: Inner | None = None
    _secret: str = tagged({"default": "SHOULDNOTREAD"}, default="")
    count: int = 0


@dataclass(frozen=True)
class Frozen:
    a: int = 0


@dataclass
class Holder:
    frozen: Frozen = field(default_factory=Frozen)
    locked: Inner = tagged(settable=False, default_factory=Inner)
    _hidden: Inner = field(default_factory=Inner)


class Database(BaseModel):
    host: str = Field(default="", json_schema_extra={"tags": {"env": "DB_HOST"}})
    port: int = 0


class Service(BaseModel):
    name: str = ""
    db: Database = Field(default_factory=Database)


class Pinned(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int = 0


def record_events(record: object) -> list[tuple[str, str]]:
    events: list[tuple[str, str]] = []
    scan_all(
        record,
        lambda info: events.append(("struct", info.name)),
        lambda info, loc: events.append(("field", info.name)),
    )
    return events


class TestScanRoot:
    """Tests for root validation."""

    @pytest.mark.parametrize("root", [None, Outer, 5, "text", [Outer()]])
    def test_non_record_root_rejected(self, root: object) -> None:
        visited: list[str] = []
        with pytest.raises(NotARecordError):
            scan(root, lambda info, loc: visited.append(info.name))
        assert visited == []

    def test_not_a_record_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            scan(None, lambda info, loc: None)


class TestTraversal:
    """Tests for field order and nested records."""

    def test_declaration_order_with_nested(self) -> None:
        assert record_events(Outer()) == [
            ("field", "title"),
            ("struct", "inner"),
            ("field", "value"),
            ("field", "name"),
            ("field", "inner"),
            ("field", "maybe"),
            ("field", "count"),
        ]

    def test_present_optional_record_is_traversed(self) -> None:
        events = record_events(Outer(maybe=Inner()))
        start = events.index(("struct", "maybe"))
        assert events[start : start + 4] == [
            ("struct", "maybe"),
            ("field", "value"),
            ("field", "name"),
            ("field", "maybe"),
        ]

    def test_absent_optional_record_visited_once(self) -> None:
        events = record_events(Outer(maybe=None))
        assert ("struct", "maybe") not in events
        assert events.count(("field", "maybe")) == 1

    def test_struct_callback_precedes_nested_fields(self) -> None:
        events = record_events(Outer())
        assert events.index(("struct", "inner")) < events.index(("field", "value"))

    def test_scan_skips_struct_callback(self) -> None:
        names: list[str] = []
        scan(Outer(), lambda info, loc: names.append(info.name))
        assert names == ["title", "value", "name", "inner", "maybe", "count"]


class TestVisibility:
    """Tests for private and non-settable fields."""

    def test_private_fields_never_offered(self) -> None:
        seen: list[FieldInfo] = []
        scan(Outer(), lambda info, loc: seen.append(info))
        assert all(not info.name.startswith("_") for info in seen)
        assert all(info.tag("default") != "SHOULDNOTREAD" for info in seen)

    def test_unsettable_nested_records_still_traversed(self) -> None:
        assert record_events(Holder()) == [
            ("struct", "frozen"),
            ("field", "frozen"),
            ("struct", "locked"),
            ("field", "value"),
            ("field", "name"),
        ]

    def test_frozen_model_has_no_settable_fields(self) -> None:
        assert record_events(Pinned()) == []


class TestLocations:
    """Tests for writing through field locations."""

    def test_assign_through_location(self) -> None:
        outer = Outer()

        def on_field(info: FieldInfo, loc: Location) -> None:
            if info.name == "value":
                loc.set(loc.get() + 7)
            elif info.name == "title":
                loc.set("assigned")

        scan(outer, on_field)
        assert outer.inner.value == 7
        assert outer.title == "assigned"

    def test_location_carries_declared_type(self) -> None:
        types: dict[str, object] = {}
        scan(Outer(), lambda info, loc: types.setdefault(info.name, loc.type))
        assert types["count"] is int
        assert types["maybe"] == Inner | None


class TestPydanticRecords:
    """Tests for pydantic model records."""

    def test_nested_model_traversal(self) -> None:
        assert record_events(Service()) == [
            ("field", "name"),
            ("struct", "db"),
            ("field", "host"),
            ("field", "port"),
            ("field", "db"),
        ]

    def test_tags_from_json_schema_extra(self) -> None:
        tags: dict[str, str] = {}
        scan(Service(), lambda info, loc: tags.update(info.tags))
        assert tags == {"env": "DB_HOST"}


class TestCallbackErrors:
    """Tests for error propagation from callbacks."""

    def test_field_error_stops_scan(self) -> None:
        visited: list[str] = []

        def on_field(info: FieldInfo, loc: Location) -> None:
            visited.append(info.name)
            if info.name == "value":
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            scan(Outer(), on_field)
        assert visited == ["title", "value"]

    def test_struct_error_stops_before_recursion(self) -> None:
        visited: list[str] = []

        def on_struct(info: FieldInfo) -> None:
            raise LookupError(info.name)

        with pytest.raises(LookupError, match="inner"):
            scan_all(Outer(), on_struct, lambda info, loc: visited.append(info.name))
        assert visited == ["title"]

    def test_partial_assignments_are_kept(self) -> None:
        outer = Outer()

        def on_field(info: FieldInfo, loc: Location) -> None:
            if info.name == "count":
                raise ValueError("stop")
            if info.name == "title":
                loc.set("set before failure")

        with pytest.raises(ValueError):
            scan(outer, on_field)
        assert outer.title == "set before failure"
