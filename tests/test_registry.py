from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

import pytest

from sheetmap.errors import ValidationError
from sheetmap.registry import SchemaBuilder, column, schema_from_dataclass, sheet
from sheetmap.schema import CellStyle, SheetLocation, ValueKind


@sheet("Members", header_row=2, content_row=3)
@dataclass
class Member:
    member_id: int = column(index=0, default=0)
    note: str = ""
    name: str = column("Name", default="", styles=("bold", CellStyle.WRAP_TEXT))
    joined: Optional[date] = column("Joined", value_format="yyyy-MM-dd", width=14, default=None)
    score: float = column(kind="double", index=-1, default=0.0)


@dataclass
class Unplaced:
    a: str = column(default="")
    b: str = column(default="")


@sheet(index=0)
@dataclass
class Bare:
    a: str = ""


@dataclass
class Undeclared:
    a: str = ""


@dataclass
class Exotic:
    tags: list = column("Tags", default_factory=list)


def test_dataclass_schema_fields_and_ordinals() -> None:
    schema = schema_from_dataclass(Member)
    assert [f.attr for f in schema.fields] == ["member_id", "name", "joined"]
    member_id, name, joined = schema.fields
    assert member_id.kind is ValueKind.LONG and member_id.index == 0 and member_id.name is None
    assert name.ordinal == 2 and name.styles == {CellStyle.BOLD, CellStyle.WRAP_TEXT}
    assert joined.kind is ValueKind.DATE
    assert joined.value_format == "yyyy-MM-dd" and joined.width == 14
    assert joined.write_index == 3
    assert schema.location == SheetLocation("Members", None, 2, 3)


def test_unmapped_fields_give_an_empty_schema_without_error(registry) -> None:
    schema = registry.extract(Unplaced)
    assert schema.fields == ()
    assert schema.location is None
    with pytest.raises(ValidationError):
        schema.require_location()


def test_sheet_only_declaration_is_accepted() -> None:
    schema = schema_from_dataclass(Bare)
    assert schema.fields == ()
    assert schema.require_location().sheet_index == 0


def test_types_without_any_declaration_are_rejected(registry) -> None:
    with pytest.raises(ValidationError):
        registry.extract(Undeclared)
    with pytest.raises(ValidationError):
        registry.extract(object)


def test_uninferable_kind_is_rejected() -> None:
    with pytest.raises(ValidationError, match="tags"):
        schema_from_dataclass(Exotic)


def test_sheet_location_requires_name_or_index() -> None:
    with pytest.raises(ValidationError):
        SheetLocation()
    with pytest.raises(ValidationError):
        SheetLocation("  ", -1)
    with pytest.raises(ValidationError):
        SheetLocation("People", header_row_index=-1)
    with pytest.raises(ValidationError):
        sheet()


def test_override_location_takes_precedence() -> None:
    schema = schema_from_dataclass(Member)
    override = SheetLocation(sheet_index=1)
    assert schema.require_location(override) is override


def test_registry_caches_and_prefers_registered_schemas(registry) -> None:
    first = registry.extract(Member)
    assert registry.extract(Member) is first
    assert Member in registry

    custom = SchemaBuilder(Member).sheet("Custom").column("name", name="Who").build()
    registry.register(custom)
    assert registry.extract(Member) is custom

    registry.clear()
    assert Member not in registry


def test_builder_infers_kinds_from_type_hints() -> None:
    @dataclass
    class Local:
        when: datetime = datetime(2024, 1, 1)
        flag: bool = False

    schema = SchemaBuilder(Local).column("when", index=0).column("flag", index=1).build()
    assert [f.kind for f in schema.fields] == [ValueKind.DATETIME, ValueKind.BOOLEAN]


def test_builder_rejects_unknown_style_and_kind() -> None:
    with pytest.raises(ValidationError):
        SchemaBuilder(Member).column("name", name="Name", styles=["sparkly"])
    with pytest.raises(ValidationError):
        SchemaBuilder(Member).column("name", "currency", name="Name")


def test_custom_accessors_are_used() -> None:
    store = {}
    schema = (
        SchemaBuilder(dict, factory=dict)
        .column(
            "total",
            ValueKind.DOUBLE,
            name="Total",
            getter=lambda record: record["total"],
            setter=lambda record, value: record.__setitem__("total", value),
        )
        .build()
    )
    mapping = schema.fields[0]
    mapping.setter(store, 1.5)
    assert mapping.getter(store) == 1.5
    assert schema.new_record() == {}
