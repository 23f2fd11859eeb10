from __future__ import annotations

import itertools

from sheetmap.registry import SchemaBuilder
from sheetmap.resolver import header_for, resolve_bindings, scan_header
from sheetmap.schema import ValueKind


class Row:
    pass


def _summary(bindings) -> dict:
    return {mapping.attr: (b.column_index, b.column_name) for mapping, b in bindings.items()}


def test_scan_header_trims_and_keeps_first_occurrence() -> None:
    header = scan_header([" Name ", None, "", "Id", "Name", 3])
    assert header.name_to_index == {"Name": 0, "Id": 3, "3": 5}
    assert header.index_to_name == {0: "Name", 3: "Id", 4: "Name", 5: "3"}


def test_name_and_index_fields_are_bound() -> None:
    schema = (
        SchemaBuilder(Row)
        .column("id", ValueKind.LONG, index=1)
        .column("name", ValueKind.TEXT, name="Name")
        .build()
    )
    bindings = resolve_bindings(schema, ["Name", "Id"])
    assert _summary(bindings) == {"id": (1, "Id"), "name": (0, "Name")}


def test_resolution_ignores_declaration_order() -> None:
    columns = [
        ("id", dict(index=1)),
        ("name", dict(name="Name")),
        ("city", dict(name="City", index=2)),
        ("ghost", dict(name="Missing")),
    ]
    header = ["Name", "Id", "City"]
    seen = []
    for order in itertools.permutations(columns):
        builder = SchemaBuilder(Row)
        for attr, kwargs in order:
            builder.column(attr, ValueKind.TEXT, **kwargs)
        seen.append(_summary(resolve_bindings(builder.build(), header)))
    assert all(summary == seen[0] for summary in seen)
    assert seen[0] == {"id": (1, "Id"), "name": (0, "Name"), "city": (2, "City")}


def test_name_only_field_follows_its_label() -> None:
    schema = SchemaBuilder(Row).column("name", ValueKind.TEXT, name="Name").build()
    assert _summary(resolve_bindings(schema, ["Name", "Id"])) == {"name": (0, "Name")}
    assert _summary(resolve_bindings(schema, ["Id", "Age", "Name"])) == {"name": (2, "Name")}


def test_index_without_header_label_is_dropped() -> None:
    schema = (
        SchemaBuilder(Row)
        .column("a", ValueKind.TEXT, index=0)
        .column("b", ValueKind.TEXT, index=1)
        .column("c", ValueKind.TEXT, index=7)
        .build()
    )
    assert _summary(resolve_bindings(schema, ["A", "  "])) == {"a": (0, "A")}


def test_declared_index_wins_over_declared_name() -> None:
    schema = SchemaBuilder(Row).column("x", ValueKind.TEXT, name="Label", index=1).build()
    assert _summary(resolve_bindings(schema, ["Label", "Other"])) == {"x": (1, "Label")}


def test_duplicate_labels_bind_both_fields_to_first_occurrence() -> None:
    schema = (
        SchemaBuilder(Row)
        .column("first", ValueKind.TEXT, name="X")
        .column("second", ValueKind.TEXT, name="X")
        .build()
    )
    bindings = resolve_bindings(schema, ["X", "Y", "X"])
    assert _summary(bindings) == {"first": (0, "X"), "second": (0, "X")}


def test_header_for_orders_by_index_then_ordinal() -> None:
    schema = (
        SchemaBuilder(Row)
        .column("joined", ValueKind.DATE, index=3)
        .column("name", ValueKind.TEXT, name="Name")
        .skip("internal")
        .column("id", ValueKind.LONG, index=0)
        .build()
    )
    layout = header_for(schema)
    assert [(b.column_index, b.column_name) for b in layout] == [
        (0, "id"),
        (1, "Name"),
        (3, "joined"),
    ]
