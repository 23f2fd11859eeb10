"""Reconcile declared column names/indices with a worksheet header row."""

# Module responsibilities:
# - Index the labels of an actual header row by name and by column.
# - Bind each schema field to a concrete column for one read call, dropping unmatched fields.
# - Produce the ordered header layout for writes.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .schema import ColumnBinding, FieldMapping, Schema
from .utils.log import get_logger

logger = get_logger("resolver")

Bindings = Dict[FieldMapping, ColumnBinding]


@dataclass
class HeaderIndex:
    """Labels found in a header row. The first occurrence of a label wins."""

    name_to_index: Dict[str, int] = field(default_factory=dict)
    index_to_name: Dict[int, str] = field(default_factory=dict)


def scan_header(values: Iterable[Any]) -> HeaderIndex:
    """Index header *values*; position in the iterable is the column index."""

    header = HeaderIndex()
    for column_index, value in enumerate(values):
        if value is None:
            continue
        label = str(value).strip()
        if not label:
            continue
        header.name_to_index.setdefault(label, column_index)
        header.index_to_name.setdefault(column_index, label)
    return header


def resolve_bindings(schema: Schema, header_values: Iterable[Any]) -> Bindings:
    """Bind schema fields to the columns of an actual header row.

    A name-only field binds to the first column carrying that label. A field
    with an index binds to it only when the header has a label there, and
    borrows that label when it declares no name. Unmatched fields get no
    binding. Fields sharing a column each keep their own binding.
    """

    header = scan_header(header_values)
    bindings: Bindings = {}
    claimed: Dict[int, str] = {}
    for mapping in schema.fields:
        column_index = mapping.index
        if column_index is None and mapping.name is not None:
            column_index = header.name_to_index.get(mapping.name)
        if column_index is None or column_index not in header.index_to_name:
            logger.debug(
                "Field not found in header row; leaving it unbound",
                extra={
                    "record_type": schema.type_name,
                    "attr": mapping.attr,
                    "column_name": mapping.name,
                    "column_index": mapping.index,
                },
            )
            continue
        column_name = mapping.name or header.index_to_name[column_index]
        if column_index in claimed:
            logger.debug(
                "Fields share a header column",
                extra={
                    "record_type": schema.type_name,
                    "column_index": column_index,
                    "attrs": [claimed[column_index], mapping.attr],
                },
            )
        else:
            claimed[column_index] = mapping.attr
        bindings[mapping] = ColumnBinding(mapping, column_index, column_name)
    return bindings


def header_for(schema: Schema) -> List[ColumnBinding]:
    """Return write-side bindings ordered by column.

    Fields without a declared index are placed at their declaration ordinal;
    fields without a declared name are labelled with their attribute name so
    the sheet reads back by index.
    """

    ordered = sorted(schema.fields, key=lambda mapping: (mapping.write_index, mapping.ordinal))
    layout: List[ColumnBinding] = []
    seen: Dict[int, str] = {}
    for mapping in ordered:
        column_index = mapping.write_index
        if column_index in seen:
            logger.warning(
                "Two fields write to the same column; the later one wins",
                extra={
                    "record_type": schema.type_name,
                    "column_index": column_index,
                    "attrs": [seen[column_index], mapping.attr],
                },
            )
        seen[column_index] = mapping.attr
        layout.append(ColumnBinding(mapping, column_index, mapping.name or mapping.attr))
    return layout
