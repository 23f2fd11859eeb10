"""Populate record instances from worksheet rows."""

# Module responsibilities:
# - Apply one call's column bindings to a row of cells.
# - Leave fields at their defaults when a cell cannot be coerced, recording why.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from openpyxl.cell.cell import Cell

from .coercion import cell_to_raw, coerce_to_field
from .schema import ColumnBinding, Schema
from .utils.log import get_logger

logger = get_logger("decoder")


@dataclass(frozen=True)
class SkippedField:
    """A field left at its default because its cell could not be coerced."""

    attr: str
    row_index: int
    column_index: int
    raw: Any
    reason: str


@dataclass
class DecodedRow:
    record: Any
    skipped: List[SkippedField] = field(default_factory=list)


class RowDecoder:
    """Decode rows for one read call; bindings are never reused across calls."""

    def __init__(self, schema: Schema, bindings: Iterable[ColumnBinding]) -> None:
        self.schema = schema
        self.bindings = tuple(bindings)

    def decode(self, cells: Sequence[Optional[Cell]], row_index: int) -> DecodedRow:
        """Build a new record from *cells* (indexed by zero-based column)."""

        record = self.schema.new_record()
        decoded = DecodedRow(record)
        for binding in self.bindings:
            mapping = binding.field
            column_index = binding.column_index
            cell = cells[column_index] if column_index < len(cells) else None
            raw = cell_to_raw(cell)
            outcome = coerce_to_field(raw, mapping.kind, mapping.value_format)
            if not outcome.ok:
                skipped = SkippedField(
                    attr=mapping.attr,
                    row_index=row_index,
                    column_index=column_index,
                    raw=raw,
                    reason=str(outcome.error),
                )
                decoded.skipped.append(skipped)
                logger.debug(
                    "Cell not convertible; field keeps its default",
                    extra={
                        "record_type": self.schema.type_name,
                        "attr": mapping.attr,
                        "row": row_index,
                        "column": column_index,
                        "reason": skipped.reason,
                    },
                )
                continue
            if outcome.value is None:
                continue
            mapping.setter(record, outcome.value)
        return decoded
