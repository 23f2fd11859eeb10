"""Write record instances and their header into a worksheet."""

# Module responsibilities:
# - Cache style objects per workbook so identical style tag sets share one definition.
# - Write the generated header row once, then one row per record.
# - Apply declared widths, or approximate auto-sizing from rendered content.

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import get_column_letter
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .coercion import coerce_to_cell
from .schema import CellStyle, ColumnBinding
from .utils.log import get_logger

logger = get_logger("encoder")

MIN_AUTO_WIDTH = 8
MAX_AUTO_WIDTH = 60

_StyleObjects = Tuple[Optional[Font], Optional[Alignment], Optional[Border]]


class StyleContext:
    """Workbook-scoped cache of style objects keyed by style tag set.

    Number formats are registered through the workbook's own format list when
    assigned to a cell, which de-duplicates them across columns.
    """

    _ALIGNMENTS = {
        CellStyle.ALIGN_LEFT: "left",
        CellStyle.ALIGN_CENTER: "center",
        CellStyle.ALIGN_RIGHT: "right",
    }

    def __init__(self, workbook: Workbook) -> None:
        self.workbook = workbook
        self._cache: Dict[FrozenSet[CellStyle], _StyleObjects] = {}

    def _objects(self, styles: FrozenSet[CellStyle]) -> _StyleObjects:
        cached = self._cache.get(styles)
        if cached is not None:
            return cached
        font = None
        if CellStyle.BOLD in styles or CellStyle.ITALIC in styles:
            font = Font(bold=CellStyle.BOLD in styles, italic=CellStyle.ITALIC in styles)
        horizontal = next(
            (value for tag, value in self._ALIGNMENTS.items() if tag in styles), None
        )
        alignment = None
        if horizontal or CellStyle.WRAP_TEXT in styles:
            alignment = Alignment(horizontal=horizontal, wrap_text=CellStyle.WRAP_TEXT in styles)
        border = None
        if CellStyle.BORDER in styles:
            side = Side(style="thin")
            border = Border(left=side, right=side, top=side, bottom=side)
        objects = (font, alignment, border)
        self._cache[styles] = objects
        return objects

    def apply(
        self,
        cell: Cell,
        styles: FrozenSet[CellStyle],
        number_format: Optional[str] = None,
    ) -> None:
        if number_format:
            cell.number_format = number_format
        if not styles:
            return
        font, alignment, border = self._objects(styles)
        if font is not None:
            cell.font = font
        if alignment is not None:
            cell.alignment = alignment
        if border is not None:
            cell.border = border


def _rendered_length(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, datetime):
        return len(value.isoformat(sep=" ", timespec="seconds"))
    if isinstance(value, (date, time)):
        return len(value.isoformat())
    return max((len(line) for line in str(value).splitlines()), default=0)


def autosize_columns(sheet: Worksheet, column_indices: Iterable[int]) -> None:
    """Approximate spreadsheet auto-fit from the longest rendered value per column."""

    for column_index in column_indices:
        longest = 0
        for (value,) in sheet.iter_rows(
            min_col=column_index + 1, max_col=column_index + 1, values_only=True
        ):
            longest = max(longest, _rendered_length(value))
        width = min(max(longest + 2, MIN_AUTO_WIDTH), MAX_AUTO_WIDTH)
        sheet.column_dimensions[get_column_letter(column_index + 1)].width = width


def _store(cell: Cell, value: Any) -> None:
    """Assign *value*, keeping text literal even when it looks like a formula or error code."""

    cell.value = value
    if isinstance(value, str):
        cell.data_type = "s"


class RowEncoder:
    """Write the header and record rows for one write call."""

    def __init__(self, sheet: Worksheet, layout: Iterable[ColumnBinding], styles: StyleContext) -> None:
        self.sheet = sheet
        self.layout = tuple(layout)
        self.styles = styles

    def write_header(self, row_index: int) -> None:
        for binding in self.layout:
            cell = self.sheet.cell(row=row_index + 1, column=binding.column_index + 1)
            _store(cell, binding.column_name)
            self.styles.apply(cell, binding.field.styles)

    def encode(self, record: Any, row_index: int) -> None:
        """Write *record* into zero-based *row_index*."""

        for binding in self.layout:
            mapping = binding.field
            payload = coerce_to_cell(mapping.getter(record), mapping.value_format)
            cell = self.sheet.cell(row=row_index + 1, column=binding.column_index + 1)
            _store(cell, payload.value)
            self.styles.apply(cell, mapping.styles, payload.number_format)

    def apply_widths(self) -> None:
        """Set declared column widths; auto-size the rest."""

        auto = []
        for binding in self.layout:
            width = binding.field.width
            if width:
                letter = get_column_letter(binding.column_index + 1)
                self.sheet.column_dimensions[letter].width = width
            else:
                auto.append(binding.column_index)
        if auto:
            autosize_columns(self.sheet, auto)
        logger.debug(
            "Column widths applied",
            extra={"sheet": self.sheet.title, "auto_sized": auto},
        )
