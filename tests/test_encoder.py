from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from openpyxl import Workbook

from sheetmap.encoder import MAX_AUTO_WIDTH, RowEncoder, StyleContext, autosize_columns
from sheetmap.registry import SchemaBuilder
from sheetmap.resolver import header_for
from sheetmap.schema import CellStyle, ValueKind


@dataclass
class Line:
    sku: str = ""
    qty: int = 0
    price: float = 0.0
    shipped: date | None = None


def _encoder():
    schema = (
        SchemaBuilder(Line)
        .column("sku", name="SKU", styles=[CellStyle.BOLD, CellStyle.BORDER])
        .column("qty", name="Qty", width=6)
        .column("price", name="Price", value_format="0.00", styles=[CellStyle.ALIGN_RIGHT])
        .column("shipped", name="Shipped", value_format="dd/MM/yyyy")
        .build()
    )
    wb = Workbook()
    ws = wb.active
    styles = StyleContext(wb)
    return wb, ws, RowEncoder(ws, header_for(schema), styles), styles


def test_header_and_rows_are_written_at_zero_based_positions() -> None:
    _, ws, encoder, _ = _encoder()
    encoder.write_header(1)
    encoder.encode(Line("A-1", 2, 9.5, date(2024, 1, 5)), 2)
    encoder.encode(Line("B-2", 1, 3.0, None), 3)

    assert [c.value for c in ws[2]] == ["SKU", "Qty", "Price", "Shipped"]
    assert ws["A3"].value == "A-1" and ws["B3"].value == 2
    assert ws["C3"].number_format == "0.00"
    assert ws["D3"].number_format == "dd/mm/yyyy"
    assert ws["D4"].value in ("", None)


def test_style_tags_apply_to_header_and_data_cells() -> None:
    _, ws, encoder, _ = _encoder()
    encoder.write_header(0)
    encoder.encode(Line("A-1", 2, 9.5, None), 1)

    for ref in ("A1", "A2"):
        assert ws[ref].font.b is True
        assert ws[ref].border.left.style == "thin"
    assert ws["C2"].alignment.horizontal == "right"
    assert ws["B2"].font.b is not True


def test_style_objects_are_cached_per_tag_set() -> None:
    wb = Workbook()
    ws = wb.active
    styles = StyleContext(wb)
    tags = frozenset({CellStyle.ITALIC, CellStyle.WRAP_TEXT})
    styles.apply(ws["A1"], tags)
    styles.apply(ws["A2"], tags)
    assert styles._objects(tags) is styles._objects(frozenset(tags))
    assert ws["A2"].font.i is True and ws["A2"].alignment.wrap_text is True


def test_declared_width_and_auto_size() -> None:
    _, ws, encoder, _ = _encoder()
    encoder.write_header(0)
    encoder.encode(Line("LONG-SKU-IDENTIFIER", 2, 9.5, date(2024, 1, 5)), 1)
    encoder.apply_widths()

    assert ws.column_dimensions["B"].width == 6
    assert ws.column_dimensions["A"].width == len("LONG-SKU-IDENTIFIER") + 2
    assert ws.column_dimensions["C"].width == 8


def test_auto_size_is_bounded() -> None:
    ws = Workbook().active
    ws["A1"] = "x" * 200
    autosize_columns(ws, [0])
    assert ws.column_dimensions["A"].width == MAX_AUTO_WIDTH


def test_formula_and_error_lookalike_text_stays_literal() -> None:
    _, ws, encoder, _ = _encoder()
    encoder.encode(Line("=SUM(A1:A9)", 1, 1.0, None), 0)
    encoder.encode(Line("#DIV/0!", 1, 1.0, None), 1)

    assert ws["A1"].data_type == "s" and ws["A1"].value == "=SUM(A1:A9)"
    assert ws["A2"].data_type == "s" and ws["A2"].value == "#DIV/0!"
    assert ws["B1"].data_type == "n"
