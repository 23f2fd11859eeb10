from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

import pytest

from sheetmap.config import load_schema
from sheetmap.errors import ValidationError
from sheetmap.schema import CellStyle, ValueKind


@dataclass
class Invoice:
    number: int = 0
    customer: str = ""
    issued: date | None = None


def _write(path: Path, payload: str) -> Path:
    path.write_text(payload, encoding="utf-8")
    return path


def test_load_schema_from_yaml(tmp_path: Path) -> None:
    mapping = _write(
        tmp_path / "invoice.yaml",
        "sheet:\n"
        "  name: Invoices\n"
        "  header_row: 2\n"
        "  content_row: 3\n"
        "columns:\n"
        "  - attr: number\n"
        "    kind: integer\n"
        "    index: 0\n"
        "  - attr: customer\n"
        "    name: Customer\n"
        "    styles: [bold, align_center]\n"
        "  - attr: issued\n"
        "    name: Issued\n"
        "    format: yyyy-MM-dd\n"
        "    width: 12\n",
    )
    schema = load_schema(mapping, Invoice)

    assert schema.record_type is Invoice
    assert schema.location.sheet_name == "Invoices"
    assert (schema.location.header_row_index, schema.location.content_row_index) == (2, 3)
    number, customer, issued = schema.fields
    assert number.kind is ValueKind.INTEGER and number.index == 0
    assert customer.kind is ValueKind.TEXT
    assert customer.styles == {CellStyle.BOLD, CellStyle.ALIGN_CENTER}
    assert issued.kind is ValueKind.DATE and issued.value_format == "yyyy-MM-dd"
    assert issued.width == 12 and issued.ordinal == 2


def test_sheet_section_is_optional(tmp_path: Path) -> None:
    mapping = _write(tmp_path / "m.yaml", "columns:\n  - attr: customer\n    name: Customer\n")
    schema = load_schema(mapping, Invoice)
    assert schema.location is None
    assert [f.attr for f in schema.fields] == ["customer"]


@pytest.mark.parametrize(
    "payload",
    [
        "- just\n- a list\n",
        "sheet:\n  header_row: 0\n",
        "sheet:\n  name: S\n  header_row: -1\n",
        "columns:\n  - name: NoAttr\n",
        "columns:\n  - attr: customer\n    colour: red\n",
        "columns:\n  - attr: customer\n    name: C\n    kind: money\n",
        "columns: [unclosed\n",
    ],
)
def test_invalid_mapping_is_rejected(tmp_path: Path, payload: str) -> None:
    mapping = _write(tmp_path / "bad.yaml", payload)
    with pytest.raises(ValidationError):
        load_schema(mapping, Invoice)


def test_missing_mapping_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_schema(tmp_path / "absent.yaml", Invoice)
