"""Conversion between raw cell content and declared field kinds."""

# Module responsibilities:
# - Classify openpyxl cells and extract their intermediate raw value.
# - Coerce raw values into a field's ValueKind, reporting failures as data instead of raising.
# - Convert typed field values into cell values plus an optional number format.

from __future__ import annotations

import enum
import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple, Optional

from openpyxl.cell.cell import Cell
from openpyxl.utils.datetime import from_excel

from . import dateformat
from .errors import ConversionError
from .schema import ValueKind

_INT32 = (-(2**31), 2**31 - 1)
_INT64 = (-(2**63), 2**63 - 1)

_TRUE_TOKENS = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_TOKENS = frozenset({"false", "f", "no", "n", "0"})


class CellKind(enum.Enum):
    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    ERROR = "error"
    EMPTY = "empty"


class Coerced(NamedTuple):
    """Outcome of a read-side coercion; ``error`` is set when ``ok`` is False."""

    value: Any
    ok: bool
    error: Optional[ConversionError] = None


class CellPayload(NamedTuple):
    """Value to store in a cell plus the Excel number format to apply, if any."""

    value: Any
    number_format: Optional[str] = None


def cell_kind(cell: Optional[Cell]) -> CellKind:
    """Classify *cell* the way the workbook stores it."""

    if cell is None or cell.value is None:
        return CellKind.EMPTY
    data_type = getattr(cell, "data_type", None)
    if data_type == "f":
        return CellKind.FORMULA
    if data_type == "e":
        return CellKind.ERROR
    if data_type == "b" or isinstance(cell.value, bool):
        return CellKind.BOOLEAN
    if isinstance(cell.value, str):
        return CellKind.TEXT
    return CellKind.NUMERIC


def cell_to_raw(cell: Optional[Cell]) -> Any:
    """Return the intermediate value held by *cell*.

    Workbooks are opened with ``data_only=True`` so a formula cell surfaces
    its cached result under that result's own kind. A cell still reported as
    a formula has no cached result and reads as empty. Duration cells keep
    their ``timedelta`` value; only text fields can hold one.
    """

    kind = cell_kind(cell)
    if kind in (CellKind.EMPTY, CellKind.ERROR, CellKind.FORMULA):
        return None
    value = cell.value
    if kind is CellKind.BOOLEAN:
        return bool(value)
    if kind is CellKind.TEXT:
        return value
    if isinstance(value, (datetime, date, time, timedelta)):
        return value
    if cell.is_date and isinstance(value, (int, float)):
        return from_excel(value)
    return value


def _text_of(raw: Any) -> str:
    return str(raw).strip()


def _parse_integral(text: str, bounds: tuple[int, int]) -> int:
    if "_" in text:
        raise ValueError(f"digit separators are not allowed: {text!r}")
    try:
        number = int(text)
    except ValueError:
        try:
            decimal = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {text!r}") from exc
        if not decimal.is_finite() or decimal != decimal.to_integral_value():
            raise ValueError(f"not an integral number: {text!r}")
        number = int(decimal)
    low, high = bounds
    if not low <= number <= high:
        raise ValueError(f"{number} is out of range [{low}, {high}]")
    return number


def _parse_double(text: str) -> float:
    if "_" in text:
        raise ValueError(f"digit separators are not allowed: {text!r}")
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {text!r}")
    return number


def _parse_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    token = _text_of(raw).lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _to_datetime(raw: Any, value_format: Optional[str]) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    return dateformat.parse_value(_text_of(raw), value_format)


def _convert(raw: Any, kind: ValueKind, value_format: Optional[str]) -> Any:
    if kind is ValueKind.TEXT:
        if isinstance(raw, (datetime, date)):
            return dateformat.format_value(raw, value_format)
        return _text_of(raw)
    if kind is ValueKind.INTEGER:
        return _parse_integral(_text_of(raw), _INT32)
    if kind is ValueKind.LONG:
        return _parse_integral(_text_of(raw), _INT64)
    if kind is ValueKind.DOUBLE:
        return _parse_double(_text_of(raw))
    if kind is ValueKind.BOOLEAN:
        return _parse_boolean(raw)
    if kind is ValueKind.DATETIME:
        return _to_datetime(raw, value_format)
    if kind is ValueKind.DATE:
        return _to_datetime(raw, value_format).date()
    raise ValueError(f"unsupported kind {kind!r}")


def coerce_to_field(raw: Any, kind: ValueKind, value_format: Optional[str] = None) -> Coerced:
    """Coerce a raw cell value into *kind*.

    ``None`` (and blank text for non-text kinds) is a successful coercion to
    ``None``; callers treat it as "keep the default".
    """

    if raw is None:
        return Coerced(None, True)
    if kind is not ValueKind.TEXT and isinstance(raw, str) and not raw.strip():
        return Coerced(None, True)
    try:
        return Coerced(_convert(raw, kind, value_format), True)
    except (ValueError, TypeError, OverflowError) as exc:
        error = ConversionError(
            f"Cannot convert {raw!r} to {kind.value}: {exc}", raw=raw, kind=kind
        )
        return Coerced(None, False, error)


def coerce_to_cell(value: Any, value_format: Optional[str] = None) -> CellPayload:
    """Convert a field value into a cell value and its display format.

    Temporal values translate *value_format* as a date pattern; numeric values
    use it verbatim as an Excel number format.
    """

    if value is None:
        return CellPayload("")
    if isinstance(value, str):
        return CellPayload(value)
    if isinstance(value, bool):
        return CellPayload(value)
    if isinstance(value, (int, float, Decimal)):
        return CellPayload(value, value_format)
    if isinstance(value, (datetime, date, time)):
        number_format = dateformat.to_excel_format(value_format) if value_format else None
        return CellPayload(value, number_format)
    return CellPayload(str(value))
