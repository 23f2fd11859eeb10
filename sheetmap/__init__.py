"""`sheetmap` maps xlsx worksheet rows to typed records and back."""

# Module responsibilities:
# - Re-export the mapper entry points, schema declaration helpers and errors
#   so consumers have a stable API surface.

from __future__ import annotations

from .coercion import CellKind, Coerced, coerce_to_cell, coerce_to_field
from .config import load_schema
from .decoder import SkippedField
from .errors import (
    ContainerError,
    ConversionError,
    SheetMapError,
    SheetNotFoundError,
    ValidationError,
)
from .mapper import Mapper, ReadResult, read_all, write_all
from .registry import SchemaBuilder, SchemaRegistry, column, default_registry, sheet
from .schema import CellStyle, ColumnBinding, FieldMapping, Schema, SheetLocation, ValueKind

__all__ = [
    "Mapper",
    "ReadResult",
    "read_all",
    "write_all",
    "SchemaBuilder",
    "SchemaRegistry",
    "default_registry",
    "column",
    "sheet",
    "load_schema",
    "CellStyle",
    "ColumnBinding",
    "FieldMapping",
    "Schema",
    "SheetLocation",
    "ValueKind",
    "CellKind",
    "Coerced",
    "coerce_to_cell",
    "coerce_to_field",
    "SkippedField",
    "SheetMapError",
    "ValidationError",
    "SheetNotFoundError",
    "ContainerError",
    "ConversionError",
]

__version__ = "0.1.0"
