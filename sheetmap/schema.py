"""Data model shared by the reader, writer and schema registry."""

# Module responsibilities:
# - Define the field-to-column mapping declarations and the per-type Schema container.
# - Define sheet location metadata and per-call column bindings.
# - Keep all containers immutable so schemas can be cached and shared.

from __future__ import annotations

import enum
import types
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from operator import attrgetter
from typing import Any, Callable, FrozenSet, Optional, Tuple, Union, get_args, get_origin

from .errors import ValidationError

Getter = Callable[[Any], Any]
Setter = Callable[[Any, Any], None]


class ValueKind(str, enum.Enum):
    """Semantic type a mapped field is coerced to and from."""

    TEXT = "text"
    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"

    @property
    def is_temporal(self) -> bool:
        return self in (ValueKind.DATETIME, ValueKind.DATE)

    @property
    def is_numeric(self) -> bool:
        return self in (ValueKind.INTEGER, ValueKind.LONG, ValueKind.DOUBLE)

    @classmethod
    def parse(cls, label: str) -> "ValueKind":
        """Return the kind for a config label such as ``"long"`` or ``"str"``."""

        key = label.strip().lower()
        if key in _KIND_ALIASES:
            return _KIND_ALIASES[key]
        try:
            return cls(key)
        except ValueError as exc:
            raise ValidationError(f"Unknown value kind: {label!r}") from exc

    @classmethod
    def from_annotation(cls, annotation: Any) -> "ValueKind":
        """Infer the kind from a resolved type hint, unwrapping ``Optional``."""

        origin = get_origin(annotation)
        if origin is Union or origin is getattr(types, "UnionType", None):
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(members) == 1:
                return cls.from_annotation(members[0])
        for python_type, kind in _TYPE_KINDS:
            if annotation is python_type:
                return kind
        raise ValidationError(f"Cannot infer a value kind from annotation {annotation!r}")


_KIND_ALIASES = {
    "str": ValueKind.TEXT,
    "string": ValueKind.TEXT,
    "int": ValueKind.INTEGER,
    "float": ValueKind.DOUBLE,
    "bool": ValueKind.BOOLEAN,
}

_TYPE_KINDS: Tuple[Tuple[type, ValueKind], ...] = (
    (bool, ValueKind.BOOLEAN),
    (int, ValueKind.LONG),
    (float, ValueKind.DOUBLE),
    (str, ValueKind.TEXT),
    (datetime, ValueKind.DATETIME),
    (date, ValueKind.DATE),
)


class CellStyle(str, enum.Enum):
    """Display style tags that may be attached to a mapped column."""

    DEFAULT = "default"
    BOLD = "bold"
    ITALIC = "italic"
    WRAP_TEXT = "wrap_text"
    ALIGN_LEFT = "align_left"
    ALIGN_CENTER = "align_center"
    ALIGN_RIGHT = "align_right"
    BORDER = "border"


def _setter_for(attr: str) -> Setter:
    def _set(record: Any, value: Any) -> None:
        setattr(record, attr, value)

    return _set


@dataclass(frozen=True)
class FieldMapping:
    """Mapping declaration for one field of a record type.

    ``index`` is zero-based. A blank ``name`` and a negative ``index`` both
    count as "not declared". ``ordinal`` is the field's declaration position,
    used as the write column when no index is declared.
    """

    attr: str
    kind: ValueKind
    name: Optional[str] = None
    index: Optional[int] = None
    ordinal: int = 0
    width: Optional[int] = None
    value_format: Optional[str] = None
    styles: FrozenSet[CellStyle] = frozenset()
    getter: Optional[Getter] = field(default=None, compare=False, repr=False)
    setter: Optional[Setter] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        name = self.name.strip() if self.name else None
        object.__setattr__(self, "name", name or None)
        if self.index is not None and self.index < 0:
            object.__setattr__(self, "index", None)
        if self.width is not None and self.width <= 0:
            object.__setattr__(self, "width", None)
        fmt = self.value_format.strip() if self.value_format else None
        object.__setattr__(self, "value_format", fmt or None)
        object.__setattr__(self, "styles", frozenset(self.styles) - {CellStyle.DEFAULT})
        if self.getter is None:
            object.__setattr__(self, "getter", attrgetter(self.attr))
        if self.setter is None:
            object.__setattr__(self, "setter", _setter_for(self.attr))

    @property
    def is_mapped(self) -> bool:
        return self.name is not None or self.index is not None

    @property
    def write_index(self) -> int:
        return self.index if self.index is not None else self.ordinal


@dataclass(frozen=True)
class SheetLocation:
    """Where a record type lives inside a workbook (all indices zero-based)."""

    sheet_name: Optional[str] = None
    sheet_index: Optional[int] = None
    header_row_index: int = 0
    content_row_index: int = 1

    def __post_init__(self) -> None:
        name = self.sheet_name.strip() if self.sheet_name else None
        object.__setattr__(self, "sheet_name", name or None)
        if self.sheet_index is not None and self.sheet_index < 0:
            object.__setattr__(self, "sheet_index", None)
        if self.sheet_name is None and self.sheet_index is None:
            raise ValidationError("Sheet location requires a sheet name or a sheet index")
        if self.header_row_index < 0 or self.content_row_index < 0:
            raise ValidationError(
                f"Row indices must be non-negative (header={self.header_row_index}, "
                f"content={self.content_row_index})"
            )

    def with_content_row(self, content_row_index: Optional[int]) -> "SheetLocation":
        if content_row_index is None:
            return self
        return replace(self, content_row_index=content_row_index)

    def describe(self) -> str:
        target = repr(self.sheet_name) if self.sheet_name is not None else f"#{self.sheet_index}"
        return f"sheet {target} (header row {self.header_row_index}, content row {self.content_row_index})"


@dataclass(frozen=True)
class Schema:
    """Ordered field mappings for one record type."""

    record_type: type
    fields: Tuple[FieldMapping, ...]
    location: Optional[SheetLocation] = None
    factory: Optional[Callable[[], Any]] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.factory is None:
            object.__setattr__(self, "factory", self.record_type)

    @property
    def type_name(self) -> str:
        return getattr(self.record_type, "__qualname__", repr(self.record_type))

    def require_location(self, override: Optional[SheetLocation] = None) -> SheetLocation:
        """Return *override* or the declared location, raising when neither exists."""

        location = override or self.location
        if location is None:
            raise ValidationError(f"{self.type_name} has no sheet location declaration")
        return location

    def new_record(self) -> Any:
        return self.factory()

    def field_for(self, attr: str) -> FieldMapping:
        for mapping in self.fields:
            if mapping.attr == attr:
                return mapping
        raise KeyError(attr)


@dataclass(frozen=True)
class ColumnBinding:
    """Concrete column a field is read from or written to during one call."""

    field: FieldMapping
    column_index: int
    column_name: str
