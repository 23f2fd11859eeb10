"""Schema declaration and per-type schema cache.

Two declaration routes produce the same immutable :class:`Schema`:

* the explicit :class:`SchemaBuilder`::

      schema = (
          SchemaBuilder(Person)
          .sheet("People")
          .column("id", ValueKind.LONG, index=0)
          .column("name", name="Name")
          .build()
      )

* dataclass metadata, via the :func:`sheet` decorator and :func:`column`
  field helper::

      @sheet("People")
      @dataclass
      class Person:
          id: int = column(index=0, default=0)
          name: str = column("Name", default="")

Either schema can be handed to :meth:`SchemaRegistry.register`; dataclass
declarations are also picked up lazily by :meth:`SchemaRegistry.extract`.
"""

# Module responsibilities:
# - Build FieldMapping sequences with stable declaration ordinals.
# - Infer value kinds from dataclass type hints when a kind is not given.
# - Cache one Schema per record type for the lifetime of the process.

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .errors import ValidationError
from .schema import CellStyle, FieldMapping, Getter, Schema, Setter, SheetLocation, ValueKind
from .utils.log import get_logger

logger = get_logger("registry")

COLUMN_METADATA_KEY = "sheetmap"
LOCATION_ATTR = "__sheetmap_location__"

KindLike = Union[ValueKind, str, None]
StyleLike = Union[CellStyle, str]


@dataclass(frozen=True)
class ColumnSpec:
    """Column declaration stored in a dataclass field's metadata."""

    name: Optional[str] = None
    index: Optional[int] = None
    kind: KindLike = None
    width: Optional[int] = None
    value_format: Optional[str] = None
    styles: tuple = ()


def _as_kind(kind: KindLike) -> Optional[ValueKind]:
    if kind is None or isinstance(kind, ValueKind):
        return kind
    return ValueKind.parse(kind)


def _as_styles(styles: Iterable[StyleLike]) -> frozenset:
    resolved = set()
    for style in styles:
        if isinstance(style, CellStyle):
            resolved.add(style)
            continue
        try:
            resolved.add(CellStyle(str(style).strip().lower()))
        except ValueError as exc:
            raise ValidationError(f"Unknown cell style: {style!r}") from exc
    return frozenset(resolved)


def _declares_column(name: Optional[str], index: Optional[int]) -> bool:
    return bool(name and name.strip()) or (index is not None and index >= 0)


class SchemaBuilder:
    """Fluent builder assembling a :class:`Schema` for one record type."""

    def __init__(self, record_type: type, factory: Optional[Callable[[], Any]] = None) -> None:
        self._record_type = record_type
        self._factory = factory
        self._location: Optional[SheetLocation] = None
        self._fields: List[FieldMapping] = []
        self._ordinal = 0
        self._hints: Optional[Dict[str, Any]] = None

    def sheet(
        self,
        name: Optional[str] = None,
        index: Optional[int] = None,
        *,
        header_row: int = 0,
        content_row: int = 1,
    ) -> "SchemaBuilder":
        self._location = SheetLocation(name, index, header_row, content_row)
        return self

    def location(self, location: Optional[SheetLocation]) -> "SchemaBuilder":
        self._location = location
        return self

    def column(
        self,
        attr: str,
        kind: KindLike = None,
        *,
        name: Optional[str] = None,
        index: Optional[int] = None,
        width: Optional[int] = None,
        value_format: Optional[str] = None,
        styles: Iterable[StyleLike] = (),
        getter: Optional[Getter] = None,
        setter: Optional[Setter] = None,
    ) -> "SchemaBuilder":
        """Declare the next field; fields with neither name nor index are left unmapped."""

        ordinal = self._ordinal
        self._ordinal += 1
        if not _declares_column(name, index):
            logger.debug(
                "Field has no column name or index; leaving it unmapped",
                extra={"record_type": self._type_name, "attr": attr},
            )
            return self
        resolved_kind = _as_kind(kind) or self._infer_kind(attr)
        self._fields.append(
            FieldMapping(
                attr=attr,
                kind=resolved_kind,
                name=name,
                index=index,
                ordinal=ordinal,
                width=width,
                value_format=value_format,
                styles=_as_styles(styles),
                getter=getter,
                setter=setter,
            )
        )
        return self

    def skip(self, attr: str) -> "SchemaBuilder":
        """Reserve the next ordinal for an attribute that is not mapped."""

        self._ordinal += 1
        return self

    def build(self) -> Schema:
        return Schema(
            record_type=self._record_type,
            fields=tuple(self._fields),
            location=self._location,
            factory=self._factory,
        )

    @property
    def _type_name(self) -> str:
        return getattr(self._record_type, "__qualname__", repr(self._record_type))

    def _infer_kind(self, attr: str) -> ValueKind:
        if self._hints is None:
            try:
                self._hints = typing.get_type_hints(self._record_type)
            except (NameError, TypeError) as exc:
                raise ValidationError(
                    f"Cannot resolve type hints of {self._type_name}: {exc}"
                ) from exc
        if attr not in self._hints:
            raise ValidationError(
                f"{self._type_name}.{attr} has no type hint; declare its kind explicitly"
            )
        try:
            return ValueKind.from_annotation(self._hints[attr])
        except ValidationError as exc:
            raise ValidationError(f"{self._type_name}.{attr}: {exc}") from exc


def column(
    name: Optional[str] = None,
    index: Optional[int] = None,
    *,
    kind: KindLike = None,
    width: Optional[int] = None,
    value_format: Optional[str] = None,
    styles: Iterable[StyleLike] = (),
    **field_kwargs: Any,
) -> Any:
    """Return a ``dataclasses.field`` carrying a column declaration."""

    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[COLUMN_METADATA_KEY] = ColumnSpec(
        name=name,
        index=index,
        kind=kind,
        width=width,
        value_format=value_format,
        styles=tuple(styles),
    )
    return dataclasses.field(metadata=metadata, **field_kwargs)


def sheet(
    name: Optional[str] = None,
    index: Optional[int] = None,
    *,
    header_row: int = 0,
    content_row: int = 1,
) -> Callable[[type], type]:
    """Class decorator attaching a :class:`SheetLocation` to a record type."""

    location = SheetLocation(name, index, header_row, content_row)

    def decorate(cls: type) -> type:
        setattr(cls, LOCATION_ATTR, location)
        return cls

    return decorate


def schema_from_dataclass(record_type: type, factory: Optional[Callable[[], Any]] = None) -> Schema:
    """Build a schema from :func:`column` metadata and the :func:`sheet` decorator.

    Raises:
        ValidationError: When *record_type* is not a dataclass or declares
            neither a sheet location nor any column.
    """

    type_name = getattr(record_type, "__qualname__", repr(record_type))
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise ValidationError(f"{type_name} is not registered and is not a dataclass")

    location = getattr(record_type, LOCATION_ATTR, None)
    builder = SchemaBuilder(record_type, factory).location(location)
    declared = False
    for dc_field in dataclasses.fields(record_type):
        spec = dc_field.metadata.get(COLUMN_METADATA_KEY)
        if spec is None:
            builder.skip(dc_field.name)
            continue
        declared = True
        builder.column(
            dc_field.name,
            spec.kind,
            name=spec.name,
            index=spec.index,
            width=spec.width,
            value_format=spec.value_format,
            styles=spec.styles,
        )
    if not declared and location is None:
        raise ValidationError(f"{type_name} declares no sheet location and no columns")
    return builder.build()


class SchemaRegistry:
    """Per-type schema cache.

    Schemas are immutable once built, so a registry can be shared between
    mapper calls on different workbooks.
    """

    def __init__(self) -> None:
        self._schemas: Dict[type, Schema] = {}

    def register(self, schema: Schema) -> Schema:
        self._schemas[schema.record_type] = schema
        logger.info(
            "Schema registered",
            extra={"record_type": schema.type_name, "fields": [f.attr for f in schema.fields]},
        )
        return schema

    def extract(self, record_type: type) -> Schema:
        """Return the cached schema for *record_type*, deriving it on first use."""

        schema = self._schemas.get(record_type)
        if schema is None:
            schema = schema_from_dataclass(record_type)
            self._schemas[record_type] = schema
        return schema

    def clear(self) -> None:
        self._schemas.clear()

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._schemas


default_registry = SchemaRegistry()
