"""YAML-backed schema declarations."""

# Module responsibilities:
# - Validate mapping YAML payloads with pydantic models.
# - Turn a validated payload into a Schema through the SchemaBuilder.

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .registry import SchemaBuilder
from .schema import Schema
from .utils.log import get_logger

logger = get_logger("config")


class SheetConfig(BaseModel):
    """``sheet:`` section of a mapping file."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    index: Optional[int] = None
    header_row: int = Field(default=0, ge=0)
    content_row: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def _require_target(self) -> "SheetConfig":
        if not (self.name and self.name.strip()) and (self.index is None or self.index < 0):
            raise ValueError("sheet requires a name or a non-negative index")
        return self


class ColumnConfig(BaseModel):
    """One entry of the ``columns:`` list."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    attr: str
    kind: Optional[str] = None
    name: Optional[str] = None
    index: Optional[int] = None
    width: Optional[int] = None
    value_format: Optional[str] = Field(default=None, alias="format")
    styles: List[str] = Field(default_factory=list)


class MappingConfig(BaseModel):
    """Complete mapping file model."""

    model_config = ConfigDict(extra="forbid")

    sheet: Optional[SheetConfig] = None
    columns: List[ColumnConfig] = Field(default_factory=list)


def parse_mapping(payload: Any) -> MappingConfig:
    """Validate a decoded YAML payload."""

    if not isinstance(payload, dict):
        raise ValidationError("Invalid mapping YAML structure (expected mapping)")
    try:
        return MappingConfig.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid mapping configuration: {exc}") from exc


def build_schema(
    config: MappingConfig,
    record_type: type,
    factory: Optional[Callable[[], Any]] = None,
) -> Schema:
    """Translate a validated mapping into a :class:`Schema` for *record_type*."""

    builder = SchemaBuilder(record_type, factory)
    if config.sheet is not None:
        builder.sheet(
            config.sheet.name,
            config.sheet.index,
            header_row=config.sheet.header_row,
            content_row=config.sheet.content_row,
        )
    for entry in config.columns:
        builder.column(
            entry.attr,
            entry.kind,
            name=entry.name,
            index=entry.index,
            width=entry.width,
            value_format=entry.value_format,
            styles=entry.styles,
        )
    return builder.build()


def load_schema(
    path: Path,
    record_type: type,
    factory: Optional[Callable[[], Any]] = None,
) -> Schema:
    """Load a mapping YAML file and build the schema for *record_type*.

    Raises:
        FileNotFoundError: When *path* does not exist.
        ValidationError: When the payload is malformed.
    """

    if not path.exists():
        raise FileNotFoundError(f"Mapping file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        try:
            payload = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ValidationError(f"Mapping file is not valid YAML: {path}") from exc
    schema = build_schema(parse_mapping(payload), record_type, factory)
    logger.info(
        "Mapping loaded",
        extra={"path": str(path), "record_type": schema.type_name, "columns": len(schema.fields)},
    )
    return schema
