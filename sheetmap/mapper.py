"""Read records from, and write records to, xlsx workbooks."""

# Module responsibilities:
# - Sequence schema extraction, header resolution and row decoding for reads.
# - Sequence schema extraction, header generation and row encoding for writes.
# - Open/save workbooks through openpyxl and report fatal errors with context.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterable, Iterator, List, Optional, Tuple, Union
from zipfile import BadZipFile

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from .coercion import cell_to_raw
from .decoder import RowDecoder, SkippedField
from .encoder import RowEncoder, StyleContext
from .errors import ContainerError, SheetNotFoundError, ValidationError
from .registry import SchemaRegistry, default_registry
from .resolver import header_for, resolve_bindings
from .schema import ColumnBinding, Schema, SheetLocation
from .utils.log import get_logger

logger = get_logger("mapper")

Stream = Union[str, Path, BinaryIO]
RowMapper = Callable[[Tuple[Any, ...]], Any]


@dataclass
class ReadResult:
    """Records decoded by one read plus the fields that fell back to defaults."""

    records: List[Any] = field(default_factory=list)
    skipped: List[SkippedField] = field(default_factory=list)
    bindings: List[ColumnBinding] = field(default_factory=list)


def _describe_stream(stream: Stream) -> str:
    if isinstance(stream, (str, Path)):
        return str(stream)
    return getattr(stream, "name", type(stream).__name__)


def _open_workbook(stream: Stream) -> Workbook:
    """Load a workbook with cached formula results instead of formula text.

    ``OSError`` from the stream propagates unchanged; anything that is not an
    xlsx container becomes a :class:`ContainerError`.
    """

    try:
        return load_workbook(stream, data_only=True)
    except OSError:
        raise
    except (InvalidFileException, BadZipFile, KeyError, ValueError) as exc:
        raise ContainerError(f"Cannot open workbook {_describe_stream(stream)}: {exc}") from exc


def _select_sheet(workbook: Workbook, location: SheetLocation, type_name: str) -> Worksheet:
    if location.sheet_index is not None:
        if location.sheet_index >= len(workbook.worksheets):
            raise SheetNotFoundError(
                f"{type_name}: workbook has {len(workbook.worksheets)} sheet(s), "
                f"no {location.describe()}"
            )
        return workbook.worksheets[location.sheet_index]
    if location.sheet_name not in workbook.sheetnames:
        raise SheetNotFoundError(
            f"{type_name}: {location.describe()} not found; available: {workbook.sheetnames}"
        )
    return workbook[location.sheet_name]


def _header_values(sheet: Worksheet, header_row_index: int) -> Tuple[Any, ...]:
    row = header_row_index + 1
    if row > sheet.max_row:
        return ()
    return next(sheet.iter_rows(min_row=row, max_row=row, values_only=True), ())


def _stored_rows(sheet: Worksheet) -> List[int]:
    """Return the one-based rows that hold at least one stored cell."""

    # iter_rows() materializes cells for gaps, so read the cell map first.
    return sorted({row for row, _column in sheet._cells})


def _content_rows(sheet: Worksheet, content_row_index: int) -> Iterator[Tuple[int, Tuple[Cell, ...]]]:
    """Yield ``(zero_based_row, cells)`` for every stored content row.

    Rows absent from the sheet are skipped. A stored row whose cells are all
    empty is still yielded so written empty records survive a read-back.
    """

    first = content_row_index + 1
    for row in _stored_rows(sheet):
        if row < first:
            continue
        cells = next(sheet.iter_rows(min_row=row, max_row=row, min_col=1))
        yield row - 1, cells


class Mapper:
    """Bidirectional mapper between worksheets and typed records.

    Each call opens its own workbook and works through it sequentially; the
    schema registry is the only state shared between calls.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        self.registry = registry or default_registry

    def schema_for(self, record_type: type) -> Schema:
        return self.registry.extract(record_type)

    def read_report(
        self,
        stream: Stream,
        record_type: type,
        location: Optional[SheetLocation] = None,
        *,
        content_row: Optional[int] = None,
    ) -> ReadResult:
        """Read every content row into a *record_type* instance.

        Args:
            stream: Workbook path or binary file object.
            record_type: Registered or dataclass-declared record type.
            location: Overrides the type's declared sheet location.
            content_row: Overrides the first content row (zero-based).

        Returns:
            Decoded records, skipped-field warnings and the bindings used.

        Raises:
            ValidationError: When the type has no sheet location or the sheet is missing.
            ContainerError: When the stream is not an xlsx workbook.
            OSError: When the stream cannot be read.
        """

        schema = self.schema_for(record_type)
        target = schema.require_location(location).with_content_row(content_row)
        source = _describe_stream(stream)
        logger.info(
            "Reading records",
            extra={"record_type": schema.type_name, "source": source, "location": target.describe()},
        )
        if not schema.fields:
            logger.warning(
                "Schema maps no columns; records will keep their defaults",
                extra={"record_type": schema.type_name},
            )

        try:
            workbook = _open_workbook(stream)
        except OSError as exc:
            logger.error(
                "Failed to open workbook",
                extra={"record_type": schema.type_name, "source": source, "error": str(exc)},
            )
            raise
        try:
            sheet = _select_sheet(workbook, target, schema.type_name)
            bindings = resolve_bindings(schema, _header_values(sheet, target.header_row_index))
            decoder = RowDecoder(schema, bindings.values())
            result = ReadResult(bindings=list(bindings.values()))
            for row_index, cells in _content_rows(sheet, target.content_row_index):
                decoded = decoder.decode(cells, row_index)
                result.records.append(decoded.record)
                result.skipped.extend(decoded.skipped)
        except ValidationError as exc:
            logger.error(
                "Read aborted",
                extra={"record_type": schema.type_name, "source": source, "error": str(exc)},
            )
            raise
        finally:
            workbook.close()

        logger.info(
            "Records read",
            extra={
                "record_type": schema.type_name,
                "rows": len(result.records),
                "bound_columns": [b.column_name for b in result.bindings],
                "skipped_fields": len(result.skipped),
            },
        )
        return result

    def read_all(
        self,
        stream: Stream,
        record_type: type,
        location: Optional[SheetLocation] = None,
        *,
        content_row: Optional[int] = None,
    ) -> List[Any]:
        """Read records, leaving unconvertible fields at their defaults."""

        return self.read_report(stream, record_type, location, content_row=content_row).records

    def read_frame(
        self,
        stream: Stream,
        record_type: type,
        location: Optional[SheetLocation] = None,
        *,
        content_row: Optional[int] = None,
    ) -> pd.DataFrame:
        """Read records into a DataFrame whose columns follow the bound header labels."""

        result = self.read_report(stream, record_type, location, content_row=content_row)
        ordered = sorted(result.bindings, key=lambda binding: binding.column_index)
        rows = [[binding.field.getter(record) for binding in ordered] for record in result.records]
        return pd.DataFrame(rows, columns=[binding.column_name for binding in ordered])

    def read_rows(
        self,
        stream: Stream,
        location: SheetLocation,
        row_mapper: RowMapper,
    ) -> List[Any]:
        """Apply *row_mapper* to the raw values of each content row.

        Rows for which the mapper returns ``None`` are dropped. No header
        resolution takes place.
        """

        workbook = _open_workbook(stream)
        try:
            sheet = _select_sheet(workbook, location, getattr(row_mapper, "__name__", "row_mapper"))
            results = []
            for _, cells in _content_rows(sheet, location.content_row_index):
                mapped = row_mapper(tuple(cell_to_raw(cell) for cell in cells))
                if mapped is not None:
                    results.append(mapped)
        finally:
            workbook.close()
        logger.info(
            "Rows mapped",
            extra={"source": _describe_stream(stream), "location": location.describe(), "rows": len(results)},
        )
        return results

    def write_all(
        self,
        stream_out: Stream,
        records: Iterable[Any],
        location: Optional[SheetLocation] = None,
        *,
        record_type: Optional[type] = None,
    ) -> None:
        """Write *records* to a new workbook with a generated header row.

        Args:
            stream_out: Destination path or writable binary file object.
            records: Records to write, one row each.
            location: Sheet name, header row and first content row; defaults
                to the type's declared location.
            record_type: Required when *records* is empty.

        Raises:
            ValidationError: When the record type or sheet location cannot be determined.
            OSError: When the destination cannot be written.
        """

        records = list(records)
        if record_type is None:
            if not records:
                raise ValidationError("Cannot infer the record type of an empty record list")
            record_type = type(records[0])
        schema = self.schema_for(record_type)
        target = schema.require_location(location)
        destination = _describe_stream(stream_out)

        workbook = Workbook()
        sheet = workbook.active
        title = target.sheet_name or f"Sheet{(target.sheet_index or 0) + 1}"
        try:
            sheet.title = title
        except ValueError as exc:
            raise ValidationError(f"{schema.type_name}: invalid sheet name {title!r}: {exc}") from exc

        layout = header_for(schema)
        encoder = RowEncoder(sheet, layout, StyleContext(workbook))
        encoder.write_header(target.header_row_index)
        for offset, record in enumerate(records):
            encoder.encode(record, target.content_row_index + offset)
        encoder.apply_widths()

        if isinstance(stream_out, (str, Path)):
            Path(stream_out).parent.mkdir(parents=True, exist_ok=True)
        try:
            workbook.save(stream_out)
        except OSError as exc:
            logger.error(
                "Failed to save workbook",
                extra={"record_type": schema.type_name, "destination": destination, "error": str(exc)},
            )
            raise
        logger.info(
            "Records written",
            extra={
                "record_type": schema.type_name,
                "destination": destination,
                "sheet": title,
                "rows": len(records),
                "columns": [b.column_name for b in layout],
            },
        )


_default_mapper = Mapper()


def read_all(
    stream: Stream,
    record_type: type,
    location: Optional[SheetLocation] = None,
    *,
    content_row: Optional[int] = None,
) -> List[Any]:
    """Read records with the default registry."""

    return _default_mapper.read_all(stream, record_type, location, content_row=content_row)


def write_all(
    stream_out: Stream,
    records: Iterable[Any],
    location: Optional[SheetLocation] = None,
    *,
    record_type: Optional[type] = None,
) -> None:
    """Write records with the default registry."""

    _default_mapper.write_all(stream_out, records, location, record_type=record_type)
