"""Exceptions raised by sheetmap."""


class SheetMapError(Exception):
    """Base error for the package."""


class ValidationError(SheetMapError):
    """Schema or sheet location declaration is invalid or missing."""


class SheetNotFoundError(ValidationError):
    """Raised when the requested sheet does not exist in the workbook."""


class ContainerError(SheetMapError, OSError):
    """Raised when a stream cannot be opened as an xlsx workbook."""


class ConversionError(SheetMapError, ValueError):
    """A single cell value cannot be coerced to its field's declared kind."""

    def __init__(self, message: str, *, raw: object = None, kind: object = None) -> None:
        super().__init__(message)
        self.raw = raw
        self.kind = kind
