"""
Exceptions raised while reading a Lightroom catalog.
"""

from typing import Any, Optional


class CatalogError(RuntimeError):
    """Base class for all catalog related failures."""


class StoreConnectionError(CatalogError):
    """The catalog database could not be opened."""

    def __init__(self, catalog_path: str, cause: Optional[BaseException] = None):
        self.catalog_path = catalog_path
        self.cause = cause
        message = f"Failed to connect to Lightroom catalog: {catalog_path}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class QueryExecutionError(CatalogError):
    """A named query was rejected by an otherwise healthy catalog."""

    def __init__(self, label: str, cause: Optional[BaseException] = None):
        self.label = label
        self.cause = cause
        super().__init__(f"Query '{label}' failed: {cause}")


class RowConversionError(CatalogError):
    """A result row did not have the shape the row converter expects."""

    def __init__(self, label: str, row: Any, cause: Optional[BaseException] = None):
        self.label = label
        self.row = row
        self.cause = cause
        super().__init__(f"Could not convert row {row!r} of query '{label}': {cause}")


class ValueConversionError(CatalogError):
    """
    Reserved for malformed encoded values.

    The converters in luminosity.converters are total over finite floats and
    never raise this; null values are filtered by each query's WHERE clause.
    """


class PreviewNotFoundError(CatalogError):
    """No usable cached preview exists for a photo."""

    def __init__(self, photo: Any, reason: str):
        self.photo = photo
        self.reason = reason
        super().__init__(f"No preview for {getattr(photo, 'base_name', photo)}: {reason}")


class PreviewWriteError(CatalogError):
    """An extracted preview could not be written to disk."""

    def __init__(self, path: str, cause: Optional[BaseException] = None, stats: Any = None):
        self.path = path
        self.cause = cause
        self.stats = stats
        super().__init__(f"Failed to write preview {path}: {cause}")
