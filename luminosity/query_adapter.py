"""
Turn aggregation query results into distribution lists.
"""

from typing import Callable, Sequence

from .converters import (
    aperture_to_f_number,
    format_number,
    shutter_speed_to_exposure_time,
)
from .distribution import DistributionEntry, DistributionList
from .errors import RowConversionError
from .logging_setup import get_logger

logger = get_logger(__name__)

# A row converter turns one result row into one distribution entry. It raises
# TypeError, ValueError, IndexError or KeyError when the row has the wrong shape,
# and ArithmeticError when a value cannot be converted.
RowConverter = Callable[[Sequence], DistributionEntry]

CONVERSION_ERRORS = (TypeError, ValueError, IndexError, KeyError, ArithmeticError)


def _to_count(value) -> int:
    if value is None:
        raise TypeError("count is NULL")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"count {value} is not a whole number")
    return int(value)


def _to_label(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def default_row_converter(row: Sequence) -> DistributionEntry:
    """Convert an ``(id, label, count)`` row. A NULL label becomes ``""``."""
    row_id, label, count = row
    return DistributionEntry(
        id=int(row_id) if row_id is not None else 0,
        label=_to_label(label),
        count=_to_count(count),
    )


class ApertureRowConverter:
    """Convert an ``(aperture, count)`` row, labelling it with the f-number."""

    label_format = "{:.1f}"

    def __call__(self, row: Sequence) -> DistributionEntry:
        aperture, count = row
        return DistributionEntry(
            label=self.label_format.format(aperture_to_f_number(float(aperture))),
            count=_to_count(count),
        )


class ExposureTimeRowConverter:
    """Convert a ``(shutterSpeed, count)`` row, labelling it with the exposure time."""

    def __call__(self, row: Sequence) -> DistributionEntry:
        shutter_speed, count = row
        return DistributionEntry(
            label=shutter_speed_to_exposure_time(float(shutter_speed)),
            count=_to_count(count),
        )


def convert_rows(label: str, rows, converter: RowConverter) -> DistributionList:
    """
    Apply a row converter to every row, keeping the row order.

    Raises:
        RowConversionError: On the first row that cannot be converted
    """
    entries = DistributionList()
    for row in rows:
        try:
            entries.append(converter(row))
        except CONVERSION_ERRORS as e:
            logger.error(f"Failed to convert row {row!r} of query '{label}': {str(e)}")
            raise RowConversionError(label, row, e) from e
    return entries


def query_distribution(store, label: str, sql: str,
                       converter: RowConverter = default_row_converter) -> DistributionList:
    """
    Run an aggregation query and convert its rows into a distribution.

    Rows keep the order the query returns them in. The store cursor is
    released before this returns, including when a row fails to convert.

    Args:
        store: Catalog store providing a ``query(label, sql)`` context manager
        label: Name of the query, used in logs and errors
        sql: Query text
        converter: Row converter for this query

    Returns:
        A new DistributionList

    Raises:
        StoreConnectionError: If the catalog cannot be opened
        QueryExecutionError: If the query fails
        RowConversionError: If any row fails to convert; no partial result is returned
    """
    with store.query(label, sql) as rows:
        entries = convert_rows(label, rows, converter)
    logger.debug(f"Query '{label}' produced {len(entries)} distribution entries")
    return entries
