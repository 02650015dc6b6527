import math
import unittest
from contextlib import contextmanager

from luminosity.distribution import DistributionEntry
from luminosity.errors import QueryExecutionError, RowConversionError
from luminosity.query_adapter import (
    ApertureRowConverter,
    ExposureTimeRowConverter,
    default_row_converter,
    query_distribution,
)


class FakeStore:
    """In-memory catalog store returning fixed rows."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []
        self.open_cursors = 0

    @contextmanager
    def query(self, label, sql):
        self.queries.append((label, sql))
        if self.error is not None:
            raise self.error
        self.open_cursors += 1
        try:
            yield iter(self.rows)
        finally:
            self.open_cursors -= 1


class TestRowConverters(unittest.TestCase):
    """Test cases for the row converters."""

    def test_default_converter(self):
        self.assertEqual(default_row_converter((3, "EF 50mm", 12)), DistributionEntry(3, "EF 50mm", 12))

    def test_default_converter_null_label_and_id(self):
        self.assertEqual(default_row_converter((None, None, 2)), DistributionEntry(0, "", 2))

    def test_default_converter_numeric_label(self):
        self.assertEqual(default_row_converter((1, 50.0, 2)).label, "50")
        self.assertEqual(default_row_converter((1, 5, 2)).label, "5")

    def test_aperture_converter(self):
        entry = ApertureRowConverter()((2 * math.log2(2.8), 4))
        self.assertEqual(entry, DistributionEntry(0, "2.8", 4))

    def test_exposure_converter(self):
        entry = ExposureTimeRowConverter()((math.log2(125), 9))
        self.assertEqual(entry, DistributionEntry(0, "1/125", 9))


class TestQueryDistribution(unittest.TestCase):
    """Test cases for query_distribution."""

    def test_keeps_row_order(self):
        store = FakeStore(rows=[(1, "B", 5), (2, "A", 3), (3, "C", 1)])
        result = query_distribution(store, "lens_distribution", "SELECT ...")
        self.assertEqual(result.labels(), ["B", "A", "C"])
        self.assertEqual(store.queries, [("lens_distribution", "SELECT ...")])
        self.assertEqual(store.open_cursors, 0)

    def test_returns_fresh_lists(self):
        store = FakeStore(rows=[(1, "A", 1)])
        first = query_distribution(store, "q", "SELECT 1")
        second = query_distribution(store, "q", "SELECT 1")
        self.assertIsNot(first, second)
        self.assertEqual(first, second)

    def test_empty_result(self):
        self.assertEqual(query_distribution(FakeStore(), "q", "SELECT 1"), [])

    def test_conversion_failure_aborts_and_releases_cursor(self):
        store = FakeStore(rows=[(1, "A", 1), (2, "B")])
        with self.assertRaises(RowConversionError) as cm:
            query_distribution(store, "lens_distribution", "SELECT ...")
        self.assertEqual(cm.exception.label, "lens_distribution")
        self.assertEqual(cm.exception.row, (2, "B"))
        self.assertEqual(store.open_cursors, 0)

    def test_non_numeric_aperture_fails(self):
        store = FakeStore(rows=[("wide open", 3)])
        with self.assertRaises(RowConversionError):
            query_distribution(store, "aperture_distribution", "SELECT ...", ApertureRowConverter())

    def test_negative_or_null_count_fails(self):
        for row in [(1, "A", -1), (1, "A", None), (1, "A", "many")]:
            with self.subTest(row=row):
                with self.assertRaises(RowConversionError):
                    query_distribution(FakeStore(rows=[row]), "q", "SELECT 1")

    def test_fractional_count_fails(self):
        with self.assertRaises(RowConversionError):
            query_distribution(FakeStore(rows=[(1, "A", 2.7)]), "q", "SELECT 1")
        self.assertEqual(query_distribution(FakeStore(rows=[(1, "A", 2.0)]), "q", "SELECT 1")[0].count, 2)

    def test_extreme_exposure_converts(self):
        store = FakeStore(rows=[(1100.0, 1), (-1100.0, 2)])
        result = query_distribution(store, "exposure_time_distribution", "SELECT ...", ExposureTimeRowConverter())
        self.assertEqual(result.labels(), ["1/inf", "infs"])

    def test_arithmetic_error_becomes_conversion_error(self):
        def dividing_converter(row):
            return DistributionEntry(label=str(1 / row[0]), count=1)

        store = FakeStore(rows=[(0,)])
        with self.assertRaises(RowConversionError) as cm:
            query_distribution(store, "q", "SELECT 1", dividing_converter)
        self.assertIsInstance(cm.exception.cause, ZeroDivisionError)
        self.assertEqual(store.open_cursors, 0)

    def test_query_error_propagates(self):
        store = FakeStore(error=QueryExecutionError("q", Exception("no such table")))
        with self.assertRaises(QueryExecutionError):
            query_distribution(store, "q", "SELECT 1")


if __name__ == '__main__':
    unittest.main()
