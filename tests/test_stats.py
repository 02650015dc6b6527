import io
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from luminosity.config import AppConfig
from luminosity.distribution import DistributionEntry, DistributionList
from luminosity.errors import StoreConnectionError
from luminosity.stats import collect_statistics, merge_catalog_statistics, write_statistics

from tests.catalog_fixtures import CATALOG_SCHEMA, CatalogBuilder

NO_KEYWORD_SCHEMA = "\n".join(
    line for line in CATALOG_SCHEMA.splitlines() if "Keyword" not in line
)


class TestCollectStatistics(unittest.TestCase):
    """Test cases for statistics reports over real catalogs."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.config = AppConfig()

        self.first = os.path.join(self.temp_dir, "first.lrcat")
        builder = CatalogBuilder(self.first)
        builder.add_photo(1, lens="X", capture_time="2021-03-01T10:00:00")
        builder.add_photo(2, lens="X", capture_time="2021-03-02T10:00:00")
        builder.add_photo(3, lens="Y", capture_time="2021-03-02T11:00:00")
        builder.add_keyword("travel", 2)
        builder.save()

        self.second = os.path.join(self.temp_dir, "second.lrcat")
        builder = CatalogBuilder(self.second)
        builder.add_photo(1, lens="Z", capture_time="2020-12-31T23:00:00")
        builder.add_photo(2, lens="X", capture_time="2021-03-02T08:00:00")
        builder.add_keyword("travel", 1)
        builder.save()

    def tearDown(self):
        """Clean up after tests."""
        shutil.rmtree(self.temp_dir)

    def test_single_catalog(self):
        report = collect_statistics([self.first], self.config)

        self.assertEqual(report['catalogs'], [self.first])
        self.assertNotIn('errors', report)
        self.assertIn('sunburst', report)
        self.assertEqual(report['distributions']['lens'], [
            {'id': 1, 'label': "X", 'count': 2},
            {'id': 2, 'label': "Y", 'count': 1},
        ])

    def test_merges_catalogs(self):
        report = collect_statistics([self.first, self.second], self.config, names=["lens", "by_date", "keyword"])

        distributions = report['distributions']
        self.assertEqual(sorted(distributions), ["by_date", "keyword", "lens"])
        self.assertEqual([(d['label'], d['count']) for d in distributions['lens']],
                         [("X", 3), ("Y", 1), ("Z", 1)])
        self.assertEqual([(d['label'], d['count']) for d in distributions['by_date']],
                         [("2020-12-31", 1), ("2021-03-01", 1), ("2021-03-02", 3)])
        self.assertEqual([(d['label'], d['count']) for d in distributions['keyword']], [("travel", 3)])

    def test_names_from_config(self):
        self.config.distributions = ["camera"]
        self.config.include_sunburst = False

        report = collect_statistics([self.first], self.config)

        self.assertEqual(list(report['distributions']), ["camera"])
        self.assertNotIn('sunburst', report)

    def test_unknown_distribution(self):
        with self.assertRaises(ValueError):
            collect_statistics([self.first], self.config, names=["lens", "iso"])

    def test_failing_distribution_is_recorded(self):
        partial = os.path.join(self.temp_dir, "partial.lrcat")
        CatalogBuilder(partial, schema=NO_KEYWORD_SCHEMA).add_photo(1, lens="X").save()

        with self.assertLogs('luminosity.stats', level='WARNING'):
            report = collect_statistics([partial], self.config)

        self.assertIn("keyword", report['errors'][partial])
        self.assertNotIn("keyword", report['distributions'])
        self.assertEqual(report['distributions']['lens'][0]['label'], "X")

    def test_extreme_shutter_value_does_not_fail_report(self):
        corrupt = os.path.join(self.temp_dir, "corrupt.lrcat")
        builder = CatalogBuilder(corrupt)
        builder.add_photo(1, lens="X", shutter_speed=1100.0)
        builder.add_photo(2, lens="X", shutter_speed=-1100.0)
        builder.save()

        report = collect_statistics([corrupt], self.config, names=["exposure_time", "lens"])

        self.assertNotIn('errors', report)
        self.assertEqual([(d['label'], d['count']) for d in report['distributions']['exposure_time']],
                         [("infs", 1), ("1/inf", 1)])
        self.assertEqual(report['distributions']['lens'][0]['count'], 2)

    def test_missing_catalog(self):
        with self.assertRaises(FileNotFoundError):
            collect_statistics([os.path.join(self.temp_dir, "missing.lrcat")], self.config)

    def test_not_a_catalog(self):
        bogus = os.path.join(self.temp_dir, "bogus.lrcat")
        with open(bogus, 'w') as f:
            f.write("plain text, not a catalog " * 40)
        with self.assertRaises(StoreConnectionError):
            collect_statistics([bogus], self.config)


class TestMergeCatalogStatistics(unittest.TestCase):
    """Test cases for merge_catalog_statistics."""

    def test_single_catalog_keeps_query_order(self):
        lens = DistributionList([DistributionEntry(2, "B", 5), DistributionEntry(1, "A", 1)])
        merged = merge_catalog_statistics([{'distributions': {'lens': lens}}], ["lens"])
        self.assertEqual(merged['lens'].labels(), ["B", "A"])

    @patch('luminosity.stats.merge_distributions')
    def test_single_catalog_is_not_merged(self, mock_merge):
        lens = DistributionList([DistributionEntry(1, "A", 1)])
        merged = merge_catalog_statistics([{'distributions': {'lens': lens}}], ["lens"])
        self.assertIs(merged['lens'], lens)
        mock_merge.assert_not_called()

    def test_single_catalog_by_date_is_sorted(self):
        by_date = DistributionList([DistributionEntry(0, "2021-01-02", 1), DistributionEntry(0, "2021-01-01", 4)])
        merged = merge_catalog_statistics([{'distributions': {'by_date': by_date}}], ["by_date"])
        self.assertEqual(merged['by_date'].labels(), ["2021-01-01", "2021-01-02"])

    def test_missing_distribution_merges_to_empty(self):
        merged = merge_catalog_statistics([{'distributions': {}}], ["lens"])
        self.assertEqual(merged['lens'], [])


class TestWriteStatistics(unittest.TestCase):
    """Test cases for write_statistics."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.report = {'catalogs': ["a.lrcat"], 'distributions': {'lens': [{'id': 1, 'label': "X", 'count': 2}]}}

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_write_to_file(self):
        path = os.path.join(self.temp_dir, "stats.json")
        write_statistics(self.report, path)
        with open(path) as f:
            self.assertEqual(json.load(f), self.report)

    def test_write_to_stdout(self):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            write_statistics(self.report, "-", indent=None)
        self.assertEqual(json.loads(stdout.getvalue()), self.report)

    def test_unwritable_path(self):
        path = os.path.join(self.temp_dir, "no", "such", "dir", "stats.json")
        with self.assertRaises(RuntimeError):
            write_statistics(self.report, path)


if __name__ == '__main__':
    unittest.main()
