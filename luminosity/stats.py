"""
Statistics reports combining the distributions of one or more catalogs.
"""

import json
import sys
import time
from typing import Any, Dict, Iterable, List, Optional

from .catalog_db import CatalogDatabase
from .config import AppConfig
from .distribution import DistributionList, merge_distributions
from .distribution_queries import DISTRIBUTION_NAMES, DistributionQueries
from .errors import QueryExecutionError, RowConversionError
from .logging_setup import get_logger

logger = get_logger(__name__)


def _selected_names(names: Optional[Iterable[str]]) -> List[str]:
    selected = list(names) if names else list(DISTRIBUTION_NAMES)
    unknown = [name for name in selected if name not in DISTRIBUTION_NAMES]
    if unknown:
        raise ValueError(f"Unknown distribution(s): {', '.join(unknown)}. "
                         f"Choose from: {', '.join(DISTRIBUTION_NAMES)}")
    return selected


def collect_catalog_statistics(queries: DistributionQueries, names: Iterable[str],
                               include_sunburst: bool = True) -> Dict[str, Any]:
    """
    Run the named distributions against a single catalog.

    A failing query does not stop the others; its error is recorded under
    ``errors`` and its distribution is left out.

    Returns:
        Dictionary with ``distributions``, ``sunburst`` and ``errors`` keys
    """
    result = {'distributions': {}, 'sunburst': [], 'errors': {}}

    for name in names:
        try:
            result['distributions'][name] = queries.get_distribution(name)
        except (QueryExecutionError, RowConversionError) as e:
            logger.warning(f"Distribution '{name}' failed, skipping: {str(e)}")
            result['errors'][name] = str(e)

    if include_sunburst:
        try:
            result['sunburst'] = queries.get_sunburst_stats()
        except (QueryExecutionError, RowConversionError) as e:
            logger.warning(f"Sunburst breakdown failed, skipping: {str(e)}")
            result['errors']['sunburst'] = str(e)

    return result


def merge_catalog_statistics(per_catalog: List[Dict[str, Any]], names: Iterable[str]) -> Dict[str, DistributionList]:
    """Merge each named distribution across catalogs."""
    merged = {}
    for name in names:
        lists = [stats['distributions'][name] for stats in per_catalog
                 if name in stats['distributions']]
        if len(lists) == 1:
            # A single catalog keeps the order its query defines
            combined = lists[0]
        else:
            combined = merge_distributions(*lists)
        if name == "by_date":
            combined = combined.sorted_by_date()
        merged[name] = combined
    return merged


def collect_statistics(catalog_paths: List[str], config: AppConfig,
                       names: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Build a statistics report for one or more catalogs.

    Args:
        catalog_paths: Paths to Lightroom catalogs
        config: Application configuration
        names: Distributions to include; defaults to config.distributions, then all

    Returns:
        JSON ready report

    Raises:
        FileNotFoundError: If a catalog does not exist
        StoreConnectionError: If a catalog cannot be opened
        ValueError: If an unknown distribution is requested
    """
    selected = _selected_names(names or config.distributions)
    start_time = time.time()

    per_catalog = []
    errors = {}
    sunburst = []
    for catalog_path in catalog_paths:
        logger.info(f"Collecting statistics from {catalog_path}")
        queries = DistributionQueries(CatalogDatabase(catalog_path, config))
        stats = collect_catalog_statistics(queries, selected, config.include_sunburst)
        per_catalog.append(stats)
        sunburst.extend(stats['sunburst'])
        if stats['errors']:
            errors[catalog_path] = stats['errors']

    merged = merge_catalog_statistics(per_catalog, selected)

    report = {
        'catalogs': list(catalog_paths),
        'distributions': {name: distribution.to_dicts() for name, distribution in merged.items()},
    }
    if config.include_sunburst:
        report['sunburst'] = sunburst
    if errors:
        report['errors'] = errors

    logger.info(f"Collected {len(selected)} distributions from {len(catalog_paths)} "
                f"catalog(s) in {time.time() - start_time:.1f}s")
    return report


def write_statistics(report: Dict[str, Any], output_path: Optional[str] = None,
                     indent: Optional[int] = 2) -> None:
    """
    Serialize a report as JSON.

    Args:
        report: Report from collect_statistics
        output_path: File to write; stdout when None or "-"
        indent: JSON indentation

    Raises:
        RuntimeError: If the file cannot be written
    """
    if not output_path or output_path == "-":
        json.dump(report, sys.stdout, indent=indent)
        sys.stdout.write("\n")
        return

    try:
        with open(output_path, 'w') as f:
            json.dump(report, f, indent=indent)
            f.write("\n")
    except (IOError, TypeError) as e:
        raise RuntimeError(f"Failed to write statistics to {output_path}: {str(e)}")
    logger.info(f"Statistics written to {output_path}")
