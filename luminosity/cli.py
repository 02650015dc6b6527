"""
Command-line interface for the Luminosity tools.
"""

import argparse
import sys
import traceback
from typing import List, Optional

from .config import AppConfig, load_config
from .distribution_queries import DISTRIBUTION_NAMES
from .errors import CatalogError, PreviewWriteError
from .logging_setup import setup_logging, get_logger
from .preview_extractor import PreviewExtractor
from .stats import collect_statistics, write_statistics

logger = get_logger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        help="Path to configuration JSON file"
    )
    common.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode regardless of config setting"
    )
    common.add_argument(
        "--log-file",
        help="Write log messages to this file"
    )

    parser = argparse.ArgumentParser(
        description="Report metadata statistics and extract previews from Lightroom catalogs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    stats_parser = subparsers.add_parser(
        "stats",
        parents=[common],
        help="Compute metadata distributions for one or more catalogs"
    )
    stats_parser.add_argument(
        "catalog_paths",
        nargs="+",
        metavar="CATALOG",
        help="Path to Lightroom catalog (.lrcat file)"
    )
    stats_parser.add_argument(
        "-o", "--output",
        help="Write the JSON report to this file (default: stdout)"
    )
    stats_parser.add_argument(
        "--only",
        nargs="+",
        choices=DISTRIBUTION_NAMES,
        metavar="NAME",
        help=f"Only compute these distributions ({', '.join(DISTRIBUTION_NAMES)})"
    )
    stats_parser.add_argument(
        "--no-sunburst",
        action="store_true",
        help="Leave out the camera/lens/exposure breakdown"
    )

    extract_parser = subparsers.add_parser(
        "extract",
        parents=[common],
        help="Extract cached previews from a catalog"
    )
    extract_parser.add_argument(
        "catalog_path",
        metavar="CATALOG",
        help="Path to Lightroom catalog (.lrcat file)"
    )
    extract_parser.add_argument(
        "-o", "--output-dir",
        help="Directory to write extracted previews to (default: previews)"
    )
    extract_parser.add_argument(
        "--max-images",
        type=int,
        help="Override max images from config file"
    )
    extract_parser.add_argument(
        "--verify",
        action="store_true",
        help="Check every preview is a well-formed JPEG before writing it"
    )
    extract_parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Do not overwrite previews that were already extracted"
    )

    return parser.parse_args(argv)


def process_arguments(args: argparse.Namespace, config: AppConfig) -> AppConfig:
    """
    Process command-line arguments and override config values.

    Args:
        args: Parsed arguments
        config: Loaded configuration

    Returns:
        Updated configuration
    """
    if args.debug:
        config.debug_mode = True
    if args.log_file:
        config.log_file = args.log_file

    if args.command == "stats":
        if args.only:
            config.distributions = list(args.only)
        if args.no_sunburst:
            config.include_sunburst = False
    elif args.command == "extract":
        if args.output_dir:
            config.output_dir = args.output_dir
        if args.max_images:
            config.max_images = args.max_images
        if args.verify:
            config.verify_previews = True
        if args.skip_existing:
            config.skip_existing = True

    return config


def run_stats(args: argparse.Namespace, config: AppConfig) -> int:
    """Run the stats command."""
    report = collect_statistics(args.catalog_paths, config)
    write_statistics(report, args.output, indent=config.json_indent)
    if 'errors' in report:
        logger.warning(f"Some distributions failed: {report['errors']}")
    return 0


def run_extract(args: argparse.Namespace, config: AppConfig) -> int:
    """Run the extract command."""
    extractor = PreviewExtractor(args.catalog_path, config)
    try:
        stats = extractor.extract_previews(config.output_dir)
    except PreviewWriteError as e:
        if e.stats is not None:
            logger.error(f"Extraction stopped after {e.stats.success_count} previews")
        raise

    logger.info(f"Total photos: {stats.total_photos}")
    logger.info(f"Previews written: {stats.success_count}")
    logger.info(f"Errors: {stats.error_count}")
    logger.info(f"Skipped (already extracted): {stats.skipped_count}")
    return 0


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Run the command-line interface.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_arguments(argv)
    config = None
    try:
        config = load_config(args.config) if args.config else AppConfig()
        config = process_arguments(args, config)

        setup_logging(config, log_prefix="luminosity")
        logger.debug(f"Running command: {args.command}")

        if args.command == "stats":
            return run_stats(args, config)
        return run_extract(args, config)

    except (CatalogError, OSError, ValueError, RuntimeError) as e:
        logger.error(f"{args.command} failed: {str(e)}")
        if config is not None and config.debug_mode:
            logger.error(f"Traceback: {traceback.format_exc()}")
        return 1


def main() -> int:
    """Console script entry point."""
    return run_cli(sys.argv[1:])
