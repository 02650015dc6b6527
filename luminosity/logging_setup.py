"""
Logging configuration for the Luminosity tools.
"""

import datetime
import logging
import os
import sys
from typing import Optional
from .config import AppConfig


def setup_logging(config: AppConfig, log_prefix: Optional[str] = None) -> None:
    """
    Configure logging based on settings.

    Args:
        config: Application configuration
        log_prefix: Optional prefix for the log file name
    """
    log_level = getattr(logging, config.log_level)
    if config.debug_mode:
        log_level = logging.DEBUG
    log_format = '%(asctime)s - %(levelname)s - %(message)s'

    log_file = config.log_file

    # Create a timestamp-based log file if prefix provided but no specific file
    if not log_file and log_prefix and config.debug_mode:
        timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        log_file = f"{log_prefix}_{timestamp}.log"

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        logging.basicConfig(
            filename=log_file,
            level=log_level,
            format=log_format
        )

        # Also log to console if debug mode is enabled
        if config.debug_mode:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(log_format))
            logging.getLogger('').addHandler(console)
    else:
        # stdout may carry the JSON report
        logging.basicConfig(
            stream=sys.stderr,
            level=log_level,
            format=log_format
        )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    if config.debug_mode:
        logging.debug("Debug mode enabled")
        logging.debug(f"Python version: {sys.version}")
        logging.debug(f"Platform: {sys.platform}")
        logging.debug(f"Configuration summary:")
        logging.debug(f"  Max retries: {config.max_retries}")
        logging.debug(f"  Busy timeout: {config.db_busy_timeout} ms")
        logging.debug(f"  Output directory: {config.output_dir}")
        logging.debug(f"  Verify previews: {config.verify_previews}")
        logging.debug(f"  Distributions: {', '.join(config.distributions) or 'all'}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Name for the logger

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
