"""
Lookups in the Lightroom preview cache index (previews.db).
"""

import os
import sqlite3
from pathlib import Path
from typing import Optional, Tuple

from .config import AppConfig
from .logging_setup import get_logger

logger = get_logger(__name__)

PREVIEWS_DB_NAME = "previews.db"


class PreviewDatabase:
    """Class to handle interactions with the Lightroom preview database."""

    def __init__(self, previews_dir: str, config: AppConfig):
        """
        Initialize the preview database connection.

        Args:
            previews_dir: Path to the Lightroom previews directory
            config: Application configuration
        """
        self.previews_dir = previews_dir
        self.config = config
        self.preview_db_path = os.path.join(previews_dir, PREVIEWS_DB_NAME)
        self.has_preview_db = os.path.exists(self.preview_db_path)

    def connect(self) -> Optional[sqlite3.Connection]:
        """
        Connect to the preview database, read-only.

        Returns:
            SQLite connection if successful, None otherwise
        """
        if not self.has_preview_db:
            return None

        try:
            uri = Path(self.preview_db_path).resolve().as_uri() + "?mode=ro"
            return sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            logger.warning(f"Failed to connect to preview database: {str(e)}")
            return None

    def get_cache_entry(self, image_id: int) -> Optional[Tuple[str, str]]:
        """
        Get the cache entry of an image.

        Args:
            image_id: Image ID in the catalog

        Returns:
            Tuple of (uuid, digest) if found, None otherwise
        """
        conn = self.connect()
        if not conn:
            return None

        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT uuid, digest FROM ImageCacheEntry WHERE imageId = ?",
                (image_id,)
            )
            result = cursor.fetchone()
            cursor.close()

            if result and result[0] and result[1]:
                logger.debug(f"Found preview cache entry {result[0]} for image ID: {image_id}")
                return result[0], result[1]
            return None
        except sqlite3.Error as e:
            logger.warning(f"Error fetching preview cache entry for image {image_id}: {str(e)}")
            return None
        finally:
            conn.close()
