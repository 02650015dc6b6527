"""
Read-only access to the Lightroom catalog database.
"""

import os
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .config import AppConfig
from .converters import format_number
from .errors import QueryExecutionError, StoreConnectionError
from .logging_setup import get_logger

logger = get_logger(__name__)


@dataclass
class PhotoRecord:
    """A photo in the catalog and the file it was imported from."""
    id: int
    id_global: Optional[str]
    base_name: str
    extension: Optional[str] = None
    root_path: Optional[str] = None
    path_from_root: Optional[str] = None
    capture_time: Optional[str] = None

    @property
    def file_name(self) -> str:
        if self.extension:
            return f"{self.base_name}.{self.extension}"
        return self.base_name

    @property
    def original_path(self) -> Optional[str]:
        if self.root_path is None:
            return None
        return os.path.join(self.root_path, self.path_from_root or "", self.file_name)


PHOTOS_QUERY = """
SELECT    image.id_local      as id,
          image.id_global     as id_global,
          file.baseName       as base_name,
          file.extension      as extension,
          root.absolutePath   as root_path,
          folder.pathFromRoot as path_from_root,
          image.captureTime   as capture_time
FROM      Adobe_images         image
JOIN      AgLibraryFile        file    ON   image.rootFile = file.id_local
LEFT JOIN AgLibraryFolder      folder  ON      file.folder = folder.id_local
LEFT JOIN AgLibraryRootFolder  root    ON folder.rootFolder = root.id_local
ORDER BY  image.id_local
"""


def _stringify(value) -> str:
    """Render a database value for a string keyed record."""
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


class CatalogDatabase:
    """Class to run read-only queries against a Lightroom catalog."""

    def __init__(self, catalog_path: str, config: AppConfig):
        """
        Initialize the catalog store.

        Args:
            catalog_path: Path to the Lightroom catalog file
            config: Application configuration

        Raises:
            FileNotFoundError: If the catalog file doesn't exist
        """
        if not os.path.exists(catalog_path):
            raise FileNotFoundError(f"Lightroom catalog not found: {catalog_path}")

        self.catalog_path = catalog_path
        self.config = config
        # Connection is created on demand for each query
        self.db_busy_timeout = getattr(config, 'db_busy_timeout', 5000)
        self.max_retries = getattr(config, 'max_retries', 3)

    def _connect(self) -> sqlite3.Connection:
        """
        Open a read-only connection to the catalog.

        Raises:
            StoreConnectionError: If the file cannot be opened as a SQLite database
        """
        uri = Path(self.catalog_path).resolve().as_uri() + "?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to Lightroom catalog: {str(e)}")
            raise StoreConnectionError(self.catalog_path, e) from e

        try:
            conn.execute(f"PRAGMA busy_timeout = {int(self.db_busy_timeout)}")
            # Reads the database header, so a corrupt file fails here
            conn.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error as e:
            conn.close()
            logger.error(f"Failed to open Lightroom catalog {self.catalog_path}: {str(e)}")
            raise StoreConnectionError(self.catalog_path, e) from e
        return conn

    def _execute(self, conn: sqlite3.Connection, label: str, sql: str,
                 params: Sequence = ()) -> sqlite3.Cursor:
        """Execute a statement, retrying while the database is locked."""
        retry_count = 0
        while True:
            cursor = conn.cursor()
            try:
                cursor.execute(sql, params)
                return cursor
            except sqlite3.OperationalError as e:
                cursor.close()
                if "database is locked" in str(e) and retry_count < self.max_retries:
                    retry_count += 1
                    wait_time = 0.5 * (2 ** retry_count)  # Exponential backoff
                    logger.warning(f"Database locked, retrying '{label}' in {wait_time:.2f}s "
                                   f"(attempt {retry_count}/{self.max_retries})")
                    time.sleep(wait_time)
                    continue
                logger.error(f"Query '{label}' failed: {str(e)}")
                raise QueryExecutionError(label, e) from e
            except sqlite3.Error as e:
                cursor.close()
                logger.error(f"Query '{label}' failed: {str(e)}")
                raise QueryExecutionError(label, e) from e

    @contextmanager
    def query(self, label: str, sql: str, params: Sequence = ()) -> Iterator[sqlite3.Cursor]:
        """
        Run a query and yield its cursor.

        The cursor and its connection are closed when the block exits, whether
        it finishes normally or raises.

        Args:
            label: Name of the query, used in logs and errors
            sql: Query text
            params: Query parameters

        Raises:
            StoreConnectionError: If the catalog cannot be opened
            QueryExecutionError: If the query is rejected or fails mid-iteration
        """
        conn = self._connect()
        cursor = None
        try:
            start_time = time.time()
            cursor = self._execute(conn, label, sql, params)
            logger.debug(f"Query '{label}' executed in {time.time() - start_time:.3f}s")
            try:
                yield cursor
            except sqlite3.Error as e:
                logger.error(f"Query '{label}' failed while reading rows: {str(e)}")
                raise QueryExecutionError(label, e) from e
        finally:
            if cursor is not None:
                cursor.close()
            conn.close()

    def query_string_map(self, label: str, sql: str, params: Sequence = ()) -> List[Dict[str, str]]:
        """
        Run a query and return each row as a column name to string mapping.

        NULL values become empty strings.
        """
        with self.query(label, sql, params) as cursor:
            columns = [description[0] for description in cursor.description]
            records = [
                {column: _stringify(value) for column, value in zip(columns, row)}
                for row in cursor
            ]
        logger.debug(f"Query '{label}' returned {len(records)} records")
        return records

    def iter_photos(self) -> Iterator[PhotoRecord]:
        """Iterate over the photos in the catalog, ordered by id."""
        with self.query("photos", PHOTOS_QUERY) as cursor:
            for row in cursor:
                yield PhotoRecord(*row)

    def get_photos(self, max_images: Optional[int] = None) -> List[PhotoRecord]:
        """
        Return the photos in the catalog.

        Args:
            max_images: Maximum number of photos to return
        """
        photos = list(self.iter_photos())
        logger.info(f"Retrieved {len(photos)} photos from catalog")

        if max_images and max_images > 0:
            photos = photos[:max_images]
            logger.info(f"Limiting to first {max_images} photos as per configuration")

        return photos
