"""
Extract cached preview images from a Lightroom catalog.
"""

import io
import os
import time
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from PIL import Image

from .catalog_db import CatalogDatabase, PhotoRecord
from .config import AppConfig
from .errors import PreviewNotFoundError, PreviewWriteError
from .filesystem import FilesystemHelper, extract_largest_jpeg
from .logging_setup import get_logger
from .preview_db import PreviewDatabase

logger = get_logger(__name__)


@dataclass
class ExtractionStats:
    """Class to track extraction statistics."""
    total_photos: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    start_time: float = 0
    total_time: float = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        result = {k: v for k, v in self.__dict__.items()}
        if self.total_photos > 0:
            result['success_rate'] = self.success_count / self.total_photos
        return result


class PreviewExtractor:
    """Class to retrieve cached previews and write them to disk."""

    def __init__(self, catalog_path: str, config: AppConfig,
                 catalog: Optional[CatalogDatabase] = None):
        """
        Initialize the preview extractor.

        Args:
            catalog_path: Path to the Lightroom catalog file
            config: Application configuration
            catalog: Catalog store to list photos from; opened from catalog_path if omitted
        """
        self.catalog_path = catalog_path
        self.config = config
        self.catalog = catalog if catalog is not None else CatalogDatabase(catalog_path, config)
        self.filesystem = FilesystemHelper(catalog_path, config)

        if self.filesystem.has_previews_dir:
            self.preview_db = PreviewDatabase(self.filesystem.previews_dir, config)
        else:
            self.preview_db = None

    def _is_jpeg_header(self, header: bytes) -> bool:
        """
        Check if the given bytes represent a JPEG header.

        Args:
            header: Bytes to check

        Returns:
            True if it's a JPEG header, False otherwise
        """
        return header[0:3] == b'\xFF\xD8\xFF'

    def verify_jpeg(self, data: bytes) -> None:
        """
        Check that a preview blob is a well-formed JPEG without decoding it.

        Raises:
            ValueError: If the data is not a valid JPEG
        """
        if not self._is_jpeg_header(data):
            raise ValueError("preview data does not start with a JPEG header")
        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.format != "JPEG":
                    raise ValueError(f"preview is {img.format}, not JPEG")
                img.verify()
                if self.config.debug_mode:
                    logger.debug(f"Verified preview JPEG ({img.width}x{img.height})")
        except (OSError, SyntaxError) as e:
            raise ValueError(f"preview JPEG is corrupt: {str(e)}") from e

    def get_preview(self, photo: PhotoRecord) -> bytes:
        """
        Get the largest cached preview of a photo.

        Args:
            photo: Photo to look up

        Returns:
            JPEG bytes, untouched

        Raises:
            PreviewNotFoundError: If no usable preview is cached for the photo
        """
        if self.preview_db is None:
            raise PreviewNotFoundError(photo, f"previews directory not found: {self.filesystem.previews_dir}")

        entry = self.preview_db.get_cache_entry(photo.id)
        if entry is None:
            raise PreviewNotFoundError(photo, "no preview cache entry")

        preview_path = self.filesystem.preview_file_path(*entry)
        try:
            data = self.filesystem.read_preview_file(preview_path)
        except OSError as e:
            raise PreviewNotFoundError(photo, f"cannot read {preview_path}: {str(e)}") from e

        try:
            jpeg = extract_largest_jpeg(data)
        except ValueError as e:
            raise PreviewNotFoundError(photo, f"malformed preview file {preview_path}: {str(e)}") from e
        if not jpeg:
            raise PreviewNotFoundError(photo, f"no JPEG data in {preview_path}")

        if self.config.verify_previews:
            try:
                self.verify_jpeg(jpeg)
            except ValueError as e:
                raise PreviewNotFoundError(photo, str(e)) from e

        return jpeg

    def extract_previews(self, output_dir: Optional[str] = None,
                         photos: Optional[List[PhotoRecord]] = None) -> ExtractionStats:
        """
        Write the cached preview of every photo to the output directory.

        Photos whose preview cannot be retrieved are logged, counted and
        skipped. A preview that cannot be written stops the extraction.

        Args:
            output_dir: Directory to write to; defaults to config.output_dir
            photos: Photos to extract; defaults to all photos in the catalog

        Returns:
            Extraction statistics

        Raises:
            NotADirectoryError: If output_dir exists and is not a directory
            PreviewWriteError: If a preview file cannot be written
        """
        output_dir = output_dir or self.config.output_dir
        self.filesystem.ensure_output_dir(output_dir)

        if photos is None:
            photos = self.catalog.get_photos(self.config.max_images)

        stats = ExtractionStats(total_photos=len(photos), start_time=time.time())
        logger.info(f"Extracting previews for {len(photos)} photos from {self.catalog_path}")

        for i, photo in enumerate(photos, 1):
            filename = self.filesystem.output_path(output_dir, photo.base_name)

            if self.config.skip_existing and os.path.exists(filename):
                logger.debug(f"[{i}/{len(photos)}] Preview already extracted: {filename}")
                stats.skipped_count += 1
                continue

            try:
                preview = self.get_preview(photo)
            except PreviewNotFoundError as e:
                logger.warning(f"[{i}/{len(photos)}] Error retrieving photo preview, skipping: {str(e)}")
                stats.error_count += 1
                continue

            try:
                self.filesystem.write_preview(filename, preview)
            except OSError as e:
                stats.error_count += 1
                stats.total_time = time.time() - stats.start_time
                logger.error(f"Error writing preview file {filename}: {str(e)}")
                raise PreviewWriteError(filename, e, stats) from e

            stats.success_count += 1
            logger.info(f"[{i}/{len(photos)}] Wrote preview {filename} ({len(preview)} bytes)")

        stats.total_time = time.time() - stats.start_time
        logger.info(f"Complete: {stats.success_count} written, {stats.error_count} errors, "
                    f"{stats.skipped_count} skipped in {stats.total_time:.1f}s")
        return stats
