"""
File system operations for the preview cache and extracted previews.
"""

import os
import re
import struct
from dataclasses import dataclass
from typing import List, Optional

from .config import AppConfig
from .logging_setup import get_logger

logger = get_logger(__name__)

LRPREV_MAGIC = b"AgHg"
# magic, header length, version, kind, data length, padding length
LRPREV_HEADER = struct.Struct(">4sHBBQQ")
JPEG_START = b"\xFF\xD8"
JPEG_END = b"\xFF\xD9"

_LEVEL_NAME = re.compile(r"level_(\d+)")


@dataclass
class LrprevSection:
    """One section of an .lrprev container."""
    name: str
    data: bytes

    @property
    def level(self) -> Optional[int]:
        match = _LEVEL_NAME.fullmatch(self.name)
        return int(match.group(1)) if match else None


def read_lrprev_sections(data: bytes) -> List[LrprevSection]:
    """
    Split an .lrprev container into its sections.

    Args:
        data: Raw file content

    Returns:
        Sections in file order; empty if the data has no AgHg sections

    Raises:
        ValueError: If a section header is truncated or inconsistent
    """
    sections = []
    offset = 0
    while data[offset:offset + len(LRPREV_MAGIC)] == LRPREV_MAGIC:
        if offset + LRPREV_HEADER.size > len(data):
            raise ValueError(f"Truncated section header at offset {offset}")
        _, header_length, _, _, data_length, padding_length = LRPREV_HEADER.unpack_from(data, offset)
        if header_length < LRPREV_HEADER.size:
            raise ValueError(f"Invalid section header length {header_length} at offset {offset}")

        name = data[offset + LRPREV_HEADER.size:offset + header_length]
        name = name.split(b"\x00", 1)[0].decode("ascii", errors="replace")

        start = offset + header_length
        end = start + data_length
        if end > len(data):
            raise ValueError(f"Section '{name}' runs past the end of the file")
        sections.append(LrprevSection(name, data[start:end]))
        offset = end + padding_length

    return sections


def extract_largest_jpeg(data: bytes) -> Optional[bytes]:
    """
    Get the largest JPEG stored in a preview file.

    Sectioned .lrprev files keep one JPEG per pyramid level, the highest level
    being the largest. Other files are scanned for an embedded JPEG.

    Returns:
        JPEG bytes, or None if there is no JPEG in the data
    """
    sections = read_lrprev_sections(data)
    if sections:
        levels = [s for s in sections if s.level is not None and s.data.startswith(JPEG_START)]
        if levels:
            return max(levels, key=lambda s: s.level).data
        jpegs = [s for s in sections if s.data.startswith(JPEG_START)]
        return jpegs[-1].data if jpegs else None

    start = data.find(JPEG_START + b"\xFF")
    end = data.rfind(JPEG_END)
    if start != -1 and end != -1 and end > start:
        return data[start:end + 2]
    return None


class FilesystemHelper:
    """Helper class for preview cache and output directory operations."""

    def __init__(self, catalog_path: str, config: AppConfig):
        """
        Initialize the filesystem helper.

        Args:
            catalog_path: Path to the Lightroom catalog file
            config: Application configuration
        """
        self.catalog_path = catalog_path
        self.config = config

        # Previews.lrdata sits next to the catalog
        catalog_dir = os.path.dirname(catalog_path)
        catalog_name = os.path.splitext(os.path.basename(catalog_path))[0]

        self.previews_dir = os.path.join(catalog_dir, f"{catalog_name} Previews.lrdata")
        self.has_previews_dir = os.path.isdir(self.previews_dir)

        if not self.has_previews_dir:
            logger.warning(f"Previews directory not found: {self.previews_dir}")

    def preview_file_path(self, uuid: str, digest: str) -> str:
        """
        Path of a cached preview inside Previews.lrdata.

        Files are bucketed by the first character and first four characters of
        the cache entry uuid.
        """
        return os.path.join(self.previews_dir, uuid[:1], uuid[:4], f"{uuid}-{digest}.lrprev")

    def read_preview_file(self, preview_path: str) -> bytes:
        """
        Read a cached preview file.

        Raises:
            OSError: If the file cannot be read
        """
        with open(preview_path, "rb") as f:
            data = f.read()
        if self.config.debug_mode:
            logger.debug(f"Read preview file: {preview_path} (size: {len(data)} bytes)")
        return data

    def ensure_output_dir(self, output_dir: str) -> None:
        """
        Make sure the output directory exists.

        Raises:
            NotADirectoryError: If the path exists but is not a directory
            OSError: If the directory cannot be created
        """
        if not os.path.exists(output_dir):
            os.makedirs(output_dir, exist_ok=True)
            logger.info(f"Created output directory: {output_dir}")
        elif not os.path.isdir(output_dir):
            raise NotADirectoryError(f"Output path exists but is not a directory: {output_dir}")

    def output_path(self, output_dir: str, base_name: str) -> str:
        """Path of the extracted preview for a photo."""
        return os.path.join(output_dir, f"{base_name}{self.config.preview_extension}")

    def write_preview(self, path: str, data: bytes) -> None:
        """
        Write preview bytes to disk.

        Raises:
            OSError: If the file cannot be written
        """
        with open(path, "wb") as f:
            f.write(data)
