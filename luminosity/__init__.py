"""
Lightroom Catalog Statistics and Preview Extraction Package

This package reads an Adobe Lightroom Classic catalog (.lrcat file) without
modifying it, reports frequency distributions of photo metadata (capture
date, camera, lens, aperture, exposure, edits, keywords) that can be merged
across catalogs, and extracts the cached preview images.
"""

__version__ = "1.0.0"
