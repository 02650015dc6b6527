"""
Named aggregations over the photo and EXIF tables of a Lightroom catalog.
"""

from typing import Dict, List

from .converters import (
    APERTURE_PREFIX,
    format_f_number,
    format_focal_length,
    shutter_speed_to_exposure_time,
)
from .distribution import DistributionList
from .errors import RowConversionError
from .logging_setup import get_logger
from .query_adapter import (
    ApertureRowConverter,
    ExposureTimeRowConverter,
    default_row_converter,
    query_distribution,
)

logger = get_logger(__name__)

# Labels of the capture date distribution
DAY_FORMAT = "%Y-%m-%d"

PHOTO_COUNTS_BY_DATE_QUERY = f"""
SELECT   0,
         strftime('{DAY_FORMAT}', captureTime) as day,
         count(*)
FROM     Adobe_images
WHERE    day is not null
GROUP BY day
ORDER BY day
"""

LENS_DISTRIBUTION_QUERY = """
SELECT    LensRef.id_local      as id,
          LensRef.value         as name,
          count(LensRef.value)  as count
FROM      Adobe_images               image
JOIN      AgHarvestedExifMetadata    metadata   ON       image.id_local = metadata.image
LEFT JOIN AgInternedExifLens         LensRef    ON     LensRef.id_local = metadata.lensRef
WHERE     id is not null
GROUP BY  id
ORDER BY  count desc
"""

FOCAL_LENGTH_DISTRIBUTION_QUERY = """
SELECT   id_local          as id,
         focalLength       as name,
         count(id_local)   as count
FROM     AgHarvestedExifMetadata
WHERE    focalLength is not null
GROUP BY focalLength
ORDER BY count desc
"""

CAMERA_DISTRIBUTION_QUERY = """
SELECT    Camera.id_local       as id,
          Camera.value          as name,
          count(Camera.value)   as count
FROM      Adobe_images               image
JOIN      AgHarvestedExifMetadata    metadata   ON      image.id_local = metadata.image
LEFT JOIN AgInternedExifCameraModel  Camera     ON     Camera.id_local = metadata.cameraModelRef
WHERE     id is not null
GROUP BY  id
ORDER BY  count desc
"""

APERTURE_DISTRIBUTION_QUERY = """
SELECT   aperture,
         count(aperture)
FROM     AgHarvestedExifMetadata
WHERE    aperture is not null
GROUP BY aperture
ORDER BY aperture
"""

EXPOSURE_TIME_DISTRIBUTION_QUERY = """
SELECT   shutterSpeed,
         count(shutterSpeed)
FROM     AgHarvestedExifMetadata
WHERE    shutterSpeed is not null
GROUP BY shutterSpeed
ORDER BY shutterSpeed
"""

EDIT_COUNT_DISTRIBUTION_QUERY = """
SELECT   edit_count as id,
         edit_count as label,
         count(*)   as count
FROM     (
  SELECT   count(*) as edit_count,
           image
  FROM     Adobe_libraryImageDevelopHistoryStep
  GROUP BY image
)
WHERE    edit_count > 1
GROUP BY edit_count
ORDER BY edit_count desc
"""

KEYWORD_DISTRIBUTION_QUERY = """
SELECT     k.id_local    as id,
           k.name        as label,
           p.occurrences as count
FROM       AgLibraryKeywordPopularity p
INNER JOIN AgLibraryKeyword           k   ON  p.tag = k.id_local
ORDER BY   p.occurrences desc
"""

SUNBURST_QUERY = """
SELECT    count(*)          as count,
          image.id_local    as id,
          Camera.value      as camera,
          Lens.value        as lens,
          exif.aperture     as aperture,
          exif.focalLength  as focal_length,
          exif.shutterSpeed as exposure
FROM      Adobe_images              image
JOIN      AgHarvestedExifMetadata   exif      ON  image.id_local  = exif.image
LEFT JOIN AgInternedExifLens        Lens      ON  Lens.id_local   = exif.lensRef
LEFT JOIN AgInternedExifCameraModel Camera    ON  Camera.id_local = exif.cameraModelRef
WHERE     camera is not null and lens is not null
GROUP BY  camera, lens, aperture, focal_length, exposure
ORDER BY  camera, lens, aperture, focal_length, exposure, count
"""


class DistributionQueries:
    """The named distributions a catalog can report."""

    def __init__(self, store):
        """
        Args:
            store: Catalog store providing ``query`` and ``query_string_map``
        """
        self.store = store

    def get_photo_counts_by_date(self) -> DistributionList:
        """Photos per calendar day, ascending by date. Days without photos are absent."""
        return query_distribution(self.store, "photo_counts_by_date",
                                  PHOTO_COUNTS_BY_DATE_QUERY, default_row_converter)

    def get_lens_distribution(self) -> DistributionList:
        return query_distribution(self.store, "lens_distribution",
                                  LENS_DISTRIBUTION_QUERY, default_row_converter)

    def get_focal_length_distribution(self) -> DistributionList:
        return query_distribution(self.store, "focal_length_distribution",
                                  FOCAL_LENGTH_DISTRIBUTION_QUERY, default_row_converter)

    def get_camera_distribution(self) -> DistributionList:
        return query_distribution(self.store, "camera_distribution",
                                  CAMERA_DISTRIBUTION_QUERY, default_row_converter)

    def get_aperture_distribution(self) -> DistributionList:
        """
        Photos per displayed f-number, ascending by aperture.

        Distinct APEX values that render to the same f-number are summed into
        one bucket.
        """
        entries = query_distribution(self.store, "aperture_distribution",
                                     APERTURE_DISTRIBUTION_QUERY, ApertureRowConverter())
        return entries.collapse()

    def get_exposure_time_distribution(self) -> DistributionList:
        """
        Photos per displayed exposure time.

        Ordered by the encoded shutter speed, not by label, so that fractions
        keep their numeric order.
        """
        entries = query_distribution(self.store, "exposure_time_distribution",
                                     EXPOSURE_TIME_DISTRIBUTION_QUERY, ExposureTimeRowConverter())
        return entries.collapse()

    def get_edit_count_distribution(self) -> DistributionList:
        """Photos per number of develop history steps, for photos edited more than once."""
        return query_distribution(self.store, "edit_count_distribution",
                                  EDIT_COUNT_DISTRIBUTION_QUERY, default_row_converter)

    def get_keyword_distribution(self) -> DistributionList:
        return query_distribution(self.store, "keyword_distribution",
                                  KEYWORD_DISTRIBUTION_QUERY, default_row_converter)

    def get_sunburst_stats(self) -> List[Dict[str, str]]:
        """
        Photo counts by camera, lens, aperture, focal length and exposure.

        Returns a flat table of string records. Aperture and exposure are
        converted to display units and focal lengths get a unit suffix.

        Raises:
            RowConversionError: If an aperture or exposure value is not numeric
        """
        records = self.store.query_string_map("sunburst_stats", SUNBURST_QUERY)
        for record in records:
            try:
                if record.get("aperture"):
                    record["aperture"] = format_f_number(float(record["aperture"]),
                                                         prefix=APERTURE_PREFIX)
                if record.get("exposure"):
                    record["exposure"] = shutter_speed_to_exposure_time(float(record["exposure"]))
            except ValueError as e:
                logger.error(f"Invalid sunburst record {record!r}: {str(e)}")
                raise RowConversionError("sunburst_stats", record, e) from e
            if record.get("focal_length"):
                record["focal_length"] = format_focal_length(record["focal_length"])
        return records

    def get_distribution(self, name: str) -> DistributionList:
        """
        Run a distribution by name.

        Raises:
            KeyError: If the name is not one of DISTRIBUTION_NAMES
        """
        try:
            method = DISTRIBUTIONS[name]
        except KeyError:
            raise KeyError(f"Unknown distribution: {name}") from None
        return method(self)


DISTRIBUTIONS = {
    "by_date": DistributionQueries.get_photo_counts_by_date,
    "lens": DistributionQueries.get_lens_distribution,
    "camera": DistributionQueries.get_camera_distribution,
    "focal_length": DistributionQueries.get_focal_length_distribution,
    "aperture": DistributionQueries.get_aperture_distribution,
    "exposure_time": DistributionQueries.get_exposure_time_distribution,
    "edit_count": DistributionQueries.get_edit_count_distribution,
    "keyword": DistributionQueries.get_keyword_distribution,
}

DISTRIBUTION_NAMES = tuple(DISTRIBUTIONS)
