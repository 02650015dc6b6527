"""
Conversions from the catalog's APEX encodings to photographic units.

Lightroom stores aperture as the APEX value ``Av = 2 * log2(N)`` and shutter
speed as ``Tv = log2(1 / t)``. These helpers turn them back into the values a
photographer reads on the camera. They are total over finite floats: missing
values must be filtered out by the caller (the queries do it in SQL).
"""

import math
from typing import Union

Number = Union[int, float]

FOCAL_LENGTH_UNIT = "mm"
APERTURE_PREFIX = "f/"


def _pow2(exponent: float) -> float:
    """2 ** exponent, saturating to infinity past the float range."""
    try:
        return math.pow(2, exponent)
    except OverflowError:
        return math.inf


def aperture_to_f_number(apex_value: float) -> float:
    """
    Convert an APEX aperture value to an f-number.

    Args:
        apex_value: Stored aperture value (2 * log2(N))

    Returns:
        The f-number N. An APEX value of 0 is f/1.0. Values too large for a
        float give ``math.inf``.
    """
    if apex_value == 0:
        return 1.0
    return _pow2(apex_value / 2)


def round_denominator(value: float) -> int:
    """
    Round an exposure reciprocal to the integer shown after ``1/``.

    Ties round half away from zero (2.5 -> 3). Exposure reciprocals are
    always positive.
    """
    return int(math.floor(value + 0.5))


def format_seconds(seconds: float) -> str:
    """Render a long exposure as ``"<seconds>s"`` with at most one decimal."""
    return f"{round(seconds, 1):g}s"


def shutter_speed_to_exposure_time(apex_value: float) -> str:
    """
    Convert an APEX shutter speed value to a human readable exposure time.

    Exposures of one second or longer render as seconds (``"2s"``), shorter
    ones as a reciprocal fraction (``"1/250"``). A fraction whose rounded
    denominator is 1 (e.g. 0.8s) falls back to the seconds form. Values past
    the float range saturate to ``"infs"`` and ``"1/inf"``.

    Args:
        apex_value: Stored shutter speed value (log2(1 / t))

    Returns:
        Exposure time label
    """
    seconds = _pow2(-apex_value)
    if seconds >= 1:
        return format_seconds(seconds)

    reciprocal = _pow2(apex_value)
    if math.isinf(reciprocal):
        return "1/inf"
    denominator = round_denominator(reciprocal)
    if denominator <= 1:
        return format_seconds(seconds)
    return f"1/{denominator}"


def format_f_number(apex_value: float, prefix: str = "") -> str:
    """Render an APEX aperture as an f-number with one decimal, e.g. ``f/2.8``."""
    return f"{prefix}{aperture_to_f_number(apex_value):.1f}"


def parse_f_number(text: str) -> float:
    """
    Parse a rendered f-number (``"2.8"`` or ``"f/2.8"``) back to a float.

    Raises:
        ValueError: If the text is not a number
    """
    text = text.strip()
    if text.lower().startswith(APERTURE_PREFIX):
        text = text[len(APERTURE_PREFIX):]
    return float(text)


def format_number(value: Number) -> str:
    """Render a stored number without a trailing ``.0`` for integral floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_focal_length(value: Union[Number, str]) -> str:
    """Append the focal length unit to a stored focal length."""
    if isinstance(value, str):
        return f"{value}{FOCAL_LENGTH_UNIT}"
    return f"{format_number(value)}{FOCAL_LENGTH_UNIT}"
