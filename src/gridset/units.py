from __future__ import annotations

import math
from typing import Final, Optional, Sequence, Union

import numpy as np

from .srs import EPSG3857, EPSG4326, SRS

# Reference pixel size of 0.28mm, i.e. 90.7 DPI.
DEFAULT_PIXEL_SIZE_METER: Final[float] = 0.00028

# Equatorial circumference of the WGS84 ellipsoid divided by 360 degrees.
EPSG4326_TO_METERS: Final[float] = 6378137.0 * 2.0 * math.pi / 360.0
EPSG3857_TO_METERS: Final[float] = 1.0

METERS_PER_INCH: Final[float] = 0.0254

ArrayLike = Union[Sequence[float], np.ndarray]


def default_meters_per_unit(srs: SRS) -> Optional[float]:
    """Meters per SRS unit for the well-known references, None otherwise."""

    if srs == EPSG4326:
        return EPSG4326_TO_METERS
    if srs == EPSG3857:
        return EPSG3857_TO_METERS
    return None


def resolutions_to_scale_denominators(
    resolutions: ArrayLike, meters_per_unit: float
) -> np.ndarray:
    """Scale denominators at the reference pixel size.

    The caller's pixel size is not an input: reported scales are
    always normalized to ``DEFAULT_PIXEL_SIZE_METER``.
    """

    res = np.asarray(resolutions, dtype=np.float64)
    return res * float(meters_per_unit) / DEFAULT_PIXEL_SIZE_METER


def scale_denominators_to_resolutions(
    scale_denominators: ArrayLike, pixel_size: float, meters_per_unit: float
) -> np.ndarray:
    scales = np.asarray(scale_denominators, dtype=np.float64)
    return float(pixel_size) * (scales / float(meters_per_unit))


def pixel_size_to_dpi(pixel_size: float) -> float:
    return METERS_PER_INCH / float(pixel_size)
