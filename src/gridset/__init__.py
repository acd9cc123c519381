from __future__ import annotations

from .bbox import BoundingBox
from .errors import InvalidArgumentError, UnitAssumptionWarning
from .factory import build_grid_set, build_grid_set_from_levels
from .grid import Grid, GridSet, GridSetResult
from .srs import EPSG3857, EPSG4326, EPSG900913, SRS, get_srs
from .units import DEFAULT_PIXEL_SIZE_METER, EPSG3857_TO_METERS, EPSG4326_TO_METERS

__all__ = [
    "BoundingBox",
    "DEFAULT_PIXEL_SIZE_METER",
    "EPSG3857",
    "EPSG3857_TO_METERS",
    "EPSG4326",
    "EPSG4326_TO_METERS",
    "EPSG900913",
    "Grid",
    "GridSet",
    "GridSetResult",
    "InvalidArgumentError",
    "SRS",
    "UnitAssumptionWarning",
    "build_grid_set",
    "build_grid_set_from_levels",
    "get_srs",
]
