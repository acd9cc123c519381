from __future__ import annotations

from typing import Final

from .bbox import BoundingBox
from .factory import DEFAULT_TILE_SIZE, build_grid_set_from_levels
from .grid import GridSetResult
from .srs import EPSG4326, EPSG900913
from .units import DEFAULT_PIXEL_SIZE_METER

WORLD4326: Final[tuple[float, float, float, float]] = (-180.0, -90.0, 180.0, 90.0)
WORLD3857: Final[tuple[float, float, float, float]] = (
    -20037508.34,
    -20037508.34,
    20037508.34,
    20037508.34,
)


def world_epsg4326(levels: int, *, tile_size: int = DEFAULT_TILE_SIZE) -> GridSetResult:
    """Whole-world geographic grid set, two tiles wide at level 0 for 256px tiles."""

    return build_grid_set_from_levels(
        "EPSG:4326",
        EPSG4326,
        BoundingBox(*WORLD4326),
        levels=levels,
        align_top_left=False,
        pixel_size=DEFAULT_PIXEL_SIZE_METER,
        tile_width=tile_size,
        tile_height=tile_size,
        y_coordinate_first=True,
    )


def world_epsg3857(levels: int, *, tile_size: int = DEFAULT_TILE_SIZE) -> GridSetResult:
    """Whole-world spherical mercator grid set, one tile at level 0."""

    return build_grid_set_from_levels(
        "EPSG:900913",
        EPSG900913,
        BoundingBox(*WORLD3857),
        levels=levels,
        align_top_left=False,
        pixel_size=DEFAULT_PIXEL_SIZE_METER,
        tile_width=tile_size,
        tile_height=tile_size,
        y_coordinate_first=False,
    )
