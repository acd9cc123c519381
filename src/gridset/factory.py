"""Grid set construction.

``build_grid_set`` derives every pyramid level from explicit resolutions or
scale denominators. ``build_grid_set_from_levels`` picks a base resolution
and a whole-tile extent from a level count, then delegates to it.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Union

import numpy as np

from .bbox import BoundingBox
from .errors import InvalidArgumentError, UnitAssumptionWarning
from .grid import Grid, GridSet, GridSetResult
from .srs import SRS, get_srs
from .units import (
    DEFAULT_PIXEL_SIZE_METER,
    default_meters_per_unit,
    resolutions_to_scale_denominators,
    scale_denominators_to_resolutions,
)

logger = logging.getLogger(__name__)

# Share of a tile span ignored when counting tiles, so an extent that is an
# exact multiple of the span does not gain an extra tile from rounding noise.
TILE_COUNT_TOLERANCE = 0.01

DEFAULT_TILE_SIZE = 256


def _validate_positive_int(value: int, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidArgumentError(f"{field_name} must be a positive integer, got {value!r}")
    return int(value)


def _validate_positive_float(value: float, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"{field_name} must be a number, got {value!r}") from exc
    if not math.isfinite(number) or number <= 0:
        raise InvalidArgumentError(f"{field_name} must be a positive finite number, got {value!r}")
    return number


def _validate_extent(extent: Optional[BoundingBox]) -> BoundingBox:
    if extent is None:
        raise InvalidArgumentError("extent is null")
    if extent.is_null() or not extent.is_sane():
        raise InvalidArgumentError(f"Extent is invalid: {extent}")
    return extent


def _validate_decreasing(values: Sequence[float], *, label: str, short: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Each {label} must be a number: {values!r}") from exc
    if arr.ndim != 1 or arr.size == 0:
        raise InvalidArgumentError(f"At least one {label} is required")
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0):
        raise InvalidArgumentError(f"Each {label} must be a positive finite number: {arr.tolist()}")

    for i in range(1, arr.size):
        if arr[i] >= arr[i - 1]:
            raise InvalidArgumentError(
                f"Each {label} should be lower than its prior one. "
                f"{short}[{i}] == {float(arr[i])!r}, {short}[{i - 1}] == {float(arr[i - 1])!r}."
            )
    return arr


def _count_tiles(extent_span: float, tile_span: float, *, level: int, axis: str) -> int:
    tiles = (extent_span - tile_span * TILE_COUNT_TOLERANCE) / tile_span
    if not math.isfinite(tiles):
        raise InvalidArgumentError(
            f"Level {level} has no finite tile count along {axis}: "
            f"extent span {extent_span!r}, tile span {tile_span!r}"
        )
    return int(math.ceil(tiles))


def build_grid_set(
    name: str,
    srs: Union[SRS, int, str],
    extent: BoundingBox,
    *,
    align_top_left: bool = False,
    resolutions: Optional[Sequence[float]] = None,
    scale_denominators: Optional[Sequence[float]] = None,
    meters_per_unit: Optional[float] = None,
    pixel_size: float = DEFAULT_PIXEL_SIZE_METER,
    level_names: Optional[Sequence[Optional[str]]] = None,
    tile_width: int = DEFAULT_TILE_SIZE,
    tile_height: int = DEFAULT_TILE_SIZE,
    y_coordinate_first: bool = False,
) -> GridSetResult:
    """Build a grid set from explicit resolutions or scale denominators.

    Exactly one of ``resolutions`` / ``scale_denominators`` must be given and it
    must strictly decrease with the level index. The other quantity is derived
    per level: resolutions from scales use ``pixel_size``, scales from
    resolutions are always reported at ``DEFAULT_PIXEL_SIZE_METER``.

    Raises:
        InvalidArgumentError: on any precondition violation; nothing is built.
    """

    if not name:
        raise InvalidArgumentError("name is null")
    if srs is None:
        raise InvalidArgumentError("srs is null")
    resolved_srs = get_srs(srs)
    extent = _validate_extent(extent)

    if resolutions is None and scale_denominators is None:
        raise InvalidArgumentError("Either resolutions or scale denominators must be provided")
    if resolutions is not None and scale_denominators is not None:
        raise InvalidArgumentError(
            "Only one of resolutions or scale denominators should be provided, not both"
        )

    if resolutions is not None:
        res_arr = _validate_decreasing(resolutions, label="resolution", short="Res")
        scale_arr = None
        count = res_arr.size
    else:
        scale_arr = _validate_decreasing(
            scale_denominators, label="scale denominator", short="Scale"
        )
        res_arr = None
        count = scale_arr.size

    tile_width = _validate_positive_int(tile_width, "tile_width")
    tile_height = _validate_positive_int(tile_height, "tile_height")
    pixel_size = _validate_positive_float(pixel_size, "pixel_size")

    if level_names is not None and len(level_names) != count:
        raise InvalidArgumentError(
            f"Expected {count} level names, got {len(level_names)}"
        )

    warnings: list[UnitAssumptionWarning] = []
    scale_warning = False
    if meters_per_unit is None:
        known = default_meters_per_unit(resolved_srs)
        if known is None:
            warning = UnitAssumptionWarning(
                name, assumed_meters_per_unit=1.0, scale_driven=scale_arr is not None
            )
            logger.warning("%s", warning.message)
            warnings.append(warning)
            scale_warning = scale_arr is not None
            mpu = 1.0
        else:
            mpu = known
    else:
        mpu = _validate_positive_float(meters_per_unit, "meters_per_unit")

    with np.errstate(over="ignore", under="ignore"):
        if scale_arr is not None:
            res_arr = scale_denominators_to_resolutions(scale_arr, pixel_size, mpu)
        else:
            scale_arr = resolutions_to_scale_denominators(res_arr, mpu)

    if not np.all(np.isfinite(res_arr)) or np.any(res_arr <= 0):
        raise InvalidArgumentError(f"Derived resolutions are invalid: {res_arr.tolist()}")
    if not np.all(np.isfinite(scale_arr)) or np.any(scale_arr <= 0):
        raise InvalidArgumentError(f"Derived scale denominators are invalid: {scale_arr.tolist()}")

    levels: list[Grid] = []
    for i in range(count):
        resolution = float(res_arr[i])
        level_name = level_names[i] if level_names is not None else None
        levels.append(
            Grid(
                name=level_name if level_name is not None else f"{name}:{i}",
                resolution=resolution,
                scale_denominator=float(scale_arr[i]),
                num_tiles_wide=_count_tiles(
                    extent.width, tile_width * resolution, level=i, axis="x"
                ),
                num_tiles_high=_count_tiles(
                    extent.height, tile_height * resolution, level=i, axis="y"
                ),
            )
        )

    grid_set = GridSet(
        name=name,
        srs=resolved_srs,
        tile_width=tile_width,
        tile_height=tile_height,
        original_extent=extent,
        meters_per_unit=mpu,
        pixel_size=pixel_size,
        levels=tuple(levels),
        resolutions_preserved=resolutions is not None,
        align_top_left=bool(align_top_left),
        y_coordinate_first=bool(y_coordinate_first),
        scale_warning=scale_warning,
    )
    return GridSetResult(grid_set=grid_set, warnings=tuple(warnings))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _tiles_along(long_res: float, short_res: float, extent: BoundingBox) -> int:
    ratio = long_res / short_res if short_res > 0 else math.inf
    if not math.isfinite(ratio):
        raise InvalidArgumentError(f"Extent aspect ratio cannot be tiled: {extent}")
    return _round_half_up(ratio)


def build_grid_set_from_levels(
    name: str,
    srs: Union[SRS, int, str],
    extent: BoundingBox,
    *,
    levels: int,
    align_top_left: bool = False,
    meters_per_unit: Optional[float] = None,
    pixel_size: float = DEFAULT_PIXEL_SIZE_METER,
    tile_width: int = DEFAULT_TILE_SIZE,
    tile_height: int = DEFAULT_TILE_SIZE,
    y_coordinate_first: bool = False,
) -> GridSetResult:
    """Build a grid set of ``levels`` levels, each half the resolution of the last.

    Level 0 is laid out as a single row or column of tiles matching the aspect
    ratio of ``extent``. The extent is grown on the max-X side, and on the
    bottom (``align_top_left``) or top edge, to a whole number of tiles. The
    caller's box is left untouched.
    """

    levels = _validate_positive_int(levels, "levels")
    tile_width = _validate_positive_int(tile_width, "tile_width")
    tile_height = _validate_positive_int(tile_height, "tile_height")
    extent = _validate_extent(extent)

    res_x = extent.width / tile_width
    res_y = extent.height / tile_height

    if res_x <= res_y:
        # one tile wide by N tiles high
        tiles_wide = 1
        tiles_high = _tiles_along(res_y, res_x, extent)
        res_y = res_y / tiles_high
    else:
        # one tile high by N tiles wide
        tiles_high = 1
        tiles_wide = _tiles_along(res_x, res_y, extent)
        res_x = res_x / tiles_wide

    res = max(res_x, res_y)

    adjusted_width = tiles_wide * tile_width * res
    adjusted_height = tiles_high * tile_height * res

    adjusted = extent.copy()
    adjusted.max_x = adjusted.min_x + adjusted_width
    if align_top_left:
        adjusted.min_y = adjusted.max_y - adjusted_height
    else:
        adjusted.max_y = adjusted.min_y + adjusted_height

    logger.debug(
        "GridSet %s base layout %dx%d tiles, resolution %r, extent %s",
        name,
        tiles_wide,
        tiles_high,
        res,
        adjusted,
    )

    resolutions = [res]
    for _ in range(1, levels):
        resolutions.append(resolutions[-1] / 2)

    return build_grid_set(
        name,
        srs,
        adjusted,
        align_top_left=align_top_left,
        resolutions=resolutions,
        meters_per_unit=meters_per_unit,
        pixel_size=pixel_size,
        tile_width=tile_width,
        tile_height=tile_height,
        y_coordinate_first=y_coordinate_first,
    )
