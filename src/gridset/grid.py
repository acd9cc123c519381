from __future__ import annotations

from dataclasses import dataclass

from .bbox import BoundingBox
from .errors import InvalidArgumentError, UnitAssumptionWarning
from .srs import SRS
from .units import pixel_size_to_dpi


@dataclass(frozen=True)
class Grid:
    """One pyramid level."""

    name: str
    resolution: float
    scale_denominator: float
    num_tiles_wide: int
    num_tiles_high: int


@dataclass(frozen=True)
class GridSet:
    """A tile pyramid over ``original_extent``, levels ordered by index."""

    name: str
    srs: SRS
    tile_width: int
    tile_height: int
    original_extent: BoundingBox
    meters_per_unit: float
    pixel_size: float
    levels: tuple[Grid, ...]
    resolutions_preserved: bool
    align_top_left: bool = False
    y_coordinate_first: bool = False
    scale_warning: bool = False

    @property
    def num_levels(self) -> int:
        return len(self.levels)

    def get_grid(self, level: int) -> Grid:
        if not (0 <= level < len(self.levels)):
            raise InvalidArgumentError(
                f"GridSet {self.name} has no level {level}; levels: 0..{len(self.levels) - 1}"
            )
        return self.levels[level]

    @property
    def resolutions(self) -> tuple[float, ...]:
        return tuple(grid.resolution for grid in self.levels)

    @property
    def scale_denominators(self) -> tuple[float, ...]:
        return tuple(grid.scale_denominator for grid in self.levels)

    @property
    def dots_per_inch(self) -> float:
        return pixel_size_to_dpi(self.pixel_size)


@dataclass(frozen=True)
class GridSetResult:
    """A built grid set together with the advisories raised while building it."""

    grid_set: GridSet
    warnings: tuple[UnitAssumptionWarning, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
