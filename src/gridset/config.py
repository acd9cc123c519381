from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .bbox import BoundingBox
from .factory import build_grid_set, build_grid_set_from_levels
from .grid import GridSetResult
from .settings import GridSetSettings, _absolute, _resolve_config_dir
from .srs import get_srs

DEFAULT_GRIDSETS_CONFIG_NAME: Final[str] = "gridsets.yaml"
DEFAULT_GRIDSETS_CONFIG_ENV: Final[str] = "GRIDSET_CONFIG"


class GridSetDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    srs: str
    extent: tuple[float, float, float, float]
    align_top_left: bool = False
    levels: Optional[int] = Field(default=None, gt=0)
    resolutions: Optional[list[float]] = None
    scale_denominators: Optional[list[float]] = None
    meters_per_unit: Optional[float] = Field(default=None, gt=0)
    pixel_size: Optional[float] = Field(default=None, gt=0)
    tile_width: Optional[int] = Field(default=None, gt=0)
    tile_height: Optional[int] = Field(default=None, gt=0)
    y_coordinate_first: bool = False
    level_names: Optional[list[Optional[str]]] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        normalized = (value or "").strip()
        if normalized == "":
            raise ValueError("name must not be empty")
        return normalized

    @field_validator("srs", mode="before")
    @classmethod
    def _normalize_srs(cls, value: Any) -> str:
        return get_srs(value).to_string()

    @field_validator("extent", mode="before")
    @classmethod
    def _parse_extent(cls, value: Any) -> Any:
        if isinstance(value, str):
            return BoundingBox.from_sequence(value).to_tuple()
        return value

    @model_validator(mode="after")
    def _validate_pyramid_source(self) -> "GridSetDefinition":
        given = [
            key
            for key in ("levels", "resolutions", "scale_denominators")
            if getattr(self, key) is not None
        ]
        if len(given) > 1:
            raise ValueError(
                f"gridset {self.name!r}: only one of levels, resolutions or "
                f"scale_denominators may be set, got {given}"
            )
        if self.level_names is not None and self.resolutions is None and self.scale_denominators is None:
            raise ValueError(
                f"gridset {self.name!r}: level_names requires resolutions or scale_denominators"
            )
        return self

    def bounding_box(self) -> BoundingBox:
        return BoundingBox(*self.extent)


class GridSetsConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    gridsets: list[GridSetDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "GridSetsConfigFile":
        seen: set[str] = set()
        duplicates: list[str] = []
        for definition in self.gridsets:
            if definition.name in seen:
                duplicates.append(definition.name)
            seen.add(definition.name)
        if duplicates:
            raise ValueError(f"Duplicate gridset names: {sorted(set(duplicates))}")
        return self

    def get(self, name: str) -> Optional[GridSetDefinition]:
        for definition in self.gridsets:
            if definition.name == name:
                return definition
        return None


def _resolve_config_path(
    path: Optional[Union[str, Path]], settings: Optional[GridSetSettings] = None
) -> Path:
    """Pick the gridsets file: ``path``, then ``$GRIDSET_CONFIG``, then the config dir."""

    explicit = path if path is not None else os.environ.get(DEFAULT_GRIDSETS_CONFIG_ENV)
    if explicit:
        return _absolute(Path(explicit))
    return _resolve_config_dir(settings) / DEFAULT_GRIDSETS_CONFIG_NAME


def _parse_yaml(text: str, *, source: Path) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to load gridsets YAML: {source}") from exc

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValueError(f"gridsets config must be a mapping: {source}")
    return data


def load_gridsets_config(
    path: Optional[Union[str, Path]] = None, *, settings: Optional[GridSetSettings] = None
) -> GridSetsConfigFile:
    config_path = _resolve_config_path(path, settings)
    if not config_path.is_file():
        raise FileNotFoundError(f"gridsets config file not found: {config_path}")

    raw = config_path.read_text(encoding="utf-8")
    data = dict(_parse_yaml(raw, source=config_path))

    try:
        return GridSetsConfigFile.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid gridsets config ({config_path}): {exc}") from exc


@lru_cache(maxsize=8)
def _get_gridsets_config_cached(
    config_path: str, mtime_ns: int, size: int
) -> GridSetsConfigFile:
    _ = (mtime_ns, size)
    return load_gridsets_config(config_path)


def get_gridsets_config(
    path: Optional[Union[str, Path]] = None, *, settings: Optional[GridSetSettings] = None
) -> GridSetsConfigFile:
    resolved = _resolve_config_path(path, settings)
    try:
        stat = resolved.stat()
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"gridsets config file not found: {resolved}") from exc

    return _get_gridsets_config_cached(str(resolved), stat.st_mtime_ns, stat.st_size)


get_gridsets_config.cache_clear = _get_gridsets_config_cached.cache_clear  # type: ignore[attr-defined]


def build_from_definition(
    definition: GridSetDefinition, settings: Optional[GridSetSettings] = None
) -> GridSetResult:
    """Build the grid set a config entry describes.

    Values the entry leaves out come from ``settings``; an entry with neither
    levels, resolutions nor scale denominators gets ``settings.default_levels``
    levels.
    """

    settings = settings or GridSetSettings()
    tile_width = definition.tile_width or settings.tile_size
    tile_height = definition.tile_height or settings.tile_size
    pixel_size = definition.pixel_size or settings.pixel_size

    if definition.resolutions is not None or definition.scale_denominators is not None:
        return build_grid_set(
            definition.name,
            definition.srs,
            definition.bounding_box(),
            align_top_left=definition.align_top_left,
            resolutions=definition.resolutions,
            scale_denominators=definition.scale_denominators,
            meters_per_unit=definition.meters_per_unit,
            pixel_size=pixel_size,
            level_names=definition.level_names,
            tile_width=tile_width,
            tile_height=tile_height,
            y_coordinate_first=definition.y_coordinate_first,
        )

    return build_grid_set_from_levels(
        definition.name,
        definition.srs,
        definition.bounding_box(),
        levels=definition.levels or settings.default_levels,
        align_top_left=definition.align_top_left,
        meters_per_unit=definition.meters_per_unit,
        pixel_size=pixel_size,
        tile_width=tile_width,
        tile_height=tile_height,
        y_coordinate_first=definition.y_coordinate_first,
    )


def build_all(
    config: GridSetsConfigFile, settings: Optional[GridSetSettings] = None
) -> dict[str, GridSetResult]:
    settings = settings or GridSetSettings()
    return {
        definition.name: build_from_definition(definition, settings)
        for definition in config.gridsets
    }
