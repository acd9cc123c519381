from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .units import DEFAULT_PIXEL_SIZE_METER

_GRIDSET_PREFIX = "GRIDSET_"


class GridSetSettings(BaseSettings):
    """Defaults applied to grid set definitions that leave a value out.

    Every field can be overridden with a ``GRIDSET_``-prefixed environment
    variable, e.g. ``GRIDSET_DEFAULT_LEVELS=18``.
    """

    default_levels: int = Field(default=22, gt=0)
    tile_size: int = Field(default=256, gt=0)
    pixel_size: float = Field(default=DEFAULT_PIXEL_SIZE_METER, gt=0)
    config_dir: Optional[Path] = None

    model_config = SettingsConfigDict(env_prefix=_GRIDSET_PREFIX, extra="ignore")

    @field_validator("config_dir", mode="before")
    @classmethod
    def _blank_config_dir(cls, value: object) -> object:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


def _absolute(path: Path) -> Path:
    path = path.expanduser()
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def _resolve_config_dir(
    settings: Optional[GridSetSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    environ = environ or os.environ
    explicit = settings.config_dir if settings is not None else None
    if explicit is None:
        raw = environ.get(f"{_GRIDSET_PREFIX}CONFIG_DIR")
        explicit = Path(raw) if raw else None

    if explicit is not None:
        return _absolute(Path(explicit))

    return Path.cwd() / "config"
