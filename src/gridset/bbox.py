from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence, Union

from .errors import InvalidArgumentError


@dataclass
class BoundingBox:
    """A rectangle in SRS units.

    Unlike the tile-pyramid types this box is mutable: the extent autosizer
    grows a copy of it to a whole number of tiles.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_sequence(cls, values: Union[str, Sequence[float]]) -> "BoundingBox":
        if isinstance(values, str):
            parts = [p.strip() for p in values.split(",")]
        else:
            parts = list(values)
        if len(parts) != 4:
            raise InvalidArgumentError(
                f"Expected 4 ordinates (minx, miny, maxx, maxy), got {len(parts)}: {values!r}"
            )
        try:
            min_x, min_y, max_x, max_y = (float(p) for p in parts)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Invalid bounding box: {values!r}") from exc
        return cls(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def is_null(self) -> bool:
        ordinates = self.to_tuple()
        if any(math.isnan(v) for v in ordinates):
            return True
        return self.min_x > self.max_x or self.min_y > self.max_y

    def is_sane(self) -> bool:
        if not all(math.isfinite(v) for v in self.to_tuple()):
            return False
        width, height = self.width, self.height
        return math.isfinite(width) and math.isfinite(height) and width > 0 and height > 0

    def copy(self) -> "BoundingBox":
        return replace(self)

    def to_tuple(self) -> tuple[float, float, float, float]:
        return (
            float(self.min_x),
            float(self.min_y),
            float(self.max_x),
            float(self.max_y),
        )

    def __str__(self) -> str:
        return ",".join(repr(v) for v in self.to_tuple())
