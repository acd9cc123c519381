from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final, Union

from .errors import InvalidArgumentError

_SRS_RE: Final[re.Pattern[str]] = re.compile(r"^(?:EPSG:)?(\d+)$", re.IGNORECASE)

# Spherical mercator has been published under several codes over the years.
SPHERICAL_MERCATOR_CODES: Final[tuple[int, ...]] = (3857, 900913, 3785, 102100, 102113)


@dataclass(frozen=True, eq=False)
class SRS:
    """A spatial reference identified by its EPSG number.

    Equality and hashing use the canonical number, so every spherical mercator
    code compares equal to every other (``EPSG:900913 == EPSG:3857``).
    ``aliases`` lists the other codes published for the same reference.
    """

    number: int
    aliases: tuple[int, ...] = field(default=())

    def __post_init__(self) -> None:
        if int(self.number) <= 0:
            raise InvalidArgumentError(f"Invalid EPSG number: {self.number}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SRS):
            return NotImplemented
        return self.canonical_number == other.canonical_number

    def __hash__(self) -> int:
        return hash(self.canonical_number)

    @property
    def canonical_number(self) -> int:
        return _CANONICAL_NUMBERS.get(self.number, self.number)

    def to_string(self) -> str:
        return f"EPSG:{self.number}"

    def __str__(self) -> str:
        return self.to_string()


def _mercator(number: int) -> SRS:
    return SRS(number, tuple(code for code in SPHERICAL_MERCATOR_CODES if code != number))


EPSG4326: Final[SRS] = SRS(4326)
EPSG3857: Final[SRS] = _mercator(3857)
EPSG900913: Final[SRS] = _mercator(900913)

_KNOWN: Final[dict[int, SRS]] = {
    EPSG4326.number: EPSG4326,
    EPSG3857.number: EPSG3857,
    EPSG900913.number: EPSG900913,
}

_CANONICAL_NUMBERS: Final[dict[int, int]] = {
    code: 3857 for code in SPHERICAL_MERCATOR_CODES
}


def get_srs(value: Union[SRS, int, str]) -> SRS:
    """Resolve ``value`` to an SRS, preferring the well-known instances."""

    if isinstance(value, SRS):
        return value
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid SRS: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        match = _SRS_RE.match(value.strip())
        if match is None:
            raise InvalidArgumentError(f"Invalid SRS: {value!r}")
        number = int(match.group(1))
    else:
        raise InvalidArgumentError(f"Invalid SRS: {value!r}")

    known = _KNOWN.get(number)
    if known is not None:
        return known
    return SRS(number)
