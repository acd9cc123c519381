from __future__ import annotations

import copy
import logging
import math
import pickle

import numpy as np
import pytest

from gridset.bbox import BoundingBox
from gridset.errors import InvalidArgumentError, UnitAssumptionWarning
from gridset.factory import build_grid_set
from gridset.srs import EPSG4326, SRS
from gridset.units import DEFAULT_PIXEL_SIZE_METER, EPSG4326_TO_METERS


def _world() -> BoundingBox:
    return BoundingBox(-180.0, -90.0, 180.0, 90.0)


def test_resolution_driven_levels() -> None:
    result = build_grid_set(
        "EPSG:4326",
        EPSG4326,
        _world(),
        resolutions=[0.703125, 0.3515625, 0.17578125],
        tile_width=256,
        tile_height=256,
    )
    grid_set = result.grid_set

    assert result.warnings == ()
    assert grid_set.resolutions_preserved is True
    assert grid_set.scale_warning is False
    assert grid_set.meters_per_unit == pytest.approx(EPSG4326_TO_METERS)
    assert grid_set.num_levels == 3
    assert [g.name for g in grid_set.levels] == ["EPSG:4326:0", "EPSG:4326:1", "EPSG:4326:2"]
    assert [(g.num_tiles_wide, g.num_tiles_high) for g in grid_set.levels] == [
        (2, 1),
        (4, 2),
        (8, 4),
    ]
    assert grid_set.levels[0].scale_denominator == pytest.approx(279541132.0143589)


def test_scale_driven_levels() -> None:
    scales = [500_000_000.0, 250_000_000.0, 100_000_000.0]
    result = build_grid_set(
        "GlobalCRS84Scale",
        "EPSG:4326",
        _world(),
        scale_denominators=scales,
    )
    grid_set = result.grid_set

    assert grid_set.resolutions_preserved is False
    assert grid_set.scale_denominators == tuple(scales)
    expected = [DEFAULT_PIXEL_SIZE_METER * s / EPSG4326_TO_METERS for s in scales]
    assert np.allclose(grid_set.resolutions, expected, rtol=1e-12)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"resolutions": [100.0, 10.0, 1.0, 0.1]},
        {"scale_denominators": [1e6, 5e5, 2.5e5, 1e3]},
    ],
)
def test_resolutions_strictly_decrease(kwargs) -> None:
    result = build_grid_set(
        "local", SRS(2154), BoundingBox(0, 0, 1000, 1000), meters_per_unit=1.0, **kwargs
    )
    resolutions = result.grid_set.resolutions
    for i in range(1, len(resolutions)):
        assert resolutions[i] < resolutions[i - 1]


def test_round_trip_resolution_scale_resolution() -> None:
    original = [156543.03392804097, 78271.51696402048, 0.29858214173896974]
    world = BoundingBox(-20037508.34, -20037508.34, 20037508.34, 20037508.34)
    first = build_grid_set("EPSG:3857", "EPSG:3857", world, resolutions=original).grid_set

    second = build_grid_set(
        "EPSG:3857",
        "EPSG:3857",
        first.original_extent,
        scale_denominators=first.scale_denominators,
        pixel_size=DEFAULT_PIXEL_SIZE_METER,
    ).grid_set

    for expected, actual in zip(original, second.resolutions):
        assert actual == pytest.approx(expected, rel=1e-9)


def test_scale_from_resolution_uses_reference_pixel_size() -> None:
    by_res = build_grid_set(
        "g", "EPSG:3857", BoundingBox(0, 0, 256, 256), resolutions=[1.0], pixel_size=0.001
    ).grid_set
    assert by_res.levels[0].scale_denominator == pytest.approx(1.0 / DEFAULT_PIXEL_SIZE_METER)

    by_scale = build_grid_set(
        "g", "EPSG:3857", BoundingBox(0, 0, 256, 256), scale_denominators=[1000.0], pixel_size=0.001
    ).grid_set
    assert by_scale.levels[0].resolution == pytest.approx(1.0)
    assert by_scale.pixel_size == 0.001


def test_rejects_both_resolutions_and_scales() -> None:
    with pytest.raises(InvalidArgumentError, match="Only one of resolutions or scale denominators"):
        build_grid_set(
            "g", EPSG4326, _world(), resolutions=[1.0], scale_denominators=[1000.0]
        )


def test_rejects_neither_resolutions_nor_scales() -> None:
    with pytest.raises(InvalidArgumentError, match="Either resolutions or scale denominators"):
        build_grid_set("g", EPSG4326, _world())


def test_non_monotonic_resolutions_cite_index() -> None:
    with pytest.raises(InvalidArgumentError, match=r"Res\[1\] == 20\.0, Res\[0\] == 10\.0"):
        build_grid_set("g", EPSG4326, _world(), resolutions=[10.0, 20.0])


def test_equal_scale_denominators_are_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match=r"Scale\[2\]"):
        build_grid_set("g", EPSG4326, _world(), scale_denominators=[3e6, 2e6, 2e6])


@pytest.mark.parametrize(
    "values", [[], [1.0, math.nan], [1.0, -1.0], [math.inf, 1.0], ["a"]]
)
def test_rejects_invalid_resolution_values(values) -> None:
    with pytest.raises(InvalidArgumentError):
        build_grid_set("g", EPSG4326, _world(), resolutions=values)


def test_exact_tile_multiple_does_not_add_a_tile() -> None:
    resolution = 0.1
    tiles = 3
    span = tiles * 256 * resolution  # 76.80000000000001 in binary floating point
    extent = BoundingBox(0.0, 0.0, span, span)

    grid = build_grid_set(
        "g", "EPSG:3857", extent, resolutions=[resolution], tile_width=256, tile_height=256
    ).grid_set.levels[0]

    assert grid.num_tiles_wide == tiles
    assert grid.num_tiles_high == tiles


def test_partial_tile_rounds_up() -> None:
    grid = build_grid_set(
        "g", "EPSG:3857", BoundingBox(0.0, 0.0, 300.0, 100.0), resolutions=[1.0]
    ).grid_set.levels[0]

    assert grid.num_tiles_wide == 2
    assert grid.num_tiles_high == 1


def test_rectangular_tiles() -> None:
    grid = build_grid_set(
        "g",
        "EPSG:3857",
        BoundingBox(0.0, 0.0, 1024.0, 1024.0),
        resolutions=[1.0],
        tile_width=512,
        tile_height=256,
    ).grid_set.levels[0]

    assert (grid.num_tiles_wide, grid.num_tiles_high) == (2, 4)


@pytest.mark.parametrize(
    "extent",
    [
        BoundingBox(0.0, 0.0, 0.0, 10.0),
        BoundingBox(0.0, 0.0, 10.0, 0.0),
        BoundingBox(10.0, 0.0, 0.0, 10.0),
        BoundingBox(0.0, 0.0, math.inf, 10.0),
        BoundingBox(math.nan, 0.0, 10.0, 10.0),
    ],
)
def test_degenerate_extent_is_rejected(extent) -> None:
    with pytest.raises(InvalidArgumentError, match="Extent is invalid"):
        build_grid_set("g", EPSG4326, extent, resolutions=[1.0])


def test_missing_required_arguments() -> None:
    with pytest.raises(InvalidArgumentError, match="name is null"):
        build_grid_set("", EPSG4326, _world(), resolutions=[1.0])
    with pytest.raises(InvalidArgumentError, match="srs is null"):
        build_grid_set("g", None, _world(), resolutions=[1.0])
    with pytest.raises(InvalidArgumentError, match="extent is null"):
        build_grid_set("g", EPSG4326, None, resolutions=[1.0])


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"tile_width": 0}, "tile_width"),
        ({"tile_height": -256}, "tile_height"),
        ({"pixel_size": 0.0}, "pixel_size"),
        ({"meters_per_unit": -1.0}, "meters_per_unit"),
        ({"meters_per_unit": math.nan}, "meters_per_unit"),
    ],
)
def test_rejects_non_positive_parameters(kwargs, match) -> None:
    with pytest.raises(InvalidArgumentError, match=match):
        build_grid_set("g", EPSG4326, _world(), resolutions=[1.0], **kwargs)


def test_explicit_level_names() -> None:
    grid_set = build_grid_set(
        "g",
        EPSG4326,
        _world(),
        resolutions=[1.0, 0.5, 0.25],
        level_names=["coarse", None, "fine"],
    ).grid_set

    assert [g.name for g in grid_set.levels] == ["coarse", "g:1", "fine"]


def test_level_names_length_must_match() -> None:
    with pytest.raises(InvalidArgumentError, match="Expected 2 level names, got 1"):
        build_grid_set("g", EPSG4326, _world(), resolutions=[1.0, 0.5], level_names=["a"])


def test_explicit_meters_per_unit_wins() -> None:
    grid_set = build_grid_set(
        "g", EPSG4326, _world(), resolutions=[1.0], meters_per_unit=2.0
    ).grid_set

    assert grid_set.meters_per_unit == 2.0
    assert grid_set.levels[0].scale_denominator == pytest.approx(2.0 / DEFAULT_PIXEL_SIZE_METER)


def test_mercator_aliases_use_meters(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="gridset.factory"):
        result = build_grid_set(
            "g", "EPSG:900913", BoundingBox(0, 0, 1000, 1000), resolutions=[1.0]
        )

    assert result.grid_set.meters_per_unit == 1.0
    assert result.warnings == ()
    assert caplog.records == []


def test_unknown_srs_scale_driven_sets_scale_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="gridset.factory"):
        result = build_grid_set(
            "local", "EPSG:2154", BoundingBox(0, 0, 1000, 1000), scale_denominators=[1e4, 5e3]
        )

    assert result.grid_set.scale_warning is True
    assert result.grid_set.meters_per_unit == 1.0
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert isinstance(warning, UnitAssumptionWarning)
    assert warning.gridset_name == "local"
    assert warning.scale_driven is True
    assert warning.assumed_meters_per_unit == 1.0
    assert "assuming 1m/unit" in warning.message
    assert any("local" in r.getMessage() for r in caplog.records)


def test_unknown_srs_resolution_driven_warns_without_flag(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="gridset.factory"):
        result = build_grid_set(
            "local", "EPSG:2154", BoundingBox(0, 0, 1000, 1000), resolutions=[10.0, 5.0]
        )

    assert result.grid_set.scale_warning is False
    assert result.has_warnings
    assert result.warnings[0].scale_driven is False
    assert "WMTS scale output" in result.warnings[0].message
    assert len(caplog.records) == 1
    assert caplog.records[0].levelno == logging.WARNING


def test_extent_is_stored_by_reference_and_flags_are_kept() -> None:
    extent = _world()
    grid_set = build_grid_set(
        "g",
        EPSG4326,
        extent,
        resolutions=[1.0],
        align_top_left=True,
        y_coordinate_first=True,
    ).grid_set

    assert grid_set.original_extent is extent
    assert grid_set.align_top_left is True
    assert grid_set.y_coordinate_first is True
    assert grid_set.srs is EPSG4326


def test_get_grid_and_dpi() -> None:
    grid_set = build_grid_set("g", EPSG4326, _world(), resolutions=[1.0, 0.5]).grid_set

    assert grid_set.get_grid(1).resolution == 0.5
    assert grid_set.dots_per_inch == pytest.approx(90.714, abs=1e-3)
    with pytest.raises(InvalidArgumentError, match="has no level 2"):
        grid_set.get_grid(2)
    with pytest.raises(InvalidArgumentError):
        grid_set.get_grid(-1)


def test_grid_set_is_immutable() -> None:
    grid_set = build_grid_set("g", EPSG4326, _world(), resolutions=[1.0]).grid_set

    with pytest.raises(AttributeError):
        grid_set.name = "other"  # type: ignore[misc]
    with pytest.raises(AttributeError):
        grid_set.levels[0].resolution = 2.0  # type: ignore[misc]


def test_overflowing_scale_denominator_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match="Derived scale denominators are invalid"):
        build_grid_set("g", EPSG4326, _world(), resolutions=[1e305])


def test_extent_with_overflowing_width_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError, match="Extent is invalid"):
        build_grid_set("g", EPSG4326, BoundingBox(-1e308, 0.0, 1e308, 1.0), resolutions=[1.0])


@pytest.mark.parametrize("scale_driven", [True, False])
def test_unit_assumption_warning_copies_and_pickles(scale_driven) -> None:
    warning = build_grid_set(
        "local",
        "EPSG:2154",
        BoundingBox(0, 0, 1000, 1000),
        **({"scale_denominators": [1e4]} if scale_driven else {"resolutions": [10.0]}),
    ).warnings[0]

    for clone in (copy.copy(warning), copy.deepcopy(warning), pickle.loads(pickle.dumps(warning))):
        assert isinstance(clone, UnitAssumptionWarning)
        assert clone.gridset_name == "local"
        assert clone.assumed_meters_per_unit == 1.0
        assert clone.scale_driven is scale_driven
        assert clone.message == warning.message
