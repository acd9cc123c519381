from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from .config import build_from_definition, load_gridsets_config
from .errors import InvalidArgumentError
from .settings import GridSetSettings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m gridset",
        description="Compute tile pyramid levels for the grid sets in a gridsets.yaml file.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to gridsets.yaml (default: $GRIDSET_CONFIG or <config dir>/gridsets.yaml)",
    )
    parser.add_argument(
        "--name",
        dest="names",
        action="append",
        default=[],
        help="Only report this grid set. May be repeated.",
    )
    parser.add_argument(
        "--default-levels",
        type=int,
        default=None,
        help="Level count for entries without levels/resolutions/scale_denominators",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable debug logging (default: false)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        overrides = {}
        if args.default_levels is not None:
            overrides["default_levels"] = args.default_levels
        settings = GridSetSettings(**overrides)
        config = load_gridsets_config(args.config, settings=settings)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    requested = list(args.names)
    definitions = config.gridsets
    if requested:
        missing = [name for name in requested if config.get(name) is None]
        if missing:
            print(f"error: unknown gridset(s): {', '.join(missing)}", file=sys.stderr)
            return 2
        definitions = [config.get(name) for name in requested]

    results = []
    for definition in definitions:
        try:
            results.append(build_from_definition(definition, settings))
        except InvalidArgumentError as exc:
            print(f"error: gridset {definition.name!r}: {exc}", file=sys.stderr)
            return 2

    # nothing is printed unless every selected grid set builds
    for result in results:
        for warning in result.warnings:
            print(
                json.dumps(
                    {"gridset": warning.gridset_name, "warning": warning.message},
                    ensure_ascii=False,
                ),
                file=sys.stderr,
            )

        grid_set = result.grid_set
        for level, grid in enumerate(grid_set.levels):
            print(
                json.dumps(
                    {
                        "gridset": grid_set.name,
                        "level": level,
                        "name": grid.name,
                        "resolution": grid.resolution,
                        "scale_denominator": grid.scale_denominator,
                        "tiles_wide": grid.num_tiles_wide,
                        "tiles_high": grid.num_tiles_high,
                    },
                    ensure_ascii=False,
                )
            )
    return 0
