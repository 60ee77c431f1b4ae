# Mazegen Layout Planner: carved grid + config -> placement instructions
#
# Pure: reads the grid and config, consumes draws from the supplied random
# source, and returns instructions. Nothing touches the scene host here.
#
# Batches are emitted in build order so the builder can suspend between them:
#   ground, roof, one batch per outer-wall pair, one batch per obstacle row,
#   one batch per reflection probe.
#
# Public API:
# - plan_layout_batches(grid, config, rng) -> Iterator[list[PlacementInstruction]]
# - plan_layout(grid, config, rng) -> list[PlacementInstruction]
# - outer_wall_count(width, depth) -> int
# - estimate_object_count(width, depth) -> int

from __future__ import annotations

import logging
from typing import Iterator, List

from ..core.config import ConfigError, MazeConfig, ValidationIssue
from ..core.grid import CellState, Grid
from .instructions import (
    GroundPlane,
    Light,
    OuterWall,
    PlacementInstruction,
    ReflectionProbe,
    RoofPlane,
    Structure,
    Wall,
)

logger = logging.getLogger(__name__)

WALL_THICKNESS = 0.2
PROBE_GRID = 5           # probes per axis
PROBE_SPACING = 5.0
PROBE_SIZE = (2.1, 2.1, 2.1)


def outer_wall_count(width: int, depth: int) -> int:
    return 2 * (width + 1) + 2 * (depth + 1)


def estimate_object_count(width: int, depth: int) -> int:
    """Upper bound on wall-like objects: one per cell plus the perimeter."""
    return width * depth + 2 * width + 2 * depth


def _random_yaw(rng) -> float:
    return float(rng.randrange(4) * 90)


def _plan_ground(config: MazeConfig) -> GroundPlane:
    L = float(config.wall_length)
    width_m = config.width * L
    depth_m = config.depth * L
    return GroundPlane(
        position=(width_m / 2.0 - L / 2.0, -config.height / 2.0, depth_m / 2.0 - L / 2.0),
        size=(width_m, depth_m),
        tiling=(float(config.width), float(config.depth)),
    )


def _plan_roof(config: MazeConfig) -> RoofPlane:
    L = float(config.wall_length)
    width_m = config.width * L
    depth_m = config.depth * L
    return RoofPlane(
        position=(width_m / 2.0 - L / 2.0, config.height / 2.0, depth_m / 2.0 - L / 2.0),
        size=(width_m, depth_m),
        tiling=(float(config.width), float(config.depth)),
    )


def _plan_outer_walls(config: MazeConfig) -> Iterator[List[PlacementInstruction]]:
    L = float(config.wall_length)
    H = float(config.height)
    scale = (WALL_THICKNESS, H, L)
    ox, oz = -L / 2.0, -L / 2.0

    for i in range(config.width + 1):
        x = i * L + ox
        yield [
            OuterWall(position=(x, 0.0, oz), rotation=(0.0, 90.0, 0.0), scale=scale),
            OuterWall(position=(x, 0.0, config.depth * L + oz), rotation=(0.0, 90.0, 0.0), scale=scale),
        ]

    for i in range(config.depth + 1):
        z = i * L + oz
        yield [
            OuterWall(position=(ox, 0.0, z), rotation=(0.0, 0.0, 0.0), scale=scale),
            OuterWall(position=(config.width * L + ox, 0.0, z), rotation=(0.0, 0.0, 0.0), scale=scale),
        ]


def _plan_obstacle_row(grid: Grid, x: int, config: MazeConfig, rng) -> List[PlacementInstruction]:
    L = float(config.wall_length)
    H = float(config.height)
    wall_pct = config.wall_spawn_percentage
    struct_pct = config.structure_spawn_percentage
    row: List[PlacementInstruction] = []

    for z in range(grid.depth):
        if grid.get(x, z) != CellState.WALL:
            continue
        roll = rng.randrange(100)
        light = Light(position=((x + 0.5) * L, H * 0.5, (z + 0.5) * L))

        if roll < wall_pct:
            row.append(Wall(
                position=(x * L, 0.0, z * L),
                rotation=(0.0, _random_yaw(rng), 0.0),
                scale=(WALL_THICKNESS, H, L),
            ))
            row.append(light)
        elif roll < wall_pct + struct_pct:
            if not config.structures:
                raise ConfigError(
                    "Structure placement rolled but no structure templates are configured",
                    [ValidationIssue("$.structures", "no structure templates configured", "required")],
                )
            index = rng.randrange(len(config.structures))
            base = config.structures[index].base_scale
            row.append(Structure(
                template_index=index,
                position=(x * L, 0.0, z * L),
                rotation=(0.0, _random_yaw(rng), 0.0),
                scale=(float(base[0]), H, float(base[2])) if base is not None else (1.0, H, 1.0),
                inherit_footprint=base is None,
            ))
            row.append(light)
    return row


def _plan_reflection_probes(config: MazeConfig) -> Iterator[List[PlacementInstruction]]:
    probes = config.reflection_probes
    for i in range(PROBE_GRID):
        for j in range(PROBE_GRID):
            yield [ReflectionProbe(
                position=(i * PROBE_SPACING, config.height / 4.0, j * PROBE_SPACING),
                size=PROBE_SIZE,
                resolution=int(probes.resolution),
                box_projection=bool(probes.box_projection),
            )]


def plan_layout_batches(grid: Grid, config: MazeConfig, rng) -> Iterator[List[PlacementInstruction]]:
    """Yield instruction batches in build order (see module header)."""
    if (grid.width, grid.depth) != (config.width, config.depth):
        raise ValueError(
            f"Grid {grid.width}x{grid.depth} does not match config {config.width}x{config.depth}"
        )
    yield [_plan_ground(config)]
    yield [_plan_roof(config)]
    yield from _plan_outer_walls(config)
    for x in range(grid.width):
        yield _plan_obstacle_row(grid, x, config, rng)
    if config.reflection_probes.enabled:
        yield from _plan_reflection_probes(config)


def plan_layout(grid: Grid, config: MazeConfig, rng) -> List[PlacementInstruction]:
    instructions: List[PlacementInstruction] = []
    for batch in plan_layout_batches(grid, config, rng):
        instructions.extend(batch)
    logger.debug(f"Planned {len(instructions)} instruction(s) for {grid.width}x{grid.depth} maze")
    return instructions
