#!/usr/bin/env python3
"""
Mazegen Maze Preview

Purpose:
- Run a full generation pass headless (dry-run scene host, no Blender needed)
- Print the carved grid as ASCII and a summary of what would be built
- Optionally emit the summary as JSON for scripting

Config:
  Reads the same config files as the add-on (see mazegen/core/config.py);
  command-line flags override individual fields.

Usage:
  python tools/maze_preview.py --width 21 --depth 15 --seed 7
  python tools/maze_preview.py --config my_maze.json --json
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict

# Import within repo context
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from mazegen.core.config import ConfigError, StructureTemplate, load_config  # noqa: E402
from mazegen.core.generator import GenerationResult, MazeGenerator  # noqa: E402
from mazegen.core.grid import CellState  # noqa: E402
from mazegen.utils.scene_host import DryRunSceneHost  # noqa: E402
from mazegen.utils.traversability import astar_path_length  # noqa: E402


def _far_corner(result: GenerationResult):
    """Last open room in row-major order: the natural exit for a preview."""
    last = (0, 0)
    for cell in result.grid.cells(CellState.OPEN):
        if cell[0] % 2 == 0 and cell[1] % 2 == 0:
            last = cell
    return last


def summarize(result: GenerationResult) -> Dict[str, Any]:
    goal = _far_corner(result)
    return {
        "request_id": result.request_id,
        "width": result.grid.width,
        "depth": result.grid.depth,
        "rooms_visited": result.rooms_visited,
        "open_cells": result.stats.open_cells,
        "wall_cells": result.stats.wall_cells,
        "perfect": result.stats.is_perfect,
        "max_depth_from_start": result.stats.max_depth_from_start,
        "exit": list(goal),
        "route_length": astar_path_length(result.grid, (0, 0), goal),
        "instructions": dict(sorted(result.counts.items())),
        "handles": result.handle_count,
        "duration_sec": round(result.duration_sec, 4),
    }


def main() -> int:
    ap = argparse.ArgumentParser(description="Mazegen headless maze preview")
    ap.add_argument("--config", type=str, default="", help="Path to a JSON maze config")
    ap.add_argument("--width", type=int, default=None, help="Grid width in cells")
    ap.add_argument("--depth", type=int, default=None, help="Grid depth in cells")
    ap.add_argument("--seed", type=int, default=None, help="Random seed")
    ap.add_argument("--wall_pct", type=int, default=None, help="Wall spawn percentage (0-100)")
    ap.add_argument("--structure_pct", type=int, default=None, help="Structure spawn percentage (0-100)")
    ap.add_argument("--probes", action="store_true", help="Enable the reflection probe grid")
    ap.add_argument("--json", action="store_true", help="Print the summary as JSON instead of text")
    args = ap.parse_args()

    try:
        cfg = load_config(args.config or None)
    except ConfigError as ex:
        print(f"Error: {ex}", file=sys.stderr)
        return 2

    for field_name, value in (
        ("width", args.width),
        ("depth", args.depth),
        ("seed", args.seed),
        ("wall_spawn_percentage", args.wall_pct),
        ("structure_spawn_percentage", args.structure_pct),
    ):
        if value is not None:
            setattr(cfg, field_name, value)
    if args.probes:
        cfg.reflection_probes.enabled = True
    if cfg.structure_spawn_percentage > 0 and not cfg.structures:
        # Placeholder template so structure rolls have something to place
        cfg.structures = [StructureTemplate(name="Pillar")]

    generator = MazeGenerator(cfg, host=DryRunSceneHost())
    try:
        result = generator.generate()
    except ConfigError as ex:
        print(f"Error: {ex}", file=sys.stderr)
        return 2

    summary = summarize(result)
    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print(result.grid.to_ascii())
    print()
    for key, value in summary.items():
        print(f"{key:>22}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
