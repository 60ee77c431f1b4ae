# Mazegen Maze Carver: randomized recursive backtracking over a step-2 lattice
#
# Cells at even coordinates are rooms; the odd cell between two rooms is the
# doorway opened to connect them. Carving starts at (0, 0).
#
# Neighbor scan: at most one candidate per axis. The x-pair is scanned -x then
# +x and the first qualifying direction wins; the z-pair likewise. The other
# direction of a pair only becomes a candidate once the first is visited.
#
# Public API:
# - carve(grid, rng, cancel=None) -> generator (iterative; yields after each unwind)
# - carve_recursive(grid, rng) -> int (reference form, bounded by recursion limit)
# - unvisited_neighbors(cell, visited, width, depth) -> list of cells

from __future__ import annotations

import logging
from typing import Generator, List, Optional, Set, Tuple

from .grid import CellState, Grid
from .scheduler import CancellationToken, checkpoint

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

STEP = 2
START: Cell = (0, 0)


def unvisited_neighbors(cell: Cell, visited: Set[Cell], width: int, depth: int) -> List[Cell]:
    x, z = cell
    neighbors: List[Cell] = []

    if x > STEP and (x - STEP, z) not in visited:
        neighbors.append((x - STEP, z))
    elif x < width - STEP and (x + STEP, z) not in visited:
        neighbors.append((x + STEP, z))

    if z > STEP and (x, z - STEP) not in visited:
        neighbors.append((x, z - STEP))
    elif z < depth - STEP and (x, z + STEP) not in visited:
        neighbors.append((x, z + STEP))

    return neighbors


def _open_passage(grid: Grid, cell: Cell, nxt: Cell) -> None:
    grid.set(nxt[0], nxt[1], CellState.OPEN)
    grid.set((cell[0] + nxt[0]) // 2, (cell[1] + nxt[1]) // 2, CellState.OPEN)


def carve(grid: Grid, rng, cancel: Optional[CancellationToken] = None) -> Generator[None, None, int]:
    """Carve a perfect maze into `grid` in place; returns the number of rooms visited.

    `rng` needs only `randrange(n)`. The generator yields once after every
    unwind to a parent room; drain it with run_to_completion() to carve
    synchronously.
    """
    checkpoint(cancel)
    visited: Set[Cell] = {START}
    grid.set(START[0], START[1], CellState.OPEN)
    stack: List[Cell] = [START]

    while stack:
        cell = stack[-1]
        neighbors = unvisited_neighbors(cell, visited, grid.width, grid.depth)
        if not neighbors:
            stack.pop()
            if stack:
                yield
                checkpoint(cancel)
            continue
        nxt = neighbors[rng.randrange(len(neighbors))]
        _open_passage(grid, cell, nxt)
        visited.add(nxt)
        stack.append(nxt)

    logger.debug(f"Carved {grid.width}x{grid.depth} grid: visited {len(visited)} room(s)")
    return len(visited)


def carve_recursive(grid: Grid, rng) -> int:
    """Recursive form of carve(); produces an identical grid for the same draws."""
    visited: Set[Cell] = set()
    grid.set(START[0], START[1], CellState.OPEN)

    def _visit(cell: Cell) -> None:
        visited.add(cell)
        neighbors = unvisited_neighbors(cell, visited, grid.width, grid.depth)
        while neighbors:
            nxt = neighbors[rng.randrange(len(neighbors))]
            _open_passage(grid, cell, nxt)
            _visit(nxt)
            neighbors = unvisited_neighbors(cell, visited, grid.width, grid.depth)

    _visit(START)
    return len(visited)
