# Mazegen Traversability Utilities
#
# Graph checks over the open cells of a carved grid:
# - analyze_grid(): open/wall counts, 4-adjacency edges, connected components,
#   and the BFS depth reached from the start cell
# - astar_path_length(): shortest route between two open cells
#
# A grid holds a perfect maze when its open cells form exactly one component
# and edges == open_cells - 1 (a spanning tree).

from __future__ import annotations

import heapq
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.grid import CellState, Grid

Cell = Tuple[int, int]


@dataclass(frozen=True)
class MazeStats:
    open_cells: int
    wall_cells: int
    edges: int
    components: int
    max_depth_from_start: int

    @property
    def is_perfect(self) -> bool:
        return self.components == 1 and self.edges == self.open_cells - 1


def _neighbors_4(x: int, z: int, grid: Grid) -> Iterable[Cell]:
    cand = ((x + 1, z), (x - 1, z), (x, z + 1), (x, z - 1))
    for cx, cz in cand:
        if grid.in_bounds(cx, cz):
            yield (cx, cz)


def _is_open(grid: Grid, cell: Cell) -> bool:
    return grid.get(cell[0], cell[1]) == CellState.OPEN


def _manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def open_components(grid: Grid) -> List[Set[Cell]]:
    seen: Set[Cell] = set()
    components: List[Set[Cell]] = []
    for cell in grid.cells(CellState.OPEN):
        if cell in seen:
            continue
        comp = {cell}
        queue = deque([cell])
        seen.add(cell)
        while queue:
            cx, cz = queue.popleft()
            for nb in _neighbors_4(cx, cz, grid):
                if nb not in seen and _is_open(grid, nb):
                    seen.add(nb)
                    comp.add(nb)
                    queue.append(nb)
        components.append(comp)
    return components


def _bfs_depth(grid: Grid, start: Cell) -> int:
    if not grid.in_bounds(*start) or not _is_open(grid, start):
        return 0
    dist: Dict[Cell, int] = {start: 0}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        for nb in _neighbors_4(cur[0], cur[1], grid):
            if nb not in dist and _is_open(grid, nb):
                dist[nb] = dist[cur] + 1
                queue.append(nb)
    return max(dist.values())


def analyze_grid(grid: Grid, start: Cell = (0, 0)) -> MazeStats:
    open_cells = 0
    edges = 0
    for x, z in grid.cells(CellState.OPEN):
        open_cells += 1
        # count each undirected edge once: right and forward neighbors only
        if grid.in_bounds(x + 1, z) and _is_open(grid, (x + 1, z)):
            edges += 1
        if grid.in_bounds(x, z + 1) and _is_open(grid, (x, z + 1)):
            edges += 1
    return MazeStats(
        open_cells=open_cells,
        wall_cells=grid.width * grid.depth - open_cells,
        edges=edges,
        components=len(open_components(grid)),
        max_depth_from_start=_bfs_depth(grid, start),
    )


def astar_path_length(grid: Grid, start: Cell, goal: Cell) -> Optional[int]:
    """
    Shortest path length between two open cells on the 4-connected grid.
    Returns the number of steps (edges) or None if either end is blocked or no path exists.
    """
    if not grid.in_bounds(*start) or not grid.in_bounds(*goal):
        return None
    if not _is_open(grid, start) or not _is_open(grid, goal):
        return None

    open_heap: List[Tuple[int, Cell]] = []
    heapq.heappush(open_heap, (0, start))
    g_score: Dict[Cell, int] = {start: 0}
    closed: Set[Cell] = set()

    while open_heap:
        _, cur = heapq.heappop(open_heap)
        if cur in closed:
            continue
        if cur == goal:
            return g_score[cur]
        closed.add(cur)

        for nb in _neighbors_4(cur[0], cur[1], grid):
            if not _is_open(grid, nb):
                continue
            tentative = g_score[cur] + 1
            prev = g_score.get(nb)
            if prev is None or tentative < prev:
                g_score[nb] = tentative
                heapq.heappush(open_heap, (tentative + _manhattan(nb, goal), nb))

    return None
