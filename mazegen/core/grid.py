# Mazegen Grid Model: occupancy grid for maze carving
#
# Cells are addressed as (x, z) with x in [0, width) and z in [0, depth).
# Every cell starts as WALL; only the carver opens cells.

from __future__ import annotations

from enum import IntEnum
from typing import Iterator, List, Optional, Tuple


class BoundsError(IndexError):
    """Raised when a grid coordinate falls outside the allocated range."""
    pass


class CellState(IntEnum):
    OPEN = 0
    WALL = 1


class Grid:
    """Rectangular maze grid of WALL/OPEN cells."""

    def __init__(self, width: int, depth: int, cells: List[List[CellState]]) -> None:
        self.width = width
        self.depth = depth
        self._cells = cells

    @classmethod
    def create(cls, width: int, depth: int) -> "Grid":
        """Allocate a width x depth grid filled with WALL."""
        if not isinstance(width, int) or not isinstance(depth, int) or width <= 0 or depth <= 0:
            raise ValueError(f"Grid dimensions must be positive integers, got {width!r} x {depth!r}")
        cells = [[CellState.WALL for _ in range(depth)] for _ in range(width)]
        return cls(width, depth, cells)

    def in_bounds(self, x: int, z: int) -> bool:
        return 0 <= x < self.width and 0 <= z < self.depth

    def _check(self, x: int, z: int) -> None:
        if not self.in_bounds(x, z):
            raise BoundsError(f"Cell ({x}, {z}) outside grid {self.width}x{self.depth}")

    def get(self, x: int, z: int) -> CellState:
        self._check(x, z)
        return self._cells[x][z]

    def set(self, x: int, z: int, state: CellState) -> None:
        self._check(x, z)
        self._cells[x][z] = CellState(state)

    def cells(self, state: Optional[CellState] = None) -> Iterator[Tuple[int, int]]:
        """Yield (x, z) in row-major x-then-z order, optionally filtered by state."""
        for x in range(self.width):
            column = self._cells[x]
            for z in range(self.depth):
                if state is None or column[z] == state:
                    yield (x, z)

    def count(self, state: CellState) -> int:
        return sum(1 for _ in self.cells(state))

    def copy(self) -> "Grid":
        return Grid(self.width, self.depth, [list(col) for col in self._cells])

    def to_ascii(self, wall: str = "#", open_: str = ".") -> str:
        """Render with z as rows and x as columns."""
        rows = []
        for z in range(self.depth):
            rows.append("".join(wall if self._cells[x][z] == CellState.WALL else open_ for x in range(self.width)))
        return "\n".join(rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.width == other.width and self.depth == other.depth and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.depth}, open={self.count(CellState.OPEN)})"
