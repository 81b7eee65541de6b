from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

ArrayLike = np.ndarray

EMPTY = 0


@dataclass
class SandGrid:
    """
    Occupancy map over a fixed ``cols x rows`` lattice.

    Each cell holds an occupant id: 0 is empty, ``k > 0`` is a grain drawn with
    palette entry ``k - 1``. Cells are addressed as ``(x, y)`` but stored
    row-major as ``(rows, cols)`` so frames can go straight to ``imshow``.
    """

    cols: int
    rows: int
    palette_size: int
    cells: ArrayLike = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cols < 1 or self.rows < 1:
            raise ValueError("Grid needs at least one column and one row")
        if self.palette_size < 1:
            raise ValueError("Palette must contain at least one colour")
        self.cells = np.zeros((self.rows, self.cols), dtype=np.int32)

    @classmethod
    def from_array(cls, occupancy: ArrayLike, palette_size: int) -> "SandGrid":
        """Build a grid from an existing ``(rows, cols)`` occupancy array."""
        arr = np.asarray(occupancy)
        if arr.ndim != 2:
            raise ValueError("Occupancy must be a 2D array shaped (rows, cols)")
        grid = cls(cols=arr.shape[1], rows=arr.shape[0], palette_size=palette_size)
        if arr.size and (arr.min() < EMPTY or arr.max() > palette_size):
            raise ValueError(f"Occupant ids must lie in 0..{palette_size}")
        grid.cells[:] = arr
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.cols and 0 <= y < self.rows

    def _check(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.cols}x{self.rows} grid")

    def get(self, x: int, y: int) -> int:
        self._check(x, y)
        return int(self.cells[y, x])

    def set(self, x: int, y: int, occupant: int) -> None:
        self._check(x, y)
        if not (EMPTY <= occupant <= self.palette_size):
            raise ValueError(f"Occupant id {occupant} not in 0..{self.palette_size}")
        self.cells[y, x] = occupant

    def is_empty(self, x: int, y: int) -> bool:
        return self.get(x, y) == EMPTY

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def clear(self) -> None:
        self.cells.fill(EMPTY)

    def view(self) -> ArrayLike:
        """Read-only view of the backing array, valid until the next tick."""
        arr = self.cells.view()
        arr.flags.writeable = False
        return arr

    def snapshot(self) -> ArrayLike:
        # Independent copy for renderers that outlive the current frame.
        return self.cells.copy()
