from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .grid import EMPTY, SandGrid


@dataclass(frozen=True)
class SpawnRegion:
    """Footprint of a consumed block, before the one-cell padding."""

    col: int
    row: int
    w: int
    h: int
    colour: Optional[str] = None


def step_sand(grid: SandGrid, rng: np.random.Generator) -> int:
    """
    Advance every grain by one tick, in place.

    Columns are visited right to left and each column bottom to top. A grain
    that falls straight down lands in an already visited cell and is left
    alone; one that slides down-left lands in the next column and gets one
    more move this tick.

    Returns the number of grains destroyed by same-id contact.
    """
    cells = grid.cells
    cols, rows = grid.cols, grid.rows
    annihilated = 0

    for x in range(cols - 1, -1, -1):
        for y in range(rows - 1, -1, -1):
            occupant = cells[y, x]
            if occupant == EMPTY:
                continue

            below = y + 1
            if below < rows and cells[below, x] == EMPTY:
                cells[y, x] = EMPTY
                cells[below, x] = occupant
            elif below < rows and cells[below, x] == occupant:
                cells[y, x] = EMPTY
                cells[below, x] = EMPTY
                annihilated += 2
            else:
                nx = x - 1 if rng.random() < 0.5 else x + 1
                if not grid.in_bounds(nx, below):
                    continue
                target = cells[below, nx]
                if target == occupant:
                    cells[y, x] = EMPTY
                    cells[below, nx] = EMPTY
                    annihilated += 2
                elif target == EMPTY:
                    cells[y, x] = EMPTY
                    cells[below, nx] = occupant

    return annihilated


def spawn_cluster(grid: SandGrid, region: SpawnRegion, rng: np.random.Generator) -> int:
    """
    Fill the region plus a one-cell border with random grains.

    Every cell gets its own id drawn from ``1..palette_size``. Cells of the
    border that fall off the grid are skipped, never clamped.
    Returns how many cells were written.
    """
    written = 0
    for x in range(region.col - 1, region.col + region.w + 1):
        for y in range(region.row - 1, region.row + region.h + 1):
            if not grid.in_bounds(x, y):
                continue
            grid.set(x, y, int(rng.integers(1, grid.palette_size + 1)))
            written += 1
    return written
