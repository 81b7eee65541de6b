from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

import numpy as np

from .sand import SpawnRegion

logger = logging.getLogger(__name__)

GRID_SIZE = 20  # pixels per cell
COLS = 34
ROWS = 34

COLOURS: Dict[str, str] = {
    "W": "#ffffff",
    "Y": "#f6e64b",
    "R": "#b33025",
    "B": "#2d59b5",
    "G": "#d8d8d8",
}

# Thick yellow lines, by column / row index.
V_LINES = [1, 3, 7, 12, 21, 29, 32]
H_LINES = [1, 5, 11, 13, 16, 19, 27, 32]

DEFAULT_BLOCK_COUNT = 5


@dataclass(frozen=True)
class Block:
    col: int
    row: int
    w: int
    h: int
    colour: str

    def contains(self, x: int, y: int) -> bool:
        return self.col <= x < self.col + self.w and self.row <= y < self.row + self.h

    def to_region(self) -> SpawnRegion:
        return SpawnRegion(col=self.col, row=self.row, w=self.w, h=self.h, colour=self.colour)


BASE_BLOCKS: List[Block] = [
    Block(1, 4, 1, 1, COLOURS["G"]),
    Block(4, 2, 3, 3, COLOURS["R"]),
    Block(8, 6, 4, 5, COLOURS["G"]),
    Block(13, 14, 8, 2, COLOURS["B"]),
    Block(22, 2, 7, 3, COLOURS["G"]),
    Block(22, 20, 7, 7, COLOURS["R"]),
    Block(4, 20, 3, 7, COLOURS["B"]),
    Block(30, 12, 2, 1, COLOURS["R"]),
    Block(8, 28, 4, 4, COLOURS["G"]),
    Block(15, 28, 1, 1, COLOURS["B"]),
]


def generate_random_blocks(
    count: int,
    rng: np.random.Generator,
    cols: int = COLS,
    rows: int = ROWS,
    v_lines: Optional[List[int]] = None,
    h_lines: Optional[List[int]] = None,
) -> List[Block]:
    """
    Scatter red and blue bars along the yellow lines.

    Half of the bars (on average) run down a vertical line with height 1-3,
    the rest run along a horizontal line with width 1-3.
    """
    # Lines past the edge of a small grid cannot carry a bar.
    v_lines = [x for x in (V_LINES if v_lines is None else v_lines) if 0 <= x < cols]
    h_lines = [y for y in (H_LINES if h_lines is None else h_lines) if 0 <= y < rows]
    if count and (not v_lines or not h_lines):
        raise ValueError("No yellow line falls inside the grid")
    blocks: List[Block] = []
    for _ in range(count):
        vertical = rng.random() < 0.5
        colour = COLOURS["R"] if rng.random() < 0.5 else COLOURS["B"]
        if vertical:
            col = int(rng.choice(v_lines))
            h = int(rng.integers(1, 4))
            row = int(rng.integers(0, rows - h))
            blocks.append(Block(col, row, 1, h, colour))
        else:
            row = int(rng.choice(h_lines))
            w = int(rng.integers(1, 4))
            col = int(rng.integers(0, cols - w))
            blocks.append(Block(col, row, w, 1, colour))
    return blocks


@dataclass
class BlockSet:
    """The clickable red/blue bars and how many of them to show."""

    rng: np.random.Generator
    cols: int = COLS
    rows: int = ROWS
    count: int = DEFAULT_BLOCK_COUNT
    blocks: List[Block] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("Block count cannot be negative")
        # Bars are up to three cells long and must start inside the grid.
        if self.cols < 4 or self.rows < 4:
            raise ValueError("Grid too small for the line layout")
        self.regenerate()

    def regenerate(self) -> None:
        self.blocks = generate_random_blocks(self.count, self.rng, self.cols, self.rows)
        logger.debug("Generated %d blocks", len(self.blocks))

    def increase(self) -> None:
        self.count += 1
        self.regenerate()

    def decrease(self) -> None:
        if self.count > 0:
            self.count -= 1
            self.regenerate()

    def pop_block_at(self, x: int, y: int) -> Optional[Block]:
        """Remove and return the topmost block covering ``(x, y)``, if any."""
        for idx in range(len(self.blocks) - 1, -1, -1):
            if self.blocks[idx].contains(x, y):
                return self.blocks.pop(idx)
        return None

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)
