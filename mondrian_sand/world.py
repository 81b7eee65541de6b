from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence
import json
import logging

import numpy as np
from matplotlib.colors import to_rgb

from .grid import SandGrid
from .layout import (
    BASE_BLOCKS,
    COLOURS,
    COLS,
    DEFAULT_BLOCK_COUNT,
    GRID_SIZE,
    H_LINES,
    ROWS,
    V_LINES,
    Block,
    BlockSet,
)
from .sand import spawn_cluster, step_sand

logger = logging.getLogger(__name__)

PALETTE_SIZE = 5


def random_palette(rng: np.random.Generator, size: int = PALETTE_SIZE) -> np.ndarray:
    """Muted random RGB colours; channels stay in 50..255 so sand never goes black."""
    if size < 1:
        raise ValueError("Palette must contain at least one colour")
    return rng.uniform(50, 255, size=(size, 3)) / 255.0


class MondrianSandWorld:
    """
    A Mondrian composition with a falling-sand layer on top.

    Each frame:
      * Input (clicks, key presses) is applied first and runs to completion.
      * One sand tick moves, slides or annihilates every grain.
      * The composed image is recorded into ``history``.
    """

    def __init__(
        self,
        cols: int = COLS,
        rows: int = ROWS,
        rng_seed: Optional[int] = None,
        palette: Optional[Sequence[Sequence[float]]] = None,
        palette_size: int = PALETTE_SIZE,
        block_count: int = DEFAULT_BLOCK_COUNT,
        grid_size: int = GRID_SIZE,
        base_blocks: Optional[List[Block]] = None,
    ) -> None:
        if grid_size < 1:
            raise ValueError("grid_size must be a positive pixel count")
        self.cols = cols
        self.rows = rows
        self.grid_size = grid_size
        self.rng = np.random.default_rng(rng_seed)

        if palette is None:
            self.palette = random_palette(self.rng, palette_size)
        else:
            self.palette = np.array(palette, dtype=float)
            if self.palette.ndim != 2 or self.palette.shape[0] < 1 or self.palette.shape[1] != 3:
                raise ValueError("Palette must be a non-empty sequence of RGB triples")
        self.palette.flags.writeable = False

        self.grid = SandGrid(cols=cols, rows=rows, palette_size=len(self.palette))
        self.blocks = BlockSet(rng=self.rng, cols=cols, rows=rows, count=block_count)
        self.base_blocks = BASE_BLOCKS if base_blocks is None else base_blocks

        self.history: List[np.ndarray] = []
        self.stats_history: List[Dict[str, int]] = []
        self._annihilated = 0
        self.record_frame()

    # --- Input -------------------------------------------------------------
    def click(self, mx: int, my: int) -> Optional[Block]:
        """Turn the block under grid cell ``(mx, my)`` into a sand cluster."""
        block = self.blocks.pop_block_at(mx, my)
        if block is None:
            return None
        written = spawn_cluster(self.grid, block.to_region(), self.rng)
        logger.debug("Spawned %d grains from block at (%d, %d)", written, block.col, block.row)
        return block

    def topple_all(self) -> int:
        """Turn every bar into sand, topmost first. Returns how many were consumed."""
        consumed = 0
        while len(self.blocks):
            top = self.blocks.blocks[-1]
            # The most recent bar is always the topmost at its own corner.
            self.click(top.col, top.row)
            consumed += 1
        return consumed

    def click_pixel(self, px: float, py: float) -> Optional[Block]:
        return self.click(int(px // self.grid_size), int(py // self.grid_size))

    def press_key(self, key: str) -> None:
        if key == "up":
            self.blocks.increase()
        elif key == "down":
            self.blocks.decrease()

    # --- Simulation --------------------------------------------------------
    def step(self) -> np.ndarray:
        self._annihilated = step_sand(self.grid, self.rng)
        return self.record_frame()

    def run(self, steps: int) -> List[np.ndarray]:
        for _ in range(steps):
            self.step()
        return self.history

    # --- Rendering ---------------------------------------------------------
    def render_frame(self) -> np.ndarray:
        """Compose the frame as a ``(rows, cols, 3)`` RGB image, one pixel per cell."""
        frame = np.empty((self.rows, self.cols, 3), dtype=float)
        frame[:] = to_rgb(COLOURS["W"])

        yellow = to_rgb(COLOURS["Y"])
        for x in V_LINES:
            if 0 <= x < self.cols:
                frame[:, x] = yellow
        for y in H_LINES:
            if 0 <= y < self.rows:
                frame[y, :] = yellow

        for block in list(self.base_blocks) + list(self.blocks):
            # Slicing clips blocks that hang off a small grid.
            frame[block.row : block.row + block.h, block.col : block.col + block.w] = to_rgb(block.colour)

        cells = self.grid.view()
        occupied = cells > 0
        frame[occupied] = self.palette[cells[occupied] - 1]
        return frame

    # --- Recording ---------------------------------------------------------
    def record_frame(self) -> np.ndarray:
        frame = self.render_frame()
        self.history.append(frame)
        self.stats_history.append(
            {
                "occupied": self.grid.occupied_count(),
                "annihilated": self._annihilated,
                "blocks": len(self.blocks),
            }
        )
        return frame

    # --- Persistence -------------------------------------------------------
    def save_history(self, path: str | Path, metadata: Optional[dict] = None) -> Path:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        history_array = np.stack(self.history)
        metadata_json = json.dumps(metadata or {})
        np.savez_compressed(dest, history=history_array, metadata=metadata_json)
        logger.info("Saved %d frames to %s", len(self.history), dest)
        return dest

    @staticmethod
    def load_history(path: str | Path) -> tuple[np.ndarray, dict]:
        archive = np.load(path, allow_pickle=False)
        metadata = json.loads(str(archive.get("metadata", "{}")))
        return archive["history"], metadata
