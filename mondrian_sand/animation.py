from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional
import math

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
import numpy as np

from .world import MondrianSandWorld


def _prepare_history(history: Iterable[np.ndarray]) -> np.ndarray:
    arr = np.asarray(list(history))
    if arr.ndim != 4 or arr.shape[-1] != 3:
        raise ValueError("History must be an array shaped (frames, rows, cols, 3)")
    return arr


def _blank_axes(ax) -> None:
    ax.set_xticks([])
    ax.set_yticks([])


def animate_history(
    history: Iterable[np.ndarray],
    interval: int = 33,
    title: Optional[str] = None,
    repeat: bool = True,
    show: bool = True,
    save_path: str | Path | None = None,
):
    """
    Play back recorded RGB frames.

    ``show=False`` is useful for headless runs when only saving output.
    """
    frames = _prepare_history(history)
    fig, ax = plt.subplots()
    im = ax.imshow(frames[0], interpolation="nearest")
    _blank_axes(ax)

    def update(frame_idx: int):
        im.set_data(frames[frame_idx])
        if title:
            ax.set_title(f"{title} (t={frame_idx})")
        return [im]

    animation = FuncAnimation(fig, update, frames=len(frames), interval=interval, repeat=repeat, blit=False)

    if save_path:
        dest = Path(save_path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        animation.save(dest)

    if show:
        plt.show()
    else:
        plt.close(fig)

    return animation


def connect_input(world: MondrianSandWorld, fig, ax):
    """Route mouse clicks on ``ax`` and key presses on ``fig`` to ``world``."""

    def on_click(event) -> None:
        if event.inaxes is not ax or event.xdata is None or event.ydata is None:
            return
        # imshow centres cell i on coordinate i.
        world.click(math.floor(event.xdata + 0.5), math.floor(event.ydata + 0.5))

    def on_key(event) -> None:
        world.press_key(event.key)

    fig.canvas.mpl_connect("button_press_event", on_click)
    fig.canvas.mpl_connect("key_press_event", on_key)
    return on_click, on_key


def play_interactive(world: MondrianSandWorld, interval: int = 33, title: str = "Mondrian sand"):
    """
    Open a window that ticks the world once per frame.

    Clicking a red or blue bar turns it into sand; the up and down arrow keys
    add or remove a bar and reshuffle the rest.
    """
    fig, ax = plt.subplots(figsize=(world.cols * world.grid_size / 100, world.rows * world.grid_size / 100))
    im = ax.imshow(world.render_frame(), interpolation="nearest")
    _blank_axes(ax)
    ax.set_title(title)
    connect_input(world, fig, ax)

    def update(_frame_idx: int):
        im.set_data(world.step())
        # Live sessions would otherwise keep every frame in memory.
        world.history.clear()
        world.stats_history.clear()
        return [im]

    animation = FuncAnimation(fig, update, interval=interval, blit=False, cache_frame_data=False)
    plt.show()
    return animation
