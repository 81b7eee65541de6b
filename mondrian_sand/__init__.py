"""Mondrian-style composition with an interactive falling-sand layer."""

from .grid import SandGrid
from .sand import SpawnRegion, spawn_cluster, step_sand
from .layout import Block, BlockSet, generate_random_blocks
from .world import MondrianSandWorld, random_palette
from .animation import animate_history, connect_input, play_interactive

__all__ = [
    "SandGrid",
    "SpawnRegion",
    "spawn_cluster",
    "step_sand",
    "Block",
    "BlockSet",
    "generate_random_blocks",
    "MondrianSandWorld",
    "random_palette",
    "animate_history",
    "connect_input",
    "play_interactive",
]
