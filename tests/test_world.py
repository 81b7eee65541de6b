import numpy as np
import pytest
from matplotlib.colors import to_rgb

from mondrian_sand.layout import COLOURS, Block
from mondrian_sand.world import MondrianSandWorld, random_palette


def padded_cells(block, cols, rows):
    return {
        (x, y)
        for x in range(block.col - 1, block.col + block.w + 1)
        for y in range(block.row - 1, block.row + block.h + 1)
        if 0 <= x < cols and 0 <= y < rows
    }


def test_click_turns_block_into_sand_and_removes_it():
    world = MondrianSandWorld(rng_seed=1, block_count=3, base_blocks=[])
    block = world.blocks.blocks[-1]

    assert world.click(block.col, block.row) == block

    assert len(world.blocks) == 2
    cells = {(x, y) for x in range(world.cols) for y in range(world.rows) if not world.grid.is_empty(x, y)}
    assert cells == padded_cells(block, world.cols, world.rows)


def test_click_on_empty_space_changes_nothing():
    world = MondrianSandWorld(rng_seed=1, block_count=0)
    assert world.click(0, 0) is None
    assert world.grid.occupied_count() == 0


def test_click_pixel_maps_to_cells():
    world = MondrianSandWorld(rng_seed=1, block_count=0, grid_size=20)
    world.blocks.blocks = [Block(2, 1, 1, 1, COLOURS["R"])]
    assert world.click_pixel(60.0, 20.0) is None
    assert world.click_pixel(40.0, 39.9) is not None
    assert len(world.blocks) == 0


def test_arrow_keys_change_block_count():
    world = MondrianSandWorld(rng_seed=3, block_count=1)
    world.press_key("up")
    assert len(world.blocks) == 2
    world.press_key("down")
    world.press_key("down")
    world.press_key("down")
    assert len(world.blocks) == 0
    world.press_key("left")
    assert len(world.blocks) == 0


def test_step_records_frames_and_stats():
    world = MondrianSandWorld(cols=10, rows=10, rng_seed=0, block_count=0, base_blocks=[])
    world.grid.set(0, 8, 1)
    world.grid.set(0, 9, 1)

    world.run(3)

    assert len(world.history) == 4
    assert world.history[-1].shape == (10, 10, 3)
    assert world.stats_history[1] == {"occupied": 0, "annihilated": 2, "blocks": 0}


def test_render_paints_sand_over_lines_and_blocks():
    palette = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
    world = MondrianSandWorld(
        cols=10,
        rows=10,
        rng_seed=0,
        palette=palette,
        block_count=0,
        base_blocks=[Block(4, 2, 2, 2, COLOURS["B"])],
    )
    frame = world.render_frame()
    np.testing.assert_allclose(frame[0, 0], to_rgb(COLOURS["W"]))
    np.testing.assert_allclose(frame[0, 1], to_rgb(COLOURS["Y"]))
    np.testing.assert_allclose(frame[5, 0], to_rgb(COLOURS["Y"]))
    np.testing.assert_allclose(frame[2, 4], to_rgb(COLOURS["B"]))

    world.grid.set(4, 2, 2)
    world.grid.set(1, 0, 1)
    frame = world.render_frame()
    np.testing.assert_allclose(frame[2, 4], palette[1])
    np.testing.assert_allclose(frame[0, 1], palette[0])


def test_palette_is_validated_and_frozen():
    with pytest.raises(ValueError):
        MondrianSandWorld(palette=[])
    with pytest.raises(ValueError):
        MondrianSandWorld(palette_size=0)

    world = MondrianSandWorld(rng_seed=0)
    assert world.grid.palette_size == 5
    with pytest.raises(ValueError):
        world.palette[0, 0] = 0.0


def test_random_palette_stays_out_of_the_dark_range():
    palette = random_palette(np.random.default_rng(0), size=50)
    assert palette.shape == (50, 3)
    assert palette.min() >= 50 / 255
    assert palette.max() <= 1.0


def test_same_seed_gives_same_run():
    a = MondrianSandWorld(rng_seed=9)
    b = MondrianSandWorld(rng_seed=9)
    for block in list(a.blocks):
        a.click(block.col, block.row)
    for block in list(b.blocks):
        b.click(block.col, block.row)
    a.run(20)
    b.run(20)
    np.testing.assert_array_equal(a.grid.cells, b.grid.cells)


def test_history_round_trips_through_npz(tmp_path):
    world = MondrianSandWorld(cols=8, rows=8, rng_seed=0, block_count=0)
    world.run(2)
    path = world.save_history(tmp_path / "runs" / "sand.npz", metadata={"type": "mondrian_sand"})

    history, metadata = MondrianSandWorld.load_history(path)

    assert history.shape == (3, 8, 8, 3)
    assert metadata == {"type": "mondrian_sand"}


def test_every_bar_on_a_small_grid_can_be_clicked():
    world = MondrianSandWorld(cols=10, rows=10, rng_seed=0, block_count=20)
    for block in list(world.blocks):
        assert block.col + block.w <= 10 and block.row + block.h <= 10

    assert world.topple_all() == 20
    assert len(world.blocks) == 0
    assert world.grid.occupied_count() > 0


def test_topple_all_consumes_overlapping_bars():
    world = MondrianSandWorld(rng_seed=2, block_count=0)
    world.blocks.blocks = [Block(3, 5, 3, 1, COLOURS["R"]), Block(3, 4, 1, 3, COLOURS["B"])]

    assert world.topple_all() == 2
    assert len(world.blocks) == 0
    assert world.grid.occupied_count() > 0
    world.step()
    assert world.stats_history[-1]["blocks"] == 0


def test_same_looking_grains_with_different_ids_never_annihilate():
    grey = [0.5, 0.5, 0.5]
    world = MondrianSandWorld(cols=4, rows=4, rng_seed=0, palette=[grey, grey], block_count=0, base_blocks=[])
    # A floor of id 2 blocks both the straight and the diagonal paths.
    for x in range(4):
        world.grid.set(x, 3, 2)
    world.grid.set(0, 2, 1)
    world.grid.set(2, 2, 1)

    world.run(10)

    assert world.grid.get(0, 2) == 1
    assert world.grid.get(2, 2) == 1
    assert world.grid.occupied_count() == 6
    assert all(stats["annihilated"] == 0 for stats in world.stats_history)
    np.testing.assert_allclose(world.history[-1][2, 0], world.history[-1][3, 0])
