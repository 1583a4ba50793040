import numpy as np
import pytest

from fixedfractal.colormap import (
    BLACK,
    STATUS_BACKGROUND,
    STATUS_TEXT,
    build_color,
    colour_grid,
    colour_of,
    colour_unit,
    split_color,
    unpack_rgb,
)
from fixedfractal.renderer import IterationGrid, IterationResult
from fixedfractal.viewport import Viewport


def test_bounded_points_are_black():
    assert colour_of(IterationResult(escaped=False, count=10), 10) == 0x000000


def test_escaped_points_use_truncated_colour_unit():
    assert colour_unit(10) == 1677721
    assert colour_unit(3) == 5592405
    assert colour_of(IterationResult(escaped=True, count=5), 10) == 5 * (2 ** 24 // 10)


def test_escape_before_first_step_is_black_too():
    assert colour_of(IterationResult(escaped=True, count=0), 50) == BLACK


def test_packed_colour_wraps_within_24_bits():
    assert colour_of(IterationResult(escaped=True, count=20), 10) == (20 * 1677721) % 2 ** 24


def test_colour_unit_needs_a_budget():
    with pytest.raises(ValueError):
        colour_unit(0)


def test_build_color_packs_channels_modulo_256():
    assert build_color(255, 0, 0) == 0xFF0000
    assert build_color(0x12, 0x34, 0x56) == 0x123456
    assert build_color(256, -1, 0x1FF) == 0x00FFFF
    assert STATUS_BACKGROUND == 0x0000FF
    assert STATUS_TEXT == 0xFF0000
    assert split_color(0x123456) == (0x12, 0x34, 0x56)


def test_colour_grid_matches_scalar_colours():
    counts = np.array([[0, 3, 7], [10, 1, 9]])
    escaped = np.array([[True, True, True], [False, True, False]])
    grid = IterationGrid(counts=counts, escaped=escaped, max_iterations=10, mapping=Viewport(3, 2, 0.0, 0.0, 0.1).mapping())

    packed = colour_grid(grid)

    assert packed.dtype == np.uint32
    for y in range(2):
        for x in range(3):
            expected = colour_of(IterationResult(bool(escaped[y, x]), int(counts[y, x])), 10)
            assert packed[y, x] == expected


def test_colour_grid_with_zero_budget_is_black():
    grid = IterationGrid(
        counts=np.zeros((2, 2), dtype=np.int64),
        escaped=np.zeros((2, 2), dtype=bool),
        max_iterations=0,
        mapping=Viewport(2, 2, 0.0, 0.0, 0.1).mapping(),
    )
    assert not colour_grid(grid).any()


def test_unpack_rgb_adds_a_channel_axis():
    rgb = unpack_rgb(np.array([[0x123456, 0xFF0000]], dtype=np.uint32))

    assert rgb.shape == (1, 2, 3)
    assert rgb.dtype == np.uint8
    np.testing.assert_array_equal(rgb[0, 0], [0x12, 0x34, 0x56])
    np.testing.assert_array_equal(rgb[0, 1], [0xFF, 0, 0])
