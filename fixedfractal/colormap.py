"""Packed 24-bit colours for iteration counts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .renderer import IterationGrid, IterationResult

COLOUR_BITS = 24
COLOUR_RANGE = 1 << COLOUR_BITS
COLOUR_MASK = COLOUR_RANGE - 1


def build_color(red: int, green: int, blue: int) -> int:
    return ((int(red) % 256) << 16) + ((int(green) % 256) << 8) + (int(blue) % 256)


BLACK = build_color(0, 0, 0)
WHITE = build_color(255, 255, 255)
STATUS_BACKGROUND = build_color(0, 0, 255)
STATUS_TEXT = build_color(255, 0, 0)


def colour_unit(max_iterations: int) -> int:
    """Packed-colour increment per iteration, truncated by integer division."""

    if max_iterations <= 0:
        raise ValueError(f"max_iterations must be positive to derive a colour unit, got {max_iterations}.")
    return COLOUR_RANGE // max_iterations


def colour_of(result: "IterationResult", max_iterations: int) -> int:
    """Black for bounded points, ``n * colour_unit`` for points that escaped at step ``n``.

    The count is used as a raw packed value rather than split into channels,
    so large counts band and wrap within 24 bits.
    """

    if not result.escaped:
        return BLACK
    return (result.count * colour_unit(max_iterations)) & COLOUR_MASK


def colour_grid(grid: "IterationGrid") -> np.ndarray:
    """Vectorized :func:`colour_of` over a whole frame."""

    if grid.max_iterations <= 0:
        return np.full(grid.counts.shape, BLACK, dtype=np.uint32)
    packed = (grid.counts.astype(np.int64) * colour_unit(grid.max_iterations)) & COLOUR_MASK
    return np.where(grid.escaped, packed, BLACK).astype(np.uint32)


def split_color(color: int) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """Expand packed colours into a trailing uint8 RGB axis."""

    packed = np.asarray(packed, dtype=np.uint32)
    channels = [(packed >> shift) & 0xFF for shift in (16, 8, 0)]
    return np.stack(channels, axis=-1).astype(np.uint8)
