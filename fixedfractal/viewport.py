"""Mapping between raster pixels and points of the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .backends import FIXED_POINT, Number, NumericBackend, get_backend
from .errors import InvalidViewport


@dataclass(frozen=True)
class Viewport:
    """Rectangular region of the plane shown on an ``image_width`` x ``image_height`` raster."""

    image_width: int
    image_height: int
    center_re: float
    center_im: float
    step_size: float

    def validate(self) -> None:
        for name in ("image_width", "image_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidViewport(f"{name} must be an integer, got {value!r}.")
            if value <= 0:
                raise InvalidViewport(f"{name} must be positive, got {value}.")
        if not math.isfinite(self.step_size) or self.step_size <= 0:
            raise InvalidViewport(f"step_size must be a positive finite number, got {self.step_size!r}.")
        if not (math.isfinite(self.center_re) and math.isfinite(self.center_im)):
            raise InvalidViewport("viewport center must be finite.")

    def mapping(self, backend: NumericBackend | str = FIXED_POINT) -> "PlaneMapping":
        return compute_mapping(self, backend)


@dataclass(frozen=True)
class PlaneMapping:
    """Viewport bounds expressed in a numeric backend's own representation."""

    min_re: Number
    min_im: Number
    max_re: Number
    max_im: Number
    step: Number
    image_width: int
    image_height: int
    backend: NumericBackend

    def pixel_to_complex(self, x: int, y: int) -> tuple[Number, Number]:
        if not (0 <= x < self.image_width and 0 <= y < self.image_height):
            raise IndexError(f"pixel ({x}, {y}) is outside a {self.image_width}x{self.image_height} raster")
        # Row 0 is the top of the image, so the imaginary axis is flipped.
        c_re = self.min_re + self.step * x
        c_im = self.max_im - self.step * y
        return c_re, c_im

    def row_im(self, y: int) -> Number:
        return self.max_im - self.step * y

    def column_re(self, x: int) -> Number:
        return self.min_re + self.step * x

    def float_bounds(self) -> tuple[float, float, float, float]:
        """Return ``(min_re, max_re, min_im, max_im)`` as floats for display."""

        to_float = self.backend.to_float
        return to_float(self.min_re), to_float(self.max_re), to_float(self.min_im), to_float(self.max_im)


def compute_mapping(viewport: Viewport, backend: NumericBackend | str = FIXED_POINT) -> PlaneMapping:
    viewport.validate()
    backend = get_backend(backend)

    step = backend.convert(viewport.step_size)
    if step <= 0:
        raise InvalidViewport(
            f"step_size {viewport.step_size!r} is below the {backend.name} backend's resolution."
        )

    center_re = backend.convert(viewport.center_re)
    center_im = backend.convert(viewport.center_im)
    width = int(viewport.image_width)
    height = int(viewport.image_height)

    # Halve the full extent, not the pixel count, so odd sizes stay centered.
    min_re = center_re - backend.halve(step * width)
    min_im = center_im - backend.halve(step * height)
    max_re = min_re + step * width
    max_im = min_im + step * height

    return PlaneMapping(
        min_re=min_re,
        min_im=min_im,
        max_re=max_re,
        max_im=max_im,
        step=step,
        image_width=width,
        image_height=height,
        backend=backend,
    )


def pixel_to_complex(
    viewport: Viewport,
    x: int,
    y: int,
    backend: NumericBackend | str = FIXED_POINT,
) -> tuple[Number, Number]:
    return compute_mapping(viewport, backend).pixel_to_complex(x, y)
