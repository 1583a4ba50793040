"""Public API for fixed-point escape-time rendering."""

from .backends import FIXED_POINT, FLOAT64, NumericBackend, get_backend
from .colormap import BLACK, build_color, colour_grid, colour_of, colour_unit, unpack_rgb
from .errors import FractalError, InvalidParameters, InvalidViewport
from .fixedpoint import FixedPoint, FixedPointOverflowWarning, fixed_to_float, float_to_fixed, multiply_fixed
from .navigation import Command, ViewState, apply_command, compute_step_size, parse_command
from .renderer import (
    MANDELBROT,
    FractalParameters,
    IterationGrid,
    IterationResult,
    Julia,
    Mandelbrot,
    iterate_point,
    render_frame,
    render_iterations,
    scan_frame,
)
from .viewport import PlaneMapping, Viewport, pixel_to_complex

__all__ = [
    "BLACK",
    "Command",
    "FIXED_POINT",
    "FLOAT64",
    "FixedPoint",
    "FixedPointOverflowWarning",
    "FractalError",
    "FractalParameters",
    "InvalidParameters",
    "InvalidViewport",
    "IterationGrid",
    "IterationResult",
    "Julia",
    "MANDELBROT",
    "Mandelbrot",
    "NumericBackend",
    "PlaneMapping",
    "ViewState",
    "Viewport",
    "apply_command",
    "build_color",
    "colour_grid",
    "colour_of",
    "colour_unit",
    "compute_step_size",
    "fixed_to_float",
    "float_to_fixed",
    "get_backend",
    "iterate_point",
    "multiply_fixed",
    "parse_command",
    "pixel_to_complex",
    "render_frame",
    "render_iterations",
    "scan_frame",
    "unpack_rgb",
]
