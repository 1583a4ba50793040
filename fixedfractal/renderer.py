"""Escape-time iteration for Mandelbrot and Julia frames."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np
import tensorflow as tf

from .backends import FIXED_POINT, Number, NumericBackend, get_backend
from .colormap import colour_of
from .errors import InvalidParameters
from .fixedpoint import FRACTIONAL_BITS, SCALE
from .viewport import PlaneMapping, Viewport, compute_mapping

PixelSink = Callable[[int, int, int], None]


@dataclass(frozen=True)
class Mandelbrot:
    """z <- z^2 + c, where c is the pixel's own point."""

    name = "mandelbrot"


@dataclass(frozen=True)
class Julia:
    """z <- z^2 + k for a fixed k; the pixel's point only seeds z."""

    k_re: float
    k_im: float

    name = "julia"


Recurrence = Union[Mandelbrot, Julia]

MANDELBROT = Mandelbrot()


@dataclass(frozen=True)
class FractalParameters:
    """Frame-constant iteration settings."""

    max_iterations: int

    def validate(self) -> None:
        value = self.max_iterations
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidParameters(f"max_iterations must be an integer, got {value!r}.")
        if value < 0:
            raise InvalidParameters(f"max_iterations must not be negative, got {value}.")


@dataclass(frozen=True)
class IterationResult:
    """Outcome of iterating one point.

    ``escaped=False`` with ``count == max_iterations`` means the point stayed
    bounded for the whole budget and is treated as inside the set.
    """

    escaped: bool
    count: int

    @property
    def bounded(self) -> bool:
        return not self.escaped


@dataclass(frozen=True)
class IterationGrid:
    """Per-pixel iteration results for a whole frame, indexed ``[y, x]``."""

    counts: np.ndarray
    escaped: np.ndarray
    max_iterations: int
    mapping: PlaneMapping

    def result_at(self, x: int, y: int) -> IterationResult:
        return IterationResult(escaped=bool(self.escaped[y, x]), count=int(self.counts[y, x]))


def _recurrence_constant(mode: Recurrence, backend: NumericBackend) -> Optional[tuple[Number, Number]]:
    """Return the backend-domain constant for Julia, ``None`` when it is the pixel itself."""

    if isinstance(mode, Mandelbrot):
        return None
    if isinstance(mode, Julia):
        if not (math.isfinite(mode.k_re) and math.isfinite(mode.k_im)):
            raise InvalidParameters("Julia constant must be finite.")
        return backend.convert(mode.k_re), backend.convert(mode.k_im)
    raise InvalidParameters(f"Unknown recurrence {mode!r}.")


def escape_time(
    c_re: Number,
    c_im: Number,
    k_re: Number,
    k_im: Number,
    max_iterations: int,
    backend: NumericBackend,
) -> IterationResult:
    """Iterate ``z <- z^2 + k`` from ``z = c`` with values already in ``backend`` units."""

    multiply = backend.multiply
    threshold = backend.escape_threshold
    two = backend.two

    z_re, z_im = c_re, c_im
    for n in range(max_iterations):
        z_re2 = multiply(z_re, z_re)
        z_im2 = multiply(z_im, z_im)
        # Squared magnitude against radius squared; exact in fixed point.
        if z_re2 + z_im2 > threshold:
            return IterationResult(escaped=True, count=n)
        # (a + bi)^2 = (a^2 - b^2) + 2abi
        z_im = multiply(two, multiply(z_re, z_im)) + k_im
        z_re = z_re2 - z_im2 + k_re
    return IterationResult(escaped=False, count=max_iterations)


def iterate_point(
    c_re: float,
    c_im: float,
    max_iterations: int,
    mode: Recurrence = MANDELBROT,
    backend: NumericBackend | str = FIXED_POINT,
) -> IterationResult:
    """Iterate a single plane point given as floats."""

    FractalParameters(max_iterations).validate()
    backend = get_backend(backend)
    constant = _recurrence_constant(mode, backend)
    c_re = backend.convert(c_re)
    c_im = backend.convert(c_im)
    k_re, k_im = (c_re, c_im) if constant is None else constant
    return escape_time(c_re, c_im, k_re, k_im, max_iterations, backend)


def _prepare(viewport: Viewport, params: FractalParameters, mode: Recurrence, backend: NumericBackend | str):
    # Everything is checked before the first pixel so a bad frame leaves no partial output.
    backend = get_backend(backend)
    mapping = compute_mapping(viewport, backend)
    params.validate()
    constant = _recurrence_constant(mode, backend)
    return backend, mapping, constant


def _scan(mapping, params, constant, backend, visit, cancel) -> bool:
    max_iterations = int(params.max_iterations)
    for y in range(mapping.image_height):
        if cancel is not None and cancel():
            return False
        c_im = mapping.row_im(y)
        for x in range(mapping.image_width):
            c_re = mapping.column_re(x)
            k_re, k_im = (c_re, c_im) if constant is None else constant
            visit(x, y, escape_time(c_re, c_im, k_re, k_im, max_iterations, backend))
    return True


def render_frame(
    viewport: Viewport,
    params: FractalParameters,
    mode: Recurrence,
    pixel_sink: PixelSink,
    *,
    backend: NumericBackend | str = FIXED_POINT,
    cancel: Optional[Callable[[], bool]] = None,
) -> bool:
    """Scan one frame and hand every pixel's packed colour to ``pixel_sink``.

    Pixels are delivered row by row, top to bottom and left to right.
    ``cancel`` is polled before each row; returns ``False`` if the scan was
    abandoned and ``True`` once every pixel has been delivered.
    """

    backend, mapping, constant = _prepare(viewport, params, mode, backend)
    max_iterations = int(params.max_iterations)

    def visit(x: int, y: int, result: IterationResult) -> None:
        pixel_sink(x, y, colour_of(result, max_iterations))

    return _scan(mapping, params, constant, backend, visit, cancel)


def scan_frame(
    viewport: Viewport,
    params: FractalParameters,
    mode: Recurrence,
    *,
    backend: NumericBackend | str = FIXED_POINT,
) -> IterationGrid:
    """Per-pixel scan that keeps the iteration results instead of colours."""

    backend, mapping, constant = _prepare(viewport, params, mode, backend)
    counts = np.zeros((mapping.image_height, mapping.image_width), dtype=np.int64)
    escaped = np.zeros((mapping.image_height, mapping.image_width), dtype=bool)

    def visit(x: int, y: int, result: IterationResult) -> None:
        counts[y, x] = result.count
        escaped[y, x] = result.escaped

    _scan(mapping, params, constant, backend, visit, None)
    return IterationGrid(counts=counts, escaped=escaped, max_iterations=int(params.max_iterations), mapping=mapping)


def _tensor_multiply(a: tf.Tensor, b: tf.Tensor) -> tf.Tensor:
    if a.dtype.is_integer:
        # a * b >> 29 without a 128-bit product: split a into whole and
        # fractional parts so neither partial product leaves int64.
        shift = tf.constant(FRACTIONAL_BITS, dtype=a.dtype)
        whole = tf.bitwise.right_shift(a, shift)
        fraction = tf.bitwise.bitwise_and(a, tf.constant(SCALE - 1, dtype=a.dtype))
        return whole * b + tf.bitwise.right_shift(fraction * b, shift)
    return a * b


@tf.function
def _escape_step(
    zs_re: tf.Tensor,
    zs_im: tf.Tensor,
    ks_re: tf.Tensor,
    ks_im: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    escaped: tf.Tensor,
    threshold: tf.Tensor,
    two: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that has neither escaped nor exhausted the budget."""

    re2 = _tensor_multiply(zs_re, zs_re)
    im2 = _tensor_multiply(zs_im, zs_im)
    escaping = tf.logical_and(active, re2 + im2 > threshold)
    escaped = tf.logical_or(escaped, escaping)
    active = tf.logical_and(active, tf.logical_not(escaping))

    new_im = _tensor_multiply(two, _tensor_multiply(zs_re, zs_im)) + ks_im
    new_re = re2 - im2 + ks_re
    zs_re = tf.where(active, new_re, zs_re)
    zs_im = tf.where(active, new_im, zs_im)
    ns = ns + tf.cast(active, ns.dtype)
    return zs_re, zs_im, ns, active, escaped


@tf.function
def _escape_run(
    zs_re: tf.Tensor,
    zs_im: tf.Tensor,
    ks_re: tf.Tensor,
    ks_im: tf.Tensor,
    max_iterations: tf.Tensor,
    threshold: tf.Tensor,
    two: tf.Tensor,
) -> tuple[tf.Tensor, ...]:
    """Iterate the recurrence using a TensorFlow while loop."""

    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros(tf.shape(zs_re), dtype=tf.int32)
    active = tf.ones(tf.shape(zs_re), dtype=tf.bool)
    escaped = tf.zeros(tf.shape(zs_re), dtype=tf.bool)

    def cond(i, zs_re, zs_im, ns, active, escaped):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zs_re, zs_im, ns, active, escaped):
        zs_re, zs_im, ns, active, escaped = _escape_step(
            zs_re, zs_im, ks_re, ks_im, ns, active, escaped, threshold, two
        )
        return i + 1, zs_re, zs_im, ns, active, escaped

    return tf.while_loop(cond, body, (i, zs_re, zs_im, ns, active, escaped))


def _axis(start: Number, step: Number, count: int, dtype: type, *, descending: bool = False) -> np.ndarray:
    offsets = np.array(step, dtype=dtype) * np.arange(count, dtype=dtype)
    if descending:
        return np.array(start, dtype=dtype) - offsets
    return np.array(start, dtype=dtype) + offsets


def render_iterations(
    viewport: Viewport,
    params: FractalParameters,
    mode: Recurrence,
    *,
    backend: NumericBackend | str = FIXED_POINT,
    device: Optional[str] = None,
) -> IterationGrid:
    """Vectorized frame scan; gives the same grid as :func:`scan_frame`."""

    backend, mapping, constant = _prepare(viewport, params, mode, backend)
    dtype = backend.dtype

    re_axis = _axis(mapping.min_re, mapping.step, mapping.image_width, dtype)
    im_axis = _axis(mapping.max_im, mapping.step, mapping.image_height, dtype, descending=True)
    re_grid, im_grid = np.meshgrid(re_axis, im_axis)

    with tf.device(device if device is not None else "/CPU:0"):
        zs_re = tf.convert_to_tensor(re_grid, dtype=dtype)
        zs_im = tf.convert_to_tensor(im_grid, dtype=dtype)
        if constant is None:
            ks_re, ks_im = tf.identity(zs_re), tf.identity(zs_im)
        else:
            ks_re = tf.constant(constant[0], dtype=dtype)
            ks_im = tf.constant(constant[1], dtype=dtype)
        threshold = tf.constant(backend.escape_threshold, dtype=dtype)
        two = tf.constant(backend.two, dtype=dtype)
        max_iterations = tf.constant(int(params.max_iterations), dtype=tf.int32)

        _, _, _, ns, _, escaped = _escape_run(zs_re, zs_im, ks_re, ks_im, max_iterations, threshold, two)

    return IterationGrid(
        counts=ns.numpy().astype(np.int64),
        escaped=escaped.numpy(),
        max_iterations=int(params.max_iterations),
        mapping=mapping,
    )
