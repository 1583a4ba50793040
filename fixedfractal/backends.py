"""Numeric backends shared by the iteration routines."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Union

import numpy as np

from .fixedpoint import fixed_to_float, float_to_fixed, multiply_fixed

Number = Union[int, float]


@dataclass(frozen=True)
class NumericBackend:
    """How plane coordinates are represented and multiplied."""

    name: str
    convert: Callable[[float], Number]
    multiply: Callable[[Number, Number], Number]
    to_float: Callable[[Number], float]
    dtype: type
    halve: Callable[[Number], Number]

    @property
    def escape_threshold(self) -> Number:
        # |z|^2 compared against radius 2 squared.
        return self.convert(4)

    @property
    def two(self) -> Number:
        return self.convert(2)


FIXED_POINT = NumericBackend(
    name="fixed",
    convert=float_to_fixed,
    multiply=multiply_fixed,
    to_float=fixed_to_float,
    dtype=np.int64,
    halve=lambda value: value >> 1,
)

FLOAT64 = NumericBackend(
    name="float64",
    convert=float,
    multiply=operator.mul,
    to_float=float,
    dtype=np.float64,
    halve=lambda value: value / 2,
)

BACKENDS = {backend.name: backend for backend in (FIXED_POINT, FLOAT64)}


def get_backend(name: str | NumericBackend) -> NumericBackend:
    if isinstance(name, NumericBackend):
        return name
    try:
        return BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown numeric backend '{name}'. Valid choices: {', '.join(sorted(BACKENDS))}.") from None
