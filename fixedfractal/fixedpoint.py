"""4.29 signed fixed-point arithmetic."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

INTEGER_BITS = 4
FRACTIONAL_BITS = 29

SCALE = 1 << FRACTIONAL_BITS
ROUNDING_BIAS = 1 << (FRACTIONAL_BITS - 1)

# Largest magnitude the 4.29 format holds, exclusive.
RAW_LIMIT = 1 << (INTEGER_BITS + FRACTIONAL_BITS)


class FixedPointOverflowWarning(RuntimeWarning):
    """A value does not fit the 4.29 range and may lose its meaning at narrower widths."""


def check_range(raw: int) -> int:
    if not -RAW_LIMIT <= raw < RAW_LIMIT:
        warnings.warn(
            f"fixed-point value {raw / SCALE:.6g} is outside the 4.{FRACTIONAL_BITS} range",
            FixedPointOverflowWarning,
            stacklevel=3,
        )
    return raw


def float_to_fixed(value: float) -> int:
    """Scale ``value`` by 2**29 and truncate toward zero."""

    return check_range(int(value * SCALE))


def fixed_to_float(raw: int) -> float:
    return raw / SCALE


def round_fixed(raw: int) -> int:
    """Round to the nearest integer by biasing before the shift."""

    return (raw + ROUNDING_BIAS) >> FRACTIONAL_BITS


def multiply_fixed(a: int, b: int) -> int:
    # Python integers never overflow, so the product is always full width
    # before it is shifted back down to scale 2**29.
    return (a * b) >> FRACTIONAL_BITS


@dataclass(frozen=True, order=True)
class FixedPoint:
    """Immutable 4.29 value backed by its raw scaled integer."""

    raw: int

    @classmethod
    def from_float(cls, value: float) -> "FixedPoint":
        return cls(float_to_fixed(value))

    def to_float(self) -> float:
        return fixed_to_float(self.raw)

    def __round__(self, ndigits=None):
        if ndigits is not None:
            return round(self.to_float(), ndigits)
        return round_fixed(self.raw)

    def __add__(self, other: "FixedPoint") -> "FixedPoint":
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return FixedPoint(self.raw + other.raw)

    def __sub__(self, other: "FixedPoint") -> "FixedPoint":
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return FixedPoint(self.raw - other.raw)

    def __mul__(self, other: "FixedPoint") -> "FixedPoint":
        if not isinstance(other, FixedPoint):
            return NotImplemented
        return FixedPoint(multiply_fixed(self.raw, other.raw))

    def __neg__(self) -> "FixedPoint":
        return FixedPoint(-self.raw)

    def __float__(self) -> float:
        return self.to_float()

    def __repr__(self) -> str:
        return f"FixedPoint({self.to_float()!r})"
