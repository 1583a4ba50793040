"""Exceptions raised before a frame is rendered."""


class FractalError(ValueError):
    """Base class for inputs that make a frame impossible to render."""


class InvalidViewport(FractalError):
    """Raised for non-positive image extents or a degenerate step size."""


class InvalidParameters(FractalError):
    """Raised for an unusable iteration budget or recurrence."""
