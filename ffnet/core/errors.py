"""Exceptions raised by the training engine."""


class ShapeMismatchError(ValueError):
    """Raised when a vector or parameter block disagrees with layer dimensions."""


class NumericalDivergenceError(FloatingPointError):
    """Raised when a weighted sum or activation becomes NaN or infinite."""


class NotCalculatedError(RuntimeError):
    """Raised when a cached lookup is requested before it was calculated."""
