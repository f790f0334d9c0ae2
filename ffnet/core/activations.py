"""Stateful activation functions.

Every activation function caches the activations *and* their derivatives of
the last vector it was fed through :meth:`calculate_from_inputs`.  Lookups by
index are plain reads from that cache, so the cache must be filled for the
current vector before :meth:`activate` or :meth:`derivative` are used.

A layer owns its own instance; the classes double as the zero-argument
factories a :class:`~ffnet.core.network.Network` expects.
"""

from __future__ import annotations

from typing import Callable, Dict, Protocol

import numpy as np

from .errors import NotCalculatedError
from .types import Array


class ActivationFunction(Protocol):
    """Protocol implemented by every activation function."""

    name: str

    def calculate_from_inputs(self, values: Array, stride: int = 1) -> None:
        """Compute and cache activations and derivatives for ``values``."""

    def activate(self, index: int) -> float:
        """Return the cached activation at ``index``."""

    def derivative(self, index: int) -> float:
        """Return the cached activation derivative at ``index``."""

    def activations(self) -> Array:
        """Return a read-only view of the cached activations."""

    def derivatives(self) -> Array:
        """Return a read-only view of the cached derivatives."""


ActivationFactory = Callable[[], ActivationFunction]


def strided(values: Array, stride: int) -> Array:
    """Return ``values[::stride]`` as a flat float64 array."""

    if stride < 1:
        raise ValueError(f"stride must be >= 1, got {stride}")
    return np.asarray(values, dtype=np.float64).ravel()[::stride]


class _CachedActivation:
    """Shared scratch handling for the concrete activation functions.

    The scratch buffers grow to the largest vector seen so far and are never
    shrunk; ``_size`` tracks how much of them holds the current result.
    """

    name = ""

    def __init__(self) -> None:
        self._activations = np.zeros(0, dtype=np.float64)
        self._derivatives = np.zeros(0, dtype=np.float64)
        self._size: int | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def calculate_from_inputs(self, values: Array, stride: int = 1) -> None:
        x = strided(values, stride)
        n = x.shape[0]
        if n > self._activations.shape[0]:
            self._activations = np.empty(n, dtype=np.float64)
            self._derivatives = np.empty(n, dtype=np.float64)
        self._compute(x, self._activations[:n], self._derivatives[:n])
        self._size = n

    def activate(self, index: int) -> float:
        return float(self._activations[self._check_index(index)])

    def derivative(self, index: int) -> float:
        return float(self._derivatives[self._check_index(index)])

    def activations(self) -> Array:
        return self._view(self._activations)

    def derivatives(self) -> Array:
        return self._view(self._derivatives)

    # ------------------------------------------------------------------
    # Internal helpers

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        raise NotImplementedError

    def _check_index(self, index: int) -> int:
        if self._size is None:
            raise NotCalculatedError(
                f"{type(self).__name__}: calculate_from_inputs must be called before lookups"
            )
        if not 0 <= index < self._size:
            raise IndexError(
                f"{type(self).__name__}: index {index} out of range for {self._size} values"
            )
        return index

    def _view(self, buf: Array) -> Array:
        if self._size is None:
            raise NotCalculatedError(
                f"{type(self).__name__}: calculate_from_inputs must be called before lookups"
            )
        view = buf[: self._size]
        view.flags.writeable = False
        return view


class Sigmoid(_CachedActivation):
    """Logistic activation; derivative ``a * (1 - a)``."""

    name = "sigmoid"

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        with np.errstate(over="ignore"):
            out[:] = 1.0 / (1.0 + np.exp(-x))
        deriv[:] = out * (1.0 - out)


class ReLU(_CachedActivation):
    """Rectifier with a configurable floor.

    ``activation = max(inflection, x)`` and the derivative is ``1`` where
    ``x >= inflection`` and ``0`` elsewhere.
    """

    name = "relu"

    def __init__(self, inflection: float = 0.0) -> None:
        super().__init__()
        self.inflection = float(inflection)

    def __repr__(self) -> str:
        return f"ReLU(inflection={self.inflection})"

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        np.maximum(x, self.inflection, out=out)
        deriv[:] = (x >= self.inflection).astype(np.float64)


class SoftMax(_CachedActivation):
    """Normalised exponential over the whole vector.

    The cached derivative is only the diagonal term
    ``(e_i * S - e_i**2) / S**2`` of the Jacobian, evaluated independently of
    the cost function.  Paired with :class:`~ffnet.core.costs.CrossEntropy`
    this does not reduce to ``prediction - target``.
    """

    name = "softmax"

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        if x.size == 0:
            return
        # Shifting by the maximum leaves both ratios unchanged.
        exp = np.exp(x - np.max(x))
        total = float(np.sum(exp))
        out[:] = exp / total
        deriv[:] = (exp * total - exp * exp) / (total * total)


class TanH(_CachedActivation):
    """Hyperbolic tangent; derivative ``1 - a**2``."""

    name = "tanh"

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        np.tanh(x, out=out)
        deriv[:] = 1.0 - out * out


class SiLU(_CachedActivation):
    """Sigmoid-weighted linear unit ``x * sigmoid(x)``."""

    name = "silu"

    def _compute(self, x: Array, out: Array, deriv: Array) -> None:
        with np.errstate(over="ignore"):
            sig = 1.0 / (1.0 + np.exp(-x))
        out[:] = x * sig
        deriv[:] = sig + x * sig * (1.0 - sig)


ACTIVATIONS: Dict[str, ActivationFactory] = {
    Sigmoid.name: Sigmoid,
    ReLU.name: ReLU,
    SoftMax.name: SoftMax,
    TanH.name: TanH,
    SiLU.name: SiLU,
}


def get_activation(name: str) -> ActivationFactory:
    """Resolve an activation factory by its configuration name."""

    try:
        return ACTIVATIONS[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(ACTIVATIONS))
        raise ValueError(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from exc


__all__ = [
    "ACTIVATIONS",
    "ActivationFactory",
    "ActivationFunction",
    "ReLU",
    "SiLU",
    "Sigmoid",
    "SoftMax",
    "TanH",
    "get_activation",
    "strided",
]
