"""Stateful cost functions and their registry."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Protocol

import numpy as np

from .activations import strided
from .errors import NotCalculatedError, ShapeMismatchError
from .types import Array


class CostFunction(Protocol):
    """Protocol implemented by every cost function."""

    name: str

    def calculate_from_inputs(self, predicted: Array, expected: Array, stride: int = 1) -> None:
        """Compute and cache the total cost and per-output derivatives."""

    def total_cost(self) -> float:
        """Return the cost cached by the last calculation."""

    def derivative(self, index: int) -> float:
        """Return dCost/dPrediction at ``index``."""

    def derivatives(self) -> Array:
        """Return a read-only view of every cached derivative."""


class _CachedCost:
    name = ""

    def __init__(self) -> None:
        self._derivatives = np.zeros(0, dtype=np.float64)
        self._total: float | None = None
        self._size = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def calculate_from_inputs(self, predicted: Array, expected: Array, stride: int = 1) -> None:
        p = strided(predicted, stride)
        e = strided(expected, stride)
        if p.shape != e.shape:
            raise ShapeMismatchError(
                f"{type(self).__name__}: {p.shape[0]} predictions but {e.shape[0]} expected values"
            )
        n = p.shape[0]
        if n > self._derivatives.shape[0]:
            self._derivatives = np.empty(n, dtype=np.float64)
        self._total = self._compute(p, e, self._derivatives[:n])
        self._size = n

    def total_cost(self) -> float:
        if self._total is None:
            raise NotCalculatedError(
                f"{type(self).__name__}: calculate_from_inputs must be called first"
            )
        return self._total

    def derivative(self, index: int) -> float:
        self.total_cost()
        if not 0 <= index < self._size:
            raise IndexError(
                f"{type(self).__name__}: index {index} out of range for {self._size} values"
            )
        return float(self._derivatives[index])

    def derivatives(self) -> Array:
        self.total_cost()
        view = self._derivatives[: self._size]
        view.flags.writeable = False
        return view

    def _compute(self, predicted: Array, expected: Array, deriv: Array) -> float:
        raise NotImplementedError


class MeanSquaredError(_CachedCost):
    """Half the summed squared error; derivative ``p - e``."""

    name = "mse"

    def _compute(self, predicted: Array, expected: Array, deriv: Array) -> float:
        np.subtract(predicted, expected, out=deriv)
        return float(0.5 * np.dot(deriv, deriv))


class CrossEntropy(_CachedCost):
    """Binary cross entropy summed over the output nodes.

    Terms that evaluate to NaN or infinity (a prediction of exactly 0 or 1)
    contribute 0 to the total, and their derivative is 0.  A saturated
    prediction on the wrong class therefore scores 0, lower than any honest
    prediction, so the total is not a reliable ranking signal once outputs
    saturate; compare accuracy as well when choosing between snapshots.
    """

    name = "ce"

    def _compute(self, predicted: Array, expected: Array, deriv: Array) -> float:
        with np.errstate(divide="ignore", invalid="ignore"):
            terms = np.where(expected >= 1.0, -np.log(predicted), -np.log(1.0 - predicted))
            grads = (predicted - expected) / (predicted * (1.0 - predicted))
        terms[~np.isfinite(terms)] = 0.0
        degenerate = (predicted == 0.0) | (predicted == 1.0) | ~np.isfinite(grads)
        deriv[:] = np.where(degenerate, 0.0, grads)
        return float(np.sum(terms))


CostFactory = Callable[[], CostFunction]


class CostRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, CostFactory] = {}

    def register(self, name: str, factory: CostFactory) -> None:
        self._registry[name] = factory

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str) -> CostFactory:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise ValueError(f"Unknown cost {name!r}. Available costs: {available}")
        return self._registry[name]

    def create(self, name: str) -> CostFunction:
        return self.resolve(name)()


REGISTRY = CostRegistry()
REGISTRY.register("mse", MeanSquaredError)
REGISTRY.register("ce", CrossEntropy)
# Long-form aliases
REGISTRY.register("mean_squared_error", MeanSquaredError)
REGISTRY.register("cross_entropy", CrossEntropy)

__all__ = ["CostFunction", "CostRegistry", "CrossEntropy", "MeanSquaredError", "REGISTRY"]
