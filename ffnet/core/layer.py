"""Fully-connected layer with flat, row-major-by-output weight storage."""

from __future__ import annotations

import numpy as np

from .activations import ActivationFunction
from .errors import NumericalDivergenceError, ShapeMismatchError
from .learn_data import LayerLearnData
from .types import Array, LayerSetup


def weight_index(node_in, node_out, num_in: int):
    """Index of the weight connecting ``node_in`` to ``node_out``.

    Works elementwise on integer arrays, so the same formula addresses single
    weights and whole index grids.
    """

    return node_out * num_in + node_in


class Layer:
    """One weight matrix and bias vector plus their training companions.

    ``weights`` is flat with length ``num_in * num_out``; the weight from input
    node ``i`` to output node ``j`` lives at ``weight_index(i, j, num_in)``.
    ``weight_matrix()`` is the ``(num_out, num_in)`` view of that buffer that
    the forward and backward passes multiply with.
    """

    def __init__(
        self,
        num_in: int,
        num_out: int,
        activation: ActivationFunction,
        rng: np.random.Generator | None = None,
    ) -> None:
        if num_in < 1 or num_out < 1:
            raise ValueError(f"layer dimensions must be positive, got ({num_in}, {num_out})")
        self.num_in = int(num_in)
        size = self.num_in * int(num_out)
        if rng is None:
            self.weights = np.zeros(size, dtype=np.float64)
            self.biases = np.zeros(num_out, dtype=np.float64)
        else:
            bound = 1.0 / np.sqrt(self.num_in)
            self.weights = rng.uniform(-bound, bound, size=size)
            self.biases = rng.uniform(-1.0, 1.0, size=num_out)
        self.weight_velocity = np.zeros(size, dtype=np.float64)
        self.bias_velocity = np.zeros(num_out, dtype=np.float64)
        self.cost_gradient_w = np.zeros(size, dtype=np.float64)
        self.cost_gradient_b = np.zeros(num_out, dtype=np.float64)
        self.activation = activation

    def __repr__(self) -> str:
        num_in, num_out = self.dims()
        return f"<Layer num_in={num_in}, num_out={num_out}, activation={self.activation!r}>"

    def dims(self) -> tuple[int, int]:
        return self.num_in, int(self.biases.shape[0])

    def weight_index(self, node_in: int, node_out: int) -> int:
        num_in, num_out = self.dims()
        if not (0 <= node_in < num_in and 0 <= node_out < num_out):
            raise IndexError(
                f"weight ({node_in}, {node_out}) out of range for layer ({num_in}, {num_out})"
            )
        return weight_index(node_in, node_out, num_in)

    def weight_matrix(self) -> Array:
        num_in, num_out = self.dims()
        return self.weights.reshape(num_out, num_in)

    def forward(self, inputs: Array) -> tuple[Array, Array]:
        """Return ``(weighted_inputs, activations)`` for ``inputs``."""

        x = np.asarray(inputs, dtype=np.float64).ravel()
        num_in, _ = self.dims()
        if x.shape[0] != num_in:
            raise ShapeMismatchError(f"layer expects {num_in} inputs, got {x.shape[0]}")
        with np.errstate(over="ignore", invalid="ignore"):
            weighted = self.biases + self.weight_matrix() @ x
        if not np.all(np.isfinite(weighted)):
            raise NumericalDivergenceError("NaN/Inf in weighted input calculation")
        self.activation.calculate_from_inputs(weighted)
        activations = np.array(self.activation.activations())
        if not np.all(np.isfinite(activations)):
            raise NumericalDivergenceError("NaN/Inf activation value")
        return weighted, activations

    def update_gradients(self, learn_data: LayerLearnData) -> None:
        """Accumulate dCost/dW and dCost/dB for one sample's node values."""

        num_in, num_out = self.dims()
        node_values = learn_data.node_values
        self.cost_gradient_b += node_values
        grad_w = self.cost_gradient_w.reshape(num_out, num_in)
        grad_w += np.outer(node_values, learn_data.inputs)

    def apply_gradients(self, learn_rate: float, regularization: float, momentum: float) -> None:
        """Step weights and biases with momentum and L2 decay, then zero the gradients."""

        weight_decay = 1.0 - regularization * learn_rate

        self.weight_velocity *= momentum
        self.weight_velocity -= self.cost_gradient_w * learn_rate
        self.weights *= weight_decay
        self.weights += self.weight_velocity

        # Biases are not decayed.
        self.bias_velocity *= momentum
        self.bias_velocity -= self.cost_gradient_b * learn_rate
        self.biases += self.bias_velocity
        self.clear_gradients()

    def clear_gradients(self) -> None:
        self.cost_gradient_w.fill(0.0)
        self.cost_gradient_b.fill(0.0)

    def to_setup(self) -> LayerSetup:
        num_in, num_out = self.dims()
        grid = weight_index(
            np.arange(num_in)[:, None], np.arange(num_out)[None, :], num_in
        )
        return LayerSetup(weights=self.weights[grid], biases=self.biases)

    def load_setup(self, setup: LayerSetup) -> None:
        """Overwrite parameters in place from a transposed ``setup``."""

        if setup.dims() != self.dims():
            raise ShapeMismatchError(
                f"setup dims {setup.dims()} do not match layer dims {self.dims()}"
            )
        num_in, num_out = self.dims()
        grid = weight_index(
            np.arange(num_in)[:, None], np.arange(num_out)[None, :], num_in
        )
        self.weights[grid] = setup.weights
        self.biases[:] = setup.biases

    @classmethod
    def from_setup(cls, setup: LayerSetup, activation: ActivationFunction) -> "Layer":
        num_in, num_out = setup.dims()
        layer = cls(num_in, num_out, activation)
        layer.load_setup(setup)
        return layer


__all__ = ["Layer", "weight_index"]
