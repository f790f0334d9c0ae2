"""Feed-forward network trained with analytic backpropagation."""

from __future__ import annotations

import warnings
from typing import Iterable, List, Sequence

import numpy as np

from .activations import ActivationFactory, SoftMax
from .costs import CostFunction, CrossEntropy
from .errors import NumericalDivergenceError, ShapeMismatchError
from .layer import Layer
from .learn_data import LayerLearnData, LearnDataPool
from .types import Array, DataPoint, LayerSetup, ModelDescription


def _as_datapoint(sample) -> DataPoint:
    if isinstance(sample, DataPoint):
        return sample
    inputs, expected = sample
    return DataPoint(inputs, expected)


def _check_chain(dims: Sequence[tuple[int, int]]) -> None:
    for idx, ((_, out_dim), (in_dim, _)) in enumerate(zip(dims[:-1], dims[1:])):
        if out_dim != in_dim:
            raise ShapeMismatchError(
                f"layer {idx} outputs {out_dim} values but layer {idx + 1} expects {in_dim}"
            )


class Network:
    """Ordered stack of :class:`Layer` objects sharing one cost function.

    Parameters
    ----------
    layer_sizes:
        Node counts from the input layer to the output layer (at least two).
    activation:
        Zero-argument factory; every layer gets its own instance.
    cost:
        Cost function instance shared by the whole network.
    rng:
        ``numpy.random.Generator`` or seed used only to initialise weights
        (uniform in ``±1/sqrt(num_in)``) and biases (uniform in ``±1``).
    output_activation:
        Optional factory used for the last layer instead of ``activation``.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: ActivationFactory,
        cost: CostFunction,
        rng: np.random.Generator | int | None = None,
        *,
        output_activation: ActivationFactory | None = None,
    ) -> None:
        sizes = [int(size) for size in layer_sizes]
        if len(sizes) < 2:
            raise ValueError(f"need at least two layer sizes, got {sizes}")
        if min(sizes) < 1:
            raise ValueError(f"layer sizes must be positive, got {sizes}")
        generator = np.random.default_rng(rng)
        last = len(sizes) - 2
        layers: List[Layer] = []
        for idx, (num_in, num_out) in enumerate(zip(sizes[:-1], sizes[1:])):
            factory = output_activation if (idx == last and output_activation) else activation
            layers.append(Layer(num_in, num_out, factory(), generator))
        self._install(layers, cost)

    def __repr__(self) -> str:
        return f"<Network layer_sizes={self.layer_sizes}, cost={self.cost!r}>"

    @classmethod
    def from_setups(
        cls,
        setups: Sequence[LayerSetup],
        activation: ActivationFactory,
        cost: CostFunction,
        *,
        output_activation: ActivationFactory | None = None,
    ) -> "Network":
        """Reconstruct a network from an exported parameter snapshot."""

        network = cls.__new__(cls)
        network._install(_layers_from_setups(setups, activation, output_activation), cost)
        return network

    def _install(self, layers: List[Layer], cost: CostFunction) -> None:
        _check_chain([layer.dims() for layer in layers])
        self.layers = layers
        self.cost = cost
        self._learn_data = LearnDataPool([layer.dims() for layer in layers])
        if isinstance(layers[-1].activation, SoftMax) and isinstance(cost, CrossEntropy):
            warnings.warn(
                "SoftMax output with CrossEntropy uses the diagonal SoftMax derivative; "
                "the gradient is not prediction - target",
                RuntimeWarning,
                stacklevel=3,
            )

    # ------------------------------------------------------------------
    # Structure

    @property
    def layer_sizes(self) -> List[int]:
        return [self.layers[0].dims()[0]] + [layer.dims()[1] for layer in self.layers]

    def dims(self) -> tuple[int, int]:
        num_in, _ = self.layers[0].dims()
        _, num_out = self.layers[-1].dims()
        return num_in, num_out

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_sizes=self.layer_sizes,
            activation=getattr(self.layers[0].activation, "name", ""),
            output_activation=getattr(self.layers[-1].activation, "name", ""),
            cost=getattr(self.cost, "name", ""),
        )

    def parameter_count(self) -> int:
        return int(sum(layer.weights.size + layer.biases.size for layer in self.layers))

    @property
    def learn_data(self) -> LearnDataPool:
        return self._learn_data

    # ------------------------------------------------------------------
    # Inference

    def forward(self, inputs: Array) -> Array:
        """Run ``inputs`` through every layer and return the output activations."""

        x = np.asarray(inputs, dtype=np.float64).ravel()
        num_in, _ = self.dims()
        if x.shape[0] != num_in:
            raise ShapeMismatchError(f"network expects {num_in} inputs, got {x.shape[0]}")
        for layer in self.layers:
            _, x = layer.forward(x)
        return x

    def classify(self, inputs: Array) -> tuple[int, Array]:
        """Return the index of the strongest output node and all outputs.

        Ties go to the lowest index.
        """

        outputs = self.forward(inputs)
        return int(np.argmax(outputs)), outputs

    def cost_of(self, sample: DataPoint) -> float:
        point = _as_datapoint(sample)
        self.cost.calculate_from_inputs(self.forward(point.input), point.expected_output)
        return self.cost.total_cost()

    def average_cost(self, data: Iterable[DataPoint]) -> float:
        """Mean per-sample total cost over ``data``."""

        points = [_as_datapoint(sample) for sample in data]
        if not points:
            raise ValueError("cannot compute the cost of an empty dataset")
        return float(sum(self.cost_of(point) for point in points) / len(points))

    # ------------------------------------------------------------------
    # Training

    def learn(
        self,
        batch: Sequence[DataPoint],
        learn_rate: float,
        regularization: float = 0.0,
        momentum: float = 0.0,
    ) -> None:
        """Accumulate gradients over ``batch`` and apply their average once.

        If any sample fails, the gradients gathered so far are discarded and
        the parameters are left untouched.
        """

        points = [_as_datapoint(sample) for sample in batch]
        if not points:
            raise ValueError("cannot learn from an empty batch")
        self._learn_data.ensure(len(points))
        try:
            for slot, point in enumerate(points):
                self.update_gradients(point, self._learn_data.slot(slot))
        except (NumericalDivergenceError, ShapeMismatchError):
            for layer in self.layers:
                layer.clear_gradients()
            raise
        scaled = learn_rate / len(points)
        for layer in self.layers:
            layer.apply_gradients(scaled, regularization, momentum)

    def update_gradients(self, sample: DataPoint, learn_data: Sequence[LayerLearnData]) -> None:
        """Forward ``sample`` and backpropagate its error into the layer gradients."""

        point = _as_datapoint(sample)
        num_in, num_out = self.dims()
        if point.input.shape[0] != num_in:
            raise ShapeMismatchError(f"network expects {num_in} inputs, got {point.input.shape[0]}")
        if point.expected_output.shape[0] != num_out:
            raise ShapeMismatchError(
                f"network produces {num_out} outputs, got {point.expected_output.shape[0]} expected values"
            )

        inputs = point.input
        for layer, record in zip(self.layers, learn_data):
            weighted, activations = layer.forward(inputs)
            record.inputs[:] = inputs
            record.weighted_inputs[:] = weighted
            record.activations[:] = activations
            inputs = record.activations

        # Output layer: dC/dz = dC/da * da/dz.
        output_layer = self.layers[-1]
        output_record = learn_data[len(self.layers) - 1]
        self.cost.calculate_from_inputs(output_record.activations, point.expected_output)
        np.multiply(
            self.cost.derivatives(),
            output_layer.activation.derivatives(),
            out=output_record.node_values,
        )
        output_layer.update_gradients(output_record)

        for idx in range(len(self.layers) - 2, -1, -1):
            layer = self.layers[idx]
            next_layer = self.layers[idx + 1]
            record = learn_data[idx]
            # Row k of the next layer's matrix holds the weights j -> k.
            propagated = next_layer.weight_matrix().T @ learn_data[idx + 1].node_values
            np.multiply(propagated, layer.activation.derivatives(), out=record.node_values)
            layer.update_gradients(record)

    # ------------------------------------------------------------------
    # Parameter exchange

    def export(self) -> List[LayerSetup]:
        return [layer.to_setup() for layer in self.layers]

    def import_setups(
        self,
        setups: Sequence[LayerSetup],
        activation: ActivationFactory,
        *,
        output_activation: ActivationFactory | None = None,
    ) -> None:
        """Replace every layer with one rebuilt from ``setups``."""

        self._install(_layers_from_setups(setups, activation, output_activation), self.cost)


def _layers_from_setups(
    setups: Sequence[LayerSetup],
    activation: ActivationFactory,
    output_activation: ActivationFactory | None,
) -> List[Layer]:
    if not setups:
        raise ValueError("cannot build a network from an empty snapshot")
    last = len(setups) - 1
    layers = []
    for idx, setup in enumerate(setups):
        factory = output_activation if (idx == last and output_activation) else activation
        layers.append(Layer.from_setup(setup, factory()))
    return layers


__all__ = ["Network"]
