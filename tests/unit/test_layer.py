import numpy as np
import pytest

from ffnet.core.activations import ReLU, Sigmoid
from ffnet.core.errors import NumericalDivergenceError, ShapeMismatchError
from ffnet.core.layer import Layer, weight_index
from ffnet.core.learn_data import LayerLearnData
from ffnet.core.types import LayerSetup


def _layer(num_in=3, num_out=4, seed=0, activation=Sigmoid):
    return Layer(num_in, num_out, activation(), np.random.default_rng(seed))


def _learn_data(inputs, node_values):
    inputs = np.asarray(inputs, dtype=float)
    node_values = np.asarray(node_values, dtype=float)
    return LayerLearnData(
        inputs=inputs,
        weighted_inputs=np.zeros_like(node_values),
        activations=np.zeros_like(node_values),
        node_values=node_values,
    )


@pytest.mark.parametrize("dims", [(1, 1), (3, 4), (5, 2)])
def test_weight_index_is_a_bijection(dims):
    num_in, num_out = dims
    layer = _layer(num_in, num_out)
    indices = [layer.weight_index(i, j) for i in range(num_in) for j in range(num_out)]
    assert sorted(indices) == list(range(num_in * num_out))
    assert layer.weight_index(num_in - 1, 0) == weight_index(num_in - 1, 0, num_in)


def test_weight_index_rejects_out_of_range_nodes():
    layer = _layer(2, 2)
    with pytest.raises(IndexError):
        layer.weight_index(2, 0)
    with pytest.raises(IndexError):
        layer.weight_index(0, -1)


def test_weight_matrix_is_a_view_of_flat_storage():
    layer = _layer(3, 4)
    matrix = layer.weight_matrix()
    for i in range(3):
        for j in range(4):
            assert matrix[j, i] == layer.weights[layer.weight_index(i, j)]
    matrix[1, 2] = 42.0
    assert layer.weights[layer.weight_index(2, 1)] == 42.0


def test_initialisation_ranges():
    layer = _layer(16, 8)
    bound = 1.0 / np.sqrt(16)
    assert np.all(np.abs(layer.weights) <= bound)
    assert np.all(np.abs(layer.biases) <= 1.0)
    assert layer.weights.shape == (16 * 8,)
    assert not np.any(layer.weight_velocity) and not np.any(layer.bias_velocity)


def test_forward_matches_explicit_sum():
    layer = _layer(3, 4, activation=ReLU)
    x = np.array([0.5, -1.0, 2.0])
    weighted, activations = layer.forward(x)
    assert activations.shape == (4,)
    for j in range(4):
        total = layer.biases[j] + sum(
            x[i] * layer.weights[layer.weight_index(i, j)] for i in range(3)
        )
        assert weighted[j] == pytest.approx(total)
        assert activations[j] == pytest.approx(max(0.0, total))


def test_forward_returns_private_copies():
    layer = _layer(2, 2)
    _, first = layer.forward(np.array([1.0, 2.0]))
    snapshot = first.copy()
    layer.forward(np.array([-5.0, 3.0]))
    assert np.array_equal(first, snapshot)


def test_forward_rejects_wrong_input_length():
    layer = _layer(3, 2)
    with pytest.raises(ShapeMismatchError):
        layer.forward(np.zeros(4))


@pytest.mark.parametrize("bad", [np.nan, np.inf])
def test_forward_aborts_on_non_finite_weighted_input(bad):
    layer = _layer(2, 2)
    layer.weights[0] = bad
    with pytest.raises(NumericalDivergenceError):
        layer.forward(np.array([1.0, 1.0]))


def test_update_gradients_accumulates():
    layer = _layer(2, 3)
    data = _learn_data([1.0, -2.0], [0.5, 0.0, -1.0])
    layer.update_gradients(data)
    layer.update_gradients(data)
    assert np.allclose(layer.cost_gradient_b, [1.0, 0.0, -2.0])
    for i in range(2):
        for j in range(3):
            expected = 2 * data.inputs[i] * data.node_values[j]
            assert layer.cost_gradient_w[layer.weight_index(i, j)] == pytest.approx(expected)


def test_apply_gradients_uses_momentum_and_decay():
    layer = _layer(2, 2)
    w0, b0 = layer.weights.copy(), layer.biases.copy()
    layer.update_gradients(_learn_data([1.0, 2.0], [0.5, -0.25]))
    grad_w, grad_b = layer.cost_gradient_w.copy(), layer.cost_gradient_b.copy()

    learn_rate, regularization, momentum = 0.1, 0.2, 0.9
    layer.apply_gradients(learn_rate, regularization, momentum)

    assert np.allclose(layer.weight_velocity, -grad_w * learn_rate)
    assert np.allclose(layer.weights, w0 * (1 - regularization * learn_rate) - grad_w * learn_rate)
    assert np.allclose(layer.biases, b0 - grad_b * learn_rate)
    assert not np.any(layer.cost_gradient_w)
    assert not np.any(layer.cost_gradient_b)


def test_second_apply_without_new_gradients_only_decays():
    layer = _layer(3, 2)
    layer.update_gradients(_learn_data([1.0, -1.0, 0.5], [0.3, -0.7]))
    learn_rate, regularization, momentum = 0.5, 0.1, 0.8
    layer.apply_gradients(learn_rate, regularization, momentum)

    w1, b1 = layer.weights.copy(), layer.biases.copy()
    vw1, vb1 = layer.weight_velocity.copy(), layer.bias_velocity.copy()
    layer.apply_gradients(learn_rate, regularization, momentum)

    assert np.allclose(layer.weight_velocity, vw1 * momentum)
    assert np.allclose(layer.bias_velocity, vb1 * momentum)
    assert np.allclose(layer.weights, w1 * (1 - regularization * learn_rate) + vw1 * momentum)
    assert np.allclose(layer.biases, b1 + vb1 * momentum)


def test_setup_is_the_transpose_of_internal_storage():
    layer = _layer(3, 2)
    setup = layer.to_setup()
    assert setup.dims() == (3, 2)
    for i in range(3):
        for j in range(2):
            assert setup.weights[i][j] == layer.weights[layer.weight_index(i, j)]
    assert np.array_equal(setup.biases, layer.biases)

    rebuilt = Layer.from_setup(setup, Sigmoid())
    assert np.array_equal(rebuilt.weights, layer.weights)
    assert np.array_equal(rebuilt.biases, layer.biases)


def test_load_setup_rejects_other_dimensions():
    layer = _layer(3, 2)
    with pytest.raises(ShapeMismatchError):
        layer.load_setup(LayerSetup(weights=np.zeros((2, 3)), biases=np.zeros(3)))


def test_layer_setup_validates_shapes():
    with pytest.raises(ShapeMismatchError):
        LayerSetup(weights=np.zeros((2, 3)), biases=np.zeros(2))
    with pytest.raises(ShapeMismatchError):
        LayerSetup(weights=np.zeros(3), biases=np.zeros(3))
