import numpy as np
import pytest

from ffnet.core.costs import REGISTRY, CrossEntropy, MeanSquaredError
from ffnet.core.errors import NotCalculatedError, ShapeMismatchError


def test_mean_squared_error_cost_and_derivative():
    cost = MeanSquaredError()
    cost.calculate_from_inputs(np.array([0.5, 0.2]), np.array([1.0, 0.0]))
    assert cost.total_cost() == pytest.approx(0.5 * (0.25 + 0.04))
    assert cost.derivative(0) == pytest.approx(-0.5)
    assert cost.derivative(1) == pytest.approx(0.2)


def test_cross_entropy_cost_and_derivative():
    cost = CrossEntropy()
    cost.calculate_from_inputs(np.array([0.8, 0.3]), np.array([1.0, 0.0]))
    assert cost.total_cost() == pytest.approx(-np.log(0.8) - np.log(0.7))
    assert cost.derivative(0) == pytest.approx(-1.0 / 0.8)
    assert cost.derivative(1) == pytest.approx(1.0 / 0.7)


@pytest.mark.parametrize(
    "predicted",
    [np.array([1.0, 0.0]), np.array([0.0, 1.0])],
)
def test_cross_entropy_clamps_degenerate_predictions(predicted):
    cost = CrossEntropy()
    cost.calculate_from_inputs(predicted, np.array([1.0, 0.0]))
    assert cost.total_cost() == 0.0
    assert list(cost.derivatives()) == [0.0, 0.0]


def test_costs_non_negative_on_probability_like_inputs():
    rng = np.random.default_rng(0)
    for _ in range(50):
        predicted = rng.uniform(1e-6, 1 - 1e-6, size=4)
        expected = np.eye(4)[rng.integers(0, 4)]
        for cost in (MeanSquaredError(), CrossEntropy()):
            cost.calculate_from_inputs(predicted, expected)
            assert cost.total_cost() >= 0.0


def test_cost_shape_mismatch_is_rejected():
    with pytest.raises(ShapeMismatchError):
        MeanSquaredError().calculate_from_inputs(np.zeros(3), np.zeros(2))


def test_cost_lookups_require_calculation():
    cost = MeanSquaredError()
    with pytest.raises(NotCalculatedError):
        cost.total_cost()
    with pytest.raises(NotCalculatedError):
        cost.derivative(0)
    cost.calculate_from_inputs(np.zeros(2), np.zeros(2))
    with pytest.raises(IndexError):
        cost.derivative(2)
    with pytest.raises(IndexError):
        cost.derivative(-1)


def test_cost_registry():
    assert isinstance(REGISTRY.create("mse"), MeanSquaredError)
    assert isinstance(REGISTRY.create("ce"), CrossEntropy)
    assert {"mse", "ce"} <= set(REGISTRY.names())
    with pytest.raises(ValueError, match="Unknown cost"):
        REGISTRY.resolve("hinge")


def test_cross_entropy_scores_saturated_wrong_prediction_as_zero():
    cost = CrossEntropy()
    cost.calculate_from_inputs(np.array([0.0, 1.0]), np.array([1.0, 0.0]))
    wrong = cost.total_cost()
    cost.calculate_from_inputs(np.array([0.9, 0.1]), np.array([1.0, 0.0]))
    assert wrong == 0.0
    assert cost.total_cost() > wrong
