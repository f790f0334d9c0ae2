from __future__ import annotations

from typing import Mapping

import numpy as np
import pytest

from ffnet.core.activations import ReLU, Sigmoid, SoftMax
from ffnet.core.costs import CrossEntropy, MeanSquaredError
from ffnet.data.synthetic import make_2d_classification
from ffnet.training.checkpoint import load_checkpoint
from ffnet.training.hyperparams import HyperParameters
from ffnet.training.metrics import accuracy, compute_metrics
from ffnet.training.trainer import Trainer


class _Capture:
    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((epoch, {k: float(v) for k, v in metrics.items()}))


def _sigmoid_hyper(**overrides) -> HyperParameters:
    params = dict(
        layer_sizes=[2, 4, 2],
        activation="sigmoid",
        output_activation=None,
        cost="mse",
        learn_rate_initial=1.0,
        learn_rate_decay=0.0,
        mini_batch_size=10,
        momentum=0.9,
        regularization=0.0,
    )
    params.update(overrides)
    return HyperParameters(**params)


def test_hyperparameter_defaults():
    hyper = HyperParameters(layer_sizes=[2, 3, 2])
    assert hyper.activation == "relu"
    assert hyper.output_activation == "softmax"
    assert hyper.cost == "ce"
    assert hyper.learn_rate_initial == pytest.approx(0.05)
    assert hyper.learn_rate_decay == pytest.approx(0.075)
    assert hyper.mini_batch_size == 32
    assert hyper.momentum == pytest.approx(0.9)
    assert hyper.regularization == pytest.approx(0.1)


def test_learn_rate_decays_per_epoch():
    hyper = HyperParameters(learn_rate_initial=0.5, learn_rate_decay=0.25)
    assert hyper.learn_rate(0) == pytest.approx(0.5)
    assert hyper.learn_rate(4) == pytest.approx(0.25)


def test_hyperparameter_validation_and_mapping():
    with pytest.raises(ValueError):
        HyperParameters(mini_batch_size=0)
    with pytest.raises(ValueError):
        HyperParameters(learn_rate_initial=0.0)
    with pytest.raises(KeyError):
        HyperParameters.from_mapping({"layer_sizes": [2, 2], "dropout": 0.5})
    hyper = HyperParameters.from_mapping(_sigmoid_hyper().to_dict())
    assert hyper == _sigmoid_hyper()


def test_default_network_warns_about_softmax_with_cross_entropy():
    with pytest.warns(RuntimeWarning, match="SoftMax"):
        net = HyperParameters(layer_sizes=[2, 3, 2]).build_network(0)
    assert isinstance(net.layers[0].activation, ReLU)
    assert isinstance(net.layers[-1].activation, SoftMax)
    assert isinstance(net.cost, CrossEntropy)


def test_sigmoid_network_builds_without_output_override():
    net = _sigmoid_hyper().build_network(0)
    assert all(isinstance(layer.activation, Sigmoid) for layer in net.layers)
    assert isinstance(net.cost, MeanSquaredError)


def test_trainer_reduces_cost_and_reports_each_epoch(tmp_path):
    data = make_2d_classification(200, np.random.default_rng(3))
    hyper = _sigmoid_hyper(learn_rate_decay=0.1)
    network = hyper.build_network(1)
    initial = network.average_cost(data)
    capture = _Capture()

    result = Trainer(network, hyper, callbacks=[capture]).run(
        data, epochs=8, seed=4, checkpoint_dir=tmp_path
    )

    assert result.epochs == 8
    assert result.steps == 8 * 20
    assert result.final_cost < initial
    assert [epoch for epoch, _ in capture.history] == list(range(1, 9))
    assert capture.history[3][1]["learn_rate"] == pytest.approx(hyper.learn_rate(3))
    assert set(capture.history[0][1]) == {"cost", "accuracy", "learn_rate"}

    setups = load_checkpoint(result.checkpoint_path)
    assert [s.dims() for s in setups] == [(2, 4), (4, 2)]
    for setup, exported in zip(setups, network.export()):
        assert np.array_equal(setup.weights, exported.weights)
        assert np.array_equal(setup.biases, exported.biases)
    assert (tmp_path / "best.npz").exists()


def test_trainer_is_deterministic_for_a_seed():
    data = make_2d_classification(60, np.random.default_rng(8))
    hyper = _sigmoid_hyper()
    first = hyper.build_network(2)
    second = hyper.build_network(2)
    Trainer(first, hyper).run(data, epochs=3, seed=9)
    Trainer(second, hyper).run(data, epochs=3, seed=9)
    for a, b in zip(first.layers, second.layers):
        assert np.array_equal(a.weights, b.weights)


def test_trainer_rejects_bad_arguments():
    hyper = _sigmoid_hyper()
    trainer = Trainer(hyper.build_network(0), hyper)
    with pytest.raises(ValueError):
        trainer.run([], epochs=1, seed=0)
    with pytest.raises(ValueError):
        trainer.run(make_2d_classification(10, np.random.default_rng(0)), epochs=0, seed=0)


def test_metrics_report_cost_and_accuracy():
    data = make_2d_classification(50, np.random.default_rng(1))
    network = _sigmoid_hyper().build_network(0)
    metrics = compute_metrics(network, data)
    assert metrics["cost"] == pytest.approx(network.average_cost(data))
    assert 0.0 <= metrics["accuracy"] <= 1.0
    assert accuracy(network, []) == 0.0


def _scripted_metrics(monkeypatch, script):
    from ffnet.training import trainer as trainer_module

    calls = iter(script)
    monkeypatch.setattr(trainer_module, "compute_metrics", lambda network, data: next(calls))


@pytest.mark.parametrize(
    ("cost", "expected_epochs"),
    [("ce", 2), ("mse", 3)],
)
def test_early_stopping_ranks_cross_entropy_by_accuracy(monkeypatch, cost, expected_epochs):
    # Epoch 2 collapses to a clamped zero cost while accuracy drops.
    _scripted_metrics(
        monkeypatch,
        [
            {"cost": 0.5, "accuracy": 0.9},
            {"cost": 0.0, "accuracy": 0.1},
            {"cost": 0.0, "accuracy": 0.1},
        ],
    )
    hyper = _sigmoid_hyper(cost=cost)
    data = make_2d_classification(20, np.random.default_rng(0))
    result = Trainer(hyper.build_network(0), hyper).run(
        data, epochs=3, seed=0, early_stopping_patience=1
    )
    assert result.epochs == expected_epochs
