"""Metric helpers for the trainer."""

from __future__ import annotations

from typing import Mapping, Sequence

from ..core.network import Network
from ..core.types import DataPoint
from ..data.utils import label_of


def accuracy(network: Network, data: Sequence[DataPoint]) -> float:
    if not data:
        return 0.0
    correct = sum(1 for point in data if network.classify(point.input)[0] == label_of(point))
    return correct / len(data)


def compute_metrics(network: Network, data: Sequence[DataPoint]) -> Mapping[str, float]:
    """Mean cost and classification accuracy of ``network`` over ``data``."""

    return {
        "cost": network.average_cost(data),
        "accuracy": accuracy(network, data),
    }


__all__ = ["accuracy", "compute_metrics"]
