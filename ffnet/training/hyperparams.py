"""Hyper-parameter bundle with the engine's reference defaults."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping

import numpy as np

from ..core.activations import get_activation
from ..core.costs import REGISTRY as COST_REGISTRY
from ..core.network import Network


@dataclass
class HyperParameters:
    """Everything needed to build a network and drive ``Network.learn``.

    The learn rate decays per epoch as
    ``learn_rate_initial / (1 + learn_rate_decay * epoch)``.
    """

    layer_sizes: List[int] = field(default_factory=list)
    activation: str = "relu"
    output_activation: str | None = "softmax"
    cost: str = "ce"
    learn_rate_initial: float = 0.05
    learn_rate_decay: float = 0.075
    mini_batch_size: int = 32
    momentum: float = 0.9
    regularization: float = 0.1

    def __post_init__(self) -> None:
        self.layer_sizes = [int(size) for size in self.layer_sizes]
        if self.mini_batch_size < 1:
            raise ValueError(f"mini_batch_size must be >= 1, got {self.mini_batch_size}")
        if self.learn_rate_initial <= 0:
            raise ValueError(f"learn_rate_initial must be positive, got {self.learn_rate_initial}")
        if self.learn_rate_decay < 0:
            raise ValueError(f"learn_rate_decay must be non-negative, got {self.learn_rate_decay}")

    def learn_rate(self, epoch: int) -> float:
        return self.learn_rate_initial / (1.0 + self.learn_rate_decay * epoch)

    def build_network(self, rng: np.random.Generator | int | None = None) -> Network:
        output = get_activation(self.output_activation) if self.output_activation else None
        return Network(
            self.layer_sizes,
            get_activation(self.activation),
            COST_REGISTRY.create(self.cost),
            rng,
            output_activation=output,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "HyperParameters":
        known = set(cls.__dataclass_fields__)
        unknown = set(payload) - known
        if unknown:
            raise KeyError(f"Unknown hyper-parameters: {', '.join(sorted(unknown))}")
        return cls(**dict(payload))


__all__ = ["HyperParameters"]
