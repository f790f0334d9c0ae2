"""Core typing contracts for ffnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

from .errors import ShapeMismatchError

Array = np.ndarray


@dataclass(frozen=True, eq=False)
class DataPoint:
    """A single training sample: input vector and expected output vector.

    Compared and hashed by identity.
    """

    input: Array
    expected_output: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", np.asarray(self.input, dtype=np.float64).ravel())
        object.__setattr__(
            self,
            "expected_output",
            np.asarray(self.expected_output, dtype=np.float64).ravel(),
        )


@dataclass(frozen=True, eq=False)
class LayerSetup:
    """Transfer record for one layer's parameters.

    ``weights[node_in][node_out]`` is the transpose of the layer's internal
    storage, which is packed row-major by output node.
    """

    weights: Array
    biases: Array

    def __post_init__(self) -> None:
        weights = np.array(self.weights, dtype=np.float64, copy=True)
        biases = np.array(self.biases, dtype=np.float64, copy=True).ravel()
        if weights.ndim != 2:
            raise ShapeMismatchError(
                f"weights must be 2-D [num_in][num_out], got shape {weights.shape}"
            )
        if weights.shape[1] != biases.shape[0]:
            raise ShapeMismatchError(
                f"weights have {weights.shape[1]} output columns but "
                f"{biases.shape[0]} biases were given"
            )
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "biases", biases)

    def dims(self) -> tuple[int, int]:
        return int(self.weights.shape[0]), int(self.weights.shape[1])

    def to_dict(self) -> Dict[str, List[Any]]:
        return {"weights": self.weights.tolist(), "biases": self.biases.tolist()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Sequence[Any]]) -> "LayerSetup":
        return cls(weights=np.asarray(payload["weights"]), biases=np.asarray(payload["biases"]))


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :meth:`ffnet.training.trainer.Trainer.run`."""

    epochs: int
    steps: int
    final_cost: float
    metrics_path: str = ""
    manifest_path: str = ""
    checkpoint_path: str = ""


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_sizes: List[int]
    activation: str = ""
    output_activation: str = ""
    cost: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
