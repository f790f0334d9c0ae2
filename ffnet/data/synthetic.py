"""Pure in-memory synthetic classification datasets."""

from __future__ import annotations

from typing import Callable, Dict, List

import numpy as np

from ..core.types import DataPoint
from .registry import DatasetSpec, register_dataset
from .utils import deterministic_split, to_datapoints

Classifier2D = Callable[[float, float], int]


def parabola_boundary(x: float, y: float) -> int:
    """Class 1 below the parabola ``y = 0.5 - x**2``."""

    return 1 if -x * x + 0.5 > y else 0


def sharp_parabola_boundary(x: float, y: float) -> int:
    x -= 0.5
    return 1 if -5 * x * x + 0.8 > y else 0


BOUNDARIES: Dict[str, Classifier2D] = {
    "parabola": parabola_boundary,
    "sharp_parabola": sharp_parabola_boundary,
}


def make_2d_classification(
    n: int,
    rng: np.random.Generator,
    classifier: Classifier2D = parabola_boundary,
    num_classes: int = 2,
) -> List[DataPoint]:
    """Sample ``n`` points uniformly in the unit square and label them."""

    coords = rng.random((n, 2))
    labels = np.array([classifier(float(x), float(y)) for x, y in coords], dtype=int)
    return to_datapoints(coords, labels, num_classes)


def make_xor(repeats: int = 1) -> List[DataPoint]:
    """The four XOR corners, one-hot over two classes."""

    coords = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]] * repeats)
    labels = np.array([0, 1, 1, 0] * repeats)
    return to_datapoints(coords, labels, 2)


def _two_d_factory(
    n_points: int = 400,
    boundary: str = "parabola",
    seed: int = 0,
    val_split: float = 0.2,
    **_: object,
) -> DatasetSpec:
    if boundary not in BOUNDARIES:
        available = ", ".join(sorted(BOUNDARIES))
        raise ValueError(f"Unknown boundary {boundary!r}. Available boundaries: {available}")
    points = make_2d_classification(n_points, np.random.default_rng(seed), BOUNDARIES[boundary])
    train, val = deterministic_split(points, val_split=val_split, seed=seed)
    return DatasetSpec(
        name="two_d",
        train=train,
        val=val,
        num_inputs=2,
        num_classes=2,
        provenance={
            "type": "synthetic",
            "boundary": boundary,
            "n_points": n_points,
            "seed": seed,
            "val_split": val_split,
        },
    )


def _xor_factory(repeats: int = 4, **_: object) -> DatasetSpec:
    points = make_xor(repeats)
    return DatasetSpec(
        name="xor",
        train=points,
        val=[],
        num_inputs=2,
        num_classes=2,
        provenance={"type": "synthetic", "repeats": repeats},
    )


register_dataset("two_d", _two_d_factory)
register_dataset("xor", _xor_factory)
