"""Helpers for turning raw arrays into training samples."""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from ..core.errors import ShapeMismatchError
from ..core.types import Array, DataPoint


def one_hot(labels: Array, num_classes: int) -> Array:
    labels = np.asarray(labels).reshape(-1).astype(int)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(f"labels must lie in [0, {num_classes}), got {labels.min()}..{labels.max()}")
    out = np.zeros((labels.shape[0], num_classes), dtype=np.float64)
    out[np.arange(labels.shape[0]), labels] = 1.0
    return out


def to_datapoints(inputs: Array, labels: Array, num_classes: int) -> List[DataPoint]:
    """Pair each input row with a one-hot expected output vector."""

    inputs = np.asarray(inputs, dtype=np.float64)
    if inputs.ndim == 1:
        inputs = inputs.reshape(-1, 1)
    targets = one_hot(labels, num_classes)
    if inputs.shape[0] != targets.shape[0]:
        raise ShapeMismatchError(
            f"{inputs.shape[0]} input rows but {targets.shape[0]} labels"
        )
    # Each sample gets views into the two contiguous arrays.
    return [DataPoint(x, y) for x, y in zip(inputs, targets)]


def label_of(point: DataPoint) -> int:
    return int(np.argmax(point.expected_output))


def iter_minibatches(
    points: Sequence[DataPoint],
    batch_size: int,
    rng: np.random.Generator | None = None,
    *,
    drop_last: bool = False,
) -> Iterator[List[DataPoint]]:
    """Yield mini-batches of ``points``, shuffled when ``rng`` is given."""

    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    order = np.arange(len(points))
    if rng is not None:
        rng.shuffle(order)
    for start in range(0, len(order), batch_size):
        idx = order[start : start + batch_size]
        if drop_last and len(idx) < batch_size:
            break
        yield [points[i] for i in idx]


def deterministic_split(
    points: Sequence[DataPoint], val_split: float, seed: int
) -> tuple[List[DataPoint], List[DataPoint]]:
    if not 0.0 <= val_split < 1.0:
        raise ValueError(f"val_split must lie in [0, 1), got {val_split}")
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(points))
    n_val = int(round(len(points) * val_split))
    val = [points[i] for i in order[:n_val]]
    train = [points[i] for i in order[n_val:]]
    return train, val


__all__ = ["deterministic_split", "iter_minibatches", "label_of", "one_hot", "to_datapoints"]
