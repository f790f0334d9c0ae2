"""Per-sample, per-layer scratch storage reused across mini-batches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .types import Array


@dataclass
class LayerLearnData:
    """Views into the pool slab for one ``(sample_slot, layer_index)`` pair.

    ``node_values[j]`` holds dCost/dWeightedInput for output node ``j``.
    """

    inputs: Array
    weighted_inputs: Array
    activations: Array
    node_values: Array


class LearnDataPool:
    """One contiguous slab carved into :class:`LayerLearnData` views.

    The slab is sized for ``batch_size`` samples and only reallocated when a
    batch of a different size arrives.  Contents are overwritten every sample
    and never read across samples.
    """

    def __init__(self, layer_dims: Sequence[Tuple[int, int]]) -> None:
        self.layer_dims = [(int(n_in), int(n_out)) for n_in, n_out in layer_dims]
        self._sample_width = sum(n_in + 3 * n_out for n_in, n_out in self.layer_dims)
        self._slab = np.zeros(0, dtype=np.float64)
        self._slots: List[List[LayerLearnData]] = []

    @property
    def batch_size(self) -> int:
        return len(self._slots)

    @property
    def slab(self) -> Array:
        return self._slab

    def ensure(self, batch_size: int) -> bool:
        """Size the pool for ``batch_size`` samples; return ``True`` on reallocation."""

        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if batch_size == self.batch_size:
            return False
        self._slab = np.zeros(batch_size * self._sample_width, dtype=np.float64)
        self._slots = [self._carve(sample) for sample in range(batch_size)]
        return True

    def slot(self, sample: int) -> List[LayerLearnData]:
        return self._slots[sample]

    def __getitem__(self, key: Tuple[int, int]) -> LayerLearnData:
        sample, layer = key
        return self._slots[sample][layer]

    def _carve(self, sample: int) -> List[LayerLearnData]:
        offset = sample * self._sample_width
        records: List[LayerLearnData] = []
        for n_in, n_out in self.layer_dims:
            views = []
            for width in (n_in, n_out, n_out, n_out):
                views.append(self._slab[offset : offset + width])
                offset += width
            records.append(LayerLearnData(*views))
        return records


__all__ = ["LayerLearnData", "LearnDataPool"]
