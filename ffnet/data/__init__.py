"""Dataset registry and loader helpers."""

# Ensure built-in datasets register themselves when the package is imported.
from . import synthetic as _synthetic  # noqa: F401
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset
from .utils import iter_minibatches, one_hot, to_datapoints

__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "iter_minibatches",
    "one_hot",
    "register_dataset",
    "to_datapoints",
]
