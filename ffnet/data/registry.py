"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, MutableMapping

from ..core.types import DataPoint


@dataclass(frozen=True)
class DatasetSpec:
    """Samples and structural information for a registered dataset.

    Attributes
    ----------
    train, val:
        Ready-made :class:`~ffnet.core.types.DataPoint` lists.  The engine
        never shuffles or partitions them itself.
    num_inputs:
        Length of every input vector; must match the first layer size.
    num_classes:
        Length of every expected output vector; must match the last layer.
    provenance:
        Free-form metadata recorded in the run manifest.
    """

    name: str
    train: List[DataPoint]
    val: List[DataPoint]
    num_inputs: int
    num_classes: int
    provenance: Dict[str, Any] = field(default_factory=dict)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a factory returning a :class:`DatasetSpec`.

    Works as ``@register_dataset("xor")`` on a factory or as a direct call
    ``register_dataset("xor", make_xor_spec)``.  Factories receive the
    ``data.options`` mapping of a run config as keyword arguments.  A later
    registration under the same name replaces the earlier one.
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` for ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if not spec.train:
        raise ValueError(f"Dataset {spec.name!r} has no training samples")
    for split, points in (("train", spec.train), ("val", spec.val)):
        for point in points:
            if point.input.shape[0] != spec.num_inputs:
                raise ValueError(
                    f"{split} sample has {point.input.shape[0]} inputs, expected {spec.num_inputs}"
                )
            if point.expected_output.shape[0] != spec.num_classes:
                raise ValueError(
                    f"{split} sample has {point.expected_output.shape[0]} targets, "
                    f"expected {spec.num_classes}"
                )


__all__ = ["DatasetSpec", "available_datasets", "get_dataset", "register_dataset"]
