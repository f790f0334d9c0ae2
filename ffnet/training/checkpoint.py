"""Compressed ``.npz`` checkpoints of exported layer setups."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import numpy as np

from ..core.types import LayerSetup


def save_checkpoint(path: str | Path, setups: Sequence[LayerSetup]) -> Path:
    payload = {}
    for idx, setup in enumerate(setups):
        payload[f"W{idx}"] = setup.weights
        payload[f"b{idx}"] = setup.biases
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(handle, **payload)
    return path


def load_checkpoint(path: str | Path) -> List[LayerSetup]:
    setups: List[LayerSetup] = []
    with np.load(Path(path)) as archive:
        idx = 0
        while f"W{idx}" in archive.files:
            if f"b{idx}" not in archive.files:
                raise KeyError(f"Missing bias b{idx} in checkpoint {path}")
            setups.append(LayerSetup(weights=archive[f"W{idx}"], biases=archive[f"b{idx}"]))
            idx += 1
    if not setups:
        raise KeyError(f"No layer weights found in checkpoint {path}")
    return setups


__all__ = ["load_checkpoint", "save_checkpoint"]
