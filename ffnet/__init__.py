"""ffnet public API."""

from .core import activations, costs, types  # noqa: F401
from .core.activations import ReLU, SiLU, Sigmoid, SoftMax, TanH
from .core.costs import CrossEntropy, MeanSquaredError
from .core.errors import NotCalculatedError, NumericalDivergenceError, ShapeMismatchError
from .core.layer import Layer
from .core.network import Network
from .core.types import DataPoint, LayerSetup
from .training.hyperparams import HyperParameters
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "CrossEntropy",
    "DataPoint",
    "HyperParameters",
    "Layer",
    "LayerSetup",
    "MeanSquaredError",
    "Network",
    "NotCalculatedError",
    "NumericalDivergenceError",
    "ReLU",
    "ShapeMismatchError",
    "SiLU",
    "Sigmoid",
    "SoftMax",
    "TanH",
    "Trainer",
    "activations",
    "costs",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
