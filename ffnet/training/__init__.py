"""Training loops, hyper-parameters and run pipelines."""

from .checkpoint import load_checkpoint, save_checkpoint
from .hyperparams import HyperParameters
from .pipelines import load_config, load_preset, presets, run_pipeline
from .trainer import Trainer

__all__ = [
    "HyperParameters",
    "Trainer",
    "load_checkpoint",
    "load_config",
    "load_preset",
    "presets",
    "run_pipeline",
    "save_checkpoint",
]
