"""Core training engine for ffnet."""

from . import activations, costs, errors, layer, learn_data, network, types

__all__ = ["activations", "costs", "errors", "layer", "learn_data", "network", "types"]
