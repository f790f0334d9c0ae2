"""Deterministic mini-batch training loop around :class:`~ffnet.core.network.Network`."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

from ..core.costs import CrossEntropy
from ..core.network import Network
from ..core.types import DataPoint, RunResult
from ..data.utils import iter_minibatches
from .checkpoint import save_checkpoint
from .hyperparams import HyperParameters
from .metrics import compute_metrics


class Trainer:
    """Run epochs of shuffled mini-batches through ``Network.learn``."""

    def __init__(
        self,
        network: Network,
        hyper: HyperParameters,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.hyper = hyper
        self.callbacks = list(callbacks or [])

    def run(
        self,
        train_data: Sequence[DataPoint],
        epochs: int,
        seed: int,
        *,
        val_data: Sequence[DataPoint] | None = None,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
        eval_every: int = 1,
        early_stopping_patience: int | None = None,
        checkpoint_dir: str | Path | None = None,
    ) -> RunResult:
        if epochs < 1:
            raise ValueError(f"epochs must be >= 1, got {epochs}")
        if not train_data:
            raise ValueError("train_data is empty")

        rng = np.random.default_rng(seed)
        split_loggers = split_loggers or {}
        checkpoint_dir = Path(checkpoint_dir) if checkpoint_dir is not None else None

        best: tuple[float, float] | None = None
        epochs_no_improve = 0
        total_steps = 0
        epochs_run = 0
        final_cost = float("nan")

        for epoch in range(1, epochs + 1):
            learn_rate = self.hyper.learn_rate(epoch - 1)
            for batch in iter_minibatches(train_data, self.hyper.mini_batch_size, rng):
                self.network.learn(
                    batch,
                    learn_rate,
                    self.hyper.regularization,
                    self.hyper.momentum,
                )
                total_steps += 1
            epochs_run = epoch

            train_metrics = dict(compute_metrics(self.network, train_data))
            train_metrics["learn_rate"] = learn_rate
            self._emit_epoch("train", epoch, train_metrics, split_loggers)
            final_cost = train_metrics["cost"]

            val_metrics = None
            if val_data and epoch % max(1, eval_every) == 0:
                val_metrics = compute_metrics(self.network, val_data)
                self._emit_epoch("val", epoch, val_metrics, split_loggers)

            current = self._score(val_metrics or train_metrics)
            if best is None or current < best:
                best = current
                epochs_no_improve = 0
                if checkpoint_dir is not None:
                    save_checkpoint(checkpoint_dir / "best.npz", self.network.export())
            else:
                epochs_no_improve += 1
                if early_stopping_patience and epochs_no_improve >= early_stopping_patience:
                    break

        checkpoint_path = ""
        if checkpoint_dir is not None:
            checkpoint_path = str(save_checkpoint(checkpoint_dir / "last.npz", self.network.export()))
        return RunResult(
            epochs=epochs_run,
            steps=total_steps,
            final_cost=float(final_cost),
            checkpoint_path=checkpoint_path,
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _score(self, metrics: Mapping[str, float]) -> tuple[float, float]:
        """Sort key for snapshots, lower is better.

        Cross entropy clamps saturated wrong predictions to 0, so with that
        cost accuracy ranks first and the cost only breaks ties.
        """

        cost = float(metrics["cost"])
        if isinstance(self.network.cost, CrossEntropy):
            return -float(metrics["accuracy"]), cost
        return cost, 0.0

    def _emit_epoch(
        self,
        split: str,
        epoch: int,
        metrics: Mapping[str, float],
        loggers: Mapping[str, Sequence[object]],
    ) -> None:
        if split == "train":
            for callback in self.callbacks:
                if hasattr(callback, "on_epoch"):
                    callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        for callback in loggers.get(split, []):
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = ["Trainer"]
