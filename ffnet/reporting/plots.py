"""Training-curve figure for a run directory."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Epoch callback that records cost and accuracy and draws them on ``close``.

    Nothing is collected or written unless ``enable_plots`` is set.
    """

    filename = "cost.png"

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float | None]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        accuracy = metrics.get("accuracy")
        self._history.append(
            (int(epoch), float(metrics["cost"]), None if accuracy is None else float(accuracy))
        )

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # lazy: headless backend must be selected first

        epochs = [epoch for epoch, _, _ in self._history]
        fig, cost_ax = plt.subplots()
        cost_ax.plot(epochs, [cost for _, cost, _ in self._history], marker="o", color="tab:blue")
        cost_ax.set_xlabel("Epoch")
        cost_ax.set_ylabel("Mean cost", color="tab:blue")

        accuracies = [acc for _, _, acc in self._history if acc is not None]
        if len(accuracies) == len(self._history):
            acc_ax = cost_ax.twinx()
            acc_ax.plot(epochs, accuracies, linestyle="--", color="tab:orange")
            acc_ax.set_ylabel("Accuracy", color="tab:orange")
            acc_ax.set_ylim(0.0, 1.0)

        cost_ax.set_title("Training progress")
        fig.tight_layout()
        plot_path = self.run_dir / self.filename
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
