"""Per-epoch metric sinks.

Both sinks truncate their file on construction and append one record per
epoch.  Only numeric metric values are written; anything else is dropped.
"""

from __future__ import annotations

import csv
import json
import numbers
from pathlib import Path
from typing import Dict, Mapping

from .artifacts import git_sha


class _EpochSink:
    def __init__(self, path: str | Path, split: str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split

    def _numeric(self, metrics: Mapping[str, object]) -> Dict[str, float]:
        return {
            key: float(value)
            for key, value in metrics.items()
            if isinstance(value, numbers.Real)
        }

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        raise NotImplementedError

    def __call__(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self.on_epoch(epoch, metrics)


class JsonlSink(_EpochSink):
    """One JSON object per line, tagged with split, seed and git sha."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, split)
        self.seed = seed
        self.sha = sha or git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        record: Dict[str, object] = {
            "epoch": int(epoch),
            "split": self.split,
            "seed": self.seed,
            "sha": self.sha,
        }
        record.update(self._numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """CSV rows with a sorted header written before the first row."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        super().__init__(path, split)

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        row: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        row.update(self._numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)


__all__ = ["CsvSink", "JsonlSink"]
