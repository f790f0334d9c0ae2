"""Pipeline assembly: presets, config files and single training runs."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Sequence

from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .hyperparams import HyperParameters
from .trainer import Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "two-d-sigmoid-mse": {
        "data": {
            "name": "two_d",
            "options": {"n_points": 400, "boundary": "parabola", "seed": 0, "val_split": 0.2},
        },
        "model": {
            "hidden": [4, 4],
            "activation": "sigmoid",
            "output_activation": None,
            "cost": "mse",
            "seed": 1,
        },
        "train": {
            "epochs": 20,
            "batch_size": 10,
            "seed": 7,
            "lr": 1.0,
            "lr_decay": 0.0,
            "momentum": 0.9,
            "regularization": 0.0,
            "run_dir": "runs/two-d-sigmoid-mse",
            "enable_plots": False,
        },
    },
    "two-d-relu-softmax": {
        "data": {
            "name": "two_d",
            "options": {"n_points": 400, "boundary": "sharp_parabola", "seed": 0, "val_split": 0.2},
        },
        "model": {
            "hidden": [8],
            "activation": "relu",
            "output_activation": "softmax",
            "cost": "ce",
            "seed": 1,
        },
        "train": {
            "epochs": 20,
            "batch_size": 32,
            "seed": 7,
            "lr": 0.05,
            "lr_decay": 0.075,
            "momentum": 0.9,
            "regularization": 0.1,
            "run_dir": "runs/two-d-relu-softmax",
            "enable_plots": False,
        },
    },
    "xor-sigmoid": {
        "data": {"name": "xor", "options": {"repeats": 4}},
        "model": {
            "hidden": [4],
            "activation": "sigmoid",
            "output_activation": None,
            "cost": "mse",
            "seed": 3,
        },
        "train": {
            "epochs": 200,
            "batch_size": 4,
            "seed": 5,
            "lr": 2.0,
            "lr_decay": 0.0,
            "momentum": 0.9,
            "regularization": 0.0,
            "run_dir": "runs/xor-sigmoid",
            "enable_plots": False,
        },
    },
}

_REQUIRED_SECTIONS = {"data", "model", "train"}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, object]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


def load_config(path: str | Path) -> Mapping[str, object]:
    """Read a JSON or YAML run configuration."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    missing = _REQUIRED_SECTIONS - set(data)
    if missing:
        raise KeyError(f"Config {path.name} is missing required sections: {', '.join(sorted(missing))}")
    return json.loads(json.dumps(data))


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


class _MetricsCapture:
    def __init__(self) -> None:
        self.last: Mapping[str, float] = {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.last = {k: float(v) for k, v in metrics.items()}


def build_hyperparameters(
    model_cfg: Mapping[str, object],
    train_cfg: Mapping[str, object],
    layer_sizes: Sequence[int],
) -> HyperParameters:
    defaults = HyperParameters()
    output_activation = model_cfg.get("output_activation", defaults.output_activation)
    return HyperParameters(
        layer_sizes=list(layer_sizes),
        activation=str(model_cfg.get("activation", defaults.activation)),
        output_activation=str(output_activation) if output_activation else None,
        cost=str(model_cfg.get("cost", defaults.cost)),
        learn_rate_initial=float(train_cfg.get("lr", defaults.learn_rate_initial)),
        learn_rate_decay=float(train_cfg.get("lr_decay", defaults.learn_rate_decay)),
        mini_batch_size=int(train_cfg.get("batch_size", defaults.mini_batch_size)),
        momentum=float(train_cfg.get("momentum", defaults.momentum)),
        regularization=float(train_cfg.get("regularization", defaults.regularization)),
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = registry.get_dataset(data_cfg["name"], **data_cfg.get("options", {}))
    layer_sizes = [dataset.num_inputs]
    layer_sizes.extend(int(h) for h in model_cfg.get("hidden", []))
    layer_sizes.append(dataset.num_classes)

    hyper = build_hyperparameters(model_cfg, train_cfg, layer_sizes)
    network = hyper.build_network(int(model_cfg.get("seed", 0)))

    seed = int(train_cfg.get("seed", 0))
    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        hyper=hyper,
        param_count=network.parameter_count(),
        train_size=len(dataset.train),
        val_size=len(dataset.val),
    )

    train_jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics.csv", split="train")
    val_jsonl = JsonlSink(run_dir / "metrics_val.jsonl", split="val", seed=seed)
    val_csv = CsvSink(run_dir / "metrics_val.csv", split="val")
    capture_train = _MetricsCapture()
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    early_stopping = train_cfg.get("early_stopping_patience")
    trainer = Trainer(network, hyper, callbacks=[plots])
    result = trainer.run(
        dataset.train,
        epochs=int(train_cfg.get("epochs", 1)),
        seed=seed,
        val_data=dataset.val,
        split_loggers={
            "train": [train_jsonl, train_csv, capture_train],
            "val": [val_jsonl, val_csv],
        },
        eval_every=int(train_cfg.get("eval_every", 1)),
        early_stopping_patience=int(early_stopping) if early_stopping is not None else None,
        checkpoint_dir=run_dir,
    )
    plots.close()

    safe_config = json.loads(json.dumps(config))
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        model={
            "layer_sizes": network.layer_sizes,
            "parameters": network.parameter_count(),
            "hyper": hyper.to_dict(),
        },
    )

    return RunResult(
        epochs=result.epochs,
        steps=result.steps,
        final_cost=float(capture_train.last.get("cost", result.final_cost)),
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        checkpoint_path=result.checkpoint_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    hyper: HyperParameters,
    param_count: int,
    train_size: int,
    val_size: int,
) -> None:
    print("=== ffnet run ===")
    print(f"Dataset       : {dataset_name} ({train_size} train / {val_size} val)")
    print(f"Layer sizes   : {hyper.layer_sizes}")
    print(f"Activation    : {hyper.activation} -> {hyper.output_activation or hyper.activation}")
    print(f"Cost          : {hyper.cost}")
    print(f"Learn rate    : {hyper.learn_rate_initial} (decay {hyper.learn_rate_decay})")
    print(f"Batch size    : {hyper.mini_batch_size}")
    print(f"Parameters    : {param_count}")
    print("=================")


__all__ = [
    "build_hyperparameters",
    "load_config",
    "load_preset",
    "merge_config",
    "presets",
    "run_pipeline",
]
