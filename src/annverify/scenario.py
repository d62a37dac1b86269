from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .catalog import DIM, K, NQ
from .features import parse_flag


DEFAULT_RUNTIME: dict[str, Any] = {
    "index_types": ["all"],
    "metric": None,
    "backend": None,
    "n": 1000,
    "dim": DIM,
    "nq": NQ,
    "topk": K,
    "seed": 42,
    "tolerance": 1.0e-5,
    "strict_exact": True,
    "features": {},
    "output": "validation.json",
    "wandb": {
        "enabled": False,
        "project": None,
        "entity": None,
        "run_name": None,
        "group": None,
        "job_type": None,
        "tags": [],
        "mode": None,
    },
}

_FEATURE_KEYS = {"gpu", "nsg", "sptag", "ngt", "device_id"}


def _as_dict(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"scenario: '{name}' must be a mapping")
    return dict(value)


def _as_list(value: Any, *, name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"scenario: '{name}' must be a list")
    return list(value)


def _normalize_features(raw: dict[str, Any]) -> dict[str, Any]:
    unknown = set(raw) - _FEATURE_KEYS
    if unknown:
        raise ValueError(f"scenario: unknown features {sorted(unknown)}")
    return {
        key: (int(value) if key == "device_id" else parse_flag(value))
        for key, value in raw.items()
        if value is not None
    }


def _normalize_wandb(raw: dict[str, Any]) -> dict[str, Any]:
    cfg = {
        "enabled": bool(raw.get("enabled", False)),
        "project": raw.get("project"),
        "entity": raw.get("entity"),
        "run_name": raw.get("run_name"),
        "group": raw.get("group"),
        "job_type": raw.get("job_type"),
        "mode": raw.get("mode"),
    }
    tags = raw.get("tags")
    if tags is None:
        cfg["tags"] = []
    elif isinstance(tags, list):
        cfg["tags"] = [str(x) for x in tags]
    else:
        raise ValueError("scenario: 'wandb.tags' must be a list")
    return cfg


def load_scenario(path: str | Path) -> dict[str, Any]:
    scenario_path = Path(path)
    raw_loaded = yaml.safe_load(scenario_path.read_text(encoding="utf-8"))
    raw = _as_dict(raw_loaded, name="root")

    dataset = _as_dict(raw.get("dataset"), name="dataset")
    evaluation = _as_dict(raw.get("evaluation"), name="evaluation")
    index = _as_dict(raw.get("index"), name="index")
    features = _as_dict(raw.get("features"), name="features")
    output = _as_dict(raw.get("output"), name="output")
    wandb = _as_dict(raw.get("wandb"), name="wandb")

    include = _as_list(index.get("include"), name="index.include")
    if not include:
        include = list(DEFAULT_RUNTIME["index_types"])

    cfg = dict(DEFAULT_RUNTIME)
    cfg.update(
        {
            "index_types": [str(x) for x in include],
            "metric": index.get("metric", cfg["metric"]),
            "backend": index.get("backend", cfg["backend"]),
            "n": int(dataset.get("n", cfg["n"])),
            "dim": int(dataset.get("dim", cfg["dim"])),
            "nq": int(dataset.get("nq", cfg["nq"])),
            "seed": int(dataset.get("seed", cfg["seed"])),
            "topk": int(evaluation.get("topk", cfg["topk"])),
            "tolerance": float(evaluation.get("tolerance", cfg["tolerance"])),
            "strict_exact": parse_flag(evaluation.get("strict_exact", cfg["strict_exact"])),
            "features": _normalize_features(features),
            "output": str(output.get("path", cfg["output"])),
            "wandb": _normalize_wandb(wandb),
            "scenario_path": str(scenario_path.resolve()),
            "scenario_name": str(raw.get("name", scenario_path.stem)),
            "scenario_version": int(raw.get("version", 1)),
        }
    )
    return cfg
