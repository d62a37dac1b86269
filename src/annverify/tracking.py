from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


def _flatten_dict(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flattened: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flattened.update(_flatten_dict(value, prefix=full_key))
        else:
            flattened[full_key] = value
    return flattened


class TrackingSink:
    def log_case(
        self,
        *,
        index_type: str,
        metric: str,
        status: str,
        backend: str | None = None,
        config: dict[str, Any] | None = None,
        summary: dict[str, Any] | None = None,
        build_time_s: float | None = None,
        search_time_s: float | None = None,
        reason: str | None = None,
    ) -> None:
        del index_type, metric, status, backend, config, summary, build_time_s, search_time_s, reason

    def log_run_summary(self, *, metadata: dict[str, Any]) -> None:
        del metadata

    def finish(self) -> None:
        return


class NullTrackingSink(TrackingSink):
    pass


@dataclass(slots=True)
class WandbConfig:
    enabled: bool = False
    project: str | None = None
    entity: str | None = None
    run_name: str | None = None
    group: str | None = None
    job_type: str | None = None
    tags: list[str] | None = None
    mode: str | None = None


class WandbTrackingSink(TrackingSink):
    def __init__(
        self,
        *,
        config: WandbConfig,
        runtime: dict[str, Any],
    ):
        try:
            import wandb
        except Exception as exc:  # pragma: no cover - depends on env
            raise RuntimeError(
                "WandB is enabled but 'wandb' is not installed. "
                "Install with: pip install -e '.[wandb]'"
            ) from exc

        if not config.project:
            raise ValueError("WandB is enabled but project is missing")

        self._wandb = wandb
        self._rows: list[list[Any]] = []
        self._run = wandb.init(
            project=config.project,
            entity=config.entity,
            name=config.run_name,
            group=config.group,
            job_type=config.job_type,
            tags=config.tags,
            mode=config.mode,
            config={"runtime": runtime},
        )

    def log_case(
        self,
        *,
        index_type: str,
        metric: str,
        status: str,
        backend: str | None = None,
        config: dict[str, Any] | None = None,
        summary: dict[str, Any] | None = None,
        build_time_s: float | None = None,
        search_time_s: float | None = None,
        reason: str | None = None,
    ) -> None:
        prefix = f"{index_type}/{metric}"
        payload: dict[str, Any] = {
            "index_type": index_type,
            "metric": metric,
            f"{prefix}/status": status,
        }
        if backend:
            payload[f"{prefix}/backend"] = backend
        if build_time_s is not None:
            payload[f"{prefix}/build_time_s"] = build_time_s
        if search_time_s is not None:
            payload[f"{prefix}/search_time_s"] = search_time_s
        if reason:
            payload[f"{prefix}/reason"] = reason
        if config:
            payload.update(_flatten_dict(config, prefix=f"{prefix}/config"))
        if summary:
            payload.update(_flatten_dict(summary, prefix=f"{prefix}/validation"))
        self._wandb.log(payload)
        summary = summary or {}
        self._rows.append(
            [
                index_type,
                metric,
                status,
                summary.get("mismatched"),
                summary.get("invalid_ids"),
                summary.get("max_abs_error"),
                summary.get("recall"),
            ]
        )

    def log_run_summary(self, *, metadata: dict[str, Any]) -> None:
        for key, value in metadata.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                self._run.summary[f"run_{key}"] = value
            else:
                self._run.summary[f"run_{key}_json"] = json.dumps(value, ensure_ascii=False)
        if self._rows:
            table = self._wandb.Table(
                columns=["index_type", "metric", "status", "mismatched", "invalid_ids", "max_abs_error", "recall"],
                data=self._rows,
            )
            self._wandb.log({"cases": table})

    def finish(self) -> None:
        self._run.finish()


def build_tracking_sink(*, runtime: dict[str, Any]) -> TrackingSink:
    wandb_cfg_raw = dict(runtime.get("wandb", {}))
    config = WandbConfig(
        enabled=bool(wandb_cfg_raw.get("enabled", False)),
        project=wandb_cfg_raw.get("project"),
        entity=wandb_cfg_raw.get("entity"),
        run_name=wandb_cfg_raw.get("run_name"),
        group=wandb_cfg_raw.get("group"),
        job_type=wandb_cfg_raw.get("job_type"),
        tags=list(wandb_cfg_raw.get("tags", [])) if wandb_cfg_raw.get("tags") else None,
        mode=wandb_cfg_raw.get("mode"),
    )
    if not config.enabled:
        return NullTrackingSink()
    return WandbTrackingSink(config=config, runtime=runtime)
