from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

_TRUE = {"1", "true", "yes", "on"}


def parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return bool(value)


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return parse_flag(env.get(name, ""))


@dataclass(frozen=True, slots=True)
class FeatureTable:
    """Capabilities of the index build under test, resolved once at startup."""

    gpu: bool = False
    nsg: bool = False
    sptag: bool = False
    ngt: bool = False
    device_id: int = 0

    def enabled(self, feature: str | None) -> bool:
        if feature is None:
            return True
        return bool(getattr(self, feature))

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "FeatureTable":
        env = os.environ if env is None else env
        return cls(
            gpu=_env_flag(env, "ANNVERIFY_GPU"),
            nsg=_env_flag(env, "ANNVERIFY_SUPPORT_NSG"),
            sptag=_env_flag(env, "ANNVERIFY_SUPPORT_SPTAG"),
            ngt=_env_flag(env, "ANNVERIFY_SUPPORT_NGT"),
            device_id=int(env.get("ANNVERIFY_DEVICE_ID", "0") or 0),
        )

    def merged(self, overrides: Mapping[str, Any] | None) -> "FeatureTable":
        if not overrides:
            return self
        unknown = set(overrides) - {"gpu", "nsg", "sptag", "ngt", "device_id"}
        if unknown:
            raise ValueError(f"unknown feature flags: {sorted(unknown)}")
        values = {k: (int(v) if k == "device_id" else parse_flag(v)) for k, v in overrides.items()}
        return replace(self, **values)


DEFAULT_FEATURES = FeatureTable.from_env()


__all__ = ["DEFAULT_FEATURES", "FeatureTable", "parse_flag"]
