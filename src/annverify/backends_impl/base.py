from __future__ import annotations

import importlib
from abc import ABC, abstractmethod
from time import perf_counter
from typing import Any, ClassVar

from ..metrics import canonical_metric
from ..types import ConfigMap, Dataset, QueryResult


class VectorBackend(ABC):
    """Adapter exposing a third-party index library as ``build``/``search``."""

    name: ClassVar[str]
    module_name: ClassVar[str]
    index_types: ClassVar[frozenset[str]]
    metrics: ClassVar[frozenset[str]]

    @classmethod
    def availability(cls) -> tuple[bool, str | None]:
        try:
            importlib.import_module(cls.module_name)
            return True, None
        except Exception as exc:  # pragma: no cover - depends on environment
            return False, f"{cls.module_name} import failed: {exc}"

    @classmethod
    def supports(cls, index_type: str, metric: str) -> bool:
        return index_type in cls.index_types and canonical_metric(metric) in cls.metrics

    @abstractmethod
    def build(self, index_type: str, base: Dataset, config: ConfigMap) -> Any:
        raise NotImplementedError

    @abstractmethod
    def search(self, handle: Any, queries: Dataset, k: int) -> QueryResult:
        raise NotImplementedError

    def build_and_search(
        self,
        index_type: str,
        base: Dataset,
        queries: Dataset,
        config: ConfigMap,
    ) -> tuple[QueryResult, float, float]:
        if not self.supports(index_type, base.metric):
            raise ValueError(f"{self.name} does not support index_type={index_type} metric={base.metric}")

        build_start = perf_counter()
        handle = self.build(index_type, base, config)
        build_time = perf_counter() - build_start

        search_start = perf_counter()
        result = self.search(handle, queries, int(config["topk"]))
        search_time = perf_counter() - search_start
        return result, build_time, search_time


__all__ = ["VectorBackend"]
