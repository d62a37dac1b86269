from __future__ import annotations

from typing import Any

import numpy as np

from .base import VectorBackend
from ..catalog import HNSW
from ..metrics import L2
from ..types import ConfigMap, Dataset, QueryResult


class HnswlibBackend(VectorBackend):
    name = "hnswlib"
    module_name = "hnswlib"
    index_types = frozenset({HNSW})
    metrics = frozenset({L2})

    def build(self, index_type: str, base: Dataset, config: ConfigMap) -> Any:
        import hnswlib

        # hnswlib's "l2" space reports squared distances, matching the oracle.
        index = hnswlib.Index(space="l2", dim=base.dim)
        index.init_index(
            max_elements=base.rows,
            ef_construction=int(config["efConstruction"]),
            M=int(config["M"]),
        )
        index.add_items(np.asarray(base.vectors, dtype=np.float32), np.arange(base.rows, dtype=np.int64))
        index.set_num_threads(1)
        index.set_ef(max(int(config["ef"]), int(config["topk"])))
        return index

    def search(self, handle: Any, queries: Dataset, k: int) -> QueryResult:
        k = min(k, handle.get_current_count())
        labels, distances = handle.knn_query(np.asarray(queries.vectors, dtype=np.float32), k=k)
        return QueryResult(nq=queries.rows, topk=k, ids=labels.astype(np.int64), distances=distances)


__all__ = ["HnswlibBackend"]
