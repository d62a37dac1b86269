from __future__ import annotations

from typing import Any

import numpy as np

from .base import VectorBackend
from .utils import _ensure_k
from ..catalog import ANNOY
from ..metrics import L2
from ..types import ConfigMap, Dataset, QueryResult


class AnnoyBackend(VectorBackend):
    name = "annoy"
    module_name = "annoy"
    index_types = frozenset({ANNOY})
    metrics = frozenset({L2})

    def build(self, index_type: str, base: Dataset, config: ConfigMap) -> Any:
        from annoy import AnnoyIndex

        index = AnnoyIndex(base.dim, "euclidean")
        for i, vector in enumerate(base.vectors):
            index.add_item(i, vector.tolist())
        index.build(int(config["n_trees"]))
        return {"index": index, "search_k": int(config["search_k"])}

    def search(self, handle: Any, queries: Dataset, k: int) -> QueryResult:
        index = handle["index"]
        out_ids = np.empty((queries.rows, k), dtype=np.int64)
        out_dist = np.empty((queries.rows, k), dtype=np.float32)
        for i, q in enumerate(queries.vectors):
            ids, distances = index.get_nns_by_vector(
                q.tolist(), k, search_k=handle["search_k"], include_distances=True
            )
            # Annoy reports plain Euclidean distance; the oracle works in squared L2.
            squared = np.square(np.asarray(distances, dtype=np.float64)).astype(np.float32)
            out_ids[i], out_dist[i] = _ensure_k(np.asarray(ids, dtype=np.int64), squared, k)
        return QueryResult(nq=queries.rows, topk=k, ids=out_ids, distances=out_dist)


__all__ = ["AnnoyBackend"]
