from __future__ import annotations

from typing import Any

import numpy as np

from .base import VectorBackend
from .utils import _rerank_jaccard
from ..catalog import BIN_FLAT, BIN_IVF_FLAT, FLAT, IVF_FLAT, IVF_PQ, IVF_SQ8, is_binary
from ..metrics import JACCARD, L2, canonical_metric
from ..types import ConfigMap, Dataset, QueryResult

# Binary IVF probes by Hamming distance; widen the candidate pool before
# re-scoring it under Jaccard.
BINARY_RERANK_K_FACTOR = 8


class FaissBackend(VectorBackend):
    name = "faiss"
    module_name = "faiss"
    index_types = frozenset({FLAT, IVF_FLAT, IVF_PQ, IVF_SQ8, BIN_FLAT, BIN_IVF_FLAT})
    metrics = frozenset({L2, JACCARD})

    @classmethod
    def supports(cls, index_type: str, metric: str) -> bool:
        if not super().supports(index_type, metric):
            return False
        return (canonical_metric(metric) == JACCARD) == is_binary(index_type)

    def build(self, index_type: str, base: Dataset, config: ConfigMap) -> Any:
        import faiss

        faiss.omp_set_num_threads(1)
        dim = base.dim
        quantizer = None
        if is_binary(index_type):
            data = np.ascontiguousarray(base.vectors, dtype=np.uint8)
            if index_type == BIN_FLAT:
                index = faiss.IndexBinaryFlat(dim)
            else:
                quantizer = faiss.IndexBinaryFlat(dim)
                index = faiss.IndexBinaryIVF(quantizer, dim, int(config["nlist"]))
                index.train(data)
                index.nprobe = int(config["nprobe"])
            index.add(data)
            return {"index": index, "quantizer": quantizer, "index_type": index_type, "base": data, "dim": dim}

        data = np.ascontiguousarray(base.vectors, dtype=np.float32)
        if index_type == FLAT:
            index = faiss.IndexFlatL2(dim)
        else:
            quantizer = faiss.IndexFlatL2(dim)
            nlist = int(config["nlist"])
            if index_type == IVF_PQ:
                pq_m = int(config["m"])
                if dim % pq_m != 0:
                    raise ValueError(f"m must divide dimension: dim={dim}, m={pq_m}")
                index = faiss.IndexIVFPQ(quantizer, dim, nlist, pq_m, int(config["nbits"]), faiss.METRIC_L2)
            elif index_type == IVF_SQ8:
                index = faiss.IndexIVFScalarQuantizer(
                    quantizer, dim, nlist, faiss.ScalarQuantizer.QT_8bit, faiss.METRIC_L2
                )
            else:
                index = faiss.IndexIVFFlat(quantizer, dim, nlist, faiss.METRIC_L2)
            index.train(data)
            index.nprobe = int(config["nprobe"])
        index.add(data)
        return {"index": index, "quantizer": quantizer, "index_type": index_type, "base": data, "dim": dim}

    def search(self, handle: Any, queries: Dataset, k: int) -> QueryResult:
        faiss_index = handle["index"]
        index_type = handle["index_type"]
        nq = queries.rows

        if not is_binary(index_type):
            q = np.ascontiguousarray(queries.vectors, dtype=np.float32)
            distances, ids = faiss_index.search(q, k)
            return QueryResult(nq=nq, topk=k, ids=ids, distances=distances)

        q = np.ascontiguousarray(queries.vectors, dtype=np.uint8)
        if index_type == BIN_FLAT:
            # Hamming order differs from Jaccard order; re-score every row.
            candidate_k = faiss_index.ntotal
        else:
            candidate_k = min(faiss_index.ntotal, k * BINARY_RERANK_K_FACTOR)
        _, candidates = faiss_index.search(q, candidate_k)

        out_ids = np.empty((nq, k), dtype=np.int64)
        out_dist = np.empty((nq, k), dtype=np.float32)
        for i in range(nq):
            out_ids[i], out_dist[i] = _rerank_jaccard(q[i], candidates[i], handle["base"], handle["dim"], k)
        return QueryResult(nq=nq, topk=k, ids=out_ids, distances=out_dist)


__all__ = ["FaissBackend"]
