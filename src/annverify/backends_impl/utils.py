from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..metrics import FLT_MAX, jaccard


def _ensure_k(
    ids: NDArray[np.int64], distances: NDArray[np.float32], k: int
) -> tuple[NDArray[np.int64], NDArray[np.float32]]:
    if ids.shape[0] >= k:
        return ids[:k], distances[:k]
    padded_ids = np.full((k,), -1, dtype=np.int64)
    padded_dist = np.full((k,), FLT_MAX, dtype=np.float32)
    padded_ids[: ids.shape[0]] = ids
    padded_dist[: distances.shape[0]] = distances
    return padded_ids, padded_dist


def _rerank_jaccard(
    query: NDArray[np.uint8],
    candidate_ids: NDArray[np.int64],
    base: NDArray[np.uint8],
    dim: int,
    top_k: int,
) -> tuple[NDArray[np.int64], NDArray[np.float32]]:
    valid_ids = candidate_ids[candidate_ids >= 0]
    distances = np.array([jaccard(query, base[i], dim) for i in valid_ids], dtype=np.float32)
    order = np.argsort(distances, kind="stable")[:top_k]
    return _ensure_k(valid_ids[order], distances[order], top_k)


__all__ = ["_ensure_k", "_rerank_jaccard"]
