from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

L2 = "L2"
IP = "IP"
JACCARD = "JACCARD"
HAMMING = "HAMMING"
TANIMOTO = "TANIMOTO"

KNOWN_METRICS = frozenset({L2, IP, JACCARD, HAMMING, TANIMOTO})

# Sentinel for an operand pair that cannot be compared.
FLT_MAX = float(np.finfo(np.float32).max)


def canonical_metric(metric: str) -> str:
    normalized = metric.lower().strip()
    aliases = {
        "l2": L2,
        "euclidean": L2,
        "ip": IP,
        "dot": IP,
        "inner_product": IP,
        "jaccard": JACCARD,
        "hamming": HAMMING,
        "tanimoto": TANIMOTO,
    }
    return aliases.get(normalized, normalized.upper())


def hamming_weight(n: int) -> int:
    count = 0
    n &= 0xFF
    while n != 0:
        count += n & 1
        n >>= 1
    return count


_POPCOUNT = np.array([hamming_weight(i) for i in range(256)], dtype=np.int64)


def l2(point_a: NDArray[Any], point_b: NDArray[Any], dim: int) -> float:
    a = np.asarray(point_a, dtype=np.float64)[:dim]
    b = np.asarray(point_b, dtype=np.float64)[:dim]
    diff = b - a
    return float(np.dot(diff, diff))


def jaccard(point_a: NDArray[Any], point_b: NDArray[Any], dim: int) -> float:
    """Jaccard distance over bit-packed rows; ``dim`` is in bits.

    Two all-zero operands have an empty union and are treated as identical.
    """
    length = dim // 8
    a = np.asarray(point_a, dtype=np.uint8)[:length]
    b = np.asarray(point_b, dtype=np.uint8)[:length]
    intersection = int(_POPCOUNT[a & b].sum())
    union = int(_POPCOUNT[a | b].sum())
    if union == 0:
        return 0.0
    return 1.0 - intersection / union


def count_distance(
    point_a: NDArray[Any] | None,
    point_b: NDArray[Any] | None,
    dim: int,
    metric: str,
) -> float:
    if point_a is None or point_b is None:
        return FLT_MAX
    metric = canonical_metric(metric)
    if metric == L2:
        return l2(point_a, point_b, dim)
    if metric == JACCARD:
        return jaccard(point_a, point_b, dim)
    return FLT_MAX


def _batch_l2_candidates(
    q: NDArray[np.float32],
    base: NDArray[np.float32],
    base_sq: NDArray[np.float32],
    pool: int,
) -> NDArray[np.int64]:
    q_sq = np.einsum("ij,ij->i", q, q)
    approx = q_sq[:, None] + base_sq[None, :] - 2.0 * (q @ base.T)
    np.maximum(approx, 0.0, out=approx)
    return np.argpartition(approx, kth=pool - 1, axis=1)[:, :pool]


def _exact_l2(q: NDArray[np.float32], base: NDArray[np.float32], candidates: NDArray[np.int64]) -> NDArray[np.float64]:
    diff = base[candidates].astype(np.float64) - q[:, None, :].astype(np.float64)
    return np.einsum("qcd,qcd->qc", diff, diff)


def _batch_jaccard(
    q: NDArray[np.uint8],
    base: NDArray[np.uint8],
    block_size: int = 65536,
) -> NDArray[np.float64]:
    q_bits = np.unpackbits(q, axis=1).astype(np.float32)
    q_pop = q_bits.sum(axis=1)
    out = np.empty((q.shape[0], base.shape[0]), dtype=np.float64)
    for start in range(0, base.shape[0], block_size):
        end = min(start + block_size, base.shape[0])
        b_bits = np.unpackbits(base[start:end], axis=1).astype(np.float32)
        inter = (q_bits @ b_bits.T).astype(np.float64)
        union = q_pop[:, None] + b_bits.sum(axis=1)[None, :] - inter
        ratio = np.divide(inter, union, out=np.ones(inter.shape, dtype=np.float64), where=union > 0)
        out[:, start:end] = 1.0 - ratio
    return out


def compute_ground_truth(
    base: NDArray[Any],
    queries: NDArray[Any],
    k: int,
    metric: str,
    batch_size: int = 64,
) -> tuple[NDArray[np.int64], NDArray[np.float32]]:
    """Exact top-``k`` neighbors and their distances, nearest first.

    Ties are broken by the lower id. L2 candidates are preselected with the
    norm expansion and then re-scored with the direct difference, so the
    returned distances agree with :func:`count_distance` at float32 precision.
    """
    if k <= 0:
        raise ValueError("k must be positive")
    if base.ndim != 2 or queries.ndim != 2:
        raise ValueError("base and queries must be 2-D arrays")
    if base.shape[1] != queries.shape[1]:
        raise ValueError("base and queries must share dimensionality")

    metric = canonical_metric(metric)
    if metric == L2:
        base_work = np.asarray(base, dtype=np.float32)
        queries_work = np.asarray(queries, dtype=np.float32)
        base_sq = np.einsum("ij,ij->i", base_work, base_work)
    elif metric == JACCARD:
        base_work = np.asarray(base, dtype=np.uint8)
        queries_work = np.asarray(queries, dtype=np.uint8)
    else:
        raise ValueError(f"Unsupported metric for exact search: {metric}")

    n_base = base_work.shape[0]
    k = min(k, n_base)
    # Over-fetch so float32 cancellation in the expansion does not drop a true neighbor.
    pool = min(n_base, 2 * k + 8)
    out_ids = np.empty((queries_work.shape[0], k), dtype=np.int64)
    out_dist = np.empty((queries_work.shape[0], k), dtype=np.float32)
    for start in range(0, queries_work.shape[0], batch_size):
        end = min(start + batch_size, queries_work.shape[0])
        q = queries_work[start:end]
        if metric == L2:
            candidates = _batch_l2_candidates(q, base_work, base_sq, pool)
            distances = _exact_l2(q, base_work, candidates)
        else:
            distances = _batch_jaccard(q, base_work)
            candidates = np.broadcast_to(np.arange(n_base, dtype=np.int64), distances.shape)
        order = np.lexsort((candidates, distances), axis=-1)[:, :k]
        out_ids[start:end] = np.take_along_axis(candidates, order, axis=1)
        out_dist[start:end] = np.take_along_axis(distances, order, axis=1)
    return out_ids, out_dist


def recall_at_k(predictions: NDArray[np.int64], ground_truth: NDArray[np.int64], k: int) -> float:
    if k <= 0:
        raise ValueError("k must be positive")
    if predictions.shape[0] != ground_truth.shape[0]:
        raise ValueError("predictions and ground_truth must have equal number of rows")

    pred_k = predictions[:, :k]
    truth_k = ground_truth[:, :k]
    hits = 0
    for i in range(pred_k.shape[0]):
        pred_row = pred_k[i][pred_k[i] >= 0]
        hits += np.intersect1d(pred_row, truth_k[i], assume_unique=False).size
    return float(hits / (pred_k.shape[0] * k))
