from __future__ import annotations

from pathlib import Path

import h5py
import numpy as np
from numpy.typing import NDArray

from .catalog import DIM, K, NQ
from .metrics import FLT_MAX, JACCARD, L2, canonical_metric, compute_ground_truth
from .types import VECTOR_BINARY, VECTOR_FLOAT, Dataset, FieldSchema, GeneratedDataset


def _decode_attr(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    if hasattr(value, "item"):
        scalar = value.item()  # type: ignore[union-attr]
        if isinstance(scalar, bytes):
            return scalar.decode("utf-8")
        return str(scalar)
    return str(value)


def make_schema(metric: str, is_binary: bool, dim: int = DIM) -> FieldSchema:
    if dim <= 0:
        raise ValueError("dim must be positive")
    if is_binary:
        if dim % 8 != 0:
            raise ValueError(f"binary vector dim must be a multiple of 8, got {dim}")
        return FieldSchema(name="fakebinvec", data_type=VECTOR_BINARY, dim=dim, metric=canonical_metric(metric))
    return FieldSchema(name="fakevec", data_type=VECTOR_FLOAT, dim=dim, metric=canonical_metric(metric))


def _sample_rows(schema: FieldSchema, n: int, rng: np.random.Generator) -> NDArray[np.float32] | NDArray[np.uint8]:
    if schema.is_binary:
        return rng.integers(0, 256, size=(n, schema.row_width), dtype=np.uint8)
    return rng.standard_normal(size=(n, schema.dim), dtype=np.float32)


def _ground_truth(
    base: Dataset, queries: Dataset, topk: int
) -> tuple[NDArray[np.int64], NDArray[np.float32]]:
    if base.metric in {L2, JACCARD}:
        return compute_ground_truth(base.vectors, queries.vectors, topk, base.metric)
    # No oracle for this metric: every cell is incomparable.
    k = min(topk, base.rows)
    return (
        np.full((queries.rows, k), -1, dtype=np.int64),
        np.full((queries.rows, k), FLT_MAX, dtype=np.float32),
    )


def generate_dataset(
    n: int,
    metric: str,
    is_binary: bool,
    dim: int = DIM,
    *,
    nq: int = NQ,
    topk: int = K,
    seed: int | None = None,
) -> GeneratedDataset:
    """Sample ``n`` i.i.d. rows; the first ``nq`` rows double as the query set."""
    if n <= 0:
        raise ValueError("n must be positive")
    if nq <= 0:
        raise ValueError("nq must be positive")
    if topk <= 0:
        raise ValueError("topk must be positive")

    schema = make_schema(metric, is_binary, dim)
    rng = np.random.default_rng(seed)
    vectors = np.ascontiguousarray(_sample_rows(schema, n, rng))
    base = Dataset(schema=schema, vectors=vectors)
    queries = Dataset(schema=schema, vectors=vectors[: min(nq, n)].copy())
    ids, distances = _ground_truth(base, queries, topk)
    return GeneratedDataset(
        base=base,
        queries=queries,
        ground_truth_ids=ids,
        ground_truth_distances=distances,
    )


def save_dataset(path: str | Path, dataset: GeneratedDataset) -> Path:
    target = Path(path)
    schema = dataset.base.schema
    with h5py.File(target, "w") as f:
        f.create_dataset("train", data=dataset.base.vectors)
        f.create_dataset("test", data=dataset.queries.vectors)
        f.create_dataset("neighbors", data=dataset.ground_truth_ids)
        f.create_dataset("distances", data=dataset.ground_truth_distances)
        f.attrs["distance"] = schema.metric
        f.attrs["dimension"] = schema.dim
        f.attrs["binary"] = schema.is_binary
        f.attrs["field"] = schema.name
    return target


def load_dataset(path: str | Path) -> GeneratedDataset:
    source = Path(path)
    with h5py.File(source, "r") as f:
        for key in ("train", "test", "neighbors", "distances"):
            if key not in f:
                raise ValueError(f"HDF5 dataset must contain '{key}'")
        metric = _decode_attr(f.attrs.get("distance")) or L2
        is_binary = bool(f.attrs.get("binary", False))
        dtype = np.uint8 if is_binary else np.float32
        train = np.asarray(f["train"], dtype=dtype)
        test = np.asarray(f["test"], dtype=dtype)
        dim = int(f.attrs.get("dimension", train.shape[1] * 8 if is_binary else train.shape[1]))
        ids = np.asarray(f["neighbors"], dtype=np.int64)
        distances = np.asarray(f["distances"], dtype=np.float32)

    if train.ndim != 2 or test.ndim != 2:
        raise ValueError("train and test must be 2-D arrays")
    if train.shape[1] != test.shape[1]:
        raise ValueError("train and test dimensionality mismatch")

    schema = make_schema(metric, is_binary, dim)
    if train.shape[1] != schema.row_width:
        raise ValueError(f"row width {train.shape[1]} does not match dim={dim}")
    return GeneratedDataset(
        base=Dataset(schema=schema, vectors=np.ascontiguousarray(train)),
        queries=Dataset(schema=schema, vectors=np.ascontiguousarray(test)),
        ground_truth_ids=ids,
        ground_truth_distances=distances,
    )


__all__ = ["generate_dataset", "load_dataset", "make_schema", "save_dataset"]
