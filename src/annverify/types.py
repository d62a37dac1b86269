from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np
from numpy.typing import NDArray

ConfigValue = Union[int, float, str]
ConfigMap = dict[str, ConfigValue]
MapParams = dict[str, str]

VECTOR_FLOAT = "VECTOR_FLOAT"
VECTOR_BINARY = "VECTOR_BINARY"


@dataclass(frozen=True, slots=True)
class FieldSchema:
    name: str
    data_type: str
    dim: int
    metric: str

    @property
    def is_binary(self) -> bool:
        return self.data_type == VECTOR_BINARY

    @property
    def row_width(self) -> int:
        """Number of buffer elements per row: floats for dense, bytes for binary."""
        return self.dim // 8 if self.is_binary else self.dim


@dataclass(slots=True)
class Dataset:
    schema: FieldSchema
    vectors: NDArray[Any]

    @property
    def rows(self) -> int:
        return int(self.vectors.shape[0])

    @property
    def dim(self) -> int:
        return self.schema.dim

    @property
    def metric(self) -> str:
        return self.schema.metric

    def row(self, i: int) -> NDArray[Any] | None:
        if i < 0 or i >= self.rows:
            return None
        return self.vectors[i]


@dataclass(slots=True)
class GeneratedDataset:
    base: Dataset
    queries: Dataset
    ground_truth_ids: NDArray[np.int64]
    ground_truth_distances: NDArray[np.float32]

    @property
    def metric(self) -> str:
        return self.base.metric


@dataclass(slots=True)
class QueryResult:
    nq: int
    topk: int
    ids: NDArray[np.int64]
    distances: NDArray[np.float32]

    def __post_init__(self) -> None:
        self.ids = np.ascontiguousarray(self.ids, dtype=np.int64).reshape(-1)
        self.distances = np.ascontiguousarray(self.distances, dtype=np.float32).reshape(-1)
        expected = self.nq * self.topk
        if self.ids.shape[0] != expected or self.distances.shape[0] != expected:
            raise ValueError(
                f"QueryResult expects {expected} ids and distances, "
                f"got {self.ids.shape[0]} and {self.distances.shape[0]}"
            )

    def id_at(self, row: int, col: int) -> int:
        return int(self.ids[row * self.topk + col])

    def distance_at(self, row: int, col: int) -> float:
        return float(self.distances[row * self.topk + col])

    def ids_2d(self) -> NDArray[np.int64]:
        return self.ids.reshape(self.nq, self.topk)

    def distances_2d(self) -> NDArray[np.float32]:
        return self.distances.reshape(self.nq, self.topk)


@dataclass(frozen=True, slots=True)
class ScalarTestParams:
    type_params: MapParams
    index_params: MapParams

    @property
    def index_type(self) -> str | None:
        return self.index_params.get("index_type")


@dataclass(slots=True)
class CellCheck:
    query: int
    rank: int
    candidate_id: int
    reported: float
    recomputed: float | None
    status: str


@dataclass(slots=True)
class ValidationReport:
    metric: str
    nq: int
    topk: int
    tolerance: float
    matched: int = 0
    mismatched: int = 0
    invalid_ids: int = 0
    incomparable: int = 0
    max_abs_error: float = 0.0
    recall: float | None = None
    failures: list[CellCheck] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return self.matched + self.mismatched + self.invalid_ids + self.incomparable

    @property
    def passed(self) -> bool:
        return self.mismatched == 0 and self.invalid_ids == 0

    def summary(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "nq": self.nq,
            "topk": self.topk,
            "tolerance": self.tolerance,
            "matched": self.matched,
            "mismatched": self.mismatched,
            "invalid_ids": self.invalid_ids,
            "incomparable": self.incomparable,
            "max_abs_error": self.max_abs_error,
            "recall": self.recall,
            "passed": self.passed,
        }


@dataclass(slots=True)
class CaseResult:
    index_type: str
    metric: str
    backend: str | None
    status: str
    config: ConfigMap
    report: ValidationReport | None = None
    build_time_s: float = 0.0
    search_time_s: float = 0.0
    reason: str | None = None
