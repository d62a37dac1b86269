"""Brute-force consistency checks for query results returned by an index.

The hard contract is that a reported distance equals the distance recomputed
for the reported id. Whether the id is the true nearest neighbor is only
reported as an advisory recall figure, since approximate indexes are allowed
to miss.
"""

from __future__ import annotations

import logging
from io import StringIO

import numpy as np
from numpy.typing import NDArray

from .metrics import FLT_MAX, canonical_metric, count_distance, recall_at_k
from .types import CellCheck, Dataset, QueryResult, ValidationReport

logger = logging.getLogger(__name__)

MATCH = "match"
MISMATCH = "mismatch"
INVALID_ID = "invalid_id"
INCOMPARABLE = "incomparable"


class ValidationError(AssertionError):
    def __init__(self, report: ValidationReport):
        self.report = report
        super().__init__(
            f"{report.mismatched} distance mismatches and {report.invalid_ids} invalid ids "
            f"out of {report.checked} cells (tolerance={report.tolerance:g})"
        )


def check_cell(
    result: QueryResult,
    row: int,
    col: int,
    base: Dataset,
    queries: Dataset,
    metric: str,
    tolerance: float,
) -> CellCheck:
    candidate = result.id_at(row, col)
    reported = result.distance_at(row, col)
    if candidate < 0 or candidate >= base.rows:
        return CellCheck(row, col, candidate, reported, None, INVALID_ID)

    recomputed = count_distance(queries.row(row), base.row(candidate), base.dim, metric)
    if recomputed == FLT_MAX:
        return CellCheck(row, col, candidate, reported, None, INCOMPARABLE)
    # Reported distances are float32; compare at that precision.
    recomputed = float(np.float32(recomputed))
    status = MATCH if abs(reported - recomputed) <= tolerance else MISMATCH
    return CellCheck(row, col, candidate, reported, recomputed, status)


def validate(
    result: QueryResult,
    base: Dataset,
    queries: Dataset,
    metric: str,
    tolerance: float = 1.0e-5,
    *,
    strict: bool = False,
    ground_truth: NDArray[np.int64] | None = None,
) -> ValidationReport:
    metric = canonical_metric(metric)
    if base.schema.row_width != queries.schema.row_width:
        raise ValueError("base and query datasets must share dimensionality")

    report = ValidationReport(metric=metric, nq=result.nq, topk=result.topk, tolerance=tolerance)
    for i in range(result.nq):
        for j in range(result.topk):
            cell = check_cell(result, i, j, base, queries, metric, tolerance)
            if cell.status == MATCH:
                report.matched += 1
            elif cell.status == INCOMPARABLE:
                report.incomparable += 1
            elif cell.status == INVALID_ID:
                report.invalid_ids += 1
                report.failures.append(cell)
                logger.warning("query %d rank %d: id %d is outside the base set", i, j, cell.candidate_id)
            else:
                report.mismatched += 1
                report.failures.append(cell)
                logger.warning(
                    "query %d rank %d id %d: reported %.6g, recomputed %.6g",
                    i,
                    j,
                    cell.candidate_id,
                    cell.reported,
                    cell.recomputed,
                )
            if cell.recomputed is not None:
                report.max_abs_error = max(report.max_abs_error, abs(cell.reported - cell.recomputed))

    if ground_truth is not None and ground_truth.shape[0] == result.nq:
        k = min(result.topk, ground_truth.shape[1])
        if k > 0:
            report.recall = recall_at_k(result.ids_2d(), ground_truth, k)

    logger.debug("validation summary: %s", report.summary())
    if strict and not report.passed:
        raise ValidationError(report)
    return report


def format_query_result(result: QueryResult) -> str:
    ss_id = StringIO()
    ss_dist = StringIO()
    for i in range(result.nq):
        for j in range(result.topk):
            ss_id.write(f"{result.id_at(i, j)} ")
            ss_dist.write(f"{result.distance_at(i, j):g} ")
        ss_id.write("\n")
        ss_dist.write("\n")
    return f"id\n{ss_id.getvalue()}\ndist\n{ss_dist.getvalue()}"


def print_query_result(result: QueryResult) -> None:
    print(format_query_result(result))


__all__ = [
    "INCOMPARABLE",
    "INVALID_ID",
    "MATCH",
    "MISMATCH",
    "ValidationError",
    "check_cell",
    "format_query_result",
    "print_query_result",
    "validate",
]
