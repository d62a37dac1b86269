from __future__ import annotations

import logging

from .backends_impl import VectorBackend, resolve_backend
from .catalog import DIM, K, NQ, get_config, is_binary, is_exact, supported_index_types
from .dataset import generate_dataset
from .encoding import decode_index_params, encode_message, generate_params
from .features import FeatureTable
from .metrics import JACCARD, L2, canonical_metric
from .types import CaseResult, GeneratedDataset
from .validation import validate

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
MISMATCH = "mismatch"
SKIPPED = "skipped"
UNSUPPORTED = "unsupported"


def default_metric(index_type: str) -> str:
    return JACCARD if is_binary(index_type) else L2


def expand_index_types(requested: list[str], features: FeatureTable | None = None) -> list[str]:
    if "all" in requested:
        return supported_index_types(features)
    return list(requested)


def run_case(
    index_type: str,
    metric: str | None = None,
    *,
    n: int = 1000,
    dim: int = DIM,
    nq: int = NQ,
    topk: int = K,
    seed: int | None = None,
    tolerance: float = 1.0e-5,
    strict: bool | None = None,
    features: FeatureTable | None = None,
    backend: VectorBackend | str | None = None,
    dataset: GeneratedDataset | None = None,
) -> CaseResult:
    """Generate data, build and search one index type, then check its distances.

    ``strict`` defaults to ``True`` for exact index types only; for the others
    a distance mismatch is reported but does not fail the case.
    """
    metric = canonical_metric(metric or default_metric(index_type))
    config = get_config(index_type, metric, dim=dim, topk=topk, features=features)
    if not config:
        logger.info("%s: no configuration available", index_type)
        return CaseResult(index_type, metric, None, UNSUPPORTED, {}, reason="no configuration for index type")

    if isinstance(backend, VectorBackend):
        selected, reason = backend, None
    else:
        selected, reason = resolve_backend(index_type, metric, preferred=backend)
    if selected is None:
        logger.info("%s: skipped (%s)", index_type, reason)
        return CaseResult(index_type, metric, None, SKIPPED, config, reason=reason)

    _, index_params = generate_params(index_type, metric, dim=dim, topk=topk, features=features)
    params = decode_index_params(encode_message(index_params))

    if dataset is None:
        dataset = generate_dataset(n, metric, is_binary(index_type), dim, nq=nq, topk=topk, seed=seed)
    result, build_time, search_time = selected.build_and_search(
        params["index_type"], dataset.base, dataset.queries, params
    )
    report = validate(
        result,
        dataset.base,
        dataset.queries,
        metric,
        tolerance,
        ground_truth=dataset.ground_truth_ids,
    )

    strict = is_exact(index_type) if strict is None else strict
    if report.passed:
        status = PASSED
    elif strict:
        status = FAILED
    else:
        status = MISMATCH
    logger.info(
        "%s/%s via %s: %s (mismatched=%d, invalid_ids=%d, recall=%s)",
        index_type,
        metric,
        selected.name,
        status,
        report.mismatched,
        report.invalid_ids,
        report.recall,
    )
    return CaseResult(
        index_type=index_type,
        metric=metric,
        backend=selected.name,
        status=status,
        config=config,
        report=report,
        build_time_s=build_time,
        search_time_s=search_time,
    )


__all__ = [
    "FAILED",
    "MISMATCH",
    "PASSED",
    "SKIPPED",
    "UNSUPPORTED",
    "default_metric",
    "expand_index_types",
    "run_case",
]
