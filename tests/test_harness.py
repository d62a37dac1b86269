from typing import Any

from annverify.backends_impl import VectorBackend
from annverify.catalog import BIN_IVF_FLAT, FLAT, IVF_FLAT, NSG
from annverify.dataset import generate_dataset
from annverify.features import FeatureTable
from annverify.harness import (
    FAILED,
    MISMATCH,
    PASSED,
    SKIPPED,
    UNSUPPORTED,
    default_metric,
    expand_index_types,
    run_case,
)
from annverify.metrics import compute_ground_truth
from annverify.types import QueryResult


class BruteForceBackend(VectorBackend):
    name = "brute-force"
    module_name = "numpy"
    index_types = frozenset({FLAT, IVF_FLAT, BIN_IVF_FLAT})
    metrics = frozenset({"L2", "JACCARD"})

    def __init__(self, distance_offset: float = 0.0):
        self.distance_offset = distance_offset
        self.received: dict[str, Any] = {}

    def build(self, index_type, base, config):
        self.received = dict(config)
        return base

    def search(self, handle, queries, k):
        ids, distances = compute_ground_truth(handle.vectors, queries.vectors, k, handle.metric)
        return QueryResult(nq=queries.rows, topk=k, ids=ids, distances=distances + self.distance_offset)


def test_exact_dense_case_passes():
    backend = BruteForceBackend()
    case = run_case(FLAT, "L2", n=1000, dim=8, nq=10, topk=4, seed=1, backend=backend)
    assert case.status == PASSED
    assert case.backend == "brute-force"
    assert case.report.matched == 40
    assert case.report.recall == 1.0
    assert backend.received["index_type"] == FLAT
    assert backend.received["topk"] == "4"


def test_binary_ivf_case_receives_catalog_params():
    backend = BruteForceBackend()
    case = run_case(BIN_IVF_FLAT, n=1000, dim=8, nq=10, topk=4, seed=2, backend=backend)
    assert case.metric == "JACCARD"
    assert case.status == PASSED
    assert backend.received["nlist"] == "16"
    assert backend.received["nprobe"] == "4"
    assert backend.received["metric_type"] == "JACCARD"
    assert case.report.mismatched == 0


def test_exact_index_mismatch_fails():
    case = run_case(FLAT, "L2", n=200, nq=5, seed=3, backend=BruteForceBackend(distance_offset=0.25))
    assert case.status == FAILED
    assert case.report.mismatched == 20


def test_approximate_index_mismatch_is_advisory():
    case = run_case(IVF_FLAT, "L2", n=200, nq=5, seed=4, backend=BruteForceBackend(distance_offset=0.25))
    assert case.status == MISMATCH


def test_strict_override_for_approximate_index():
    case = run_case(
        IVF_FLAT, "L2", n=200, nq=5, seed=4, strict=True, backend=BruteForceBackend(distance_offset=0.25)
    )
    assert case.status == FAILED


def test_unsupported_index_type_is_reported_not_raised():
    case = run_case(NSG, "L2", features=FeatureTable())
    assert case.status == UNSUPPORTED
    assert case.config == {}
    assert case.report is None


def test_missing_backend_is_skipped():
    case = run_case(NSG, "L2", features=FeatureTable(nsg=True))
    assert case.status == SKIPPED
    assert case.config["nlist"] == 163
    assert "no backend" in case.reason


def test_unknown_backend_name_is_skipped():
    case = run_case(FLAT, "L2", backend="nope", features=FeatureTable())
    assert case.status == SKIPPED
    assert "unknown backend" in case.reason


def test_default_metric_and_expansion():
    assert default_metric(BIN_IVF_FLAT) == "JACCARD"
    assert default_metric(FLAT) == "L2"
    types = expand_index_types(["all"], FeatureTable())
    assert FLAT in types
    assert NSG not in types
    assert expand_index_types([FLAT, "X"]) == [FLAT, "X"]


def test_given_dataset_is_reused():
    ds = generate_dataset(64, "L2", False, 8, nq=3, topk=2, seed=5)
    case = run_case(FLAT, "L2", topk=2, dataset=ds, backend=BruteForceBackend())
    assert case.status == PASSED
    assert case.report.nq == 3
    assert case.report.failures == []


def test_exact_case_with_wide_vectors_passes():
    case = run_case(FLAT, "L2", n=1000, dim=256, nq=50, topk=4, seed=0, backend=BruteForceBackend())
    assert case.status == PASSED
    assert case.report.mismatched == 0
    assert case.report.recall == 1.0


def test_unknown_metric_is_unsupported():
    case = run_case(FLAT, "FOO", backend=BruteForceBackend())
    assert case.status == UNSUPPORTED
    assert case.config == {}
