"""Canonical build/search configuration per index type.

Each index family registers a builder that returns its hand-curated
configuration. Families that only exist in some builds of the index library
are tagged with a feature name and resolve to an empty configuration unless
the :class:`~annverify.features.FeatureTable` enables them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .features import DEFAULT_FEATURES, FeatureTable
from .metrics import KNOWN_METRICS, canonical_metric
from .types import ConfigMap

DIM = 8
NQ = 10
K = 4
INDEX_FILE_SLICE_SIZE = 16

FLAT = "FLAT"
IVF_FLAT = "IVF_FLAT"
IVF_PQ = "IVF_PQ"
IVF_SQ8 = "IVF_SQ8"
BIN_FLAT = "BIN_FLAT"
BIN_IVF_FLAT = "BIN_IVF_FLAT"
NSG = "NSG"
SPTAG_KDT_RNT = "SPTAG_KDT_RNT"
SPTAG_BKT_RNT = "SPTAG_BKT_RNT"
HNSW = "HNSW"
ANNOY = "ANNOY"
RHNSW_FLAT = "RHNSW_FLAT"
RHNSW_PQ = "RHNSW_PQ"
RHNSW_SQ = "RHNSW_SQ"
NGT_PANNG = "NGT_PANNG"
NGT_ONNG = "NGT_ONNG"

EXACT_INDEX_TYPES = frozenset({FLAT, BIN_FLAT})
BINARY_INDEX_TYPES = frozenset({BIN_FLAT, BIN_IVF_FLAT})

ConfigBuilder = Callable[[str, int, int, FeatureTable], ConfigMap]


@dataclass(frozen=True, slots=True)
class _Entry:
    builder: ConfigBuilder
    feature: str | None


_REGISTRY: dict[str, _Entry] = {}


def register(*index_types: str, feature: str | None = None) -> Callable[[ConfigBuilder], ConfigBuilder]:
    def decorator(builder: ConfigBuilder) -> ConfigBuilder:
        for index_type in index_types:
            if index_type in _REGISTRY:
                raise ValueError(f"index type already registered: {index_type}")
            _REGISTRY[index_type] = _Entry(builder=builder, feature=feature)
        return builder

    return decorator


def _meta(metric: str, dim: int, topk: int, *, slice_size: bool = True) -> ConfigMap:
    config: ConfigMap = {}
    if slice_size:
        config["slice_size"] = INDEX_FILE_SLICE_SIZE
    config["metric_type"] = metric
    config["dim"] = dim
    config["topk"] = topk
    return config


def _device(config: ConfigMap, features: FeatureTable) -> ConfigMap:
    if features.gpu:
        config["gpu_id"] = features.device_id
    return config


@register(FLAT, BIN_FLAT)
def _flat(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    return _meta(metric, dim, topk)


@register(IVF_PQ, BIN_IVF_FLAT)
def _ivf_pq(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update({"nlist": 16, "nprobe": 4, "m": 4, "nbits": 8})
    return config


@register(IVF_FLAT)
def _ivf_flat(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update({"nlist": 16, "nprobe": 4})
    return _device(config, features)


@register(IVF_SQ8)
def _ivf_sq8(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update({"nlist": 16, "nprobe": 4, "nbits": 8})
    return _device(config, features)


@register(NSG, feature="nsg")
def _nsg(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk, slice_size=False)
    config.update(
        {
            "nlist": 163,
            "nprobe": 8,
            "knng": 20,
            "search_length": 40,
            "out_degree": 30,
            "candidate_pool_size": 100,
        }
    )
    return config


@register(SPTAG_KDT_RNT, SPTAG_BKT_RNT, feature="sptag")
def _sptag(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    # SPTAG searches a fixed top-10 regardless of the requested k.
    return _meta(metric, dim, 10)


@register(HNSW, RHNSW_FLAT, RHNSW_SQ)
def _hnsw(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update({"M": 16, "efConstruction": 200, "ef": 200})
    return config


@register(RHNSW_PQ)
def _rhnsw_pq(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _hnsw(metric, dim, topk, features)
    config["PQM"] = 8
    return config


@register(ANNOY)
def _annoy(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update({"n_trees": 4, "search_k": 100})
    return config


@register(NGT_PANNG, feature="ngt")
def _ngt_panng(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update(
        {
            "edge_size": 10,
            "epsilon": 0.1,
            "max_search_edges": 50,
            "forcedly_pruned_edge_size": 60,
            "selectively_pruned_edge_size": 30,
        }
    )
    return config


@register(NGT_ONNG, feature="ngt")
def _ngt_onng(metric: str, dim: int, topk: int, features: FeatureTable) -> ConfigMap:
    config = _meta(metric, dim, topk)
    config.update(
        {
            "edge_size": 20,
            "epsilon": 0.1,
            "max_search_edges": 50,
            "outgoing_edge_size": 5,
            "incoming_edge_size": 40,
        }
    )
    return config


def get_config(
    index_type: str,
    metric: str,
    *,
    dim: int = DIM,
    topk: int = K,
    features: FeatureTable | None = None,
) -> ConfigMap:
    """Return the canonical configuration, or ``{}`` when the index type or metric is unsupported."""
    features = DEFAULT_FEATURES if features is None else features
    metric = canonical_metric(metric)
    entry = _REGISTRY.get(index_type)
    if entry is None or metric not in KNOWN_METRICS or not features.enabled(entry.feature):
        return {}
    return entry.builder(metric, int(dim), int(topk), features)


def supported_index_types(features: FeatureTable | None = None) -> list[str]:
    features = DEFAULT_FEATURES if features is None else features
    return [name for name, entry in _REGISTRY.items() if features.enabled(entry.feature)]


def is_exact(index_type: str) -> bool:
    return index_type in EXACT_INDEX_TYPES


def is_binary(index_type: str) -> bool:
    return index_type in BINARY_INDEX_TYPES


__all__ = [
    "ANNOY",
    "BIN_FLAT",
    "BIN_IVF_FLAT",
    "DIM",
    "FLAT",
    "HNSW",
    "IVF_FLAT",
    "IVF_PQ",
    "IVF_SQ8",
    "K",
    "NGT_ONNG",
    "NGT_PANNG",
    "NQ",
    "NSG",
    "RHNSW_FLAT",
    "RHNSW_PQ",
    "RHNSW_SQ",
    "SPTAG_BKT_RNT",
    "SPTAG_KDT_RNT",
    "get_config",
    "is_binary",
    "is_exact",
    "register",
    "supported_index_types",
]
