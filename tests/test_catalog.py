import pytest

from annverify.catalog import (
    ANNOY,
    BIN_IVF_FLAT,
    FLAT,
    HNSW,
    IVF_FLAT,
    IVF_PQ,
    IVF_SQ8,
    NGT_ONNG,
    NSG,
    RHNSW_PQ,
    SPTAG_KDT_RNT,
    get_config,
    register,
    supported_index_types,
)
from annverify.features import FeatureTable

NONE = FeatureTable()
ALL = FeatureTable(gpu=True, nsg=True, sptag=True, ngt=True, device_id=3)


@pytest.mark.parametrize("features", [NONE, ALL])
def test_every_supported_type_has_generic_keys(features):
    types = supported_index_types(features)
    assert types
    for index_type in types:
        metric = "JACCARD" if index_type.startswith("BIN_") else "L2"
        config = get_config(index_type, metric, features=features)
        assert config, index_type
        assert config["metric_type"] == metric
        assert config["dim"] == 8
        assert "topk" in config


def test_ivf_pq_literals():
    config = get_config(IVF_PQ, "L2", features=NONE)
    assert config == {
        "slice_size": 16,
        "metric_type": "L2",
        "dim": 8,
        "topk": 4,
        "nlist": 16,
        "nprobe": 4,
        "m": 4,
        "nbits": 8,
    }
    assert list(config)[:4] == ["slice_size", "metric_type", "dim", "topk"]


def test_binary_ivf_literals():
    config = get_config(BIN_IVF_FLAT, "jaccard", features=NONE)
    assert config["metric_type"] == "JACCARD"
    assert config["nlist"] == 16
    assert config["nprobe"] == 4


def test_graph_and_tree_literals():
    hnsw = get_config(HNSW, "L2", features=NONE)
    assert (hnsw["M"], hnsw["efConstruction"], hnsw["ef"]) == (16, 200, 200)
    assert get_config(RHNSW_PQ, "L2", features=NONE)["PQM"] == 8
    annoy = get_config(ANNOY, "L2", features=NONE)
    assert (annoy["n_trees"], annoy["search_k"]) == (4, 100)


def test_dim_and_topk_are_passed_through():
    config = get_config(FLAT, "L2", dim=128, topk=10, features=NONE)
    assert config["dim"] == 128
    assert config["topk"] == 10


def test_unknown_index_type_is_empty():
    assert get_config("NOT_AN_INDEX", "L2", features=ALL) == {}


def test_gated_families_need_their_feature():
    for index_type in (NSG, SPTAG_KDT_RNT, NGT_ONNG):
        assert get_config(index_type, "L2", features=NONE) == {}
        assert index_type not in supported_index_types(NONE)
        assert get_config(index_type, "L2", features=ALL)
        assert index_type in supported_index_types(ALL)


def test_nsg_has_no_slice_size():
    config = get_config(NSG, "L2", features=ALL)
    assert "slice_size" not in config
    assert config["nlist"] == 163
    assert config["candidate_pool_size"] == 100


def test_sptag_fixes_topk():
    assert get_config(SPTAG_KDT_RNT, "L2", topk=4, features=ALL)["topk"] == 10


def test_gpu_binds_device_for_ivf_flat_and_sq8_only():
    assert "gpu_id" not in get_config(IVF_FLAT, "L2", features=NONE)
    assert get_config(IVF_FLAT, "L2", features=ALL)["gpu_id"] == 3
    assert get_config(IVF_SQ8, "L2", features=ALL)["gpu_id"] == 3
    assert "gpu_id" not in get_config(IVF_PQ, "L2", features=ALL)


def test_ngt_epsilon_is_float():
    config = get_config(NGT_ONNG, "L2", features=ALL)
    assert config["epsilon"] == 0.1
    assert config["incoming_edge_size"] == 40


def test_register_rejects_duplicates():
    with pytest.raises(ValueError):
        register(FLAT)(lambda metric, dim, topk, features: {})


def test_feature_table_from_env():
    table = FeatureTable.from_env({"ANNVERIFY_SUPPORT_NSG": "1", "ANNVERIFY_GPU": "true", "ANNVERIFY_DEVICE_ID": "2"})
    assert table.nsg is True
    assert table.gpu is True
    assert table.sptag is False
    assert table.device_id == 2


def test_feature_table_merge():
    merged = NONE.merged({"ngt": True})
    assert merged.ngt is True
    assert NONE.ngt is False
    with pytest.raises(ValueError):
        NONE.merged({"cuda": True})


def test_unknown_metric_yields_empty_config():
    assert get_config(FLAT, "FOO", features=ALL) == {}
    assert get_config(FLAT, "euclidean", features=NONE)["metric_type"] == "L2"


@pytest.mark.parametrize("raw", ["false", "0", "no", "off", "", False, 0])
def test_string_flags_do_not_enable_features(raw):
    assert NONE.merged({"nsg": raw}).nsg is False
    assert get_config(NSG, "L2", features=NONE.merged({"nsg": raw})) == {}


def test_string_flags_enable_features():
    assert NONE.merged({"nsg": "true", "gpu": "1"}) == FeatureTable(nsg=True, gpu=True)
