from pathlib import Path

import pytest

from annverify.scenario import DEFAULT_RUNTIME, load_scenario


def test_load_scenario_parses_sections(tmp_path: Path):
    scenario_file = tmp_path / "scenario.yaml"
    scenario_file.write_text(
        """
version: 2
name: smoke
dataset:
  n: 2000
  dim: 16
  nq: 20
  seed: 7
evaluation:
  topk: 10
  tolerance: 1.0e-4
  strict_exact: false
index:
  include: [FLAT, BIN_IVF_FLAT]
  metric: l2
  backend: faiss
features:
  gpu: true
  device_id: 1
output:
  path: /tmp/out.json
wandb:
  enabled: true
  project: annverify
  run_name: smoke-run
  tags: [test, smoke]
""".strip(),
        encoding="utf-8",
    )

    cfg = load_scenario(scenario_file)
    assert cfg["index_types"] == ["FLAT", "BIN_IVF_FLAT"]
    assert cfg["metric"] == "l2"
    assert cfg["backend"] == "faiss"
    assert cfg["n"] == 2000
    assert cfg["dim"] == 16
    assert cfg["nq"] == 20
    assert cfg["seed"] == 7
    assert cfg["topk"] == 10
    assert cfg["tolerance"] == 1.0e-4
    assert cfg["strict_exact"] is False
    assert cfg["features"] == {"gpu": True, "device_id": 1}
    assert cfg["output"] == "/tmp/out.json"
    assert cfg["wandb"]["enabled"] is True
    assert cfg["wandb"]["project"] == "annverify"
    assert cfg["wandb"]["tags"] == ["test", "smoke"]
    assert cfg["scenario_name"] == "smoke"
    assert cfg["scenario_version"] == 2


def test_empty_scenario_uses_defaults(tmp_path: Path):
    scenario_file = tmp_path / "empty.yaml"
    scenario_file.write_text("name: bare\n", encoding="utf-8")
    cfg = load_scenario(scenario_file)
    assert cfg["index_types"] == DEFAULT_RUNTIME["index_types"]
    assert cfg["topk"] == 4
    assert cfg["dim"] == 8
    assert cfg["tolerance"] == 1.0e-5
    assert cfg["strict_exact"] is True


def test_unknown_feature_is_rejected(tmp_path: Path):
    scenario_file = tmp_path / "bad.yaml"
    scenario_file.write_text("features:\n  cuda: true\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_scenario(scenario_file)


def test_section_must_be_mapping(tmp_path: Path):
    scenario_file = tmp_path / "bad.yaml"
    scenario_file.write_text("dataset: [1, 2]\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_scenario(scenario_file)


def test_quoted_false_feature_stays_disabled(tmp_path: Path):
    scenario_file = tmp_path / "quoted.yaml"
    scenario_file.write_text(
        'features:\n  nsg: "false"\n  ngt: "0"\n  gpu: "yes"\nevaluation:\n  strict_exact: "false"\n',
        encoding="utf-8",
    )
    cfg = load_scenario(scenario_file)
    assert cfg["features"] == {"nsg": False, "ngt": False, "gpu": True}
    assert cfg["strict_exact"] is False
