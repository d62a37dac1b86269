import json
from pathlib import Path

from annverify.cli import main


def test_cli_writes_json_and_markdown(tmp_path: Path, capsys):
    output = tmp_path / "out.json"
    code = main(["--index-types", "NSG", "--output", str(output)])
    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["index_types"] == ["NSG"]
    assert payload["metadata"]["topk"] == 4
    assert len(payload["cases"]) == 1
    assert payload["cases"][0]["status"] in {"unsupported", "skipped"}
    assert (tmp_path / "out.md").exists()
    assert "Validation summary:" in capsys.readouterr().out


def test_cli_scenario_file(tmp_path: Path):
    scenario = tmp_path / "scenario.yaml"
    output = tmp_path / "scenario_out.json"
    scenario.write_text(
        f"""
name: cli
index:
  include: [NSG]
features:
  nsg: false
output:
  path: {output}
""".strip(),
        encoding="utf-8",
    )
    assert main(["--scenario", str(scenario)]) == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["scenario_name"] == "cli"
    assert payload["cases"][0]["status"] == "unsupported"
