from __future__ import annotations

import json
from pathlib import Path

import pytest

from routeconv.cli.main import main

SCENARIO = """
name: cli_line
seed: 1
protocol: dv
topology:
  type: line
  n_nodes: 3
engine:
  max_ticks: 20
events:
  - {tick: 8, action: remove_link, u: 1, v: 2}
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "scenario.yaml"
    path.write_text(text.strip(), encoding="utf-8")
    return path


def test_cli_run_prints_result(tmp_path, capsys):
    cfg = _write(tmp_path, SCENARIO)
    code = main(["run", "--config", str(cfg), "--output-dir", str(tmp_path / "runs")])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["protocol"] == "dv"
    assert out["route_tables"]["0"] == {"1": [1, 1.0]}
    assert "route_hashes" not in out


def test_cli_run_several_protocols(tmp_path, capsys):
    cfg = _write(tmp_path, SCENARIO)
    code = main(
        ["run", "--config", str(cfg), "--output-dir", str(tmp_path / "runs"), "--protocol", "ls", "--protocol", "pv"]
    )

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert [r["protocol"] for r in out] == ["ls", "pv"]
    assert all(r["quiescent"] for r in out)


def test_cli_validate(tmp_path, capsys):
    good = _write(tmp_path, SCENARIO)
    assert main(["validate", "--config", str(good)]) == 0
    assert json.loads(capsys.readouterr().out) == {"ok": True}

    bad = _write(tmp_path, "protocol: rip\ntopology: {}\n")
    assert main(["validate", "--config", str(bad)]) == 1
    assert json.loads(capsys.readouterr().out)["ok"] is False


def test_shipped_scenarios_validate(capsys):
    configs = sorted((Path(__file__).resolve().parents[1] / "configs").glob("*.yaml"))
    assert configs
    for cfg in configs:
        assert main(["validate", "--config", str(cfg)]) == 0
    capsys.readouterr()


def test_cli_summarize_and_plot(tmp_path, capsys):
    pytest.importorskip("matplotlib")
    cfg = _write(tmp_path, SCENARIO)
    main(["run", "--config", str(cfg), "--output-dir", str(tmp_path / "runs"), "--protocol", "dv", "--protocol", "ls"])
    assert main(["summarize", "--runs", str(tmp_path / "runs"), "--out", str(tmp_path / "summary.csv")]) == 0
    assert main(["plot", "--in", str(tmp_path / "summary.csv"), "--out", str(tmp_path / "summary.png")]) == 0
    assert (tmp_path / "summary.png").exists()
    capsys.readouterr()


def test_cli_validate_rejects_non_mapping_file(tmp_path, capsys):
    bad = _write(tmp_path, "- just\n- a list\n")
    assert main(["validate", "--config", str(bad)]) == 1
    out = json.loads(capsys.readouterr().out)
    assert "mapping" in out["errors"][0]
