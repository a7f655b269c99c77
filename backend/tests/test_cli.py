import json
from pathlib import Path

from rigging.cli import main

SCENARIOS_DIR = Path(__file__).resolve().parents[2] / "scenarios"


def test_all_shipped_scenarios_pass(capsys):
    assert main([str(SCENARIOS_DIR)]) == 0
    out = capsys.readouterr().out
    assert "--- 3-to-1-z-rig.json ---" in out
    assert "=== SYSTEM VALIDATION REPORT ===" in out
    assert "Overall: ✓ ALL SCENARIOS VALID" in out


def test_invalid_scenario_fails(tmp_path, capsys):
    bad = {
        "components": [
            {"id": "pulley-1", "type": "pulley", "position": {"x": 0, "y": 0}},
            {"id": "pulley-2", "type": "pulley", "position": {"x": 0, "y": 100}},
            {"id": "rope-1", "type": "rope",
              "startId": "pulley-1", "startPoint": "pulley-1-sheave-0-out",
              "endId": "pulley-2", "endPoint": "pulley-2-sheave-0-out"},
        ]
    }
    (tmp_path / "bad.json").write_text(json.dumps(bad), encoding="utf-8")
    assert main([str(tmp_path)]) == 1
    out = capsys.readouterr().out
    assert "Cannot connect OUT to OUT" in out
    assert "Overall: ✗ SOME SCENARIOS INVALID" in out


def test_unreadable_scenario_fails(tmp_path, capsys):
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")
    assert main([str(tmp_path)]) == 1
    assert "✗ SOME SCENARIOS INVALID" in capsys.readouterr().out


def test_solve_prints_summary(capsys):
    assert main([str(SCENARIOS_DIR), "--solve", "--load", "200"]) == 0
    out = capsys.readouterr().out
    assert "=== 3 to 1 Z Rig ===" in out
    assert "Load Force: 200 N" in out
    assert "Theoretical MA: 3.00" in out


def test_missing_directory(tmp_path):
    assert main([str(tmp_path / "nope")]) == 1
