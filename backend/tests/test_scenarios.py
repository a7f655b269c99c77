from __future__ import annotations

import json
from pathlib import Path

import pytest

from rigging.sim.scenarios import (
    SystemImportError,
    export_system,
    find_scenario,
    import_system,
    load_scenarios,
    load_system_file,
    scenario_name,
)
from rigging.sim.solver import solve
from rigging.sim.validation import validate_system

SCENARIOS_DIR = Path(__file__).resolve().parents[2] / "scenarios"


def test_shipped_scenarios_load_with_readable_names():
    scenarios = load_scenarios(SCENARIOS_DIR)
    assert [s.name for s in scenarios] == ["2 to 1", "3 to 1 Z Rig", "4 to 1"]
    assert scenarios[1].description == "3 to 1 Z Rig mechanical advantage system."


def test_every_shipped_scenario_is_valid_and_solvable():
    for scenario in load_scenarios(SCENARIOS_DIR):
        validation = validate_system(scenario.system)
        assert validation.valid, f"{scenario.name}: {validation.errors}"
        assert validation.errors == []
        result = solve(scenario.system, 100)
        assert result.success, scenario.name
        assert result.distance_ratio == pytest.approx(result.theoretical_ma)


def test_scenario_name():
    assert scenario_name("3-to-1-z-rig") == "3 to 1 Z Rig"
    assert scenario_name("top-rope") == "Top Rope"


def test_find_scenario_by_name_or_stem():
    scenarios = load_scenarios(SCENARIOS_DIR)
    assert find_scenario(scenarios, "3-to-1-z-rig").name == "3 to 1 Z Rig"
    assert find_scenario(scenarios, "4 TO 1").name == "4 to 1"
    assert find_scenario(scenarios, "9-to-1") is None


def test_export_then_import_keeps_components():
    system = load_system_file(SCENARIOS_DIR / "3-to-1-z-rig.json")
    restored = import_system(export_system(system))
    assert restored.components == system.components
    assert restored.grid_size == system.grid_size


def test_export_shape():
    system = load_system_file(SCENARIOS_DIR / "2-to-1.json")
    data = json.loads(export_system(system))
    assert data["version"] == "1.0"
    assert data["snapToGrid"] is True
    assert data["showRopeArrows"] is True
    assert "timestamp" in data
    rope = next(c for c in data["components"] if c["type"] == "rope")
    assert set(rope) >= {"id", "type", "startId", "startPoint", "endId", "endPoint"}
    pulley = next(c for c in data["components"] if c["type"] == "pulley")
    assert pulley["hasBecket"] is True


def test_import_defaults_and_drops_selection():
    system = import_system(json.dumps({
        "selectedId": "anchor-1",
        "components": [{"id": "anchor-1", "type": "anchor", "position": {"x": 0, "y": 0}}],
    }))
    assert system.selected_id is None
    assert system.grid_size == 20
    assert system.snap_to_grid is True
    assert system.show_rope_arrows is True

    assert import_system("{}").components == []


def test_import_keeps_explicit_flags():
    system = import_system(json.dumps({"gridSize": 10, "snapToGrid": False, "showRopeArrows": False}))
    assert system.grid_size == 10
    assert system.snap_to_grid is False
    assert system.show_rope_arrows is False


@pytest.mark.parametrize("text", [
    "not json",
    "[1, 2]",
    '{"components": {}}',
    '{"components": [{"id": "x", "type": "winch"}]}',
    '{"components": [{"id": "r", "type": "rope", "startId": "a"}]}',
])
def test_import_rejects_bad_input(text):
    with pytest.raises(SystemImportError):
        import_system(text)


def test_import_error_is_a_value_error():
    with pytest.raises(ValueError):
        import_system("not json")


def test_load_scenarios_reports_bad_file(tmp_path):
    (tmp_path / "broken-rig.json").write_text("{", encoding="utf-8")
    with pytest.raises(SystemImportError, match="broken-rig.json"):
        load_scenarios(tmp_path)


def test_load_scenarios_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scenarios(tmp_path / "nope")
