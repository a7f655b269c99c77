import json
from pathlib import Path

from fastapi.testclient import TestClient

from rigging.main import app

SCENARIOS_DIR = Path(__file__).resolve().parents[2] / "scenarios"

client = TestClient(app)


def scenario_json(name):
    return json.loads((SCENARIOS_DIR / name).read_text(encoding="utf-8"))


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_validate_route():
    r = client.post("/rigging/validate", json=scenario_json("3-to-1-z-rig.json"))
    assert r.status_code == 200
    data = r.json()
    assert data["validation"]["valid"] is True
    assert data["validation"]["stats"]["totalRopes"] == 3
    assert data["report"].startswith("=== SYSTEM VALIDATION REPORT ===")


def test_validate_rejects_malformed_body():
    r = client.post("/rigging/validate", json={"components": [{"id": "r", "type": "rope", "startId": "a"}]})
    assert r.status_code == 422


def test_chains_route():
    r = client.post("/rigging/chains", json=scenario_json("3-to-1-z-rig.json"))
    assert r.status_code == 200
    data = r.json()
    assert data["chains"][0]["ropeIds"] == ["rope-1", "rope-2", "rope-3"]
    assert len(data["wraps"]["chain-1"]) == 2
    starts = [rope["id"] for rope in data["ropes"] if rope["isChainStart"]]
    assert starts == ["rope-1"]


def test_solve_route():
    r = client.post("/rigging/solve", json={
        "system": scenario_json("3-to-1-z-rig.json"),
        "loadForce": 100,
        "scenarioName": "Z Rig",
    })
    assert r.status_code == 200
    data = r.json()
    assert data["result"]["success"] is True
    assert data["result"]["theoreticalMA"] == 3
    assert data["display"]["summary"]["theoreticalMA"] == "3.00"
    assert data["display"]["scenario"] == "Z Rig"


def test_solve_invalid_system_needs_force():
    system = scenario_json("2-to-1.json")
    # Wrap rope drawn from the IN lead back to the becket
    wrap = next(c for c in system["components"] if c["id"] == "rope-2")
    wrap["startPoint"], wrap["endPoint"] = wrap["endPoint"], wrap["startPoint"]

    r = client.post("/rigging/solve", json={"system": system})
    assert r.status_code == 409
    assert r.json()["detail"]["errors"]

    r = client.post("/rigging/solve", json={"system": system, "force": True})
    assert r.status_code == 200
    assert r.json()["validation"]["valid"] is False


def test_solve_rejects_negative_load():
    r = client.post("/rigging/solve", json={"system": scenario_json("2-to-1.json"), "loadForce": -5})
    assert r.status_code == 400


def test_list_scenarios():
    r = client.get("/scenarios")
    assert r.status_code == 200
    data = r.json()
    assert [s["file"] for s in data] == ["2-to-1.json", "3-to-1-z-rig.json", "4-to-1.json"]
    assert all(s["valid"] for s in data)


def test_get_scenario():
    r = client.get("/scenarios/3-to-1-z-rig")
    assert r.status_code == 200
    data = r.json()
    assert data["scenario"]["name"] == "3 to 1 Z Rig"
    assert data["result"]["theoreticalMA"] == 3
    assert data["loadForce"] == 100

    assert client.get("/scenarios/9-to-1").status_code == 404
