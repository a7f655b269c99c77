"""Persisted rigging files and canned scenarios.

File shape (v1.0)::

    {
      "version": "1.0",
      "gridSize": 20,
      "snapToGrid": true,
      "showRopeArrows": true,
      "selectedId": null,
      "components": [...],
      "timestamp": "2026-01-01T00:00:00+00:00"
    }

Selection is UI state and is dropped on import.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from rigging.sim.schema import (
    DEFAULT_GRID_SIZE,
    SYSTEM_SCHEMA_VERSION,
    CamelModel,
    System,
)

logger = logging.getLogger(__name__)


class SystemImportError(ValueError):
    """Raised when a persisted rigging file cannot be read as a System."""


class Scenario(CamelModel):
    name: str
    description: str
    system: System
    path: Optional[str] = None


def export_system(system: System) -> str:
    payload: dict[str, Any] = {
        "version": SYSTEM_SCHEMA_VERSION,
        "gridSize": system.grid_size,
        "snapToGrid": system.snap_to_grid,
        "showRopeArrows": system.show_rope_arrows,
        "selectedId": system.selected_id,
        "components": [
            c.model_dump(mode="json", by_alias=True, exclude_none=True) for c in system.components
        ],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def system_from_data(data: Any) -> System:
    """Build a System from decoded JSON, applying the import defaults."""
    if not isinstance(data, dict):
        raise SystemImportError("Invalid system file: expected a JSON object")
    components = data.get("components", [])
    if not isinstance(components, list):
        raise SystemImportError("Invalid system file: 'components' must be an array")

    payload = {
        "version": data.get("version"),
        "components": components,
        "selectedId": None,
        "gridSize": data.get("gridSize") or DEFAULT_GRID_SIZE,
        "snapToGrid": data.get("snapToGrid", True),
        "showRopeArrows": data.get("showRopeArrows", True),
    }
    try:
        return System.model_validate(payload)
    except ValidationError as exc:
        raise SystemImportError(f"Invalid system file: {exc.error_count()} error(s)\n{exc}") from exc


def import_system(text: str) -> System:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SystemImportError(f"Invalid system file: {exc.msg} (line {exc.lineno})") from exc
    return system_from_data(data)


def load_system_file(path: str | Path) -> System:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemImportError(f"Cannot read {path}: {exc.strerror}") from exc
    try:
        return import_system(text)
    except SystemImportError as exc:
        raise SystemImportError(f"{path.name}: {exc}") from exc


def scenario_name(stem: str) -> str:
    """``3-to-1-z-rig`` -> ``3 to 1 Z Rig``."""
    words = [w if w == "to" else w[:1].upper() + w[1:] for w in stem.split("-") if w]
    return " ".join(words)


def load_scenarios(directory: str | Path) -> list[Scenario]:
    """Every ``*.json`` in ``directory`` (sorted by file name)."""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Scenarios directory not found: {directory}")

    scenarios: list[Scenario] = []
    for path in sorted(directory.glob("*.json")):
        name = scenario_name(path.stem)
        scenarios.append(Scenario(
            name=name,
            description=f"{name} mechanical advantage system.",
            system=load_system_file(path),
            path=str(path),
        ))
    logger.debug("Loaded %d scenarios from %s", len(scenarios), directory)
    return scenarios


def find_scenario(scenarios: list[Scenario], key: str) -> Scenario | None:
    """Match by display name or file stem, case-insensitively."""
    wanted = key.strip().lower()
    for scenario in scenarios:
        stem = Path(scenario.path).stem.lower() if scenario.path else None
        if scenario.name.lower() == wanted or stem == wanted:
            return scenario
    return None


__all__ = [
    "SystemImportError",
    "Scenario",
    "export_system",
    "import_system",
    "system_from_data",
    "load_system_file",
    "load_scenarios",
    "scenario_name",
    "find_scenario",
]
