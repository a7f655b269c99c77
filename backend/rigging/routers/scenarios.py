"""
Router: /scenarios - Canned rigging scenarios

Lists the JSON systems in SCENARIOS_DIR and serves one of them validated
and solved at the default load.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import Field

from rigging.models.settings import get_settings
from rigging.routers.rigging import SolveResponse, run_solve
from rigging.sim.scenarios import Scenario, SystemImportError, find_scenario, load_scenarios
from rigging.sim.schema import CamelModel
from rigging.sim.validation import validate_system

logger = logging.getLogger("rigging.routers.scenarios")

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


class ScenarioSummary(CamelModel):
    name: str
    description: str
    file: Optional[str] = None
    valid: bool
    components: int


class ScenarioDetail(SolveResponse):
    scenario: Scenario
    load_force: float = Field(description="Load the scenario was solved with (N)")


def _load_all() -> list[Scenario]:
    directory = get_settings().SCENARIOS_DIR
    try:
        return load_scenarios(directory)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SystemImportError as e:
        logger.error(f"[scenarios] Failed to load {directory}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=list[ScenarioSummary])
async def list_scenarios():
    summaries = []
    for scenario in _load_all():
        summaries.append(ScenarioSummary(
            name=scenario.name,
            description=scenario.description,
            file=Path(scenario.path).name if scenario.path else None,
            valid=validate_system(scenario.system).valid,
            components=len(scenario.system.components),
        ))
    return summaries


@router.get("/{name}", response_model=ScenarioDetail)
async def get_scenario(name: str):
    """Scenario by display name or file stem, validated and solved."""
    scenario = find_scenario(_load_all(), name)
    if scenario is None:
        raise HTTPException(status_code=404, detail=f"Scenario {name} not found")

    load_force = get_settings().DEFAULT_LOAD_FORCE_N
    validation = validate_system(scenario.system)
    solved = run_solve(scenario.system, load_force, scenario.name, validation)
    return ScenarioDetail(
        scenario=scenario,
        load_force=load_force,
        validation=solved.validation,
        result=solved.result,
        display=solved.display,
    )
