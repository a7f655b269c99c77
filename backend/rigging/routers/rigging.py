"""
Router: /rigging - Validate and solve a rigging system

Every endpoint takes the persisted System shape (camelCase, see
sim/scenarios.py) and is stateless.

Pipeline for /rigging/solve:
1. validate_system(system) → errors/warnings
2. PulleySolver(system).solve(load) → SolverResult (skipped on errors unless force)
3. format_results_for_display(result) → DisplayResults
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import Field

from rigging.models.settings import get_settings
from rigging.sim.chains import annotate_chains, detect_rope_chains, get_pulley_wraps
from rigging.sim.display import DisplayResults, format_results_for_display
from rigging.sim.schema import CamelModel, PulleyWrap, Rope, RopeChain, System
from rigging.sim.solver import PulleySolver, SolverResult
from rigging.sim.validation import ValidationResult, format_validation_report, validate_system

logger = logging.getLogger("rigging.routers.rigging")

router = APIRouter(prefix="/rigging", tags=["rigging"])


# ===========================
# Request/Response Models
# ===========================

class ValidateResponse(CamelModel):
    """Response from /rigging/validate."""

    validation: ValidationResult
    report: str = Field(description="Plain-text validation report")


class ChainsResponse(CamelModel):
    """Response from /rigging/chains."""

    chains: list[RopeChain]
    wraps: dict[str, list[PulleyWrap]] = Field(
        default_factory=dict,
        description="Sheave wraps keyed by chain id"
    )
    ropes: list[Rope] = Field(
        default_factory=list,
        description="Ropes with chainId / isChainStart / isChainEnd filled in"
    )


class SolveRequest(CamelModel):
    """Request body for /rigging/solve."""

    system: System
    load_force: Optional[float] = Field(
        default=None,
        description="Load in Newtons; defaults to DEFAULT_LOAD_FORCE_N"
    )
    scenario_name: str = Field(
        default="Scenario",
        description="Title used in the display summary"
    )
    force: bool = Field(
        default=False,
        description="Solve even when validation reports errors"
    )


class SolveResponse(CamelModel):
    """Response from /rigging/solve."""

    validation: ValidationResult
    result: SolverResult
    display: Optional[DisplayResults] = None


# ===========================
# Helpers
# ===========================

def run_solve(
    system: System,
    load_force: float,
    scenario_name: str,
    validation: ValidationResult,
) -> SolveResponse:
    try:
        result = PulleySolver(system).solve(load_force)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    display = None
    if result.success:
        display = format_results_for_display(result, system, scenario_name, load_force)
    return SolveResponse(validation=validation, result=result, display=display)


# ===========================
# Endpoints
# ===========================

@router.post("/validate", response_model=ValidateResponse)
async def validate(system: System):
    """Validate every rope and report errors, warnings and stats."""
    result = validate_system(system)
    logger.info(
        f"[validate] {len(system.components)} components: "
        f"{'valid' if result.valid else 'invalid'} ({len(result.errors)} errors, {len(result.warnings)} warnings)"
    )
    return ValidateResponse(validation=result, report=format_validation_report(result))


@router.post("/chains", response_model=ChainsResponse)
async def chains(system: System):
    """Detect rope chains, their sheave wraps and the annotated ropes."""
    detected = detect_rope_chains(system.components)
    annotated = annotate_chains(system.components, detected)
    return ChainsResponse(
        chains=detected,
        wraps={chain.id: get_pulley_wraps(chain, system.components) for chain in detected},
        ropes=[c for c in annotated if c.type == "rope"],
    )


@router.post("/solve", response_model=SolveResponse)
async def solve(request: SolveRequest):
    """
    Validate, then solve the system for the given load.

    Returns 409 with the validation errors when the system is invalid and
    `force` is not set.
    """
    load_force = request.load_force
    if load_force is None:
        load_force = get_settings().DEFAULT_LOAD_FORCE_N

    validation = validate_system(request.system)
    if not validation.valid and not request.force:
        raise HTTPException(
            status_code=409,
            detail={"message": "System is invalid", "errors": validation.errors},
        )

    logger.info(f"[solve] {request.scenario_name}: load {load_force} N")
    return run_solve(request.system, load_force, request.scenario_name, validation)
