"""Presentation view of solver output.

Pure transform from ``SolverResult`` + ``System`` to display-ready records.
Number formatting is fixed: forces and tensions to 2 decimals with an
``N`` suffix, percentages to 1 decimal, angles to 1 decimal in degrees.
"""
from __future__ import annotations

import math
from typing import Optional

from pydantic import Field

from rigging.sim.schema import CamelModel, System
from rigging.sim.solver import DEFAULT_LOAD_FORCE_N, SolverResult


class DisplaySummary(CamelModel):
    theoretical_ma: str = Field(..., alias="theoreticalMA")
    actual_ma: str = Field(..., alias="actualMA")
    efficiency: str
    input_force: str
    output_force: str
    force_advantage: str


class DisplaySystemInfo(CamelModel):
    total_pulleys: int
    moving_pulleys: int
    fixed_pulleys: int
    total_rope_length: str


class TensionRow(CamelModel):
    rope_id: str
    rope_label: str
    tension: float
    tension_formatted: str
    percent_of_max: float
    percent_of_max_formatted: str


class ForceRow(CamelModel):
    component_id: str
    component_label: str
    magnitude: float
    angle: float
    angle_formatted: str
    x: float
    y: float
    magnitude_formatted: str


class GraphNode(CamelModel):
    id: str
    type: str
    label: str
    x: float
    y: float


class GraphEdge(CamelModel):
    id: str
    source: str
    target: str
    tension: float
    label: str


class ForceGraph(CamelModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class DisplayResults(CamelModel):
    scenario: str
    load_force: float
    summary: DisplaySummary
    system: DisplaySystemInfo
    tensions: list[TensionRow]
    forces: list[ForceRow]
    graph: ForceGraph


def format_force(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f} N"


def format_percent(fraction: float) -> str:
    return f"{fraction * 100:.1f}%"


def _label(component, fallback: str) -> str:
    return getattr(component, "label", None) or fallback


def format_results_for_display(
    result: SolverResult,
    system: System,
    scenario_name: str = "Scenario",
    load_force: float = DEFAULT_LOAD_FORCE_N,
) -> DisplayResults:
    index = system.component_index()

    max_tension = max(result.rope_tensions.values(), default=0.0)
    tensions = []
    for rope_id, tension in result.rope_tensions.items():
        share = tension / max_tension if max_tension > 0 else 0.0
        tensions.append(TensionRow(
            rope_id=rope_id,
            rope_label=_label(index.get(rope_id), rope_id),
            tension=tension,
            tension_formatted=format_force(tension),
            percent_of_max=share * 100,
            percent_of_max_formatted=format_percent(share),
        ))
    tensions.sort(key=lambda row: row.tension, reverse=True)

    forces = []
    for anchor_force in result.anchor_forces:
        vec = anchor_force.force
        forces.append(ForceRow(
            component_id=anchor_force.component_id,
            component_label=_label(index.get(anchor_force.component_id), anchor_force.component_id),
            magnitude=vec.magnitude,
            angle=vec.angle,
            angle_formatted=f"{math.degrees(vec.angle):.1f}°",
            x=vec.x,
            y=vec.y,
            magnitude_formatted=format_force(vec.magnitude),
        ))
    forces.sort(key=lambda row: row.magnitude, reverse=True)

    nodes = []
    edges = []
    for comp in system.components:
        if comp.type == "rope":
            tension = result.rope_tensions.get(comp.id, 0.0)
            edges.append(GraphEdge(
                id=comp.id,
                source=comp.start_id,
                target=comp.end_id,
                tension=tension,
                label=f"{tension:.1f} N",
            ))
            continue
        position = getattr(comp, "position", None)
        nodes.append(GraphNode(
            id=comp.id,
            type=comp.type,
            label=_label(comp, comp.id),
            x=position.x if position else 0.0,
            y=position.y if position else 0.0,
        ))

    return DisplayResults(
        scenario=scenario_name,
        load_force=load_force,
        summary=DisplaySummary(
            theoretical_ma=f"{result.theoretical_ma:.2f}",
            actual_ma=f"{result.actual_ma:.2f}",
            efficiency=format_percent(result.efficiency),
            input_force=format_force(result.input_force),
            output_force=format_force(result.output_force),
            force_advantage=f"{load_force / (result.input_force or 1):.2f}x",
        ),
        system=DisplaySystemInfo(
            total_pulleys=result.number_of_pulleys,
            moving_pulleys=result.moving_pulleys,
            fixed_pulleys=result.fixed_pulleys,
            total_rope_length=f"{result.total_rope_length:.2f} units",
        ),
        tensions=tensions,
        forces=forces,
        graph=ForceGraph(nodes=nodes, edges=edges),
    )


def format_results_text(display: DisplayResults) -> str:
    """Plain-text summary of ``DisplayResults`` (CLI output)."""
    s = display.summary
    lines = [
        f"=== {display.scenario} ===",
        f"Load Force: {display.load_force:g} N",
        f"Theoretical MA: {s.theoretical_ma}  Actual MA: {s.actual_ma}  Efficiency: {s.efficiency}",
        f"Pull: {s.input_force}  Load: {s.output_force}  Force advantage: {s.force_advantage}",
        f"Pull rope {s.theoretical_ma} units to lift load 1 unit",
        f"Pulleys (moving/fixed): {display.system.moving_pulleys}/{display.system.fixed_pulleys}"
        f"  Total rope length: {display.system.total_rope_length}",
    ]
    if display.tensions:
        lines.append("--- ROPE TENSIONS ---")
        lines.extend(
            f"  {row.rope_label}: {row.tension_formatted} ({row.percent_of_max_formatted})"
            for row in display.tensions
        )
    if display.forces:
        lines.append("--- ANCHOR & RESULTANT FORCES ---")
        lines.extend(
            f"  {row.component_label}: {row.magnitude_formatted} @ {row.angle_formatted}"
            for row in display.forces
        )
    return "\n".join(lines) + "\n"


__all__ = [
    "DisplaySummary",
    "DisplaySystemInfo",
    "TensionRow",
    "ForceRow",
    "GraphNode",
    "GraphEdge",
    "ForceGraph",
    "DisplayResults",
    "format_force",
    "format_percent",
    "format_results_for_display",
    "format_results_text",
]
