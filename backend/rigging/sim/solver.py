"""Static block-and-tackle solver.

Given a rigging snapshot and the load force, computes:
- theoretical / actual mechanical advantage and efficiency
- hauling (input) force and per-rope tensions
- resultant force vectors at anchors and pulleys
- total rope length and the pull/load distance relationship

Conventions:
- The working chain is the one the person hauls on (else the first chain).
  Chains hung from a pulley eye or becket the working chain already loads
  are solved in cascade; theoretical MA is the product of the segment
  counts of the working chain and every chain linked to it. Exact for
  simple reeving, approximate for irregular topologies.
- Friction is a per-pass efficiency multiplier per pulley (default 0.95),
  applied once per chained rope touching the pulley.
- Tension starts at the hauler and is divided by the pulley friction at each
  pulley the line passes, so it grows towards the load. A linked chain is
  seeded with the tension its attachment pulley carries.
- Geometry is straight-line between component positions; a sheave endpoint
  adds a quarter circumference of rope.

The solver does not re-validate. Validate first; here a missing chain falls
back to per-rope load tension and a system with no rope or no pulley yields
``success=False``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from pydantic import Field

from rigging.sim.chains import chain_joints, detect_rope_chains
from rigging.sim.points import Endpoint, EndpointKind, classify_endpoint, is_suspension_rope, resolve_rope
from rigging.sim.schema import CamelModel, Point, Pulley, Rope, RopeChain, System

logger = logging.getLogger(__name__)

DEFAULT_LOAD_FORCE_N = 100.0
LOAD_DISTANCE = 1.0

# Pulley points a downstream chain can hang from.
_LINK_KINDS = (EndpointKind.PULLEY_ANCHOR, EndpointKind.BECKET, EndpointKind.LOAD)


class ForceVector(CamelModel):
    magnitude: float
    angle: float = Field(..., description="Direction in radians (atan2).")
    x: float
    y: float


class ConnectionForce(CamelModel):
    component_id: str
    connection_point: str
    force: ForceVector
    tension: Optional[float] = None


class SolverResult(CamelModel):
    success: bool
    errors: Optional[list[str]] = None

    theoretical_ma: float = Field(0.0, alias="theoreticalMA")
    actual_ma: float = Field(0.0, alias="actualMA")
    efficiency: float = 0.0

    input_force: Optional[float] = None
    output_force: Optional[float] = None
    anchor_forces: list[ConnectionForce] = Field(default_factory=list)
    rope_tensions: dict[str, float] = Field(default_factory=dict)

    pull_distance: Optional[float] = None
    load_distance: Optional[float] = None
    distance_ratio: Optional[float] = None

    total_rope_length: float = 0.0
    number_of_pulleys: int = 0
    moving_pulleys: int = 0
    fixed_pulleys: int = 0


class MAResult(CamelModel):
    theoretical_ma: float = Field(..., alias="theoreticalMA")
    actual_ma: float = Field(..., alias="actualMA")
    efficiency: float
    pulleys: int
    moving_pulleys: int
    fixed_pulleys: int


@dataclass
class _Link:
    """A chain in the solve cascade.

    ``seed_pulley`` is the already-solved pulley the chain hangs from (None
    for the working chain); ``from_end`` is set when the chain's end point
    is the one attached there.
    """
    chain: RopeChain
    ropes: list[Rope]
    seed_pulley: Optional[str] = None
    from_end: bool = False


@dataclass
class _Analysis:
    pulleys: list[Pulley]
    moving: list[Pulley]
    fixed: list[Pulley]
    ropes: list[Rope]
    chain: Optional[RopeChain] = None
    chain_ropes: list[Rope] = field(default_factory=list)
    links: list[_Link] = field(default_factory=list)
    loose: list[_Link] = field(default_factory=list)

    def chained_ropes(self) -> list[Rope]:
        return [r for link in self.links + self.loose for r in link.ropes]


def _failure(errors: list[str]) -> SolverResult:
    return SolverResult(success=False, errors=errors)


def _check_load(load_force: float) -> float:
    load_force = float(load_force)
    if not math.isfinite(load_force) or load_force < 0:
        raise ValueError(f"load force must be a finite, non-negative number (got {load_force})")
    return load_force


class PulleySolver:
    """Solve one rigging snapshot.

    The system is deep-copied on construction, so callers may keep editing
    their own instance while a solve runs.
    """

    def __init__(self, system: System):
        self.system = system.model_copy(deep=True)
        self._index = self.system.component_index()

    def solve(self, load_force: float = DEFAULT_LOAD_FORCE_N) -> SolverResult:
        load_force = _check_load(load_force)

        missing = self.missing_parts()
        if missing:
            logger.info("Solve skipped: %s", "; ".join(missing))
            return _failure([f"Invalid system configuration: {m}" for m in missing])

        analysis = self.analyze_system()
        theoretical, actual, efficiency = self.calculate_mechanical_advantage(analysis)
        input_force = load_force / actual

        tensions = self.calculate_rope_tensions(load_force, input_force, analysis)
        anchor_forces = self.calculate_anchor_forces(tensions)
        total_length = self.calculate_total_rope_length()

        pull_distance = theoretical * LOAD_DISTANCE

        logger.info(
            "Solved %d pulleys: MA %.2f (actual %.2f, eff %.1f%%), pull %.2f N for %.2f N load",
            len(analysis.pulleys), theoretical, actual, efficiency * 100, input_force, load_force,
        )
        return SolverResult(
            success=True,
            theoretical_ma=theoretical,
            actual_ma=actual,
            efficiency=efficiency,
            input_force=input_force,
            output_force=load_force,
            anchor_forces=anchor_forces,
            rope_tensions=tensions,
            pull_distance=pull_distance,
            load_distance=LOAD_DISTANCE,
            distance_ratio=pull_distance / LOAD_DISTANCE,
            total_rope_length=total_length,
            number_of_pulleys=len(analysis.pulleys),
            moving_pulleys=len(analysis.moving),
            fixed_pulleys=len(analysis.fixed),
        )

    def missing_parts(self) -> list[str]:
        missing: list[str] = []
        if not self.system.ropes():
            missing.append("at least one rope is required")
        if not self.system.pulleys():
            missing.append("at least one pulley is required")
        return missing

    # ----- structure -----

    def analyze_system(self) -> _Analysis:
        pulleys = self.system.pulleys()
        ropes = self.system.ropes()
        moving, fixed = self.classify_pulleys(pulleys, ropes)

        chains = self.find_chains()
        chain = self.pick_working_chain(chains)
        links: list[_Link] = []
        loose: list[_Link] = []
        chain_ropes: list[Rope] = []
        if chain is not None:
            chain_ropes = self._chain_ropes(chain)
            links, loose = self.link_chains(chain, chains)
            logger.debug(
                "Working chain %s: %s (%d linked, %d loose)",
                chain.id, chain.rope_ids, len(links) - 1, len(loose),
            )
        else:
            logger.debug("No multi-segment chain; falling back to per-rope load tension")

        return _Analysis(
            pulleys=pulleys,
            moving=moving,
            fixed=fixed,
            ropes=ropes,
            chain=chain,
            chain_ropes=chain_ropes,
            links=links,
            loose=loose,
        )

    def classify_pulleys(self, pulleys: list[Pulley], ropes: list[Rope]) -> tuple[list[Pulley], list[Pulley]]:
        """Moving if the anchor eye hangs from the load, fixed otherwise.

        A pulley whose anchor eye has no rope at all counts as fixed (rigged
        straight to structure).
        """
        load_ids: set[str] = set()
        for spring in self.system.springs():
            load_ids |= spring.attach_ids

        moving: list[Pulley] = []
        fixed: list[Pulley] = []
        for pulley in pulleys:
            other_end = self._anchor_rope_other_end(pulley, ropes)
            if other_end is not None and other_end in load_ids:
                moving.append(pulley)
            else:
                fixed.append(pulley)
        return moving, fixed

    def _anchor_rope_other_end(self, pulley: Pulley, ropes: list[Rope]) -> Optional[str]:
        for rope in ropes:
            start, end = resolve_rope(rope, self._index)
            if start.kind == EndpointKind.PULLEY_ANCHOR and start.component_id == pulley.id:
                return rope.end_id
            if end.kind == EndpointKind.PULLEY_ANCHOR and end.component_id == pulley.id:
                return rope.start_id
        return None

    def find_chains(self) -> list[RopeChain]:
        """Chains marked in the snapshot, else the detected ones."""
        ropes = self.system.ropes()
        chains: list[RopeChain] = []
        seen: set[str] = set()
        for marked in ropes:
            if not (marked.is_chain_start and marked.chain_id) or marked.chain_id in seen:
                continue
            seen.add(marked.chain_id)
            members = [r for r in ropes if r.chain_id == marked.chain_id]
            if len(members) < 2:
                continue
            ordered = self._order_marked_chain(marked, members)
            chains.append(RopeChain(
                id=marked.chain_id,
                rope_ids=[r.id for r in ordered],
                start_point=ordered[0].start_key,
                end_point=ordered[-1].end_key,
            ))
        if chains:
            return chains
        return detect_rope_chains(self.system.components)

    def find_working_chain(self) -> Optional[RopeChain]:
        return self.pick_working_chain(self.find_chains())

    def pick_working_chain(self, chains: list[RopeChain]) -> Optional[RopeChain]:
        """The chain with a person at either end, else the first one."""
        for chain in chains:
            start, end = self._chain_ends(chain)
            if EndpointKind.PERSON in (start.kind, end.kind):
                return chain
        return chains[0] if chains else None

    def link_chains(self, working: RopeChain, chains: list[RopeChain]) -> tuple[list[_Link], list[_Link]]:
        """Order chains into a cascade starting at ``working``.

        A chain joins once one of its ends sits on the anchor eye, becket or
        load point of a pulley an earlier chain runs through. Chains that
        never join come back as the second list.
        """
        links = [_Link(chain=working, ropes=self._chain_ropes(working))]
        solved = self._pulleys_touched(links[0].ropes)
        pending = [c for c in chains if c.id != working.id]

        progress = True
        while pending and progress:
            progress = False
            for chain in list(pending):
                start, end = self._chain_ends(chain)
                if end.kind in _LINK_KINDS and end.component_id in solved:
                    link = _Link(chain, self._chain_ropes(chain), end.component_id, from_end=True)
                elif start.kind in _LINK_KINDS and start.component_id in solved:
                    link = _Link(chain, self._chain_ropes(chain), start.component_id)
                else:
                    continue
                links.append(link)
                solved |= self._pulleys_touched(link.ropes)
                pending.remove(chain)
                progress = True

        loose = [_Link(chain=c, ropes=self._chain_ropes(c)) for c in pending]
        for link in loose:
            logger.warning("Chain %s is not connected to the working chain", link.chain.id)
        return links, loose

    def _chain_ropes(self, chain: RopeChain) -> list[Rope]:
        return [self._index[rid] for rid in chain.rope_ids if rid in self._index]

    def _pulleys_touched(self, ropes: list[Rope]) -> set[str]:
        touched: set[str] = set()
        for rope in ropes:
            for endpoint in resolve_rope(rope, self._index):
                if endpoint.component_type == "pulley":
                    touched.add(endpoint.component_id)
        return touched

    def _chain_ends(self, chain: RopeChain) -> tuple[Endpoint, Endpoint]:
        ropes = self._chain_ropes(chain)
        start = resolve_rope(ropes[0], self._index)[0]
        last = resolve_rope(ropes[-1], self._index)
        end = last[0] if last[0].identifier == chain.end_point else last[1]
        return start, end

    @staticmethod
    def _order_marked_chain(start: Rope, members: list[Rope]) -> list[Rope]:
        ordered = [start]
        remaining = [r for r in members if r.id != start.id]
        current = start
        while remaining:
            nxt = next(
                (r for r in remaining if r.start_id == current.end_id or r.start_key == current.end_key),
                None,
            )
            if nxt is None:
                break
            ordered.append(nxt)
            remaining.remove(nxt)
            current = nxt
        return ordered + remaining

    # ----- mechanical advantage -----

    def calculate_mechanical_advantage(self, analysis: _Analysis) -> tuple[float, float, float]:
        """Return (theoretical, actual, efficiency)."""
        if analysis.links:
            theoretical = float(math.prod(len(link.ropes) for link in analysis.links))
            passes = [r for link in analysis.links for r in link.ropes]
        else:
            theoretical = 1.0
            passes = [r for r in analysis.ropes if not is_suspension_rope(r, self._index)]

        efficiency = 1.0
        for pulley in analysis.pulleys:
            touching = sum(1 for r in passes if pulley.id in (r.start_id, r.end_id))
            efficiency *= pulley.efficiency ** touching

        return theoretical, theoretical * efficiency, efficiency

    # ----- tensions -----

    def _hauler_at_end(self, chain: RopeChain) -> bool:
        start, end = self._chain_ends(chain)
        return end.kind == EndpointKind.PERSON and start.kind != EndpointKind.PERSON

    def _walk(self, link: _Link, from_end: bool, seed: float, tensions: dict[str, float]) -> None:
        ropes = list(link.ropes)
        joints = chain_joints(link.chain, list(self._index.values()))
        if from_end:
            ropes.reverse()
            joints.reverse()

        current = seed
        for position, rope in enumerate(ropes):
            tensions[rope.id] = current
            if position < len(joints):
                joint = self._index.get(joints[position]) if joints[position] else None
                if joint is not None and joint.type == "pulley":
                    current = current / joint.efficiency

    def calculate_rope_tensions(self, load_force: float, input_force: float, analysis: _Analysis) -> dict[str, float]:
        tensions: dict[str, float] = {}
        if not analysis.links:
            for rope in analysis.ropes:
                tensions[rope.id] = load_force
            return tensions

        hauler, *linked = analysis.links
        self._walk(hauler, self._hauler_at_end(hauler.chain), input_force, tensions)

        for link in linked:
            seed = sum(
                tension for rope_id, tension in tensions.items()
                if link.seed_pulley in (self._index[rope_id].start_id, self._index[rope_id].end_id)
            )
            self._walk(link, link.from_end, seed, tensions)

        for link in analysis.loose:
            self._walk(link, self._hauler_at_end(link.chain), input_force, tensions)

        chained = analysis.chained_ropes()
        chained_ids = {r.id for r in chained}
        for rope in analysis.ropes:
            if rope.id in chained_ids:
                continue
            pulley = next((p for p in analysis.pulleys if p.id in (rope.start_id, rope.end_id)), None)
            if pulley is None:
                continue
            tensions[rope.id] = sum(
                tensions[c.id] for c in chained if pulley.id in (c.start_id, c.end_id)
            )
        return tensions

    # ----- forces & geometry -----

    def _position(self, component_id: str) -> Optional[Point]:
        comp = self._index.get(component_id)
        return getattr(comp, "position", None) if comp is not None else None

    def calculate_anchor_forces(self, tensions: dict[str, float]) -> list[ConnectionForce]:
        forces: list[ConnectionForce] = []
        ropes = self.system.ropes()
        for comp in self.system.components:
            if comp.type not in ("anchor", "pulley"):
                continue
            connected = [r for r in ropes if comp.id in (r.start_id, r.end_id)]
            if not connected:
                continue

            fx = fy = 0.0
            for rope in connected:
                start = self._position(rope.start_id)
                end = self._position(rope.end_id)
                if start is None or end is None:
                    continue
                dx, dy = end.x - start.x, end.y - start.y
                length = math.hypot(dx, dy)
                if length == 0:
                    continue
                tension = tensions.get(rope.id, 0.0)
                sign = -1.0 if rope.start_id == comp.id else 1.0
                fx += sign * dx / length * tension
                fy += sign * dy / length * tension

            magnitude = math.hypot(fx, fy)
            forces.append(ConnectionForce(
                component_id=comp.id,
                connection_point="anchor" if comp.type == "anchor" else "pulley-anchor",
                force=ForceVector(magnitude=magnitude, angle=math.atan2(fy, fx), x=fx, y=fy),
                tension=magnitude,
            ))
        return forces

    def calculate_total_rope_length(self) -> float:
        total = 0.0
        for rope in self.system.ropes():
            start = self._position(rope.start_id)
            end = self._position(rope.end_id)
            if start is None or end is None:
                continue
            length = math.hypot(end.x - start.x, end.y - start.y)
            for point, owner_id in ((rope.start_point, rope.start_id), (rope.end_point, rope.end_id)):
                endpoint = classify_endpoint(point, owner_id, self._index)
                owner = self._index.get(owner_id)
                if endpoint.kind in (EndpointKind.SHEAVE_IN, EndpointKind.SHEAVE_OUT) and owner is not None:
                    length += math.pi * owner.diameter / 4
            total += length
        return total


def solve(system: System, load_force: float = DEFAULT_LOAD_FORCE_N) -> SolverResult:
    return PulleySolver(system).solve(load_force)


def calculate_mechanical_advantage(system: System) -> MAResult | None:
    """Quick MA summary; ``None`` without pulleys, ropes or a working chain."""
    solver = PulleySolver(system)
    if solver.missing_parts():
        return None
    analysis = solver.analyze_system()
    if analysis.chain is None:
        return None
    theoretical, actual, efficiency = solver.calculate_mechanical_advantage(analysis)
    return MAResult(
        theoretical_ma=theoretical,
        actual_ma=actual,
        efficiency=efficiency,
        pulleys=len(analysis.pulleys),
        moving_pulleys=len(analysis.moving),
        fixed_pulleys=len(analysis.fixed),
    )


def format_ma_result(result: MAResult) -> str:
    return (
        f"MA: {result.theoretical_ma:g}:1 "
        f"(actual: {result.actual_ma:.2f}:1, eff: {result.efficiency * 100:.1f}%)"
    )


__all__ = [
    "DEFAULT_LOAD_FORCE_N",
    "ForceVector",
    "ConnectionForce",
    "SolverResult",
    "MAResult",
    "PulleySolver",
    "solve",
    "calculate_mechanical_advantage",
    "format_ma_result",
]
