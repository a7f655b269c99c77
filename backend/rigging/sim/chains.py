"""Rope chain detection.

Ropes are drawn segment by segment. A chain collapses the segments that make
up one continuous physical line (becket -> sheave -> sheave -> hauler) into
an ordered list so tensions can be propagated along it.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from rigging.sim.points import Endpoint, EndpointKind, is_terminal, resolve_rope
from rigging.sim.schema import Component, PulleyWrap, Rope, RopeChain

logger = logging.getLogger(__name__)

IN_LEAD_ANGLE = math.pi
OUT_LEAD_ANGLE = 0.0

_SHEAVE_KINDS = (EndpointKind.SHEAVE_IN, EndpointKind.SHEAVE_OUT)


def detect_rope_chains(components: Sequence[Component]) -> list[RopeChain]:
    """Reconstruct multi-segment rope chains.

    Each walk starts from an unvisited rope (ropes that start on a terminal
    first) and follows its end point. At a pass-through point the walk
    continues with an unvisited rope touching the same point, or else with
    one leaving the paired lead of the same sheave (the rope wrapping that
    sheave). Single-segment runs are not reported.
    """
    index = {c.id: c for c in components}
    ropes: list[Rope] = [c for c in components if c.type == "rope"]
    ends = {rope.id: resolve_rope(rope, index) for rope in ropes}
    visited: set[str] = set()
    chains: list[RopeChain] = []

    def next_segment(current: Endpoint) -> Optional[tuple[Rope, Endpoint]]:
        candidates = [r for r in ropes if r.id not in visited]
        for rope in candidates:
            start, end = ends[rope.id]
            if start.identifier == current.identifier:
                return rope, end
            if end.identifier == current.identifier:
                return rope, start
        paired = current.point.paired_lead() if current.kind in _SHEAVE_KINDS else None
        if paired is None:
            return None
        for rope in candidates:
            start, end = ends[rope.id]
            if start.kind in _SHEAVE_KINDS and start.point == paired:
                return rope, end
            if end.kind in _SHEAVE_KINDS and end.point == paired:
                return rope, start
        return None

    ordered = [r for r in ropes if is_terminal(ends[r.id][0])]
    ordered += [r for r in ropes if not is_terminal(ends[r.id][0])]

    for first in ordered:
        if first.id in visited:
            continue
        segments = [first]
        visited.add(first.id)
        current = ends[first.id][1]
        while not is_terminal(current):
            step = next_segment(current)
            if step is None:
                break
            rope, current = step
            segments.append(rope)
            visited.add(rope.id)

        if len(segments) > 1:
            chain = RopeChain(
                id=f"chain-{len(chains) + 1}",
                rope_ids=[r.id for r in segments],
                start_point=first.start_key,
                end_point=current.identifier,
            )
            logger.debug("Detected %s: %s", chain.id, " -> ".join(chain.rope_ids))
            chains.append(chain)

    return chains


def annotate_chains(
    components: Sequence[Component],
    chains: Optional[Sequence[RopeChain]] = None,
) -> list[Component]:
    """Return copies of ``components`` with chain membership set on ropes.

    The first and last segment of each chain get ``is_chain_start`` and
    ``is_chain_end``; ropes outside every chain have all three fields cleared.
    """
    if chains is None:
        chains = detect_rope_chains(components)
    membership: dict[str, tuple[str, int, int]] = {}
    for chain in chains:
        for position, rope_id in enumerate(chain.rope_ids):
            membership[rope_id] = (chain.id, position, len(chain.rope_ids))

    annotated: list[Component] = []
    for comp in components:
        if comp.type != "rope":
            annotated.append(comp)
            continue
        if comp.id in membership:
            chain_id, position, length = membership[comp.id]
            update = {
                "chain_id": chain_id,
                "is_chain_start": position == 0,
                "is_chain_end": position == length - 1,
            }
        else:
            update = {"chain_id": None, "is_chain_start": None, "is_chain_end": None}
        annotated.append(comp.model_copy(update=update))
    return annotated


def get_ropes_in_chain(chain_id: str, chains: Sequence[RopeChain]) -> list[str]:
    for chain in chains:
        if chain.id == chain_id:
            return list(chain.rope_ids)
    return []


def find_chain_for_rope(rope_id: str, chains: Sequence[RopeChain]) -> RopeChain | None:
    for chain in chains:
        if rope_id in chain.rope_ids:
            return chain
    return None


def _joint(first: tuple[Endpoint, Endpoint], second: tuple[Endpoint, Endpoint]) -> Optional[str]:
    for a in first:
        for b in second:
            if a.identifier == b.identifier:
                return a.component_id
    for a in first:
        paired = a.point.paired_lead() if a.kind in _SHEAVE_KINDS else None
        if paired is None:
            continue
        for b in second:
            if b.kind in _SHEAVE_KINDS and b.point == paired:
                return a.component_id
    shared = {a.component_id for a in first} & {b.component_id for b in second}
    return sorted(shared)[0] if shared else None


def chain_joints(chain: RopeChain, components: Sequence[Component]) -> list[Optional[str]]:
    """Component id where each pair of consecutive segments meets.

    ``result[i]`` joins segment i and i+1; ``None`` when they share nothing.
    """
    index = {c.id: c for c in components}
    ends = [resolve_rope(index[rid], index) for rid in chain.rope_ids if rid in index]
    return [_joint(a, b) for a, b in zip(ends, ends[1:])]


def _shorter_arc_end(start: float, end: float) -> float:
    diff = end - start
    if diff > math.pi:
        end -= 2 * math.pi
    elif diff < -math.pi:
        end += 2 * math.pi
    return end


def get_pulley_wraps(chain: RopeChain, components: Sequence[Component]) -> list[PulleyWrap]:
    """Sheave wraps along a chain, for renderers.

    A wrap is segment i ending on a sheave's IN lead followed by segment i+1
    leaving the OUT lead of the same pulley and sheave.
    """
    index = {c.id: c for c in components}
    ropes = [index[rid] for rid in chain.rope_ids if rid in index and index[rid].type == "rope"]
    wraps: list[PulleyWrap] = []
    for current, following in zip(ropes, ropes[1:]):
        _, arrive = resolve_rope(current, index)
        leave, _ = resolve_rope(following, index)
        if arrive.kind != EndpointKind.SHEAVE_IN or leave.kind != EndpointKind.SHEAVE_OUT:
            continue
        if arrive.component_id != leave.component_id:
            continue
        if arrive.point.sheave_index != leave.point.sheave_index:
            continue
        wraps.append(PulleyWrap(
            pulley_id=arrive.component_id,
            sheave_index=arrive.point.sheave_index,
            start_angle=IN_LEAD_ANGLE,
            end_angle=_shorter_arc_end(IN_LEAD_ANGLE, OUT_LEAD_ANGLE),
        ))
    return wraps


__all__ = [
    "detect_rope_chains",
    "annotate_chains",
    "get_ropes_in_chain",
    "find_chain_for_rope",
    "chain_joints",
    "get_pulley_wraps",
]
