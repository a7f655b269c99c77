import math

from rigging.sim.chains import (
    annotate_chains,
    chain_joints,
    detect_rope_chains,
    find_chain_for_rope,
    get_pulley_wraps,
    get_ropes_in_chain,
)
from rigging.sim.points import ConnectionPoint
from rigging.sim.schema import System


def rope(rope_id, start_point, end_point):
    return {
        "id": rope_id,
        "type": "rope",
        "startId": ConnectionPoint.parse(start_point).component_id,
        "startPoint": start_point,
        "endId": ConnectionPoint.parse(end_point).component_id,
        "endPoint": end_point,
    }


def make_z_rig():
    """3:1 Z-rig: becket on the moving block, haul line to a person."""
    return System.model_validate({
        "components": [
            {"id": "anchor-1", "type": "anchor", "position": {"x": 300, "y": 40}},
            {"id": "pulley-1", "type": "pulley", "position": {"x": 300, "y": 120}},
            {"id": "pulley-2", "type": "pulley", "position": {"x": 300, "y": 320}, "hasBecket": True},
            {"id": "spring-1", "type": "spring", "position": {"x": 300, "y": 440}, "stiffness": 500, "restLength": 40},
            {"id": "person-1", "type": "person", "position": {"x": 420, "y": 200}},
            rope("rope-anchor", "anchor-1", "pulley-1-anchor"),
            rope("rope-load", "spring-1", "pulley-2-anchor"),
            rope("rope-1", "pulley-2-becket", "pulley-1-sheave-0-in"),
            rope("rope-2", "pulley-1-sheave-0-out", "pulley-2-sheave-0-in"),
            rope("rope-3", "pulley-2-sheave-0-out", "person-1-center"),
        ]
    })


def test_z_rig_has_one_three_segment_chain():
    chains = detect_rope_chains(make_z_rig().components)
    assert len(chains) == 1
    chain = chains[0]
    assert chain.id == "chain-1"
    assert chain.rope_ids == ["rope-1", "rope-2", "rope-3"]
    assert chain.start_point == "pulley-2-becket"
    assert chain.end_point == "person-1-center"


def test_chain_order_does_not_depend_on_component_order():
    system = make_z_rig()
    shuffled = list(reversed(system.components))
    chains = detect_rope_chains(shuffled)
    assert [c.rope_ids for c in chains] == [["rope-1", "rope-2", "rope-3"]]


def test_single_segments_are_not_chains():
    system = System.model_validate({
        "components": [
            {"id": "anchor-1", "type": "anchor", "position": {"x": 0, "y": 0}},
            {"id": "pulley-1", "type": "pulley", "position": {"x": 0, "y": 100}, "hasBecket": True},
            rope("rope-1", "anchor-1", "pulley-1-anchor"),
            rope("rope-2", "pulley-1-becket", "pulley-1-sheave-0-in"),
        ]
    })
    assert detect_rope_chains(system.components) == []


def make_two_stage():
    """2:1 whose haul line pulls the eye of a second block, hauled by a person."""
    return System.model_validate({
        "components": [
            {"id": "anchor-1", "type": "anchor", "position": {"x": 0, "y": 0}},
            {"id": "anchor-2", "type": "anchor", "position": {"x": 200, "y": 0}},
            {"id": "pulley-1", "type": "pulley", "position": {"x": 0, "y": 100}, "hasBecket": True},
            {"id": "pulley-2", "type": "pulley", "position": {"x": 0, "y": 300}},
            {"id": "pulley-3", "type": "pulley", "position": {"x": 100, "y": 300}, "hasBecket": True},
            {"id": "pulley-4", "type": "pulley", "position": {"x": 200, "y": 100}},
            {"id": "spring-1", "type": "spring", "position": {"x": 0, "y": 420}, "stiffness": 500, "restLength": 40},
            {"id": "person-1", "type": "person", "position": {"x": 300, "y": 200}},
            rope("a1", "pulley-1-becket", "pulley-2-sheave-0-in"),
            rope("a2", "pulley-2-sheave-0-out", "pulley-3-anchor"),
            rope("b1", "pulley-3-becket", "pulley-4-sheave-0-in"),
            rope("b2", "pulley-4-sheave-0-out", "person-1-center"),
            rope("s1", "anchor-1", "pulley-1-anchor"),
            rope("s2", "anchor-2", "pulley-4-anchor"),
            rope("load", "spring-1", "pulley-2-anchor"),
        ]
    })


def test_walk_continues_through_a_shared_point_before_the_paired_lead():
    system = System.model_validate({
        "components": [
            {"id": "anchor-1", "type": "anchor", "position": {"x": 0, "y": 0}},
            {"id": "pulley-1", "type": "pulley", "position": {"x": 0, "y": 100}},
            {"id": "pulley-2", "type": "pulley", "position": {"x": 0, "y": 300}, "hasBecket": True},
            {"id": "person-1", "type": "person", "position": {"x": 100, "y": 200}},
            rope("r1", "pulley-2-becket", "pulley-1-sheave-0-in"),
            # Drawn from the hauler back onto the same IN point
            rope("r2", "person-1-center", "pulley-1-sheave-0-in"),
            rope("r3", "pulley-1-sheave-0-out", "anchor-1"),
        ]
    })
    chains = detect_rope_chains(system.components)
    assert [c.rope_ids for c in chains] == [["r1", "r2"]]
    assert chains[0].start_point == "pulley-2-becket"
    assert chains[0].end_point == "person-1-center"


def test_shared_point_continuation_in_drawing_direction():
    system = System.model_validate({
        "components": [
            {"id": "pulley-1", "type": "pulley", "position": {"x": 0, "y": 100}},
            {"id": "pulley-2", "type": "pulley", "position": {"x": 0, "y": 300}, "hasBecket": True},
            {"id": "person-1", "type": "person", "position": {"x": 100, "y": 200}},
            rope("r1", "pulley-2-becket", "pulley-1-sheave-0-in"),
            rope("r2", "pulley-1-sheave-0-in", "person-1-center"),
        ]
    })
    chains = detect_rope_chains(system.components)
    assert [c.rope_ids for c in chains] == [["r1", "r2"]]
    assert chains[0].end_point == "person-1-center"


def test_two_stage_system_has_two_chains():
    system = make_two_stage()
    chains = detect_rope_chains(system.components)
    assert [c.rope_ids for c in chains] == [["a1", "a2"], ["b1", "b2"]]
    assert [c.id for c in chains] == ["chain-1", "chain-2"]
    assert chains[0].end_point == "pulley-3-anchor"
    assert chains[1].start_point == "pulley-3-becket"
    assert chains[1].end_point == "person-1-center"

    annotated = {c.id: c for c in annotate_chains(system.components, chains)}
    assert annotated["b1"].chain_id == "chain-2"
    assert annotated["b1"].is_chain_start is True
    assert annotated["s2"].chain_id is None
    assert find_chain_for_rope("a2", chains).id == "chain-1"


def test_annotate_chains_marks_ends_and_leaves_input_untouched():
    system = make_z_rig()
    annotated = {c.id: c for c in annotate_chains(system.components)}

    assert annotated["rope-1"].chain_id == "chain-1"
    assert annotated["rope-1"].is_chain_start is True
    assert annotated["rope-1"].is_chain_end is False
    assert annotated["rope-2"].is_chain_start is False
    assert annotated["rope-2"].is_chain_end is False
    assert annotated["rope-3"].is_chain_end is True
    assert annotated["rope-anchor"].chain_id is None
    assert annotated["rope-anchor"].is_chain_start is None

    assert system.get("rope-1").chain_id is None


def test_chain_lookups():
    chains = detect_rope_chains(make_z_rig().components)
    assert get_ropes_in_chain("chain-1", chains) == ["rope-1", "rope-2", "rope-3"]
    assert get_ropes_in_chain("chain-9", chains) == []
    assert find_chain_for_rope("rope-2", chains).id == "chain-1"
    assert find_chain_for_rope("rope-load", chains) is None


def test_chain_joints_are_the_pulleys_between_segments():
    system = make_z_rig()
    chain = detect_rope_chains(system.components)[0]
    assert chain_joints(chain, system.components) == ["pulley-1", "pulley-2"]


def test_pulley_wraps_follow_in_then_out():
    system = make_z_rig()
    chain = detect_rope_chains(system.components)[0]
    wraps = get_pulley_wraps(chain, system.components)
    assert [(w.pulley_id, w.sheave_index) for w in wraps] == [("pulley-1", 0), ("pulley-2", 0)]
    for wrap in wraps:
        assert wrap.start_angle == math.pi
        assert wrap.end_angle == 0.0
