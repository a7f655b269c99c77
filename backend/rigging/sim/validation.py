"""Rigging validation.

Checks every rope against the connection-point legality rules (points.py)
and reports:

- errors   : structural/topological impossibilities, system is invalid
- warnings : suspicious but not fatal (disconnected components, shared
             start points, over-connected points)

Stats count working ropes only; suspension ropes (hanging a block from an
anchor or the load) are still validated but left out of the counts.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Mapping

from pydantic import Field

from rigging.sim import points
from rigging.sim.points import EndpointKind
from rigging.sim.schema import CamelModel, Component, Rope, System

logger = logging.getLogger(__name__)

MAX_SEGMENTS_PER_POINT = 2


class ValidationStats(CamelModel):
    total_ropes: int = Field(0, description="Working ropes checked (suspension ropes excluded)")
    valid_ropes: int = 0
    invalid_ropes: int = 0


class ValidationResult(CamelModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    stats: ValidationStats = Field(default_factory=ValidationStats)


def validate_system(system: System) -> ValidationResult:
    """Validate a rigging snapshot. Pure; calling twice gives equal results."""
    index = system.component_index()
    ropes = system.ropes()

    errors: list[str] = []
    stats = ValidationStats()
    for number, rope in enumerate(ropes, start=1):
        rope_errors = validate_rope(rope, index, number)
        errors.extend(rope_errors)
        if points.is_suspension_rope(rope, index):
            continue
        stats.total_ropes += 1
        if rope_errors:
            stats.invalid_ropes += 1
        else:
            stats.valid_ropes += 1

    warnings = [
        *check_disconnected_components(system.components),
        *check_duplicate_starts(ropes),
        *check_rope_continuity(ropes),
    ]

    result = ValidationResult(valid=not errors, errors=errors, warnings=warnings, stats=stats)
    logger.debug(
        "Validated %d ropes: %d errors, %d warnings",
        len(ropes), len(errors), len(warnings),
    )
    return result


def validate_rope(rope: Rope, components: Mapping[str, Component], rope_number: int) -> list[str]:
    errors: list[str] = []
    prefix = f"Rope {rope_number} ({rope.display_label})"

    if rope.start_id not in components:
        errors.append(f"{prefix}: Start component not found")
        return errors
    if rope.end_id not in components:
        errors.append(f"{prefix}: End component not found")
        return errors

    start, end = points.resolve_rope(rope, components)

    for endpoint in (start, end):
        if endpoint.kind == EndpointKind.PULLEY_CENTER:
            errors.append(
                f"{prefix}: Endpoint \"{endpoint.identifier}\" touches the centre of pulley "
                f"\"{endpoint.component_id}\". Connect to its anchor, becket or a sheave lead."
            )

    if not points.can_start(start):
        errors.append(
            f"{prefix}: Invalid start point \"{start.identifier}\". Ropes can start from: "
            "Fixed Anchor, Becket, OUT point, Spring, or Person center. "
            "NOT from Pulley Anchor (red) or IN point (blue)."
        )
    if not points.can_end(end):
        errors.append(f"{prefix}: Invalid end point \"{end.identifier}\"")

    if points.is_becket_self_loop(start, end):
        errors.append(
            f"{prefix}: Becket cannot connect directly to its own pulley. "
            "Becket should start a rope going to another pulley or person."
        )

    if start.kind == EndpointKind.SHEAVE_OUT and end.kind == EndpointKind.SHEAVE_OUT:
        errors.append(f"{prefix}: Cannot connect OUT to OUT. An OUT lead must feed the next IN lead.")
    if start.kind == EndpointKind.SHEAVE_IN and end.kind == EndpointKind.SHEAVE_IN:
        errors.append(f"{prefix}: Cannot connect IN to IN.")
    if points.is_start_class(start) and end.kind == EndpointKind.SHEAVE_OUT:
        errors.append(
            f"{prefix}: \"{start.identifier}\" starts a line and must connect to IN first, "
            f"not OUT \"{end.identifier}\"."
        )

    return errors


def check_disconnected_components(components: list[Component]) -> list[str]:
    connected: set[str] = set()
    for comp in components:
        if comp.type == "rope":
            connected.add(comp.start_id)
            connected.add(comp.end_id)

    warnings: list[str] = []
    for comp in components:
        if comp.type == "rope" or comp.id in connected:
            continue
        label = getattr(comp, "label", None) or comp.id
        warnings.append(f"Component \"{label}\" ({comp.type}) is not connected to any ropes")
    return warnings


def check_duplicate_starts(ropes: list[Rope]) -> list[str]:
    counts = Counter(rope.start_key for rope in ropes)
    return [
        f"{count} ropes start from the same point: {point}"
        for point, count in counts.items()
        if count > 1
    ]


def check_rope_continuity(ropes: list[Rope]) -> list[str]:
    touching: Counter[str] = Counter()
    for rope in ropes:
        touching[rope.start_key] += 1
        touching[rope.end_key] += 1
    return [
        f"Point {point} has {count} rope segments - may need review"
        for point, count in touching.items()
        if count > MAX_SEGMENTS_PER_POINT
    ]


def format_validation_report(result: ValidationResult) -> str:
    report = "=== SYSTEM VALIDATION REPORT ===\n\n"
    report += f"Status: {'✓ VALID' if result.valid else '✗ INVALID'}\n"
    report += f"Total Ropes: {result.stats.total_ropes}\n"
    report += f"Valid: {result.stats.valid_ropes}, Invalid: {result.stats.invalid_ropes}\n\n"

    if result.errors:
        report += "--- ERRORS ---\n"
        report += "".join(f"  ✗ {err}\n" for err in result.errors)
        report += "\n"

    if result.warnings:
        report += "--- WARNINGS ---\n"
        report += "".join(f"  ⚠ {warn}\n" for warn in result.warnings)
        report += "\n"

    if result.valid and not result.warnings:
        report += "✓ System is properly configured!\n"

    return report


__all__ = [
    "ValidationStats",
    "ValidationResult",
    "validate_system",
    "validate_rope",
    "check_disconnected_components",
    "check_duplicate_starts",
    "check_rope_continuity",
    "format_validation_report",
]
