"""Connection-point addressing.

A rope end is stored as a string such as ``pulley-1-sheave-0-in`` or
``person-1-center``. Everything downstream works on the parsed form: a
``ConnectionPoint`` (component id, role, sheave index) combined with the
type of the component that owns it gives an ``EndpointKind``, and the
legality rules are plain set lookups over those kinds.

Legality (rope drawn from START to END):

  START  fixed anchor/cleat, becket, sheave OUT, spring, person
  END    sheave IN/OUT, fixed anchor/cleat, pulley anchor eye, load,
         spring, person, becket

Forbidden transitions: OUT -> OUT, IN -> IN, start-class -> OUT.
A pulley centre (no suffix, or ``-center``) is never a legal end.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from rigging.sim.schema import Component, Rope

_SUFFIX_RE = re.compile(
    r"-(?:sheave-(?P<index>\d+)-(?P<lead>in|out)|(?P<name>anchor|becket|center|load))$"
)


class PointRole(str, Enum):
    ANCHOR = "anchor"
    BECKET = "becket"
    SHEAVE_IN = "in"
    SHEAVE_OUT = "out"
    CENTER = "center"
    LOAD = "load"
    BARE = "bare"


class EndpointKind(str, Enum):
    FIXED = "fixed"
    BECKET = "becket"
    SPRING = "spring"
    PERSON = "person"
    SHEAVE_OUT = "sheave_out"
    SHEAVE_IN = "sheave_in"
    PULLEY_ANCHOR = "pulley_anchor"
    PULLEY_CENTER = "pulley_center"
    LOAD = "load"
    UNKNOWN = "unknown"


START_KINDS = frozenset({
    EndpointKind.FIXED,
    EndpointKind.BECKET,
    EndpointKind.SHEAVE_OUT,
    EndpointKind.SPRING,
    EndpointKind.PERSON,
})

END_KINDS = frozenset({
    EndpointKind.SHEAVE_IN,
    EndpointKind.SHEAVE_OUT,
    EndpointKind.FIXED,
    EndpointKind.PULLEY_ANCHOR,
    EndpointKind.LOAD,
    EndpointKind.SPRING,
    EndpointKind.PERSON,
    EndpointKind.BECKET,
})

# Points that begin a physical line; the next point along must be an IN lead.
START_CLASS_KINDS = frozenset({
    EndpointKind.FIXED,
    EndpointKind.BECKET,
    EndpointKind.LOAD,
    EndpointKind.SPRING,
    EndpointKind.PERSON,
})

TERMINAL_KINDS = frozenset({
    EndpointKind.FIXED,
    EndpointKind.BECKET,
    EndpointKind.LOAD,
    EndpointKind.SPRING,
    EndpointKind.PERSON,
    EndpointKind.PULLEY_ANCHOR,
})

_ROLE_BY_NAME = {
    "anchor": PointRole.ANCHOR,
    "becket": PointRole.BECKET,
    "center": PointRole.CENTER,
    "load": PointRole.LOAD,
}

_PULLEY_KINDS = {
    PointRole.ANCHOR: EndpointKind.PULLEY_ANCHOR,
    PointRole.BECKET: EndpointKind.BECKET,
    PointRole.SHEAVE_IN: EndpointKind.SHEAVE_IN,
    PointRole.SHEAVE_OUT: EndpointKind.SHEAVE_OUT,
    PointRole.LOAD: EndpointKind.LOAD,
    PointRole.CENTER: EndpointKind.PULLEY_CENTER,
    PointRole.BARE: EndpointKind.PULLEY_CENTER,
}

# Single-point components: the bare id, "-center" and "-anchor" all name it.
_SINGLE_POINT_KINDS = {
    "anchor": EndpointKind.FIXED,
    "cleat": EndpointKind.FIXED,
    "person": EndpointKind.PERSON,
    "spring": EndpointKind.SPRING,
}
_SINGLE_POINT_ROLES = frozenset({PointRole.BARE, PointRole.CENTER, PointRole.ANCHOR})


@dataclass(frozen=True)
class ConnectionPoint:
    component_id: str
    role: PointRole
    sheave_index: Optional[int] = None

    @classmethod
    def parse(cls, identifier: str, owner_id: str | None = None) -> "ConnectionPoint":
        """Parse ``{componentId}-{suffix}``.

        When the owning component id is known it is stripped first, so ids
        that themselves end in a suffix word (``top-anchor``) still resolve.
        """
        if owner_id is not None:
            if identifier == owner_id:
                return cls(owner_id, PointRole.BARE)
            if identifier.startswith(owner_id + "-"):
                match = _SUFFIX_RE.fullmatch(identifier[len(owner_id):])
                if match:
                    return cls._from_match(owner_id, match)
        match = _SUFFIX_RE.search(identifier)
        if match and match.start() > 0:
            return cls._from_match(identifier[: match.start()], match)
        return cls(identifier, PointRole.BARE)

    @classmethod
    def _from_match(cls, component_id: str, match: re.Match) -> "ConnectionPoint":
        if match.group("lead"):
            role = PointRole.SHEAVE_IN if match.group("lead") == "in" else PointRole.SHEAVE_OUT
            return cls(component_id, role, int(match.group("index")))
        return cls(component_id, _ROLE_BY_NAME[match.group("name")])

    @classmethod
    def sheave(cls, pulley_id: str, index: int, lead: str) -> "ConnectionPoint":
        role = PointRole.SHEAVE_IN if lead == "in" else PointRole.SHEAVE_OUT
        return cls(pulley_id, role, index)

    @property
    def is_sheave(self) -> bool:
        return self.role in (PointRole.SHEAVE_IN, PointRole.SHEAVE_OUT)

    def paired_lead(self) -> "ConnectionPoint | None":
        """The other lead of the same sheave (IN <-> OUT)."""
        if self.role == PointRole.SHEAVE_IN:
            return ConnectionPoint(self.component_id, PointRole.SHEAVE_OUT, self.sheave_index)
        if self.role == PointRole.SHEAVE_OUT:
            return ConnectionPoint(self.component_id, PointRole.SHEAVE_IN, self.sheave_index)
        return None

    def to_identifier(self) -> str:
        if self.role == PointRole.BARE:
            return self.component_id
        if self.is_sheave:
            return f"{self.component_id}-sheave-{self.sheave_index}-{self.role.value}"
        return f"{self.component_id}-{self.role.value}"


@dataclass(frozen=True)
class Endpoint:
    """One resolved end of a rope."""
    identifier: str
    point: ConnectionPoint
    kind: EndpointKind
    component_type: Optional[str] = None

    @property
    def component_id(self) -> str:
        return self.point.component_id


def in_point(pulley_id: str, sheave_index: int = 0) -> str:
    return ConnectionPoint.sheave(pulley_id, sheave_index, "in").to_identifier()


def out_point(pulley_id: str, sheave_index: int = 0) -> str:
    return ConnectionPoint.sheave(pulley_id, sheave_index, "out").to_identifier()


def classify_endpoint(
    identifier: str | None,
    owner_id: str,
    components: Mapping[str, Component],
) -> Endpoint:
    """Resolve a rope end against the component it claims to belong to."""
    identifier = identifier or owner_id
    point = ConnectionPoint.parse(identifier, owner_id)
    owner = components.get(owner_id)
    if owner is None or point.component_id != owner_id:
        return Endpoint(identifier, point, EndpointKind.UNKNOWN, owner.type if owner else None)

    kind = EndpointKind.UNKNOWN
    if owner.type == "pulley":
        kind = _PULLEY_KINDS[point.role]
        if point.is_sheave and point.sheave_index >= owner.sheaves:
            kind = EndpointKind.UNKNOWN
    elif owner.type in _SINGLE_POINT_KINDS and point.role in _SINGLE_POINT_ROLES:
        kind = _SINGLE_POINT_KINDS[owner.type]
    return Endpoint(identifier, point, kind, owner.type)


def resolve_rope(rope: Rope, components: Mapping[str, Component]) -> tuple[Endpoint, Endpoint]:
    return (
        classify_endpoint(rope.start_point, rope.start_id, components),
        classify_endpoint(rope.end_point, rope.end_id, components),
    )


def can_start(endpoint: Endpoint) -> bool:
    return endpoint.kind in START_KINDS


def can_end(endpoint: Endpoint) -> bool:
    return endpoint.kind in END_KINDS


def is_start_class(endpoint: Endpoint) -> bool:
    return endpoint.kind in START_CLASS_KINDS


def is_terminal(endpoint: Endpoint) -> bool:
    return endpoint.kind in TERMINAL_KINDS


def is_becket_self_loop(start: Endpoint, end: Endpoint) -> bool:
    """Becket tied straight back onto its own block.

    Running from the becket into the same block's IN lead is a wrap
    continuation and is allowed.
    """
    if start.kind != EndpointKind.BECKET and end.kind != EndpointKind.BECKET:
        return False
    if start.component_id != end.component_id or start.component_type != "pulley":
        return False
    other = end if start.kind == EndpointKind.BECKET else start
    return not (start.kind == EndpointKind.BECKET and other.kind == EndpointKind.SHEAVE_IN)


def is_suspension_rope(rope: Rope, components: Mapping[str, Component]) -> bool:
    """Rope hanging a block from an anchor or from the load spring."""
    for endpoint in resolve_rope(rope, components):
        if endpoint.kind in (EndpointKind.PULLEY_ANCHOR, EndpointKind.SPRING):
            return True
        if endpoint.kind == EndpointKind.FIXED and endpoint.component_type == "anchor":
            return True
    return False


__all__ = [
    "PointRole",
    "EndpointKind",
    "START_KINDS",
    "END_KINDS",
    "START_CLASS_KINDS",
    "TERMINAL_KINDS",
    "ConnectionPoint",
    "Endpoint",
    "in_point",
    "out_point",
    "classify_endpoint",
    "resolve_rope",
    "can_start",
    "can_end",
    "is_start_class",
    "is_terminal",
    "is_becket_self_loop",
    "is_suspension_rope",
]
