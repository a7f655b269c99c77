"""Rigging system schema (v1.0).

Typed records for a block-and-tackle diagram: pulleys, anchors, cleats,
people, springs and the ropes drawn between their connection points.

Notes:
- Components form a tagged union over the ``type`` field (no behaviour per
    variant; solver and validator match on ``type``).
- Field names are snake_case in Python and camelCase in the persisted JSON
    (``startId``, ``hasBecket``, ``showRopeArrows`` ...).
- Rope references to other components are NOT enforced here. A dangling
    rope is a validation error (see validation.py), not a schema error.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SYSTEM_SCHEMA_VERSION = "1.0"
DEFAULT_PULLEY_FRICTION = 0.95
DEFAULT_GRID_SIZE = 20


class ComponentType(str, Enum):
    PULLEY = "pulley"
    ANCHOR = "anchor"
    ROPE = "rope"
    CLEAT = "cleat"
    PERSON = "person"
    SPRING = "spring"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Point(CamelModel):
    x: float = 0.0
    y: float = 0.0


class AttachmentPoints(CamelModel):
    """Legacy pulley geometry (top eye, bottom eye, optional becket)."""
    top: Point
    bottom: Point
    becket: Optional[Point] = None


class Pulley(CamelModel):
    id: str
    type: Literal["pulley"] = "pulley"
    position: Point
    diameter: float = Field(60.0, gt=0.0, description="Sheave diameter in drawing units.")
    sheaves: int = Field(1, ge=1, le=3, description="Number of sheaves (single/double/triple block).")
    has_becket: bool = Field(False, description="Whether the block carries a becket for tying off.")
    rotation: float = Field(
        0.0,
        validation_alias=AliasChoices("rotation", "rotationDegrees"),
        description="Rotation in degrees.",
    )
    friction: Optional[float] = Field(
        None, gt=0.0, le=1.0, description="Per-pass efficiency multiplier; defaults to 0.95 when omitted."
    )
    label: Optional[str] = None
    attachment_points: Optional[AttachmentPoints] = None

    @property
    def efficiency(self) -> float:
        return self.friction if self.friction else DEFAULT_PULLEY_FRICTION


class Anchor(CamelModel):
    id: str
    type: Literal["anchor"] = "anchor"
    position: Point
    label: Optional[str] = None


class Cleat(CamelModel):
    id: str
    type: Literal["cleat"] = "cleat"
    position: Point
    label: Optional[str] = None


class Person(CamelModel):
    id: str
    type: Literal["person"] = "person"
    position: Point
    label: Optional[str] = None
    pulling: bool = True


class Spring(CamelModel):
    """Load element.

    Positional form places the spring on the canvas like any other component;
    connection form stretches it between two existing connection points.
    """
    id: str
    type: Literal["spring"] = "spring"
    position: Optional[Point] = None
    label: Optional[str] = None
    stiffness: float = Field(..., gt=0.0, description="Spring constant (N/m).")
    rest_length: float = Field(..., ge=0.0, description="Unloaded length in drawing units.")
    current_length: Optional[float] = Field(None, ge=0.0, description="Current length when loaded.")
    start_id: Optional[str] = None
    start_point: Optional[str] = None
    end_id: Optional[str] = None
    end_point: Optional[str] = None

    @model_validator(mode="after")
    def _check_form(self) -> "Spring":
        has_connection = self.start_id is not None and self.end_id is not None
        if self.position is None and not has_connection:
            raise ValueError(f"spring {self.id!r} needs a position or both startId and endId")
        return self

    @property
    def attach_ids(self) -> set[str]:
        """Ids a load rope may resolve to when hanging a block from this spring."""
        ids = {self.id}
        if self.start_id:
            ids.add(self.start_id)
        return ids


class Rope(CamelModel):
    id: str
    type: Literal["rope"] = "rope"
    start_id: str
    start_point: Optional[str] = None
    end_id: str
    end_point: Optional[str] = None
    label: Optional[str] = None
    tension: Optional[float] = Field(None, description="Solver output, never user input.")
    chain_id: Optional[str] = None
    is_chain_start: Optional[bool] = None
    is_chain_end: Optional[bool] = None

    @property
    def start_key(self) -> str:
        return self.start_point or self.start_id

    @property
    def end_key(self) -> str:
        return self.end_point or self.end_id

    @property
    def display_label(self) -> str:
        return self.label or self.id


Component = Annotated[
    Union[Pulley, Anchor, Cleat, Person, Spring, Rope],
    Field(discriminator="type"),
]


class System(CamelModel):
    """Snapshot of a rigging diagram (persisted shape, see scenarios.py)."""
    version: Optional[str] = Field(None, description="Schema version of the file this came from.")
    components: list[Component] = Field(default_factory=list, description="Components in any order, ids unique.")
    selected_id: Optional[str] = None
    grid_size: float = Field(DEFAULT_GRID_SIZE, gt=0.0)
    snap_to_grid: bool = True
    show_rope_arrows: bool = True

    @field_validator("components")
    @classmethod
    def _unique_ids(cls, v: list[Component]):  # type: ignore[override]
        seen: set[str] = set()
        dupes: list[str] = []
        for comp in v:
            if comp.id in seen:
                dupes.append(comp.id)
            seen.add(comp.id)
        if dupes:
            raise ValueError(f"Duplicate component ids: {sorted(set(dupes))}")
        return v

    def component_index(self) -> dict[str, Component]:
        return {c.id: c for c in self.components}

    def get(self, component_id: str) -> Component | None:
        return self.component_index().get(component_id)

    def ropes(self) -> list[Rope]:
        return [c for c in self.components if c.type == "rope"]

    def pulleys(self) -> list[Pulley]:
        return [c for c in self.components if c.type == "pulley"]

    def springs(self) -> list[Spring]:
        return [c for c in self.components if c.type == "spring"]


class RopeChain(CamelModel):
    """Ordered rope segments forming one continuous physical line."""
    id: str
    rope_ids: list[str]
    start_point: str
    end_point: str


class PulleyWrap(CamelModel):
    """Rope wrapping a sheave between two consecutive chain segments."""
    pulley_id: str
    sheave_index: int
    start_angle: float = Field(..., description="Radians on the sheave circle (IN lead = pi).")
    end_angle: float = Field(..., description="Radians on the sheave circle (OUT lead = 0).")


class Route(CamelModel):
    type: Literal["simple", "compound"]
    ratio: float = Field(..., gt=0.0)
    max_length: Optional[float] = None
    nested: Optional[list["Route"]] = None


class PulleyCalcSystem(CamelModel):
    """Abstract rigging described by mechanical-advantage ratios.

    Expanded into a full ``System`` by an external converter; the solver only
    ever sees the expanded form.
    """
    name: str
    description: Optional[str] = None
    throw: float
    sheave_width: float
    connection_length: float
    friction: float = Field(DEFAULT_PULLEY_FRICTION, gt=0.0, le=1.0)
    routes: list[Route] = Field(default_factory=list)


__all__ = [
    "SYSTEM_SCHEMA_VERSION",
    "DEFAULT_PULLEY_FRICTION",
    "DEFAULT_GRID_SIZE",
    "CamelModel",
    "ComponentType",
    "Point",
    "AttachmentPoints",
    "Pulley",
    "Anchor",
    "Cleat",
    "Person",
    "Spring",
    "Rope",
    "Component",
    "System",
    "RopeChain",
    "PulleyWrap",
    "Route",
    "PulleyCalcSystem",
]
