# Mazegen placement instructions: immutable descriptions of objects to create
#
# Frame: Y-up, +X right, +Z forward (the layout planner's frame). Rotations are
# Euler degrees (x, y, z). Hosts convert to their own frame on creation.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

NO_ROTATION: Vec3 = (0.0, 0.0, 0.0)


class InstructionKind(Enum):
    WALL = "wall"
    OUTER_WALL = "outer_wall"
    GROUND = "ground"
    ROOF = "roof"
    STRUCTURE = "structure"
    LIGHT = "light"
    REFLECTION_PROBE = "reflection_probe"


@dataclass(frozen=True)
class Wall:
    position: Vec3
    rotation: Vec3
    scale: Vec3
    kind = InstructionKind.WALL


@dataclass(frozen=True)
class OuterWall:
    position: Vec3
    rotation: Vec3
    scale: Vec3
    kind = InstructionKind.OUTER_WALL


@dataclass(frozen=True)
class GroundPlane:
    position: Vec3
    size: Vec2
    tiling: Vec2
    rotation: Vec3 = NO_ROTATION
    kind = InstructionKind.GROUND


@dataclass(frozen=True)
class RoofPlane:
    position: Vec3
    size: Vec2
    tiling: Vec2
    rotation: Vec3 = (0.0, 0.0, 180.0)
    kind = InstructionKind.ROOF


@dataclass(frozen=True)
class Structure:
    template_index: int
    position: Vec3
    rotation: Vec3
    scale: Vec3
    inherit_footprint: bool = False  # host keeps the template's own x/z scale
    kind = InstructionKind.STRUCTURE


@dataclass(frozen=True)
class Light:
    position: Vec3
    kind = InstructionKind.LIGHT


@dataclass(frozen=True)
class ReflectionProbe:
    position: Vec3
    size: Vec3
    resolution: int
    box_projection: bool
    kind = InstructionKind.REFLECTION_PROBE


PlacementInstruction = Union[Wall, OuterWall, GroundPlane, RoofPlane, Structure, Light, ReflectionProbe]
