# Mazegen Scene Builder: applies placement instructions against a scene host
#
# Every created object is parented under a logical group of the
# "Generated Maze" root and its handle is appended to `handles`, the sole
# input to clear/static/visibility operations.
#
# Host failures are re-raised as HostError tagged with the request id. The
# pass is left partially applied; callers reset with clear().

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.config import MazeConfig
from ..utils.scene_host import HostError, PrimitiveShape, SceneHost
from .instructions import (
    GroundPlane,
    InstructionKind,
    Light,
    OuterWall,
    PlacementInstruction,
    ReflectionProbe,
    RoofPlane,
    Structure,
    Wall,
)

logger = logging.getLogger(__name__)

ROOT_GROUP = "Generated Maze"
GROUP_NAMES: Dict[InstructionKind, str] = {
    InstructionKind.WALL: "Walls",
    InstructionKind.STRUCTURE: "Structures",
    InstructionKind.GROUND: "Ground",
    InstructionKind.ROOF: "Roof",
    InstructionKind.OUTER_WALL: "Outer Walls",
    InstructionKind.LIGHT: "Lights",
    InstructionKind.REFLECTION_PROBE: "Reflection Probes",
}


class SceneBuilder:
    """Materializes placement instructions and tracks the created handles."""

    def __init__(self, host: SceneHost, config: MazeConfig, request_id: Optional[str] = None) -> None:
        self.host = host
        self.config = config
        self.request_id = request_id or "req-unknown"
        self.handles: List[Any] = []
        self.counts: Counter = Counter()
        self.root: Any = None
        self._groups: Dict[InstructionKind, Any] = {}
        self._dispatch: Dict[InstructionKind, Callable[[Any], Any]] = {
            InstructionKind.WALL: self._build_wall,
            InstructionKind.OUTER_WALL: self._build_outer_wall,
            InstructionKind.GROUND: self._build_ground,
            InstructionKind.ROOF: self._build_roof,
            InstructionKind.STRUCTURE: self._build_structure,
            InstructionKind.LIGHT: self._build_light,
            InstructionKind.REFLECTION_PROBE: self._build_probe,
        }

    @property
    def is_built(self) -> bool:
        return self.root is not None

    def begin(self, parent: Any = None) -> Any:
        """Create the root group and its per-kind child groups."""
        if self.root is not None:
            raise RuntimeError(f"[{self.request_id}] SceneBuilder.begin() called twice; clear() first")
        req = self.request_id
        self.root = self._host_call(lambda: self.host.create_group(ROOT_GROUP, parent), f"create group '{ROOT_GROUP}'")
        for kind, name in GROUP_NAMES.items():
            if kind is InstructionKind.REFLECTION_PROBE and not self.config.reflection_probes.enabled:
                continue
            self._groups[kind] = self._host_call(
                lambda n=name: self.host.create_group(n, self.root), f"create group '{name}'"
            )
        logger.debug(f"[{req}] Created '{ROOT_GROUP}' with {len(self._groups)} group(s)")
        return self.root

    def apply(self, instruction: PlacementInstruction) -> Any:
        if self.root is None:
            raise RuntimeError(f"[{self.request_id}] SceneBuilder.apply() before begin()")
        kind = instruction.kind
        group = self._groups.get(kind)
        if group is None:
            raise HostError(f"[{self.request_id}] No group available for {kind.value} instructions")
        handle = self._dispatch[kind](instruction)
        try:
            self._host_call(lambda: self.host.parent(handle, group), f"parent {kind.value} under '{GROUP_NAMES[kind]}'")
        except HostError:
            # unparented objects are outside the root group; clear() would miss them
            self._host_call(lambda: self.host.destroy_object(handle), f"destroy unparented {kind.value}")
            raise
        self.handles.append(handle)
        self.counts[kind] += 1
        if kind is InstructionKind.STRUCTURE:
            self.handles.extend(self._host_call(lambda: self.host.children(handle), "list structure children"))
        return handle

    def apply_batch(self, batch: Iterable[PlacementInstruction]) -> int:
        n = 0
        for instruction in batch:
            self.apply(instruction)
            n += 1
        return n

    def clear(self) -> int:
        """Destroy the generated root group and forget every handle. Idempotent."""
        removed = len(self.handles)
        if self.root is not None:
            root = self.root
            self._host_call(lambda: self.host.destroy_group(root), f"destroy group '{ROOT_GROUP}'")
            logger.info(f"[{self.request_id}] Cleared generated maze ({removed} handle(s))")
        self.root = None
        self._groups.clear()
        self.handles.clear()
        self.counts.clear()
        return removed

    def set_static(self, flag: bool = True) -> int:
        affected = sum(1 for h in self.handles if self.host.set_static(h, bool(flag)))
        logger.debug(f"[{self.request_id}] set_static({flag}) applied to {affected}/{len(self.handles)} handle(s)")
        return affected

    def set_visible(self, flag: bool) -> int:
        affected = sum(1 for h in self.handles if self.host.set_visible(h, bool(flag)))
        logger.debug(f"[{self.request_id}] set_visible({flag}) applied to {affected}/{len(self.handles)} handle(s)")
        return affected

    # --------------------------
    # Per-kind builders
    # --------------------------
    def _host_call(self, fn: Callable[[], Any], what: str) -> Any:
        try:
            return fn()
        except HostError as e:
            raise HostError(f"[{self.request_id}] Host refused to {what}: {e}") from e
        except Exception as e:
            logger.error(f"[{self.request_id}] Host failure while trying to {what}: {e}")
            raise HostError(f"[{self.request_id}] Host failed to {what}: {e}") from e

    def _build_wall(self, ins: Wall) -> Any:
        return self._host_call(lambda: self.host.create_primitive(
            PrimitiveShape.CUBE, "Wall", ins.position, ins.rotation, ins.scale,
            material=self.config.materials.wall,
        ), "create wall")

    def _build_outer_wall(self, ins: OuterWall) -> Any:
        return self._host_call(lambda: self.host.create_primitive(
            PrimitiveShape.CUBE, "Outer Wall", ins.position, ins.rotation, ins.scale,
            material=self.config.materials.wall,
        ), "create outer wall")

    def _build_ground(self, ins: GroundPlane) -> Any:
        return self._host_call(lambda: self.host.create_primitive(
            PrimitiveShape.PLANE, "Ground", ins.position, ins.rotation, (ins.size[0], 1.0, ins.size[1]),
            material=self.config.materials.ground, tiling=ins.tiling,
        ), "create ground")

    def _build_roof(self, ins: RoofPlane) -> Any:
        return self._host_call(lambda: self.host.create_primitive(
            PrimitiveShape.PLANE, "Roof", ins.position, ins.rotation, (ins.size[0], 1.0, ins.size[1]),
            material=self.config.materials.roof, tiling=ins.tiling,
        ), "create roof")

    def _build_structure(self, ins: Structure) -> Any:
        try:
            template = self.config.structures[ins.template_index]
        except IndexError:
            raise HostError(f"[{self.request_id}] Structure template index {ins.template_index} out of range")
        return self._host_call(lambda: self.host.instantiate_template(
            template.name, "Structure", ins.position, ins.rotation, ins.scale,
            inherit_footprint=ins.inherit_footprint,
        ), f"instantiate structure '{template.name}'")

    def _build_light(self, ins: Light) -> Any:
        return self._host_call(
            lambda: self.host.create_light("Light", ins.position, self.config.lights), "create light"
        )

    def _build_probe(self, ins: ReflectionProbe) -> Any:
        return self._host_call(lambda: self.host.create_reflection_probe(
            "ReflectionProbe", ins.position, ins.size, ins.resolution, ins.box_projection,
        ), "create reflection probe")
