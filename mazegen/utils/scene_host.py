# Mazegen scene host capability
#
# The builder never talks to Blender directly. It calls a SceneHost, which
# materializes objects and groups and hands back opaque handles.
# Two hosts ship with the add-on:
# - BlenderSceneHost (utils/blender_host.py): bpy data-blocks and collections
# - DryRunSceneHost (this module): in-memory records, used when bpy is unavailable
#
# Hosts raise HostError when they refuse to create or parent an object.
# set_static/set_visible return False for handles without a renderable
# (lights, probes).

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..core.config import LightSettings

logger = logging.getLogger(__name__)

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]


class HostError(Exception):
    """Raised when the scene host refuses to create, parent or destroy something."""
    pass


class PrimitiveShape(Enum):
    CUBE = "CUBE"     # unit cube centered on its origin
    PLANE = "PLANE"   # unit square in the XZ plane, facing +Y


class SceneHost(Protocol):
    def create_group(self, name: str, parent: Any = None) -> Any: ...

    def create_primitive(
        self,
        shape: PrimitiveShape,
        name: str,
        position: Vec3,
        rotation: Vec3,
        scale: Vec3,
        material: Optional[str] = None,
        tiling: Optional[Vec2] = None,
    ) -> Any: ...

    def instantiate_template(
        self,
        template: str,
        name: str,
        position: Vec3,
        rotation: Vec3,
        scale: Vec3,
        inherit_footprint: bool = False,
    ) -> Any: ...

    def children(self, handle: Any) -> List[Any]: ...

    def create_light(self, name: str, position: Vec3, settings: LightSettings) -> Any: ...

    def create_reflection_probe(
        self, name: str, position: Vec3, size: Vec3, resolution: int, box_projection: bool
    ) -> Any: ...

    def parent(self, handle: Any, group: Any) -> None: ...

    def destroy_group(self, group: Any) -> None: ...

    def destroy_object(self, handle: Any) -> None: ...

    def set_static(self, handle: Any, flag: bool) -> bool: ...

    def set_visible(self, handle: Any, flag: bool) -> bool: ...


# --------------------------
# In-memory dry-run host
# --------------------------
@dataclass
class HostObject:
    name: str
    kind: str
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    renderable: bool = True
    material: Optional[str] = None
    tiling: Optional[Vec2] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List["HostObject"] = field(default_factory=list)
    group: Optional["HostGroup"] = None
    static: bool = False
    visible: bool = True
    alive: bool = True


@dataclass
class HostGroup:
    name: str
    parent: Optional["HostGroup"] = None
    groups: List["HostGroup"] = field(default_factory=list)
    objects: List[HostObject] = field(default_factory=list)
    alive: bool = True

    @property
    def path(self) -> str:
        return f"{self.parent.path}/{self.name}" if self.parent else self.name


class DryRunSceneHost:
    """Records what would be created. Satisfies SceneHost without Blender.

    templates: optional mapping of template name -> child object names. When
    given, instantiating an unknown template raises HostError; when omitted,
    any template name is accepted and has no children.
    """

    def __init__(self, templates: Optional[Dict[str, List[str]]] = None) -> None:
        self.templates = templates
        self.groups: List[HostGroup] = []
        self.objects: List[HostObject] = []
        self._ids = itertools.count(1)

    # Queries used by previews and tests
    def live_objects(self) -> List[HostObject]:
        return [o for o in self.objects if o.alive]

    def live_groups(self) -> List[HostGroup]:
        return [g for g in self.groups if g.alive]

    def find_group(self, path: str) -> Optional[HostGroup]:
        for g in self.groups:
            if g.alive and g.path == path:
                return g
        return None

    def _unique(self, name: str) -> str:
        return f"{name}.{next(self._ids):04d}"

    def _track(self, obj: HostObject) -> HostObject:
        self.objects.append(obj)
        return obj

    def create_group(self, name: str, parent: Any = None) -> HostGroup:
        if parent is not None and (not isinstance(parent, HostGroup) or not parent.alive):
            raise HostError(f"Cannot create group '{name}': parent group is not live")
        group = HostGroup(name=name, parent=parent)
        if parent is not None:
            parent.groups.append(group)
        self.groups.append(group)
        return group

    def create_primitive(self, shape, name, position, rotation, scale, material=None, tiling=None) -> HostObject:
        return self._track(HostObject(
            name=self._unique(name), kind=PrimitiveShape(shape).value,
            position=tuple(position), rotation=tuple(rotation), scale=tuple(scale),
            material=material, tiling=tuple(tiling) if tiling is not None else None,
        ))

    def instantiate_template(self, template, name, position, rotation, scale, inherit_footprint=False) -> HostObject:
        if self.templates is not None and template not in self.templates:
            raise HostError(f"Structure template '{template}' not found")
        root = HostObject(
            name=self._unique(name), kind="TEMPLATE",
            position=tuple(position), rotation=tuple(rotation), scale=tuple(scale),
            properties={"template": template, "inherit_footprint": bool(inherit_footprint)},
        )
        for child_name in (self.templates or {}).get(template, []):
            root.children.append(self._track(HostObject(name=self._unique(child_name), kind="MESH")))
        return self._track(root)

    def children(self, handle: HostObject) -> List[HostObject]:
        return list(handle.children)

    def create_light(self, name, position, settings: LightSettings) -> HostObject:
        return self._track(HostObject(
            name=self._unique(name), kind="LIGHT", position=tuple(position), renderable=False,
            properties={
                "light_type": settings.light_type.value,
                "intensity": settings.intensity,
                "range": settings.range,
                "color": tuple(settings.color),
            },
        ))

    def create_reflection_probe(self, name, position, size, resolution, box_projection) -> HostObject:
        return self._track(HostObject(
            name=self._unique(name), kind="REFLECTION_PROBE", position=tuple(position), renderable=False,
            properties={"size": tuple(size), "resolution": resolution, "box_projection": box_projection},
        ))

    def parent(self, handle: HostObject, group: HostGroup) -> None:
        if not isinstance(group, HostGroup) or not group.alive:
            raise HostError(f"Cannot parent '{getattr(handle, 'name', handle)}': group is not live")
        handle.group = group
        group.objects.append(handle)

    def _kill_group(self, group: HostGroup) -> None:
        for sub in list(group.groups):
            self._kill_group(sub)
        for obj in group.objects:
            obj.alive = False
            for child in obj.children:
                child.alive = False
        group.alive = False
        logger.debug(f"Dry-run host destroyed group '{group.path}' ({len(group.objects)} object(s))")
        if group.parent is not None and group in group.parent.groups:
            group.parent.groups.remove(group)

    def _prune(self) -> None:
        self.objects = [o for o in self.objects if o.alive]
        self.groups = [g for g in self.groups if g.alive]

    def destroy_group(self, group: HostGroup) -> None:
        if group is None or not group.alive:
            return
        self._kill_group(group)
        self._prune()

    def destroy_object(self, handle: HostObject) -> None:
        handle.alive = False
        for child in handle.children:
            child.alive = False
        if handle.group is not None and handle in handle.group.objects:
            handle.group.objects.remove(handle)
        self._prune()

    def set_static(self, handle: HostObject, flag: bool) -> bool:
        if not handle.alive or not handle.renderable:
            return False
        handle.static = bool(flag)
        return True

    def set_visible(self, handle: HostObject, flag: bool) -> bool:
        if not handle.alive or not handle.renderable:
            return False
        handle.visible = bool(flag)
        return True
