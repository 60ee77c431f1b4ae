# Mazegen Blender host: SceneHost backed by bpy data-blocks and collections
#
# Groups are collections; handles are bpy objects. Objects are created
# through bpy.data (not bpy.ops) so creation works without an active
# viewport context.
#
# Frame conversion: instructions are Y-up and left-handed, Blender is Z-up and
# right-handed. Swapping Y and Z converts positions and scales; a single-axis
# rotation by theta becomes -theta about the swapped axis.

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import LightSettings, LightType
from .cleanup import remove_collection_tree, safe_remove_object
from .scene_host import HostError, PrimitiveShape

try:
    import bpy  # type: ignore
except Exception:
    bpy = None  # Allows import outside Blender for tooling/tests and CI

logger = logging.getLogger(__name__)

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

# Light probe type names changed in Blender 4.1 (CUBEMAP -> SPHERE)
_PROBE_TYPES = ("SPHERE", "CUBEMAP")
STATIC_PROP = "mazegen_static"


def to_blender_location(v: Vec3) -> Vec3:
    return (float(v[0]), float(v[2]), float(v[1]))


def to_blender_scale(v: Vec3) -> Vec3:
    return (float(v[0]), float(v[2]), float(v[1]))


def to_blender_rotation(v: Vec3) -> Vec3:
    rx, ry, rz = v
    return (math.radians(-rx), math.radians(-rz), math.radians(-ry))


def _box_geometry() -> Tuple[List[Vec3], List[Tuple[int, ...]]]:
    h = 0.5
    verts = [
        (-h, -h, -h), (h, -h, -h), (h, h, -h), (-h, h, -h),
        (-h, -h, h), (h, -h, h), (h, h, h), (-h, h, h),
    ]
    faces = [
        (0, 3, 2, 1), (4, 5, 6, 7), (0, 1, 5, 4), (2, 3, 7, 6), (1, 2, 6, 5), (3, 0, 4, 7)
    ]
    return verts, faces


def _plane_geometry() -> Tuple[List[Vec3], List[Tuple[int, ...]]]:
    h = 0.5
    verts = [(-h, -h, 0.0), (h, -h, 0.0), (h, h, 0.0), (-h, h, 0.0)]
    return verts, [(0, 1, 2, 3)]


class BlenderSceneHost:
    """SceneHost implementation that builds into the current Blender scene."""

    def __init__(self, scene: Optional[Any] = None) -> None:
        if bpy is None:
            raise HostError("bpy module not available. Run inside Blender.")
        self.scene = scene or bpy.context.scene
        self._children: Dict[str, List[Any]] = {}
        self._missing_materials: set = set()

    @property
    def data(self):
        return bpy.data

    # --------------------------
    # Groups
    # --------------------------
    def create_group(self, name: str, parent: Any = None) -> Any:
        col = self.data.collections.new(name)
        target = parent if parent is not None else self.scene.collection
        target.children.link(col)
        return col

    def destroy_group(self, group: Any) -> None:
        try:
            name = group.name
        except ReferenceError:
            return
        removed = remove_collection_tree(self.data, group)
        self._children.clear()
        logger.debug(f"Removed collection tree '{name}' ({removed} object(s))")

    def destroy_object(self, handle: Any) -> None:
        try:
            key = handle.name
        except ReferenceError:
            return
        for child in self._children.pop(key, []):
            safe_remove_object(self.data, child)
        safe_remove_object(self.data, handle)

    def parent(self, handle: Any, group: Any) -> None:
        group.objects.link(handle)
        for child in self._children.get(handle.name, []):
            group.objects.link(child)

    # --------------------------
    # Objects
    # --------------------------
    def _apply_transform(self, obj: Any, position: Vec3, rotation: Vec3, scale: Vec3) -> None:
        obj.location = to_blender_location(position)
        obj.rotation_euler = to_blender_rotation(rotation)
        obj.scale = to_blender_scale(scale)

    def _material(self, name: Optional[str]) -> Any:
        if not name:
            return None
        mat = self.data.materials.get(name)
        if mat is None and name not in self._missing_materials:
            self._missing_materials.add(name)
            logger.warning(f"Material '{name}' not found; using Blender default")
        return mat

    def _create_mesh(self, name: str, shape: PrimitiveShape, tiling: Optional[Vec2]) -> Any:
        verts, faces = _box_geometry() if shape is PrimitiveShape.CUBE else _plane_geometry()
        me = self.data.meshes.new(name)
        me.from_pydata(verts, [], faces)
        me.update()
        if shape is PrimitiveShape.PLANE and hasattr(me, "uv_layers") and hasattr(me.uv_layers, "new"):
            # Planar UVs repeated `tiling` times across the plane
            tu, tv = tiling if tiling is not None else (1.0, 1.0)
            uv_layer = me.uv_layers.new(name="UVMap")
            for poly in me.polygons:
                for li in poly.loop_indices:
                    vx, vy, _ = verts[me.loops[li].vertex_index]
                    uv_layer.data[li].uv = ((vx + 0.5) * tu, (vy + 0.5) * tv)
        return me

    def create_primitive(
        self,
        shape: PrimitiveShape,
        name: str,
        position: Vec3,
        rotation: Vec3,
        scale: Vec3,
        material: Optional[str] = None,
        tiling: Optional[Vec2] = None,
    ) -> Any:
        shape = PrimitiveShape(shape)
        me = self._create_mesh(f"{name}_mesh", shape, tiling)
        mat = self._material(material)
        if mat is not None:
            me.materials.append(mat)
        obj = self.data.objects.new(name, me)
        self._apply_transform(obj, position, rotation, scale)
        return obj

    def instantiate_template(
        self,
        template: str,
        name: str,
        position: Vec3,
        rotation: Vec3,
        scale: Vec3,
        inherit_footprint: bool = False,
    ) -> Any:
        src = self.data.objects.get(template)
        if src is None:
            raise HostError(f"Structure template object '{template}' not found")
        obj = src.copy()
        obj.parent = None
        self._apply_transform(obj, position, rotation, scale)
        if inherit_footprint:
            # Blender x/y is the template's footprint; only the height comes from the maze
            obj.scale = (float(src.scale[0]), float(src.scale[1]), obj.scale[2])
        copies = []
        for child in getattr(src, "children", []) or []:
            c = child.copy()
            c.parent = obj
            copies.append(c)
        self._children[obj.name] = copies
        return obj

    def children(self, handle: Any) -> List[Any]:
        return list(self._children.get(handle.name, []))

    def create_light(self, name: str, position: Vec3, settings: LightSettings) -> Any:
        ld = self.data.lights.new(name=name, type=LightType(settings.light_type).value)
        ld.energy = float(settings.intensity)
        ld.color = tuple(settings.color)
        if hasattr(ld, "use_custom_distance"):
            ld.use_custom_distance = True
            ld.cutoff_distance = float(settings.range)
        if settings.light_type is LightType.AREA and hasattr(ld, "shape"):
            ld.shape = "RECTANGLE"
        obj = self.data.objects.new(name, ld)
        obj.location = to_blender_location(position)
        return obj

    def create_reflection_probe(
        self, name: str, position: Vec3, size: Vec3, resolution: int, box_projection: bool
    ) -> Any:
        probe = None
        for ptype in _PROBE_TYPES:
            try:
                probe = self.data.lightprobes.new(name, ptype)
                break
            except TypeError:
                continue
        if probe is None:
            raise HostError("This Blender version supports none of the reflection probe types "
                            f"{list(_PROBE_TYPES)}")
        if hasattr(probe, "influence_type"):
            probe.influence_type = "BOX" if box_projection else "ELIPSOID"
        if hasattr(probe, "influence_distance"):
            probe.influence_distance = float(max(size)) / 2.0
        obj = self.data.objects.new(name, probe)
        obj.location = to_blender_location(position)
        obj["mazegen_resolution"] = int(resolution)
        return obj

    # --------------------------
    # Flags
    # --------------------------
    def set_static(self, handle: Any, flag: bool) -> bool:
        try:
            if getattr(handle, "type", None) != "MESH":
                return False
            handle[STATIC_PROP] = bool(flag)
            locks = (bool(flag),) * 3
            handle.lock_location = locks
            handle.lock_rotation = locks
            handle.lock_scale = locks
        except ReferenceError:
            return False
        return True

    def set_visible(self, handle: Any, flag: bool) -> bool:
        try:
            if getattr(handle, "type", None) != "MESH":
                return False
            handle.hide_viewport = not flag
            handle.hide_render = not flag
        except ReferenceError:
            return False
        return True
